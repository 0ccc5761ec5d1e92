"""Explicit type metadata for contract matching.

Descriptors are derived by reflection once per class and cached by the
TypeDirectory. They are frozen: the matcher, the planner and the
conformance check only read them.

Annotations are resolved with typing.get_type_hints() so that string
annotations (``from __future__ import annotations``) compare by the types
they name. Unannotated parameters and returns resolve to ``typing.Any``.
"""

from __future__ import annotations

import dataclasses
import inspect
import typing
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel

from shimkit.constants import MEMBER_NAME_ATTR

F = TypeVar("F", bound=Callable[..., Any])

# Bases whose members never take part in matching.
_FRAMEWORK_MODULES = frozenset({"builtins", "typing", "typing_extensions", "abc"})

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def qualified_name(cls: type) -> str:
    """Directory key for a class: ``module.QualName``."""
    return f"{cls.__module__}.{cls.__qualname__}"


def member(name: str) -> Callable[[F], F]:
    """Expose an implementation method under a different contract member name.

    The decorated method keeps its own attribute name; the matcher treats it
    as a candidate for contract members called ``name``.
    """

    def _decorate(fn: F) -> F:
        setattr(fn, MEMBER_NAME_ATTR, name)
        return fn

    return _decorate


def is_data_record(cls: object) -> bool:
    """True for pydantic models and dataclasses (plain serializable data)."""
    if not isinstance(cls, type):
        return False
    return issubclass(cls, BaseModel) or dataclasses.is_dataclass(cls)


def is_contract(cls: object) -> bool:
    """True for typing.Protocol classes and abstract classes."""
    if not isinstance(cls, type):
        return False
    return bool(cls.__dict__.get("_is_protocol", False)) or inspect.isabstract(cls)


def is_framework_class(cls: type) -> bool:
    if cls.__module__ in _FRAMEWORK_MODULES:
        return True
    return cls.__module__.split(".", 1)[0] == "pydantic"


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    annotation: Any
    keyword_only: bool = False
    has_default: bool = False


@dataclass(frozen=True)
class MethodDescriptor:
    """One matchable instance method.

    name is the contract-facing member name; attr_name is the attribute the
    function lives under (they differ only for @member aliases).
    signature includes ``self`` and carries resolved annotations.
    """

    name: str
    attr_name: str
    owner: type
    parameters: tuple[ParameterDescriptor, ...]
    returns: Any
    is_async: bool
    signature: inspect.Signature

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def key(self) -> tuple[str, int]:
        return (self.name, self.arity)


@dataclass(frozen=True)
class TypeDescriptor:
    """Reflected view of a class: its members and shape predicates."""

    cls: type
    qualified_name: str
    methods: tuple[MethodDescriptor, ...]
    constructor: inspect.Signature | None
    is_data_record: bool
    is_contract: bool

    def methods_named(self, name: str) -> list[MethodDescriptor]:
        return [m for m in self.methods if m.name == name]

    def grouped(self) -> dict[tuple[str, int], list[MethodDescriptor]]:
        """Methods grouped by (name, arity), declaration order kept per group."""
        groups: dict[tuple[str, int], list[MethodDescriptor]] = {}
        for method in self.methods:
            groups.setdefault(method.key, []).append(method)
        return groups


def _resolve_hints(fn: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(fn)
    except (NameError, TypeError):
        # Forward references to TYPE_CHECKING-only imports cannot be
        # evaluated; fall back to comparing the annotation text.
        return dict(getattr(fn, "__annotations__", {}))


def _normalize(annotation: Any) -> Any:
    if annotation is inspect.Parameter.empty:
        return Any
    if annotation is None:
        return type(None)
    return annotation


def describe_method(
    fn: Callable[..., Any],
    *,
    name: str,
    attr_name: str,
    owner: type,
) -> MethodDescriptor | None:
    """Describe a plain instance-method function.

    Returns None for functions that cannot be matched by arity: those
    without a ``self`` slot, or with ``*args`` / ``**kwargs``.
    """
    signature = inspect.signature(fn)
    params = list(signature.parameters.values())
    if not params or params[0].kind in _VARIADIC:
        return None
    if any(p.kind in _VARIADIC for p in params[1:]):
        return None

    hints = _resolve_hints(fn)
    resolved = [params[0]]
    parameters = []
    for param in params[1:]:
        annotation = _normalize(hints.get(param.name, param.annotation))
        resolved.append(param.replace(annotation=annotation))
        parameters.append(
            ParameterDescriptor(
                name=param.name,
                annotation=annotation,
                keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
                has_default=param.default is not inspect.Parameter.empty,
            )
        )
    returns = _normalize(hints.get("return", signature.return_annotation))

    return MethodDescriptor(
        name=name,
        attr_name=attr_name,
        owner=owner,
        parameters=tuple(parameters),
        returns=returns,
        is_async=inspect.iscoroutinefunction(fn),
        signature=signature.replace(parameters=resolved, return_annotation=returns),
    )


def iter_public_functions(
    cls: type,
    *,
    skip: Callable[[type], bool] | None = None,
) -> Iterator[tuple[type, str, Callable[..., Any]]]:
    """Yield (owner, attribute, function) for public instance methods.

    Walks the MRO most-derived first, each class in definition order, so an
    overriding definition hides the ones below it. Static methods, class
    methods, properties and underscore names are left out.
    """
    seen: set[str] = set()
    for klass in cls.__mro__:
        if is_framework_class(klass) or (skip is not None and skip(klass)):
            continue
        for attr, value in vars(klass).items():
            if attr in seen:
                continue
            seen.add(attr)
            if attr.startswith("_"):
                continue
            if inspect.isfunction(value):
                yield klass, attr, value


def describe(cls: type) -> TypeDescriptor:
    """Build the descriptor for cls. Prefer TypeDirectory.describe(), which caches."""
    methods = []
    for owner, attr, fn in iter_public_functions(cls):
        method = describe_method(
            fn,
            name=getattr(fn, MEMBER_NAME_ATTR, attr),
            attr_name=attr,
            owner=owner,
        )
        if method is not None:
            methods.append(method)

    try:
        constructor: inspect.Signature | None = inspect.signature(cls.__init__)
    except (TypeError, ValueError):
        constructor = None

    return TypeDescriptor(
        cls=cls,
        qualified_name=qualified_name(cls),
        methods=tuple(methods),
        constructor=constructor,
        is_data_record=is_data_record(cls),
        is_contract=is_contract(cls),
    )
