"""Materialize an AdapterPlan as a real class.

Generated methods are closures over the implementation function and the
converter; they carry the contract's signature and resolved annotations,
so inspect.signature() and typing.get_type_hints() on the adapter report
the contract's view of each member.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from shimkit.constants import PLAN_ATTR
from shimkit.infra.errors import IncompleteAdapterError
from shimkit.synth.plan import MethodStrategy

if TYPE_CHECKING:
    from shimkit.mirror.converter import Converter
    from shimkit.synth.plan import AdapterPlan, MethodPlan


def forward_init(
    implementation: type,
    owner_name: str,
    signature: inspect.Signature | None = None,
) -> Callable[..., None]:
    """__init__ that passes its arguments, unconverted, to the implementation's."""
    base_init = implementation.__init__

    def __init__(self: Any, *args: Any, **kwargs: Any) -> None:
        base_init(self, *args, **kwargs)

    __init__.__qualname__ = f"{owner_name}.__init__"
    __init__.__doc__ = base_init.__doc__
    if signature is not None:
        __init__.__signature__ = signature  # type: ignore[attr-defined]
    return __init__


def _annotations(signature: inspect.Signature) -> dict[str, Any]:
    annotations = {
        name: param.annotation
        for name, param in list(signature.parameters.items())[1:]
        if param.annotation is not inspect.Parameter.empty
    }
    annotations["return"] = signature.return_annotation
    return annotations


def forward_method(
    plan: MethodPlan,
    implementation: type,
    converter: Converter,
    owner_name: str,
) -> Callable[..., Any]:
    """Build the forwarding (or converting) method described by plan.

    Arguments are bound against the contract signature with defaults applied,
    mirrored positions are converted to the implementation's type, and the
    implementation is called positionally in contract order. A mirrored
    return value is converted back to the contract's type.
    """
    target = getattr(implementation, plan.target_attr)
    signature = plan.signature
    slots = list(zip(plan.parameter_conversions, plan.keyword_names))
    returns = plan.return_conversion

    def call_arguments(self: Any, args: tuple, kwargs: dict) -> tuple[list, dict]:
        bound = signature.bind(self, *args, **kwargs)
        bound.apply_defaults()
        values = list(bound.arguments.values())[1:]
        positional: list[Any] = []
        keywords: dict[str, Any] = {}
        for value, (conversion, keyword) in zip(values, slots):
            if conversion is not None:
                value = converter(value, conversion.source, conversion.target)
            if keyword is None:
                positional.append(value)
            else:
                keywords[keyword] = value
        return positional, keywords

    def convert_result(result: Any) -> Any:
        if returns is None:
            return result
        return converter(result, returns.source, returns.target)

    if plan.is_async:

        async def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            positional, keywords = call_arguments(self, args, kwargs)
            return convert_result(await target(self, *positional, **keywords))

    else:

        def method(self: Any, *args: Any, **kwargs: Any) -> Any:
            positional, keywords = call_arguments(self, args, kwargs)
            return convert_result(target(self, *positional, **keywords))

    method.__name__ = plan.name
    method.__qualname__ = f"{owner_name}.{plan.name}"
    method.__doc__ = plan.doc
    method.__signature__ = signature  # type: ignore[attr-defined]
    method.__annotations__ = _annotations(signature)
    return method


def build_adapter(plan: AdapterPlan, converter: Converter, module_name: str) -> type:
    """Create the adapter class for plan.

    Raises IncompleteAdapterError if the implementation and contracts cannot
    be combined into one class (metaclass or MRO conflict).
    """
    namespace: dict[str, Any] = {
        "__module__": module_name,
        "__qualname__": plan.name,
        "__doc__": plan.implementation.__doc__,
        PLAN_ATTR: plan,
    }
    if plan.implementation.__init__ is object.__init__:
        # Built entirely by __new__ (str, int, tuple subclasses). A contract
        # base must not contribute its own __init__ in its place.
        namespace["__init__"] = object.__init__
    else:
        namespace["__init__"] = forward_init(plan.implementation, plan.name, plan.constructor)
    for method in plan.methods:
        if method.strategy is MethodStrategy.inherit:
            continue
        namespace[method.name] = forward_method(
            method, plan.implementation, converter, plan.name
        )

    try:
        return types.new_class(
            plan.name,
            (plan.implementation, *plan.contracts),
            exec_body=lambda ns: ns.update(namespace),
        )
    except TypeError as e:
        contracts = ", ".join(c.__qualname__ for c in plan.contracts)
        raise IncompleteAdapterError(
            f"Cannot combine '{plan.implementation.__qualname__}' with contracts "
            f"[{contracts}]: {e}"
        ) from e
