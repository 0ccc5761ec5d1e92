from __future__ import annotations

import sys
from collections.abc import Sequence
from types import ModuleType

import structlog

from shimkit.constants import GENERATED_MARKER
from shimkit.reflect.descriptors import TypeDescriptor, describe, qualified_name

logger = structlog.get_logger()


class TypeDirectory:
    """Qualified class name -> class, plus a cache of TypeDescriptors.

    Populated by scan() from the modules loaded at that moment. Modules
    imported afterwards are not indexed; use register() for those classes.
    Append-only: nothing is ever removed.
    """

    def __init__(self, *, excluded_prefixes: Sequence[str] = ()) -> None:
        self._types: dict[str, type] = {}
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._excluded = tuple(excluded_prefixes)

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def _is_excluded(self, module_name: str, namespace: dict) -> bool:
        if namespace.get(GENERATED_MARKER, False):
            return True
        return bool(self._excluded) and module_name.startswith(self._excluded)

    def scan(self) -> int:
        """Index every public class defined in a loaded, non-generated module.

        Public classes nested in an indexed class are indexed too, under
        their dotted qualified name. Returns the number of indexed names.
        """
        for module_name, module in list(sys.modules.items()):
            if not isinstance(module, ModuleType):
                continue
            namespace = getattr(module, "__dict__", None)
            if not isinstance(namespace, dict) or self._is_excluded(module_name, namespace):
                continue
            for attr, value in list(namespace.items()):
                if attr.startswith("_") or not isinstance(value, type):
                    continue
                if getattr(value, "__module__", None) != module_name:
                    continue
                self._index(value)
        return len(self._types)

    def _index(self, cls: type) -> None:
        self._types[qualified_name(cls)] = cls
        # Only classes defined in this body; aliases to outer classes are skipped.
        prefix = f"{cls.__qualname__}."
        for attr, value in list(vars(cls).items()):
            if attr.startswith("_") or not isinstance(value, type):
                continue
            if getattr(value, "__module__", None) != cls.__module__:
                continue
            if value.__qualname__ == prefix + attr:
                self._index(value)

    def register(self, cls: type) -> str:
        """Add a class explicitly. Returns the name it resolves under."""
        name = qualified_name(cls)
        self._types[name] = cls
        logger.debug("type_registered", type_name=name)
        return name

    def resolve(self, name: str) -> type | None:
        """Get a class by qualified name. Returns None if unknown."""
        return self._types.get(name)

    def describe(self, cls: type) -> TypeDescriptor:
        """Cached descriptor for cls."""
        descriptor = self._descriptors.get(cls)
        if descriptor is None:
            descriptor = describe(cls)
            self._descriptors[cls] = descriptor
        return descriptor
