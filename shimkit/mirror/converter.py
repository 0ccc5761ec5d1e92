"""Value conversion between mirrored record classes.

The default converter moves a value through its JSON wire form: the source
record is dumped with field aliases and the bytes are validated as the
target record. Two mirrors therefore agree on the wire names of their
fields (directly, or through ``Field(alias=...)``), not on attribute names.
"""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import TypeAdapter


class Converter(Protocol):
    """Bidirectional conversion hook used by converting forwards."""

    def __call__(self, value: Any, source: type, target: type) -> Any: ...


class WireConverter:
    """Converter backed by pydantic TypeAdapters, cached per record class."""

    def __init__(self) -> None:
        self._adapters: dict[type, TypeAdapter[Any]] = {}

    def _adapter(self, shape: type) -> TypeAdapter[Any]:
        adapter = self._adapters.get(shape)
        if adapter is None:
            adapter = TypeAdapter(shape)
            self._adapters[shape] = adapter
        return adapter

    def __call__(self, value: Any, source: type, target: type) -> Any:
        payload = self._adapter(source).dump_json(value, by_alias=True)
        return self._adapter(target).validate_json(payload)
