"""Mirror records: registry of interchangeable record classes and conversion."""

from shimkit.mirror.converter import Converter, WireConverter
from shimkit.mirror.registry import MirrorRegistry

__all__ = ["Converter", "MirrorRegistry", "WireConverter"]
