"""Reflection: type descriptors and the qualified-name type directory."""

from shimkit.reflect.descriptors import (
    MethodDescriptor,
    ParameterDescriptor,
    TypeDescriptor,
    describe,
    is_contract,
    is_data_record,
    member,
    qualified_name,
)
from shimkit.reflect.directory import TypeDirectory

__all__ = [
    "MethodDescriptor",
    "ParameterDescriptor",
    "TypeDescriptor",
    "TypeDirectory",
    "describe",
    "is_contract",
    "is_data_record",
    "member",
    "qualified_name",
]
