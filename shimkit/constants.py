"""Shared constants for shimkit."""

ADAPTER_PREFIX = "Shim__"
GENERATED_MODULE = "shimkit_generated"

# Marker set on generated modules so the type directory never indexes them.
GENERATED_MARKER = "__shimkit_generated__"

# Attribute on adapter classes holding the AdapterPlan they were built from.
PLAN_ATTR = "__shim_plan__"

# Attribute set by the member() decorator on aliased implementation methods.
MEMBER_NAME_ATTR = "__shim_member__"
