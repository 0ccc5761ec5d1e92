"""shimkit: runtime adapters that make a class satisfy contracts it never declared.

Typical use, once at process bootstrap:

    import shimkit

    shimkit.start()
    shimkit.register_mirror(OtherData, "app.models.SomeData")
    Adapter = shimkit.synthesize(LegacyService, ["app.contracts.Service"])
    service: Service = Adapter("config")
"""

from shimkit.context import ShimContext
from shimkit.infra.errors import (
    IncompleteAdapterError,
    InvalidMirrorShapeError,
    NotStartedError,
    ShimError,
)
from shimkit.lifecycle import current, register_mirror, reset, start, synthesize
from shimkit.reflect.descriptors import member, qualified_name

__version__ = "0.1.0"

__all__ = [
    "IncompleteAdapterError",
    "InvalidMirrorShapeError",
    "NotStartedError",
    "ShimContext",
    "ShimError",
    "current",
    "member",
    "qualified_name",
    "register_mirror",
    "reset",
    "start",
    "synthesize",
]
