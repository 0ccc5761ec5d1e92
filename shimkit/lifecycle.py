"""Process-wide gate around one installed ShimContext.

start() must run before register_mirror() or synthesize(); both raise
NotStartedError otherwise. Calling start() again replaces the installed
context. reset() uninstalls it (for test isolation). A replaced or
uninstalled context is closed, so its generated module leaves sys.modules.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from shimkit.context import ShimContext
from shimkit.infra.errors import NotStartedError

if TYPE_CHECKING:
    from shimkit.config.settings import ShimSettings
    from shimkit.mirror.converter import Converter

_instance: ShimContext | None = None


def start(
    settings: ShimSettings | None = None,
    converter: Converter | None = None,
) -> ShimContext:
    """Create, start and install a new context. Returns it."""
    global _instance
    context = ShimContext(settings=settings, converter=converter).start()
    if _instance is not None:
        _instance.close()
    _instance = context
    return context


def current() -> ShimContext:
    """The installed context. Raises NotStartedError if there is none."""
    if _instance is None:
        raise NotStartedError()
    return _instance


def reset() -> None:
    """Close and uninstall the current context, if any."""
    global _instance
    if _instance is not None:
        _instance.close()
    _instance = None


def register_mirror(mirror: type, target_name: str) -> None:
    current().register_mirror(mirror, target_name)


def synthesize(implementation: type, contract_names: Sequence[str] | str) -> type:
    return current().synthesize(implementation, contract_names)
