"""Shared pytest fixtures for shimkit tests.

Every test starts with no installed context; tests that need one either
call shimkit.start() themselves or take the ``context`` fixture.

Contract, implementation and record classes used by a test module are
defined at module level so the type directory sees them when start()
scans sys.modules. Tests refer to them through qualified_name() because
the module name pytest imports a test file under depends on rootdir.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

import shimkit
from shimkit.config.settings import ShimSettings
from shimkit.context import ShimContext


@pytest.fixture(autouse=True)
def _reset_lifecycle() -> Iterator[None]:
    """Uninstall the process-wide context before and after each test."""
    shimkit.reset()
    yield
    shimkit.reset()


@pytest.fixture
def settings() -> ShimSettings:
    return ShimSettings()


@pytest.fixture
def context(settings: ShimSettings) -> Iterator[ShimContext]:
    """A started context, independent of the process-wide one."""
    context = ShimContext(settings=settings).start()
    yield context
    context.close()
