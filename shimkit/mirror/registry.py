from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shimkit.infra.errors import InvalidMirrorShapeError
from shimkit.reflect.descriptors import is_data_record, qualified_name

if TYPE_CHECKING:
    from shimkit.reflect.directory import TypeDirectory

logger = structlog.get_logger()


class MirrorRegistry:
    """Target record class -> set of record classes declared as its mirrors.

    A mirror pair is unordered: is_mirror() answers True in either
    direction. Mirrors are not transitive; two mirrors of the same target
    are not mirrors of each other. Entries are only ever added.
    """

    def __init__(self, directory: TypeDirectory) -> None:
        self._directory = directory
        self._mirrors: dict[type, set[type]] = {}

    def register(self, mirror: type, target_name: str) -> None:
        """Declare mirror interchangeable with the record named target_name.

        Raises InvalidMirrorShapeError if either side is not a data record.
        An unresolvable target_name registers nothing and raises nothing.
        """
        if not is_data_record(mirror):
            raise InvalidMirrorShapeError(
                f"Mirror '{getattr(mirror, '__qualname__', mirror)}' is not a data record "
                "(expected a pydantic model or dataclass)"
            )

        target = self._directory.resolve(target_name)
        if target is None:
            logger.debug(
                "mirror_target_unresolved",
                mirror=qualified_name(mirror),
                target_name=target_name,
            )
            return

        if not is_data_record(target):
            raise InvalidMirrorShapeError(
                f"Mirror target '{target_name}' is not a data record "
                "(expected a pydantic model or dataclass)"
            )

        mirrors = self._mirrors.setdefault(target, set())
        if mirror in mirrors:
            return
        mirrors.add(mirror)
        logger.info(
            "mirror_registered",
            mirror=qualified_name(mirror),
            target=target_name,
        )

    def mirrors_of(self, target: type) -> frozenset[type]:
        """Mirrors registered against target. Empty if none."""
        return frozenset(self._mirrors.get(target, ()))

    def is_mirror(self, candidate: object, required: object) -> bool:
        """True if candidate and required form a registered mirror pair.

        Identity is not a mirror; callers classify that as an exact match.
        """
        if not isinstance(candidate, type) or not isinstance(required, type):
            return False
        return (
            candidate in self._mirrors.get(required, ())
            or required in self._mirrors.get(candidate, ())
        )
