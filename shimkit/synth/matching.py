"""Contract member to implementation member matching.

Members are paired by (name, arity). Within a group the implementation's
candidates are tried in declaration order and the first one whose return
and parameter types are all exact or mirrored wins. No diagnostic is given
when later candidates would also have matched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shimkit.mirror.registry import MirrorRegistry
    from shimkit.reflect.descriptors import MethodDescriptor, TypeDescriptor


class MatchKind(StrEnum):
    incompatible = "incompatible"
    exact = "exact"
    mirrored = "mirrored"


@dataclass(frozen=True)
class MemberMatch:
    """Classification of one contract member against its chosen candidate.

    candidate is None when no implementation member was compatible; kind is
    then incompatible and the position tuples are empty.
    """

    contract: TypeDescriptor
    required: MethodDescriptor
    candidate: MethodDescriptor | None
    kind: MatchKind
    returns: MatchKind = MatchKind.incompatible
    parameters: tuple[MatchKind, ...] = ()

    @property
    def matched(self) -> bool:
        return self.kind is not MatchKind.incompatible


def classify_position(
    required: Any,
    candidate: Any,
    mirrors: MirrorRegistry | None = None,
) -> MatchKind:
    if candidate == required:
        return MatchKind.exact
    if mirrors is not None and mirrors.is_mirror(candidate, required):
        return MatchKind.mirrored
    return MatchKind.incompatible


def classify(
    required: MethodDescriptor,
    candidate: MethodDescriptor,
    mirrors: MirrorRegistry | None = None,
) -> tuple[MatchKind, MatchKind, tuple[MatchKind, ...]]:
    """Classify candidate against required: (overall, return, per-parameter).

    The return position is checked first and short-circuits. A coroutine
    method only matches a coroutine method.
    """
    if required.is_async != candidate.is_async or required.arity != candidate.arity:
        return MatchKind.incompatible, MatchKind.incompatible, ()

    returns = classify_position(required.returns, candidate.returns, mirrors)
    if returns is MatchKind.incompatible:
        return MatchKind.incompatible, returns, ()

    positions = []
    for want, have in zip(required.parameters, candidate.parameters):
        kind = classify_position(want.annotation, have.annotation, mirrors)
        if kind is MatchKind.incompatible:
            return MatchKind.incompatible, returns, ()
        positions.append(kind)

    overall = MatchKind.exact
    if returns is MatchKind.mirrored or MatchKind.mirrored in positions:
        overall = MatchKind.mirrored
    return overall, returns, tuple(positions)


def match_members(
    contracts: Sequence[TypeDescriptor],
    implementation: TypeDescriptor,
    mirrors: MirrorRegistry | None = None,
) -> list[MemberMatch]:
    """Match every contract member against the implementation.

    When several contracts declare the same (name, arity), the first one in
    request order is matched; the others are left to the conformance check.
    """
    candidates = implementation.grouped()
    matches: list[MemberMatch] = []
    seen: set[tuple[str, int]] = set()

    for contract in contracts:
        for required in contract.methods:
            if required.key in seen:
                continue
            seen.add(required.key)
            matches.append(_first_match(contract, required, candidates.get(required.key, []), mirrors))
    return matches


def _first_match(
    contract: TypeDescriptor,
    required: MethodDescriptor,
    candidates: list[MethodDescriptor],
    mirrors: MirrorRegistry | None,
) -> MemberMatch:
    for candidate in candidates:
        kind, returns, parameters = classify(required, candidate, mirrors)
        if kind is not MatchKind.incompatible:
            return MemberMatch(
                contract=contract,
                required=required,
                candidate=candidate,
                kind=kind,
                returns=returns,
                parameters=parameters,
            )
    return MemberMatch(
        contract=contract,
        required=required,
        candidate=None,
        kind=MatchKind.incompatible,
    )
