"""What an adapter consists of, independent of how it is materialized.

An AdapterPlan lists the implementation, the contracts, the constructor to
forward and one MethodPlan per matched contract member. The builder turns a
plan into a class; the finished class keeps its plan as ``__shim_plan__``.
"""

from __future__ import annotations

import inspect
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from shimkit.synth.matching import MatchKind

if TYPE_CHECKING:
    from shimkit.reflect.descriptors import MethodDescriptor
    from shimkit.synth.matching import MemberMatch


class MethodStrategy(StrEnum):
    inherit = "inherit"  # exact match, same attribute and call shape: nothing generated
    forward = "forward"  # exact match under another attribute or call shape: pure forward
    convert = "convert"  # at least one mirrored position


@dataclass(frozen=True)
class Conversion:
    source: type
    target: type


@dataclass(frozen=True)
class MethodPlan:
    """One contract member on the adapter.

    parameter_conversions and keyword_names run parallel to the contract's
    parameters (excluding self). keyword_names holds the implementation's
    parameter name where that parameter is keyword-only, else None.
    """

    name: str
    target_attr: str
    strategy: MethodStrategy
    signature: inspect.Signature
    is_async: bool
    parameter_conversions: tuple[Conversion | None, ...] = ()
    keyword_names: tuple[str | None, ...] = ()
    return_conversion: Conversion | None = None
    doc: str | None = None


@dataclass(frozen=True)
class AdapterPlan:
    name: str
    implementation: type
    contracts: tuple[type, ...]
    constructor: inspect.Signature | None
    methods: tuple[MethodPlan, ...]

    def by_strategy(self, strategy: MethodStrategy) -> list[MethodPlan]:
        return [m for m in self.methods if m.strategy is strategy]

    @property
    def generated(self) -> list[MethodPlan]:
        """Plans that produce a new method on the adapter."""
        return [m for m in self.methods if m.strategy is not MethodStrategy.inherit]


def plan_method(match: MemberMatch) -> MethodPlan:
    """Plan the adapter method for a matched member. match.candidate must be set."""
    required, candidate = match.required, match.candidate
    if candidate is None:
        raise ValueError(f"Cannot plan unmatched member '{required.name}'")

    if match.kind is MatchKind.exact:
        strategy = (
            MethodStrategy.inherit
            if candidate.attr_name == required.name and _accepts_same_calls(required, candidate)
            else MethodStrategy.forward
        )
    else:
        strategy = MethodStrategy.convert

    conversions = tuple(
        Conversion(source=want.annotation, target=have.annotation)
        if kind is MatchKind.mirrored
        else None
        for kind, want, have in zip(match.parameters, required.parameters, candidate.parameters)
    )
    return_conversion = None
    if match.returns is MatchKind.mirrored:
        return_conversion = Conversion(source=candidate.returns, target=required.returns)

    return MethodPlan(
        name=required.name,
        target_attr=candidate.attr_name,
        strategy=strategy,
        signature=required.signature,
        is_async=required.is_async,
        parameter_conversions=conversions,
        keyword_names=tuple(p.name if p.keyword_only else None for p in candidate.parameters),
        return_conversion=return_conversion,
        doc=_contract_doc(required.owner, required.attr_name),
    )


def _accepts_same_calls(required: MethodDescriptor, candidate: MethodDescriptor) -> bool:
    """True if every call valid for required binds the same way on candidate.

    Parameter names and kinds must agree, and a parameter the contract lets
    callers omit must have a default on the implementation too.
    """
    for want, have in zip(required.parameters, candidate.parameters):
        if want.name != have.name or want.keyword_only != have.keyword_only:
            return False
        if want.has_default and not have.has_default:
            return False
    return True


def _contract_doc(owner: type, attr: str) -> str | None:
    fn = vars(owner).get(attr)
    if fn is None:
        return None
    return inspect.getdoc(fn)


def plan_adapter(
    name: str,
    implementation: type,
    contracts: Sequence[type],
    constructor: inspect.Signature | None,
    matches: Sequence[MemberMatch],
) -> AdapterPlan:
    """Plan an adapter from match results. Unmatched members are left out."""
    return AdapterPlan(
        name=name,
        implementation=implementation,
        contracts=tuple(contracts),
        constructor=constructor,
        methods=tuple(plan_method(m) for m in matches if m.matched),
    )
