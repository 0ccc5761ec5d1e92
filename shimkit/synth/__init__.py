"""Adapter synthesis: member matching, adapter plans and class building."""

from shimkit.synth.matching import MatchKind, MemberMatch, classify, match_members
from shimkit.synth.plan import AdapterPlan, Conversion, MethodPlan, MethodStrategy
from shimkit.synth.synthesizer import AdapterSynthesizer

__all__ = [
    "AdapterPlan",
    "AdapterSynthesizer",
    "Conversion",
    "MatchKind",
    "MemberMatch",
    "MethodPlan",
    "MethodStrategy",
    "classify",
    "match_members",
]
