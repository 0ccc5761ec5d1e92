"""Tests for adapter synthesis: exact matches, constructors, aliases and failures."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

import pytest

from shimkit import member, qualified_name
from shimkit.config.settings import ShimSettings
from shimkit.constants import PLAN_ATTR
from shimkit.context import ShimContext
from shimkit.infra.errors import IncompleteAdapterError
from shimkit.synth.plan import MethodStrategy


# ---------------------------------------------------------------------------
# Contracts and implementations
# ---------------------------------------------------------------------------


class SimpleContract(Protocol):
    def do_thing(self, name: str) -> str: ...


@runtime_checkable
class CheckedContract(Protocol):
    def do_thing(self, name: str) -> str: ...


class CounterContract(Protocol):
    def increment(self, step: int) -> int: ...

    def total(self) -> int: ...


class GreeterBase(ABC):
    @abstractmethod
    def greet(self, name: str) -> str: ...


class ScaleContract(Protocol):
    def scale(self, value: float, factor: float) -> float: ...


class FailedRegisterService:
    def __init__(self, value: str | None = None) -> None:
        self.value = value


class SuccessfulRegisterService:
    """Returns the configured value, or the name it is given."""

    def __init__(self, value: str | None = None) -> None:
        self.value = value

    def do_thing(self, name: str) -> str:
        if self.value:
            return self.value
        return name


class WrongTypesService:
    def do_thing(self, name: int) -> str:
        return str(name)


class CounterService:
    def __init__(self, start: int = 0, *, label: str = "counter") -> None:
        self.count = start
        self.label = label

    def increment(self, step: int) -> int:
        self.count += step
        return self.count

    def total(self) -> int:
        return self.count

    def do_thing(self, name: str) -> str:
        return f"{self.label}:{name}"


class Greeter:
    def greet(self, name: str) -> str:
        return f"hi {name}"


class AliasedService:
    def do_thing(self, name: int) -> str:
        return "int"

    @member("do_thing")
    def do_thing_text(self, name: str) -> str:
        return f"text:{name}"


class TwoCandidatesService:
    @member("do_thing")
    def first(self, name: str) -> str:
        return "first"

    @member("do_thing")
    def second(self, name: str) -> str:
        return "second"


class KeywordScaler:
    @member("scale")
    def scaled(self, value: float, *, factor: float) -> float:
        return value * factor


class Label(str):
    def shout(self) -> str:
        return self.upper()


class LabelContract(Protocol):
    def shout(self) -> str: ...


class Count(int):
    def doubled(self) -> int:
        return self * 2


class CountContract(ABC):
    def __init__(self) -> None:
        self.initialized_by_contract = True

    @abstractmethod
    def doubled(self) -> int: ...


class Registry:
    class NestedContract(Protocol):
        def lookup(self, key: str) -> str: ...


class Lookup:
    def lookup(self, key: str) -> str:
        return f"value:{key}"


class RepeatContract(Protocol):
    def repeat(self, text: str, times: int = 2) -> str: ...


class StrictRepeater:
    def repeat(self, text: str, times: int) -> str:
        return text * times


class RenamedRepeater:
    def repeat(self, value: str, count: int = 2) -> str:
        return value * count


class NotAContract:
    def do_thing(self, name: str) -> str:
        return name


def _simple(context: ShimContext, impl: type) -> type:
    return context.synthesize(impl, [qualified_name(SimpleContract)])


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestIncompleteAdapter:
    def test_no_matching_member_raises(self, context: ShimContext) -> None:
        with pytest.raises(IncompleteAdapterError) as excinfo:
            _simple(context, FailedRegisterService)
        assert excinfo.value.code == "INCOMPLETE_ADAPTER"
        assert excinfo.value.missing == ("SimpleContract.do_thing",)

    def test_incompatible_types_raise(self, context: ShimContext) -> None:
        with pytest.raises(IncompleteAdapterError, match="do_thing"):
            _simple(context, WrongTypesService)

    def test_abstract_contract_unmatched_raises(self, context: ShimContext) -> None:
        with pytest.raises(IncompleteAdapterError, match="GreeterBase.greet"):
            context.synthesize(FailedRegisterService, [qualified_name(GreeterBase)])

    def test_partial_match_raises(self, context: ShimContext) -> None:
        with pytest.raises(IncompleteAdapterError) as excinfo:
            context.synthesize(
                SuccessfulRegisterService,
                [qualified_name(SimpleContract), qualified_name(CounterContract)],
            )
        assert set(excinfo.value.missing) == {
            "CounterContract.increment",
            "CounterContract.total",
        }

    def test_non_contract_name_raises(self, context: ShimContext) -> None:
        with pytest.raises(IncompleteAdapterError, match="not a contract"):
            context.synthesize(SuccessfulRegisterService, [qualified_name(NotAContract)])

    def test_failed_synthesis_publishes_nothing(self, context: ShimContext) -> None:
        before = set(vars(context.module))
        with pytest.raises(IncompleteAdapterError):
            _simple(context, FailedRegisterService)
        assert set(vars(context.module)) == before

    def test_implementation_must_be_class(self, context: ShimContext) -> None:
        with pytest.raises(TypeError, match="must be a class"):
            context.synthesize(SuccessfulRegisterService(), [qualified_name(SimpleContract)])  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Exact pass-through and constructors
# ---------------------------------------------------------------------------


class TestExactMatch:
    def test_calls_through_default_constructor(self, context: ShimContext) -> None:
        adapter = _simple(context, SuccessfulRegisterService)
        transform: SimpleContract = adapter()
        assert transform.do_thing("test1") == "test1"

    def test_calls_through_non_default_constructor(self, context: ShimContext) -> None:
        adapter = _simple(context, SuccessfulRegisterService)
        transform: SimpleContract = adapter("test2")
        assert transform.do_thing("test1") == "test2"

    def test_exact_member_is_inherited(self, context: ShimContext) -> None:
        adapter = _simple(context, SuccessfulRegisterService)
        plan = getattr(adapter, PLAN_ATTR)

        assert plan.generated == []
        assert [m.strategy for m in plan.methods] == [MethodStrategy.inherit]
        assert "do_thing" not in vars(adapter)
        assert adapter.do_thing is SuccessfulRegisterService.do_thing

    def test_identical_signatures_behave_like_implementation(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(
            CounterService,
            [qualified_name(CounterContract), qualified_name(SimpleContract)],
        )
        direct = CounterService(5, label="c")
        adapted = adapter(5, label="c")

        for step in (1, 2, 3):
            assert adapted.increment(step) == direct.increment(step)
        assert adapted.total() == direct.total()
        assert adapted.do_thing("x") == direct.do_thing("x")
        assert getattr(adapter, PLAN_ATTR).generated == []

    def test_adapter_subclasses_implementation_and_contracts(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(
            SuccessfulRegisterService,
            [qualified_name(SimpleContract), qualified_name(CheckedContract)],
        )
        instance = adapter()

        assert isinstance(instance, SuccessfulRegisterService)
        assert isinstance(instance, CheckedContract)
        assert SimpleContract in adapter.__mro__

    def test_abstract_contract_satisfied(self, context: ShimContext) -> None:
        adapter = context.synthesize(Greeter, [qualified_name(GreeterBase)])
        greeter = adapter()

        assert isinstance(greeter, GreeterBase)
        assert not inspect.isabstract(adapter)
        assert greeter.greet("ann") == "hi ann"


class TestConstructorForwarding:
    def test_signature_matches_implementation(self, context: ShimContext) -> None:
        adapter = context.synthesize(CounterService, [qualified_name(CounterContract)])
        assert inspect.signature(adapter) == inspect.signature(CounterService)

    @pytest.mark.parametrize(
        ("args", "kwargs"),
        [((), {}), ((3,), {}), ((3,), {"label": "x"}), ((), {"start": 7})],
    )
    def test_same_observable_state(
        self, context: ShimContext, args: tuple, kwargs: dict
    ) -> None:
        adapter = context.synthesize(CounterService, [qualified_name(CounterContract)])
        assert vars(adapter(*args, **kwargs)) == vars(CounterService(*args, **kwargs))

    def test_invalid_arguments_fail_like_implementation(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(CounterService, [qualified_name(CounterContract)])
        with pytest.raises(TypeError):
            CounterService(1, 2)
        with pytest.raises(TypeError):
            adapter(1, 2)

    def test_str_subclass_built_by_new(self, context: ShimContext) -> None:
        adapter = context.synthesize(Label, [qualified_name(LabelContract)])
        label = adapter("abc")

        assert label == "abc"
        assert isinstance(label, Label)
        assert label.shout() == Label("abc").shout() == "ABC"

    def test_int_subclass_ignores_contract_init(self, context: ShimContext) -> None:
        adapter = context.synthesize(Count, [qualified_name(CountContract)])
        count = adapter(21)

        assert count == 21
        assert count.doubled() == 42
        assert not hasattr(count, "initialized_by_contract")


# ---------------------------------------------------------------------------
# Candidate selection
# ---------------------------------------------------------------------------


class TestCandidateSelection:
    def test_alias_forwards_when_same_name_incompatible(
        self, context: ShimContext
    ) -> None:
        adapter = _simple(context, AliasedService)
        plan = getattr(adapter, PLAN_ATTR)

        assert adapter().do_thing("x") == "text:x"
        assert [m.strategy for m in plan.methods] == [MethodStrategy.forward]
        assert plan.methods[0].target_attr == "do_thing_text"

    def test_first_compatible_candidate_wins(self, context: ShimContext) -> None:
        adapter = _simple(context, TwoCandidatesService)
        assert adapter().do_thing("x") == "first"

    def test_keyword_only_parameter_forwarded_by_name(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(KeywordScaler, [qualified_name(ScaleContract)])
        scaler = adapter()

        assert scaler.scale(2.0, 3.0) == 6.0
        assert scaler.scale(value=2.0, factor=0.5) == 1.0

    def test_contract_default_applied_when_implementation_has_none(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(StrictRepeater, [qualified_name(RepeatContract)])
        plan = getattr(adapter, PLAN_ATTR)

        assert [m.strategy for m in plan.methods] == [MethodStrategy.forward]
        assert adapter().repeat("ab") == "abab"
        assert adapter().repeat("ab", 3) == "ababab"

    def test_contract_parameter_names_accepted(self, context: ShimContext) -> None:
        adapter = context.synthesize(RenamedRepeater, [qualified_name(RepeatContract)])
        plan = getattr(adapter, PLAN_ATTR)

        assert [m.strategy for m in plan.methods] == [MethodStrategy.forward]
        assert adapter().repeat(text="x", times=3) == "xxx"

    def test_forwarded_method_exposes_contract_signature(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(KeywordScaler, [qualified_name(ScaleContract)])
        params = list(inspect.signature(adapter.scale).parameters)
        assert params == ["self", "value", "factor"]


# ---------------------------------------------------------------------------
# Contract resolution and identity
# ---------------------------------------------------------------------------


class TestContractResolution:
    def test_unresolved_contract_is_dropped(self, context: ShimContext) -> None:
        adapter = context.synthesize(
            SuccessfulRegisterService,
            [qualified_name(SimpleContract), "no.such.Contract"],
        )
        assert getattr(adapter, PLAN_ATTR).contracts == (SimpleContract,)
        assert adapter().do_thing("a") == "a"

    def test_all_contracts_unresolved_yields_plain_subclass(
        self, context: ShimContext
    ) -> None:
        adapter = context.synthesize(FailedRegisterService, ["no.such.Contract"])
        assert adapter.__mro__[1] is FailedRegisterService
        assert adapter("v").value == "v"

    def test_single_name_accepted(self, context: ShimContext) -> None:
        adapter = context.synthesize(SuccessfulRegisterService, qualified_name(SimpleContract))
        assert getattr(adapter, PLAN_ATTR).contracts == (SimpleContract,)

    def test_duplicate_names_declared_once(self, context: ShimContext) -> None:
        name = qualified_name(SimpleContract)
        adapter = context.synthesize(SuccessfulRegisterService, [name, name])
        assert getattr(adapter, PLAN_ATTR).contracts == (SimpleContract,)

    def test_repeated_calls_yield_distinct_classes(self, context: ShimContext) -> None:
        first = _simple(context, SuccessfulRegisterService)
        second = _simple(context, SuccessfulRegisterService)

        assert first is not second
        assert first.__name__ != second.__name__
        assert getattr(context.module, first.__name__) is first
        assert getattr(context.module, second.__name__) is second

    def test_adapter_lives_in_generated_module(self, context: ShimContext) -> None:
        adapter = _simple(context, SuccessfulRegisterService)
        assert adapter.__module__ == context.module.__name__
        assert adapter.__name__.startswith("Shim__")
        assert adapter.__name__.endswith("SuccessfulRegisterService")

    def test_custom_adapter_prefix(self) -> None:
        context = ShimContext(settings=ShimSettings(adapter_prefix="Wrapped_")).start()
        adapter = _simple(context, SuccessfulRegisterService)
        assert adapter.__name__.startswith("Wrapped_")

    def test_generated_module_not_indexed_on_restart(self, context: ShimContext) -> None:
        adapter = _simple(context, SuccessfulRegisterService)
        context.start()
        assert context.resolve(qualified_name(adapter)) is None

    def test_nested_contract_resolved(self, context: ShimContext) -> None:
        adapter = context.synthesize(Lookup, [qualified_name(Registry.NestedContract)])

        assert getattr(adapter, PLAN_ATTR).contracts == (Registry.NestedContract,)
        assert Registry.NestedContract in adapter.__mro__
        assert adapter().lookup("k") == "value:k"

    def test_nested_contract_unmatched_raises(self, context: ShimContext) -> None:
        with pytest.raises(IncompleteAdapterError, match="NestedContract.lookup"):
            context.synthesize(Greeter, [qualified_name(Registry.NestedContract)])
