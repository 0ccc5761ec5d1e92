from __future__ import annotations

import inspect
import re
from collections.abc import Sequence
from types import ModuleType
from typing import TYPE_CHECKING

import structlog

from shimkit.infra.errors import IncompleteAdapterError
from shimkit.reflect.descriptors import describe_method, is_framework_class, qualified_name
from shimkit.synth.builder import build_adapter
from shimkit.synth.matching import MatchKind, classify, match_members
from shimkit.synth.plan import MethodStrategy, plan_adapter

if TYPE_CHECKING:
    from shimkit.mirror.converter import Converter
    from shimkit.mirror.registry import MirrorRegistry
    from shimkit.reflect.descriptors import MethodDescriptor, TypeDescriptor
    from shimkit.reflect.directory import TypeDirectory

logger = structlog.get_logger()

_NON_IDENTIFIER = re.compile(r"\W")


class AdapterSynthesizer:
    """Builds adapter classes that make an implementation satisfy contracts.

    Only queries the directory and mirror registry. Every call produces a
    new class; nothing is cached between calls.
    """

    def __init__(
        self,
        directory: TypeDirectory,
        mirrors: MirrorRegistry,
        converter: Converter,
        module: ModuleType,
        *,
        adapter_prefix: str,
    ) -> None:
        self._directory = directory
        self._mirrors = mirrors
        self._converter = converter
        self._module = module
        self._prefix = adapter_prefix

    def synthesize(self, implementation: type, contract_names: Sequence[str]) -> type:
        """Create an adapter class for implementation conforming to contract_names.

        Names that do not resolve are dropped without error. Raises
        IncompleteAdapterError if a resolved name is not a contract type, or
        if any contract member is left without a compatible implementation.
        """
        if not isinstance(implementation, type):
            raise TypeError(f"implementation must be a class (got {type(implementation).__name__})")
        if isinstance(contract_names, str):
            contract_names = [contract_names]

        contracts = self._resolve_contracts(contract_names)
        impl = self._directory.describe(implementation)
        matches = match_members(contracts, impl, self._mirrors)

        plan = plan_adapter(
            self._adapter_name(implementation),
            implementation,
            [c.cls for c in contracts],
            impl.constructor,
            matches,
        )
        adapter = build_adapter(plan, self._converter, self._module.__name__)
        self._check_conformance(adapter, implementation, contracts)

        setattr(self._module, plan.name, adapter)
        logger.info(
            "adapter_synthesized",
            adapter=plan.name,
            implementation=impl.qualified_name,
            contracts=[c.qualified_name for c in contracts],
            inherited=len(plan.by_strategy(MethodStrategy.inherit)),
            forwarded=len(plan.by_strategy(MethodStrategy.forward)),
            converted=len(plan.by_strategy(MethodStrategy.convert)),
        )
        return adapter

    def _resolve_contracts(self, contract_names: Sequence[str]) -> list[TypeDescriptor]:
        contracts: list[TypeDescriptor] = []
        for name in contract_names:
            cls = self._directory.resolve(name)
            if cls is None:
                logger.debug("contract_unresolved", contract_name=name)
                continue
            descriptor = self._directory.describe(cls)
            if not descriptor.is_contract:
                raise IncompleteAdapterError(
                    f"'{name}' is not a contract type (expected a Protocol or abstract class)",
                    missing=(name,),
                )
            if all(c.cls is not cls for c in contracts):
                contracts.append(descriptor)
        return contracts

    def _adapter_name(self, implementation: type) -> str:
        base = self._prefix + _NON_IDENTIFIER.sub("_", qualified_name(implementation))
        name, n = base, 1
        while hasattr(self._module, name):
            n += 1
            name = f"{base}_{n}"
        return name

    def _check_conformance(
        self,
        adapter: type,
        implementation: type,
        contracts: Sequence[TypeDescriptor],
    ) -> None:
        """Verify the adapter provides every contract member with its exact signature."""
        missing: list[str] = []
        for contract in contracts:
            for required in contract.methods:
                provided = _provided_method(adapter, required.name)
                if provided is None or classify(required, provided)[0] is not MatchKind.exact:
                    missing.append(f"{contract.cls.__qualname__}.{required.name}")

        if not missing and inspect.isabstract(adapter):
            missing = sorted(getattr(adapter, "__abstractmethods__", ()))

        if missing:
            raise IncompleteAdapterError(
                f"'{qualified_name(implementation)}' does not implement {', '.join(missing)}",
                missing=tuple(missing),
            )


def _provided_method(adapter: type, name: str) -> MethodDescriptor | None:
    """The method the adapter actually provides for name.

    Protocol stubs do not count. Abstract methods and non-function
    attributes count as missing.
    """
    for klass in adapter.__mro__:
        if is_framework_class(klass) or klass.__dict__.get("_is_protocol", False):
            continue
        fn = vars(klass).get(name)
        if fn is None:
            continue
        if not inspect.isfunction(fn) or getattr(fn, "__isabstractmethod__", False):
            return None
        return describe_method(fn, name=name, attr_name=name, owner=klass)
    return None
