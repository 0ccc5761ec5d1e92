"""ShimContext: owns the type directory, mirror registry and generated module.

A context must be started before use; every operation checks this first
and raises NotStartedError otherwise. start() may be called again to
rebuild the directory from the modules loaded at that point. close()
returns the context to the unstarted state and unregisters its generated
module from sys.modules.
"""

from __future__ import annotations

import itertools
import sys
from collections.abc import Sequence
from types import ModuleType

import structlog

from shimkit.config.settings import ShimSettings, get_settings
from shimkit.constants import GENERATED_MARKER
from shimkit.infra.errors import NotStartedError
from shimkit.mirror.converter import Converter, WireConverter
from shimkit.mirror.registry import MirrorRegistry
from shimkit.reflect.descriptors import TypeDescriptor
from shimkit.reflect.directory import TypeDirectory
from shimkit.synth.synthesizer import AdapterSynthesizer

logger = structlog.get_logger()

# Generated modules are numbered process-wide so contexts never share one.
_generations = itertools.count(1)



class ShimContext:
    def __init__(
        self,
        settings: ShimSettings | None = None,
        converter: Converter | None = None,
    ) -> None:
        self._settings = settings if settings is not None else get_settings()
        self._converter: Converter = converter if converter is not None else WireConverter()
        self._directory: TypeDirectory | None = None
        self._mirrors: MirrorRegistry | None = None
        self._synthesizer: AdapterSynthesizer | None = None
        self._module: ModuleType | None = None

    @property
    def settings(self) -> ShimSettings:
        return self._settings

    @property
    def started(self) -> bool:
        return self._synthesizer is not None

    @property
    def module(self) -> ModuleType:
        """Module that holds this context's adapter classes."""
        if self._module is None:
            raise NotStartedError()
        return self._module

    @property
    def directory(self) -> TypeDirectory:
        if self._directory is None:
            raise NotStartedError()
        return self._directory

    @property
    def mirrors(self) -> MirrorRegistry:
        if self._mirrors is None:
            raise NotStartedError()
        return self._mirrors

    def start(self) -> ShimContext:
        """Index loaded modules and create a fresh module for generated adapters.

        On a restart the previous generated module is unregistered first.
        Adapter classes built from it keep working.
        """
        self._release_module()
        module = self._create_module()
        directory = TypeDirectory(
            excluded_prefixes=[
                self._settings.generated_module,
                *self._settings.excluded_module_prefixes,
            ]
        )
        indexed = directory.scan()

        self._module = module
        self._directory = directory
        self._mirrors = MirrorRegistry(directory)
        self._synthesizer = AdapterSynthesizer(
            directory,
            self._mirrors,
            self._converter,
            module,
            adapter_prefix=self._settings.adapter_prefix,
        )
        logger.info("shim_started", indexed_types=indexed, module=module.__name__)
        return self

    def close(self) -> None:
        """Return to the unstarted state and unregister the generated module.

        Safe to call on a context that was never started.
        """
        module = self._release_module()
        self._module = None
        self._directory = None
        self._mirrors = None
        self._synthesizer = None
        if module is not None:
            logger.info("shim_closed", module=module.__name__)

    def _create_module(self) -> ModuleType:
        name = f"{self._settings.generated_module}_{next(_generations)}"
        module = ModuleType(name, "Adapter classes generated by shimkit.")
        setattr(module, GENERATED_MARKER, True)
        sys.modules[name] = module
        return module

    def _release_module(self) -> ModuleType | None:
        module = self._module
        if module is not None and sys.modules.get(module.__name__) is module:
            del sys.modules[module.__name__]
        return module

    def ensure_started(self) -> None:
        """Raise NotStartedError unless start() has been called."""
        if self._synthesizer is None:
            raise NotStartedError()

    def resolve(self, name: str) -> type | None:
        return self.directory.resolve(name)

    def register_type(self, cls: type) -> str:
        """Add a class loaded after start() to the directory. Returns its name."""
        return self.directory.register(cls)

    def describe(self, cls: type) -> TypeDescriptor:
        return self.directory.describe(cls)

    def register_mirror(self, mirror: type, target_name: str) -> None:
        """Declare mirror interchangeable with the record class named target_name."""
        self.mirrors.register(mirror, target_name)

    def synthesize(self, implementation: type, contract_names: Sequence[str] | str) -> type:
        """Create an adapter class making implementation satisfy contract_names."""
        synthesizer = self._synthesizer
        if synthesizer is None:
            raise NotStartedError()
        return synthesizer.synthesize(implementation, contract_names)
