from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shimkit.constants import ADAPTER_PREFIX, GENERATED_MODULE

# Load .env once at module import so ShimSettings sees SHIMKIT_* vars
load_dotenv()

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


class ShimSettings(BaseSettings):
    """Synthesis settings. Env vars prefixed with SHIMKIT_."""

    model_config = SettingsConfigDict(env_prefix="SHIMKIT_")

    adapter_prefix: str = ADAPTER_PREFIX
    generated_module: str = GENERATED_MODULE
    # Module name prefixes the type directory never scans.
    excluded_module_prefixes: list[str] = Field(default_factory=list)
    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("adapter_prefix")
    @classmethod
    def _validate_adapter_prefix(cls, v: str) -> str:
        if not v.isidentifier():
            msg = f"SHIMKIT_ADAPTER_PREFIX must be a valid identifier (got '{v}')"
            raise ValueError(msg)
        return v

    @field_validator("generated_module")
    @classmethod
    def _validate_generated_module(cls, v: str) -> str:
        if not v or not all(part.isidentifier() for part in v.split(".")):
            msg = f"SHIMKIT_GENERATED_MODULE must be a dotted module name (got '{v}')"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            msg = f"SHIMKIT_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)} (got '{v}')"
            raise ValueError(msg)
        return level


def get_settings() -> ShimSettings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return ShimSettings()
