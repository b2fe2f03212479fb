"""Model defaults configuration using Pydantic settings.

Settings are loaded from environment variables with the
``MODEL_DEFAULTS_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelDefaultsSettings(BaseSettings):
    """Behaviour switches for default value application.

    Environment Variables:
        MODEL_DEFAULTS_MASS_ASSIGNMENT_SANITIZER: What to do when a protected
            attribute is passed to a model constructor. ``logger`` drops it
            with a warning, ``strict`` raises MassAssignmentError
            (default: logger)
        MODEL_DEFAULTS_APPLY_ON_LOAD: Whether ``allows_nil=False`` defaults
            replace NULL values on records loaded from the database
            (default: true)
        MODEL_DEFAULTS_LOG_LEVEL: Level of the ``model_defaults`` logger,
            case-insensitive (default: INFO)
        MODEL_DEFAULTS_LOG_FORMAT: ``console`` or ``json`` (default: console)

    Example:
        >>> settings = ModelDefaultsSettings()
        >>> settings.mass_assignment_sanitizer
        'logger'
    """

    model_config = SettingsConfigDict(
        env_prefix="MODEL_DEFAULTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mass_assignment_sanitizer: Literal["logger", "strict"] = Field(
        default="logger",
        description="Handling of protected attributes passed to a constructor",
    )
    apply_on_load: bool = Field(
        default=True,
        description="Apply allows_nil=False defaults to NULLs on loaded records",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Level of the model_defaults logger once configure_logging() ran",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Rendering used by configure_logging()",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> ModelDefaultsSettings:
    """Get cached model defaults settings singleton.

    Clear cache with ``get_settings.cache_clear()`` for testing.

    Returns:
        ModelDefaultsSettings instance loaded from environment.
    """
    return ModelDefaultsSettings()
