"""Engine settings.

All configuration is sourced from environment variables prefixed with
``QUOTAFLOW_`` (and optionally `.env`). Every field has a default, so the
engine runs without any environment at all.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from quotaflow.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Typed environment-backed tuning knobs for quotaflow."""

    model_config = SettingsConfigDict(
        env_prefix="QUOTAFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Cost constraints below any of these are considered "tight".
    tight_max_vibes: int = Field(default=20, ge=0)
    tight_max_specs: int = Field(default=5, ge=0)
    tight_max_cost_dollars: float = Field(default=10.0, ge=0)

    high_volume_threshold: int = Field(default=1000, ge=0)

    # Structural detection
    decomposition_step_threshold: int = Field(default=10, ge=1)
    min_batch_size: int = Field(default=3, ge=2)
    savings_cap: float = Field(default=85.0, gt=0, le=100)

    # Spec decomposition
    small_workflow_threshold: int = Field(default=3, ge=0)
    min_spec_size: int = Field(default=2, ge=1)
    max_spec_size: int = Field(default=8, ge=2)
    cost_outlier_multiple: float = Field(default=3.0, gt=1)

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid QUOTAFLOW_ environment settings",
            context={"errors": exc.errors(include_url=False)},
        ) from exc
