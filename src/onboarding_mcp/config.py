"""Server configuration loaded from environment variables.

Paths are resolved once here and handed to each component at construction;
the components themselves never read the environment.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OnboardingSettings(BaseSettings):
    """Settings for the onboarding tool server."""

    model_config = SettingsConfigDict(
        env_prefix="ONBOARDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Per-employee profile records
    data_path: Path = Field(default_factory=lambda: Path.cwd() / "data" / "employees")
    # Step documents live in <config_path>/steps
    config_path: Path = Field(default_factory=lambda: Path.cwd() / "config")

    log_level: str = "INFO"
    server_name: str = "employee-onboarding"

    @property
    def steps_path(self) -> Path:
        return self.config_path / "steps"


@lru_cache
def get_settings() -> OnboardingSettings:
    """Return the process-wide settings used by the server entry point."""
    return OnboardingSettings()
