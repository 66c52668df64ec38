"""Configuration settings for storycard_tasks.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.

``VENV_NAME`` keeps its bare name so existing shells and CI jobs keep
working; every other setting uses the ``STORYCARD_`` prefix.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the STORYCARD_ prefix
    (``VENV_NAME`` excepted). CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="STORYCARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Virtual environment
    venv_name: str = Field(
        default=".venv",
        validation_alias=AliasChoices("venv_name", "VENV_NAME"),
        description="Directory of the project virtual environment",
    )
    bootstrap_python: str = Field(
        default="python3.11",
        description="Interpreter used to create the virtual environment",
    )

    # Project layout
    package_name: str = Field(
        default="storycard",
        description="Import name of the package under work",
    )
    project_name: str = Field(
        default="Storycard",
        description="Display name used by dependency scanners",
    )
    project_dir: str | None = Field(
        default=None,
        description="Source directory to check (defaults to src/<package_name>)",
    )
    tests_dir: str = Field(default="tests", description="Root test directory")
    hooks_dir: str = Field(
        default="git-hooks",
        description="Directory holding git hooks to install",
    )
    requirements_file: str = Field(
        default="requirements.txt",
        description="Output file of deps-freeze",
    )
    tasks_file: str = Field(
        default="tasks.yaml",
        description="Optional YAML/JSON file with extra task definitions",
    )

    # Operational
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Per-task log file directory, relative to the project root",
    )
    command_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for a single command in seconds (no timeout if not set)",
    )

    @field_validator("venv_name")
    @classmethod
    def validate_venv_name(cls, v: str) -> str:
        """Reject an empty virtual environment name."""
        v = v.strip()
        if not v:
            raise ValueError("VENV_NAME is not defined")
        return v


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
