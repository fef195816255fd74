"""Configuration models for stashling."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    structured: bool = Field(default=False, description="Emit JSON log records")


class StashSettings(BaseModel):
    """
    Process-wide stash settings.

    Loaded once at startup (file + environment) and read thereafter;
    frozen so nothing mutates it after initialization.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    stash_dir: str = Field(
        default=".stashling",
        min_length=1,
        description="Stash root, relative to the working directory or project root",
    )
    use_project_root: bool = Field(
        default=False,
        description="Resolve stash_dir against the project root instead of the working directory",
    )
    functional: bool = Field(
        default=False,
        description="Default for stash(functional=...): return values instead of binding them",
    )
    verbose: bool = Field(default=True, description="Default for stash(verbose=...)")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
