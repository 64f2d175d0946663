"""Pydantic schema for .cmdtrack.yml configuration file.

This schema validates the user-editable configuration file at project root.
Every key is optional; a missing file yields the defaults.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    COMMAND_TIMEOUT,
    DEBOUNCE_SECONDS,
    DEFAULT_IGNORED_DIRS,
    DEFAULT_MANIFEST,
    MAX_DEPTH_LIMIT,
    MAX_SCAN_DEPTH,
    PARENT_WATCH_HOPS,
    POLL_INTERVAL_SECONDS,
)


class CmdTrackConfig(BaseModel):
    """Schema for .cmdtrack.yml configuration file."""

    model_config = ConfigDict(extra="allow")

    # File filtering
    ignore_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_DIRS),
        description="Directory names that are pruned from every scan"
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns (relative to root) for files to leave untracked"
    )
    max_depth: int = Field(
        default=MAX_SCAN_DEPTH,
        ge=0,
        le=MAX_DEPTH_LIMIT,
        description="Maximum directory depth below the root that is scanned"
    )

    # Scheduler
    debounce_seconds: float = Field(
        default=DEBOUNCE_SECONDS,
        ge=0,
        description="Delay used to coalesce rapid change notifications"
    )
    poll_interval: float = Field(
        default=POLL_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between full rescans when native watching is unavailable"
    )
    parent_watch_hops: int = Field(
        default=PARENT_WATCH_HOPS,
        ge=0,
        le=10,
        description="Number of ancestor directories watched for project-level signals"
    )
    native_watch: bool = Field(
        default=True,
        description="Use native filesystem notifications when the storage supports them"
    )

    # Commands
    manifest: str = Field(
        default=DEFAULT_MANIFEST,
        description="Dependency manifest file name at project root"
    )
    command_timeout: float = Field(
        default=COMMAND_TIMEOUT,
        gt=0,
        description="Timeout in seconds for shell-backed command actions"
    )

    @field_validator("ignore_dirs", mode="before")
    @classmethod
    def normalize_ignore_dirs(cls, v: Any) -> list[str]:
        """Normalize None to the default ignore set."""
        if v is None:
            return list(DEFAULT_IGNORED_DIRS)
        return v

    @field_validator("exclude", mode="before")
    @classmethod
    def normalize_exclude(cls, v: Any) -> list[str]:
        """Normalize None to empty list."""
        if v is None:
            return []
        return v

    @field_validator("manifest", mode="before")
    @classmethod
    def normalize_manifest(cls, v: Any) -> str:
        """Normalize None or empty string to the default manifest name."""
        if not v:
            return DEFAULT_MANIFEST
        return v


def validate_config(data: dict[str, Any]) -> CmdTrackConfig:
    """Validate .cmdtrack.yml configuration data.

    Args:
        data: Raw YAML data from file

    Returns:
        Validated CmdTrackConfig model

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return CmdTrackConfig.model_validate(data)
