"""Pydantic models for cmdtrack MCP server tool inputs."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import CommandCategory


def _validate_project_path(v: str) -> str:
    """Shared validator for project_path fields.

    Reused across all input models to ensure consistent path validation and
    prevent path traversal.

    Args:
        v: Project path string

    Returns:
        Validated absolute path string

    Raises:
        ValueError: If path contains traversal sequences, doesn't exist, or isn't a directory
    """
    if not v:
        raise ValueError("Project path cannot be empty")

    # Check for path traversal sequences
    if '..' in v:
        raise ValueError(
            "Invalid project path: contains path traversal sequence '..'. "
            "Use absolute paths only to prevent directory traversal attacks."
        )

    path = Path(v)
    if not path.is_absolute():
        raise ValueError(
            f"Invalid project path: must be absolute path (e.g., '/home/user/project'). "
            f"Got relative path: '{v}'"
        )

    if not path.exists():
        raise ValueError(f"Project path does not exist: {v}")

    if not path.is_dir():
        raise ValueError(f"Project path is not a directory: {v}")

    return str(path.resolve())


def _validate_file_path(v: str | None) -> str | None:
    """Shared validator for optional absolute file path filters."""
    if v is None:
        return v
    if '..' in v:
        raise ValueError("Invalid path: contains path traversal sequence '..'")
    if not Path(v).is_absolute():
        raise ValueError(f"Invalid path: must be absolute. Got: '{v}'")
    return v


class StartTrackingInput(BaseModel):
    """Input for starting to track a project directory."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    project_path: str = Field(
        ...,
        description="Absolute path to project root directory (e.g., '/home/user/my-project')",
        min_length=1
    )

    @field_validator('project_path')
    @classmethod
    def validate_project_path(cls, v: str) -> str:
        return _validate_project_path(v)


class RestartTrackingInput(BaseModel):
    """Input for restarting tracking, optionally on a new root."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    project_path: str | None = Field(
        default=None,
        description="Absolute path to a new project root. If not specified, the current root is reused",
        min_length=1
    )

    @field_validator('project_path')
    @classmethod
    def validate_project_path(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _validate_project_path(v)


class RegisterCommandInput(BaseModel):
    """Input for registering a user command backed by a command line."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    name: str = Field(
        ...,
        description="Command name (normalized to lower-case words joined by '-')",
        min_length=1,
        max_length=200
    )
    command: str = Field(
        ...,
        description="Command line to run, e.g. 'pytest -q'. Split like a shell would, but never run through a shell",
        min_length=1,
        max_length=4000
    )
    description: str = Field(
        default="",
        description="Human-readable description shown in listings and suggestions",
        max_length=500
    )
    tags: list[str] = Field(
        default_factory=list,
        description="Free-form tags used by list filters",
        max_length=20
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not any(ch.isalnum() for ch in v):
            raise ValueError("Command name must contain at least one letter or digit")
        return v


class ExecuteCommandInput(BaseModel):
    """Input for executing a command by name."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    name: str = Field(
        ...,
        description="Command name; case and separators are normalized before lookup",
        min_length=1,
        max_length=200
    )
    args: list[str] = Field(
        default_factory=list,
        description="Positional arguments passed to the command action",
        max_length=50
    )


class ListCommandsInput(BaseModel):
    """Input for listing registered commands."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    category: CommandCategory | None = Field(
        default=None,
        description="Only commands of this category: file, symbol, project, manifest, user"
    )
    tag: str | None = Field(
        default=None,
        description="Only commands carrying this tag (e.g. a language such as 'python')"
    )
    search: str | None = Field(
        default=None,
        description="Case-insensitive substring matched against names and descriptions"
    )
    owner: str | None = Field(
        default=None,
        description="Only commands owned by this absolute file path"
    )
    limit: int = Field(
        default=200,
        description="Maximum number of commands returned",
        ge=1,
        le=5000
    )

    @field_validator('owner')
    @classmethod
    def validate_owner(cls, v: str | None) -> str | None:
        return _validate_file_path(v)


class TrackedFilesInput(BaseModel):
    """Input for listing tracked files."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    language: str | None = Field(
        default=None,
        description="Only files classified as this language"
    )
    include_commands: bool = Field(
        default=False,
        description="Include the command names each file owns"
    )
    limit: int = Field(
        default=500,
        description="Maximum number of files returned",
        ge=1,
        le=10000
    )


class DependencyGraphInput(BaseModel):
    """Input for reading the dependency graph."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    path: str | None = Field(
        default=None,
        description="Absolute path of one tracked file. If not specified, the whole graph is returned"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str | None) -> str | None:
        return _validate_file_path(v)
