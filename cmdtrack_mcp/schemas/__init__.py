"""Validation schemas for cmdtrack configuration files."""

from .config import CmdTrackConfig, validate_config

__all__ = [
    "CmdTrackConfig",
    "validate_config",
]
