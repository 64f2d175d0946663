"""Configuration file management utilities.

This module loads .cmdtrack.yml configuration files. A missing, unreadable
or invalid file never blocks tracking: the defaults are used instead.
"""

import sys
from typing import Any

import yaml
from pydantic import ValidationError

from ..constants import CONFIG_FILENAME
from ..schemas.config import CmdTrackConfig, validate_config


def parse_config(raw: str | None) -> CmdTrackConfig:
    """Parse YAML text into a validated configuration, falling back to defaults."""
    if not raw or not raw.strip():
        return CmdTrackConfig()

    try:
        data: Any = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        print(f"Warning: Ignoring malformed {CONFIG_FILENAME}: {e}", file=sys.stderr)
        return CmdTrackConfig()

    if not isinstance(data, dict):
        return CmdTrackConfig()

    try:
        return validate_config(data)
    except ValidationError as e:
        print(
            f"Warning: Ignoring invalid {CONFIG_FILENAME} ({e.error_count()} errors)",
            file=sys.stderr,
        )
        return CmdTrackConfig()
