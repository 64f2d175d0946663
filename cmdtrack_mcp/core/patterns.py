"""Pattern matching utilities for file exclusion.

This module provides utilities for matching file paths against glob patterns,
supporting complex patterns like **/ prefixes and /** suffixes, and for the
directory-name ignore policy applied during scans.
"""

import fnmatch
from pathlib import PurePath


def matches_exclude_pattern(path: str, exclude_patterns: list[str]) -> bool:
    """Check if a path matches any of the exclude patterns.

    Args:
        path: Relative path to check (string)
        exclude_patterns: List of glob patterns (e.g., ["**/generated", "**/*.log"])

    Returns:
        True if path should be excluded, False otherwise
    """
    normalized_path = path.replace('\\', '/').strip('/')

    for pattern in exclude_patterns:
        normalized_pattern = pattern.replace('\\', '/')

        # Handle **/ prefix (matches any depth)
        if normalized_pattern.startswith('**/'):
            pattern_suffix = normalized_pattern[3:]
            parts = normalized_path.split('/')
            for i in range(len(parts)):
                remaining = '/'.join(parts[i:])
                if fnmatch.fnmatch(remaining, pattern_suffix):
                    return True
        # Handle /** suffix (matches directory and contents)
        elif normalized_pattern.endswith('/**'):
            dir_pattern = normalized_pattern[:-3]
            if normalized_path.startswith(dir_pattern + '/') or normalized_path == dir_pattern:
                return True
        elif fnmatch.fnmatch(normalized_path, normalized_pattern):
            return True

    return False


def is_ignored_name(name: str, ignored_dirs: list[str] | set[str]) -> bool:
    """Check if a single directory name is in the ignore set (case-insensitive)."""
    lowered = name.lower()
    return any(lowered == ignored.lower() for ignored in ignored_dirs)


def has_ignored_component(relative_path: str, ignored_dirs: list[str] | set[str]) -> bool:
    """Check if any directory component of a relative path is ignored.

    The final component is the file name itself and is not checked.
    """
    parts = PurePath(relative_path.replace('\\', '/')).parts[:-1]
    return any(is_ignored_name(part, ignored_dirs) for part in parts)
