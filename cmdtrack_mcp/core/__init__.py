"""Core utilities for cmdtrack MCP server.

This package contains focused modules for different utility categories:
- storage: Storage substrate (local disk, in-memory)
- patterns: Ignore and exclude pattern matching
- classifier: Language classification
- analyzer: Content statistics
- config: Configuration file management
- errors: Error handling, formatting and timeouts
- responses: Response formatting and limits
"""

# Analysis
from .analyzer import Analyzer, BasicAnalyzer
from .classifier import Classifier, ExtensionClassifier

# Configuration
from .config import parse_config

# Error handling
from .errors import TrackingError, handle_error, with_timeout

# Pattern matching
from .patterns import has_ignored_component, is_ignored_name, matches_exclude_pattern

# Responses
from .responses import enforce_response_limit, limit_items, safe_json_dumps

# Storage
from .storage import DirEntry, FileStat, LocalStorage, MemoryStorage, StorageBackend

__all__ = [
    "Analyzer",
    "BasicAnalyzer",
    "Classifier",
    "DirEntry",
    "ExtensionClassifier",
    "FileStat",
    "LocalStorage",
    "MemoryStorage",
    "StorageBackend",
    "TrackingError",
    "enforce_response_limit",
    "handle_error",
    "has_ignored_component",
    "is_ignored_name",
    "limit_items",
    "matches_exclude_pattern",
    "parse_config",
    "safe_json_dumps",
    "with_timeout",
]
