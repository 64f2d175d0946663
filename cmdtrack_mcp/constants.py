"""Constants and enums for cmdtrack MCP server."""

from enum import Enum

# Response size limit
CHARACTER_LIMIT = 25000  # Maximum response size in characters

# Scan limits
MAX_SCAN_DEPTH = 10  # Default recursion depth for directory scans
MAX_DEPTH_LIMIT = 100  # Upper bound accepted from configuration
OPERATION_TIMEOUT = 60  # Tool operation timeout in seconds
COMMAND_TIMEOUT = 60  # Timeout for shell-backed command actions in seconds

# Scheduler timing
DEBOUNCE_SECONDS = 0.1  # Coalescing window for change notifications
POLL_INTERVAL_SECONDS = 5.0  # Full rescan interval when native watching is unavailable
PARENT_WATCH_HOPS = 3  # Ancestor directories watched for project-level signals
PARENT_RESCAN_DELAY = 1.0  # Delay before rescanning after a project-level signal

# Dispatcher
SUGGESTION_LIMIT = 5
SIMILARITY_THRESHOLD = 0.5
EXECUTION_HISTORY_SIZE = 100

# Project files
CONFIG_FILENAME = ".cmdtrack.yml"
DEFAULT_MANIFEST = "package.json"

# Directory names never descended into.
# VCS metadata, dependency caches and build outputs.
DEFAULT_IGNORED_DIRS = [
    # Version Control
    ".git", ".svn", ".hg", ".bzr",

    # Python
    "__pycache__", ".pytest_cache", ".mypy_cache", ".ruff_cache",
    ".tox", ".nox", "venv", ".venv", ".eggs",

    # Node.js/JavaScript
    "node_modules", ".npm", ".yarn", ".next", ".nuxt", ".turbo", "coverage",

    # Build outputs
    "dist", "build", "out", "target",

    # IDEs/Editors
    ".vscode", ".idea",
]

# Names in ancestor directories that signal a project-level change
PARENT_SIGNAL_NAMES = [".git", "package.json"]


class ActionKind(str, Enum):
    """Kinds of actions a command template can bind to."""
    OPEN = "open"
    EDIT = "edit"
    RUN = "run"
    ANALYZE = "analyze"
    DEPENDENCIES = "dependencies"
    INITIALIZE = "initialize"
    CALL_SYMBOL = "call_symbol"
    SHELL = "shell"
    NPM_SCRIPT = "npm_script"
    USE_PACKAGE = "use_package"


class CommandCategory(str, Enum):
    """Top-level grouping used when listing commands."""
    FILE = "file"
    SYMBOL = "symbol"
    PROJECT = "project"
    MANIFEST = "manifest"
    USER = "user"


class TemplateScope(str, Enum):
    """Whether a template produces one command per file or one per project."""
    FILE = "file"
    PROJECT = "project"


class ExecutionStatus(str, Enum):
    """Outcome of a dispatched command."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"
