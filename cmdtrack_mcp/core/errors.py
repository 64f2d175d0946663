"""Error handling and formatting utilities."""

import asyncio
import re
import sys
from datetime import datetime
from functools import wraps


class TrackingError(Exception):
    """Raised when tracking cannot start (root missing, not a directory, unreadable)."""


def handle_error(e: Exception, context: str = "", log_to_stderr: bool = True) -> str:
    """Consistent error formatting across all tools.

    Args:
        e: Exception that occurred
        context: Context where error occurred (e.g., tool name, operation)
        log_to_stderr: Whether to log error to stderr

    Returns:
        Formatted error message string with filesystem paths redacted
    """
    error_msg = f"Error: {type(e).__name__}"
    if context:
        error_msg += f" in {context}"

    error_str = str(e)
    # Remove Windows paths (C:\..., R:\...)
    error_str = re.sub(r'[A-Z]:\\[^\s]+', '[path]', error_str)
    # Remove Unix paths (/home/..., /usr/...)
    error_str = re.sub(r'/[\w./-]+/[\w./-]+', '[path]', error_str)

    error_msg += f": {error_str}"

    if log_to_stderr:
        timestamp = datetime.now().isoformat()
        print(f"[{timestamp}] {error_msg}", file=sys.stderr)

    return error_msg


def with_timeout(timeout_seconds):
    """Decorator to add timeout enforcement to async functions.

    Args:
        timeout_seconds (int): Maximum execution time in seconds

    Raises:
        TimeoutError: If operation exceeds timeout limit
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await asyncio.wait_for(
                    func(*args, **kwargs),
                    timeout=timeout_seconds
                )
            except asyncio.TimeoutError as err:
                raise TimeoutError(
                    f"Operation exceeded timeout ({timeout_seconds}s)\n"
                    f"→ Consider tracking a smaller directory or lowering max_depth."
                ) from err
        return wrapper
    return decorator
