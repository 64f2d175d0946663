#!/usr/bin/env python3
"""
Command Tracker MCP Server

An MCP server that keeps a live command registry for a project directory:
- File tracking with native change notifications (polling fallback)
- Language classification and lexical dependency extraction
- Command synthesis per file, per symbol and per manifest entry
- Command execution with fuzzy-match suggestions
- Dependency graph with inverse edges
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from .engine import CommandEngine

# Import models
from .models import (
    DependencyGraphInput,
    ExecuteCommandInput,
    ListCommandsInput,
    RegisterCommandInput,
    RestartTrackingInput,
    StartTrackingInput,
    TrackedFilesInput,
)

# Import tool implementations
from .tools.commands import cmd_execute_command, cmd_list_commands, cmd_register_command
from .tools.tracking import (
    cmd_dependency_graph,
    cmd_restart_tracking,
    cmd_start_tracking,
    cmd_stop_tracking,
    cmd_tracked_files,
)

# Fix Windows asyncio event loop for subprocess support
# Windows requires ProactorEventLoop for asyncio.create_subprocess_exec
import asyncio
import platform

if platform.system() == 'Windows':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Own one engine for the lifetime of the server."""
    engine = CommandEngine()
    try:
        yield {"engine": engine}
    finally:
        engine.stop_tracking()


# Initialize the MCP server
mcp = FastMCP("cmdtrack_mcp", lifespan=lifespan)


def _engine(ctx: Context) -> CommandEngine:
    return ctx.request_context.lifespan_context["engine"]

# ============================================================================
# Register Tools
# ============================================================================

# ----------------------------------------------------------------------------
# Tracking lifecycle
# ----------------------------------------------------------------------------

@mcp.tool(
    name="cmd_start_tracking",
    annotations=ToolAnnotations(
        title="Start Tracking Project",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_start_tracking(
    project_path: str,
    ctx: Context
) -> dict[str, Any]:
    """Scan a project directory, synthesize its commands and watch it for changes.

    Every non-ignored file gets open/edit/run/analyze/deps commands, plus
    call-* commands for the symbols it defines (or init-* when it is empty)
    and npm-*/use-* commands from package.json. Calling this again restarts
    tracking.
    """
    params = StartTrackingInput(project_path=project_path)
    return await cmd_start_tracking(params, _engine(ctx), ctx)


@mcp.tool(
    name="cmd_stop_tracking",
    annotations=ToolAnnotations(
        title="Stop Tracking",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_stop_tracking(ctx: Context) -> dict[str, Any]:
    """Stop watching the project. Registered commands remain executable."""
    return await cmd_stop_tracking(_engine(ctx))


@mcp.tool(
    name="cmd_restart_tracking",
    annotations=ToolAnnotations(
        title="Restart Tracking",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_restart_tracking(
    ctx: Context,
    project_path: str | None = None
) -> dict[str, Any]:
    """Discard tracked files and their commands, then scan again.

    User-registered commands are kept.
    """
    params = RestartTrackingInput(project_path=project_path)
    return await cmd_restart_tracking(params, _engine(ctx), ctx)

# ----------------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------------

@mcp.tool(
    name="cmd_register_command",
    annotations=ToolAnnotations(
        title="Register Command",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_register_command(
    name: str,
    command: str,
    ctx: Context,
    description: str = "",
    tags: list[str] | None = None
) -> dict[str, Any]:
    """Register a named command that runs a command line in the project root.

    An existing command with the same (normalized) name is replaced.
    """
    params = RegisterCommandInput(
        name=name,
        command=command,
        description=description,
        tags=tags or []
    )
    return await cmd_register_command(params, _engine(ctx))


@mcp.tool(
    name="cmd_execute_command",
    annotations=ToolAnnotations(
        title="Execute Command",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=True
    )
)
async def tool_cmd_execute_command(
    name: str,
    ctx: Context,
    args: list[str] | None = None
) -> dict[str, Any]:
    """Execute a registered command.

    Unknown names return status "not_found" with up to five suggestions.
    Failures return status "error" with the failure message.
    """
    params = ExecuteCommandInput(name=name, args=args or [])
    return await cmd_execute_command(params, _engine(ctx))


@mcp.tool(
    name="cmd_list_commands",
    annotations=ToolAnnotations(
        title="List Commands (Read-Only)",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_list_commands(
    ctx: Context,
    category: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    owner: str | None = None,
    limit: int = 200
) -> dict[str, Any]:
    """List registered commands sorted by name.

    Filters:
    - category: file, symbol, project, manifest or user
    - tag: language, action kind or extension (e.g. "python", "run", "js")
    - search: substring of name or description
    - owner: absolute path of the owning file
    """
    params = ListCommandsInput(
        category=category,
        tag=tag,
        search=search,
        owner=owner,
        limit=limit
    )
    return await cmd_list_commands(params, _engine(ctx))

# ----------------------------------------------------------------------------
# Tracked state (read-only)
# ----------------------------------------------------------------------------

@mcp.tool(
    name="cmd_tracked_files",
    annotations=ToolAnnotations(
        title="List Tracked Files (Read-Only)",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_tracked_files(
    ctx: Context,
    language: str | None = None,
    include_commands: bool = False,
    limit: int = 500
) -> dict[str, Any]:
    """List tracked files with language, size, checksum and command count."""
    params = TrackedFilesInput(
        language=language,
        include_commands=include_commands,
        limit=limit
    )
    return await cmd_tracked_files(params, _engine(ctx))


@mcp.tool(
    name="cmd_dependency_graph",
    annotations=ToolAnnotations(
        title="Dependency Graph (Read-Only)",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_cmd_dependency_graph(
    ctx: Context,
    path: str | None = None
) -> dict[str, Any]:
    """Return raw references and dependents for every tracked file, or for one file."""
    params = DependencyGraphInput(path=path)
    return await cmd_dependency_graph(params, _engine(ctx))


def main():
    """Entry point for the MCP server."""
    mcp.run()

if __name__ == "__main__":
    main()
