"""Tracking lifecycle and tracked-state tools."""

from typing import Any

from ..constants import OPERATION_TIMEOUT
from ..core.errors import handle_error, with_timeout
from ..core.responses import limit_items
from ..engine import CommandEngine
from ..models import (
    DependencyGraphInput,
    RestartTrackingInput,
    StartTrackingInput,
    TrackedFilesInput,
)


@with_timeout(OPERATION_TIMEOUT)
async def cmd_start_tracking(
    params: StartTrackingInput,
    engine: CommandEngine,
    ctx=None
) -> dict[str, Any]:
    """Scan a project directory and start watching it for changes.

    Calling this while a project is already tracked restarts tracking on the
    new root.

    Args:
        params: StartTrackingInput with project_path
        engine: Engine owned by the server lifespan
        ctx: Optional context for progress reporting

    Returns:
        dict with status, root, watch mode and tracked file/command counts
    """
    try:
        if ctx:
            await ctx.info(f"Scanning {params.project_path}...")
        summary = await engine.start_tracking(params.project_path)
        return {"status": "success", **summary}
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_start_tracking")}


async def cmd_stop_tracking(engine: CommandEngine) -> dict[str, Any]:
    """Stop watching. Tracked files and their commands remain available."""
    try:
        engine.stop_tracking()
        return {"status": "success", **engine.status()}
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_stop_tracking")}


@with_timeout(OPERATION_TIMEOUT)
async def cmd_restart_tracking(
    params: RestartTrackingInput,
    engine: CommandEngine,
    ctx=None
) -> dict[str, Any]:
    """Discard tracked state and scan again, on a new root or the current one."""
    try:
        if ctx:
            await ctx.info("Restarting tracking...")
        summary = await engine.restart_tracking(params.project_path)
        return {"status": "success", **summary}
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_restart_tracking")}


async def cmd_tracked_files(params: TrackedFilesInput, engine: CommandEngine) -> dict[str, Any]:
    """List tracked files, optionally filtered by language."""
    try:
        files = engine.get_tracked_files()
        if params.language:
            files = [f for f in files if f.language == params.language.lower()]

        items = []
        for tracked in files[:params.limit]:
            item = tracked.to_dict()
            if not params.include_commands:
                item["commands"] = len(tracked.command_names)
            items.append(item)

        kept, truncated = limit_items(items)
        return {
            "status": "success",
            "root": engine.root,
            "total": len(files),
            "returned": len(kept),
            "truncated": truncated or len(files) > len(kept),
            "files": kept,
        }
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_tracked_files")}


async def cmd_dependency_graph(params: DependencyGraphInput, engine: CommandEngine) -> dict[str, Any]:
    """Return the dependency graph, or the edges of a single tracked file."""
    try:
        graph = engine.dependency_graph()
        if params.path:
            node = graph.get(params.path)
            if node is None:
                return {
                    "status": "error",
                    "message": f"File is not tracked: {params.path}",
                }
            return {
                "status": "success",
                "node": node,
                "dependencies": engine.tracker.graph.dependencies_of(params.path),
            }

        nodes, truncated = limit_items(list(graph.values()))
        return {
            "status": "success",
            "root": engine.root,
            "total": len(graph),
            "truncated": truncated,
            "nodes": nodes,
        }
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_dependency_graph")}
