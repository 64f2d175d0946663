"""Command registration, execution and listing tools."""

import json
from typing import Any

from ..commands.actions import shell_action
from ..constants import CHARACTER_LIMIT
from ..core.errors import handle_error
from ..core.responses import enforce_response_limit, limit_items
from ..engine import CommandEngine
from ..models import ExecuteCommandInput, ListCommandsInput, RegisterCommandInput


def _jsonable(value: Any) -> Any:
    """Return ``value`` if it serializes to JSON, else its repr (size-limited)."""
    try:
        text = json.dumps(value)
    except (TypeError, ValueError):
        return enforce_response_limit(repr(value))
    if len(text) > CHARACTER_LIMIT:
        return enforce_response_limit(text)
    return value


async def cmd_register_command(params: RegisterCommandInput, engine: CommandEngine) -> dict[str, Any]:
    """Register a user command that runs a command line in the tracked root."""
    try:
        action = shell_action(params.command, engine.root, engine.config.command_timeout)
        descriptor = engine.register_command(
            params.name,
            action,
            params.description or params.command,
            tags=params.tags,
        )
        return {"status": "success", "command": descriptor.to_dict()}
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_register_command")}


async def cmd_execute_command(params: ExecuteCommandInput, engine: CommandEngine) -> dict[str, Any]:
    """Execute a command by name; unknown names return ranked suggestions."""
    try:
        execution = await engine.execute_command(params.name, *params.args)
        response = execution.to_dict()
        response["result"] = _jsonable(response["result"])
        # Keep the outcome under "execution" and report it as the tool status
        return {"status": execution.status.value, "execution": response}
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_execute_command")}


async def cmd_list_commands(params: ListCommandsInput, engine: CommandEngine) -> dict[str, Any]:
    """List registered commands sorted by name, with optional filters."""
    try:
        commands = engine.get_commands(
            category=params.category,
            tag=params.tag,
            search=params.search,
            owner=params.owner,
        )
        items = [command.to_dict() for command in commands[:params.limit]]
        kept, truncated = limit_items(items)
        return {
            "status": "success",
            "total": len(commands),
            "returned": len(kept),
            "truncated": truncated or len(commands) > len(kept),
            "commands": kept,
        }
    except Exception as e:
        return {"status": "error", "message": handle_error(e, "cmd_list_commands")}
