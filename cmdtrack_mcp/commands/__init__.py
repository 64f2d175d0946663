"""Command synthesis, registry and dispatch."""

from .actions import ActionServices, build_action, default_services, shell_action
from .manifest import manifest_commands
from .models import CommandDescriptor, CommandTemplate, ExecutionResult, normalize_name
from .registry import CommandRegistry
from .synthesizer import CommandSynthesizer, file_context

__all__ = [
    "ActionServices",
    "CommandDescriptor",
    "CommandRegistry",
    "CommandSynthesizer",
    "CommandTemplate",
    "ExecutionResult",
    "build_action",
    "default_services",
    "file_context",
    "manifest_commands",
    "normalize_name",
    "shell_action",
]
