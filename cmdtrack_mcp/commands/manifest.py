"""Commands derived from the project's dependency manifest (package.json)."""

import json
import sys
from typing import Any

from ..constants import ActionKind, CommandCategory
from .actions import ActionServices, build_action
from .models import CommandDescriptor, slugify
from .templates import FileContext

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies")


def parse_manifest(content: str) -> dict[str, Any] | None:
    """Parse manifest content; None when it is not a JSON object."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def manifest_commands(ctx: FileContext, services: ActionServices) -> list[CommandDescriptor]:
    """Build npm-<script> and use-<dependency> commands for a manifest file.

    Malformed manifests and malformed sections yield no commands.
    """
    manifest = parse_manifest(ctx.content)
    if manifest is None:
        if ctx.content.strip():
            print(f"Warning: Skipping malformed manifest {ctx.path}", file=sys.stderr)
        return []

    commands = []
    tags = frozenset({"manifest", ctx.language})

    scripts = manifest.get("scripts")
    if isinstance(scripts, dict):
        for script_name, script_command in scripts.items():
            params = {"script": str(script_name)}
            commands.append(CommandDescriptor(
                name=f"npm-{slugify(str(script_name))}",
                description=f"npm run {script_name}: {script_command}",
                action=build_action(ActionKind.NPM_SCRIPT, params, ctx, services),
                category=CommandCategory.MANIFEST,
                tags=tags | {ActionKind.NPM_SCRIPT.value},
                owner=ctx.path,
                kind=ActionKind.NPM_SCRIPT,
            ))

    seen = set()
    for section in DEPENDENCY_SECTIONS:
        dependencies = manifest.get(section)
        if not isinstance(dependencies, dict):
            continue
        for package, version in dependencies.items():
            if package in seen:
                continue
            seen.add(package)
            params = {"package": str(package), "version": str(version)}
            commands.append(CommandDescriptor(
                name=f"use-{slugify(str(package))}",
                description=f"Use {package} package ({section})",
                action=build_action(ActionKind.USE_PACKAGE, params, ctx, services),
                category=CommandCategory.MANIFEST,
                tags=tags | {ActionKind.USE_PACKAGE.value, section},
                owner=ctx.path,
                kind=ActionKind.USE_PACKAGE,
            ))

    return commands
