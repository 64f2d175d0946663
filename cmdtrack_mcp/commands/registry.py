"""Command registry and dispatcher.

The registry owns every ``CommandDescriptor``. Names are normalized on the
way in and on lookup, so "Open File" and "open-file" address the same entry.
Registering an existing name overwrites it, except that project-scoped
commands shared by several files accumulate owners and are removed only when
the last owner goes away.
"""

import inspect
import sys
import time
from collections import deque
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import Any

from rapidfuzz.distance import Levenshtein

from ..constants import (
    EXECUTION_HISTORY_SIZE,
    SIMILARITY_THRESHOLD,
    SUGGESTION_LIMIT,
    ActionKind,
    CommandCategory,
    ExecutionStatus,
    TemplateScope,
)
from .models import CommandAction, CommandDescriptor, ExecutionResult, normalize_name


class CommandRegistry:
    """Name -> descriptor map with fuzzy lookup and a dispatcher."""

    def __init__(self, history_size: int = EXECUTION_HISTORY_SIZE):
        self._commands: dict[str, CommandDescriptor] = {}
        self._owners: dict[str, set[str]] = {}
        self._history: deque[dict[str, Any]] = deque(maxlen=history_size)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._commands

    # Registration

    def add(self, descriptor: CommandDescriptor) -> CommandDescriptor:
        """Store a descriptor under its normalized name (last write wins)."""
        key = normalize_name(descriptor.name)
        if not key:
            raise ValueError(f"Command name normalizes to an empty string: {descriptor.name!r}")
        if key != descriptor.name:
            descriptor = descriptor.renamed(key)

        owners = self._owners.get(key, set())
        existing = self._commands.get(key)
        if not (
            existing is not None
            and existing.scope == TemplateScope.PROJECT
            and descriptor.scope == TemplateScope.PROJECT
        ):
            owners = set()
        if descriptor.owner:
            owners.add(descriptor.owner)

        self._commands[key] = descriptor
        self._owners[key] = owners
        return descriptor

    def register(
        self,
        name: str,
        action: CommandAction,
        description: str = "",
        category: CommandCategory = CommandCategory.USER,
        tags: Iterable[str] = (),
        weight: float = 1.0,
        owner: str | None = None,
        kind: ActionKind | None = None,
    ) -> CommandDescriptor:
        if not callable(action):
            raise TypeError(f"Action for command {name!r} is not callable")
        return self.add(CommandDescriptor(
            name=name,
            description=description,
            action=action,
            category=category,
            tags=frozenset(tags),
            weight=weight,
            owner=owner,
            kind=kind,
        ))

    def unregister(self, name: str) -> bool:
        key = normalize_name(name)
        self._owners.pop(key, None)
        return self._commands.pop(key, None) is not None

    def unregister_owned(self, path: str) -> list[str]:
        """Drop a path's ownership everywhere; return the names actually removed."""
        removed = []
        for key, owners in list(self._owners.items()):
            if path not in owners:
                continue
            owners.discard(path)
            if owners:
                descriptor = self._commands[key]
                if descriptor.owner == path:
                    self._commands[key] = replace(descriptor, owner=min(owners))
                continue
            del self._owners[key]
            del self._commands[key]
            removed.append(key)
        return sorted(removed)

    def clear(self) -> None:
        self._commands.clear()
        self._owners.clear()

    # Lookup

    def get(self, name: str) -> CommandDescriptor | None:
        return self._commands.get(normalize_name(name))

    def owner_of(self, name: str) -> str | None:
        descriptor = self.get(name)
        return descriptor.owner if descriptor else None

    def owners_of(self, name: str) -> frozenset[str]:
        return frozenset(self._owners.get(normalize_name(name), ()))

    def names(self) -> list[str]:
        return sorted(self._commands)

    def suggestions(self, name: str, limit: int = SUGGESTION_LIMIT) -> list[CommandDescriptor]:
        """Rank near matches: containment first, then weighted edit similarity."""
        query = normalize_name(name)
        if not query:
            return []

        scored = []
        for key, descriptor in self._commands.items():
            contained = query in key or query in normalize_name(descriptor.description)
            similarity = Levenshtein.normalized_similarity(query, key)
            if not contained and similarity <= SIMILARITY_THRESHOLD:
                continue
            scored.append((0 if contained else 1, -similarity * descriptor.weight, key, descriptor))

        scored.sort(key=lambda item: item[:3])
        return [item[3] for item in scored[:limit]]

    # Dispatch

    async def execute(self, name: str, *args: Any) -> ExecutionResult:
        """Run a command by name. Failures are reported in the result, never raised."""
        key = normalize_name(name)
        start = time.perf_counter()
        descriptor = self._commands.get(key)

        if descriptor is None:
            result = ExecutionResult(
                name=key or name,
                status=ExecutionStatus.NOT_FOUND,
                message=f"Command '{name}' not found",
                suggestions=[
                    {"name": d.name, "description": d.description}
                    for d in self.suggestions(name)
                ],
            )
        else:
            try:
                value = descriptor.action(*args)
                if inspect.isawaitable(value):
                    value = await value
                result = ExecutionResult(name=key, status=ExecutionStatus.SUCCESS, result=value)
            except Exception as e:
                message = str(e) or type(e).__name__
                print(f"Warning: Command '{key}' failed: {message}", file=sys.stderr)
                result = ExecutionResult(name=key, status=ExecutionStatus.ERROR, message=message)

        result.duration_ms = (time.perf_counter() - start) * 1000
        self._history.append({
            "name": result.name,
            "status": result.status.value,
            "duration_ms": round(result.duration_ms, 3),
            "timestamp": datetime.now().isoformat(),
        })
        return result

    @property
    def history(self) -> list[dict[str, Any]]:
        """Most recent executions, oldest first."""
        return list(self._history)

    def list(
        self,
        category: CommandCategory | str | None = None,
        tag: str | None = None,
        search: str | None = None,
        owner: str | None = None,
    ) -> list[CommandDescriptor]:
        """Return matching descriptors sorted by name; never mutates the registry."""
        category_value = CommandCategory(category) if category else None
        needle = search.lower() if search else None
        results = []
        for key in sorted(self._commands):
            descriptor = self._commands[key]
            if category_value and descriptor.category != category_value:
                continue
            if tag and tag.lower() not in descriptor.tags:
                continue
            if needle and needle not in key and needle not in descriptor.description.lower():
                continue
            if owner and owner not in self._owners.get(key, ()):
                continue
            results.append(descriptor)
        return results
