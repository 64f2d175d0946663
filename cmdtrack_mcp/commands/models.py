"""Data types shared by the command synthesizer, registry and dispatcher."""

import re
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from ..constants import ActionKind, CommandCategory, ExecutionStatus, TemplateScope

_NON_ALNUM = re.compile(r'[^a-z0-9]+')

CommandAction = Callable[..., Any]


def normalize_name(name: str) -> str:
    """Normalize a command name: lower-case, non-alphanumeric runs collapsed to '-'.

    "Open File", "open-file" and "  OPEN__file " all normalize to "open-file".
    """
    return _NON_ALNUM.sub('-', name.lower()).strip('-')


def slugify(text: str) -> str:
    """Slug used for placeholders inside command names (same charset as names)."""
    return normalize_name(text)


@dataclass(frozen=True)
class CommandTemplate:
    """A command pattern resolved against a file's metadata.

    Patterns may use ``{filename}``, ``{basename}`` and ``{ext}``.
    """

    name: str
    description: str
    kind: ActionKind
    params: tuple[tuple[str, str], ...] = ()
    category: CommandCategory = CommandCategory.FILE
    scope: TemplateScope = TemplateScope.FILE


@dataclass(frozen=True)
class CommandDescriptor:
    """A named, invokable action bound to one file and synthesis context."""

    name: str
    description: str
    action: CommandAction = field(compare=False, repr=False)
    category: CommandCategory = CommandCategory.USER
    tags: frozenset[str] = frozenset()
    weight: float = 1.0
    owner: str | None = None
    kind: ActionKind | None = None
    scope: TemplateScope = TemplateScope.FILE

    def renamed(self, name: str) -> "CommandDescriptor":
        return replace(self, name=name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "tags": sorted(self.tags),
            "owner": self.owner,
            "kind": self.kind.value if self.kind else None,
        }


@dataclass
class ExecutionResult:
    """Outcome of dispatching a command; the dispatcher never raises."""

    name: str
    status: ExecutionStatus
    result: Any = None
    message: str = ""
    suggestions: list[dict[str, str]] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "result": self.result,
            "message": self.message,
            "suggestions": self.suggestions,
            "duration_ms": round(self.duration_ms, 3),
        }
