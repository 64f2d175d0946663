"""Command templates as data.

Each language maps to a tuple of ``CommandTemplate`` records; languages
without an entry use ``UNIVERSAL_TEMPLATES``, which guarantees every tracked
file at least open/edit/run/analyze/deps commands. Rendering is a pure
function of the template and the file context.
"""

from dataclasses import dataclass

from ..constants import ActionKind, CommandCategory, TemplateScope
from .models import CommandTemplate, slugify

UNIVERSAL_TEMPLATES: tuple[CommandTemplate, ...] = (
    CommandTemplate("open-{filename}", "Open {filename}", ActionKind.OPEN),
    CommandTemplate("edit-{filename}", "Edit {filename}", ActionKind.EDIT),
    CommandTemplate("run-{filename}", "Execute {filename}", ActionKind.RUN),
    CommandTemplate("analyze-{filename}", "Analyze {filename}", ActionKind.ANALYZE),
    CommandTemplate("deps-{filename}", "Show dependencies and dependents of {filename}", ActionKind.DEPENDENCIES),
)

_JS_TEMPLATES = UNIVERSAL_TEMPLATES + (
    CommandTemplate(
        "js-node-{basename}", "Run with Node.js: {basename}", ActionKind.RUN,
        params=(("interpreter", "node"),),
    ),
)

LANGUAGE_TEMPLATES: dict[str, tuple[CommandTemplate, ...]] = {
    "javascript": _JS_TEMPLATES,
    "typescript": UNIVERSAL_TEMPLATES + (
        CommandTemplate(
            "ts-tsx-{basename}", "Run with tsx: {basename}", ActionKind.RUN,
            params=(("interpreter", "npx tsx"),),
        ),
        CommandTemplate(
            "ts-check-{basename}", "Type-check {basename}", ActionKind.SHELL,
            params=(("argv", "npx tsc --noEmit {path}"),),
        ),
    ),
    "shell": UNIVERSAL_TEMPLATES + (
        CommandTemplate(
            "sh-bash-{basename}", "Run with bash: {basename}", ActionKind.RUN,
            params=(("interpreter", "bash"),),
        ),
        CommandTemplate(
            "sh-check-{basename}", "Check shell syntax: {basename}", ActionKind.SHELL,
            params=(("argv", "sh -n {path}"),),
        ),
    ),
    "python": UNIVERSAL_TEMPLATES + (
        CommandTemplate(
            "py-test-{basename}", "Run Python tests: {basename}", ActionKind.SHELL,
            params=(("argv", "{python} -m pytest {path}"),),
        ),
        CommandTemplate(
            "py-pip-install", "Install Python dependencies", ActionKind.SHELL,
            params=(("argv", "{python} -m pip install -r requirements.txt"),),
            category=CommandCategory.PROJECT, scope=TemplateScope.PROJECT,
        ),
        CommandTemplate(
            "py-virtualenv", "Create virtual environment", ActionKind.SHELL,
            params=(("argv", "{python} -m venv .venv"),),
            category=CommandCategory.PROJECT, scope=TemplateScope.PROJECT,
        ),
    ),
    "html": UNIVERSAL_TEMPLATES + (
        CommandTemplate("html-preview-{basename}", "Preview HTML: {basename}", ActionKind.OPEN),
    ),
    "nodejs": UNIVERSAL_TEMPLATES + (
        CommandTemplate(
            "npm-install", "npm install", ActionKind.SHELL,
            params=(("argv", "npm install"),),
            category=CommandCategory.PROJECT, scope=TemplateScope.PROJECT,
        ),
    ),
}


@dataclass(frozen=True)
class FileContext:
    """Metadata a template is rendered against."""

    path: str
    relative_path: str
    filename: str
    basename: str
    ext: str
    language: str
    content: str
    root: str | None = None
    # Directory part of relative_path, "" for files directly under the root
    relative_dir: str = ""

    @property
    def file_slug(self) -> str:
        return slugify(f"{self.relative_dir}/{self.filename}" if self.relative_dir else self.filename)

    @property
    def base_slug(self) -> str:
        return slugify(f"{self.relative_dir}/{self.basename}" if self.relative_dir else self.basename)


def templates_for(language: str) -> tuple[CommandTemplate, ...]:
    """Template set for a language, falling back to the universal set."""
    return LANGUAGE_TEMPLATES.get(language, UNIVERSAL_TEMPLATES)


def render_name(pattern: str, ctx: FileContext) -> str:
    return slugify(
        pattern
        .replace("{filename}", ctx.file_slug)
        .replace("{basename}", ctx.base_slug)
        .replace("{ext}", slugify(ctx.ext))
    )


def render_description(pattern: str, ctx: FileContext) -> str:
    return (
        pattern
        .replace("{filename}", ctx.filename)
        .replace("{basename}", ctx.basename)
        .replace("{ext}", ctx.ext)
    )
