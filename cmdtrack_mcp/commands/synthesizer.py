"""Command synthesis for tracked files."""

import posixpath

from ..constants import ActionKind, CommandCategory, TemplateScope
from ..indexing.extractor import extract_symbols
from .actions import ActionServices, build_action
from .models import CommandDescriptor, CommandTemplate, slugify
from .templates import FileContext, render_description, render_name, templates_for


def file_context(path: str, language: str, content: str, root: str | None = None) -> FileContext:
    """Build the rendering context for a file.

    Names are qualified with the root-relative directory so that files sharing
    a name in different directories never produce the same command.
    """
    normalized = path.replace("\\", "/")
    relative = normalized
    if root:
        prefix = root.replace("\\", "/").rstrip("/") + "/"
        if normalized.startswith(prefix):
            relative = normalized[len(prefix):]
        else:
            relative = posixpath.basename(normalized)
    relative = relative.lstrip("/")

    filename = posixpath.basename(relative)
    basename, ext = posixpath.splitext(filename)
    return FileContext(
        path=path,
        relative_path=relative,
        filename=filename,
        basename=basename,
        ext=ext.lstrip("."),
        language=language,
        content=content,
        root=root,
        relative_dir=posixpath.dirname(relative),
    )


class CommandSynthesizer:
    """Produces command descriptors for one file from templates and a symbol scan."""

    def __init__(self, services: ActionServices, root: str | None = None):
        self.services = services
        self.root = root

    def _descriptor(
        self,
        name: str,
        description: str,
        kind: ActionKind,
        params: dict[str, str],
        ctx: FileContext,
        category: CommandCategory,
        scope: TemplateScope = TemplateScope.FILE,
    ) -> CommandDescriptor:
        tags = {ctx.language, kind.value}
        if ctx.ext:
            tags.add(ctx.ext.lower())
        return CommandDescriptor(
            name=name,
            description=description,
            action=build_action(kind, params, ctx, self.services),
            category=category,
            tags=frozenset(tags),
            owner=ctx.path,
            kind=kind,
            scope=scope,
        )

    def from_template(self, template: CommandTemplate, ctx: FileContext) -> CommandDescriptor:
        return self._descriptor(
            render_name(template.name, ctx),
            render_description(template.description, ctx),
            template.kind,
            dict(template.params),
            ctx,
            template.category,
            template.scope,
        )

    def synthesize(self, path: str, language: str, content: str) -> list[CommandDescriptor]:
        """Return the descriptors for a file, templates first, then symbol or init commands."""
        ctx = file_context(path, language, content, self.root)
        commands = [self.from_template(template, ctx) for template in templates_for(language)]

        if content and content.strip():
            for symbol in extract_symbols(content, language):
                commands.append(self._descriptor(
                    f"call-{ctx.base_slug}-{slugify(symbol)}",
                    f"Call {symbol}() from {ctx.filename}",
                    ActionKind.CALL_SYMBOL,
                    {"symbol": symbol},
                    ctx,
                    CommandCategory.SYMBOL,
                ))
        else:
            # Nothing to invoke in an empty file
            commands.append(self._descriptor(
                f"init-{ctx.base_slug}",
                f"Initialize {ctx.filename} as {language} file",
                ActionKind.INITIALIZE,
                {},
                ctx,
                CommandCategory.FILE,
            ))

        # Symbols whose slugs collide (e.g. "fooBar" and "foobar") keep the first occurrence
        seen: set[str] = set()
        unique = []
        for command in commands:
            if command.name not in seen:
                seen.add(command.name)
                unique.append(command)
        return unique
