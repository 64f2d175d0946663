"""Action implementations behind command descriptors.

``build_action`` turns an ``ActionKind`` plus template parameters into an
async callable bound to one file's context. Actions return plain dicts; any
exception they raise is converted into a failed result by the dispatcher.
"""

import asyncio
import posixpath
import shlex
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..constants import COMMAND_TIMEOUT, ActionKind
from ..core.analyzer import Analyzer, BasicAnalyzer
from ..core.storage import StorageBackend
from ..indexing.graph import DependencyGraph
from .models import CommandAction
from .templates import FileContext

# Interpreter command prefixes used by run-* commands
INTERPRETERS = {
    "python": [sys.executable],
    "javascript": ["node"],
    "typescript": ["npx", "tsx"],
    "shell": ["sh"],
    "ruby": ["ruby"],
    "perl": ["perl"],
    "php": ["php"],
    "lua": ["lua"],
}

# Content written by init-* commands into empty files
INITIAL_CONTENT = {
    "python": (
        "# {filename}\n\n\n"
        "def main():\n"
        "    print(\"Hello from {basename}\")\n\n\n"
        "if __name__ == \"__main__\":\n"
        "    main()\n"
    ),
    "javascript": (
        "// {filename}\n\n"
        "function main() {{\n"
        "    console.log(\"Hello from {basename}\");\n"
        "}}\n\n"
        "module.exports = {{ main }};\n\n"
        "if (require.main === module) {{\n"
        "    main();\n"
        "}}\n"
    ),
    "typescript": (
        "// {filename}\n\n"
        "export function main(): void {{\n"
        "    console.log(\"Hello from {basename}\");\n"
        "}}\n"
    ),
    "shell": "#!/bin/sh\n# {filename}\n\necho \"Hello from {basename}\"\n",
    "html": (
        "<!DOCTYPE html>\n<html>\n<head>\n    <title>{basename}</title>\n</head>\n"
        "<body>\n    <h1>{basename}</h1>\n</body>\n</html>\n"
    ),
    "markdown": "# {basename}\n",
}

# Python snippet used by call-* commands: load the module without running __main__, call the symbol
_PY_CALL_SNIPPET = (
    "import runpy, sys\n"
    "ns = runpy.run_path(sys.argv[1])\n"
    "print(repr(ns[sys.argv[2]](*sys.argv[3:])))\n"
)


@dataclass
class ActionServices:
    """Live collaborators an action may use at execution time."""

    storage: StorageBackend
    graph: DependencyGraph
    analyzer: Analyzer
    on_file_written: Callable[[str], Awaitable[None]] | None = None
    command_timeout: float = COMMAND_TIMEOUT


async def run_process(argv: list[str], cwd: str | None, timeout: float) -> dict[str, Any]:
    """Run a process in array form (no shell) and capture its output."""
    process = await asyncio.create_subprocess_exec(
        *argv,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise TimeoutError(f"Command exceeded timeout ({timeout}s): {argv[0]}")

    return {
        "argv": argv,
        "returncode": process.returncode,
        "stdout": stdout.decode("utf-8", errors="replace"),
        "stderr": stderr.decode("utf-8", errors="replace"),
    }


def _symbol_line(content: str, symbol: str) -> int | None:
    for number, line in enumerate(content.splitlines(), start=1):
        if symbol in line:
            return number
    return None


def _expand_argv(template: str, ctx: FileContext) -> list[str]:
    values = {
        "{python}": sys.executable,
        "{path}": ctx.path,
        "{root}": ctx.root or posixpath.dirname(ctx.path),
    }
    argv = []
    for token in shlex.split(template):
        for placeholder, value in values.items():
            token = token.replace(placeholder, value)
        argv.append(token)
    return argv


def build_action(
    kind: ActionKind,
    params: dict[str, str],
    ctx: FileContext,
    services: ActionServices,
) -> CommandAction:
    """Resolve an action kind to a callable bound to ``ctx``."""
    cwd = ctx.root

    async def open_file(*args: Any) -> dict[str, Any]:
        return {
            "path": ctx.path,
            "language": ctx.language,
            "size": len(ctx.content),
            "content": ctx.content,
        }

    async def edit_file(*args: Any) -> dict[str, Any]:
        if not args:
            return {
                "path": ctx.path,
                "content": ctx.content,
                "hint": "Pass the new content as the first argument to save it.",
            }
        written = await services.storage.write_file(ctx.path, str(args[0]))
        if written and services.on_file_written:
            await services.on_file_written(ctx.path)
        return {"path": ctx.path, "written": written}

    async def run_file(*args: Any) -> dict[str, Any]:
        override = params.get("interpreter")
        interpreter = shlex.split(override) if override else INTERPRETERS.get(ctx.language)
        if not interpreter:
            raise ValueError(
                f"Don't know how to execute {ctx.language} files. "
                f"Try: open-{ctx.file_slug}"
            )
        return await run_process(
            [*interpreter, ctx.path, *map(str, args)], cwd, services.command_timeout
        )

    async def analyze_file(*args: Any) -> dict[str, Any]:
        return services.analyzer.analyze(ctx.path, ctx.content, ctx.language)

    async def show_dependencies(*args: Any) -> dict[str, Any]:
        node = services.graph.get(ctx.path)
        return {
            "path": ctx.path,
            "references": list(node.references) if node else [],
            "dependents": sorted(node.dependents) if node else [],
            "dependencies": services.graph.dependencies_of(ctx.path),
        }

    async def initialize_file(*args: Any) -> dict[str, Any]:
        template = INITIAL_CONTENT.get(ctx.language, "")
        content = template.format(filename=ctx.filename, basename=ctx.basename)
        if not content:
            content = f"{ctx.filename}\n"
        written = await services.storage.write_file(ctx.path, content)
        if written and services.on_file_written:
            await services.on_file_written(ctx.path)
        return {"path": ctx.path, "language": ctx.language, "written": written}

    async def call_symbol(*args: Any) -> dict[str, Any]:
        symbol = params["symbol"]
        if ctx.language == "python":
            outcome = await run_process(
                [sys.executable, "-c", _PY_CALL_SNIPPET, ctx.path, symbol, *map(str, args)],
                cwd,
                services.command_timeout,
            )
            outcome["symbol"] = symbol
            return outcome
        return {
            "symbol": symbol,
            "path": ctx.path,
            "line": _symbol_line(ctx.content, symbol),
            "hint": f"Run {ctx.filename} and invoke {symbol}() from there.",
        }

    async def run_shell(*args: Any) -> dict[str, Any]:
        argv = _expand_argv(params["argv"], ctx) + [str(a) for a in args]
        return await run_process(argv, cwd, services.command_timeout)

    async def run_npm_script(*args: Any) -> dict[str, Any]:
        argv = ["npm", "run", params["script"]]
        if args:
            argv += ["--", *map(str, args)]
        return await run_process(argv, cwd, services.command_timeout)

    async def use_package(*args: Any) -> dict[str, Any]:
        return {
            "package": params["package"],
            "version": params.get("version", ""),
            "manifest": ctx.path,
        }

    actions = {
        ActionKind.OPEN: open_file,
        ActionKind.EDIT: edit_file,
        ActionKind.RUN: run_file,
        ActionKind.ANALYZE: analyze_file,
        ActionKind.DEPENDENCIES: show_dependencies,
        ActionKind.INITIALIZE: initialize_file,
        ActionKind.CALL_SYMBOL: call_symbol,
        ActionKind.SHELL: run_shell,
        ActionKind.NPM_SCRIPT: run_npm_script,
        ActionKind.USE_PACKAGE: use_package,
    }
    return actions[kind]


def default_services(storage: StorageBackend, graph: DependencyGraph | None = None) -> ActionServices:
    return ActionServices(storage=storage, graph=graph or DependencyGraph(), analyzer=BasicAnalyzer())


def shell_action(command: str, cwd: str | None, timeout: float = COMMAND_TIMEOUT) -> CommandAction:
    """Action that runs a user-supplied command line (split, never passed to a shell)."""
    argv = shlex.split(command)
    if not argv:
        raise ValueError("Command line cannot be empty")

    async def run(*args: Any) -> dict[str, Any]:
        return await run_process(argv + [str(a) for a in args], cwd, timeout)

    return run
