"""Unit tests for command templates, synthesis, manifest commands and actions."""

import json
import sys
from unittest.mock import AsyncMock, patch

import pytest

from cmdtrack_mcp.commands.actions import default_services, shell_action
from cmdtrack_mcp.commands.manifest import manifest_commands, parse_manifest
from cmdtrack_mcp.commands.synthesizer import CommandSynthesizer, file_context
from cmdtrack_mcp.commands.templates import UNIVERSAL_TEMPLATES, render_description, render_name, templates_for
from cmdtrack_mcp.constants import ActionKind, CommandCategory, TemplateScope
from cmdtrack_mcp.core.storage import MemoryStorage


def _names(descriptors):
    return [d.name for d in descriptors]


class TestTemplates:
    """Tests for template selection and rendering."""

    def test_unknown_language_uses_universal_set(self):
        assert templates_for("brainfuck") == UNIVERSAL_TEMPLATES

    def test_language_sets_extend_universal_set(self):
        for language in ("javascript", "typescript", "python", "html", "shell", "nodejs"):
            templates = templates_for(language)
            assert templates[:len(UNIVERSAL_TEMPLATES)] == UNIVERSAL_TEMPLATES
            assert len(templates) > len(UNIVERSAL_TEMPLATES)

    def test_shell_set(self):
        names = [t.name for t in templates_for("shell")]

        assert "sh-bash-{basename}" in names
        assert "sh-check-{basename}" in names

    def test_typescript_does_not_reuse_node_runner(self):
        names = [t.name for t in templates_for("typescript")]

        assert "js-node-{basename}" not in names
        assert "ts-tsx-{basename}" in names

    def test_render_name_is_slugged_and_description_verbatim(self):
        ctx = file_context("/p/src/My App.py", "python", "", root="/p")

        assert render_name("open-{filename}", ctx) == "open-src-my-app-py"
        assert render_name("py-test-{basename}", ctx) == "py-test-src-my-app"
        assert render_description("Open {filename} ({ext})", ctx) == "Open My App.py (py)"


class TestFileContext:
    """Tests for file context derivation."""

    def test_root_file(self):
        ctx = file_context("/p/b.js", "javascript", "", root="/p")

        assert ctx.relative_path == "b.js"
        assert ctx.relative_dir == ""
        assert ctx.file_slug == "b-js"
        assert ctx.base_slug == "b"

    def test_nested_file_includes_directory(self):
        ctx = file_context("/p/src/index.js", "javascript", "", root="/p")

        assert ctx.relative_dir == "src"
        assert ctx.file_slug == "src-index-js"

    def test_dotfile(self):
        ctx = file_context("/p/.env", "config", "", root="/p")

        assert ctx.filename == ".env"
        assert ctx.file_slug == "env"


class TestSynthesize:
    """Tests for CommandSynthesizer."""

    def _synthesizer(self):
        return CommandSynthesizer(default_services(MemoryStorage()), root="/p")

    def test_empty_file_gets_init_command(self):
        names = _names(self._synthesizer().synthesize("/p/a.txt", "text", ""))

        assert names == ["open-a-txt", "edit-a-txt", "run-a-txt", "analyze-a-txt", "deps-a-txt", "init-a"]

    def test_whitespace_only_counts_as_empty(self):
        names = _names(self._synthesizer().synthesize("/p/a.txt", "text", "  \n\t"))
        assert "init-a" in names

    def test_symbol_commands(self):
        descriptors = self._synthesizer().synthesize("/p/b.js", "javascript", "function foo(){}")
        names = _names(descriptors)

        assert "call-b-foo" in names
        assert "js-node-b" in names
        assert not any(name.startswith("init-") for name in names)

        call = next(d for d in descriptors if d.name == "call-b-foo")
        assert call.category == CommandCategory.SYMBOL
        assert call.kind == ActionKind.CALL_SYMBOL
        assert call.owner == "/p/b.js"
        assert {"javascript", "js"} <= call.tags

    def test_colliding_symbol_slugs_keep_first(self):
        content = "def fooBar(): pass\ndef foobar(): pass\n"
        names = _names(self._synthesizer().synthesize("/p/m.py", "python", content))

        assert names.count("call-m-foobar") == 1

    def test_project_scoped_templates(self):
        descriptors = self._synthesizer().synthesize("/p/m.py", "python", "")
        scoped = {d.name: d.scope for d in descriptors if d.scope == TemplateScope.PROJECT}

        assert set(scoped) == {"py-pip-install", "py-virtualenv"}

    def test_deterministic(self):
        synthesizer = self._synthesizer()
        first = _names(synthesizer.synthesize("/p/b.js", "javascript", "function foo(){}"))
        second = _names(synthesizer.synthesize("/p/b.js", "javascript", "function foo(){}"))
        assert first == second


class TestManifest:
    """Tests for package.json commands."""

    def _commands(self, content):
        ctx = file_context("/p/package.json", "nodejs", content, root="/p")
        return manifest_commands(ctx, default_services(MemoryStorage()))

    def test_scripts_and_dependencies(self):
        content = json.dumps({
            "name": "demo",
            "scripts": {"build": "tsc", "test:unit": "jest"},
            "dependencies": {"left-pad": "1.0.0"},
            "devDependencies": {"@types/node": "^20"},
        })
        descriptors = self._commands(content)
        names = _names(descriptors)

        assert names == ["npm-build", "npm-test-unit", "use-left-pad", "use-types-node"]
        assert all(d.category == CommandCategory.MANIFEST for d in descriptors)
        assert all(d.owner == "/p/package.json" for d in descriptors)

    def test_malformed_manifest_is_skipped(self):
        assert self._commands("{not json") == []
        assert self._commands("[1, 2]") == []
        assert parse_manifest("") is None

    def test_malformed_sections_are_skipped(self):
        content = json.dumps({"scripts": ["build"], "dependencies": {"a-lib": "1"}})
        assert _names(self._commands(content)) == ["use-a-lib"]


@pytest.mark.asyncio
class TestActions:
    """Tests for bound actions."""

    async def test_open_returns_snapshot(self):
        descriptors = CommandSynthesizer(default_services(MemoryStorage()), root="/p").synthesize(
            "/p/notes.md", "markdown", "# Notes\n"
        )
        open_cmd = next(d for d in descriptors if d.name == "open-notes-md")

        result = await open_cmd.action()

        assert result["content"] == "# Notes\n"
        assert result["language"] == "markdown"

    async def test_init_writes_template(self):
        storage = MemoryStorage({"/p/a.py": ""})
        descriptors = CommandSynthesizer(default_services(storage), root="/p").synthesize("/p/a.py", "python", "")
        init = next(d for d in descriptors if d.name == "init-a")

        result = await init.action()

        assert result["written"] is True
        assert "def main():" in await storage.read_file("/p/a.py")

    async def test_analyze(self):
        descriptors = CommandSynthesizer(default_services(MemoryStorage()), root="/p").synthesize(
            "/p/m.py", "python", "import os\n\ndef run():\n    pass\n"
        )
        analyze = next(d for d in descriptors if d.name == "analyze-m-py")

        report = await analyze.action()

        assert report["imports"] == 1
        assert report["symbols"] == 1
        assert report["blank_lines"] == 2

    async def test_run_unknown_language_raises(self):
        descriptors = CommandSynthesizer(default_services(MemoryStorage()), root="/p").synthesize(
            "/p/data.csv", "text", "a,b\n"
        )
        run = next(d for d in descriptors if d.name == "run-data-csv")

        with pytest.raises(ValueError, match="open-data-csv"):
            await run.action()

    async def test_use_package_is_informational(self):
        ctx = file_context("/p/package.json", "nodejs", '{"dependencies": {"lodash": "4"}}', root="/p")
        use = manifest_commands(ctx, default_services(MemoryStorage()))[0]

        assert await use.action() == {"package": "lodash", "version": "4", "manifest": "/p/package.json"}

    async def test_empty_shell_command_rejected(self):
        with pytest.raises(ValueError):
            shell_action("   ", None)

    @patch('cmdtrack_mcp.commands.actions.run_process', new_callable=AsyncMock)
    async def test_run_uses_language_interpreter(self, mock_run):
        mock_run.return_value = {"returncode": 0}
        synthesizer = CommandSynthesizer(default_services(MemoryStorage()), root="/p")

        commands = {
            d.name: d
            for path, language in (("/p/app.ts", "typescript"), ("/p/go.sh", "shell"), ("/p/m.py", "python"))
            for d in synthesizer.synthesize(path, language, "x = 1\n")
        }

        await commands["run-app-ts"].action()
        assert mock_run.call_args[0][0] == ["npx", "tsx", "/p/app.ts"]

        await commands["ts-tsx-app"].action("--flag")
        assert mock_run.call_args[0][0] == ["npx", "tsx", "/p/app.ts", "--flag"]

        await commands["sh-bash-go"].action()
        assert mock_run.call_args[0][0] == ["bash", "/p/go.sh"]

        await commands["sh-check-go"].action()
        assert mock_run.call_args[0][0] == ["sh", "-n", "/p/go.sh"]

        await commands["run-m-py"].action()
        assert mock_run.call_args[0][0] == [sys.executable, "/p/m.py"]
