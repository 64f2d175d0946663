"""Unit tests for the command registry and dispatcher."""

import asyncio

import pytest

from cmdtrack_mcp.commands.models import CommandDescriptor, normalize_name
from cmdtrack_mcp.commands.registry import CommandRegistry
from cmdtrack_mcp.constants import CommandCategory, ExecutionStatus, TemplateScope


def _noop(*args):
    return list(args)


class TestNormalizeName:
    """Tests for command name normalization."""

    def test_case_and_whitespace_collapse(self):
        assert normalize_name("Open File") == "open-file"
        assert normalize_name("  OPEN__file ") == "open-file"
        assert normalize_name("open-file") == "open-file"

    def test_strips_leading_and_trailing_separators(self):
        assert normalize_name("--build--") == "build"
        assert normalize_name("use-@scope/pkg") == "use-scope-pkg"

    def test_only_separators_normalizes_to_empty(self):
        assert normalize_name("  --  ") == ""


class TestRegistration:
    """Tests for register/unregister and ownership."""

    def test_names_differing_in_case_and_spacing_collide(self):
        registry = CommandRegistry()
        registry.register("Open File", _noop, "first")
        registry.register("open-file", _noop, "second")

        assert len(registry) == 1
        assert registry.get("OPEN file").description == "second"
        assert "open file" in registry

    def test_empty_name_is_rejected(self):
        registry = CommandRegistry()
        with pytest.raises(ValueError):
            registry.register("   ", _noop)

    def test_non_callable_action_is_rejected(self):
        registry = CommandRegistry()
        with pytest.raises(TypeError):
            registry.register("broken", "not callable")

    def test_unregister(self):
        registry = CommandRegistry()
        registry.register("build", _noop)

        assert registry.unregister("BUILD") is True
        assert registry.unregister("build") is False
        assert len(registry) == 0

    def test_unregister_owned_removes_only_that_owner(self):
        registry = CommandRegistry()
        registry.register("open-a", _noop, owner="/p/a.py")
        registry.register("open-b", _noop, owner="/p/b.py")
        registry.register("user-cmd", _noop)

        removed = registry.unregister_owned("/p/a.py")

        assert removed == ["open-a"]
        assert registry.names() == ["open-b", "user-cmd"]

    def test_project_scoped_command_survives_until_last_owner(self):
        registry = CommandRegistry()
        for owner in ("/p/x.py", "/p/y.py"):
            registry.add(CommandDescriptor(
                name="py-pip-install",
                description="Install Python dependencies",
                action=_noop,
                category=CommandCategory.PROJECT,
                owner=owner,
                scope=TemplateScope.PROJECT,
            ))

        assert registry.owners_of("py-pip-install") == {"/p/x.py", "/p/y.py"}

        assert registry.unregister_owned("/p/x.py") == []
        assert registry.get("py-pip-install") is not None
        assert registry.owner_of("py-pip-install") == "/p/y.py"

        assert registry.unregister_owned("/p/y.py") == ["py-pip-install"]
        assert registry.get("py-pip-install") is None

    def test_file_scoped_overwrite_replaces_owner(self):
        registry = CommandRegistry()
        registry.register("open-a", _noop, owner="/p/one")
        registry.register("open-a", _noop, owner="/p/two")

        assert registry.owners_of("open-a") == {"/p/two"}

    def test_clear(self):
        registry = CommandRegistry()
        registry.register("a1", _noop, owner="/p/a")
        registry.clear()

        assert len(registry) == 0
        assert registry.owners_of("a1") == frozenset()


class TestListing:
    """Tests for list filters."""

    def _registry(self):
        registry = CommandRegistry()
        registry.register("run-app-py", _noop, "Execute app.py", category=CommandCategory.FILE,
                          tags=["python", "run"], owner="/p/app.py")
        registry.register("call-app-main", _noop, "Call main() from app.py", category=CommandCategory.SYMBOL,
                          tags=["python"], owner="/p/app.py")
        registry.register("deploy", _noop, "Ship it")
        return registry

    def test_sorted_by_name(self):
        names = [d.name for d in self._registry().list()]
        assert names == sorted(names)

    def test_filter_by_category(self):
        names = [d.name for d in self._registry().list(category="symbol")]
        assert names == ["call-app-main"]

    def test_filter_by_tag(self):
        names = [d.name for d in self._registry().list(tag="run")]
        assert names == ["run-app-py"]

    def test_filter_by_search_matches_description(self):
        names = [d.name for d in self._registry().list(search="SHIP")]
        assert names == ["deploy"]

    def test_filter_by_owner(self):
        names = [d.name for d in self._registry().list(owner="/p/app.py")]
        assert names == ["call-app-main", "run-app-py"]

    def test_list_does_not_mutate(self):
        registry = self._registry()
        before = registry.names()
        registry.list(category=CommandCategory.USER, search="x")
        assert registry.names() == before


class TestSuggestions:
    """Tests for fuzzy suggestions."""

    def test_shared_prefix_is_suggested(self):
        registry = CommandRegistry()
        registry.register("analyze-server-js", _noop, "Analyze server.js")
        registry.register("deploy", _noop, "Ship it")

        names = [d.name for d in registry.suggestions("analyze-server-jx")]

        assert names == ["analyze-server-js"]

    def test_containment_ranks_before_similarity(self):
        registry = CommandRegistry()
        for name in ("build", "build-all", "rebuild", "zzz"):
            registry.register(name, _noop)

        names = [d.name for d in registry.suggestions("buil")]

        assert names == ["build", "rebuild", "build-all"]

    def test_description_containment(self):
        registry = CommandRegistry()
        registry.register("npm-build", _noop, "npm run build: tsc")

        names = [d.name for d in registry.suggestions("tsc")]

        assert names == ["npm-build"]

    def test_at_most_five(self):
        registry = CommandRegistry()
        for i in range(10):
            registry.register(f"open-file-{i}", _noop)

        assert len(registry.suggestions("open-file")) == 5

    def test_empty_query(self):
        registry = CommandRegistry()
        registry.register("build", _noop)
        assert registry.suggestions("--") == []


@pytest.mark.asyncio
class TestExecute:
    """Tests for dispatch."""

    async def test_sync_action(self):
        registry = CommandRegistry()
        registry.register("echo", _noop)

        result = await registry.execute("ECHO", 1, 2)

        assert result.ok
        assert result.status == ExecutionStatus.SUCCESS
        assert result.result == [1, 2]
        assert result.duration_ms >= 0

    async def test_async_action_is_awaited(self):
        registry = CommandRegistry()

        async def action(value):
            await asyncio.sleep(0)
            return value * 2

        registry.register("double", action)
        result = await registry.execute("double", 21)

        assert result.result == 42

    async def test_failure_becomes_error_result(self):
        registry = CommandRegistry()

        def action():
            raise RuntimeError("boom")

        registry.register("explode", action)
        result = await registry.execute("explode")

        assert result.status == ExecutionStatus.ERROR
        assert result.message == "boom"
        assert not result.ok

    async def test_missing_command_returns_suggestions(self):
        registry = CommandRegistry()
        registry.register("open-readme-md", _noop, "Open README.md")

        result = await registry.execute("open-readme")

        assert result.status == ExecutionStatus.NOT_FOUND
        assert result.suggestions == [{"name": "open-readme-md", "description": "Open README.md"}]

    async def test_execute_does_not_mutate_registry(self):
        registry = CommandRegistry()
        registry.register("echo", _noop)

        await registry.execute("echo")
        await registry.execute("missing")

        assert registry.names() == ["echo"]

    async def test_history_is_bounded(self):
        registry = CommandRegistry(history_size=3)
        registry.register("echo", _noop)

        for _ in range(5):
            await registry.execute("echo")
        await registry.execute("nope")

        history = registry.history
        assert len(history) == 3
        assert history[-1]["status"] == "not_found"
        assert history[0]["name"] == "echo"

    async def test_to_dict(self):
        registry = CommandRegistry()
        registry.register("echo", _noop)

        data = (await registry.execute("echo", "x")).to_dict()

        assert data["status"] == "success"
        assert data["result"] == ["x"]
        assert data["suggestions"] == []
