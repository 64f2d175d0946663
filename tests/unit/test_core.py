"""Unit tests for core utilities: patterns, classifier, config, errors, responses."""

import asyncio

import pytest

from cmdtrack_mcp.constants import CHARACTER_LIMIT, DEFAULT_IGNORED_DIRS, MAX_SCAN_DEPTH
from cmdtrack_mcp.core.classifier import ExtensionClassifier
from cmdtrack_mcp.core.config import parse_config
from cmdtrack_mcp.core.errors import handle_error, with_timeout
from cmdtrack_mcp.core.patterns import has_ignored_component, is_ignored_name, matches_exclude_pattern
from cmdtrack_mcp.core.responses import enforce_response_limit, limit_items, safe_json_dumps


class TestPatterns:
    """Tests for ignore and exclude matching."""

    def test_double_star_prefix(self):
        assert matches_exclude_pattern("a/b/debug.log", ["**/*.log"])
        assert matches_exclude_pattern("debug.log", ["**/*.log"])
        assert not matches_exclude_pattern("a/b/debug.txt", ["**/*.log"])

    def test_directory_suffix(self):
        assert matches_exclude_pattern("generated/x/y.py", ["generated/**"])
        assert not matches_exclude_pattern("src/generated.py", ["generated/**"])

    def test_plain_glob(self):
        assert matches_exclude_pattern("notes.tmp", ["*.tmp"])

    def test_windows_separators(self):
        assert matches_exclude_pattern("a\\b\\c.log", ["**/*.log"])

    def test_ignored_name_is_case_insensitive(self):
        assert is_ignored_name("Node_Modules", DEFAULT_IGNORED_DIRS)
        assert not is_ignored_name("src", DEFAULT_IGNORED_DIRS)

    def test_ignored_component_checks_directories_only(self):
        assert has_ignored_component("src/node_modules/lib/x.js", DEFAULT_IGNORED_DIRS)
        assert not has_ignored_component("src/build", DEFAULT_IGNORED_DIRS)


class TestClassifier:
    """Tests for ExtensionClassifier."""

    def test_special_filenames(self):
        classifier = ExtensionClassifier()
        assert classifier.classify("/p/package.json", "{}") == "nodejs"
        assert classifier.classify("/p/Dockerfile", "") == "docker"

    def test_extensions(self):
        classifier = ExtensionClassifier()
        assert classifier.classify("/p/b.js", "") == "javascript"
        assert classifier.classify("/p/a.PY", "") == "python"
        assert classifier.classify("/p/a.txt", "") == "text"

    def test_shebang(self):
        classifier = ExtensionClassifier()
        assert classifier.classify("/p/tool", "#!/usr/bin/env python3\nprint(1)\n") == "python"
        assert classifier.classify("/p/run", "#!/bin/bash\necho\n") == "shell"

    def test_fallback_is_text(self):
        assert ExtensionClassifier().classify("/p/unknown.zzz", "data") == "text"

    def test_extra_extensions(self):
        classifier = ExtensionClassifier({".zzz": "zed"})
        assert classifier.classify("/p/file.zzz", "") == "zed"


class TestConfig:
    """Tests for .cmdtrack.yml parsing."""

    def test_missing_or_empty_yields_defaults(self):
        assert parse_config(None).max_depth == MAX_SCAN_DEPTH
        assert parse_config("   ").ignore_dirs == DEFAULT_IGNORED_DIRS

    def test_values_are_applied(self):
        config = parse_config(
            "max_depth: 2\n"
            "exclude:\n  - '**/*.log'\n"
            "native_watch: false\n"
            "manifest: deps.json\n"
        )
        assert config.max_depth == 2
        assert config.exclude == ["**/*.log"]
        assert config.native_watch is False
        assert config.manifest == "deps.json"

    def test_null_values_normalize_to_defaults(self):
        config = parse_config("ignore_dirs:\nexclude:\nmanifest:\n")
        assert config.ignore_dirs == DEFAULT_IGNORED_DIRS
        assert config.exclude == []
        assert config.manifest == "package.json"

    def test_malformed_yaml_yields_defaults(self, capsys):
        config = parse_config("max_depth: [unclosed")
        assert config.max_depth == MAX_SCAN_DEPTH
        assert "Warning" in capsys.readouterr().err

    def test_invalid_values_yield_defaults(self):
        assert parse_config("max_depth: 500\n").max_depth == MAX_SCAN_DEPTH
        assert parse_config("poll_interval: 0\n").poll_interval > 0

    def test_non_mapping_yields_defaults(self):
        assert parse_config("- a\n- b\n").max_depth == MAX_SCAN_DEPTH

    def test_unknown_keys_are_allowed(self):
        assert parse_config("custom: 1\n").model_extra == {"custom": 1}


class TestHandleError:
    """Tests for error formatting."""

    def test_includes_type_and_context(self):
        message = handle_error(ValueError("bad value"), "cmd_start_tracking", log_to_stderr=False)
        assert message == "Error: ValueError in cmd_start_tracking: bad value"

    def test_redacts_paths(self):
        message = handle_error(OSError("cannot read /home/user/project/file.py"), log_to_stderr=False)
        assert "/home/user" not in message
        assert "[path]" in message

    def test_logs_to_stderr(self, capsys):
        handle_error(RuntimeError("x"), "ctx")
        assert "RuntimeError in ctx" in capsys.readouterr().err


@pytest.mark.asyncio
class TestWithTimeout:
    """Tests for the timeout decorator."""

    async def test_passes_through_result(self):
        @with_timeout(1)
        async def quick():
            return 42

        assert await quick() == 42

    async def test_raises_timeout_error(self):
        @with_timeout(0.01)
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(TimeoutError, match="exceeded timeout"):
            await slow()


class TestResponses:
    """Tests for response size limits."""

    def test_short_response_untouched(self):
        assert enforce_response_limit("ok") == "ok"

    def test_long_response_truncated(self):
        result = enforce_response_limit("x" * (CHARACTER_LIMIT + 10))
        assert len(result) <= CHARACTER_LIMIT + 200
        assert "truncated" in result

    def test_limit_items(self):
        items = [{"name": "x" * 40} for _ in range(10)]
        kept, truncated = limit_items(items, limit=200)
        assert 0 < len(kept) < 10
        assert truncated is True

        kept, truncated = limit_items(items[:2], limit=200)
        assert len(kept) == 2
        assert truncated is False

    def test_safe_json_dumps_reports_errors(self):
        assert '"status": "error"' in safe_json_dumps({"x": object()})
