"""Unit tests for dependency/symbol extraction and the dependency graph."""

from cmdtrack_mcp.indexing.extractor import extract_dependencies, extract_symbols
from cmdtrack_mcp.indexing.graph import DependencyGraph


class TestExtractDependencies:
    """Tests for lexical dependency extraction."""

    def test_javascript_import_require_and_dynamic_import(self):
        content = (
            "import React from 'react';\n"
            "const x = require('./x');\n"
            "import('./lazy');\n"
        )
        assert extract_dependencies(content, "javascript") == ["react", "./x", "./lazy"]

    def test_javascript_named_and_reexport(self):
        content = (
            "import { a, b } from \"./ab\";\n"
            "export * from './all';\n"
        )
        assert extract_dependencies(content, "typescript") == ["./ab", "./all"]

    def test_python_imports(self):
        content = (
            "from . import a, b\n"
            "import os, sys as s\n"
            "from pkg.mod import x\n"
        )
        assert extract_dependencies(content, "python") == [".a", ".b", "os", "sys", "pkg.mod"]

    def test_python_relative_module(self):
        assert extract_dependencies("from .utils import helper\n", "python") == [".utils"]

    def test_go_block_and_single(self):
        content = 'import (\n\t"fmt"\n\t"os"\n)\nimport "strings"\n'
        assert extract_dependencies(content, "go") == ["fmt", "os", "strings"]

    def test_rust_use_mod_and_crate(self):
        content = "use std::io;\nmod parser;\nextern crate serde;\n"
        assert extract_dependencies(content, "rust") == ["std::io", "parser", "serde"]

    def test_c_include(self):
        content = '#include <stdio.h>\n#include "local.h"\n'
        assert extract_dependencies(content, "cpp") == ["stdio.h", "local.h"]

    def test_html_script_and_link(self):
        content = '<link rel="stylesheet" href="style.css">\n<script src="app.js"></script>\n'
        assert extract_dependencies(content, "html") == ["style.css", "app.js"]

    def test_css_import(self):
        assert extract_dependencies('@import "base.css";\n', "css") == ["base.css"]

    def test_duplicates_removed_in_order(self):
        content = "require('a');\nrequire('b');\nrequire('a');\n"
        assert extract_dependencies(content, "javascript") == ["a", "b"]

    def test_unknown_language_and_empty_content(self):
        assert extract_dependencies("import x", "text") == []
        assert extract_dependencies("", "python") == []


class TestExtractSymbols:
    """Tests for declared symbol extraction."""

    def test_javascript_function(self):
        assert extract_symbols("function foo(){}", "javascript") == ["foo"]

    def test_javascript_const_and_class(self):
        content = "const handler = () => 1;\nclass Widget {}\n"
        assert extract_symbols(content, "javascript") == ["handler", "Widget"]

    def test_python_skips_single_character_and_repeats(self):
        content = (
            "def foo():\n"
            "    pass\n"
            "class Bar:\n"
            "    def x(self): pass\n"
            "def foo(): pass\n"
        )
        assert extract_symbols(content, "python") == ["foo", "Bar"]

    def test_blank_content(self):
        assert extract_symbols("   \n", "python") == []

    def test_language_without_patterns(self):
        assert extract_symbols("hello world", "text") == []


class TestDependencyGraph:
    """Tests for inverse-edge derivation."""

    def _graph(self):
        graph = DependencyGraph(root="/p")
        graph.update_node("/p/lib.js", "javascript", [])
        graph.update_node("/p/app.js", "javascript", ["./lib.js"])
        graph.update_node("/p/src/util.py", "python", [])
        graph.update_node("/p/main.py", "python", ["src.util", "os"])
        graph.rebuild_inverse_edges()
        return graph

    def test_dependents_from_relative_path(self):
        graph = self._graph()
        assert graph.get("/p/lib.js").dependents == {"/p/app.js"}

    def test_dependents_from_dotted_module(self):
        graph = self._graph()
        assert graph.get("/p/src/util.py").dependents == {"/p/main.py"}

    def test_dependencies_of(self):
        graph = self._graph()
        assert graph.dependencies_of("/p/main.py") == ["/p/src/util.py"]

    def test_remove_node_drops_inverse_edges(self):
        graph = self._graph()
        graph.remove_node("/p/app.js")

        assert "/p/app.js" not in graph
        assert graph.get("/p/lib.js").dependents == set()

    def test_rebuild_is_idempotent(self):
        graph = self._graph()
        before = graph.to_dict()
        graph.rebuild_inverse_edges()
        assert graph.to_dict() == before

    def test_nodes_view_is_read_only(self):
        graph = self._graph()
        try:
            graph.nodes["/p/x"] = None
        except TypeError:
            pass
        assert "/p/x" not in graph

    def test_to_dict_sorted(self):
        graph = self._graph()
        data = graph.to_dict()
        assert list(data) == sorted(data)
        assert data["/p/app.js"]["references"] == ["./lib.js"]
