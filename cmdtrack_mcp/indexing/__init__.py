"""Lexical indexing: dependency references, symbols and the dependency graph."""

from .extractor import extract_dependencies, extract_symbols
from .graph import DependencyGraph, DependencyGraphNode

__all__ = [
    "DependencyGraph",
    "DependencyGraphNode",
    "extract_dependencies",
    "extract_symbols",
]
