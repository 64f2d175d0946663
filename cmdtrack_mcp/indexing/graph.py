"""Dependency graph over tracked files.

Forward edges are the raw references extracted from each file. Inverse edges
("dependents") are derived by textual matching of those references against
file names and root-relative paths; they are recomputed in one pass after any
batch of forward-edge changes.
"""

import posixpath
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass
class DependencyGraphNode:
    """Graph node for one tracked file."""

    path: str
    language: str
    references: tuple[str, ...] = ()
    dependents: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "references": list(self.references),
            "dependents": sorted(self.dependents),
        }


def _reference_keys(reference: str) -> set[str]:
    """Candidate names a raw reference may point at.

    "./lib/utils.js" -> {"lib/utils.js", "lib/utils", "utils.js", "utils"}
    "pkg.sub.mod"   -> {"pkg.sub.mod", "pkg/sub/mod", "mod", ...}
    "crate::a::b"   -> {"crate/a/b", "b", ...}
    """
    # Leading "./", "../" and Python relative dots carry no matching information
    ref = reference.strip().replace("\\", "/").replace("::", "/").lstrip("./").rstrip("/")
    if not ref:
        return set()

    keys = {ref}
    tail = ref.rsplit("/", 1)[-1]
    keys.add(tail)
    stem, ext = posixpath.splitext(tail)
    if stem:
        keys.add(stem)
        if "/" in ref:
            keys.add(ref[: len(ref) - len(ext)] if ext else ref)
    if "/" not in ref and "." in ref:
        # Dotted module path (Python, Java, C#)
        dotted = ref.split(".")
        keys.add("/".join(dotted))
        keys.add(dotted[-1])
    return {key for key in keys if key}


class DependencyGraph:
    """Mapping of file path -> node, with derived inverse edges."""

    def __init__(self, root: str | None = None):
        self.root = root
        self._nodes: dict[str, DependencyGraphNode] = {}

    @property
    def nodes(self) -> MappingProxyType:
        """Read-only view of the nodes."""
        return MappingProxyType(self._nodes)

    def __contains__(self, path: str) -> bool:
        return path in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, path: str) -> DependencyGraphNode | None:
        return self._nodes.get(path)

    def update_node(self, path: str, language: str, references: list[str]) -> None:
        """Create or refresh a node's forward edges; dependents are kept until the next rebuild."""
        existing = self._nodes.get(path)
        dependents = existing.dependents if existing else set()
        self._nodes[path] = DependencyGraphNode(
            path=path,
            language=language,
            references=tuple(references),
            dependents=dependents,
        )

    def remove_node(self, path: str) -> None:
        self._nodes.pop(path, None)
        for node in self._nodes.values():
            node.dependents.discard(path)

    def clear(self) -> None:
        self._nodes.clear()

    def _relative(self, path: str) -> str:
        normalized = path.replace("\\", "/")
        if self.root:
            root = self.root.replace("\\", "/").rstrip("/") + "/"
            if normalized.startswith(root):
                return normalized[len(root):]
        return normalized.lstrip("/")

    def rebuild_inverse_edges(self) -> None:
        """Recompute every node's dependents from all nodes' references."""
        # Index each node under its name, stem and root-relative path (with and without extension)
        index: dict[str, set[str]] = defaultdict(set)
        for path in self._nodes:
            relative = self._relative(path)
            name = posixpath.basename(relative)
            stem, ext = posixpath.splitext(name)
            index[name].add(path)
            index[relative].add(path)
            if stem:
                index[stem].add(path)
            if ext:
                index[relative[: -len(ext)]].add(path)

        dependents: dict[str, set[str]] = {path: set() for path in self._nodes}
        for path, node in self._nodes.items():
            for reference in node.references:
                for key in _reference_keys(reference):
                    for target in index.get(key, ()):
                        if target != path:
                            dependents[target].add(path)

        for path, node in self._nodes.items():
            node.dependents = dependents[path]

    def dependencies_of(self, path: str) -> list[str]:
        """Paths this file appears to depend on (inverse of ``dependents``)."""
        return sorted(other for other, node in self._nodes.items() if path in node.dependents)

    def to_dict(self) -> dict[str, Any]:
        return {path: self._nodes[path].to_dict() for path in sorted(self._nodes)}
