"""Content statistics used by the ``analyze-*`` commands."""

from typing import Any, Protocol, runtime_checkable

from ..indexing.extractor import extract_dependencies, extract_symbols


@runtime_checkable
class Analyzer(Protocol):
    """Produces a report about one file's content."""

    def analyze(self, path: str, content: str, language: str) -> dict[str, Any]: ...


class BasicAnalyzer:
    """Line/word counts plus the symbols and references the extractor finds."""

    def analyze(self, path: str, content: str, language: str) -> dict[str, Any]:
        lines = content.split("\n") if content else []
        symbols = extract_symbols(content, language)
        references = extract_dependencies(content, language)
        return {
            "path": path,
            "language": language,
            "lines": len(lines),
            "characters": len(content),
            "words": len(content.split()),
            "is_empty": not content.strip(),
            "blank_lines": sum(1 for line in lines if not line.strip()),
            "symbols": len(symbols),
            "imports": len(references),
        }
