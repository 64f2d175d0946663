"""Lexical extraction of dependency references and declared symbols.

Both extractors are best-effort: they run language-specific regular
expressions over raw content and never resolve a reference to a file.
False positives and misses are part of the contract.
"""

import re

# ============================================================================
# Compiled regex patterns for dependency references
# ============================================================================

_JS_IMPORT_PATTERNS = [
    # import x from 'y' / import {a, b} from "y" / import 'y'
    re.compile(r'\bimport\s+(?:type\s+)?(?:[\w*{}$\s,]+?\s+from\s+)?[\'"]([^\'"\n]+)[\'"]'),
    # export {a} from 'y' / export * from 'y'
    re.compile(r'\bexport\s+(?:type\s+)?[\w*{}$\s,]+?\s+from\s+[\'"]([^\'"\n]+)[\'"]'),
    # require('y')
    re.compile(r'\brequire\s*\(\s*[\'"]([^\'"\n]+)[\'"]\s*\)'),
    # import('y')
    re.compile(r'\bimport\s*\(\s*[\'"]([^\'"\n]+)[\'"]\s*\)'),
]

_PY_FROM_PATTERN = re.compile(r'^\s*from\s+(\.*[\w.]*)\s+import\s+\(?[ \t]*([\w \t,*]+)', re.MULTILINE)
_PY_IMPORT_PATTERN = re.compile(r'^\s*import\s+([\w.]+(?:\s+as\s+\w+)?(?:\s*,\s*[\w.]+(?:\s+as\s+\w+)?)*)', re.MULTILINE)

_GO_SINGLE_IMPORT = re.compile(r'^\s*import\s+(?:[\w.]+\s+)?"([^"]+)"', re.MULTILINE)
_GO_IMPORT_BLOCK = re.compile(r'^\s*import\s*\(([^)]*)\)', re.MULTILINE)
_GO_BLOCK_ENTRY = re.compile(r'"([^"]+)"')

DEPENDENCY_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "rust": [
        re.compile(r'^\s*(?:pub(?:\([\w:]+\))?\s+)?use\s+([\w:]+)', re.MULTILINE),
        re.compile(r'^\s*(?:pub(?:\([\w:]+\))?\s+)?mod\s+(\w+)\s*;', re.MULTILINE),
        re.compile(r'^\s*extern\s+crate\s+(\w+)', re.MULTILINE),
    ],
    "java": [re.compile(r'^\s*import\s+(?:static\s+)?([\w.]+(?:\.\*)?)\s*;', re.MULTILINE)],
    "kotlin": [re.compile(r'^\s*import\s+([\w.]+(?:\.\*)?)', re.MULTILINE)],
    "scala": [re.compile(r'^\s*import\s+([\w.]+)', re.MULTILINE)],
    "groovy": [re.compile(r'^\s*import\s+([\w.]+(?:\.\*)?)', re.MULTILINE)],
    "cpp": [re.compile(r'^\s*#\s*include\s*[<"]([^>"]+)[>"]', re.MULTILINE)],
    "csharp": [re.compile(r'^\s*using\s+(?:static\s+)?([\w.]+)\s*;', re.MULTILINE)],
    "ruby": [re.compile(r'\brequire(?:_relative)?\s*\(?\s*[\'"]([^\'"\n]+)[\'"]')],
    "php": [
        re.compile(r'\b(?:require|include)(?:_once)?\s*\(?\s*[\'"]([^\'"\n]+)[\'"]'),
        re.compile(r'^\s*use\s+([\w\\]+)', re.MULTILINE),
    ],
    "css": [re.compile(r'@import\s+(?:url\(\s*)?[\'"]?([^\'")\s;]+)')],
    "scss": [
        re.compile(r'@import\s+(?:url\(\s*)?[\'"]?([^\'")\s;]+)'),
        re.compile(r'@(?:use|forward)\s+[\'"]([^\'"\n]+)[\'"]'),
    ],
    "html": [
        re.compile(r'<script\b[^>]*\bsrc\s*=\s*[\'"]([^\'"]+)[\'"]', re.IGNORECASE),
        re.compile(r'<link\b[^>]*\bhref\s*=\s*[\'"]([^\'"]+)[\'"]', re.IGNORECASE),
    ],
    "shell": [re.compile(r'^\s*(?:source|\.)\s+[\'"]?([^\s\'";]+)', re.MULTILINE)],
    "swift": [re.compile(r'^\s*import\s+(\w+)', re.MULTILINE)],
    "dart": [re.compile(r'^\s*(?:import|export|part)\s+[\'"]([^\'"\n]+)[\'"]', re.MULTILINE)],
    "lua": [re.compile(r'\brequire\s*\(?\s*[\'"]([^\'"\n]+)[\'"]')],
    "elixir": [re.compile(r'^\s*(?:alias|import|use|require)\s+([\w.]+)', re.MULTILINE)],
    "perl": [re.compile(r'^\s*(?:use|require)\s+([\w:]+)', re.MULTILINE)],
}

DEPENDENCY_PATTERNS["javascript"] = _JS_IMPORT_PATTERNS
DEPENDENCY_PATTERNS["typescript"] = _JS_IMPORT_PATTERNS
DEPENDENCY_PATTERNS["vue"] = _JS_IMPORT_PATTERNS + DEPENDENCY_PATTERNS["html"]
DEPENDENCY_PATTERNS["svelte"] = _JS_IMPORT_PATTERNS + DEPENDENCY_PATTERNS["html"]

# ============================================================================
# Compiled regex patterns for declared symbols
# ============================================================================

_JS_SYMBOLS = [
    re.compile(r'\b(?:async\s+function\*?|function\*?|const|let|var)\s+([A-Za-z_$][\w$]*)\s*[=(]'),
    re.compile(r'\bclass\s+([A-Za-z_$][\w$]*)'),
]

_C_FAMILY_MODIFIERS = r'(?:(?:public|private|protected|internal|static|final|abstract|synchronized|virtual|override|async|sealed|inline|extern)\s+)*'

SYMBOL_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "javascript": _JS_SYMBOLS,
    "typescript": _JS_SYMBOLS + [re.compile(r'\b(?:interface|enum)\s+([A-Za-z_$][\w$]*)')],
    "python": [
        re.compile(r'^\s*(?:async\s+)?def\s+(\w+)\s*\(', re.MULTILINE),
        re.compile(r'^\s*class\s+(\w+)', re.MULTILINE),
    ],
    "java": [
        re.compile(r'^\s*' + _C_FAMILY_MODIFIERS + r'[\w<>\[\],.?]+\s+(\w+)\s*\([^)]*\)\s*(?:throws\s+[\w.,\s]+)?\{', re.MULTILINE),
        re.compile(r'\b(?:class|interface|enum|record)\s+(\w+)'),
    ],
    "csharp": [
        re.compile(r'^\s*' + _C_FAMILY_MODIFIERS + r'[\w<>\[\],.?]+\s+(\w+)\s*\([^)]*\)\s*\{', re.MULTILINE),
        re.compile(r'\b(?:class|interface|enum|struct|record)\s+(\w+)'),
    ],
    "cpp": [
        re.compile(r'^\s*(?:[\w:<>]+[\s*&]+)+(\w+)\s*\([^;{)]*\)\s*(?:const\s*)?\{', re.MULTILINE),
        re.compile(r'\b(?:class|struct)\s+(\w+)\s*[:{]'),
    ],
    "rust": [re.compile(r'\b(?:fn|struct|enum|trait)\s+(\w+)')],
    "go": [
        re.compile(r'\bfunc\s+(?:\([^)]*\)\s*)?(\w+)\s*[\[(]'),
        re.compile(r'\btype\s+(\w+)\s+(?:struct|interface)\b'),
    ],
    "php": [re.compile(r'\b(?:function|class|interface|trait)\s+(\w+)')],
    "ruby": [re.compile(r'^\s*(?:def\s+(?:self\.)?|class\s+|module\s+)(\w+[?!]?)', re.MULTILINE)],
    "kotlin": [
        re.compile(r'\bfun\s+(?:<[^>]*>\s*)?(?:[\w.]+\.)?(\w+)\s*\('),
        re.compile(r'\b(?:class|object|interface)\s+(\w+)'),
    ],
    "scala": [re.compile(r'\b(?:def|class|object|trait)\s+(\w+)')],
    "swift": [re.compile(r'\b(?:func|class|struct|enum|protocol)\s+(\w+)')],
    "shell": [
        re.compile(r'^\s*function\s+([A-Za-z_][\w-]*)', re.MULTILINE),
        re.compile(r'^\s*([A-Za-z_][\w-]*)\s*\(\)\s*\{', re.MULTILINE),
    ],
    "lua": [re.compile(r'\bfunction\s+(?:\w+[.:])*(\w+)\s*\(')],
    "elixir": [re.compile(r'^\s*(?:def|defp|defmacro|defmodule)\s+([\w.?!]+)', re.MULTILINE)],
}

# Words the looser patterns pick up as "names"
SYMBOL_STOPWORDS = {
    "if", "else", "for", "while", "switch", "catch", "return", "new", "do",
    "try", "sizeof", "typeof", "delete", "throw", "await", "yield",
}


def _dedupe(items: list[str]) -> list[str]:
    seen = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def _extract_python_dependencies(content: str) -> list[tuple[int, str]]:
    found = []
    for match in _PY_FROM_PATTERN.finditer(content):
        module = match.group(1)
        if module.strip("."):
            found.append((match.start(), module))
            continue
        # "from . import a, b" refers to sibling modules a and b
        for name in match.group(2).split(","):
            name = name.strip().split()[0] if name.strip() else ""
            if name and name != "*":
                found.append((match.start(), module + name))
    for match in _PY_IMPORT_PATTERN.finditer(content):
        for part in match.group(1).split(","):
            module = part.strip().split()[0]
            if module:
                found.append((match.start(), module))
    return found


def _extract_go_dependencies(content: str) -> list[tuple[int, str]]:
    found = [(m.start(), m.group(1)) for m in _GO_SINGLE_IMPORT.finditer(content)]
    for block in _GO_IMPORT_BLOCK.finditer(content):
        for entry in _GO_BLOCK_ENTRY.finditer(block.group(1)):
            found.append((block.start() + entry.start(), entry.group(1)))
    return found


def extract_dependencies(content: str, language: str) -> list[str]:
    """Return raw dependency references in order of appearance, deduplicated.

    Args:
        content: File content
        language: Language tag from the classifier

    Returns:
        Unresolved reference strings (module names or relative paths)
    """
    if not content:
        return []

    if language == "python":
        found = _extract_python_dependencies(content)
    elif language == "go":
        found = _extract_go_dependencies(content)
    else:
        found = []
        for pattern in DEPENDENCY_PATTERNS.get(language, []):
            found.extend((m.start(), m.group(1)) for m in pattern.finditer(content))

    found.sort(key=lambda item: item[0])
    return _dedupe([ref.strip() for _, ref in found if ref.strip()])


def extract_symbols(content: str, language: str) -> list[str]:
    """Return distinct declared function/class names in order of appearance.

    Single-character names and keywords picked up by the looser patterns are
    skipped.
    """
    if not content or not content.strip():
        return []

    found = []
    for pattern in SYMBOL_PATTERNS.get(language, []):
        found.extend((m.start(), m.group(1)) for m in pattern.finditer(content))
    found.sort(key=lambda item: item[0])

    return _dedupe([
        name for _, name in found
        if len(name) > 1 and name not in SYMBOL_STOPWORDS
    ])
