"""Language classification for tracked files.

The engine accepts any object with a ``classify(path, content)`` method; the
default ``ExtensionClassifier`` looks at well-known file names first, then the
extension, then a shebang line, and falls back to ``"text"``.
"""

import posixpath
import re
from typing import Protocol, runtime_checkable


@runtime_checkable
class Classifier(Protocol):
    """Maps a (path, content) pair to a language tag."""

    def classify(self, path: str, content: str) -> str: ...


SPECIAL_FILENAMES = {
    "package.json": "nodejs",
    "dockerfile": "docker",
    "makefile": "make",
    "gnumakefile": "make",
    "cmakelists.txt": "cmake",
    ".gitignore": "config",
    ".env": "config",
    "gemfile": "ruby",
    "rakefile": "ruby",
}

EXTENSION_LANGUAGES = {
    # JavaScript/TypeScript
    "js": "javascript", "mjs": "javascript", "cjs": "javascript", "jsx": "javascript",
    "ts": "typescript", "tsx": "typescript", "mts": "typescript", "cts": "typescript",
    # Python
    "py": "python", "pyw": "python", "pyi": "python",
    # Web
    "html": "html", "htm": "html", "xhtml": "html",
    "css": "css", "scss": "scss", "sass": "scss", "less": "css",
    "vue": "vue", "svelte": "svelte",
    # JVM
    "java": "java", "kt": "kotlin", "kts": "kotlin", "scala": "scala", "groovy": "groovy",
    # Systems
    "c": "cpp", "h": "cpp", "cpp": "cpp", "cxx": "cpp", "cc": "cpp", "hpp": "cpp", "hxx": "cpp", "hh": "cpp",
    "rs": "rust", "go": "go", "swift": "swift", "zig": "zig",
    # .NET
    "cs": "csharp", "fs": "fsharp", "fsx": "fsharp",
    # Scripting
    "rb": "ruby", "rake": "ruby", "php": "php", "pl": "perl", "pm": "perl", "lua": "lua",
    "r": "r", "jl": "julia", "ex": "elixir", "exs": "elixir", "erl": "erlang", "hs": "haskell",
    "dart": "dart", "clj": "clojure", "cljs": "clojure",
    # Shell
    "sh": "shell", "bash": "shell", "zsh": "shell", "fish": "shell",
    "ps1": "powershell", "psm1": "powershell", "bat": "batch", "cmd": "batch",
    # Data and config
    "json": "json", "yaml": "yaml", "yml": "yaml", "toml": "toml", "xml": "xml",
    "ini": "ini", "cfg": "ini", "conf": "ini", "sql": "sql", "proto": "protobuf",
    "graphql": "graphql", "gql": "graphql", "tf": "terraform", "tfvars": "terraform",
    # Documents
    "md": "markdown", "markdown": "markdown", "rst": "text", "txt": "text", "log": "text",
}

SHEBANG_PATTERN = re.compile(r'^#!\s*\S*?(?:/env\s+)?(?:\S*/)?(python|node|bash|zsh|sh|ruby|perl)')

SHEBANG_LANGUAGES = {
    "python": "python",
    "node": "javascript",
    "bash": "shell",
    "sh": "shell",
    "zsh": "shell",
    "ruby": "ruby",
    "perl": "perl",
}


class ExtensionClassifier:
    """Default classifier: file name, extension, shebang, then plain text."""

    def __init__(self, extra_extensions: dict[str, str] | None = None):
        self.extensions = dict(EXTENSION_LANGUAGES)
        if extra_extensions:
            self.extensions.update({k.lower().lstrip("."): v for k, v in extra_extensions.items()})

    def classify(self, path: str, content: str) -> str:
        name = posixpath.basename(path.replace("\\", "/"))
        lowered = name.lower()

        if lowered in SPECIAL_FILENAMES:
            return SPECIAL_FILENAMES[lowered]

        _, ext = posixpath.splitext(lowered)
        ext = ext.lstrip(".")
        if ext in self.extensions:
            return self.extensions[ext]

        if content:
            match = SHEBANG_PATTERN.match(content)
            if match:
                return SHEBANG_LANGUAGES[match.group(1)]

        return "text"
