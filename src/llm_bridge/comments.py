"""Comment formatting for text inserted into source files."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

PLAIN_FILETYPES = frozenset({"", "markdown", "text"})
DEFAULT_COMMENTSTRING = "# %s"

_COMMENTSTRINGS: dict[str, str] = {
    "c": "/* %s */",
    "cpp": "// %s",
    "css": "/* %s */",
    "go": "// %s",
    "html": "<!-- %s -->",
    "java": "// %s",
    "javascript": "// %s",
    "lua": "-- %s",
    "python": "# %s",
    "rust": "// %s",
    "sh": "# %s",
    "sql": "-- %s",
    "toml": "# %s",
    "typescript": "// %s",
    "vim": '" %s',
    "yaml": "# %s",
}

_SUFFIX_FILETYPES: dict[str, str] = {
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".css": "css",
    ".go": "go",
    ".html": "html",
    ".java": "java",
    ".js": "javascript",
    ".lua": "lua",
    ".md": "markdown",
    ".markdown": "markdown",
    ".py": "python",
    ".rs": "rust",
    ".sh": "sh",
    ".sql": "sql",
    ".toml": "toml",
    ".ts": "typescript",
    ".txt": "text",
    ".vim": "vim",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def needs_commenting(filetype: str) -> bool:
    """Return True when inserted text must be wrapped in comments."""

    return filetype not in PLAIN_FILETYPES


def commentstring_for(filetype: str) -> str:
    return _COMMENTSTRINGS.get(filetype, DEFAULT_COMMENTSTRING)


def filetype_for_path(path: str | Path) -> str:
    """Guess a filetype from a file suffix; unknown suffixes give ``""``."""

    return _SUFFIX_FILETYPES.get(Path(path).suffix.lower(), "")


def format_as_comments(lines: Sequence[str], commentstring: str) -> list[str]:
    """Wrap each line using a ``%s`` template such as ``"# %s"``.

    A template without ``%s`` is treated as a prefix.
    """

    if "%s" not in commentstring:
        prefix = commentstring if commentstring.endswith(" ") else f"{commentstring} "
        return [f"{prefix}{line}" for line in lines]
    return [commentstring.replace("%s", line, 1) for line in lines]
