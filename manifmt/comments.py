"""Recover comment blocks from manifest text.

This is a line-oriented heuristic rather than a TOML parser. Each key line is
associated with the run of ``#`` lines seen since the previous key line or
table header, qualified by the most recent ``[table]`` header. Keys inside
inline tables or multi-line arrays are not told apart from top-level keys.
"""

from __future__ import annotations

import re
from typing import Dict

_KEY_PREFIX = re.compile(r"[A-Za-z0-9_-]*")


def scan_comments(text: str) -> Dict[str, str]:
    """Map ``"<table>.<key>"`` to the comment block preceding that key."""
    comments: Dict[str, str] = {}
    current_table = ""
    pending = ""
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if line.startswith("[") and line.endswith("]"):
            current_table = line[1:-1]
            pending = ""
        elif line.startswith("#"):
            pending += line + "\n"
        elif line:
            key = _KEY_PREFIX.match(line).group(0)
            if key:
                comments[f"{current_table}.{key}"] = pending
            pending = ""
    return comments


__all__ = ["scan_comments"]
