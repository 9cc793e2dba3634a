"""Spelling of individual TOML values in canonical output."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from typing import Any, Iterable, List, Mapping

_ESCAPES = {
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
    '"': '\\"',
    "\\": "\\\\",
}

_BARE_KEY = re.compile(r"[A-Za-z0-9_-]+")
_CARET_VERSION = re.compile(r"\^(?P<major>[0-9]+)(?:\.(?P<minor>[0-9]+)(?:\.(?P<patch>[0-9]+))?)?")


def toml_str(value: str) -> str:
    """Quote a string, preferring a literal string when that avoids escapes."""
    if '"' in value and "'" not in value:
        return f"'{value}'"

    parts: List[str] = ['"']
    for char in value:
        escaped = _ESCAPES.get(char)
        if escaped is not None:
            parts.append(escaped)
        elif char < "\u001f":
            parts.append(f"\\u{ord(char):04X}")
        else:
            parts.append(char)
    parts.append('"')
    return "".join(parts)


def toml_key(key: str) -> str:
    """Spell a table key, quoting it when it is not a bare key."""
    if _BARE_KEY.fullmatch(key):
        return key
    return toml_str(key)


def toml_version(requirement: str) -> str:
    """Spell a version requirement, expanding simple caret requirements."""
    match = _CARET_VERSION.fullmatch(requirement)
    if match is None:
        return toml_str(requirement)
    major = match.group("major")
    minor = match.group("minor") or "0"
    patch = match.group("patch") or "0"
    return f'"{major}.{minor}.{patch}"'


def toml_value(value: Any) -> str:
    """Spell any metadata value inline."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return toml_str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        fields = ", ".join(f"{toml_key(key)} = {toml_value(item)}" for key, item in value.items())
        return f"{{ {fields} }}"
    if isinstance(value, (list, tuple)):
        return flat_array(value)
    raise TypeError(f"Cannot render {type(value).__name__} as a TOML value")


def flat_array(values: Iterable[Any]) -> str:
    """Render ``[a, b, c]`` on a single line."""
    return "[" + ", ".join(toml_value(value) for value in values) + "]"


def pretty_array(values: Iterable[Any]) -> str:
    """Render one element per line when there is more than one element."""
    items = [toml_value(value) for value in values]
    if len(items) <= 1:
        return "[" + "".join(items) + "]"
    body = "".join(f"    {item},\n" for item in items)
    return f"[\n{body}]"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(value)


__all__ = [
    "flat_array",
    "pretty_array",
    "toml_key",
    "toml_str",
    "toml_value",
    "toml_version",
]
