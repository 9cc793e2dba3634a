"""Locate the root manifest and enumerate workspace members."""

from __future__ import annotations

import tomllib
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Dict, List, Optional

from .conventions import MANIFEST_FILENAME
from .loader import ManifestError
from .logging import get_logger

logger = get_logger("workspace")


def find_root_manifest(start: Path) -> Path:
    """Return the manifest governing ``start``.

    The outermost ancestor manifest with a ``[workspace]`` table wins; without
    one the nearest manifest is used.
    """
    start = start.expanduser().resolve()
    if start.is_file():
        start = start.parent

    nearest: Optional[Path] = None
    workspace_root: Optional[Path] = None
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_FILENAME
        if not candidate.is_file():
            continue
        if nearest is None:
            nearest = candidate
        if "workspace" in _read_table(candidate):
            workspace_root = candidate

    if workspace_root is not None:
        logger.debug("Using workspace manifest %s", workspace_root)
        return workspace_root
    if nearest is None:
        raise ManifestError(f"Could not find {MANIFEST_FILENAME} in {start} or any parent directory")
    return nearest


def workspace_members(root_manifest: Path) -> List[Path]:
    """List the manifests of every package in the workspace rooted at ``root_manifest``."""
    data = _read_table(root_manifest)
    root = root_manifest.parent
    members: List[Path] = []
    if isinstance(data.get("package"), dict):
        members.append(root_manifest)

    workspace = data.get("workspace")
    if not isinstance(workspace, dict):
        return members

    excluded = [pattern.rstrip("/") for pattern in _str_list(workspace.get("exclude"))]
    for pattern in _str_list(workspace.get("members")):
        for directory in _expand_member(root, pattern):
            manifest = directory / MANIFEST_FILENAME
            if not manifest.is_file() or manifest in members:
                continue
            relative = directory.relative_to(root).as_posix()
            if any(fnmatchcase(relative, item) for item in excluded):
                logger.debug("Skipping excluded workspace member %s", relative)
                continue
            members.append(manifest)
    return members


def _expand_member(root: Path, pattern: str) -> List[Path]:
    pattern = pattern.rstrip("/")
    if pattern in ("", "."):
        return [root]
    return sorted(root.glob(pattern))


def _read_table(path: Path) -> Dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Failed to parse {path}: {exc}") from exc


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


__all__ = ["find_root_manifest", "workspace_members"]
