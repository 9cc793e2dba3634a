"""Decide which target fields are implied by cargo's conventions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import PurePath

from .conventions import STANDARD_PATHS
from .models import Target


@dataclass(frozen=True)
class Omissions:
    """Fields of a target block that can be left out."""

    name: bool
    path: bool


def rel_path(base: str | os.PathLike[str], path: str | os.PathLike[str]) -> str:
    """Express ``path`` relative to ``base`` using forward slashes."""
    relative = os.path.relpath(os.fspath(path), os.fspath(base))
    return PurePath(relative).as_posix()


def is_standard_path(target: Target, relative: str) -> bool:
    """Return True when ``relative`` is a conventional location for ``target``."""
    templates = STANDARD_PATHS.get(target.kind, ())
    return any(relative == template.format(name=target.name) for template in templates)


def is_package_lib_name(target: Target, package_name: str) -> bool:
    return target.is_lib and target.name in {package_name, package_name.replace("-", "_")}


def infer_omissions(target: Target, package_name: str, relative: str) -> Omissions:
    """Work out whether ``name`` and ``path`` are implied for ``target``."""
    return Omissions(
        name=is_package_lib_name(target, package_name),
        path=is_standard_path(target, relative),
    )


__all__ = ["Omissions", "infer_omissions", "is_package_lib_name", "is_standard_path", "rel_path"]
