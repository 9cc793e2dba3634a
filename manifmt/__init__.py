"""Canonical formatting for Cargo package manifests."""

from .comments import scan_comments
from .loader import ManifestError, load_manifest
from .models import DepKind, Dependency, Manifest, Target, TargetKind
from .render import render_manifest, render_to_string

__all__ = [
    "DepKind",
    "Dependency",
    "Manifest",
    "ManifestError",
    "Target",
    "TargetKind",
    "load_manifest",
    "render_manifest",
    "render_to_string",
    "scan_comments",
]
