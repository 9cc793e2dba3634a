"""Pipeline that canonicalizes manifests on disk."""

from __future__ import annotations

import difflib
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .comments import scan_comments
from .config import ManifmtConfig, load_config
from .loader import ManifestError, load_manifest
from .logging import get_logger, package_logger
from .render import render_to_string
from .workspace import find_root_manifest, workspace_members


@dataclass
class FormatOutcome:
    """Result of formatting a single manifest."""

    path: Path
    changed: bool
    diff: str
    written: bool = False


@dataclass
class FormatFailure:
    """A manifest that could not be formatted."""

    path: Path
    error: Exception


@dataclass
class WorkspaceReport:
    """Outcomes for every member of a workspace run."""

    outcomes: List[FormatOutcome] = field(default_factory=list)
    failures: List[FormatFailure] = field(default_factory=list)

    @property
    def changed(self) -> List[FormatOutcome]:
        return [outcome for outcome in self.outcomes if outcome.changed]


class ManifestFormatter:
    """Reads, canonicalizes and rewrites package manifests."""

    def __init__(self) -> None:
        self.logger = get_logger("formatter")

    def format_text(self, text: str, root: Path) -> str:
        """Return the canonical form of manifest ``text`` for the package at ``root``."""
        comments = scan_comments(text)
        manifest = load_manifest(text, root)
        return render_to_string(root, manifest, comments)

    def format_package(self, manifest_path: Path, *, check: bool = False) -> FormatOutcome:
        """Canonicalize one manifest, writing it back unless ``check`` is set."""
        manifest_path = manifest_path.resolve()
        root = manifest_path.parent
        log = package_logger(self.logger, root.name)
        original = manifest_path.read_text(encoding="utf-8")
        comments = scan_comments(original)
        log.debug("Recovered %d comment anchors from %s", len(comments), manifest_path)
        manifest = load_manifest(original, root, source=str(manifest_path))
        updated = render_to_string(root, manifest, comments)

        if updated == original:
            log.debug("%s already canonical", manifest_path)
            return FormatOutcome(path=manifest_path, changed=False, diff="")

        diff = self._render_diff(manifest_path, original, updated)
        if check:
            log.info("%s is not canonical", manifest_path)
            return FormatOutcome(path=manifest_path, changed=True, diff=diff)

        _write_atomic(manifest_path, updated)
        log.info("Formatted %s", manifest_path)
        return FormatOutcome(path=manifest_path, changed=True, diff=diff, written=True)

    def format_workspace(
        self,
        start: Path,
        *,
        check: bool = False,
        config: Optional[ManifmtConfig] = None,
    ) -> WorkspaceReport:
        """Canonicalize every member of the workspace containing ``start``."""
        root_manifest = find_root_manifest(start)
        if config is None:
            config = load_config(root_manifest.parent)
        check = check or config.check

        members = workspace_members(root_manifest)
        self.logger.debug("Found %d workspace member(s) under %s", len(members), root_manifest.parent)

        report = WorkspaceReport()
        for member in members:
            log = package_logger(self.logger, member.parent.name)
            if config.is_excluded(member.parent):
                log.info("Skipping excluded package %s", member.parent)
                continue
            try:
                outcome = self.format_package(member, check=check)
            except (ManifestError, OSError) as exc:
                log.error("Failed to format %s: %s", member, exc)
                report.failures.append(FormatFailure(path=member, error=exc))
                continue
            report.outcomes.append(outcome)
        return report

    @staticmethod
    def _render_diff(path: Path, original: str, updated: str) -> str:
        diff = difflib.unified_diff(
            original.splitlines(keepends=True),
            updated.splitlines(keepends=True),
            fromfile=f"{path} (original)",
            tofile=f"{path} (formatted)",
        )
        return "".join(diff)


def _write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` without leaving a partial file behind."""
    handle = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    )
    try:
        with handle:
            handle.write(content)
        shutil.copymode(path, handle.name)
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


__all__ = ["FormatFailure", "FormatOutcome", "ManifestFormatter", "WorkspaceReport"]
