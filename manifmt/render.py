"""Canonical rendering of a structured manifest."""

from __future__ import annotations

import io
import os
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from .conventions import (
    AUTO_FLAGS,
    DEFAULT_BUILD_SCRIPT,
    DEFAULT_GIT_BRANCH,
    DEFAULT_README,
    METADATA_LINE_WIDTH,
    PROC_MACRO,
    TARGET_HEADERS,
    WILDCARD_VERSION,
)
from .inference import infer_omissions, rel_path
from .models import DepKind, Dependency, GitSource, Manifest, PathSource, Target, TargetKind
from .toml_format import flat_array, pretty_array, toml_key, toml_str, toml_value, toml_version

_DEP_PREFIX = "dep:"


class Writer(Protocol):
    def write(self, text: str) -> Any:
        ...


def render_to_string(
    base: str | os.PathLike[str],
    manifest: Manifest,
    comments: Optional[Mapping[str, str]] = None,
) -> str:
    """Render ``manifest`` into an in-memory buffer and return the text."""
    buffer = io.StringIO()
    render_manifest(buffer, base, manifest, comments or {})
    return buffer.getvalue()


def render_manifest(
    writer: Writer,
    base: str | os.PathLike[str],
    manifest: Manifest,
    comments: Mapping[str, str],
) -> None:
    """Write the canonical form of ``manifest`` to ``writer``.

    ``base`` is the package root; every path in the output is made relative
    to it. ``comments`` maps qualified keys (``"dependencies.serde"``) to the
    comment block to emit above that key. Errors raised by ``writer``
    propagate unchanged.
    """
    targets = _group_targets(manifest.targets)

    _render_package(writer, base, manifest, targets)

    if isinstance(manifest.custom_metadata, Mapping):
        _render_metadata(writer, "package.metadata", manifest.custom_metadata)

    for kind in TARGET_HEADERS:
        for target in targets.get(kind, []):
            _render_target(writer, base, manifest.name, target)

    for kind in DepKind:
        _render_dependency_groups(writer, base, manifest.dependencies, kind, comments)

    _render_features(writer, manifest.features, comments)


def _group_targets(targets: List[Target]) -> Dict[TargetKind, List[Target]]:
    grouped: Dict[TargetKind, List[Target]] = {}
    for target in targets:
        grouped.setdefault(target.kind, []).append(target)
    return grouped


def _render_package(
    writer: Writer,
    base: str | os.PathLike[str],
    manifest: Manifest,
    targets: Dict[TargetKind, List[Target]],
) -> None:
    writer.write("[package]\n")
    writer.write(f"name = {toml_str(manifest.name)}\n")
    if manifest.description is not None:
        writer.write(f"description = {toml_str(manifest.description)}\n")
    writer.write(f"version = {toml_str(manifest.version)}\n")
    for key, values in (
        ("authors", manifest.authors),
        ("keywords", manifest.keywords),
        ("categories", manifest.categories),
    ):
        if values:
            writer.write(f"{key} = {pretty_array(values)}\n")
    if manifest.license is not None:
        writer.write(f"license = {toml_str(manifest.license)}\n")
    if manifest.license_file is not None:
        writer.write(f"license-file = {toml_str(manifest.license_file)}\n")
    if manifest.readme is not None and manifest.readme != DEFAULT_README:
        writer.write(f"readme = {toml_str(manifest.readme)}\n")
    for key, value in (
        ("homepage", manifest.homepage),
        ("repository", manifest.repository),
        ("documentation", manifest.documentation),
    ):
        if value is not None:
            writer.write(f"{key} = {toml_str(value)}\n")
    if manifest.exclude:
        writer.write(f"exclude = {pretty_array(manifest.exclude)}\n")
    if manifest.include:
        writer.write(f"include = {pretty_array(manifest.include)}\n")
    if manifest.links is not None:
        writer.write(f"links = {toml_str(manifest.links)}\n")
    writer.write(f"edition = {toml_str(manifest.edition)}\n")
    if manifest.publish is not None:
        if manifest.publish:
            writer.write(f"publish = {pretty_array(manifest.publish)}\n")
        else:
            writer.write("publish = false\n")
    if manifest.default_run is not None:
        writer.write(f"default-run = {toml_str(manifest.default_run)}\n")
    for flag in AUTO_FLAGS:
        if not getattr(manifest, flag):
            writer.write(f"{flag} = false\n")

    build_scripts = targets.get(TargetKind.CUSTOM_BUILD)
    if build_scripts:
        relative = rel_path(base, build_scripts[0].src_path)
        if relative != DEFAULT_BUILD_SCRIPT:
            writer.write(f"build = {toml_str(relative)}\n")


def _render_metadata(writer: Writer, prefix: str, table: Mapping[str, Any]) -> None:
    entries = io.StringIO()
    nested = io.StringIO()

    for key, value in table.items():
        if isinstance(value, Mapping):
            _render_metadata(nested, f"{prefix}.{toml_key(key)}", value)
        elif isinstance(value, (list, tuple)):
            line = f"{toml_key(key)} = {flat_array(value)}"
            if len(line) > METADATA_LINE_WIDTH:
                line = f"{toml_key(key)} = {pretty_array(value)}"
            entries.write(line + "\n")
        else:
            entries.write(f"{toml_key(key)} = {toml_value(value)}\n")

    if entries.getvalue():
        writer.write(f"\n[{prefix}]\n")
        writer.write(entries.getvalue())
    writer.write(nested.getvalue())


def _render_target(
    writer: Writer, base: str | os.PathLike[str], package_name: str, target: Target
) -> None:
    relative = rel_path(base, target.src_path)
    omit = infer_omissions(target, package_name, relative)

    body: List[str] = []
    if target.is_lib and PROC_MACRO in target.crate_types:
        body.append("proc-macro = true")
    if not omit.path:
        body.append(f"path = {toml_str(relative)}")
    if not target.harness:
        body.append("harness = false")
    if target.is_lib and not target.documented:
        body.append("doc = false")
    if not body:
        return

    writer.write(f"\n{TARGET_HEADERS[target.kind]}\n")
    if not omit.name:
        writer.write(f"name = {toml_str(target.name)}\n")
    for line in body:
        writer.write(line + "\n")


def _render_dependency_groups(
    writer: Writer,
    base: str | os.PathLike[str],
    dependencies: List[Dependency],
    kind: DepKind,
    comments: Mapping[str, str],
) -> None:
    groups: Dict[Optional[str], List[Dependency]] = {}
    for dep in dependencies:
        if dep.kind is kind:
            groups.setdefault(dep.platform, []).append(dep)

    for platform in sorted(groups, key=_platform_order):
        tables = _dependency_tables(kind, platform)
        writer.write(f"\n[{tables[0]}]\n")
        for dep in sorted(groups[platform], key=lambda item: item.name_in_toml):
            writer.write(_recovered_comment(comments, tables, dep.name_in_toml))
            writer.write(f"{toml_key(dep.name_in_toml)} = {_dependency_value(base, dep)}\n")


def _platform_order(platform: Optional[str]) -> Tuple[bool, bool, str]:
    # No platform first, then target triples, then cfg() expressions.
    if platform is None:
        return (False, False, "")
    return (True, platform.startswith("cfg("), platform)


def _dependency_tables(kind: DepKind, platform: Optional[str]) -> List[str]:
    """Spellings of a dependency table header, canonical first."""
    sections = [kind.value]
    if "-" in kind.value:
        sections.append(kind.value.replace("-", "_"))
    if platform is None:
        return sections
    prefixes = [toml_str(platform), f"'{platform}'", f'"{platform}"', platform]
    return [f"target.{prefix}.{section}" for section in sections for prefix in prefixes]


def _recovered_comment(comments: Mapping[str, str], tables: List[str], key: str) -> str:
    for table in tables:
        comment = comments.get(f"{table}.{key}")
        if comment is not None:
            return comment
    return ""


def _dependency_value(base: str | os.PathLike[str], dep: Dependency) -> str:
    fields: List[Tuple[str, str]] = []
    if dep.is_renamed:
        fields.append(("package", toml_str(dep.package_name or dep.name_in_toml)))

    source = dep.source
    if isinstance(source, PathSource):
        fields.append(("path", toml_str(rel_path(base, source.path))))
    elif isinstance(source, GitSource):
        fields.append(("git", toml_str(source.url)))
        reference = source.reference
        if reference.kind in ("tag", "rev") and reference.value:
            fields.append((reference.kind, toml_str(reference.value)))
        elif reference.kind == "branch" and reference.value not in (None, DEFAULT_GIT_BRANCH):
            fields.append(("branch", toml_str(reference.value)))

    flags: List[Tuple[str, str]] = []
    if not dep.default_features:
        flags.append(("default-features", "false"))
    if dep.features:
        flags.append(("features", flat_array(dep.features)))
    if dep.optional:
        flags.append(("optional", "true"))

    if not fields and not flags:
        return toml_version(dep.version_req)

    if dep.version_req != WILDCARD_VERSION:
        fields.append(("version", toml_version(dep.version_req)))
    fields.extend(flags)
    return "{ " + ", ".join(f"{key} = {value}" for key, value in fields) + " }"


def _render_features(
    writer: Writer, features: Mapping[str, List[str]], comments: Mapping[str, str]
) -> None:
    if not features:
        return
    writer.write("\n[features]\n")
    for name, specs in features.items():
        value = [spec[len(_DEP_PREFIX):] if spec.startswith(_DEP_PREFIX) else spec for spec in specs]
        writer.write(comments.get(f"features.{name}", ""))
        writer.write(f"{toml_key(name)} = {flat_array(value)}\n")


__all__ = ["Writer", "render_manifest", "render_to_string"]
