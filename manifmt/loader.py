"""Build the structured manifest model from ``Cargo.toml`` text."""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .conventions import (
    AUTO_FLAG_BY_KIND,
    AUTO_FLAGS,
    DEFAULT_BUILD_SCRIPT,
    DEFAULT_EDITION,
    DEFAULT_README,
    DISCOVERY_DIRS,
    MANIFEST_FILENAME,
    PROC_MACRO,
    STANDARD_PATHS,
    TARGET_TABLES,
    WILDCARD_VERSION,
)
from .models import (
    DepKind,
    Dependency,
    GitReference,
    GitSource,
    Manifest,
    PathSource,
    RegistrySource,
    Source,
    Target,
    TargetKind,
)


class ManifestError(RuntimeError):
    """Raised when a manifest cannot be turned into the structured model."""


_DEPENDENCY_TABLES: Tuple[Tuple[DepKind, Tuple[str, ...]], ...] = (
    (DepKind.NORMAL, ("dependencies",)),
    (DepKind.DEVELOPMENT, ("dev-dependencies", "dev_dependencies")),
    (DepKind.BUILD, ("build-dependencies", "build_dependencies")),
)

_GIT_REFERENCE_KEYS = ("tag", "branch", "rev")
_WILDCARD_PART = re.compile(r"[*xX]")
_WHITESPACE = re.compile(r"\s+")


def read_manifest(path: Path) -> Tuple[str, Manifest]:
    """Read ``path`` and return its text together with the parsed model."""
    text = path.read_text(encoding="utf-8")
    return text, load_manifest(text, path.parent, source=str(path))


def load_manifest(
    text: str, root: str | os.PathLike[str], *, source: str = MANIFEST_FILENAME
) -> Manifest:
    """Parse manifest text for the package rooted at ``root``."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Failed to parse {source}: {exc}") from exc

    package = data.get("package", data.get("project"))
    if not isinstance(package, dict):
        raise ManifestError(f"{source} has no [package] table")

    reader = _TableReader(package, "package", source)
    root_path = os.path.abspath(os.fspath(root))
    name = reader.required_str("name")

    flags = {flag: reader.get_bool(flag, True) for flag in AUTO_FLAGS}
    targets = _load_targets(data, reader, root_path, name, flags, source)

    metadata = package.get("metadata")
    return Manifest(
        name=name,
        version=reader.get_str("version") or "0.0.0",
        edition=reader.get_str("edition") or DEFAULT_EDITION,
        description=reader.get_str("description"),
        authors=reader.get_str_list("authors"),
        keywords=reader.get_str_list("keywords"),
        categories=reader.get_str_list("categories"),
        license=reader.get_str("license"),
        license_file=reader.get_str("license-file"),
        readme=_readme(reader),
        homepage=reader.get_str("homepage"),
        repository=reader.get_str("repository"),
        documentation=reader.get_str("documentation"),
        exclude=reader.get_str_list("exclude"),
        include=reader.get_str_list("include"),
        links=reader.get_str("links"),
        publish=_publish(reader),
        default_run=reader.get_str("default-run"),
        targets=targets,
        dependencies=_load_dependencies(data, root_path, source),
        features=_load_features(data.get("features"), source),
        custom_metadata=metadata if isinstance(metadata, dict) else None,
        **flags,
    )


def normalize_version_req(requirement: str) -> str:
    """Spell a requirement the way cargo displays it.

    Bare versions become caret requirements and comparators are joined with
    ``", "``. An empty requirement is the wildcard.
    """
    parts = [_WHITESPACE.sub("", part) for part in requirement.split(",")]
    parts = [part for part in parts if part]
    if not parts:
        return WILDCARD_VERSION
    normalized = []
    for part in parts:
        if part[0].isdigit() and not _WILDCARD_PART.search(part):
            part = f"^{part}"
        normalized.append(part)
    return ", ".join(normalized)


class _TableReader:
    """Typed access to a manifest table with useful error messages."""

    def __init__(self, table: Dict[str, Any], name: str, source: str) -> None:
        self.table = table
        self.name = name
        self.source = source

    def get(self, key: str) -> Any:
        value = self.table.get(key)
        if isinstance(value, dict) and value.get("workspace") is True:
            raise ManifestError(
                f"{self.source}: {self.name}.{key} is inherited from the workspace, "
                "which is not supported"
            )
        return value

    def required_str(self, key: str) -> str:
        value = self.get_str(key)
        if value is None:
            raise ManifestError(f"{self.source}: {self.name}.{key} is required")
        return value

    def get_str(self, key: str) -> Optional[str]:
        value = self.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise self.type_error(key, "a string")
        return value

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise self.type_error(key, "a boolean")
        return value

    def get_str_list(self, key: str) -> List[str]:
        value = self.get(key)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise self.type_error(key, "an array of strings")
        return list(value)

    def type_error(self, key: str, expected: str) -> ManifestError:
        return ManifestError(f"{self.source}: {self.name}.{key} must be {expected}")


def _readme(reader: _TableReader) -> Optional[str]:
    value = reader.get("readme")
    if value is True:
        return DEFAULT_README
    if value is False:
        return None
    return reader.get_str("readme")


def _publish(reader: _TableReader) -> Optional[List[str]]:
    value = reader.get("publish")
    if value is None or value is True:
        return None
    if value is False:
        return []
    return reader.get_str_list("publish")


# Targets


def _load_targets(
    data: Dict[str, Any],
    reader: _TableReader,
    root: str,
    package_name: str,
    flags: Dict[str, bool],
    source: str,
) -> List[Target]:
    targets: List[Target] = []

    lib = _load_lib(data.get(TARGET_TABLES[TargetKind.LIB]), root, package_name, source)
    if lib is not None:
        targets.append(lib)

    for kind in (TargetKind.BIN, TargetKind.EXAMPLE, TargetKind.TEST, TargetKind.BENCH):
        targets.extend(
            _load_target_group(
                kind,
                data.get(TARGET_TABLES[kind]),
                root,
                package_name,
                autodiscover=flags[AUTO_FLAG_BY_KIND[kind]],
                source=source,
            )
        )

    build = reader.get("build")
    build_path: Optional[str] = None
    if isinstance(build, str):
        build_path = build
    elif build is None or build is True:
        if os.path.isfile(os.path.join(root, DEFAULT_BUILD_SCRIPT)):
            build_path = DEFAULT_BUILD_SCRIPT
    elif build is not False:
        raise ManifestError(f"{source}: package.build must be a string or a boolean")
    if build_path is not None:
        targets.append(
            Target(
                kind=TargetKind.CUSTOM_BUILD,
                name="build-script-build",
                src_path=_absolute(root, build_path),
            )
        )
    return targets


def _load_lib(
    table: Any, root: str, package_name: str, source: str
) -> Optional[Target]:
    default_name = package_name.replace("-", "_")
    if table is None:
        if not os.path.isfile(os.path.join(root, "src", "lib.rs")):
            return None
        return Target(
            kind=TargetKind.LIB,
            name=default_name,
            src_path=_absolute(root, STANDARD_PATHS[TargetKind.LIB][0]),
            crate_types=["lib"],
        )
    if not isinstance(table, dict):
        raise ManifestError(f"{source}: [lib] must be a table")

    reader = _TableReader(table, "lib", source)
    crate_types = _crate_types(reader)
    if reader.get_bool("proc-macro", False) or reader.get_bool("proc_macro", False):
        if PROC_MACRO not in crate_types:
            crate_types.append(PROC_MACRO)
    return Target(
        kind=TargetKind.LIB,
        name=reader.get_str("name") or default_name,
        src_path=_absolute(root, reader.get_str("path") or STANDARD_PATHS[TargetKind.LIB][0]),
        crate_types=crate_types or ["lib"],
        harness=reader.get_bool("harness", True),
        documented=reader.get_bool("doc", True),
    )


def _load_target_group(
    kind: TargetKind,
    entries: Any,
    root: str,
    package_name: str,
    *,
    autodiscover: bool,
    source: str,
) -> List[Target]:
    table_name = TARGET_TABLES[kind]
    if entries is None:
        entries = []
    if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
        raise ManifestError(f"{source}: [[{table_name}]] must be an array of tables")

    targets: List[Target] = []
    for entry in entries:
        reader = _TableReader(entry, table_name, source)
        name = reader.required_str("name")
        path = reader.get_str("path") or _infer_target_path(kind, name, root, package_name)
        targets.append(
            Target(
                kind=kind,
                name=name,
                src_path=_absolute(root, path),
                crate_types=_crate_types(reader) if kind is TargetKind.EXAMPLE else [],
                harness=reader.get_bool("harness", True),
                documented=reader.get_bool("doc", True),
            )
        )

    if autodiscover:
        names = {target.name for target in targets}
        paths = {target.src_path for target in targets}
        for name, path in _discover_targets(kind, root, package_name):
            src_path = _absolute(root, path)
            if name in names or src_path in paths:
                continue
            targets.append(Target(kind=kind, name=name, src_path=src_path))
            names.add(name)
            paths.add(src_path)
    return targets


def _crate_types(reader: _TableReader) -> List[str]:
    if reader.get("crate-type") is not None:
        return reader.get_str_list("crate-type")
    return reader.get_str_list("crate_type")


def _infer_target_path(kind: TargetKind, name: str, root: str, package_name: str) -> str:
    candidates = [template.format(name=name) for template in STANDARD_PATHS[kind]]
    if kind is TargetKind.BIN:
        main = candidates.pop(0)
        if name == package_name:
            candidates.insert(0, main)
    for candidate in candidates:
        if os.path.isfile(os.path.join(root, candidate)):
            return candidate
    return candidates[0]


def _discover_targets(
    kind: TargetKind, root: str, package_name: str
) -> Iterator[Tuple[str, str]]:
    if kind is TargetKind.BIN and os.path.isfile(os.path.join(root, "src", "main.rs")):
        yield package_name, "src/main.rs"

    directory = DISCOVERY_DIRS[kind]
    base = Path(root) / directory
    if not base.is_dir():
        return
    found: Dict[str, str] = {}
    for entry in sorted(base.iterdir(), key=lambda item: item.name):
        if entry.is_file() and entry.suffix == ".rs":
            found.setdefault(entry.stem, f"{directory}/{entry.name}")
        elif entry.is_dir() and (entry / "main.rs").is_file():
            found.setdefault(entry.name, f"{directory}/{entry.name}/main.rs")
    yield from sorted(found.items())


def _absolute(root: str, path: str) -> str:
    return os.path.normpath(os.path.join(root, path))


# Dependencies


def _load_dependencies(data: Dict[str, Any], root: str, source: str) -> List[Dependency]:
    dependencies = list(_load_dependency_tables(data, None, root, source))

    platforms = data.get("target")
    if platforms is None:
        return dependencies
    if not isinstance(platforms, dict):
        raise ManifestError(f"{source}: [target] must be a table")
    for platform, table in platforms.items():
        if not isinstance(table, dict):
            raise ManifestError(f"{source}: target.{platform} must be a table")
        dependencies.extend(_load_dependency_tables(table, platform, root, source))
    return dependencies


def _load_dependency_tables(
    data: Dict[str, Any], platform: Optional[str], root: str, source: str
) -> Iterable[Dependency]:
    for kind, keys in _DEPENDENCY_TABLES:
        for key in keys:
            table = data.get(key)
            if table is None:
                continue
            if not isinstance(table, dict):
                raise ManifestError(f"{source}: [{key}] must be a table")
            for name, spec in table.items():
                yield _load_dependency(name, spec, kind, platform, root, source)


def _load_dependency(
    name: str,
    spec: Any,
    kind: DepKind,
    platform: Optional[str],
    root: str,
    source: str,
) -> Dependency:
    if isinstance(spec, str):
        return Dependency(
            name_in_toml=name,
            version_req=normalize_version_req(spec),
            kind=kind,
            platform=platform,
        )
    if not isinstance(spec, dict):
        raise ManifestError(f"{source}: dependency {name} must be a string or a table")

    reader = _TableReader(spec, f"{kind.value}.{name}", source)
    if spec.get("workspace") is True:
        raise ManifestError(
            f"{source}: dependency {name} is inherited from the workspace, which is not supported"
        )

    default_features = reader.get("default-features")
    if default_features is None:
        default_features = reader.get_bool("default_features", True)
    elif not isinstance(default_features, bool):
        raise reader.type_error("default-features", "a boolean")

    version = reader.get_str("version")
    return Dependency(
        name_in_toml=name,
        package_name=reader.get_str("package") or name,
        version_req=normalize_version_req(version) if version is not None else WILDCARD_VERSION,
        source=_dependency_source(reader, root),
        kind=kind,
        platform=platform,
        default_features=default_features,
        features=reader.get_str_list("features"),
        optional=reader.get_bool("optional", False),
    )


def _dependency_source(reader: _TableReader, root: str) -> Source:
    path = reader.get_str("path")
    if path is not None:
        return PathSource(path=_absolute(root, path))
    git = reader.get_str("git")
    if git is not None:
        reference = GitReference()
        for key in _GIT_REFERENCE_KEYS:
            value = reader.get_str(key)
            if value is not None:
                reference = GitReference(kind=key, value=value)
                break
        return GitSource(url=git, reference=reference)
    return RegistrySource()


# Features


def _load_features(table: Any, source: str) -> Dict[str, List[str]]:
    if table is None:
        return {}
    if not isinstance(table, dict):
        raise ManifestError(f"{source}: [features] must be a table")
    reader = _TableReader(table, "features", source)
    return {name: reader.get_str_list(name) for name in sorted(table)}


__all__ = ["ManifestError", "load_manifest", "normalize_version_req", "read_manifest"]
