"""Conventional defaults cargo applies when a manifest leaves them out."""

from __future__ import annotations

from typing import Dict, Tuple

from .models import TargetKind

MANIFEST_FILENAME = "Cargo.toml"
DEFAULT_README = "README.md"
DEFAULT_GIT_BRANCH = "master"
DEFAULT_EDITION = "2015"
DEFAULT_BUILD_SCRIPT = "build.rs"
WILDCARD_VERSION = "*"
METADATA_LINE_WIDTH = 100

# Paths a target may live at without an explicit `path` key. `{name}` is the
# target name.
STANDARD_PATHS: Dict[TargetKind, Tuple[str, ...]] = {
    TargetKind.LIB: ("src/lib.rs",),
    TargetKind.BIN: ("src/main.rs", "src/bin/{name}.rs", "src/bin/{name}/main.rs"),
    TargetKind.TEST: ("tests/{name}.rs", "tests/{name}/main.rs"),
    TargetKind.BENCH: ("benches/{name}.rs", "benches/{name}/main.rs"),
    TargetKind.EXAMPLE: ("examples/{name}.rs", "examples/{name}/main.rs"),
}

# Directory scanned for auto-discovered targets of each kind.
DISCOVERY_DIRS: Dict[TargetKind, str] = {
    TargetKind.BIN: "src/bin",
    TargetKind.TEST: "tests",
    TargetKind.BENCH: "benches",
    TargetKind.EXAMPLE: "examples",
}

# Section headers for each renderable target kind, in rendering order.
TARGET_HEADERS: Dict[TargetKind, str] = {
    TargetKind.LIB: "[lib]",
    TargetKind.BIN: "[[bin]]",
    TargetKind.EXAMPLE: "[[example]]",
    TargetKind.TEST: "[[test]]",
    TargetKind.BENCH: "[[bench]]",
}

# Manifest table holding explicit targets of each kind.
TARGET_TABLES: Dict[TargetKind, str] = {
    TargetKind.LIB: "lib",
    TargetKind.BIN: "bin",
    TargetKind.EXAMPLE: "example",
    TargetKind.TEST: "test",
    TargetKind.BENCH: "bench",
}

AUTO_FLAGS: Tuple[str, ...] = ("autobenches", "autobins", "autoexamples", "autotests")

AUTO_FLAG_BY_KIND: Dict[TargetKind, str] = {
    TargetKind.BIN: "autobins",
    TargetKind.TEST: "autotests",
    TargetKind.BENCH: "autobenches",
    TargetKind.EXAMPLE: "autoexamples",
}

PROC_MACRO = "proc-macro"

__all__ = [
    "AUTO_FLAGS",
    "AUTO_FLAG_BY_KIND",
    "DEFAULT_BUILD_SCRIPT",
    "DEFAULT_EDITION",
    "DEFAULT_GIT_BRANCH",
    "DEFAULT_README",
    "DISCOVERY_DIRS",
    "MANIFEST_FILENAME",
    "METADATA_LINE_WIDTH",
    "PROC_MACRO",
    "STANDARD_PATHS",
    "TARGET_HEADERS",
    "TARGET_TABLES",
    "WILDCARD_VERSION",
]
