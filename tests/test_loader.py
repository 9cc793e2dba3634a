"""Tests for manifmt.loader."""

from __future__ import annotations

import pytest

from manifmt.loader import ManifestError, load_manifest, normalize_version_req
from manifmt.models import DepKind, GitReference, GitSource, PathSource, RegistrySource, TargetKind
from tests._fixtures.crate_builder import CrateBuilder


@pytest.mark.parametrize(
    ("requirement", "expected"),
    [
        ("1.0", "^1.0"),
        ("  2 ", "^2"),
        ("^0.4.1", "^0.4.1"),
        (">= 1.0, < 2.0", ">=1.0, <2.0"),
        ("~1.2", "~1.2"),
        ("=1.2.3", "=1.2.3"),
        ("1.*", "1.*"),
        ("*", "*"),
        ("", "*"),
    ],
)
def test_normalize_version_req(requirement: str, expected: str) -> None:
    assert normalize_version_req(requirement) == expected


def test_package_fields(crate_builder: CrateBuilder) -> None:
    crate_builder.write(
        {
            "Cargo.toml": """
            [package]
            name = "demo"
            version = "0.2.0"
            authors = ["A <a@example.com>"]
            description = "Demo crate"
            license = "MIT"
            readme = true
            publish = false
            autobins = false
            default-run = "demo"

            [package.metadata.docs.rs]
            all-features = true
            """,
        }
    )

    manifest = crate_builder.load()

    assert manifest.name == "demo"
    assert manifest.version == "0.2.0"
    assert manifest.edition == "2015"
    assert manifest.authors == ["A <a@example.com>"]
    assert manifest.description == "Demo crate"
    assert manifest.readme == "README.md"
    assert manifest.publish == []
    assert manifest.autobins is False
    assert manifest.autotests is True
    assert manifest.default_run == "demo"
    assert manifest.custom_metadata == {"docs": {"rs": {"all-features": True}}}


def test_publish_registries_and_unrestricted(crate_builder: CrateBuilder) -> None:
    root = crate_builder.path()
    restricted = load_manifest('[package]\nname = "a"\nversion = "1.0.0"\npublish = ["corp"]\n', root)
    assert restricted.publish == ["corp"]
    open_ = load_manifest('[package]\nname = "a"\nversion = "1.0.0"\npublish = true\n', root)
    assert open_.publish is None


def test_auto_discovered_targets(crate_builder: CrateBuilder) -> None:
    crate_builder.write(
        {
            "Cargo.toml": """
            [package]
            name = "my-tool"
            version = "0.1.0"
            edition = "2021"
            """,
            "src/lib.rs": "",
            "src/main.rs": "fn main() {}\n",
            "src/bin/extra.rs": "fn main() {}\n",
            "src/bin/multi/main.rs": "fn main() {}\n",
            "examples/demo.rs": "fn main() {}\n",
            "tests/smoke.rs": "",
            "benches/speed/main.rs": "",
            "build.rs": "fn main() {}\n",
        }
    )

    manifest = crate_builder.load()
    root = crate_builder.path()
    found = [(target.kind, target.name, target.src_path) for target in manifest.targets]

    assert found == [
        (TargetKind.LIB, "my_tool", str(root / "src/lib.rs")),
        (TargetKind.BIN, "my-tool", str(root / "src/main.rs")),
        (TargetKind.BIN, "extra", str(root / "src/bin/extra.rs")),
        (TargetKind.BIN, "multi", str(root / "src/bin/multi/main.rs")),
        (TargetKind.EXAMPLE, "demo", str(root / "examples/demo.rs")),
        (TargetKind.TEST, "smoke", str(root / "tests/smoke.rs")),
        (TargetKind.BENCH, "speed", str(root / "benches/speed/main.rs")),
        (TargetKind.CUSTOM_BUILD, "build-script-build", str(root / "build.rs")),
    ]


def test_explicit_targets_take_precedence(crate_builder: CrateBuilder) -> None:
    crate_builder.write(
        {
            "Cargo.toml": """
            [package]
            name = "demo"
            version = "0.1.0"
            autoexamples = false
            build = false

            [lib]
            name = "demo_macros"
            path = "macros/lib.rs"
            proc-macro = true
            doc = false

            [[bin]]
            name = "cli"
            path = "tools/cli.rs"
            harness = false

            [[test]]
            name = "smoke"
            """,
            "src/bin/cli.rs": "",
            "examples/ignored.rs": "",
            "tests/smoke/main.rs": "",
            "build.rs": "",
        }
    )

    manifest = crate_builder.load()
    root = crate_builder.path()
    lib = manifest.targets[0]

    assert lib.kind is TargetKind.LIB
    assert lib.name == "demo_macros"
    assert lib.crate_types == ["proc-macro"]
    assert lib.documented is False
    assert lib.src_path == str(root / "macros/lib.rs")

    bins = [target for target in manifest.targets if target.kind is TargetKind.BIN]
    assert [(target.name, target.src_path, target.harness) for target in bins] == [
        ("cli", str(root / "tools/cli.rs"), False),
    ]
    tests = [target for target in manifest.targets if target.kind is TargetKind.TEST]
    assert [target.src_path for target in tests] == [str(root / "tests/smoke/main.rs")]
    assert not any(target.kind is TargetKind.EXAMPLE for target in manifest.targets)
    assert not any(target.kind is TargetKind.CUSTOM_BUILD for target in manifest.targets)


def test_dependencies(crate_builder: CrateBuilder) -> None:
    crate_builder.write(
        {
            "Cargo.toml": """
            [package]
            name = "demo"
            version = "0.1.0"

            [dependencies]
            log = "0.4"
            json = { package = "serde_json", version = "1", default-features = false, features = ["std"], optional = true }
            util = { path = "../util" }
            remote = { git = "https://example.com/remote", branch = "next" }

            [dev_dependencies]
            tempfile = "3"

            [build-dependencies]
            cc = { version = "1.0", default_features = false }

            [target.'cfg(unix)'.dependencies]
            libc = "0.2"
            """,
        }
    )

    manifest = crate_builder.load()
    deps = {(dep.kind, dep.platform, dep.name_in_toml): dep for dep in manifest.dependencies}

    log = deps[(DepKind.NORMAL, None, "log")]
    assert log.version_req == "^0.4"
    assert isinstance(log.source, RegistrySource)

    json = deps[(DepKind.NORMAL, None, "json")]
    assert json.package_name == "serde_json"
    assert json.is_renamed
    assert json.default_features is False
    assert json.features == ["std"]
    assert json.optional is True

    util = deps[(DepKind.NORMAL, None, "util")]
    assert util.source == PathSource(str(crate_builder.path().parent / "util"))
    assert util.version_req == "*"

    remote = deps[(DepKind.NORMAL, None, "remote")]
    assert remote.source == GitSource("https://example.com/remote", GitReference("branch", "next"))

    assert deps[(DepKind.DEVELOPMENT, None, "tempfile")].version_req == "^3"
    assert deps[(DepKind.BUILD, None, "cc")].default_features is False
    assert deps[(DepKind.NORMAL, "cfg(unix)", "libc")].version_req == "^0.2"


def test_features_are_sorted_by_name(crate_builder: CrateBuilder) -> None:
    crate_builder.write(
        {
            "Cargo.toml": """
            [package]
            name = "demo"
            version = "0.1.0"

            [features]
            std = []
            default = ["std"]
            serde = ["dep:serde"]
            """,
        }
    )
    features = crate_builder.load().features
    assert list(features) == ["default", "serde", "std"]
    assert features["serde"] == ["dep:serde"]


@pytest.mark.parametrize(
    "text",
    [
        "this is not toml",
        '[workspace]\nmembers = ["a"]\n',
        '[package]\nversion = "1.0.0"\n',
        '[package]\nname = "a"\nversion.workspace = true\n',
        '[package]\nname = "a"\n[dependencies]\nlog = { workspace = true }\n',
        '[package]\nname = "a"\nauthors = "me"\n',
        '[package]\nname = "a"\n[dependencies]\nlog = 1\n',
        '[package]\nname = "a"\n[[bin]]\npath = "src/x.rs"\n',
    ],
)
def test_invalid_manifests_raise(crate_builder: CrateBuilder, text: str) -> None:
    with pytest.raises(ManifestError):
        load_manifest(text, crate_builder.path())
