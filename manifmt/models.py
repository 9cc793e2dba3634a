"""Core data models describing a package manifest."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class TargetKind(str, Enum):
    """Build artifact kinds a manifest can declare."""

    LIB = "lib"
    BIN = "bin"
    TEST = "test"
    BENCH = "bench"
    EXAMPLE = "example"
    CUSTOM_BUILD = "custom-build"


class DepKind(str, Enum):
    """Dependency groups, in rendering order."""

    NORMAL = "dependencies"
    DEVELOPMENT = "dev-dependencies"
    BUILD = "build-dependencies"


@dataclass
class Target:
    """One build artifact of a package."""

    kind: TargetKind
    name: str
    src_path: str
    crate_types: List[str] = field(default_factory=list)
    harness: bool = True
    documented: bool = True

    @property
    def is_lib(self) -> bool:
        return self.kind is TargetKind.LIB


@dataclass(frozen=True)
class GitReference:
    """Which commit of a git source to use."""

    kind: str = "default"
    value: Optional[str] = None


@dataclass(frozen=True)
class RegistrySource:
    """Dependency fetched from the package registry."""


@dataclass(frozen=True)
class PathSource:
    """Dependency living at an absolute path on disk."""

    path: str


@dataclass(frozen=True)
class GitSource:
    """Dependency fetched from a git repository."""

    url: str
    reference: GitReference = field(default_factory=GitReference)


Source = Union[RegistrySource, PathSource, GitSource]


@dataclass
class Dependency:
    """A package the manifest depends on."""

    name_in_toml: str
    version_req: str = "*"
    package_name: Optional[str] = None
    source: Source = field(default_factory=RegistrySource)
    kind: DepKind = DepKind.NORMAL
    platform: Optional[str] = None
    default_features: bool = True
    features: List[str] = field(default_factory=list)
    optional: bool = False

    def __post_init__(self) -> None:
        if self.package_name is None:
            self.package_name = self.name_in_toml

    @property
    def is_renamed(self) -> bool:
        return self.package_name != self.name_in_toml


@dataclass
class Manifest:
    """Structured description of a single package."""

    name: str
    version: str
    edition: str = "2015"
    description: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    license: Optional[str] = None
    license_file: Optional[str] = None
    readme: Optional[str] = None
    homepage: Optional[str] = None
    repository: Optional[str] = None
    documentation: Optional[str] = None
    exclude: List[str] = field(default_factory=list)
    include: List[str] = field(default_factory=list)
    links: Optional[str] = None
    publish: Optional[List[str]] = None
    default_run: Optional[str] = None
    autobenches: bool = True
    autobins: bool = True
    autoexamples: bool = True
    autotests: bool = True
    targets: List[Target] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)
    features: Dict[str, List[str]] = field(default_factory=dict)
    custom_metadata: Optional[Dict[str, Any]] = None
