"""
Core data models for monorepo dependency analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Generic, List, Optional, Tuple, TypeVar


T = TypeVar("T")


class ProjectType(str, Enum):
    APPLICATION = "application"
    LIBRARY = "library"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ProjectType":
        """Map the loose type tags used by workspace tools onto the enum."""
        if not value:
            return cls.UNKNOWN
        value = value.lower()
        if value in ("application", "app"):
            return cls.APPLICATION
        if value in ("library", "lib"):
            return cls.LIBRARY
        return cls.UNKNOWN


class DependencyKind(str, Enum):
    PRODUCTION = "production"
    DEV = "dev"
    PEER = "peer"

    @property
    def manifest_key(self) -> str:
        return MANIFEST_KEYS[self]

    @property
    def label(self) -> str:
        """Name used for this kind in query results."""
        return KIND_LABELS[self]


MANIFEST_KEYS = {
    DependencyKind.PRODUCTION: "dependencies",
    DependencyKind.DEV: "devDependencies",
    DependencyKind.PEER: "peerDependencies",
}

KIND_LABELS = {
    DependencyKind.PRODUCTION: "dependency",
    DependencyKind.DEV: "devDependency",
    DependencyKind.PEER: "peerDependency",
}


@dataclass(frozen=True)
class Project:
    """A project discovered in the repository."""

    name: str
    root: Path
    type: ProjectType = ProjectType.UNKNOWN
    package_name: Optional[str] = None

    @property
    def aliases(self) -> FrozenSet[str]:
        """Names other manifests may use to refer to this project."""
        if self.package_name and self.package_name != self.name:
            return frozenset((self.name, self.package_name))
        return frozenset((self.name,))


@dataclass(frozen=True)
class Manifest:
    """Parsed package manifest."""

    name: Optional[str]
    version: Optional[str]
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)

    def section(self, kind: DependencyKind) -> Dict[str, str]:
        if kind is DependencyKind.PRODUCTION:
            return self.dependencies
        if kind is DependencyKind.DEV:
            return self.dev_dependencies
        return self.peer_dependencies

    def declared(self) -> Dict[str, str]:
        """Union of all kinds; later kinds win on duplicate names."""
        merged: Dict[str, str] = {}
        for kind in DependencyKind:
            merged.update(self.section(kind))
        return merged


@dataclass(frozen=True)
class DependencyDeclaration:
    """A dependency as declared in a project's manifest."""

    owner: str
    dep_name: str
    version: str
    kind: DependencyKind


@dataclass(frozen=True)
class ExternalUsage:
    """An external package referenced from a project's sources."""

    owner: str
    imported_name: str


@dataclass(frozen=True)
class DependencyEdge:
    """A directed owner -> dependency edge of the graph."""

    source: str
    target: str
    version: str
    kind: DependencyKind
    internal: bool


@dataclass(frozen=True)
class VersionOccurrence:
    project: str
    version: str
    kind: DependencyKind


@dataclass(frozen=True)
class VersionInconsistency:
    """A dependency requested with more than one version string."""

    dep_name: str
    occurrences: Tuple[VersionOccurrence, ...]

    @property
    def distinct_versions(self) -> List[str]:
        seen: List[str] = []
        for occurrence in self.occurrences:
            if occurrence.version not in seen:
                seen.append(occurrence.version)
        return seen

    @property
    def distinct_version_count(self) -> int:
        return len(self.distinct_versions)


@dataclass(frozen=True)
class ReconciliationResult:
    """Declared versus imported dependencies for one project."""

    project: str
    matched_declared: FrozenSet[str]
    unmatched_imports: FrozenSet[str]
    unused_declared: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class StrategyResult(Generic[T]):
    """Outcome of one step in a fallback chain."""

    strategy: str
    value: Optional[T] = None
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, strategy: str, value: T) -> "StrategyResult[T]":
        return cls(strategy=strategy, value=value)

    @classmethod
    def failed(cls, strategy: str, reason: str) -> "StrategyResult[T]":
        return cls(strategy=strategy, failure=reason)
