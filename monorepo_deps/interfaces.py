"""
Interfaces for the external collaborators the analyzers consume.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from .models import Manifest


class ProjectLister(Protocol):
    """Workspace-aware project listing (e.g. ``nx show projects``)."""

    def list_projects(self, repo_root: Path) -> List[str]:
        ...

    def project_config(self, repo_root: Path, project: str) -> Optional[Dict[str, str]]:
        ...


class ManifestReader(Protocol):
    """Load a package manifest from a directory."""

    def read(self, directory: Path) -> Optional[Manifest]:
        ...


class UnusedDependencyTool(Protocol):
    name: str

    def check(self, project_path: Path) -> Dict[str, Any]:
        ...


class OutdatedTool(Protocol):
    name: str

    def outdated(self, repo_root: Path) -> Dict[str, Dict[str, Any]]:
        ...


class AuditTool(Protocol):
    name: str

    def audit(self, repo_root: Path) -> Dict[str, Any]:
        ...


class CircularTool(Protocol):
    name: str

    def circular(self, target: Path) -> List[List[str]]:
        ...


class GraphTool(Protocol):
    name: str

    def graph(self, target: Path) -> Dict[str, Any]:
        ...


class LatestVersionSource(Protocol):
    """Look up the latest published version of packages."""

    def latest_versions(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        ...


class ResultCache(Protocol):
    """Key/value store in front of the analysis layer."""

    def get(self, key: str) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def invalidate(self, key: Optional[str] = None) -> None:
        ...

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        ...
