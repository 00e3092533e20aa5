"""
Project discovery.

Projects are found by an ordered chain of strategies; the first one that
succeeds wins:

1. the workspace tool's project listing (``nx show projects``),
2. the ``projects`` map of ``workspace.json`` / ``nx.json``,
3. a scan of the configured top-level directories (apps, libs, packages),
   where every immediate subdirectory is a project.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .config import AnalyzerConfig
from .errors import ManifestUnreadable, RepositoryError, ToolUnavailable
from .interfaces import ManifestReader, ProjectLister
from .manifest import PackageJsonReader, read_json
from .models import Project, ProjectType, StrategyResult


logger = logging.getLogger(__name__)

WORKSPACE_FILES = ("workspace.json", "nx.json")

Strategy = Callable[[], StrategyResult[List[Project]]]


class ProjectDiscovery:
    """Enumerate the projects of a repository."""

    def __init__(
        self,
        config: AnalyzerConfig,
        lister: Optional[ProjectLister] = None,
        manifest_reader: Optional[ManifestReader] = None,
    ) -> None:
        self.config = config
        self.repo_root = Path(config.root)
        self.lister = lister
        self.manifest_reader = manifest_reader or PackageJsonReader()

    def strategies(self) -> List[Tuple[str, Strategy]]:
        chain: List[Tuple[str, Strategy]] = []
        if self.lister is not None:
            chain.append(("workspace-tool", self.from_workspace_tool))
        chain.append(("workspace-manifest", self.from_workspace_manifest))
        chain.append(("directory-scan", self.from_directories))
        return chain

    def discover(self) -> List[Project]:
        if not self.repo_root.is_dir():
            raise RepositoryError(f"Repository root is not a readable directory: {self.repo_root}")

        for name, strategy in self.strategies():
            result = strategy()
            if result.ok:
                projects = result.value or []
                logger.info("Discovered %d projects via %s", len(projects), name)
                self._warn_duplicates(projects)
                return projects
            logger.info("Discovery strategy %s failed: %s", name, result.failure)

        # The directory scan never fails, so this is only reached if it was removed.
        return []

    def from_workspace_tool(self) -> StrategyResult[List[Project]]:
        try:
            names = self.lister.list_projects(self.repo_root)
        except ToolUnavailable as e:
            return StrategyResult.failed("workspace-tool", str(e))
        if not names:
            return StrategyResult.failed("workspace-tool", "no projects listed")

        projects = []
        for name in names:
            project_config = self.lister.project_config(self.repo_root, name)
            if project_config:
                root = self.repo_root / project_config["root"]
                project_type = ProjectType.parse(project_config.get("projectType"))
            else:
                root, project_type = self._guess_root(name)
            projects.append(self._make_project(name, root, project_type))
        return StrategyResult.success("workspace-tool", projects)

    def from_workspace_manifest(self) -> StrategyResult[List[Project]]:
        for filename in WORKSPACE_FILES:
            path = self.repo_root / filename
            if not path.is_file():
                continue
            try:
                data = read_json(path)
            except ManifestUnreadable as e:
                return StrategyResult.failed("workspace-manifest", str(e))
            project_map = data.get("projects") if isinstance(data, dict) else None
            if not isinstance(project_map, dict) or not project_map:
                return StrategyResult.failed(
                    "workspace-manifest", f"{filename} has no projects map"
                )
            projects = [
                self._project_from_entry(name, entry)
                for name, entry in project_map.items()
            ]
            return StrategyResult.success("workspace-manifest", projects)
        return StrategyResult.failed("workspace-manifest", "no workspace manifest found")

    def from_directories(self) -> StrategyResult[List[Project]]:
        projects: List[Project] = []
        for directory, project_type in self._scan_targets():
            base = self.repo_root / directory
            if not base.is_dir():
                continue
            try:
                children = sorted(
                    child for child in base.iterdir()
                    if child.is_dir() and not child.name.startswith(".")
                )
            except OSError as e:
                logger.warning("Error scanning %s directory: %s", directory, e)
                continue
            for child in children:
                projects.append(self._make_project(child.name, child, project_type))
        return StrategyResult.success("directory-scan", projects)

    def _scan_targets(self) -> List[Tuple[str, ProjectType]]:
        types = {
            self.config.apps_dir: ProjectType.APPLICATION,
            self.config.libs_dir: ProjectType.LIBRARY,
        }
        targets = []
        for directory in self.config.project_dirs:
            if directory and directory not in (d for d, _ in targets):
                targets.append((directory, types.get(directory, ProjectType.UNKNOWN)))
        return targets

    def _project_from_entry(self, name: str, entry) -> Project:
        if isinstance(entry, str):
            return self._make_project(name, self.repo_root / entry, ProjectType.UNKNOWN)
        if isinstance(entry, dict) and entry.get("root"):
            return self._make_project(
                name,
                self.repo_root / str(entry["root"]),
                ProjectType.parse(entry.get("projectType")),
            )
        root, project_type = self._guess_root(name)
        return self._make_project(name, root, project_type)

    def _guess_root(self, name: str) -> Tuple[Path, ProjectType]:
        for directory, project_type in self._scan_targets():
            candidate = self.repo_root / directory / name
            if candidate.is_dir():
                return candidate, project_type
        logger.warning("Could not find root directory for project %s", name)
        return self.repo_root / name, ProjectType.UNKNOWN

    def _make_project(self, name: str, root: Path, project_type: ProjectType) -> Project:
        manifest = self.manifest_reader.read(root)
        return Project(
            name=name,
            root=root,
            type=project_type,
            package_name=manifest.name if manifest else None,
        )

    @staticmethod
    def _warn_duplicates(projects: List[Project]) -> None:
        counts: Dict[str, int] = Counter(project.name for project in projects)
        for name, count in counts.items():
            if count > 1:
                logger.warning("Project name %s is used by %d directories", name, count)


def discover_projects(
    repo_root: Path,
    config: Optional[AnalyzerConfig] = None,
    lister: Optional[ProjectLister] = None,
    manifest_reader: Optional[ManifestReader] = None,
) -> List[Project]:
    """Enumerate the projects of ``repo_root``."""
    config = (config or AnalyzerConfig()).with_overrides(root=Path(repo_root))
    return ProjectDiscovery(config, lister=lister, manifest_reader=manifest_reader).discover()
