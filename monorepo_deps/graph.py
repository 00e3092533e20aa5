"""
Dependency graph construction.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from .interfaces import ManifestReader
from .manifest import PackageJsonReader
from .models import (
    DependencyDeclaration,
    DependencyEdge,
    DependencyKind,
    Manifest,
    Project,
)


logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["owner", "dependency", "version", "kind", "internal"]


class DependencyGraph:
    """Projects, their declared dependencies and the edges between them.

    An edge is internal when its target names another project of the same
    discovery result (by directory name or manifest name). Only internal
    edges take part in cycle detection.
    """

    def __init__(
        self,
        projects: List[Project],
        manifests: Dict[str, Optional[Manifest]],
        declarations: List[DependencyDeclaration],
    ) -> None:
        self.projects = list(projects)
        self.manifests = manifests
        self.declarations = list(declarations)
        self._aliases = self._build_alias_map(self.projects)
        self.edges = [self._edge(decl) for decl in self.declarations]

    @staticmethod
    def _build_alias_map(projects: Iterable[Project]) -> Dict[str, str]:
        aliases: Dict[str, str] = {}
        for project in projects:
            for alias in project.aliases:
                aliases.setdefault(alias, project.name)
        return aliases

    def _edge(self, decl: DependencyDeclaration) -> DependencyEdge:
        target_project = self._aliases.get(decl.dep_name)
        return DependencyEdge(
            source=decl.owner,
            target=decl.dep_name,
            version=decl.version,
            kind=decl.kind,
            internal=target_project is not None and target_project != decl.owner,
        )

    @property
    def project_names(self) -> List[str]:
        return [project.name for project in self.projects]

    def project(self, name: str) -> Optional[Project]:
        for project in self.projects:
            if project.name == name:
                return project
        return None

    def find_project(self, name: str) -> Optional[Project]:
        """Look a project up by name, manifest name or case-insensitively."""
        exact = self.resolve(name)
        if exact is not None:
            return self.project(exact)
        lowered = name.lower()
        for project in self.projects:
            if any(alias.lower() == lowered for alias in project.aliases):
                return project
        return None

    def resolve(self, dep_name: str) -> Optional[str]:
        """Project name a dependency name refers to, if any."""
        return self._aliases.get(dep_name)

    def is_internal(self, dep_name: str) -> bool:
        return dep_name in self._aliases

    def internal_edges(self) -> List[DependencyEdge]:
        return [edge for edge in self.edges if edge.internal]

    def external_edges(self) -> List[DependencyEdge]:
        return [edge for edge in self.edges if not edge.internal]

    def external_names(self) -> List[str]:
        names: List[str] = []
        for edge in self.external_edges():
            if edge.target not in names:
                names.append(edge.target)
        return names

    def nodes(self) -> List[str]:
        return self.project_names + [
            name for name in self.external_names() if name not in self._aliases
        ]

    def adjacency(self, kinds: Optional[Iterable[DependencyKind]] = None) -> Dict[str, List[str]]:
        """Project name -> internal dependency targets, in declaration order."""
        allowed = set(kinds) if kinds is not None else set(DependencyKind)
        adjacency: Dict[str, List[str]] = {name: [] for name in self.project_names}
        for edge in self.internal_edges():
            if edge.kind not in allowed:
                continue
            target = self._aliases[edge.target]
            if target not in adjacency[edge.source]:
                adjacency[edge.source].append(target)
        return adjacency

    def reachable_from(self, name: str) -> List[str]:
        """Projects reachable from ``name`` over internal edges, ``name`` first."""
        adjacency = self.adjacency()
        if name not in adjacency:
            return []
        order = [name]
        seen: Set[str] = {name}
        queue = deque([name])
        while queue:
            current = queue.popleft()
            for neighbor in adjacency.get(current, []):
                if neighbor not in seen:
                    seen.add(neighbor)
                    order.append(neighbor)
                    queue.append(neighbor)
        return order

    def to_frame(self) -> pd.DataFrame:
        """One row per declaration."""
        rows = [
            {
                "owner": edge.source,
                "dependency": edge.target,
                "version": edge.version,
                "kind": edge.kind.value,
                "internal": edge.internal,
            }
            for edge in self.edges
        ]
        return pd.DataFrame(rows, columns=FRAME_COLUMNS)

    def to_dict(self, project: Optional[str] = None) -> Dict:
        """Node/edge view of the internal graph, optionally limited to one project."""
        names = self.reachable_from(project) if project else self.project_names
        members = set(names)
        nodes = [{"id": name, "type": "project"} for name in names]
        edges = [
            {
                "from": edge.source,
                "to": self._aliases[edge.target],
                "type": "depends on",
                "kind": edge.kind.value,
                "version": edge.version,
            }
            for edge in self.internal_edges()
            if edge.source in members
        ]
        return {"nodes": nodes, "edges": edges}


def build_graph(
    projects: List[Project],
    manifest_reader: Optional[ManifestReader] = None,
) -> DependencyGraph:
    """Read each project's manifest and build the dependency graph."""
    manifest_reader = manifest_reader or PackageJsonReader()
    manifests: Dict[str, Optional[Manifest]] = {}
    declarations: List[DependencyDeclaration] = []

    for project in projects:
        manifest = manifest_reader.read(project.root)
        manifests[project.name] = manifest
        if manifest is None:
            logger.debug("No manifest for %s at %s", project.name, project.root)
            continue
        for kind in DependencyKind:
            for dep_name, version in manifest.section(kind).items():
                declarations.append(
                    DependencyDeclaration(
                        owner=project.name,
                        dep_name=dep_name,
                        version=version,
                        kind=kind,
                    )
                )

    graph = DependencyGraph(projects, manifests, declarations)
    logger.info(
        "Built graph with %d projects, %d declarations (%d internal)",
        len(graph.projects),
        len(graph.declarations),
        len(graph.internal_edges()),
    )
    return graph
