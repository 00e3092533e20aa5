"""
Monorepo dependency analyzer: the query surface over discovery, the
dependency graph and the analysis passes.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .cache import TTLCache
from .config import AnalyzerConfig
from .consistency import find_version_inconsistencies, inconsistencies_to_dict
from .cycles import find_circular_dependencies
from .discovery import ProjectDiscovery
from .errors import RepositoryError, ToolUnavailable
from .graph import DependencyGraph, build_graph
from .interfaces import (
    AuditTool,
    CircularTool,
    GraphTool,
    LatestVersionSource,
    ManifestReader,
    OutdatedTool,
    ProjectLister,
    ResultCache,
    UnusedDependencyTool,
)
from .manifest import PackageJsonReader
from .models import DependencyKind, Manifest, Project
from .reconcile import UsageReconciler, reconciliation_to_dict
from .registry import NpmRegistry, is_outdated
from .router import (
    CIRCULAR,
    GRAPH,
    INCONSISTENCIES,
    OUTDATED,
    PROJECT_DEPENDENCIES,
    QueryRouter,
    SECURITY,
    STRUCTURE,
    UNUSED,
    USED_BY,
)
from .scanner import ImportScanner
from .security import summarize_audit
from .tools import Depcheck, DependencyCruiser, Madge, NpmAudit, NpmOutdated, NxWorkspace


logger = logging.getLogger(__name__)

ROOT_OWNER = "<root>"

FRAMEWORK_MARKERS = [
    ("React", ("react", "react-dom"), True),
    ("Angular", ("@angular/core",), False),
    ("Vue", ("vue",), False),
    ("Express", ("express",), False),
    ("NestJS", ("@nestjs/core",), False),
    ("GraphQL", ("graphql", "@apollo/client", "apollo-server"), False),
]


def detect_frameworks(manifest: Optional[Manifest]) -> List[str]:
    """Frameworks revealed by a manifest's production and dev dependencies."""
    if manifest is None:
        return []
    deps = {**manifest.dependencies, **manifest.dev_dependencies}
    frameworks = []
    for name, markers, require_all in FRAMEWORK_MARKERS:
        present = [marker in deps for marker in markers]
        if (all(present) if require_all else any(present)):
            frameworks.append(name)
    return frameworks


class MonorepoAnalyzer:
    """Answer structural questions about a monorepo's dependencies.

    Every operation rebuilds discovery and the graph from the file system
    and returns a JSON-serialisable dict. Results pass through a TTL cache
    keyed by operation and argument; ``invalidate_cache`` drops them.
    Recoverable problems (a missing tool, an unknown project) are reported
    inside the result rather than raised.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        cache: Optional[ResultCache] = None,
        lister: Optional[ProjectLister] = None,
        manifest_reader: Optional[ManifestReader] = None,
        scanner: Optional[ImportScanner] = None,
        unused_tool: Optional[UnusedDependencyTool] = None,
        outdated_tool: Optional[OutdatedTool] = None,
        audit_tool: Optional[AuditTool] = None,
        circular_tool: Optional[CircularTool] = None,
        graph_tool: Optional[GraphTool] = None,
        registry: Optional[LatestVersionSource] = None,
        router: Optional[QueryRouter] = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            config: Analyzer configuration (repository root, directories, tool settings)
            cache: Result cache; a TTLCache with ``config.cache_ttl`` by default
            lister: Workspace project listing; Nx when external tools are enabled
            manifest_reader: Manifest loader
            scanner: Source import scanner
            unused_tool: Unused-dependency detector (depcheck)
            outdated_tool: Outdated-dependency reporter (npm outdated)
            audit_tool: Vulnerability audit (npm audit)
            circular_tool: Circular import detector (madge)
            graph_tool: Module graph generator (dependency-cruiser)
            registry: Latest-version source used when the outdated tool fails
            router: Free-text query router
        """
        self.config = config or AnalyzerConfig()
        self.root = Path(self.config.root)
        self.cache = cache if cache is not None else TTLCache(ttl=self.config.cache_ttl)

        enabled = self.config.use_external_tools
        timeout = self.config.tool_timeout
        if lister is None and enabled:
            lister = NxWorkspace(timeout=timeout)
        self.lister = lister
        self.manifest_reader = manifest_reader or PackageJsonReader()
        self.scanner = scanner or ImportScanner()
        self.unused_tool = unused_tool or Depcheck(timeout=timeout, enabled=enabled)
        self.outdated_tool = outdated_tool or NpmOutdated(timeout=timeout, enabled=enabled)
        self.audit_tool = audit_tool or NpmAudit(timeout=timeout, enabled=enabled)
        self.circular_tool = circular_tool or Madge(timeout=timeout, enabled=enabled)
        self.graph_tool = graph_tool or DependencyCruiser(timeout=timeout, enabled=enabled)
        self.registry = registry or NpmRegistry(
            registry_url=self.config.registry_url,
            timeout=self.config.request_timeout,
            batch_size=self.config.batch_size,
            batch_pause=self.config.batch_pause,
            show_progress=self.config.show_progress,
        )
        self.router = router or QueryRouter()

    # -- building blocks -------------------------------------------------

    def discover(self) -> List[Project]:
        discovery = ProjectDiscovery(
            self.config, lister=self.lister, manifest_reader=self.manifest_reader
        )
        projects = discovery.discover()
        if not projects:
            raise RepositoryError(f"No projects found in {self.root}")
        return projects

    def build_graph(self) -> DependencyGraph:
        return build_graph(self.discover(), self.manifest_reader)

    def root_manifest(self) -> Optional[Manifest]:
        return self.manifest_reader.read(self.root)

    def _cached(self, key: str, compute: Callable[[], Any]) -> Any:
        return self.cache.get_or_compute(key, compute)

    def _tool_target(self) -> Path:
        packages = self.root / self.config.packages_dir
        return packages if packages.is_dir() else self.root

    @staticmethod
    def _not_found(kind: str, name: str, graph: DependencyGraph) -> Dict:
        return {
            "error": f'{kind} "{name}" not found in monorepo',
            "availableProjects": graph.project_names,
        }

    # -- operations ------------------------------------------------------

    def get_structure(self) -> Dict:
        return self._cached(STRUCTURE, self._analyze_structure)

    def _analyze_structure(self) -> Dict:
        graph = self.build_graph()
        packages = []
        for project in graph.projects:
            manifest = graph.manifests.get(project.name)
            sections = {
                kind: sorted(manifest.section(kind)) if manifest else []
                for kind in DependencyKind
            }
            packages.append({
                "name": project.name,
                "packageName": project.package_name,
                "version": manifest.version if manifest else None,
                "path": str(project.root),
                "type": project.type.value,
                "hasManifest": manifest is not None,
                "dependencies": sections[DependencyKind.PRODUCTION],
                "devDependencies": sections[DependencyKind.DEV],
                "peerDependencies": sections[DependencyKind.PEER],
                "totalDependencies": sum(len(names) for names in sections.values()),
            })

        internal = sum(
            1 for edge in graph.internal_edges() if edge.kind is not DependencyKind.PEER
        )
        usage = Counter(
            target for _, target in sorted({(edge.source, edge.target) for edge in graph.external_edges()})
        )
        root_manifest = self.root_manifest()
        frameworks = detect_frameworks(root_manifest) if root_manifest else sorted({
            framework
            for manifest in graph.manifests.values()
            for framework in detect_frameworks(manifest)
        })

        return {
            "root": str(self.root),
            "packageCount": len(packages),
            "packages": packages,
            "totalDependencies": sum(pkg["totalDependencies"] for pkg in packages),
            "internalDependencies": internal,
            "externalPackageCount": len(graph.nodes()) - len(graph.project_names),
            "frameworks": frameworks,
            "mostUsed": dict(usage.most_common(5)),
        }

    def get_version_inconsistencies(self) -> Dict:
        return self._cached(
            INCONSISTENCIES,
            lambda: inconsistencies_to_dict(find_version_inconsistencies(self.build_graph())),
        )

    def get_unused_dependencies(self, project: Optional[str] = None) -> Dict:
        return self._cached(
            f"unused-{project or 'all'}", lambda: self._find_unused(project)
        )

    def _find_unused(self, project_name: Optional[str]) -> Dict:
        graph = self.build_graph()
        if project_name:
            project = graph.find_project(project_name)
            if project is None:
                return self._not_found("Package", project_name, graph)
            targets = [project]
        else:
            targets = graph.projects

        reconciler = UsageReconciler(
            graph, self.root_manifest(), self.config.dependency_mode, self.scanner
        )
        results = {}
        for project in targets:
            entry = self._unused_for(project, graph)
            declared = reconciler.declared_for(project)
            entry["importScan"] = reconciliation_to_dict(reconciler.reconcile(project), declared)
            results[project.name] = entry
        return results

    def _unused_for(self, project: Project, graph: DependencyGraph) -> Dict:
        try:
            report = self.unused_tool.check(project.root)
            return {
                "unused": {
                    "dependencies": report["dependencies"],
                    "devDependencies": report["devDependencies"],
                },
                "missing": report["missing"],
            }
        except ToolUnavailable as e:
            logger.warning("Depcheck failed for %s, using basic detection: %s", project.name, e)
            manifest = graph.manifests.get(project.name)
            return {
                "unused": {
                    "dependencies": sorted(manifest.dependencies) if manifest else [],
                    "devDependencies": sorted(manifest.dev_dependencies) if manifest else [],
                },
                "missing": {},
                "note": "Basic detection only - every declared dependency is a candidate",
            }

    def get_outdated_dependencies(self) -> Dict:
        return self._cached(OUTDATED, self._find_outdated)

    def _declared_externals(self, graph: DependencyGraph) -> Dict[str, Dict[str, str]]:
        """External dependency name -> {owner: declared version}."""
        declared: Dict[str, Dict[str, str]] = {}
        root_manifest = self.root_manifest()
        if root_manifest is not None:
            for name, version in root_manifest.declared().items():
                if not graph.is_internal(name):
                    declared.setdefault(name, {})[ROOT_OWNER] = version
        for edge in graph.external_edges():
            declared.setdefault(edge.target, {}).setdefault(edge.source, edge.version)
        return declared

    def _find_outdated(self) -> Dict:
        try:
            return {"source": self.outdated_tool.name, "dependencies": self.outdated_tool.outdated(self.root)}
        except ToolUnavailable as e:
            logger.warning("Outdated tool failed, checking the registry instead: %s", e)

        declared = self._declared_externals(self.build_graph())
        latest = self.registry.latest_versions(declared)
        dependencies = {}
        for name, owners in declared.items():
            current = next(iter(owners.values()))
            found = latest.get(name)
            dependencies[name] = {
                "current": current,
                "latest": found or "unknown",
                "outdated": is_outdated(current, found),
                "projects": owners,
            }
        return {
            "source": "registry",
            "dependencies": dependencies,
            "note": "Compared declared versions with the latest published versions",
        }

    def get_dependency_graph(self, project: Optional[str] = None) -> Dict:
        return self._cached(
            f"graph-{project or 'all'}", lambda: self._dependency_graph(project)
        )

    def _dependency_graph(self, project_name: Optional[str]) -> Dict:
        graph = self.build_graph()
        project = None
        target = self._tool_target()
        if project_name:
            project = graph.find_project(project_name)
            if project is None:
                return self._not_found("Package", project_name, graph)
            target = project.root

        try:
            return self.graph_tool.graph(target)
        except ToolUnavailable as e:
            logger.warning("Graph tool failed, using basic extraction: %s", e)

        result = graph.to_dict(project.name if project else None)
        result["note"] = "Built from declared dependencies between projects"
        return result

    def get_circular_dependencies(self) -> Dict:
        return self._cached(CIRCULAR, self._find_circular)

    def _find_circular(self) -> Dict:
        try:
            cycles = self.circular_tool.circular(self._tool_target())
            return {"source": self.circular_tool.name, "total": len(cycles), "cycles": cycles}
        except ToolUnavailable as e:
            logger.warning("Circular detection tool failed, using basic detection: %s", e)

        cycles = find_circular_dependencies(self.build_graph())
        return {
            "source": "built-in",
            "total": len(cycles),
            "cycles": cycles,
            "note": "Basic detection over declared dependencies between projects",
        }

    def get_security_vulnerabilities(self) -> Dict:
        return self._cached(SECURITY, self._find_vulnerabilities)

    def _find_vulnerabilities(self) -> Dict:
        try:
            audit = self.audit_tool.audit(self.root)
        except ToolUnavailable as e:
            logger.warning("Audit failed: %s", e)
            return {"error": "Error running vulnerability audit", "details": str(e)}
        return summarize_audit(audit, self.discover(), self.scanner)

    def get_packages_using_dependency(self, dependency: str) -> Dict:
        return self._cached(
            f"usedby-{dependency}", lambda: self._packages_using(dependency)
        )

    def _packages_using(self, dependency: str) -> Dict:
        graph = self.build_graph()
        packages = []
        for project in graph.projects:
            manifest = graph.manifests.get(project.name)
            if manifest is None:
                continue
            usage = {"package": project.name, "usageType": [], "version": None}
            for kind in DependencyKind:
                version = manifest.section(kind).get(dependency)
                if version is None:
                    continue
                usage["usageType"].append(kind.label)
                usage["version"] = usage["version"] or version
            if usage["usageType"]:
                packages.append(usage)

        logger.info("%d packages use %s", len(packages), dependency)
        return {"dependency": dependency, "usedByCount": len(packages), "packages": packages}

    def get_project_dependencies(self, project: str) -> Dict:
        return self._cached(
            f"project-deps-{project}", lambda: self._project_dependencies(project)
        )

    def _project_dependencies(self, project_name: str) -> Dict:
        graph = self.build_graph()
        project = graph.find_project(project_name)
        if project is None:
            return self._not_found("Project", project_name, graph)

        manifest = graph.manifests.get(project.name)
        if manifest is None:
            return {
                "error": f'No package.json found for project "{project.name}"',
                "project": project.name,
                "path": str(project.root),
            }

        by_kind = {
            kind: [
                {"name": edge.target, "version": edge.version, "type": kind.label, "internal": edge.internal}
                for edge in graph.edges
                if edge.source == project.name and edge.kind is kind
            ]
            for kind in DependencyKind
        }
        everything = [dep for kind in DependencyKind for dep in by_kind[kind]]
        internal = [dep for dep in everything if dep["internal"]]
        external = [dep for dep in everything if not dep["internal"]]

        return {
            "project": project.name,
            "path": str(project.root),
            "type": project.type.value,
            "summary": {
                "total": len(everything),
                "dependencies": len(by_kind[DependencyKind.PRODUCTION]),
                "devDependencies": len(by_kind[DependencyKind.DEV]),
                "peerDependencies": len(by_kind[DependencyKind.PEER]),
                "internal": len(internal),
                "external": len(external),
            },
            "dependencies": {
                "all": everything,
                "production": by_kind[DependencyKind.PRODUCTION],
                "development": by_kind[DependencyKind.DEV],
                "peer": by_kind[DependencyKind.PEER],
                "internal": internal,
                "external": external,
            },
        }

    def query(self, text: Optional[str]) -> Any:
        """Answer a free-text question with the analysis it routes to."""
        handlers = {
            STRUCTURE: self.get_structure,
            PROJECT_DEPENDENCIES: self.get_project_dependencies,
            USED_BY: self.get_packages_using_dependency,
            INCONSISTENCIES: self.get_version_inconsistencies,
            UNUSED: self.get_unused_dependencies,
            OUTDATED: self.get_outdated_dependencies,
            SECURITY: self.get_security_vulnerabilities,
            CIRCULAR: self.get_circular_dependencies,
            GRAPH: self.get_dependency_graph,
        }
        return self.router.route(text, handlers)

    def invalidate_cache(self, key: Optional[str] = None) -> Dict:
        self.cache.invalidate(key)
        if key:
            return {"message": f"Cache invalidated for key: {key}"}
        return {"message": "All cache invalidated"}
