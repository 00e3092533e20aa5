"""
Reconciliation of declared dependencies against scanned imports.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

from .graph import DependencyGraph
from .models import Manifest, Project, ReconciliationResult
from .scanner import ImportScanner


logger = logging.getLogger(__name__)


def match_imports(
    imports: Iterable[str], declared: Iterable[str]
) -> Tuple[Set[str], Set[str]]:
    """Split imported package names into (matched declared names, unmatched imports).

    An import matches a declaration of the same name. A scoped import with
    no exact declaration matches every declared package of the same scope,
    since a scoped import path need not equal the declared package name.
    """
    declared = set(declared)
    matched: Set[str] = set()
    unmatched: Set[str] = set()

    for name in imports:
        if name in declared:
            matched.add(name)
            continue
        if name.startswith("@"):
            scope = name.split("/")[0]
            same_scope = {dep for dep in declared if dep.startswith(scope + "/")}
            if same_scope:
                matched.update(same_scope)
                continue
        unmatched.add(name)

    return matched, unmatched


class UsageReconciler:
    """Compare what a project imports with what is declared for it.

    ``mode`` selects where declarations come from: ``root`` uses the
    repository root manifest (single-version monorepos), ``project`` the
    project's own manifest, and ``auto`` the project's manifest when it
    declares anything, the root manifest otherwise.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        root_manifest: Optional[Manifest] = None,
        mode: str = "auto",
        scanner: Optional[ImportScanner] = None,
    ) -> None:
        self.graph = graph
        self.root_manifest = root_manifest
        self.mode = mode
        self.scanner = scanner or ImportScanner()

    def declared_for(self, project: Project) -> Dict[str, str]:
        own = self.graph.manifests.get(project.name)
        own_declared = own.declared() if own else {}
        root_declared = self.root_manifest.declared() if self.root_manifest else {}

        if self.mode == "root":
            return root_declared
        if self.mode == "project":
            return own_declared
        return own_declared or root_declared

    def reconcile(self, project: Project) -> ReconciliationResult:
        declared = self.declared_for(project)
        imports = self.scanner.scan(project.root)
        return reconcile_usage(project, declared, imports)


def reconcile_usage(
    project: Project,
    declared: Mapping[str, str],
    imports: Iterable[str],
) -> ReconciliationResult:
    matched, unmatched = match_imports(imports, declared)
    unused = set(declared) - matched
    logger.debug(
        "%s: %d matched, %d unmatched imports, %d unused declarations",
        project.name, len(matched), len(unmatched), len(unused),
    )
    return ReconciliationResult(
        project=project.name,
        matched_declared=frozenset(matched),
        unmatched_imports=frozenset(unmatched),
        unused_declared=frozenset(unused),
    )


def reconciliation_to_dict(result: ReconciliationResult, declared: Mapping[str, str]) -> Dict:
    return {
        "matched": {name: declared.get(name) for name in sorted(result.matched_declared)},
        "unmatchedImports": sorted(result.unmatched_imports),
        "seeminglyUnused": sorted(result.unused_declared),
        "totalMatched": len(result.matched_declared),
        "totalUnmatched": len(result.unmatched_imports),
    }
