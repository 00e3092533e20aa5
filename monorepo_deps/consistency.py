"""
Version consistency analysis.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from .graph import DependencyGraph
from .models import DependencyKind, VersionInconsistency, VersionOccurrence


logger = logging.getLogger(__name__)


def find_version_inconsistencies(graph: DependencyGraph) -> List[VersionInconsistency]:
    """Find dependencies declared with more than one version string.

    Declarations are grouped by dependency name regardless of kind. Versions
    compare as exact strings, so ``^1.2.0`` and ``1.2.0`` disagree.
    Results follow the order in which dependencies are first declared.
    """
    frame = graph.to_frame()
    if frame.empty:
        return []

    distinct = frame.groupby("dependency", sort=False)["version"].nunique()
    flagged = distinct[distinct > 1].index

    inconsistencies = []
    for dep_name in flagged:
        rows = frame[frame["dependency"] == dep_name]
        occurrences = tuple(
            VersionOccurrence(
                project=row.owner,
                version=row.version,
                kind=DependencyKind(row.kind),
            )
            for row in rows.itertuples(index=False)
        )
        inconsistencies.append(VersionInconsistency(dep_name=dep_name, occurrences=occurrences))

    logger.info("Found %d inconsistent dependencies", len(inconsistencies))
    return inconsistencies


def inconsistencies_to_dict(inconsistencies: List[VersionInconsistency]) -> Dict:
    details = {}
    for item in inconsistencies:
        details[item.dep_name] = {
            "distinctVersionCount": item.distinct_version_count,
            "versions": item.distinct_versions,
            "occurrences": [
                {
                    "project": occurrence.project,
                    "version": occurrence.version,
                    "type": occurrence.kind.label,
                }
                for occurrence in item.occurrences
            ],
        }
    return {"total": len(details), "details": details}
