"""
Vulnerability audit summarisation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .models import Project
from .scanner import ImportScanner


logger = logging.getLogger(__name__)

SEVERITY_ORDER = {"critical": 0, "high": 1, "moderate": 2, "low": 3, "info": 4}
NO_FIX = "<0.0.0"


def severity_rank(severity: Optional[str]) -> int:
    return SEVERITY_ORDER.get((severity or "").lower(), len(SEVERITY_ORDER))


def is_severity_higher(first: Optional[str], second: Optional[str]) -> bool:
    return severity_rank(first) < severity_rank(second)


def _keep_most_severe(found: Dict[str, Dict], candidate: Dict) -> None:
    current = found.get(candidate["name"])
    if current is None or is_severity_higher(candidate["severity"], current["severity"]):
        found[candidate["name"]] = candidate


def _from_advisories(advisories: Mapping[str, Any]) -> Dict[str, Dict]:
    found: Dict[str, Dict] = {}
    for advisory in advisories.values():
        patched = advisory.get("patched_versions")
        for finding in advisory.get("findings") or []:
            for path in finding.get("paths") or []:
                elements = path.split(">")
                # One or two elements: the first one is a direct dependency of the root.
                if len(elements) not in (1, 2):
                    continue
                _keep_most_severe(found, {
                    "name": elements[0],
                    "currentVersion": finding.get("version") or "unknown",
                    "fixedVersion": patched if patched and patched != NO_FIX else None,
                    "severity": advisory.get("severity"),
                    "title": advisory.get("title"),
                    "url": advisory.get("url"),
                    "vulnerableModule": advisory.get("module_name"),
                })
    return found


def _from_vulnerabilities(vulnerabilities: Mapping[str, Any]) -> Dict[str, Dict]:
    """npm 7+ audit report, where entries carry an ``isDirect`` flag."""
    found: Dict[str, Dict] = {}
    for name, entry in vulnerabilities.items():
        if not isinstance(entry, dict) or not entry.get("isDirect"):
            continue
        fix = entry.get("fixAvailable")
        advisory = next((via for via in entry.get("via") or [] if isinstance(via, dict)), {})
        _keep_most_severe(found, {
            "name": entry.get("name", name),
            "currentVersion": entry.get("range") or "unknown",
            "fixedVersion": fix.get("version") if isinstance(fix, dict) else None,
            "severity": entry.get("severity"),
            "title": advisory.get("title"),
            "url": advisory.get("url"),
            "vulnerableModule": advisory.get("name", name),
        })
    return found


def identify_direct_dependencies(audit: Mapping[str, Any]) -> List[Dict]:
    """Direct dependencies to update, most severe advisory per name, most severe first."""
    if isinstance(audit.get("advisories"), dict):
        found = _from_advisories(audit["advisories"])
    elif isinstance(audit.get("vulnerabilities"), dict):
        found = _from_vulnerabilities(audit["vulnerabilities"])
    else:
        return []
    return sorted(found.values(), key=lambda dep: severity_rank(dep["severity"]))


def severity_summary(audit: Mapping[str, Any]) -> Optional[Dict[str, int]]:
    counts = (audit.get("metadata") or {}).get("vulnerabilities")
    if not isinstance(counts, dict):
        return None
    summary = {level: int(counts.get(level, 0) or 0) for level in SEVERITY_ORDER}
    summary["total"] = int(counts["total"]) if "total" in counts else sum(summary.values())
    return summary


def project_usage(
    projects: Iterable[Project],
    vulnerable: Iterable[str],
    scanner: Optional[ImportScanner] = None,
) -> Dict[str, List[str]]:
    """Projects whose sources import one of the vulnerable packages."""
    scanner = scanner or ImportScanner()
    vulnerable_names: Set[str] = set(vulnerable)
    if not vulnerable_names:
        return {}
    usage: Dict[str, List[str]] = {}
    for project in projects:
        imported = {found.imported_name for found in scanner.usages(project)}
        used = sorted(imported & vulnerable_names)
        if used:
            usage[project.name] = used
    return usage


def summarize_audit(
    audit: Mapping[str, Any],
    projects: Iterable[Project] = (),
    scanner: Optional[ImportScanner] = None,
) -> Dict:
    summary = severity_summary(audit)
    direct = identify_direct_dependencies(audit)
    if summary is None:
        logger.warning("Audit output has no vulnerability metadata")

    fix_command = None
    if summary and summary["total"] > 0:
        fix_command = "npm audit fix" + (" --force" if summary["critical"] > 0 else "")

    return {
        "summary": summary,
        "directDependencies": direct,
        "projectUsage": project_usage(projects, [dep["name"] for dep in direct], scanner),
        "fixCommand": fix_command,
    }
