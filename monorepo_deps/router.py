"""
Free-text query routing.

A query is matched against an ordered table of routes; the first route
whose matcher accepts it wins, and the structure overview answers anything
no route recognises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

STRUCTURE = "structure"
PROJECT_DEPENDENCIES = "project_dependencies"
USED_BY = "used_by"
INCONSISTENCIES = "inconsistencies"
UNUSED = "unused"
OUTDATED = "outdated"
SECURITY = "security"
CIRCULAR = "circular"
GRAPH = "graph"

ROUTE_NAMES = (
    STRUCTURE, PROJECT_DEPENDENCIES, USED_BY, INCONSISTENCIES,
    UNUSED, OUTDATED, SECURITY, CIRCULAR, GRAPH,
)

_NAME = r"([a-zA-Z0-9\-@/.]+)"

_PROJECT_DEPS_RE = re.compile(
    r"(?:what|which|list|show|get|find)(?:\s+(?:are|is))?\s+(?:the\s+)?(?:dependencies|deps)"
    r"(?:\s+(?:for|of|in|used\s+(?:by|in)))?\s+(?:project|package|proj|pkg)\s+" + _NAME,
    re.IGNORECASE,
)
_PROJECT_WORD_RE = re.compile(r"\b(?:project|package|proj|pkg)\s+" + _NAME, re.IGNORECASE)
_USING_RE = re.compile(
    r"\b(?:using|depending on|depends on|depend on|uses|use)\s+" + _NAME, re.IGNORECASE
)
_PACKAGES_USING_RE = re.compile(
    r"(?:packages|projects)\s+(?:using|depending on)\s+" + _NAME, re.IGNORECASE
)
_PACKAGE_ARG_RE = re.compile(r"\b(?:package|project)s?\s+([a-zA-Z0-9\-@/]+)", re.IGNORECASE)


def _clean(name: str) -> str:
    return name.strip().rstrip(".")


Matcher = Callable[[str, str], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class Route:
    """One entry of the routing table.

    ``matcher`` receives the raw query and its lowercased form and returns
    the handler arguments when the route applies, None otherwise.
    """

    name: str
    matcher: Matcher
    description: str = ""


@dataclass(frozen=True)
class RoutedQuery:
    route: str
    args: Dict[str, Any] = field(default_factory=dict)


def _match_project_dependencies(query: str, lowered: str) -> Optional[Dict[str, Any]]:
    match = _PROJECT_DEPS_RE.search(query)
    if match:
        return {"project": _clean(match.group(1))}
    return None


def _match_project_dependencies_loose(query: str, lowered: str) -> Optional[Dict[str, Any]]:
    if not ("dependencies" in lowered or "deps" in lowered):
        return None
    if not any(word in lowered for word in ("project", "package", "for")):
        return None
    match = _PROJECT_WORD_RE.search(query)
    if match:
        return {"project": _clean(match.group(1))}
    return None


def _match_used_by(query: str, lowered: str) -> Optional[Dict[str, Any]]:
    if "using" not in lowered and "depend" not in lowered:
        return None
    match = _USING_RE.search(lowered)
    if match:
        return {"dependency": _clean(match.group(1))}
    return None


def _keyword(*words: str) -> Matcher:
    def matcher(query: str, lowered: str) -> Optional[Dict[str, Any]]:
        return {} if any(word in lowered for word in words) else None
    return matcher


def _optional_project_arg(query: str) -> Dict[str, Any]:
    match = _PACKAGE_ARG_RE.search(query)
    return {"project": match.group(1)} if match else {"project": None}


def _match_unused(query: str, lowered: str) -> Optional[Dict[str, Any]]:
    if "unused" not in lowered:
        return None
    return _optional_project_arg(query)


def _match_graph(query: str, lowered: str) -> Optional[Dict[str, Any]]:
    if "graph" in lowered or ("dependency" in lowered and "structure" in lowered):
        return _optional_project_arg(query)
    return None


def _match_packages_using(query: str, lowered: str) -> Optional[Dict[str, Any]]:
    match = _PACKAGES_USING_RE.search(query)
    if match:
        return {"dependency": _clean(match.group(1))}
    return None


DEFAULT_ROUTES: List[Route] = [
    Route(PROJECT_DEPENDENCIES, _match_project_dependencies, "show dependencies for project X"),
    Route(PROJECT_DEPENDENCIES, _match_project_dependencies_loose, "deps ... project X"),
    Route(USED_BY, _match_used_by, "which packages are using X"),
    Route(INCONSISTENCIES, _keyword("inconsisten", "version"), "version inconsistencies"),
    Route(UNUSED, _match_unused, "unused dependencies [in package X]"),
    Route(OUTDATED, _keyword("outdated"), "outdated dependencies"),
    Route(SECURITY, _keyword("security", "vulnerab"), "security vulnerabilities"),
    Route(CIRCULAR, _keyword("circular", "cycle"), "circular dependencies"),
    Route(GRAPH, _match_graph, "dependency graph [for package X]"),
    Route(USED_BY, _match_packages_using, "projects depending on X"),
]


class QueryRouter:
    """Map free text onto exactly one analysis."""

    def __init__(self, routes: Optional[List[Route]] = None) -> None:
        self.routes = list(DEFAULT_ROUTES if routes is None else routes)

    def resolve(self, query: Optional[str]) -> RoutedQuery:
        query = (query or "").strip()
        lowered = query.lower()
        for route in self.routes:
            args = route.matcher(query, lowered)
            if args is not None:
                logger.info("Routed query %r to %s %s", query, route.name, args)
                return RoutedQuery(route=route.name, args=args)
        logger.info("No route for query %r, using structure overview", query)
        return RoutedQuery(route=STRUCTURE)

    def route(self, query: Optional[str], handlers: Mapping[str, Callable[..., Any]]) -> Any:
        routed = self.resolve(query)
        return handlers[routed.route](**routed.args)
