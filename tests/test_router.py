import pytest

from monorepo_deps.router import (
    CIRCULAR,
    GRAPH,
    INCONSISTENCIES,
    OUTDATED,
    PROJECT_DEPENDENCIES,
    QueryRouter,
    Route,
    RoutedQuery,
    SECURITY,
    STRUCTURE,
    UNUSED,
    USED_BY,
)


@pytest.fixture
def router():
    return QueryRouter()


@pytest.mark.parametrize(
    "query, expected",
    [
        ("which packages are using lodash?", RoutedQuery(USED_BY, {"dependency": "lodash"})),
        ("show dependencies for project core-api", RoutedQuery(PROJECT_DEPENDENCIES, {"project": "core-api"})),
        ("hello", RoutedQuery(STRUCTURE)),
        ("", RoutedQuery(STRUCTURE)),
        ("What are the deps of package @acme/ui", RoutedQuery(PROJECT_DEPENDENCIES, {"project": "@acme/ui"})),
        ("list dependencies in project web.", RoutedQuery(PROJECT_DEPENDENCIES, {"project": "web"})),
        ("who depends on react", RoutedQuery(USED_BY, {"dependency": "react"})),
        ("Are there version inconsistencies?", RoutedQuery(INCONSISTENCIES)),
        ("find unused dependencies", RoutedQuery(UNUSED, {"project": None})),
        ("anything unused in package utils", RoutedQuery(UNUSED, {"project": "utils"})),
        ("unused dependencies in package utils", RoutedQuery(PROJECT_DEPENDENCIES, {"project": "utils"})),
        ("what is outdated", RoutedQuery(OUTDATED)),
        ("any security vulnerabilities?", RoutedQuery(SECURITY)),
        ("show circular dependencies", RoutedQuery(CIRCULAR)),
        ("is there a cycle", RoutedQuery(CIRCULAR)),
        ("draw the graph", RoutedQuery(GRAPH, {"project": None})),
        ("dependency structure for package web", RoutedQuery(GRAPH, {"project": "web"})),
    ],
)
def test_resolve(router, query, expected):
    assert router.resolve(query) == expected


def test_resolution_is_deterministic(router):
    query = "which packages are using lodash?"

    assert router.resolve(query) == router.resolve(query)


def test_project_dependencies_take_priority_over_used_by(router):
    routed = router.resolve("show dependencies for project app using react")

    assert routed.route == PROJECT_DEPENDENCIES


def test_route_calls_handler_with_arguments(router):
    calls = []
    handlers = {
        USED_BY: lambda dependency: calls.append(("used_by", dependency)) or "used",
        STRUCTURE: lambda: "structure",
    }

    assert router.route("projects using axios", handlers) == "used"
    assert router.route("hello", handlers) == "structure"
    assert calls == [("used_by", "axios")]


def test_custom_routes():
    router = QueryRouter([Route(SECURITY, lambda query, lowered: {} if "cve" in lowered else None)])

    assert router.resolve("any CVE?") == RoutedQuery(SECURITY)
    assert router.resolve("unused") == RoutedQuery(STRUCTURE)
