from pathlib import Path

from monorepo_deps.discovery import discover_projects
from monorepo_deps.security import (
    identify_direct_dependencies,
    is_severity_higher,
    severity_summary,
    summarize_audit,
)

LEGACY_AUDIT = {
    "advisories": {
        "1": {
            "module_name": "minimist",
            "severity": "critical",
            "title": "Prototype Pollution",
            "url": "https://example.com/1",
            "patched_versions": ">=1.2.6",
            "findings": [{"version": "1.2.5", "paths": ["mkdirp>minimist"]}],
        },
        "2": {
            "module_name": "lodash",
            "severity": "high",
            "title": "Command Injection",
            "url": "https://example.com/2",
            "patched_versions": "<0.0.0",
            "findings": [{"version": "4.17.15", "paths": ["lodash"]}],
        },
        "3": {
            "module_name": "ansi-regex",
            "severity": "moderate",
            "title": "ReDoS",
            "patched_versions": ">=5.0.1",
            "findings": [{"version": "4.1.0", "paths": ["jest>chalk>ansi-regex"]}],
        },
        "4": {
            "module_name": "lodash",
            "severity": "low",
            "title": "Minor issue",
            "patched_versions": ">=4.17.19",
            "findings": [{"version": "4.17.15", "paths": ["lodash"]}],
        },
    },
    "metadata": {
        "vulnerabilities": {"info": 0, "low": 1, "moderate": 1, "high": 1, "critical": 1}
    },
}

NPM7_AUDIT = {
    "vulnerabilities": {
        "axios": {
            "name": "axios",
            "severity": "moderate",
            "isDirect": True,
            "via": [{"name": "axios", "title": "SSRF", "url": "https://example.com/3"}],
            "range": "<0.21.1",
            "fixAvailable": {"name": "axios", "version": "0.21.4"},
        },
        "follow-redirects": {
            "name": "follow-redirects",
            "severity": "moderate",
            "isDirect": False,
            "via": ["axios"],
            "fixAvailable": True,
        },
    },
    "metadata": {"vulnerabilities": {"moderate": 2, "total": 2}},
}


def test_severity_order():
    assert is_severity_higher("critical", "high")
    assert not is_severity_higher("low", "moderate")
    assert is_severity_higher("info", "unrated")


def test_direct_dependencies_from_advisories():
    direct = identify_direct_dependencies(LEGACY_AUDIT)

    assert [(d["name"], d["severity"]) for d in direct] == [
        ("mkdirp", "critical"),
        ("lodash", "high"),
    ]
    assert direct[0]["vulnerableModule"] == "minimist"
    assert direct[0]["fixedVersion"] == ">=1.2.6"
    assert direct[1]["fixedVersion"] is None


def test_direct_dependencies_from_npm7_report():
    [axios] = identify_direct_dependencies(NPM7_AUDIT)

    assert axios["name"] == "axios"
    assert axios["fixedVersion"] == "0.21.4"
    assert axios["title"] == "SSRF"


def test_severity_summary():
    assert severity_summary(LEGACY_AUDIT) == {
        "critical": 1, "high": 1, "moderate": 1, "low": 1, "info": 0, "total": 4,
    }
    assert severity_summary(NPM7_AUDIT)["total"] == 2
    assert severity_summary({}) is None


def test_summary_with_project_usage(repo: Path):
    report = summarize_audit(LEGACY_AUDIT, discover_projects(repo))

    assert report["fixCommand"] == "npm audit fix --force"
    assert report["projectUsage"] == {"api": ["lodash"], "web": ["lodash"]}
    assert report["summary"]["total"] == 4


def test_summary_without_critical_findings():
    report = summarize_audit(NPM7_AUDIT)

    assert report["fixCommand"] == "npm audit fix"
    assert report["projectUsage"] == {}


def test_summary_of_clean_audit():
    report = summarize_audit({"metadata": {"vulnerabilities": {"total": 0}}})

    assert report["directDependencies"] == []
    assert report["fixCommand"] is None
