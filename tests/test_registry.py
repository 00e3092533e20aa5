"""Tests for npm version ordering and registry lookups."""

import threading

import requests

from monorepo_deps.registry import NpmRegistry, base_version, is_outdated, npm_semver_key


def test_npm_semver_ordering() -> None:
    versions = [
        "1.2.3+build.7",
        "0.0.1",
        "1.0.0",
        "0.0.0-insiders.b4008fc",
        "1.0.0-beta",
        "0.0.1-alpha.1",
        "0.0.0",
        "1.0.0-alpha.1",
        "1.0.0-alpha",
        "1.0.0-alpha.beta",
    ]

    ordered = sorted(versions, key=npm_semver_key)

    assert ordered == [
        "0.0.0-insiders.b4008fc",
        "0.0.0",
        "0.0.1-alpha.1",
        "0.0.1",
        "1.0.0-alpha",
        "1.0.0-alpha.1",
        "1.0.0-alpha.beta",
        "1.0.0-beta",
        "1.0.0",
        "1.2.3+build.7",
    ]


def test_npm_semver_key_ignores_prefix_and_build() -> None:
    assert npm_semver_key("v1.2.3") == npm_semver_key("1.2.3+build.7") == npm_semver_key("1.2.3")
    assert npm_semver_key("1.2") is None
    assert npm_semver_key("latest") is None


def test_base_version() -> None:
    assert base_version("^1.2") == "1.2.0"
    assert base_version("~2.0.1") == "2.0.1"
    assert base_version(">=3") == "3.0.0"
    assert base_version(">=1.2.3 <2.0.0") == "1.2.3"
    assert base_version("1.0.0-rc.1") == "1.0.0-rc.1"
    assert base_version("workspace:*") is None
    assert base_version("file:../lib") is None
    assert base_version("*") is None
    assert base_version("") is None


def test_is_outdated() -> None:
    assert is_outdated("^4.17.15", "4.17.21") is True
    assert is_outdated("^4.17.21", "4.17.21") is False
    assert is_outdated("2.0.0", "1.9.0") is False
    assert is_outdated("1.0.0-beta", "1.0.0") is True
    assert is_outdated("*", "1.0.0") is None
    assert is_outdated("^1.0.0", None) is None


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    def __init__(self, versions, errors=()):
        self.versions = versions
        self.errors = set(errors)
        self.urls = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None, headers=None):
        with self._lock:
            self.urls.append(url)
        name = url.split("/")[-2].replace("%2F", "/")
        if name in self.errors:
            raise requests.ConnectionError("connection refused")
        if name not in self.versions:
            return FakeResponse(status_code=404)
        return FakeResponse(payload={"name": name, "version": self.versions[name]})


def make_registry(session, pauses, batch_size=3):
    return NpmRegistry(
        registry_url="https://registry.example.com/",
        batch_size=batch_size,
        batch_pause=0.5,
        show_progress=False,
        session=session,
        sleep=pauses.append,
    )


def test_fetch_latest_version_quotes_scoped_names():
    session = FakeSession({"@acme/ui": "2.1.0"})
    registry = make_registry(session, [])

    assert registry.fetch_latest_version("@acme/ui") == "2.1.0"
    assert session.urls == ["https://registry.example.com/@acme%2Fui/latest"]


def test_latest_versions_in_batches():
    session = FakeSession(
        {"a": "1.0.0", "b": "2.0.0", "c": "3.0.0", "d": "4.0.0", "e": "5.0.0"},
        errors={"f"},
    )
    pauses = []
    registry = make_registry(session, pauses)

    latest = registry.latest_versions(["a", "b", "c", "d", "e", "f", "missing", "a"])

    assert latest == {
        "a": "1.0.0",
        "b": "2.0.0",
        "c": "3.0.0",
        "d": "4.0.0",
        "e": "5.0.0",
        "f": None,
        "missing": None,
    }
    assert len(session.urls) == 7
    assert pauses == [0.5, 0.5]


def test_single_batch_does_not_pause():
    pauses = []
    registry = make_registry(FakeSession({"a": "1.0.0"}), pauses, batch_size=5)

    assert registry.latest_versions(["a"]) == {"a": "1.0.0"}
    assert pauses == []
    assert registry.latest_versions([]) == {}
