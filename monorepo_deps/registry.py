"""
npm registry lookups and npm-style version ordering.
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

import requests
from packaging import version as pkg_version
from tqdm import tqdm


logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "https://registry.npmjs.org"
USER_AGENT = "monorepo-deps"

_SEMVER_RE = re.compile(
    r"^v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)
_VERSION_IN_RANGE_RE = re.compile(r"\d+(?:\.\d+){0,2}(?:-[0-9A-Za-z.-]+)?")


def npm_semver_key(value: str) -> Optional[Tuple]:
    """Sort key following semver precedence, or None for non-semver strings.

    A leading ``v`` and build metadata are ignored; a prerelease sorts
    before its release; numeric prerelease identifiers sort before
    alphanumeric ones.
    """
    match = _SEMVER_RE.match(value.strip())
    if not match:
        return None
    major, minor, patch, prerelease = match.groups()
    if prerelease is None:
        return (int(major), int(minor), int(patch), 1, ())
    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in prerelease.split(".")
    )
    return (int(major), int(minor), int(patch), 0, identifiers)


def base_version(version_range: str) -> Optional[str]:
    """The version a range is anchored on: ``^1.2`` -> ``1.2.0``.

    Returns None for ranges with no version in them (``*``, ``latest``,
    ``workspace:*``, git or file references).
    """
    if not version_range or version_range.startswith(("workspace:", "file:", "link:", "git", "http")):
        return None
    match = _VERSION_IN_RANGE_RE.search(version_range)
    if not match:
        return None
    found = match.group(0)
    core, _, prerelease = found.partition("-")
    parts = core.split(".")
    while len(parts) < 3:
        parts.append("0")
    normalized = ".".join(parts)
    return f"{normalized}-{prerelease}" if prerelease else normalized


def is_outdated(declared: str, latest: Optional[str]) -> Optional[bool]:
    """Whether ``latest`` is newer than the version ``declared`` is based on."""
    current = base_version(declared)
    if current is None or not latest:
        return None
    current_key, latest_key = npm_semver_key(current), npm_semver_key(latest)
    if current_key is not None and latest_key is not None:
        return latest_key > current_key
    try:
        return pkg_version.parse(latest) > pkg_version.parse(current)
    except pkg_version.InvalidVersion:
        return None


class NpmRegistry:
    """Latest-version lookups against the npm registry.

    Names are fetched in fixed-size batches; each batch runs concurrently
    and batches are separated by a short pause to stay under rate limits.
    A failed lookup yields None for that name only.
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY,
        timeout: float = 5.0,
        batch_size: int = 5,
        batch_pause: float = 0.5,
        show_progress: bool = True,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self.batch_size = max(1, batch_size)
        self.batch_pause = batch_pause
        self.show_progress = show_progress
        self.session = session or requests.Session()
        self._sleep = sleep

    def fetch_latest_version(self, package_name: str) -> Optional[str]:
        url = f"{self.registry_url}/{quote(package_name, safe='@')}/latest"
        with self.session.get(
            url, timeout=self.timeout, headers={"User-Agent": USER_AGENT}
        ) as response:
            response.raise_for_status()
            data = response.json()
        return data.get("version") if isinstance(data, dict) else None

    def _safe_fetch(self, package_name: str) -> Optional[str]:
        try:
            return self.fetch_latest_version(package_name)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Error fetching version for %s: %s", package_name, e)
            return None

    def latest_versions(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        unique: List[str] = list(dict.fromkeys(names))
        batches = [
            unique[i:i + self.batch_size] for i in range(0, len(unique), self.batch_size)
        ]
        results: Dict[str, Optional[str]] = {}

        for index, batch in enumerate(
            tqdm(batches, desc="Fetching latest versions", unit="batch", disable=not self.show_progress)
        ):
            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                futures = {executor.submit(self._safe_fetch, name): name for name in batch}
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            if index < len(batches) - 1 and self.batch_pause > 0:
                self._sleep(self.batch_pause)

        failed = sum(1 for value in results.values() if value is None)
        logger.info(
            "Completed version check: %d successful, %d failed",
            len(results) - failed, failed,
        )
        return {name: results.get(name) for name in unique}
