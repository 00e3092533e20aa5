"""
package.json manifest reading.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ManifestUnreadable
from .models import DependencyKind, Manifest


logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"


def read_json(path: Path) -> Any:
    """Parse a JSON file, raising ManifestUnreadable on bad content."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestUnreadable(path, str(e)) from e
    except OSError as e:
        raise ManifestUnreadable(path, e.strerror) from e


def _dependency_section(data: Dict, key: str, path: Path) -> Dict[str, str]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        logger.warning("Ignoring non-object %s in %s", key, path)
        return {}
    return {str(name): str(version) for name, version in section.items()}


def parse_manifest(data: Any, path: Path) -> Manifest:
    if not isinstance(data, dict):
        raise ManifestUnreadable(path, "top-level value is not an object")
    sections = {
        kind: _dependency_section(data, kind.manifest_key, path)
        for kind in DependencyKind
    }
    name = data.get("name")
    version = data.get("version")
    return Manifest(
        name=str(name) if name else None,
        version=str(version) if version else None,
        dependencies=sections[DependencyKind.PRODUCTION],
        dev_dependencies=sections[DependencyKind.DEV],
        peer_dependencies=sections[DependencyKind.PEER],
    )


def load_manifest(directory: Path) -> Optional[Manifest]:
    """Load ``package.json`` from a directory.

    Returns None when the directory has no manifest; raises
    ManifestUnreadable when one exists but cannot be parsed.
    """
    path = Path(directory) / MANIFEST_FILE
    if not path.is_file():
        return None
    return parse_manifest(read_json(path), path)


class PackageJsonReader:
    """Manifest reader that degrades unreadable manifests to None."""

    def read(self, directory: Path) -> Optional[Manifest]:
        try:
            return load_manifest(directory)
        except ManifestUnreadable as e:
            logger.warning("%s; treating as having no dependencies", e)
            return None
