"""
Shallow import scanning of JavaScript/TypeScript sources.

Only the package a static import refers to is recovered: no path
resolution, no dynamic imports, no re-export tracing.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from .models import ExternalUsage, Project


logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"}
EXCLUDED_DIRS = {"node_modules", "dist", "build", "coverage", "out", "tmp", ".git", ".nx"}

# import x from 'm' / import { a, b } from 'm' / import * as x from 'm' / import type { T } from 'm'
_IMPORT_FROM_RE = re.compile(
    r"""\bimport\s+(?:type\s+)?[\w$*{}\s,]+?\s+from\s*['"]([^'"\n]+)['"]"""
)

# import 'm'
_IMPORT_SIDE_EFFECT_RE = re.compile(r"""^\s*import\s+['"]([^'"\n]+)['"]""", re.MULTILINE)

# export { a } from 'm' / export * from 'm'
_EXPORT_FROM_RE = re.compile(
    r"""\bexport\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s+from\s*['"]([^'"\n]+)['"]"""
)

# require('m')
_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")

_PATTERNS = (_IMPORT_FROM_RE, _IMPORT_SIDE_EFFECT_RE, _EXPORT_FROM_RE, _REQUIRE_RE)


def extract_specifiers(source: str) -> List[str]:
    """Every module specifier referenced by a static import/require, in order."""
    found = []
    for pattern in _PATTERNS:
        for match in pattern.finditer(source):
            found.append((match.start(), match.group(1)))
    found.sort()
    return [specifier for _, specifier in found]


def package_candidate(specifier: str) -> Optional[str]:
    """Package name an import specifier refers to, or None for local imports.

    ``lodash/fp`` -> ``lodash``; ``@scope/name/sub`` -> ``@scope/name``.
    """
    specifier = specifier.strip()
    if not specifier or specifier.startswith((".", "/")) or specifier.startswith("node:"):
        return None
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def iter_source_files(root: Path) -> Iterator[Path]:
    """Source files under ``root``, skipping build output and dependencies."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for filename in sorted(filenames):
            if os.path.splitext(filename)[1] in SOURCE_EXTENSIONS:
                yield Path(dirpath) / filename


class ImportScanner:
    """Collect the external packages a project's sources import."""

    def scan_file(self, path: Path) -> Set[str]:
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Error processing file %s: %s", path, e)
            return set()
        candidates = set()
        for specifier in extract_specifiers(source):
            candidate = package_candidate(specifier)
            if candidate:
                candidates.add(candidate)
        return candidates

    def scan_by_file(self, root: Path) -> Dict[Path, Set[str]]:
        results: Dict[Path, Set[str]] = {}
        if not Path(root).is_dir():
            return results
        for path in iter_source_files(Path(root)):
            imports = self.scan_file(path)
            if imports:
                results[path] = imports
        return results

    def scan(self, root: Path) -> Set[str]:
        imports: Set[str] = set()
        for names in self.scan_by_file(root).values():
            imports.update(names)
        logger.debug("Found %d unique package imports under %s", len(imports), root)
        return imports

    def usages(self, project: Project) -> List[ExternalUsage]:
        return [
            ExternalUsage(owner=project.name, imported_name=name)
            for name in sorted(self.scan(project.root))
        ]
