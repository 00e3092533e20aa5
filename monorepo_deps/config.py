"""
Analyzer configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional


DEPENDENCY_MODES = ("auto", "root", "project")


@dataclass(frozen=True)
class AnalyzerConfig:
    """Settings shared by discovery, the analyzers and the service layer."""

    root: Path = Path(".")
    packages_dir: str = "packages"
    apps_dir: str = "apps"
    libs_dir: str = "libs"
    dependency_mode: str = "auto"
    use_external_tools: bool = True
    tool_timeout: float = 120.0
    cache_ttl: float = 3600.0
    registry_url: str = "https://registry.npmjs.org"
    request_timeout: float = 5.0
    batch_size: int = 5
    batch_pause: float = 0.5
    show_progress: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))
        if self.dependency_mode not in DEPENDENCY_MODES:
            raise ValueError(
                f"dependency_mode must be one of {', '.join(DEPENDENCY_MODES)}"
            )
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    @property
    def project_dirs(self):
        """Top-level directories scanned for projects, in scan order."""
        return (self.apps_dir, self.libs_dir, self.packages_dir)

    def with_overrides(self, **changes) -> "AnalyzerConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "AnalyzerConfig":
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get("MONOREPO_ROOT"):
            values["root"] = Path(environ["MONOREPO_ROOT"])
        for key, name in (
            ("PACKAGES_DIR", "packages_dir"),
            ("APPS_DIR", "apps_dir"),
            ("LIBS_DIR", "libs_dir"),
        ):
            if environ.get(key):
                values[name] = environ[key]
        if environ.get("CACHE_TTL"):
            try:
                values["cache_ttl"] = float(environ["CACHE_TTL"])
            except ValueError as e:
                raise ValueError(f"CACHE_TTL must be a number, got {environ['CACHE_TTL']!r}") from e
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
