"""
Adapters for the external CLI tools the analyzers consume.

Every adapter raises ToolUnavailable when the tool cannot be run, times out
or prints something that is not the JSON shape expected; callers fall back
to their built-in computation.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import ToolUnavailable


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class ExternalTool:
    """Base class for a JSON-emitting command line tool."""

    name = "tool"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, enabled: bool = True) -> None:
        self.timeout = timeout
        self.enabled = enabled

    def _run(
        self,
        cmd: Sequence[str],
        cwd: Optional[Path] = None,
        allow_nonzero: bool = False,
    ) -> Any:
        if not self.enabled:
            raise ToolUnavailable(self.name, "external tools disabled")

        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                list(cmd),
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                stdin=subprocess.DEVNULL,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolUnavailable(self.name, f"timed out after {self.timeout}s") from e
        except (FileNotFoundError, PermissionError) as e:
            raise ToolUnavailable(self.name, str(e)) from e

        # Several npm tools exit non-zero when they have findings to report.
        if result.returncode != 0 and not (allow_nonzero and result.stdout.strip()):
            raise ToolUnavailable(self.name, f"exit code {result.returncode}")

        output = result.stdout.strip()
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise ToolUnavailable(self.name, f"unparseable output: {e}") from e


class NxWorkspace(ExternalTool):
    """Project listing through the Nx CLI."""

    name = "nx"

    def list_projects(self, repo_root: Path) -> List[str]:
        if not (Path(repo_root) / "nx.json").is_file():
            raise ToolUnavailable(self.name, "no nx.json in repository root")
        data = self._run(["npx", "nx", "show", "projects", "--json"], cwd=repo_root)
        if not isinstance(data, list):
            raise ToolUnavailable(self.name, "project list is not a JSON array")
        return [str(name) for name in data]

    def project_config(self, repo_root: Path, project: str) -> Optional[Dict[str, str]]:
        try:
            data = self._run(
                ["npx", "nx", "show", "project", project, "--json"], cwd=repo_root
            )
        except ToolUnavailable as e:
            logger.warning("No configuration for project %s: %s", project, e)
            return None
        if not isinstance(data, dict) or "root" not in data:
            return None
        return {
            "root": str(data["root"]),
            "projectType": str(data.get("projectType") or "unknown"),
        }


class Depcheck(ExternalTool):
    name = "depcheck"

    def check(self, project_path: Path) -> Dict[str, Any]:
        data = self._run(
            ["npx", "depcheck", str(project_path), "--json"], allow_nonzero=True
        )
        if not isinstance(data, dict):
            raise ToolUnavailable(self.name, "result is not a JSON object")
        return {
            "dependencies": list(data.get("dependencies") or []),
            "devDependencies": list(data.get("devDependencies") or []),
            "missing": dict(data.get("missing") or {}),
        }


class NpmOutdated(ExternalTool):
    name = "npm outdated"

    def outdated(self, repo_root: Path) -> Dict[str, Dict[str, Any]]:
        data = self._run(["npm", "outdated", "--json"], cwd=repo_root, allow_nonzero=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ToolUnavailable(self.name, "result is not a JSON object")
        return data


class NpmAudit(ExternalTool):
    name = "npm audit"

    def audit(self, repo_root: Path) -> Dict[str, Any]:
        data = self._run(["npm", "audit", "--json"], cwd=repo_root, allow_nonzero=True)
        if not isinstance(data, dict):
            raise ToolUnavailable(self.name, "result is not a JSON object")
        return data


class Madge(ExternalTool):
    name = "madge"

    def circular(self, target: Path) -> List[List[str]]:
        data = self._run(
            ["npx", "madge", "--circular", "--json", str(target)], allow_nonzero=True
        )
        if not isinstance(data, list):
            raise ToolUnavailable(self.name, "result is not a JSON array")
        return data


class DependencyCruiser(ExternalTool):
    name = "dependency-cruiser"

    def graph(self, target: Path) -> Dict[str, Any]:
        data = self._run(
            [
                "npx", "dependency-cruiser",
                "--include-only", f"^{target}",
                "--exclude", "node_modules|dist|build",
                "--output-type", "json",
                str(target),
            ]
        )
        if not isinstance(data, dict):
            raise ToolUnavailable(self.name, "result is not a JSON object")
        return data
