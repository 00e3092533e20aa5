"""
Error taxonomy for monorepo analysis.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class MonorepoError(Exception):
    """Base class for analysis errors."""


class RepositoryError(MonorepoError):
    """The repository root cannot be analysed at all."""


class ToolUnavailable(MonorepoError):
    """An external tool failed to run or produced unusable output."""

    def __init__(self, tool: str, reason: str) -> None:
        super().__init__(f"{tool} unavailable: {reason}")
        self.tool = tool
        self.reason = reason


class ManifestUnreadable(MonorepoError):
    """A manifest exists but cannot be parsed."""

    def __init__(self, path: Path, reason: Optional[str] = None) -> None:
        message = f"Unreadable manifest at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path
