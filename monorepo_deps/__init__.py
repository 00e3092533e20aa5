"""
Monorepo Dependency Analyzer

A tool for analyzing project structure, version consistency, circular
dependencies and dependency usage in JavaScript/TypeScript monorepos.
"""

__version__ = "0.1.0"

from .analyzer import MonorepoAnalyzer
from .cli import main

__all__ = ["MonorepoAnalyzer", "main"]
