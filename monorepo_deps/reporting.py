"""
Reporting and export utilities.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .graph import DependencyGraph


logger = logging.getLogger(__name__)

INCONSISTENCY_COLUMNS = ["dependency", "project", "version", "type"]


def print_summary(structure: Dict) -> None:
    logger.info("=" * 60)
    logger.info("MONOREPO STRUCTURE")
    logger.info("=" * 60)
    logger.info("Root: %s", structure.get("root"))
    logger.info("Projects: %s", structure.get("packageCount"))
    logger.info("Declared dependencies: %s", structure.get("totalDependencies"))
    logger.info("Internal dependencies: %s", structure.get("internalDependencies"))
    if structure.get("frameworks"):
        logger.info("Frameworks: %s", ", ".join(structure["frameworks"]))
    logger.info("-" * 60)
    for name, count in (structure.get("mostUsed") or {}).items():
        logger.info("%-40s used by %d projects", name, count)
    logger.info("=" * 60)


def save_results_json(results: Dict, output_dir: Path, name: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    results_file = output_dir / f"{name}_results.json"
    with open(results_file, 'w') as f:
        json.dump(results, f, indent=2, default=str)
    return results_file


def inconsistencies_frame(report: Dict) -> pd.DataFrame:
    """Flatten an inconsistency report to one row per declaration."""
    rows = [
        {"dependency": dep_name, **occurrence}
        for dep_name, detail in (report.get("details") or {}).items()
        for occurrence in detail["occurrences"]
    ]
    return pd.DataFrame(rows, columns=INCONSISTENCY_COLUMNS)


def export_declarations_csv(graph: DependencyGraph, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    declarations_file = output_dir / "declarations.csv"
    graph.to_frame().to_csv(declarations_file, index=False)
    return declarations_file


def export_inconsistencies_csv(report: Dict, output_dir: Path) -> Optional[Path]:
    if not report.get("details"):
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    inconsistencies_file = output_dir / "version_inconsistencies.csv"
    inconsistencies_frame(report).to_csv(inconsistencies_file, index=False)
    return inconsistencies_file


def export_worksheets(graph: DependencyGraph, report: Dict, output_dir: Path) -> Path:
    """Write an Excel workbook: all declarations, then one sheet per project."""
    output_dir.mkdir(parents=True, exist_ok=True)
    excel_file = output_dir / "dependency_worksheets.xlsx"
    frame = graph.to_frame()
    with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
        frame.to_excel(writer, sheet_name="declarations", index=False)
        inconsistencies_frame(report).to_excel(writer, sheet_name="inconsistencies", index=False)
        used = {"declarations", "inconsistencies"}
        for owner, project_df in frame.groupby("owner", sort=False):
            # Excel sheet names have a 31 character limit
            sheet_name = str(owner).replace("/", "_")[:31]
            if sheet_name in used:
                continue
            used.add(sheet_name)
            project_df.to_excel(writer, sheet_name=sheet_name, index=False)
    return excel_file
