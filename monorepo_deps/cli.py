"""
Command-line interface for the monorepo dependency analyzer.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .analyzer import MonorepoAnalyzer
from .config import AnalyzerConfig
from .consistency import find_version_inconsistencies, inconsistencies_to_dict
from .errors import MonorepoError
from .reporting import (
    export_declarations_csv,
    export_inconsistencies_csv,
    export_worksheets,
    print_summary,
    save_results_json,
)


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monorepo-deps",
        description="Analyze the dependency structure of a JavaScript/TypeScript monorepo"
    )

    parser.add_argument(
        "--root",
        default=None,
        help="Monorepo root directory. Default: $MONOREPO_ROOT or the current directory"
    )
    parser.add_argument("--packages-dir", default=None, help="Packages directory. Default: packages")
    parser.add_argument("--apps-dir", default=None, help="Applications directory. Default: apps")
    parser.add_argument("--libs-dir", default=None, help="Libraries directory. Default: libs")

    parser.add_argument(
        "--no-tools",
        action="store_true",
        help="Do not run external tools (nx, depcheck, npm, madge, dependency-cruiser)"
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Save the JSON result (and CSV exports) to this directory"
    )

    parser.add_argument(
        "--worksheets",
        action="store_true",
        help="Export the declaration table to an Excel file with multiple sheets"
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("structure", help="Projects and their declared dependencies")
    commands.add_parser("inconsistencies", help="Dependencies declared with different versions")
    unused = commands.add_parser("unused", help="Declared dependencies that seem unused")
    unused.add_argument("--project", default=None, help="Limit to one project")
    commands.add_parser("outdated", help="Dependencies with newer published versions")
    graph = commands.add_parser("graph", help="Dependency graph between projects")
    graph.add_argument("--project", default=None, help="Limit to what one project reaches")
    commands.add_parser("circular", help="Circular dependencies between projects")
    commands.add_parser("security", help="Vulnerability audit summary")
    used_by = commands.add_parser("used-by", help="Projects declaring a dependency")
    used_by.add_argument("dependency")
    project_deps = commands.add_parser("project-deps", help="Dependencies of one project")
    project_deps.add_argument("project")
    query = commands.add_parser("query", help="Answer a free-text question")
    query.add_argument("text", nargs="+")

    return parser


def run_command(analyzer: MonorepoAnalyzer, args: argparse.Namespace):
    if args.command == "structure":
        return analyzer.get_structure()
    if args.command == "inconsistencies":
        return analyzer.get_version_inconsistencies()
    if args.command == "unused":
        return analyzer.get_unused_dependencies(args.project)
    if args.command == "outdated":
        return analyzer.get_outdated_dependencies()
    if args.command == "graph":
        return analyzer.get_dependency_graph(args.project)
    if args.command == "circular":
        return analyzer.get_circular_dependencies()
    if args.command == "security":
        return analyzer.get_security_vulnerabilities()
    if args.command == "used-by":
        return analyzer.get_packages_using_dependency(args.dependency)
    if args.command == "project-deps":
        return analyzer.get_project_dependencies(args.project)
    return analyzer.query(" ".join(args.text))


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = AnalyzerConfig.from_env(
            root=Path(args.root) if args.root else None,
            packages_dir=args.packages_dir,
            apps_dir=args.apps_dir,
            libs_dir=args.libs_dir,
            use_external_tools=False if args.no_tools else None,
        )
    except ValueError as e:
        parser.error(str(e))
    analyzer = MonorepoAnalyzer(config)

    try:
        results = run_command(analyzer, args)
        if args.command == "structure" and "packages" in results:
            print_summary(results)

        print(json.dumps(results, indent=2, default=str))

        if args.output_dir or args.worksheets:
            output_dir = Path(args.output_dir or "./output")
            results_file = save_results_json(results, output_dir, args.command)
            logger.info("Results saved to: %s", results_file)

            graph = analyzer.build_graph()
            logger.info("Declarations saved to: %s", export_declarations_csv(graph, output_dir))
            report = inconsistencies_to_dict(find_version_inconsistencies(graph))
            inconsistencies_file = export_inconsistencies_csv(report, output_dir)
            if inconsistencies_file:
                logger.info("Inconsistencies saved to: %s", inconsistencies_file)

            if args.worksheets:
                logger.info("Worksheets saved to: %s", export_worksheets(graph, report, output_dir))

    except MonorepoError as e:
        logger.error("Error during analysis: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
