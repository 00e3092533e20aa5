#!/usr/bin/env python3
"""
Example script showing how to use the monorepo-deps tool.
"""

from pathlib import Path
from monorepo_deps.analyzer import MonorepoAnalyzer
from monorepo_deps.config import AnalyzerConfig


REPO_ROOT = Path("./my-monorepo")


def example_structure():
    """Example: Projects and what they declare."""
    print("="*60)
    print("Example 1: Structure Overview")
    print("="*60)

    analyzer = MonorepoAnalyzer(AnalyzerConfig(root=REPO_ROOT))
    structure = analyzer.get_structure()

    print(f"\nProjects: {structure['packageCount']}")
    print(f"Declared dependencies: {structure['totalDependencies']}")
    print(f"Internal dependencies: {structure['internalDependencies']}")
    for package in structure["packages"]:
        print(f"  {package['name']} ({package['type']}): {package['totalDependencies']} deps")


def example_inconsistencies_and_cycles():
    """Example: Built-in analyses only, no external tools."""
    print("\n" + "="*60)
    print("Example 2: Version Inconsistencies and Cycles")
    print("="*60)

    analyzer = MonorepoAnalyzer(AnalyzerConfig(root=REPO_ROOT, use_external_tools=False))

    report = analyzer.get_version_inconsistencies()
    print(f"\n{report['total']} dependencies declared with more than one version")
    for name, detail in report["details"].items():
        print(f"  {name}: {', '.join(detail['versions'])}")

    circular = analyzer.get_circular_dependencies()
    for cycle in circular["cycles"]:
        print("  cycle: " + " -> ".join(cycle + cycle[:1]))


def example_query():
    """Example: Free-text questions."""
    print("\n" + "="*60)
    print("Example 3: Queries")
    print("="*60)

    analyzer = MonorepoAnalyzer(AnalyzerConfig(root=REPO_ROOT, use_external_tools=False))
    for question in (
        "show dependencies for project web",
        "which packages are using react",
        "anything unused in package utils",
    ):
        print(f"\n> {question}")
        print(analyzer.query(question))


def main():
    """Run all examples."""
    print("\nMonorepo Dependency Analyzer - Usage Examples\n")

    try:
        example_structure()
        example_inconsistencies_and_cycles()
        example_query()

        print("\n" + "="*60)
        print("All examples completed successfully!")
        print("="*60)

    except Exception as e:
        print(f"\nError running examples: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
