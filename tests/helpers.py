import json
from pathlib import Path

from monorepo_deps.graph import DependencyGraph
from monorepo_deps.models import DependencyDeclaration, DependencyKind, Manifest, Project


def write_manifest(directory: Path, **fields) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(fields), encoding="utf-8")
    return path


def make_graph(declared):
    """Graph from {project: {dep: version}} with production declarations only."""
    projects = [Project(name=name, root=Path(name)) for name in declared]
    manifests = {
        name: Manifest(name=name, version="1.0.0", dependencies=dict(deps))
        for name, deps in declared.items()
    }
    declarations = [
        DependencyDeclaration(owner=name, dep_name=dep, version=version, kind=DependencyKind.PRODUCTION)
        for name, deps in declared.items()
        for dep, version in deps.items()
    ]
    return DependencyGraph(projects, manifests, declarations)
