import json
from pathlib import Path

import pytest

from monorepo_deps.config import AnalyzerConfig
from monorepo_deps.discovery import ProjectDiscovery, discover_projects
from monorepo_deps.errors import RepositoryError, ToolUnavailable
from monorepo_deps.models import ProjectType

from .helpers import write_manifest


class FakeLister:
    def __init__(self, names=None, configs=None, error=None):
        self.names = names or []
        self.configs = configs or {}
        self.error = error

    def list_projects(self, repo_root):
        if self.error:
            raise self.error
        return self.names

    def project_config(self, repo_root, project):
        return self.configs.get(project)


def test_directory_scan(repo: Path):
    projects = discover_projects(repo)

    assert [p.name for p in projects] == ["api", "web", "ui", "utils"]
    assert [p.type for p in projects] == [
        ProjectType.APPLICATION, ProjectType.APPLICATION, ProjectType.LIBRARY, ProjectType.LIBRARY,
    ]
    web = projects[1]
    assert web.root == repo / "apps" / "web"
    assert web.package_name == "@acme/web"
    assert web.aliases == frozenset({"web", "@acme/web"})


def test_directory_scan_skips_hidden_dirs(tmp_path: Path):
    for name in ("core", ".cache"):
        (tmp_path / "packages" / name).mkdir(parents=True)
    (tmp_path / "packages" / "README.md").write_text("docs", encoding="utf-8")

    projects = discover_projects(tmp_path)

    assert [p.name for p in projects] == ["core"]
    assert projects[0].type is ProjectType.UNKNOWN
    assert projects[0].package_name is None


def test_directory_scan_keeps_projects_named_like_output_dirs(tmp_path: Path):
    for directory in ("apps/web", "apps/tmp", "libs/build", "libs/dist", "libs/coverage", "libs/ui"):
        write_manifest(tmp_path / directory, name=directory.split("/")[1])

    projects = discover_projects(tmp_path)

    assert [p.name for p in projects] == ["tmp", "web", "build", "coverage", "dist", "ui"]
    build = projects[2]
    assert build.type is ProjectType.LIBRARY
    assert build.package_name == "build"


def test_missing_directories_yield_no_projects(tmp_path: Path):
    assert discover_projects(tmp_path) == []


def test_custom_directories(tmp_path: Path):
    (tmp_path / "modules" / "alpha").mkdir(parents=True)
    config = AnalyzerConfig(packages_dir="modules")

    projects = discover_projects(tmp_path, config=config)

    assert [p.name for p in projects] == ["alpha"]


def test_root_must_be_a_directory(tmp_path: Path):
    with pytest.raises(RepositoryError):
        discover_projects(tmp_path / "nope")


def test_workspace_manifest(tmp_path: Path):
    (tmp_path / "tools" / "scripts").mkdir(parents=True)
    (tmp_path / "workspace.json").write_text(
        json.dumps({
            "projects": {
                "shell": {"root": "apps/shell", "projectType": "application"},
                "scripts": "tools/scripts",
            }
        }),
        encoding="utf-8",
    )

    projects = discover_projects(tmp_path)

    assert [(p.name, p.type) for p in projects] == [
        ("shell", ProjectType.APPLICATION),
        ("scripts", ProjectType.UNKNOWN),
    ]
    assert projects[0].root == tmp_path / "apps" / "shell"
    assert projects[1].root == tmp_path / "tools" / "scripts"


def test_nx_json_without_projects_falls_back_to_scan(repo: Path):
    (repo / "nx.json").write_text(json.dumps({"npmScope": "acme"}), encoding="utf-8")

    projects = discover_projects(repo)

    assert len(projects) == 4


def test_workspace_tool_listing(repo: Path):
    lister = FakeLister(
        names=["web", "orphan"],
        configs={"web": {"root": "apps/web", "projectType": "application"}},
    )

    projects = discover_projects(repo, lister=lister)

    assert [p.name for p in projects] == ["web", "orphan"]
    assert projects[0].package_name == "@acme/web"
    assert projects[1].root == repo / "orphan"


def test_workspace_tool_guesses_root_from_directories(repo: Path):
    projects = discover_projects(repo, lister=FakeLister(names=["ui"]))

    assert projects[0].root == repo / "libs" / "ui"
    assert projects[0].type is ProjectType.LIBRARY


def test_workspace_tool_failure_falls_back(repo: Path):
    lister = FakeLister(error=ToolUnavailable("nx", "not installed"))
    discovery = ProjectDiscovery(AnalyzerConfig(root=repo), lister=lister)

    assert not discovery.from_workspace_tool().ok
    assert [p.name for p in discovery.discover()] == ["api", "web", "ui", "utils"]


def test_empty_listing_falls_back(repo: Path):
    projects = discover_projects(repo, lister=FakeLister(names=[]))

    assert len(projects) == 4


def test_duplicate_names_are_kept(tmp_path: Path, caplog):
    (tmp_path / "apps" / "shared").mkdir(parents=True)
    (tmp_path / "libs" / "shared").mkdir(parents=True)

    projects = discover_projects(tmp_path)

    assert [p.name for p in projects] == ["shared", "shared"]
    assert "used by 2 directories" in caplog.text
