import os
from pathlib import Path

import pytest

from buggenpy.config import ScanConfig
from buggenpy.locator import IgnoreMatcher, is_source_file, iter_source_files


def _touch(root: Path, *rel_paths: str) -> None:
    for rel_path in rel_paths:
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")


def _relative(root: Path, paths):
    return [os.path.relpath(p, root) for p in paths]


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    _touch(
        root,
        "b.py",
        "a.py",
        "a_pkg/z.py",
        "a_pkg/deeper/y.py",
        "c/x.py",
        "README.md",
        "setup.cfg",
        "test_a.py",
        "pkg_test.py",
        "tests/test_things.py",
        "tests/helpers.py",
        ".venv/lib/site.py",
        "pkg/__pycache__/mod.py",
        ".tox/lib/copied.py",
    )
    return root


def test_lexical_order_interleaves_files_and_directories(repo: Path):
    paths = list(iter_source_files(str(repo), ScanConfig()))
    assert _relative(repo, paths) == [
        "a.py",
        os.path.join("a_pkg", "deeper", "y.py"),
        os.path.join("a_pkg", "z.py"),
        "b.py",
        os.path.join("c", "x.py"),
        os.path.join("tests", "helpers.py"),
    ]


def test_paths_are_joined_onto_the_root_as_given(repo: Path):
    paths = list(iter_source_files(str(repo), ScanConfig()))
    assert all(p.startswith(str(repo) + os.sep) for p in paths)


def test_no_ignore_walks_tooling_directories(repo: Path):
    paths = _relative(repo, iter_source_files(str(repo), ScanConfig().without_ignores()))
    assert os.path.join(".venv", "lib", "site.py") in paths
    assert os.path.join(".tox", "lib", "copied.py") in paths
    assert "test_a.py" not in paths
    assert "pkg_test.py" not in paths


def test_packages_named_like_build_output_are_scanned(tmp_path: Path):
    root = tmp_path / "repo"
    _touch(
        root,
        "pkg/build/steps.py",
        "pkg/dist.py",
        "pkg/node_modules/shim.py",
        "pkg/site-packages/vendored.py",
        "pkg/__pycache__/stale.py",
    )

    paths = _relative(root, iter_source_files(str(root), ScanConfig()))
    assert paths == [
        os.path.join("pkg", "build", "steps.py"),
        os.path.join("pkg", "dist.py"),
        os.path.join("pkg", "node_modules", "shim.py"),
        os.path.join("pkg", "site-packages", "vendored.py"),
    ]


def test_single_source_file_root_is_yielded(tmp_path: Path):
    module = tmp_path / "module.py"
    module.write_text("")
    errors = []

    paths = list(iter_source_files(str(module), ScanConfig(), errors.append))

    assert paths == [str(module)]
    assert errors == []


def test_single_non_source_file_root_yields_nothing(tmp_path: Path):
    for name in ("notes.txt", "test_module.py"):
        path = tmp_path / name
        path.write_text("")
        errors = []
        assert list(iter_source_files(str(path), ScanConfig(), errors.append)) == []
        assert errors == []


def test_walk_is_deterministic(repo: Path):
    config = ScanConfig()
    assert list(iter_source_files(str(repo), config)) == list(
        iter_source_files(str(repo), config)
    )


def test_gitignore_patterns_are_honoured(tmp_path: Path):
    root = tmp_path / "repo"
    _touch(root, "keep.py", "generated/out.py", "src/gen_a.py", "src/real.py")
    (root / ".gitignore").write_text("# comment\ngenerated/\nsrc/gen_*.py\n")

    paths = _relative(root, iter_source_files(str(root), ScanConfig()))
    assert paths == ["keep.py", os.path.join("src", "real.py")]


def test_walk_errors_are_reported_and_skipped(tmp_path: Path):
    vanished = tmp_path / "vanished"
    errors = []

    paths = list(iter_source_files(str(vanished), ScanConfig(), errors.append))

    assert paths == []
    assert len(errors) == 1
    assert isinstance(errors[0], OSError)


def test_empty_repository(tmp_path: Path):
    assert list(iter_source_files(str(tmp_path), ScanConfig())) == []


@pytest.mark.parametrize(
    "name, expected",
    [
        ("module.py", True),
        ("conftest.py", True),
        ("test_module.py", False),
        ("module_test.py", False),
        ("module.pyc", False),
        ("module.pyi", False),
        ("testing.py", True),
    ],
)
def test_is_source_file(name, expected):
    assert is_source_file(name, ScanConfig()) is expected


def test_is_ignored_with_nested_gitignores(tmp_path: Path):
    """
    .gitignore files apply to their own directory and everything below it,
    cascading up to the project root.
    """
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    (project_dir / ".gitignore").write_text("*.log\nnode_modules/\n")
    _touch(project_dir, "file.log", "main.py", "node_modules/some_lib")

    sub_dir = project_dir / "src"
    sub_dir.mkdir()
    (sub_dir / ".gitignore").write_text("*.tmp\n__pycache__/\n")
    _touch(sub_dir, "component.py", "component.tmp", "__pycache__/cache_file")
    _touch(sub_dir, "api/endpoint.py", "api/endpoint.log", "api/endpoint.tmp")

    matcher = IgnoreMatcher(str(project_dir), (), use_gitignore=True)
    test_cases = [
        ("file.log", True),
        ("main.py", False),
        ("node_modules", True),
        ("src/component.py", False),
        ("src/component.tmp", True),
        ("src/__pycache__", True),
        ("src/api/endpoint.py", False),
        ("src/api/endpoint.log", True),
        ("src/api/endpoint.tmp", True),
        ("component.tmp", False),
    ]
    for rel_path, expected in test_cases:
        full_path = project_dir / rel_path
        assert matcher.is_ignored(str(full_path)) == expected, (
            f"Failed on path: {rel_path}"
        )
