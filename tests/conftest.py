from __future__ import annotations

import dataclasses
import subprocess
import textwrap
from pathlib import Path

import pytest

from git_fixtures.core.config import DEFAULT_CONFIG, FixturesConfig
from git_fixtures.resources import write_tree


def _run(cmd: list[str], cwd: Path) -> str:
    out = subprocess.check_output(
        cmd,
        cwd=str(cwd),
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    return out.strip()


@pytest.fixture()
def tmp_git_repo(tmp_path: Path) -> Path:
    """
    Plain repository built without the package under test:
      - 1 initial commit on `master`
      - known author identity
      - a couple of files + subdir
    """
    repo = tmp_path / "repo"
    repo.mkdir()

    _run(["git", "init", "--quiet"], repo)
    _run(["git", "symbolic-ref", "HEAD", "refs/heads/master"], repo)
    _run(["git", "config", "user.email", "ci@example.com"], repo)
    _run(["git", "config", "user.name", "CI"], repo)
    _run(["git", "config", "commit.gpgSign", "false"], repo)

    (repo / "README.md").write_text("# dummy\n", encoding="utf-8")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")

    _run(["git", "add", "-A"], repo)
    _run(["git", "commit", "-m", "initial"], repo)

    return repo


@pytest.fixture()
def make_change(tmp_git_repo: Path):
    """
    Helper: make working tree dirty in a predictable way.
    """
    def _maker(relpath: str = "README.md", text: str = "changed\n") -> Path:
        p = tmp_git_repo / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _maker


@pytest.fixture()
def make_fixtures(tmp_path: Path):
    """
    Helper: lay out a fixtures root, one directory per revision.
        make_fixtures({"A": {"x": "1"}, "B": {"y": "2"}})
    """
    def _maker(revisions: dict, name: str = "fixtures") -> Path:
        root = tmp_path / name
        root.mkdir()
        for revision, files in revisions.items():
            write_tree(root / revision, files)
        return root
    return _maker


@pytest.fixture()
def bin_dir(tmp_path: Path) -> Path:
    p = tmp_path / "bin"
    p.mkdir()
    return p


@pytest.fixture()
def subject_config(bin_dir: Path) -> FixturesConfig:
    return dataclasses.replace(DEFAULT_CONFIG, bin_dir=str(bin_dir))


@pytest.fixture()
def make_subject(bin_dir: Path):
    """
    Helper: write a Python subject script into the bin dir and return its name.
    """
    def _maker(name: str, source: str) -> str:
        (bin_dir / name).write_text(textwrap.dedent(source), encoding="utf-8")
        return name
    return _maker
