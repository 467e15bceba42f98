from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from git_fixtures.core.errors import InvalidRootError
from git_fixtures.resources import read_tree, tags, tree_at_ref
from git_fixtures.tools import build_tmp


def _git(args: list[str], cwd: Path) -> str:
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd),
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    return out.strip()


def _worktree(cwd: Path) -> dict:
    tree = read_tree(cwd)
    tree.pop(".git", None)
    return tree


def test_revisions_are_replayed_without_accumulating(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}, "B": {"y": "2"}})

    cwd = build_tmp(fixtures)

    assert tree_at_ref(cwd, "A") == {"x": "1"}
    assert tree_at_ref(cwd, "B") == {"y": "2"}

    _git(["checkout", "--quiet", "A"], cwd)
    assert _worktree(cwd) == {"x": "1"}
    _git(["checkout", "--quiet", "B"], cwd)
    assert _worktree(cwd) == {"y": "2"}


def test_each_revision_is_commit_message_and_tag(make_fixtures):
    fixtures = make_fixtures({"first": {"a": "1"}, "second": {"a": "2"}})

    cwd = build_tmp(fixtures)

    assert tags(cwd) == ["first", "second"]
    log = _git(["log", "--pretty=format:%s"], cwd).splitlines()
    assert log == ["second", "first", "initial commit"]


def test_unchanged_revision_still_gets_its_tag(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}, "B": {"x": "1"}})

    cwd = build_tmp(fixtures)

    assert tags(cwd) == ["A", "B"]
    assert _git(["rev-parse", "A^{commit}"], cwd) != _git(["rev-parse", "B^{commit}"], cwd)


def test_revisions_are_sorted_by_name(tmp_path: Path):
    fixtures = tmp_path / "fixtures"
    for name, content in [("b-second", "2"), ("a-first", "1"), ("c-third", "3")]:
        (fixtures / name).mkdir(parents=True)
        (fixtures / name / "f").write_text(content, encoding="utf-8")
    (fixtures / "stray-file.txt").write_text("ignored", encoding="utf-8")

    cwd = build_tmp(fixtures)

    log = _git(["log", "--pretty=format:%s"], cwd).splitlines()
    assert log == ["c-third", "b-second", "a-first", "initial commit"]


def test_nested_files_are_copied(make_fixtures):
    fixtures = make_fixtures({"A": {"src": {"main.py": "print(1)\n"}, "README": "hi\n"}})

    cwd = build_tmp(fixtures)

    assert _worktree(cwd) == {"src": {"main.py": "print(1)\n"}, "README": "hi\n"}


def test_placeholder_revision_produces_empty_directory(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}, "B": {".gitkeep": ""}})

    cwd = build_tmp(fixtures)

    assert cwd.is_dir()
    assert _worktree(cwd) == {}
    assert tree_at_ref(cwd, "B") == {}


def test_placeholder_revision_in_sub_dir(make_fixtures):
    fixtures = make_fixtures({"A": {".gitkeep": ""}})

    cwd = build_tmp(fixtures, sub_dir="app")

    assert cwd.name == "app"
    assert cwd.is_dir()
    assert list(cwd.iterdir()) == []


def test_placeholder_is_copied_when_not_alone(make_fixtures):
    fixtures = make_fixtures({"A": {".gitkeep": "", "x": "1"}})

    cwd = build_tmp(fixtures)

    assert _worktree(cwd) == {".gitkeep": "", "x": "1"}


def test_ends_on_secondary_branch_with_clean_status(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}})

    cwd = build_tmp(fixtures)

    assert _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd) == "foo"
    assert _git(["branch"], cwd).splitlines() == ["* foo", "  master"]
    assert _git(["status", "--porcelain"], cwd) == ""


def test_dirty_leaves_one_untracked_file(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}})

    cwd = build_tmp(fixtures, dirty=True)

    assert (cwd / "a-random-new-file").read_text(encoding="utf-8") == "foo"
    assert _git(["status", "--porcelain"], cwd) == "?? a-random-new-file"


def test_no_git_strips_repository(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}, "B": {"x": "2"}})

    cwd = build_tmp(fixtures, no_git=True)

    assert not (cwd / ".git").exists()
    assert read_tree(cwd) == {"x": "2"}


def test_sub_dir_is_returned_and_repo_lives_above(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}, "B": {"y": "2"}})

    cwd = build_tmp(fixtures, sub_dir="packages/app")

    repo_root = cwd.parent.parent
    assert (repo_root / ".git").is_dir()
    assert read_tree(cwd) == {"y": "2"}
    assert tree_at_ref(repo_root, "A") == {"packages": {"app": {"x": "1"}}}
    assert tree_at_ref(repo_root, "A", "packages/app") == {"x": "1"}


def test_sub_dir_cannot_escape_tmp_root(make_fixtures):
    fixtures = make_fixtures({"A": {"x": "1"}})

    with pytest.raises(InvalidRootError):
        build_tmp(fixtures, sub_dir="../outside")


def test_zero_revisions_leaves_bootstrap_state(make_fixtures):
    fixtures = make_fixtures({})

    cwd = build_tmp(fixtures)

    assert _git(["log", "--pretty=format:%s"], cwd) == "initial commit"
    assert tags(cwd) == []
    assert _worktree(cwd) == {}
