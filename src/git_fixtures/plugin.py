from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from git_fixtures.core.config import DEFAULT_CONFIG, FixturesConfig
from git_fixtures.resources import fixture_compare
from git_fixtures.tools import build_tmp, git_init


@pytest.fixture
def git_fixtures_config() -> FixturesConfig:
    """Override in a conftest.py to change identity, branch names, bin dir..."""
    return DEFAULT_CONFIG


@pytest.fixture
def git_repo(tmp_path: Path, git_fixtures_config: FixturesConfig) -> Path:
    """Bootstrapped repository on the default branch with only the root commit."""
    return git_init(
        tmp_path / "repo",
        git_fixtures_config.default_branch,
        config=git_fixtures_config,
    )


@pytest.fixture
def build_fixture_repo(git_fixtures_config: FixturesConfig) -> Callable[..., Path]:
    """
    Factory around build_tmp:
        cwd = build_fixture_repo("tests/fixtures/merge", dirty=True)
    """

    def _build(
        fixtures_path: str | Path,
        *,
        dirty: bool = False,
        no_git: bool = False,
        sub_dir: str = "",
    ) -> Path:
        return build_tmp(
            fixtures_path,
            dirty=dirty,
            no_git=no_git,
            sub_dir=sub_dir,
            config=git_fixtures_config,
        )

    return _build


@pytest.fixture
def assert_fixture(git_fixtures_config: FixturesConfig) -> Callable[[str | Path, str | Path], None]:
    def _compare(actual: str | Path, expected: str | Path) -> None:
        fixture_compare(actual, expected, config=git_fixtures_config)

    return _compare
