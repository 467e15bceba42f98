from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from ..core.paths import join_within, resolve_root
from .common import make_runner, make_tmp_dir
from .repo import commit, git_init

logger = logging.getLogger(__name__)


def list_revisions(fixtures_path: str | Path) -> list[Path]:
    """Revision directories of a fixtures root, in lexical order of their names."""
    root = resolve_root(fixtures_path)
    return sorted((p for p in root.iterdir() if p.is_dir()), key=lambda p: p.name)


def is_placeholder_only(revision: Path, config: FixturesConfig = DEFAULT_CONFIG) -> bool:
    entries = [p.name for p in revision.iterdir()]
    return entries == [config.empty_dir_placeholder]


def build_tmp(
    fixtures_path: str | Path,
    *,
    dirty: bool = False,
    no_git: bool = False,
    sub_dir: str = "",
    config: FixturesConfig = DEFAULT_CONFIG,
) -> Path:
    """
    Replay every revision under `fixtures_path` as one commit + tag in a new
    temporary repository and return the working directory (`sub_dir` of it).

    Each revision replaces the previous one entirely: files missing from a
    revision are gone in its commit. The result is checked out on the
    secondary branch, optionally with one untracked file (`dirty`) or with
    the `.git` directory of the working directory removed (`no_git`).
    """
    revisions = list_revisions(fixtures_path)

    tmp_path = git_init(make_tmp_dir(), config.default_branch, config=config)
    tmp_sub_path = join_within(tmp_path, sub_dir)
    r = make_runner(tmp_path, config)

    for i, revision in enumerate(revisions):
        tag = revision.name
        if i != 0:
            _clear_working_tree(tmp_path, config)

        tmp_sub_path.mkdir(parents=True, exist_ok=True)
        if is_placeholder_only(revision, config):
            logger.debug("revision %s is an empty directory", tag)
        else:
            shutil.copytree(revision, tmp_sub_path, symlinks=True, dirs_exist_ok=True)

        commit(tmp_path, message=tag, tag=tag, config=config)

    r.check(["checkout", "--quiet", "-b", config.secondary_branch], context="build_tmp(checkout)")

    if dirty:
        (tmp_sub_path / config.dirty_file_name).write_text(config.dirty_file_content, encoding="utf-8")

    if no_git:
        git_dir = tmp_sub_path / config.metadata_dir
        if git_dir.exists():
            shutil.rmtree(git_dir)

    logger.info("built %d revision(s) from %s at %s", len(revisions), fixtures_path, tmp_sub_path)
    return tmp_sub_path


def _clear_working_tree(cwd: Path, config: FixturesConfig) -> None:
    # Both commands leave .git alone.
    r = make_runner(cwd, config)
    r.check(["rm", "-r", "-q", "--ignore-unmatch", "--", "."], context="build_tmp(rm)")
    r.check(["clean", "-f", "-d", "-x", "-q"], context="build_tmp(clean)")
