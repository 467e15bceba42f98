from __future__ import annotations

import logging
import os
from pathlib import Path

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from .common import make_runner, make_tmp_dir

logger = logging.getLogger(__name__)


def git_init(
    cwd: str | Path | None = None,
    default_branch_name: str | None = None,
    *,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> Path:
    """
    Initialize a repository with a fixed identity and merge tooling, then
    create its root commit.

    `cwd` defaults to a fresh temporary directory. When `default_branch_name`
    is given HEAD is pointed at it before the root commit, so the branch
    never depends on the machine's init.defaultBranch.
    """
    root = Path(cwd) if cwd is not None else make_tmp_dir()
    root.mkdir(parents=True, exist_ok=True)
    r = make_runner(root, config)

    r.check(["init", "--quiet"], context="git_init(init)")
    settings = [
        ("user.email", config.author_email),
        ("user.name", config.author_name),
        ("merge.tool", config.merge_tool),
        ("mergetool.keepBackup", "false"),
        ("core.excludesFile", os.devnull),
        ("commit.gpgSign", "false"),
        ("tag.gpgSign", "false"),
    ]
    for key, value in settings:
        r.check(["config", key, value], context=f"git_init(config {key})")

    if default_branch_name:
        r.check(
            ["symbolic-ref", "HEAD", f"refs/heads/{default_branch_name}"],
            context="git_init(default branch)",
        )

    commit(r.root, config=config)
    logger.debug("initialized repository at %s", r.root)
    return r.root


def commit(
    cwd: str | Path,
    message: str | None = None,
    tag: str | None = None,
    *,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> str:
    """
    Stage everything and commit, even when nothing changed.

    Skipping unchanged trees would drop revisions from the tag sequence, so
    --allow-empty is always passed. Returns the new commit sha.
    """
    r = make_runner(cwd, config)
    message = message or config.initial_commit_message

    r.check(["add", "-A"], context="commit(add)")
    r.check(["commit", "--quiet", "--allow-empty", "-m", message], context="commit(commit)")
    if tag:
        r.check(["tag", tag], context=f"commit(tag {tag})")

    sha = r.check(["rev-parse", "HEAD"], context="commit(rev-parse)").strip()
    logger.debug("committed %s %r%s", sha[:7], message, f" tagged {tag}" if tag else "")
    return sha
