from __future__ import annotations

import logging
from pathlib import Path

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from .common import clean_lines, make_runner, make_tmp_dir

logger = logging.getLogger(__name__)


def local_branches(cwd: str | Path, *, config: FixturesConfig = DEFAULT_CONFIG) -> list[str]:
    r = make_runner(cwd, config)
    out = r.check(
        ["for-each-ref", "--format=%(refname:lstrip=2)", "refs/heads"],
        context="local_branches(for-each-ref)",
    )
    return clean_lines(out)


def clone_remote(
    local_path: str | Path,
    *,
    remote_name: str = "origin",
    remote_path: str | Path | None = None,
    should_set_upstream_branches: bool = True,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> Path:
    """
    Bare-clone `local_path` and register the clone as its `remote_name`.

    With `should_set_upstream_branches`, every local branch tracks the
    same-named branch on the new remote.
    """
    remote = Path(remote_path) if remote_path is not None else make_tmp_dir()
    remote.mkdir(parents=True, exist_ok=True)

    r = make_runner(local_path, config)
    r.check(["clone", "--quiet", "--bare", str(r.root), str(remote)], context="clone_remote(clone)")
    r.check(["remote", "add", remote_name, str(remote)], context="clone_remote(remote add)")
    r.check(["fetch", "--quiet", remote_name], context="clone_remote(fetch)")

    if should_set_upstream_branches:
        for branch in local_branches(r.root, config=config):
            r.check(
                ["branch", "--quiet", f"--set-upstream-to={remote_name}/{branch}", branch],
                context=f"clone_remote(upstream {branch})",
            )

    logger.debug("cloned %s to %s as %s", r.root, remote, remote_name)
    return remote.resolve()
