from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Awaitable

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from ..core.errors import FatalMarkerError, VerificationError
from ..core.models import Fatal, HandledFailure, Outcome, Success, VerificationResult
from ..core.parsers import branch_layout_pattern
from .common import make_runner

logger = logging.getLogger(__name__)


def as_outcome(value: Any) -> Outcome:
    if isinstance(value, (Success, HandledFailure, Fatal)):
        return value
    return Success(value)


def assert_no_fatal_markers(stderr: str, *, config: FixturesConfig = DEFAULT_CONFIG) -> None:
    """A handled failure must not look like a crash."""
    found = [marker for marker in config.fatal_markers if marker in stderr]
    if found:
        raise FatalMarkerError(f"stderr contains fatal marker(s) {found!r}:\n{stderr}")


def verify_git_state(
    cwd: str | Path,
    *,
    commit_message: str,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> str:
    """
    Check what the subject left in the repository and return the raw
    `git status --porcelain` text.

    - HEAD is authored by the fixture identity and mentions `commit_message`
    - the secondary branch is checked out and the default branch survived
    """
    r = make_runner(cwd, config)

    last_commit = r.check(["log", "-1"], context="process_exit(log)")
    if config.author_line not in last_commit:
        raise VerificationError(f"last commit not authored by {config.author_line!r}:\n{last_commit}")
    if commit_message not in last_commit:
        raise VerificationError(f"last commit does not mention {commit_message!r}:\n{last_commit}")

    branches = r.check(["branch"], context="process_exit(branch)")
    pattern = branch_layout_pattern(config.secondary_branch, config.default_branch)
    if not pattern.search(branches):
        raise VerificationError(
            f"expected {config.secondary_branch!r} checked out next to "
            f"{config.default_branch!r}, got:\n{branches}"
        )

    return r.check(["status", "--porcelain"], context="process_exit(status)")


async def process_exit(
    pending: Awaitable[Any],
    *,
    cwd: str | Path,
    commit_message: str | None = None,
    no_git: bool = False,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> VerificationResult:
    """
    Turn a subject's outcome into a VerificationResult.

    Fatal outcomes and exceptions raised by `pending` propagate. A handled
    failure (captured stderr) is returned as `stderr` unless it carries a
    fatal marker. Git post-checks run unless `no_git`.
    """
    if not no_git and commit_message is None:
        if asyncio.iscoroutine(pending):
            pending.close()
        raise ValueError("commit_message is required unless no_git=True")

    outcome = as_outcome(await pending)

    if isinstance(outcome, Fatal):
        raise outcome.error

    if isinstance(outcome, HandledFailure):
        assert_no_fatal_markers(outcome.stderr, config=config)
        verification = VerificationResult(stderr=outcome.stderr)
    else:
        verification = VerificationResult(result=outcome.value)

    if no_git:
        return verification

    status = verify_git_state(cwd, commit_message=commit_message, config=config)
    logger.debug("verified %s (status: %r)", cwd, status)
    return replace(verification, status=status)
