from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import GitExecutionError
from .models import GitRunResult
from .paths import resolve_root

logger = logging.getLogger(__name__)

# Variables that would point git at some other repository than `root`.
_REDIRECTING_ENV = (
    "GIT_DIR",
    "GIT_WORK_TREE",
    "GIT_INDEX_FILE",
    "GIT_OBJECT_DIRECTORY",
    "GIT_ALTERNATE_OBJECT_DIRECTORIES",
    "GIT_CEILING_DIRECTORIES",
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
)


def _kill_process_tree_windows(pid: int) -> None:
    """
    Kill a process tree on Windows (git may spawn helper processes such as
    credential managers, ssh, pagers, etc.).
    """
    subprocess.run(
        ["taskkill", "/PID", str(pid), "/T", "/F"],
        capture_output=True,
        text=True,
    )


def _kill_process_group_posix(p: subprocess.Popen) -> None:
    """
    Kill entire process group on POSIX when start_new_session=True.
    Falls back to p.kill() if the group kill fails.
    """
    try:
        os.killpg(p.pid, signal.SIGKILL)
    except OSError:
        try:
            p.kill()
        except OSError:
            pass


def require_ok(res: GitRunResult, context: str) -> GitRunResult:
    if res.exit_code != 0:
        raise GitExecutionError(f"{context} failed: {res.stderr.strip()}")
    return res


@dataclass(frozen=True)
class GitRunnerConfig:
    timeout_s: float = 120.0


class GitRunner:
    """
    Blocking git runner used for every fixture setup and post-run check:
      - No shell
      - cwd fixed to a validated root
      - Environment scrubbed of variables that redirect git elsewhere
      - Hard timeout; stuck process trees (Windows) / groups (POSIX) are killed
    """

    def __init__(self, root: str | Path, config: GitRunnerConfig | None = None) -> None:
        self.root = resolve_root(root)
        self.config = config or GitRunnerConfig()

    def run(
        self,
        args: Iterable[str],
        *,
        env: dict[str, str] | None = None,
    ) -> GitRunResult:
        args_list = list(args)
        if not args_list:
            raise GitExecutionError("Empty git args are not allowed.")

        argv = ["git", *args_list]
        logger.debug("%s (cwd=%s)", " ".join(argv), self.root)

        start = time.perf_counter()
        stdout, stderr, exit_code, timed_out = self._run_process(
            argv=argv,
            cwd=self.root,
            env=self._build_env(env),
            timeout_s=self.config.timeout_s,
        )
        duration_ms = int((time.perf_counter() - start) * 1000)

        if stdout:
            logger.debug("%s", stdout.rstrip())
        if exit_code != 0:
            logger.debug("git exited %d: %s", exit_code, stderr.rstrip())

        return GitRunResult(
            argv=argv,
            root=str(self.root),
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
            timed_out=timed_out,
        )

    def check(self, args: Iterable[str], *, context: str | None = None) -> str:
        """Run and return stdout, raising GitExecutionError on failure."""
        args_list = list(args)
        res = self.run(args_list)
        require_ok(res, context=context or f"git {args_list[0]}")
        return res.stdout

    def _build_env(self, extra_env: dict[str, str] | None) -> dict[str, str]:
        """
        Build a controlled environment that prevents interactive hangs.
        """
        merged_env = dict(os.environ)
        for key in _REDIRECTING_ENV:
            merged_env.pop(key, None)
        merged_env.update(
            {
                "GIT_TERMINAL_PROMPT": "0",
                "GCM_INTERACTIVE": "Never",
                "GIT_PAGER": "cat",
                "LC_ALL": "C",
                "GIT_OPTIONAL_LOCKS": "0",
            }
        )

        if extra_env:
            merged_env.update(extra_env)

        return merged_env

    def _run_process(
        self,
        *,
        argv: list[str],
        cwd: Path,
        env: dict[str, str],
        timeout_s: float,
    ) -> tuple[str, str, int, bool]:
        """
        Popen + communicate(timeout).
        Returns: (stdout, stderr, exit_code, timed_out)
        """
        popen_kwargs: dict = {}
        if os.name != "nt":
            popen_kwargs["start_new_session"] = True

        try:
            p = subprocess.Popen(
                argv,
                cwd=str(cwd),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                **popen_kwargs,
            )
        except FileNotFoundError as e:
            raise GitExecutionError("git executable not found in PATH.") from e
        except OSError as e:
            raise GitExecutionError(f"Failed to spawn git: {type(e).__name__}: {e}") from e

        try:
            out, err = p.communicate(timeout=timeout_s)
            return out or "", err or "", int(p.returncode or 0), False

        except subprocess.TimeoutExpired:
            try:
                out, err = p.communicate(timeout=0.2)
            except (subprocess.TimeoutExpired, OSError, ValueError):
                out, err = ("", "")

            logger.warning("git timed out after %ss: %s", timeout_s, " ".join(argv))
            try:
                if os.name == "nt":
                    _kill_process_tree_windows(p.pid)
                else:
                    _kill_process_group_posix(p)
            finally:
                try:
                    p.wait(timeout=0.5)
                except subprocess.TimeoutExpired:
                    pass

            return out or "", err or "", 124, True

        except OSError as e:
            if os.name == "nt":
                _kill_process_tree_windows(p.pid)
            else:
                _kill_process_group_posix(p)
            raise GitExecutionError(f"Failed while running git: {type(e).__name__}: {e}") from e
