from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
import time
from pathlib import Path
from typing import AsyncIterator, Sequence

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from ..core.errors import ProcessSpawnError, ProcessTimeoutError
from ..core.models import (
    BinResult,
    Fatal,
    HandledFailure,
    Outcome,
    ProcessHandle,
    Success,
    VerificationResult,
)
from ..core.paths import join_within, resolve_root
from .verify import process_exit

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


def resolve_bin_file(bin_file: str, *, config: FixturesConfig = DEFAULT_CONFIG) -> list[str]:
    """argv running a script from the local bin directory through the interpreter."""
    bin_dir = Path(config.bin_dir)
    if not bin_dir.is_absolute():
        bin_dir = Path.cwd() / bin_dir
    script = join_within(bin_dir, bin_file)
    if not script.is_file():
        raise ProcessSpawnError(f"bin file not found: {script}")
    return [config.interpreter, str(script)]


def resolve_bin(name: str, *, config: FixturesConfig = DEFAULT_CONFIG) -> str:
    """Locate an executable, preferring project-local tooling over PATH."""
    scripts = "Scripts" if os.name == "nt" else "bin"
    search = [
        str(Path.cwd() / ".venv" / scripts),
        str(Path(config.interpreter).parent),
        os.environ.get("PATH", ""),
    ]
    found = shutil.which(name, path=os.pathsep.join(search))
    if found is None:
        raise ProcessSpawnError(f"executable not found locally or on PATH: {name}")
    return found


async def process_bin(
    *,
    bin_file: str | None = None,
    bin_name: str | None = None,
    args: Sequence[str] = (),
    cwd: str | Path,
    commit_message: str | None = None,
    no_git: bool = False,
    timeout_s: float | None = None,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> tuple[ProcessHandle, asyncio.Task[VerificationResult]]:
    """
    Spawn a subject against `cwd` and answer its merge-conflict prompts.

    Returns the live handle and a task that resolves to the subject's
    VerificationResult (see `process_exit`). Anything written to stderr
    makes the run a handled failure, whatever the exit code. Without
    `timeout_s` a subject that never exits is waited on forever.
    """
    if (bin_file is None) == (bin_name is None):
        raise ValueError("exactly one of bin_file / bin_name is required")
    if not no_git and commit_message is None:
        raise ValueError("commit_message is required unless no_git=True")

    if bin_file is not None:
        argv = [*resolve_bin_file(bin_file, config=config), *args]
    else:
        argv = [resolve_bin(bin_name, config=config), *args]
    workdir = resolve_root(cwd)

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(workdir),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessSpawnError(f"Failed to spawn {argv[0]}: {type(e).__name__}: {e}") from e

    logger.info("spawned pid %d: %s (cwd=%s)", proc.pid, " ".join(argv), workdir)

    outcome = asyncio.ensure_future(_watch(proc, argv, workdir, timeout_s, config))
    handle = ProcessHandle(argv=argv, cwd=str(workdir), process=proc, outcome=outcome)
    verification = asyncio.ensure_future(
        process_exit(
            outcome,
            cwd=workdir,
            commit_message=commit_message,
            no_git=no_git,
            config=config,
        )
    )
    return handle, verification


async def _watch(
    proc: asyncio.subprocess.Process,
    argv: list[str],
    cwd: Path,
    timeout_s: float | None,
    config: FixturesConfig,
) -> Outcome:
    assert proc.stdin is not None
    assert proc.stdout is not None
    assert proc.stderr is not None

    stdout_lines: list[str] = []
    stderr_chunks: list[str] = []
    start = time.perf_counter()

    async def _answer(keys: Sequence[str]) -> None:
        try:
            for key in keys:
                proc.stdin.write(f"{key}\n".encode("utf-8"))
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.warning("pid %d closed stdin before %r could be sent", proc.pid, keys)

    async def _read_stdout() -> None:
        async for text in _iter_lines(proc.stdout):
            stdout_lines.append(text)
            if config.normal_conflict_prompt in text:
                logger.debug("answering normal merge conflict: %s", text.rstrip())
                await _answer(config.normal_conflict_keys)
            elif config.deleted_conflict_prompt in text:
                logger.debug("answering deleted merge conflict: %s", text.rstrip())
                await _answer(config.deleted_conflict_keys)

    async def _read_stderr() -> None:
        async for text in _iter_lines(proc.stderr):
            stderr_chunks.append(text)
            sys.stderr.write(text)
            sys.stderr.flush()

    async def _run() -> int:
        await asyncio.gather(_read_stdout(), _read_stderr())
        return await proc.wait()

    try:
        exit_code = await asyncio.wait_for(_run(), timeout=timeout_s)
    except asyncio.TimeoutError:
        await _kill(proc)
        logger.warning("pid %d timed out after %ss", proc.pid, timeout_s)
        return Fatal(ProcessTimeoutError(f"{' '.join(argv)} timed out after {timeout_s}s"))
    except Exception:
        await _kill(proc)
        raise
    finally:
        if not proc.stdin.is_closing():
            proc.stdin.close()

    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info("pid %d exited %d after %dms", proc.pid, exit_code, duration_ms)

    stderr = "".join(stderr_chunks)
    if stderr:
        return HandledFailure(stderr)
    return Success(
        BinResult(
            argv=argv,
            cwd=str(cwd),
            stdout="".join(stdout_lines),
            exit_code=exit_code,
            duration_ms=duration_ms,
        )
    )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()


async def _iter_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Decoded lines of any length; the last one may lack its newline."""
    pending = b""
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        *lines, pending = (pending + chunk).split(b"\n")
        for line in lines:
            yield (line + b"\n").decode("utf-8", errors="replace")
    if pending:
        yield pending.decode("utf-8", errors="replace")
