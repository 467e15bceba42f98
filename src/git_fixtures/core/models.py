from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class GitRunResult:
    argv: list[str]
    root: str
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "argv": self.argv,
            "root": self.root,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "timed_out": self.timed_out,
        }


@dataclass(frozen=True)
class BinResult:
    """What a subject process left behind when it exited without stderr."""

    argv: list[str]
    cwd: str
    stdout: str
    exit_code: int
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "argv": self.argv,
            "cwd": self.cwd,
            "stdout": self.stdout,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class Success:
    value: Any


@dataclass(frozen=True)
class HandledFailure:
    stderr: str


@dataclass(frozen=True)
class Fatal:
    error: BaseException


Outcome = Union[Success, HandledFailure, Fatal]


@dataclass
class ProcessHandle:
    argv: list[str]
    cwd: str
    process: asyncio.subprocess.Process
    outcome: asyncio.Task

    @property
    def pid(self) -> int:
        return self.process.pid


@dataclass(frozen=True)
class VerificationResult:
    result: Any = None
    stderr: str | None = None
    status: str | None = None

    @property
    def failed(self) -> bool:
        return self.stderr is not None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.stderr is not None:
            out["stderr"] = self.stderr
        else:
            result = self.result
            out["result"] = result.to_dict() if hasattr(result, "to_dict") else result
        if self.status is not None:
            out["status"] = self.status
        return out
