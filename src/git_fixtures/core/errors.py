from __future__ import annotations


class GitFixturesError(Exception):
    """Base error for the project."""


class InvalidRootError(GitFixturesError):
    pass


class GitExecutionError(GitFixturesError):
    pass


class ProcessSpawnError(GitFixturesError):
    pass


class ProcessTimeoutError(GitFixturesError):
    pass


class VerificationError(GitFixturesError, AssertionError):
    """A post-run check failed; surfaces as a test failure."""


class FatalMarkerError(VerificationError):
    pass


class FixtureMismatchError(VerificationError):
    pass
