from __future__ import annotations

import tempfile
from pathlib import Path

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from ..core.git_runner import GitRunner

_TMP_PREFIX = "git-fixtures-"


def make_runner(root: str | Path, config: FixturesConfig = DEFAULT_CONFIG) -> GitRunner:
    return GitRunner(root=root, config=config.git)


def make_tmp_dir(prefix: str = _TMP_PREFIX) -> Path:
    """Fresh, empty directory; removal is left to the OS temp cleanup."""
    return Path(tempfile.mkdtemp(prefix=prefix)).resolve()


def clean_lines(s: str) -> list[str]:
    return [ln for ln in s.splitlines() if ln.strip()]
