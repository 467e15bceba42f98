from __future__ import annotations

import sys
from dataclasses import dataclass, field

from .git_runner import GitRunnerConfig


@dataclass(frozen=True)
class FixturesConfig:
    """
    Every fixed value the fixture lifecycle relies on.

    Operations take it as a keyword-only `config` argument; derive variants
    with `dataclasses.replace(DEFAULT_CONFIG, ...)`.
    """

    # Repository identity and tooling (applied by git_init).
    author_name: str = "Your Name"
    author_email: str = "you@example.com"
    merge_tool: str = "vimdiff"
    initial_commit_message: str = "initial commit"

    # History layout.
    default_branch: str = "master"
    secondary_branch: str = "foo"
    empty_dir_placeholder: str = ".gitkeep"
    dirty_file_name: str = "a-random-new-file"
    dirty_file_content: str = "foo"

    # Fixture comparison.
    metadata_dir: str = ".git"
    dependency_dirs: tuple[str, ...] = ("node_modules", ".venv")
    conflict_placeholder_hash: str = "fffffff"

    # Subject process.
    bin_dir: str = "bin"
    interpreter: str = sys.executable
    normal_conflict_prompt: str = "Normal merge conflict"
    normal_conflict_keys: tuple[str, ...] = (":%diffg 3", ":wqa")
    deleted_conflict_prompt: str = "Deleted merge conflict"
    deleted_conflict_keys: tuple[str, ...] = ("d",)
    fatal_markers: tuple[str, ...] = ("Error:", "fatal:", "Command failed")

    git: GitRunnerConfig = field(default_factory=GitRunnerConfig)

    @property
    def author_line(self) -> str:
        return f"Author: {self.author_name} <{self.author_email}>"


DEFAULT_CONFIG = FixturesConfig()
