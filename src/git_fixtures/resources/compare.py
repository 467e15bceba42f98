from __future__ import annotations

import difflib
import re
from pathlib import Path

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from ..core.errors import FixtureMismatchError
from .fixture_tree import FixtureTree, read_tree

# Trailing conflict marker as printed by different git versions:
#   >>>>>>> a1b2c3d... feature
#   >>>>>>> a1b2c3d (feature)
_CONFLICT_TRAILER = re.compile(
    r"^>{7} [0-9a-f]{7,40}(?:\.{3} (?P<dotted>[^\r\n]+?)| \((?P<paren>[^\r\n]+)\))(?=\r?$)",
    re.MULTILINE,
)


def normalize_conflict_text(text: str, *, config: FixturesConfig = DEFAULT_CONFIG) -> str:
    def _canonical(m: re.Match[str]) -> str:
        label = m.group("dotted") or m.group("paren")
        return f">>>>>>> {config.conflict_placeholder_hash} ({label})"

    return _CONFLICT_TRAILER.sub(_canonical, text)


def normalize_conflict_markers(
    tree: FixtureTree, *, config: FixturesConfig = DEFAULT_CONFIG
) -> FixtureTree:
    """Copy of `tree` with every leaf's conflict-marker hashes made canonical."""
    out: FixtureTree = {}
    for name, value in tree.items():
        if isinstance(value, dict):
            out[name] = normalize_conflict_markers(value, config=config)
        else:
            out[name] = normalize_conflict_text(value, config=config)
    return out


def strip_incidental_entries(
    tree: FixtureTree, *, config: FixturesConfig = DEFAULT_CONFIG
) -> FixtureTree:
    """Drop top-level repository metadata and dependency directories."""
    ignored = {config.metadata_dir, *config.dependency_dirs}
    return {name: value for name, value in tree.items() if name not in ignored}


def diff_trees(actual: FixtureTree, expected: FixtureTree, prefix: str = "") -> list[str]:
    """Human-readable differences; empty when the trees are equal."""
    problems: list[str] = []
    for name in sorted(set(actual) | set(expected)):
        path = f"{prefix}{name}"
        if name not in actual:
            problems.append(f"missing: {path}")
        elif name not in expected:
            problems.append(f"unexpected: {path}")
        else:
            a, e = actual[name], expected[name]
            if isinstance(a, dict) and isinstance(e, dict):
                problems.extend(diff_trees(a, e, prefix=f"{path}/"))
            elif isinstance(a, dict) or isinstance(e, dict):
                kind = "directory" if isinstance(a, dict) else "file"
                problems.append(f"type differs: {path} is a {kind}")
            elif a != e:
                diff = difflib.unified_diff(
                    e.splitlines(keepends=True),
                    a.splitlines(keepends=True),
                    fromfile=f"expected/{path}",
                    tofile=f"actual/{path}",
                )
                problems.append(f"content differs: {path}\n{''.join(diff)}")
    return problems


def fixture_compare(
    actual: str | Path,
    expected: str | Path,
    *,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> None:
    """
    Assert that the directory `actual` matches the fixture `expected`.

    Repository metadata and dependency directories are ignored on the actual
    side, and conflict-marker hashes are normalized on both sides.
    """
    actual_tree = strip_incidental_entries(read_tree(actual), config=config)
    expected_tree = read_tree(expected)

    actual_tree = normalize_conflict_markers(actual_tree, config=config)
    expected_tree = normalize_conflict_markers(expected_tree, config=config)

    if actual_tree != expected_tree:
        problems = diff_trees(actual_tree, expected_tree)
        raise FixtureMismatchError(
            f"{actual} does not match {expected}:\n" + "\n".join(problems)
        )
