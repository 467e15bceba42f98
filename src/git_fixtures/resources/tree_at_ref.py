from __future__ import annotations

from pathlib import Path

from ..core.config import DEFAULT_CONFIG, FixturesConfig
from ..core.paths import normalize_relpath
from ..tools.common import clean_lines, make_runner
from .fixture_tree import FixtureTree, subtree_at


def tree_at_ref(
    cwd: str | Path,
    ref: str = "HEAD",
    sub_dir: str = "",
    *,
    config: FixturesConfig = DEFAULT_CONFIG,
) -> FixtureTree:
    """
    Fixture tree of `ref` read straight from git objects, without checkout.
    Git does not store empty directories, so none appear here.
    """
    r = make_runner(cwd, config)
    listing = r.check(
        ["ls-tree", "-r", "--name-only", "-z", ref],
        context="tree_at_ref(ls-tree)",
    )

    tree: FixtureTree = {}
    for path in [p for p in listing.split("\0") if p]:
        content = r.check(["show", f"{ref}:{path}"], context=f"tree_at_ref(show {path})")
        *parents, name = path.split("/")
        node = tree
        for part in parents:
            node = node.setdefault(part, {})
        node[name] = content

    rel = normalize_relpath(sub_dir)
    if not rel:
        return tree
    return subtree_at(tree, rel) or {}


def tags(cwd: str | Path, *, config: FixturesConfig = DEFAULT_CONFIG) -> list[str]:
    r = make_runner(cwd, config)
    return clean_lines(r.check(["tag", "--list"], context="tags(tag)"))
