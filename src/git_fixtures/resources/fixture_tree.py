from __future__ import annotations

import shutil
from pathlib import Path
from typing import Dict, Optional, Union

FixtureTree = Dict[str, Union[str, "FixtureTree"]]
WritableTree = Dict[str, Union[str, None, "WritableTree"]]


def read_tree(path: str | Path, *, ignore_empty_dirs: bool = False) -> FixtureTree:
    """
    Snapshot a directory as {name: content | subtree}.

    File content is decoded as UTF-8 (undecodable bytes replaced) with line
    endings left untouched. Empty directories read as {} unless
    `ignore_empty_dirs`.
    """
    root = Path(path)
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    tree: FixtureTree = {}
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            subtree = read_tree(entry, ignore_empty_dirs=ignore_empty_dirs)
            if subtree or not ignore_empty_dirs:
                tree[entry.name] = subtree
        else:
            tree[entry.name] = entry.read_bytes().decode("utf-8", errors="replace")
    return tree


def write_tree(path: str | Path, tree: WritableTree) -> Path:
    """
    Materialize a tree under `path`. A None value deletes that entry;
    existing entries not named in `tree` are left alone.
    """
    root = Path(path)
    root.mkdir(parents=True, exist_ok=True)

    for name, value in tree.items():
        target = root / name
        if value is None:
            _remove(target)
        elif isinstance(value, dict):
            if target.exists() and not target.is_dir():
                target.unlink()
            write_tree(target, value)
        else:
            if target.is_dir():
                shutil.rmtree(target)
            target.write_bytes(value.encode("utf-8"))
    return root


def _remove(target: Path) -> None:
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()


def subtree_at(tree: FixtureTree, relpath: str) -> Optional[FixtureTree]:
    node: Union[str, FixtureTree] = tree
    for part in [p for p in relpath.replace("\\", "/").split("/") if p]:
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, dict) else None
