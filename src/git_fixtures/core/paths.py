from __future__ import annotations

from pathlib import Path

from .errors import InvalidRootError


def resolve_root(root: str | Path) -> Path:
    """Resolve a working directory that must already exist."""
    p = Path(root).expanduser().resolve()

    if not p.exists():
        raise InvalidRootError(f"Root does not exist: {p}")
    if not p.is_dir():
        raise InvalidRootError(f"Root is not a directory: {p}")

    return p


def normalize_relpath(path: str) -> str:
    s = (path or "").strip().replace("\\", "/")
    while s.startswith("./"):
        s = s[2:]
    return s.rstrip("/")


def ensure_within_root(root: Path, target: Path) -> Path:
    """
    Resolve `target` and require it to be `root` or live below it.
    Symlinks are followed before the check.
    """
    root = root.resolve()
    target = target.expanduser().resolve()

    try:
        target.relative_to(root)
    except ValueError as e:
        raise InvalidRootError(f"Path escapes root. root={root} target={target}") from e

    return target


def join_within(root: Path, relpath: str) -> Path:
    """`root / relpath` for a caller-supplied relative path; "" means `root`."""
    rel = normalize_relpath(relpath)
    if not rel:
        return root.resolve()
    return ensure_within_root(root, root / rel)
