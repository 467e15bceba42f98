from .fixture_tree import read_tree, write_tree
from .tree_at_ref import tags, tree_at_ref
from .compare import (
    fixture_compare,
    normalize_conflict_markers,
    strip_incidental_entries,
)

__all__ = [
    "read_tree",
    "write_tree",
    "tree_at_ref",
    "tags",
    "fixture_compare",
    "normalize_conflict_markers",
    "strip_incidental_entries",
]
