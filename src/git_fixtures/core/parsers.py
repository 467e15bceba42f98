from __future__ import annotations

import re


def branch_layout_pattern(current: str, other: str) -> re.Pattern[str]:
    """
    Two-line `git branch` listing with `current` starred and `other` present,
    in git's sorted order, tolerant of CRLF.
    """
    starred = rf"\* {re.escape(current)}"
    plain = rf"  {re.escape(other)}"
    first, second = (starred, plain) if current < other else (plain, starred)
    return re.compile(rf"{first}\r?\n{second}")
