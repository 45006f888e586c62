# Name similarity: Levenshtein distance and the fixed "too similar" predicate.

from __future__ import annotations

from typing import Sequence

# Exact thresholds, not tunables.
MAX_DISTANCE = 1
MIN_LENGTH = 5


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert/delete/substitute, unit cost)."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def too_similar(a: str, b: str) -> bool:
    """
    True when two distinct names are easy to confuse: equal ignoring case, or
    one edit apart with the longer name at least five characters long.
    """
    if a == b:
        return False
    if a.lower() == b.lower():
        return True
    return levenshtein(a, b) == MAX_DISTANCE and max(len(a), len(b)) >= MIN_LENGTH


def similar_pairs(names: Sequence[str]) -> list[tuple[int, int]]:
    """Index pairs (i, j), i < j, of names that are too similar, in list order."""
    pairs: list[tuple[int, int]] = []
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            if too_similar(names[i], names[j]):
                pairs.append((i, j))
    return pairs
