"""
Reconciliation merge between the remote (preferred) and local (fallback)
orders.

The remote service is trusted for ordering only. The fallback order is the
completeness source: every fallback id is present in the result exactly once,
no matter what the preferred order omits, repeats or invents.
"""
from typing import Iterable


def merge_ordering(preferred: Iterable[str], fallback: Iterable[str]) -> list[str]:
    """
    First-seen-wins walk over ``preferred`` then ``fallback``.

    >>> merge_ordering(["b", "a"], ["a", "b", "c"])
    ['b', 'a', 'c']
    >>> merge_ordering([], ["a", "b", "c"])
    ['a', 'b', 'c']
    """
    seen: set[str] = set()
    merged: list[str] = []

    for post_id in preferred:
        if post_id not in seen:
            seen.add(post_id)
            merged.append(post_id)

    for post_id in fallback:
        if post_id not in seen:
            seen.add(post_id)
            merged.append(post_id)

    return merged
