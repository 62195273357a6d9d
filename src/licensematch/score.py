from __future__ import annotations

from .models import ShingleSet


def intersection_size(a: ShingleSet, b: ShingleSet) -> int:
    """
    Multiset intersection size of two sorted shingle sets.

    Linear merge walk (O(|a| + |b|)); a shingle present twice in both sides
    counts twice.
    """
    i = j = 0
    na, nb = len(a), len(b)
    shared = 0
    while i < na and j < nb:
        x, y = a[i], b[j]
        if x == y:
            shared += 1
            i += 1
            j += 1
        elif x < y:
            i += 1
        else:
            j += 1
    return shared


def dice(a: ShingleSet, b: ShingleSet) -> float:
    """2 * |a ∩ b| / (|a| + |b|); 0.0 when both are empty. Commutative."""
    total = len(a) + len(b)
    if total == 0:
        return 0.0
    return 2.0 * intersection_size(a, b) / total


def upper_bound(len_a: int, len_b: int) -> float:
    """Best Dice score two sets of these sizes could reach (intersection <= smaller set)."""
    total = len_a + len_b
    if total == 0:
        return 0.0
    return 2.0 * min(len_a, len_b) / total
