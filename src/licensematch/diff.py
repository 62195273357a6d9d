from __future__ import annotations
from array import array
from typing import Dict, Iterable, List, Sequence

from .models import DiffLine, DiffTag

_PREFIX = {DiffTag.SAME: "  ", DiffTag.REMOVED: "- ", DiffTag.ADDED: "+ "}


def _lcs_table(a: Sequence[str], b: Sequence[str]) -> List[array]:
    """
    Suffix LCS lengths: t[i][j] = LCS(a[i:], b[j:]).
    One array('I') row per reference line keeps the table compact.
    """
    n, m = len(a), len(b)
    t = [array("I", [0]) * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = t[i], t[i + 1]
        ai = a[i]
        for j in range(m - 1, -1, -1):
            if ai == b[j]:
                row[j] = below[j + 1] + 1
            else:
                r, d = below[j], row[j + 1]
                row[j] = r if r >= d else d
    return t


def diff_lines(reference: Sequence[str], query: Sequence[str]) -> List[DiffLine]:
    """
    Line alignment of `query` against `reference`.

    Maximizes the number of Same lines. When several alignments are optimal,
    earlier reference lines are matched first. Inside each change hunk the
    Removed lines are emitted before the Added ones.
    """
    a, b = list(reference), list(query)
    out: List[DiffLine] = []

    # common prefix needs no table
    i = j = 0
    while i < len(a) and j < len(b) and a[i] == b[j]:
        out.append(DiffLine(DiffTag.SAME, a[i]))
        i += 1; j += 1
    a, b = a[i:], b[j:]

    t = _lcs_table(a, b)
    removed: List[DiffLine] = []
    added: List[DiffLine] = []

    def flush() -> None:
        out.extend(removed); out.extend(added)
        removed.clear(); added.clear()

    i = j = 0
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            flush()
            out.append(DiffLine(DiffTag.SAME, a[i]))
            i += 1; j += 1
        elif t[i][j + 1] >= t[i + 1][j]:
            # skipping the query line keeps a[i] available for a later match
            added.append(DiffLine(DiffTag.ADDED, b[j]))
            j += 1
        else:
            removed.append(DiffLine(DiffTag.REMOVED, a[i]))
            i += 1
    removed.extend(DiffLine(DiffTag.REMOVED, x) for x in a[i:])
    added.extend(DiffLine(DiffTag.ADDED, y) for y in b[j:])
    flush()
    return out


def diff(reference_text: str, query_text: str) -> List[DiffLine]:
    """Line diff of two texts; see diff_lines."""
    return diff_lines(reference_text.splitlines(), query_text.splitlines())


def reference_lines(lines: Iterable[DiffLine]) -> List[str]:
    return [d.text for d in lines if d.tag is not DiffTag.ADDED]


def query_lines(lines: Iterable[DiffLine]) -> List[str]:
    return [d.text for d in lines if d.tag is not DiffTag.REMOVED]


def diff_counts(lines: Iterable[DiffLine]) -> Dict[str, int]:
    counts = {t.value: 0 for t in DiffTag}
    for d in lines:
        counts[d.tag.value] += 1
    return counts


def format_diff(lines: Iterable[DiffLine]) -> str:
    return "\n".join(_PREFIX[d.tag] + d.text for d in lines)
