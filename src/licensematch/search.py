from __future__ import annotations
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from . import config as CFG
from .DB.store import CorpusStore
from .errors import EmptyInputError, InvalidThresholdError, MatchCancelledError
from .models import LicenseEntry, MatchResult, NormalizedDocument, ShingleSet
from .score import dice, upper_bound
from .shingle import document

log = logging.getLogger(__name__)

Query = Union[NormalizedDocument, ShingleSet]


class CancelToken(Protocol):
    """Anything with is_set(), e.g. threading.Event."""
    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class SearchStats:
    examined: int = 0   # entries scored exactly
    pruned: int = 0     # entries skipped by the size bound

    def __add__(self, other: "SearchStats") -> "SearchStats":
        return SearchStats(self.examined + other.examined, self.pruned + other.pruned)


# (score, position in store order, id) of the best entry seen by one scan
_Best = Tuple[float, int, Optional[str]]


def check_threshold(min_score: float) -> float:
    try:
        value = float(min_score)
    except (TypeError, ValueError):
        raise InvalidThresholdError(min_score)
    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise InvalidThresholdError(min_score)
    return value


def query_shingles(query: Query) -> ShingleSet:
    """Shingles of the query; an empty query is rejected before any search."""
    shingles = query.shingles if isinstance(query, NormalizedDocument) else tuple(query)
    if not shingles:
        raise EmptyInputError()
    return shingles


def check_cancel(cancel: Optional[CancelToken], deadline: Optional[float]) -> None:
    if cancel is not None and cancel.is_set():
        raise MatchCancelledError("match cancelled")
    if deadline is not None and time.monotonic() >= deadline:
        raise MatchCancelledError("match deadline exceeded")


def _scan(
    entries: Sequence[LicenseEntry],
    start: int,
    query: ShingleSet,
    *,
    prune: bool,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> Tuple[_Best, SearchStats]:
    """
    Best entry of one contiguous run of the store.

    Ties keep the first entry encountered (strict > on update). With `prune`,
    an entry whose size-only ceiling cannot beat the current best is skipped
    without computing the intersection; that never drops the true best.
    """
    best_score = 0.0
    best_pos = -1
    best_id: Optional[str] = None
    examined = pruned = 0
    nq = len(query)

    for offset, entry in enumerate(entries):
        check_cancel(cancel, deadline)
        ref = entry.document.shingles
        if prune and upper_bound(nq, len(ref)) <= best_score:
            pruned += 1
            continue
        examined += 1
        s = dice(query, ref)
        if s > best_score:
            best_score, best_pos, best_id = s, start + offset, entry.id

    return (best_score, best_pos, best_id), SearchStats(examined, pruned)


def _result(store: CorpusStore, best: _Best, min_score: float) -> MatchResult:
    score, _, best_id = best
    kind = store.get(best_id).kind if best_id is not None else None
    if best_id is None or score < min_score:
        return MatchResult(entry_id=None, score=score, candidate_id=best_id, kind=kind)
    return MatchResult(entry_id=best_id, score=score, candidate_id=best_id, kind=kind)


def analyze_with_stats(
    store: CorpusStore,
    query: Query,
    min_score: Optional[float] = None,
    *,
    prune: bool = True,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> Tuple[MatchResult, SearchStats]:
    threshold = check_threshold(CFG.MIN_SCORE if min_score is None else min_score)
    shingles = query_shingles(query)
    best, stats = _scan(store.ordered(), 0, shingles, prune=prune, cancel=cancel, deadline=deadline)
    log.debug("Search over %d entries: examined=%d pruned=%d best=%s (%.4f)",
              len(store), stats.examined, stats.pruned, best[2], best[0])
    return _result(store, best, threshold), stats


def analyze(
    store: CorpusStore,
    query: Query,
    min_score: Optional[float] = None,
    *,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> MatchResult:
    """
    Best-scoring store entry for `query`.

    Entries are visited in id order; the first entry reaching the top score
    wins. A best score below `min_score` (inclusive boundary) yields
    entry_id=None with the observed score kept for diagnostics. The diff is
    not computed here; see diff.diff.
    """
    result, _ = analyze_with_stats(store, query, min_score, cancel=cancel, deadline=deadline)
    return result


def analyze_exhaustive(
    store: CorpusStore,
    query: Query,
    min_score: Optional[float] = None,
    *,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> MatchResult:
    """Same contract as analyze(), scoring every entry (no pruning)."""
    result, _ = analyze_with_stats(store, query, min_score, prune=False,
                                   cancel=cancel, deadline=deadline)
    return result


def _reduce(bests: Sequence[_Best]) -> _Best:
    """Max score, then earliest store position: the answer a sequential scan gives."""
    winner: _Best = (0.0, -1, None)
    for b in bests:
        if b[2] is None:
            continue
        if winner[2] is None or b[0] > winner[0] or (b[0] == winner[0] and b[1] < winner[1]):
            winner = b
    return winner


def analyze_parallel(
    store: CorpusStore,
    query: Query,
    min_score: Optional[float] = None,
    *,
    workers: Optional[int] = None,
    prune: bool = True,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> MatchResult:
    """
    Fan-out / fan-in version of analyze().

    The store is cut into contiguous partitions; each worker scans one with
    its own local best starting at 0.0 and returns it. A single max-reduction
    combines them, so no lock guards a shared "best so far" and the result
    is identical to the sequential scan.
    """
    threshold = check_threshold(CFG.MIN_SCORE if min_score is None else min_score)
    shingles = query_shingles(query)
    entries = store.ordered()
    n_workers = max(1, min(int(workers or CFG.WORKERS), len(entries) or 1))

    if n_workers == 1:
        best, _ = _scan(entries, 0, shingles, prune=prune, cancel=cancel, deadline=deadline)
        return _result(store, best, threshold)

    size = math.ceil(len(entries) / n_workers)
    parts = [(i, entries[i:i + size]) for i in range(0, len(entries), size)]
    with ThreadPoolExecutor(max_workers=n_workers) as ex:
        futures = [
            ex.submit(_scan, part, start, shingles, prune=prune, cancel=cancel, deadline=deadline)
            for start, part in parts
        ]
        outcomes = [f.result() for f in futures]

    bests: List[_Best] = [b for b, _ in outcomes]
    stats = sum((s for _, s in outcomes), SearchStats())
    best = _reduce(bests)
    log.debug("Parallel search: workers=%d examined=%d pruned=%d", n_workers, stats.examined, stats.pruned)
    return _result(store, best, threshold)


def analyze_text(
    store: CorpusStore,
    text: str,
    min_score: Optional[float] = None,
    *,
    workers: int = 1,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> MatchResult:
    """normalize + shingle `text` with the store's width, then search."""
    doc = document(text, store.shingle_width)
    if workers > 1:
        return analyze_parallel(store, doc, min_score, workers=workers, cancel=cancel, deadline=deadline)
    return analyze(store, doc, min_score, cancel=cancel, deadline=deadline)
