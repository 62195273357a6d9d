"""
Higher-level scanning on top of search.analyze.

A plain analysis answers "which license is this whole text?". When a file
holds a license plus unrelated content (a README with a license section, a
source header followed by code) the overall score is diluted; with
`optimize` enabled the strategy narrows down the line window that best
matches, records it, blanks it out and looks again, so several licenses in
one text can be reported with their line ranges.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Tuple

from . import config as CFG
from .DB.store import CorpusStore
from .models import (ContainedResult, IdentifiedLicense, LicenseEntry, ScanResult,
                     ShingleSet)
from .normalize import normalize_lines
from .score import dice
from .search import (CancelToken, analyze, analyze_parallel, check_cancel,
                     check_threshold)
from .shingle import document_from_tokens, shingle

log = logging.getLogger(__name__)


def _flatten(lines: Sequence[Sequence[str]]) -> List[str]:
    return [t for ln in lines for t in ln]


def _window_score(lines: Sequence[Sequence[str]], start: int, end: int,
                  ref: ShingleSet, width: int) -> float:
    return dice(shingle(_flatten(lines[start:end]), width), ref)


def optimize_bounds(
    line_tokens: Sequence[Sequence[str]],
    entry: LicenseEntry,
    width: int,
    *,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> Tuple[Tuple[int, int], float]:
    """
    Line window [start, end) of the text that scores best against `entry`.

    First the end is pulled in (start fixed at 0), then the start is pushed
    down. Only lines that carry tokens are tried as boundaries, so the window
    never starts or ends on a blank or copyright line. Ties keep the tighter
    window. `cancel` and `deadline` are checked before every window.
    """
    ref = entry.document.shingles
    content = [i for i, ln in enumerate(line_tokens) if ln]
    if not content:
        return (0, 0), 0.0

    best_end, best = content[-1] + 1, -1.0
    for i in content:
        check_cancel(cancel, deadline)
        s = _window_score(line_tokens, 0, i + 1, ref, width)
        if s > best:
            best, best_end = s, i + 1

    best_start = 0
    for i in content:
        if i >= best_end:
            break
        check_cancel(cancel, deadline)
        s = _window_score(line_tokens, i, best_end, ref, width)
        if s >= best:
            best, best_start = s, i

    return (best_start, best_end), best


class ScanStrategy:
    """
    Reusable scan configuration bound to one store.

    confidence_threshold: the overall (and every contained) match must reach it.
    shallow_limit:        overall scores above this return at once, skipping
                          the optimize passes.
    optimize:             search for licenses embedded in a larger text.
    max_passes:           cap on contained-license passes per text.
    workers:              >1 runs the overall analysis in parallel.
    """

    def __init__(
        self,
        store: CorpusStore,
        *,
        confidence_threshold: float = CFG.MIN_SCORE,
        shallow_limit: float = CFG.SHALLOW_LIMIT,
        optimize: bool = False,
        max_passes: int = CFG.MAX_PASSES,
        workers: int = 1,
    ) -> None:
        self.store = store
        self.confidence_threshold = check_threshold(confidence_threshold)
        self.shallow_limit = float(shallow_limit)
        self.optimize = bool(optimize)
        self.max_passes = int(max_passes)
        self.workers = int(workers)

    def scan(
        self,
        text: str,
        *,
        cancel: Optional[CancelToken] = None,
        deadline: Optional[float] = None,
    ) -> ScanResult:
        width = self.store.shingle_width
        line_tokens = normalize_lines(text)
        doc = document_from_tokens(_flatten(line_tokens), width)

        if self.workers > 1:
            overall = analyze_parallel(self.store, doc, 0.0, workers=self.workers,
                                       cancel=cancel, deadline=deadline)
        else:
            overall = analyze(self.store, doc, 0.0, cancel=cancel, deadline=deadline)

        license: Optional[IdentifiedLicense] = None
        if overall.candidate_id is not None and overall.score >= self.confidence_threshold:
            entry = self.store.get(overall.candidate_id)
            license = IdentifiedLicense(entry.id, entry.kind)
            if overall.score > self.shallow_limit:
                return ScanResult(score=overall.score, license=license)

        containing: List[ContainedResult] = []
        if self.optimize:
            containing = self._contained(line_tokens, overall.candidate_id, cancel, deadline)

        return ScanResult(score=overall.score, license=license, containing=tuple(containing))

    def _contained(self, line_tokens, candidate_id, cancel, deadline) -> List[ContainedResult]:
        width = self.store.shingle_width
        current = [list(ln) for ln in line_tokens]
        found: List[ContainedResult] = []

        for n in range(self.max_passes):
            if candidate_id is None:
                break
            check_cancel(cancel, deadline)
            entry = self.store.get(candidate_id)
            (start, end), score = optimize_bounds(current, entry, width,
                                                  cancel=cancel, deadline=deadline)
            if score < self.confidence_threshold:
                break
            log.info("Pass %d: %s in lines %d-%d (%.4f)", n + 1, entry.id, start, end, score)
            found.append(ContainedResult(score, IdentifiedLicense(entry.id, entry.kind), (start, end)))

            # white out the identified lines and look again
            for k in range(start, end):
                current[k] = []
            rest = document_from_tokens(_flatten(current), width)
            if rest.empty:
                break
            candidate_id = analyze(self.store, rest, 0.0, cancel=cancel, deadline=deadline).candidate_id

        return found
