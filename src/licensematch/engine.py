# licensematch/engine.py
from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

from . import config as CFG
from .DB.api import make_store
from .DB.cachefile import load_cache, save_cache
from .DB.store import CorpusStore, SourceLike, build_store
from .diff import diff
from .loader import load_sources
from .models import MatchResult, ScanResult
from .search import CancelToken, analyze_text
from .strategy import ScanStrategy

log = logging.getLogger(__name__)


class Engine:
    """
    Thin orchestration layer that glues together:
      - corpus ingestion (loader.load_sources) or a binary cache,
      - the read-only CorpusStore,
      - the matcher (search.analyze*) and the diff generator.

    Public API (used by the CLI and the Flask app):
      * build(roots=... | sources=..., cache_out=...): ingest -> store -> (optional) persist
      * load(cache=...):                              deserialize a cache -> store
      * identify(text, min_score, want_diff):         best match, optionally with a line diff
      * scan(text, ...):                              ScanStrategy (contained licenses)
      * shutdown():                                   drop the store

    Rebuilding or reloading swaps in a new store; calls already running keep
    the store they started with.
    """

    # ------------- lifecycle -------------

    def __init__(self, store: Optional[CorpusStore] = None) -> None:
        self.store: Optional[CorpusStore] = store

    # /* ~~~ Build a store from corpus folders or explicit sources ~~~ */
    def build(
        self,
        roots: Optional[Iterable[str]] = None,
        *,
        sources: Optional[Iterable[SourceLike]] = None,
        width: Optional[int] = None,
        cache_out: Optional[str] = None,
        verbose: bool = False,
    ) -> CorpusStore:
        if verbose:
            logging.basicConfig(level=logging.INFO)

        if sources is None:
            roots = list(roots or [])
            if not roots:
                raise ValueError("build(): corpus roots or sources are required")
            log.info("Loading corpus from %s", roots)
            sources = load_sources(roots)

        store = build_store(sources, width=width)
        if cache_out:
            log.info("Saving corpus cache to %s", cache_out)
            save_cache(store, cache_out)

        self.store = store
        log.info("Engine build() complete: entries=%d", len(store))
        return store

    # /* ~~~ Load an already-built cache ~~~ */
    def load(
        self,
        *,
        cache: Optional[str] = None,
        dsn: Optional[str] = None,
        width: Optional[int] = None,
        verbose: bool = False,
    ) -> CorpusStore:
        if verbose:
            logging.basicConfig(level=logging.INFO)

        if dsn:
            store = make_store(dsn, width=width)
        elif cache:
            if not os.path.exists(cache):
                raise FileNotFoundError(cache)
            log.info("Loading corpus cache from %s", cache)
            store = load_cache(cache, expected_width=width)
        else:
            raise ValueError("load(): require either cache or dsn")

        self.store = store
        log.info("Engine load() complete: entries=%d", len(store))
        return store

    # ------------- query -------------

    def _require_store(self) -> CorpusStore:
        if self.store is None:
            raise RuntimeError("Engine not initialized. Call build() or load() first.")
        return self.store

    # /* ~~~ Identify one text; diff only for the single best candidate ~~~ */
    def identify(
        self,
        text: str,
        *,
        min_score: float = CFG.MIN_SCORE,
        want_diff: bool = False,
        workers: int = 1,
        cancel: Optional[CancelToken] = None,
        deadline: Optional[float] = None,
    ) -> MatchResult:
        store = self._require_store()
        result = analyze_text(store, text, min_score, workers=workers,
                              cancel=cancel, deadline=deadline)
        if want_diff and result.candidate_id is not None and result.score < 1.0:
            ref = store.get(result.candidate_id)
            result = result.with_diff(diff(ref.original_text, text))
        return result

    def scan(
        self,
        text: str,
        *,
        min_score: float = CFG.MIN_SCORE,
        optimize: bool = False,
        shallow_limit: float = CFG.SHALLOW_LIMIT,
        max_passes: int = CFG.MAX_PASSES,
        workers: int = 1,
        cancel: Optional[CancelToken] = None,
        deadline: Optional[float] = None,
    ) -> ScanResult:
        strategy = ScanStrategy(
            self._require_store(),
            confidence_threshold=min_score,
            shallow_limit=shallow_limit,
            optimize=optimize,
            max_passes=max_passes,
            workers=workers,
        )
        return strategy.scan(text, cancel=cancel, deadline=deadline)

    # ------------- teardown -------------

    def shutdown(self) -> None:
        self.store = None
        log.info("Engine shutdown complete")
