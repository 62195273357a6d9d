# licensematch/DB/api.py
from __future__ import annotations
import logging
from typing import Iterable, Optional

from .cachefile import is_valid_cache, load_cache, save_cache
from .store import CorpusStore, SourceLike, build_store

log = logging.getLogger(__name__)


def make_store(
    dsn: str,
    *,
    sources: Optional[Iterable[SourceLike]] = None,
    width: Optional[int] = None,
    rebuild: bool = False,
) -> CorpusStore:
    """
    Factory:
      - cache:///path -> load the binary cache at path; if it is missing (or
                         `rebuild`), build it from `sources` and write it first
      - memory://     -> build from `sources`, nothing persisted

    Each call returns a new store; an existing one is never reloaded in
    place, so matches still running against it are unaffected.
    """
    if dsn.startswith("cache:///"):
        path = dsn.removeprefix("cache:///")

        if rebuild or not is_valid_cache(path):
            if sources is None:
                raise FileNotFoundError(
                    f"{path} is not a licensematch cache and no corpus was provided to build one"
                )
            log.info("Building cache %s", path)
            store = build_store(sources, width=width)
            save_cache(store, path)
            return store

        return load_cache(path, expected_width=width)

    if dsn.startswith("memory://"):
        if sources is None:
            raise ValueError("memory:// store needs corpus sources")
        return build_store(sources, width=width)

    raise ValueError(f"Unsupported store DSN: {dsn}")
