# licensematch/DB/store.py
from __future__ import annotations
import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .. import config as CFG
from ..errors import DuplicateEntryError
from ..models import LicenseEntry, LicenseKind, LicenseSource
from ..shingle import document

log = logging.getLogger(__name__)

SourceLike = Union[LicenseSource, Tuple[str, str]]


class CorpusStore:
    """
    Read-only collection of reference licenses.

    Built once (from raw texts or from a cache blob) and never mutated
    afterwards: matches running in parallel share one instance without
    locking. Iteration order is sorted by id, which is what makes search
    tie-breaking reproducible.
    """

    def __init__(
        self,
        entries: Iterable[LicenseEntry],
        *,
        shingle_width: int,
        format_version: int = CFG.FORMAT_VERSION,
    ) -> None:
        rows: Dict[str, LicenseEntry] = {}
        for e in entries:
            if e.id in rows:
                raise DuplicateEntryError(e.id)
            rows[e.id] = e

        self.format_version = int(format_version)
        self.shingle_width = int(shingle_width)
        self._ids: Tuple[str, ...] = tuple(sorted(rows))
        self._ordered: Tuple[LicenseEntry, ...] = tuple(rows[i] for i in self._ids)
        self._entries: Mapping[str, LicenseEntry] = MappingProxyType(
            {i: rows[i] for i in self._ids}
        )

        # alias -> id; a real id always wins over an alias with the same name
        aliases: Dict[str, str] = {}
        for e in self._ordered:
            for a in sorted(e.aliases):
                if a not in rows:
                    aliases.setdefault(a, e.id)
        self._aliases: Mapping[str, str] = MappingProxyType(aliases)

    # ---- Read ----
    @property
    def entries(self) -> Mapping[str, LicenseEntry]:
        return self._entries

    def ordered(self) -> Tuple[LicenseEntry, ...]:
        """Entries in search order (sorted by id)."""
        return self._ordered

    def ids(self) -> Tuple[str, ...]:
        return self._ids

    def get(self, entry_id: str) -> LicenseEntry:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise KeyError(entry_id)

    def resolve(self, name: str) -> Optional[LicenseEntry]:
        """Look up by id first, then by alias."""
        e = self._entries.get(name)
        if e is not None:
            return e
        target = self._aliases.get(name)
        return self._entries[target] if target is not None else None

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[LicenseEntry]:
        return iter(self._ordered)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CorpusStore):
            return NotImplemented
        return (
            self.format_version == other.format_version
            and self.shingle_width == other.shingle_width
            and self._ordered == other._ordered
        )

    def __repr__(self) -> str:
        return (f"CorpusStore(entries={len(self)}, width={self.shingle_width}, "
                f"version={self.format_version})")

    # ---- Derive ----
    def with_entries(self, sources: Iterable[SourceLike]) -> "CorpusStore":
        """New store holding this store's entries plus `sources`; self is left untouched."""
        added = [_make_entry(s, self.shingle_width) for s in sources]
        return CorpusStore(
            list(self._ordered) + added,
            shingle_width=self.shingle_width,
            format_version=self.format_version,
        )


def _as_source(item: SourceLike) -> LicenseSource:
    if isinstance(item, LicenseSource):
        return item
    entry_id, text = item
    return LicenseSource(id=entry_id, text=text)


def _make_entry(item: SourceLike, width: int) -> LicenseEntry:
    src = _as_source(item)
    if not src.id:
        raise ValueError("corpus entry id must be a non-empty string")
    doc = document(src.text, width)
    if doc.empty:
        log.warning("Corpus entry %s has no matchable text", src.id)
    return LicenseEntry(
        id=src.id,
        aliases=frozenset(src.aliases),
        kind=src.kind if isinstance(src.kind, LicenseKind) else LicenseKind(src.kind),
        original_text=src.text,
        document=doc,
    )


def build_store(entries: Iterable[SourceLike], *, width: Optional[int] = None) -> CorpusStore:
    """
    Normalize and shingle every text once and freeze the result.

    `entries` holds LicenseSource records or plain (id, text) pairs. Two
    inputs with the same id raise DuplicateEntryError before any work is
    thrown away silently.
    """
    w = int(width if width is not None else CFG.SHINGLE_WIDTH)
    if w < 1:
        raise ValueError(f"shingle width must be >= 1, got {w}")

    seen: set[str] = set()
    built = []
    for item in entries:
        src = _as_source(item)
        if src.id in seen:
            raise DuplicateEntryError(src.id)
        seen.add(src.id)
        built.append(_make_entry(src, w))

    store = CorpusStore(built, shingle_width=w)
    log.info("Built corpus store: entries=%d width=%d", len(store), w)
    return store
