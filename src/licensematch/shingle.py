from __future__ import annotations
from typing import Optional, Sequence

from . import config as CFG
from .models import NormalizedDocument, ShingleSet
from .normalize import normalize


def shingle(tokens: Sequence[str], width: int) -> ShingleSet:
    """
    Sorted multiset of word n-grams.

    One shingle per sliding window of `width` tokens. A token sequence shorter
    than `width` becomes a single shingle so short texts still have something
    to compare; no tokens gives an empty set.
    """
    if width < 1:
        raise ValueError(f"shingle width must be >= 1, got {width}")
    toks = tuple(tokens)
    if not toks:
        return ()
    if len(toks) < width:
        return (toks,)
    grams = [toks[i:i + width] for i in range(len(toks) - width + 1)]
    grams.sort()
    return tuple(grams)


def document(raw_text: str, width: Optional[int] = None) -> NormalizedDocument:
    """normalize -> shingle, packaged as one immutable document."""
    tokens = normalize(raw_text)
    return NormalizedDocument(
        tokens=tuple(tokens),
        shingles=shingle(tokens, width if width is not None else CFG.SHINGLE_WIDTH),
    )


def document_from_tokens(tokens: Sequence[str], width: int) -> NormalizedDocument:
    return NormalizedDocument(tokens=tuple(tokens), shingles=shingle(tokens, width))
