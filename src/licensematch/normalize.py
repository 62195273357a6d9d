from __future__ import annotations
import re
import unicodedata
from typing import List

from . import config as CFG

_COPYRIGHT = [re.compile(p, re.IGNORECASE) for p in CFG.COPYRIGHT_PATTERNS]
_LEADER = re.compile(CFG.COMMENT_LEADERS, re.IGNORECASE)
_TRAILER = re.compile(CFG.COMMENT_TRAILERS)


def _is_word_char(ch: str) -> bool:
    """Letters and digits are kept. Symbols/punctuation are removed from matching."""
    return ch.isalnum()


def strip_comment(line: str) -> str:
    """Drop a leading comment marker (and a trailing block-comment closer) from one line."""
    line = _LEADER.sub("", line, count=1)
    return _TRAILER.sub("", line).strip()


def is_copyright_line(line: str) -> bool:
    """
    True for attribution lines that vary per project (copyright holders,
    years, authors). Expects a line with its comment marker already removed.
    """
    s = line.strip()
    if not s:
        return False
    return any(p.search(s) for p in _COPYRIGHT)


def fold(text: str) -> str:
    """Casefold and drop accents: 'Licencié' -> 'licencie'."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def tokenize(text: str) -> List[str]:
    """
    Split already-cleaned text into tokens:
      * punctuation/symbols become separators (so "sub-license" -> "sub", "license")
      * whitespace runs collapse
      * zero-length tokens are dropped
    """
    chars = [ch if _is_word_char(ch) else " " for ch in fold(text)]
    words = "".join(chars).split()
    return [CFG.VARIETAL_SPELLINGS.get(w, w) for w in words]


def normalize_line(line: str) -> List[str]:
    body = strip_comment(line)
    if is_copyright_line(body):
        return []
    return tokenize(body)


def normalize_lines(raw_text: str) -> List[List[str]]:
    """Token list per original line; copyright lines come back empty so line numbers stay aligned."""
    return [normalize_line(ln) for ln in raw_text.splitlines()]


def normalize(raw_text: str) -> List[str]:
    """
    Canonical token stream for matching.

    Empty, whitespace-only or copyright-only input gives []; callers treat
    that as "no content", never as a match attempt.
    """
    tokens: List[str] = []
    for ln in raw_text.splitlines():
        tokens.extend(normalize_line(ln))
    return tokens
