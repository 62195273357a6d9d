# licensematch/models.py
"""
Data models for the license matcher.

These classes carry no matching logic; they only structure the data so that
normalization, storage, search and diffing stay simple and predictable. All of
them are frozen: a corpus store built from them can be shared between threads
without locking.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

Token = str
Shingle = Tuple[str, ...]
ShingleSet = Tuple[Shingle, ...]   # sorted, duplicates kept


class LicenseKind(Enum):
    """What a corpus text is relative to its license."""
    ORIGINAL = "original"      # full license text
    HEADER = "header"          # standard per-file header / notice
    ALTERNATE = "alternate"    # alternate wording of the same license


class DiffTag(Enum):
    SAME = "same"
    ADDED = "added"        # in the query only
    REMOVED = "removed"    # in the reference only


@dataclass(frozen=True)
class NormalizedDocument:
    tokens: Tuple[Token, ...]
    shingles: ShingleSet

    @property
    def empty(self) -> bool:
        return not self.shingles

    def __len__(self) -> int:
        return len(self.shingles)


@dataclass(frozen=True)
class LicenseSource:
    """One (id, raw text) pair handed to the store builder by corpus ingestion."""
    id: str
    text: str
    aliases: Tuple[str, ...] = ()
    kind: LicenseKind = LicenseKind.ORIGINAL


@dataclass(frozen=True)
class LicenseEntry:
    id: str
    aliases: FrozenSet[str]
    kind: LicenseKind
    original_text: str
    document: NormalizedDocument

    @property
    def shingles(self) -> ShingleSet:
        return self.document.shingles


@dataclass(frozen=True)
class DiffLine:
    tag: DiffTag
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"tag": self.tag.value, "text": self.text}


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of one search.

    entry_id is None when nothing cleared the threshold; score is still the
    best observed score and candidate_id the entry that produced it, so callers
    can report near misses.
    """
    entry_id: Optional[str]
    score: float
    diff: Optional[Tuple[DiffLine, ...]] = None
    candidate_id: Optional[str] = None
    kind: Optional[LicenseKind] = None

    @property
    def matched(self) -> bool:
        return self.entry_id is not None

    def with_diff(self, lines: List[DiffLine]) -> "MatchResult":
        return replace(self, diff=tuple(lines))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "entry_id": self.entry_id,
            "score": self.score,
            "candidate_id": self.candidate_id,
            "kind": self.kind.value if self.kind else None,
        }
        if self.diff is not None:
            out["diff"] = [d.to_dict() for d in self.diff]
        return out


@dataclass(frozen=True)
class IdentifiedLicense:
    name: str
    kind: LicenseKind

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "kind": self.kind.value}


@dataclass(frozen=True)
class ContainedResult:
    score: float
    license: IdentifiedLicense
    line_range: Tuple[int, int]   # 0-based [start, end) over the scanned text's lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "license": self.license.to_dict(),
            "line_range": list(self.line_range),
        }


@dataclass(frozen=True)
class ScanResult:
    score: float
    license: Optional[IdentifiedLicense]
    containing: Tuple[ContainedResult, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "license": self.license.to_dict() if self.license else None,
            "containing": [c.to_dict() for c in self.containing],
        }
