"""
License text matcher.

Identifies which known license a block of free text most closely matches:
text is normalized (copyright lines, comment markers and punctuation
stripped), cut into word bigrams, and compared against a corpus of reference
texts with the Dice coefficient. Near misses can be explained with a
line-level diff against the best candidate.

Example:
    from licensematch import build_store, analyze_text, diff

    store = build_store([("MIT", mit_text), ("Apache-2.0", apache_text)])
    result = analyze_text(store, some_file_text, min_score=0.9)
    if result.entry_id and result.score < 1.0:
        for line in diff(store.get(result.entry_id).original_text, some_file_text):
            ...
"""
from .DB.api import make_store
from .DB.cachefile import deserialize, load_cache, save_cache, serialize
from .DB.store import CorpusStore, build_store
from .diff import diff, diff_lines, format_diff
from .engine import Engine
from .errors import (CacheCorruptError, DuplicateEntryError, EmptyInputError,
                     InvalidThresholdError, LicenseMatchError, MatchCancelledError,
                     VersionMismatchError)
from .models import (ContainedResult, DiffLine, DiffTag, IdentifiedLicense, LicenseEntry,
                     LicenseKind, LicenseSource, MatchResult, NormalizedDocument, ScanResult)
from .normalize import normalize
from .score import dice, upper_bound
from .search import analyze, analyze_exhaustive, analyze_parallel, analyze_text
from .shingle import document, shingle
from .strategy import ScanStrategy

__version__ = "1.0.0"
__all__ = [
    "normalize", "shingle", "document", "dice", "upper_bound",
    "CorpusStore", "build_store", "serialize", "deserialize", "save_cache", "load_cache",
    "make_store", "analyze", "analyze_exhaustive", "analyze_parallel", "analyze_text",
    "diff", "diff_lines", "format_diff", "ScanStrategy", "Engine",
    "LicenseKind", "LicenseSource", "LicenseEntry", "NormalizedDocument", "MatchResult",
    "DiffLine", "DiffTag", "IdentifiedLicense", "ContainedResult", "ScanResult",
    "LicenseMatchError", "EmptyInputError", "DuplicateEntryError", "VersionMismatchError",
    "CacheCorruptError", "InvalidThresholdError", "MatchCancelledError",
]
