from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


# Progress logging (set LICENSEMATCH_VERBOSE=1 to enable)
VERBOSE: bool = os.environ.get("LICENSEMATCH_VERBOSE") == "1"
PROGRESS_EVERY_FILES: int = 200

# n-gram width used for every shingle set (corpus and query must agree)
SHINGLE_WIDTH: int = _env_int("LICENSEMATCH_SHINGLE_WIDTH", 2)

# Minimum score for a confident identification (inclusive)
MIN_SCORE: float = _env_float("LICENSEMATCH_MIN_SCORE", 0.9)

# /* ~~~ scan strategy defaults ~~~ */
SHALLOW_LIMIT: float = 0.99
MAX_PASSES: int = 10

# Cache tag. Bump whenever normalization or the record layout changes.
FORMAT_VERSION: int = 4

# workers for parallel matching
_cpu = os.cpu_count() or 4
WORKERS: int = _env_int("LICENSEMATCH_WORKERS", _cpu)

# Corpus files picked up by the loader
CORPUS_GLOB: str = "*.txt"
ALIASES_FILE: str = "aliases.txt"

# /* ~~~ copyright / attribution line heuristics (matched after comment leaders are removed) ~~~ */
COPYRIGHT_PATTERNS: list[str] = [
    # a wrapped "copyright notice ..." or "copyright, patent ..." fragment is license text
    r"^(?:copyright|©)(?!\s*[,;:.]|\s+(?:notices?|holders?|owners?|ownership|and|or|law|laws"
    r"|statements?|licen[cs]es?|protection|patents?|trademarks?|infringement|interests?|claims?"
    r"|rights?|the|on|in|of|to|for|is|are|may|that|this|which)\b)",
    r"^\(c\)\s*(?:1[89]|20)\d{2}\b",
    r"(?:copyright|©).*\b(?:1[89]|20)\d{2}\b",
    r"^all rights reserved\.?$",
    r"^(?:authors?|written by|maintainers?|contributed by)\s*[:\-]",
]

# Leading/trailing comment markers stripped from every line
COMMENT_LEADERS: str = r"^\s*(?:<!--|/\*+|\*+/|\*+|//+|#+|--+|;+|%+|rem\s)\s?"
COMMENT_TRAILERS: str = r"\s*(?:\*+/|-->)\s*$"

# British/American and other varietal spellings folded onto one form
VARIETAL_SPELLINGS: dict[str, str] = {
    "acknowledgment": "acknowledgement",
    "analogue": "analog",
    "analyse": "analyze",
    "artefact": "artifact",
    "authorisation": "authorization",
    "authorised": "authorized",
    "cancelled": "canceled",
    "catalogue": "catalog",
    "centre": "center",
    "favour": "favor",
    "fulfil": "fulfill",
    "judgment": "judgement",
    "labour": "labor",
    "licence": "license",
    "licences": "licenses",
    "licenced": "licensed",
    "offence": "offense",
    "organisation": "organization",
    "practise": "practice",
    "programme": "program",
    "whilst": "while",
}
