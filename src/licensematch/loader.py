from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from . import config as CFG
from .models import LicenseKind, LicenseSource

log = logging.getLogger(__name__)

# NAME.header.txt / NAME.alt.txt / NAME.alt-2.txt
_VARIANT = re.compile(r"^(?P<base>.+?)\.(?P<tag>header|alt(?:-\d+)?)$", re.IGNORECASE)


def decode_text(raw: bytes) -> str:
    """UTF-8 first; anything else is read as latin-1 rather than failing."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1", errors="ignore")


def read_text(path: str | Path) -> str:
    return decode_text(Path(path).read_bytes())


def _iter_txt_files(roots: Iterable[str]) -> List[Path]:
    """Sorted *.txt files under every root, for a reproducible load order."""
    files: List[Path] = []
    for root in roots:
        r = Path(root)
        if not r.is_dir():
            raise NotADirectoryError(str(r))
        for p in r.rglob(CFG.CORPUS_GLOB):
            if p.is_file() and p.name != CFG.ALIASES_FILE:
                files.append(p)
    files.sort()
    return files


def _kind_for(stem: str) -> LicenseKind:
    m = _VARIANT.match(stem)
    if not m:
        return LicenseKind.ORIGINAL
    return LicenseKind.HEADER if m.group("tag").lower() == "header" else LicenseKind.ALTERNATE


def _read_aliases(roots: Iterable[str]) -> Dict[str, Tuple[str, ...]]:
    """
    Optional `aliases.txt` in a root, one line per entry:
        Apache-2.0: Apache 2, ASL 2.0
    Blank lines and lines starting with '#' are ignored.
    """
    out: Dict[str, Tuple[str, ...]] = {}
    for root in roots:
        p = Path(root) / CFG.ALIASES_FILE
        if not p.is_file():
            continue
        for raw in read_text(p).splitlines():
            line = raw.strip()
            if not line or line.startswith("#") or ":" not in line:
                continue
            entry_id, _, rest = line.partition(":")
            names = tuple(a.strip() for a in rest.split(",") if a.strip())
            out[entry_id.strip()] = out.get(entry_id.strip(), ()) + names
    return out


def load_sources(roots: List[str]) -> List[LicenseSource]:
    """
    Scan roots for reference texts.

    The file stem is the entry id (`MIT.txt` -> "MIT"). `NAME.header.txt`
    is tagged HEADER and `NAME.alt*.txt` ALTERNATE; both keep their full stem
    as id so they never collide with NAME itself.
    """
    roots = list(roots)
    aliases = _read_aliases(roots)
    sources: List[LicenseSource] = []
    for n, path in enumerate(_iter_txt_files(roots), 1):
        stem = path.stem
        kind = _kind_for(stem)
        sources.append(LicenseSource(
            id=stem,
            text=read_text(path),
            aliases=aliases.get(stem, ()),
            kind=kind,
        ))
        log.debug("Loaded %s (%s) from %s", stem, kind.value, path)
        if CFG.VERBOSE and n % CFG.PROGRESS_EVERY_FILES == 0:
            log.info("[scanned] files=%d", n)
    log.info("Loaded %d corpus texts from %s", len(sources), roots)
    return sources
