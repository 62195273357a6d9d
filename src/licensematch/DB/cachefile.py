from __future__ import annotations
import io
import logging
import mmap
import os
import struct
import zlib
from array import array
from typing import Dict, List, Optional, Tuple

from .. import config as CFG
from ..errors import CacheCorruptError, VersionMismatchError
from ..models import LicenseEntry, LicenseKind, NormalizedDocument, Shingle
from .store import CorpusStore

log = logging.getLogger(__name__)

# File format (all integers little-endian):
#   0..3    : b"LMC1"
#   4..7    : format_version (u32)
#   8..11   : shingle_width (u32)
#   12..15  : V (u32) = vocabulary size
#   Vocab   : V entries of  len:u16 | token:utf8      (sorted, index = token id)
#   N (u32) = number of records, then N records sorted by id:
#       id_len:u16 | id:utf8
#       kind:u8
#       alias_cnt:u16 | alias_cnt * (len:u16 | alias:utf8)
#       text_len:u32 | original_text:utf8
#       tok_cnt:u32   | tok_cnt * u32 token ids
#       sh_cnt:u32    | sh_cnt * u8 shingle lengths | sum(lengths) * u32 token ids
#   Trailer : crc32 (u32) of every preceding byte

_MAGIC = b"LMC1"
_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_HEADER = struct.Struct("<4sII")

_KINDS: Tuple[LicenseKind, ...] = (LicenseKind.ORIGINAL, LicenseKind.HEADER, LicenseKind.ALTERNATE)
_KIND_CODE: Dict[LicenseKind, int] = {k: i for i, k in enumerate(_KINDS)}


# ---- write ----
def _write_str16(f, s: str) -> None:
    b = s.encode("utf-8")
    if len(b) > 0xFFFF:
        raise ValueError(f"string too long for cache ({len(b)} bytes)")
    f.write(_U16.pack(len(b))); f.write(b)


def _write_u32_array(f, values: List[int]) -> None:
    f.write(array("I", values).tobytes())


def _write_record(f, e: LicenseEntry, vocab: Dict[str, int]) -> None:
    _write_str16(f, e.id)
    f.write(_U8.pack(_KIND_CODE[e.kind]))
    aliases = sorted(e.aliases)
    f.write(_U16.pack(len(aliases)))
    for a in aliases:
        _write_str16(f, a)
    text = e.original_text.encode("utf-8")
    f.write(_U32.pack(len(text))); f.write(text)

    tokens = e.document.tokens
    f.write(_U32.pack(len(tokens)))
    _write_u32_array(f, [vocab[t] for t in tokens])

    shingles = e.document.shingles
    f.write(_U32.pack(len(shingles)))
    f.write(bytes(len(s) for s in shingles))
    _write_u32_array(f, [vocab[t] for s in shingles for t in s])


def serialize(store: CorpusStore) -> bytes:
    """Versioned binary blob holding every entry with its precomputed shingles."""
    words = set()
    for e in store:
        words.update(e.document.tokens)
        for s in e.document.shingles:
            if len(s) > 0xFF:
                raise ValueError(f"shingle too wide for cache: {len(s)}")
            words.update(s)
    lexicon = sorted(words)
    vocab = {w: i for i, w in enumerate(lexicon)}

    buf = io.BytesIO()
    buf.write(_HEADER.pack(_MAGIC, store.format_version, store.shingle_width))
    buf.write(_U32.pack(len(lexicon)))
    for w in lexicon:
        _write_str16(buf, w)
    buf.write(_U32.pack(len(store)))
    for e in store.ordered():
        _write_record(buf, e, vocab)
    body = buf.getvalue()
    return body + _U32.pack(zlib.crc32(body) & 0xFFFFFFFF)


# ---- read ----
def _need(pos: int, n: int, end: int) -> None:
    if n < 0 or pos + n > end:
        raise CacheCorruptError(f"truncated cache at byte {pos}")


def _read_u8(data, pos: int, end: int) -> Tuple[int, int]:
    _need(pos, 1, end)
    return _U8.unpack_from(data, pos)[0], pos + 1


def _read_u16(data, pos: int, end: int) -> Tuple[int, int]:
    _need(pos, 2, end)
    return _U16.unpack_from(data, pos)[0], pos + 2


def _read_u32(data, pos: int, end: int) -> Tuple[int, int]:
    _need(pos, 4, end)
    return _U32.unpack_from(data, pos)[0], pos + 4


def _read_str16(data, pos: int, end: int) -> Tuple[str, int]:
    ln, pos = _read_u16(data, pos, end)
    _need(pos, ln, end)
    return bytes(data[pos:pos + ln]).decode("utf-8"), pos + ln


def _read_u32_array(data, pos: int, count: int, end: int) -> Tuple[List[int], int]:
    _need(pos, count * 4, end)
    arr = array("I")
    if count:
        arr.frombytes(bytes(data[pos:pos + count * 4]))
    return arr.tolist(), pos + count * 4


def _lookup(lexicon: List[str], ids: List[int]) -> Tuple[str, ...]:
    try:
        return tuple(lexicon[i] for i in ids)
    except IndexError:
        raise CacheCorruptError("token id outside vocabulary")


def _read_record(data, pos: int, end: int, lexicon: List[str]) -> Tuple[LicenseEntry, int]:
    entry_id, pos = _read_str16(data, pos, end)
    code, pos = _read_u8(data, pos, end)
    if code >= len(_KINDS):
        raise CacheCorruptError(f"unknown license kind code {code} for {entry_id!r}")
    n_alias, pos = _read_u16(data, pos, end)
    aliases = []
    for _ in range(n_alias):
        a, pos = _read_str16(data, pos, end)
        aliases.append(a)
    text_len, pos = _read_u32(data, pos, end)
    _need(pos, text_len, end)
    text = bytes(data[pos:pos + text_len]).decode("utf-8"); pos += text_len

    n_tok, pos = _read_u32(data, pos, end)
    tok_ids, pos = _read_u32_array(data, pos, n_tok, end)
    tokens = _lookup(lexicon, tok_ids)

    n_sh, pos = _read_u32(data, pos, end)
    _need(pos, n_sh, end)
    lengths = bytes(data[pos:pos + n_sh]); pos += n_sh
    flat, pos = _read_u32_array(data, pos, sum(lengths), end)
    words = _lookup(lexicon, flat)
    shingles: List[Shingle] = []
    at = 0
    for ln in lengths:
        shingles.append(words[at:at + ln])
        at += ln
    if any(shingles[i] > shingles[i + 1] for i in range(len(shingles) - 1)):
        raise CacheCorruptError(f"shingles of {entry_id!r} are not sorted")

    entry = LicenseEntry(
        id=entry_id,
        aliases=frozenset(aliases),
        kind=_KINDS[code],
        original_text=text,
        document=NormalizedDocument(tokens=tokens, shingles=tuple(shingles)),
    )
    return entry, pos


def deserialize(
    data,
    *,
    expected_version: Optional[int] = None,
    expected_width: Optional[int] = None,
) -> CorpusStore:
    """
    Rebuild a CorpusStore from `serialize` output (bytes, bytearray or mmap).

    Raises VersionMismatchError when the version tag (or, if asked for, the
    shingle width) differs from what the running matcher expects, and
    CacheCorruptError when the bytes do not parse; there is no best-effort
    fallback.
    """
    expected_version = CFG.FORMAT_VERSION if expected_version is None else expected_version
    size = len(data)
    if size < _HEADER.size:
        raise CacheCorruptError("cache is too short to hold a header")
    magic, version, width = _HEADER.unpack_from(data, 0)
    if magic != _MAGIC:
        raise CacheCorruptError("not a licensematch cache (bad magic)")
    if version != expected_version:
        raise VersionMismatchError(version, expected_version)
    if expected_width is not None and width != expected_width:
        raise VersionMismatchError(width, expected_width, what="shingle width")
    if width < 1:
        raise CacheCorruptError(f"invalid shingle width {width}")

    end = size - 4
    if end < _HEADER.size:
        raise CacheCorruptError("cache is missing its checksum")
    stored_crc = _U32.unpack_from(data, end)[0]
    if zlib.crc32(bytes(data[:end])) & 0xFFFFFFFF != stored_crc:
        raise CacheCorruptError("cache checksum mismatch")

    try:
        pos = _HEADER.size
        n_vocab, pos = _read_u32(data, pos, end)
        lexicon: List[str] = []
        for _ in range(n_vocab):
            w, pos = _read_str16(data, pos, end)
            lexicon.append(w)
        n_entries, pos = _read_u32(data, pos, end)
        entries = []
        for _ in range(n_entries):
            e, pos = _read_record(data, pos, end, lexicon)
            entries.append(e)
    except UnicodeDecodeError as exc:
        raise CacheCorruptError(f"undecodable text in cache: {exc}") from exc
    if pos != end:
        raise CacheCorruptError(f"{end - pos} unexpected trailing bytes in cache")

    # duplicate ids inside a blob are corruption, not a caller error
    ids = [e.id for e in entries]
    if len(set(ids)) != len(ids):
        raise CacheCorruptError("cache holds duplicate entry ids")
    return CorpusStore(entries, shingle_width=width, format_version=version)


# ---- files ----
def save_cache(store: CorpusStore, path: str) -> None:
    """Write atomically: serialize to `path.tmp`, then replace."""
    path = os.path.abspath(path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = f"{path}.tmp"
    with open(tmp, "wb") as f:
        f.write(serialize(store))
    os.replace(tmp, path)
    log.info("Saved corpus cache to %s (%d entries)", path, len(store))


def load_cache(path: str, *, expected_width: Optional[int] = None) -> CorpusStore:
    path = os.path.abspath(path)
    with open(path, "rb") as fd:
        if os.fstat(fd.fileno()).st_size == 0:
            raise CacheCorruptError(f"{path} is empty")
        mm = mmap.mmap(fd.fileno(), length=0, access=mmap.ACCESS_READ)
        try:
            store = deserialize(mm, expected_width=expected_width)
        finally:
            mm.close()
    log.info("Loaded corpus cache %s: %d entries", path, len(store))
    return store


def is_valid_cache(path: str) -> bool:
    try:
        with open(path, "rb") as f:
            return f.read(4) == _MAGIC
    except FileNotFoundError:
        return False
