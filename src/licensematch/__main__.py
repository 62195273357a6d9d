from __future__ import annotations
import argparse
import json
import logging
import sys
import time
from typing import Optional

from . import config as CFG
from .diff import format_diff
from .engine import Engine
from .errors import LicenseMatchError
from .loader import decode_text, read_text

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_UNREADABLE = 4


def _add_corpus_args(p: argparse.ArgumentParser) -> None:
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--corpus", nargs="+", metavar="DIR", help="Folders of reference *.txt texts")
    src.add_argument("--cache", metavar="PATH", help="Prebuilt corpus cache")
    p.add_argument("--width", type=int, default=None, help="Shingle width (default: %d)" % CFG.SHINGLE_WIDTH)


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="licensematch", description="Identify license texts")
    p.add_argument("--verbose", action="store_true")
    sub = p.add_subparsers(dest="command", required=True)

    ident = sub.add_parser("identify", help="Identify the license of a file or stdin")
    ident.add_argument("input", nargs="?", default="-", help="File to identify ('-' = stdin)")
    _add_corpus_args(ident)
    ident.add_argument("--min-score", type=float, default=CFG.MIN_SCORE,
                       help="Minimum confidence (default: %(default)s)")
    ident.add_argument("--diff", action="store_true", help="Show a line diff against the best match")
    ident.add_argument("--optimize", action="store_true", help="Also look for licenses inside a larger text")
    ident.add_argument("--workers", type=int, default=1)
    ident.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")
    ident.add_argument("--json", action="store_true", help="Emit JSON")

    cache = sub.add_parser("cache", help="Build a corpus cache file")
    cache.add_argument("--corpus", nargs="+", metavar="DIR", required=True)
    cache.add_argument("--out", required=True, metavar="PATH")
    cache.add_argument("--width", type=int, default=None)

    lst = sub.add_parser("list", help="List corpus entries")
    _add_corpus_args(lst)
    lst.add_argument("--json", action="store_true")
    return p


def _open_engine(args) -> Engine:
    eng = Engine()
    if args.cache:
        eng.load(cache=args.cache, width=args.width, verbose=args.verbose)
    else:
        eng.build(roots=args.corpus, width=args.width, verbose=args.verbose)
    return eng


def _read_input(name: str) -> str:
    if name == "-":
        return decode_text(sys.stdin.buffer.read())
    return read_text(name)


def _cmd_identify(args) -> int:
    text = _read_input(args.input)
    eng = _open_engine(args)
    deadline = time.monotonic() + args.timeout if args.timeout else None
    try:
        result = eng.identify(text, min_score=args.min_score, want_diff=args.diff,
                              workers=args.workers, deadline=deadline)
        scan = None
        if args.optimize:
            scan = eng.scan(text, min_score=args.min_score, optimize=True,
                            workers=args.workers, deadline=deadline)
    finally:
        eng.shutdown()

    found = result.matched or bool(scan and scan.containing)
    if args.json:
        out = result.to_dict()
        if scan is not None:
            out["containing"] = [c.to_dict() for c in scan.containing]
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return EXIT_MATCH if found else EXIT_NO_MATCH

    if result.matched:
        print(f"License: {result.entry_id} ({result.kind.value if result.kind else '-'})")
        print(f"Score: {result.score:.4f}")
    else:
        best = result.candidate_id or "-"
        print(f"No license matched above {args.min_score:.2f} (closest: {best}, score {result.score:.4f})")
    if scan is not None:
        for c in scan.containing:
            start, end = c.line_range
            print(f"Contains: {c.license.name} lines {start + 1}-{end} (score {c.score:.4f})")
    if result.diff:
        print()
        print(format_diff(result.diff))
    return EXIT_MATCH if found else EXIT_NO_MATCH


def _cmd_cache(args) -> int:
    eng = Engine()
    store = eng.build(roots=args.corpus, width=args.width, cache_out=args.out, verbose=args.verbose)
    print(f"Wrote {len(store)} entries to {args.out}")
    eng.shutdown()
    return EXIT_MATCH


def _cmd_list(args) -> int:
    eng = _open_engine(args)
    store = eng.store
    assert store is not None
    rows = [{"id": e.id, "kind": e.kind.value, "aliases": sorted(e.aliases),
             "shingles": len(e.shingles)} for e in store]
    eng.shutdown()
    if args.json:
        print(json.dumps(rows, ensure_ascii=False, indent=2))
    else:
        for r in rows:
            aliases = f"  [{', '.join(r['aliases'])}]" if r["aliases"] else ""
            print(f"{r['id']:<32} {r['kind']:<9} {r['shingles']:>6}{aliases}")
    return EXIT_MATCH


def main(argv: Optional[list[str]] = None) -> int:
    args = _parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO)
    handlers = {"identify": _cmd_identify, "cache": _cmd_cache, "list": _cmd_list}
    try:
        return handlers[args.command](args)
    except LicenseMatchError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_UNREADABLE


if __name__ == "__main__":
    raise SystemExit(main())
