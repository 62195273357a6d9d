import io
import json
import sys
from pathlib import Path
import pytest
from licensematch.__main__ import main


def _write(tmp: Path, name: str, text: str) -> str:
    p = tmp / name
    p.write_text(text, encoding="utf-8")
    return str(p)


@pytest.mark.e2e
def test_identify_match_exit_zero(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys):
    f = _write(tmp_path, "LICENSE", mit_text.replace("<year> <copyright holders>", "2024 Jane Doe"))
    code = main(["identify", f, "--corpus", str(corpus_dir)])
    out = capsys.readouterr().out
    assert code == 0
    assert "License: MIT (original)" in out
    assert "Score: 1.0000" in out


@pytest.mark.e2e
def test_identify_no_match_exit_one(tmp_path: Path, corpus_dir: Path, prose_text: str, capsys):
    f = _write(tmp_path, "README", prose_text)
    assert main(["identify", f, "--corpus", str(corpus_dir)]) == 1
    assert "No license matched above 0.90" in capsys.readouterr().out


@pytest.mark.e2e
def test_identify_from_stdin_json(corpus_dir: Path, apache_text: str, monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(apache_text.encode("utf-8"))))
    assert main(["identify", "--corpus", str(corpus_dir), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["entry_id"] == "Apache-2.0"
    assert data["kind"] == "original"
    assert data["score"] == 1.0


@pytest.mark.e2e
def test_identify_stdin_that_is_not_utf8(corpus_dir: Path, mit_text: str, monkeypatch, capsys):
    raw = (mit_text + "Sign\xe9 here \xff\n").encode("latin-1")
    stdin = io.TextIOWrapper(io.BytesIO(raw), encoding="utf-8", errors="strict")
    monkeypatch.setattr(sys, "stdin", stdin)
    assert main(["identify", "--corpus", str(corpus_dir)]) == 0
    assert "License: MIT" in capsys.readouterr().out


@pytest.mark.e2e
def test_identify_with_diff(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys):
    f = _write(tmp_path, "LICENSE", mit_text.replace("free of charge", "for a small fee"))
    assert main(["identify", f, "--corpus", str(corpus_dir), "--diff"]) == 0
    out = capsys.readouterr().out
    assert "- Permission is hereby granted, free of charge" in out
    assert "+ Permission is hereby granted, for a small fee" in out


@pytest.mark.e2e
def test_identify_optimize_reports_contained(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys):
    text = "Widget Tool\n\nA tiny tool for parsing widgets.\n\n## License\n\n" + mit_text
    f = _write(tmp_path, "README.md", text)
    assert main(["identify", f, "--corpus", str(corpus_dir), "--optimize", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["containing"][0]["license"]["name"] == "MIT"


@pytest.mark.e2e
def test_cache_then_list_and_identify(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys):
    cache = str(tmp_path / "corpus.lmc")
    assert main(["cache", "--corpus", str(corpus_dir), "--out", cache]) == 0
    assert "Wrote 4 entries" in capsys.readouterr().out

    assert main(["list", "--cache", cache, "--json"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in rows] == ["Apache-2.0", "Apache-2.0.header", "BSD-2-Clause", "MIT"]
    assert rows[1]["kind"] == "header"

    f = _write(tmp_path, "LICENSE", mit_text)
    assert main(["identify", f, "--cache", cache, "--workers", "2"]) == 0


@pytest.mark.e2e
@pytest.mark.parametrize("args_for, expected", [
    (lambda f, c, t: ["identify", f, "--corpus", c, "--min-score", "1.5"], 7),
    (lambda f, c, t: ["identify", str(t / "missing.txt"), "--corpus", c], 4),
    (lambda f, c, t: ["identify", f, "--corpus", str(t / "no-such-dir")], 4),
    (lambda f, c, t: ["identify", f, "--corpus", c, "--timeout", "0.000000001"], 9),
    (lambda f, c, t: ["identify", f, "--corpus", c, "--optimize", "--timeout", "0.000000001"], 9),
])
def test_identify_error_exit_codes(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys,
                                   args_for, expected):
    f = _write(tmp_path, "LICENSE", mit_text)
    assert main(args_for(f, str(corpus_dir), tmp_path)) == expected
    assert capsys.readouterr().err.startswith("error:")


@pytest.mark.e2e
def test_empty_input_exit_code(tmp_path: Path, corpus_dir: Path, capsys):
    f = _write(tmp_path, "LICENSE", "Copyright (c) 2024 Jane Doe\nAll rights reserved.\n")
    assert main(["identify", f, "--corpus", str(corpus_dir)]) == 3
    assert "no matchable text" in capsys.readouterr().err


@pytest.mark.e2e
def test_cache_problems_exit_codes(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys):
    f = _write(tmp_path, "LICENSE", mit_text)
    junk = tmp_path / "junk.lmc"
    junk.write_bytes(b"not a cache at all")
    assert main(["identify", f, "--cache", str(junk)]) == 6

    cache = str(tmp_path / "corpus.lmc")
    assert main(["cache", "--corpus", str(corpus_dir), "--out", cache]) == 0
    assert main(["identify", f, "--cache", cache, "--width", "3"]) == 5


@pytest.mark.e2e
def test_duplicate_ids_across_roots(tmp_path: Path, corpus_dir: Path, mit_text: str, capsys):
    other = tmp_path / "more"; other.mkdir()
    (other / "MIT.txt").write_text(mit_text, encoding="utf-8")
    assert main(["list", "--corpus", str(corpus_dir), str(other)]) == 8
    assert "MIT" in capsys.readouterr().err


@pytest.mark.e2e
def test_usage_error_is_argparse_exit(capsys):
    with pytest.raises(SystemExit) as ei:
        main(["identify"])
    assert ei.value.code == 2
