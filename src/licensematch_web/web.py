from __future__ import annotations
import argparse
from flask import Flask, request, jsonify, Response
from licensematch.engine import Engine
from licensematch.config import MIN_SCORE
from licensematch.errors import LicenseMatchError

app = Flask(__name__)
_engine: Engine | None = None


def _error(exc: Exception, status: int):
    return jsonify({"error": str(exc), "kind": type(exc).__name__}), status


# ---------- API ----------
@app.get("/health")
def health():
    ready = _engine is not None and _engine.store is not None
    entries = len(_engine.store) if ready else 0  # type: ignore[union-attr, arg-type]
    return jsonify({"ok": ready, "entries": entries}), (200 if ready else 503)


@app.get("/api/licenses")
def api_licenses():
    if _engine is None or _engine.store is None:
        return jsonify({"error": "engine not initialized"}), 503
    return jsonify([
        {"id": e.id, "kind": e.kind.value, "aliases": sorted(e.aliases)}
        for e in _engine.store
    ])


@app.post("/api/identify")
def api_identify():
    if _engine is None or _engine.store is None:
        return jsonify({"error": "engine not initialized"}), 503
    body = request.get_json(silent=True) or {}
    text = body.get("text")
    if not isinstance(text, str):
        return jsonify({"error": "JSON body needs a 'text' string"}), 400
    want_diff = bool(body.get("diff", False))
    optimize = bool(body.get("optimize", False))
    try:
        min_score = float(body.get("min_score", MIN_SCORE))
        result = _engine.identify(text, min_score=min_score, want_diff=want_diff)
        out = result.to_dict()
        if optimize:
            scan = _engine.scan(text, min_score=min_score, optimize=True)
            out["containing"] = [c.to_dict() for c in scan.containing]
    except (TypeError, ValueError) as exc:
        return _error(exc, 400)
    except LicenseMatchError as exc:
        return _error(exc, 422)
    return jsonify(out)


# ---------- UI ----------
@app.get("/")
def home():
    # One page, no external JS/CSS deps.
    html = r"""
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>License match • Flask UI</title>
<style>
:root{ --bg:#0b0f14; --panel:#0f141b; --ink:#cfd8e3; --muted:#8a94a6; --accent:#6ee7ff;
       --border:#1c2530; --add:#45d483; --del:#ff5d5d; }
*{box-sizing:border-box}
body{ margin:0; background:var(--bg); color:var(--ink);
      font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,"Helvetica Neue",Arial; }
.container{ max-width:980px; margin:24px auto; padding:0 16px; }
.card{ background:var(--panel); border:1px solid var(--border); border-radius:16px; padding:18px; }
h1{ font-size:20px; margin:0 0 8px 0; }
textarea{ width:100%; min-height:220px; padding:12px; border-radius:12px; border:1px solid var(--border);
          background:#0b1117; color:var(--ink); font:14px ui-monospace,Menlo,Consolas,monospace; }
.controls{ display:flex; gap:12px; align-items:center; margin:12px 0; flex-wrap:wrap; color:var(--muted) }
.controls input[type=number]{ width:80px; background:#0b1117; color:var(--ink); border:1px solid var(--border);
                              border-radius:8px; padding:6px; }
.btn{ padding:10px 14px; border-radius:10px; border:1px solid var(--border); background:#0b1117;
      color:var(--ink); cursor:pointer; }
.btn:hover{ border-color:var(--accent) }
#out{ white-space:pre-wrap; font:13px ui-monospace,Menlo,Consolas,monospace; margin-top:12px; }
.add{ color:var(--add) } .del{ color:var(--del) }
</style>
</head>
<body>
  <div class="container">
    <div class="card">
      <h1>License match</h1>
      <textarea id="text" placeholder="Paste license text…"></textarea>
      <div class="controls">
        <label>Min score <input id="min" type="number" min="0" max="1" step="0.01" value="0.9" /></label>
        <label><input id="diff" type="checkbox" /> diff</label>
        <button id="go" class="btn">Identify</button>
      </div>
      <div id="out">Paste a text and press Identify.</div>
    </div>
  </div>
<script>
const $ = (s) => document.querySelector(s);
function esc(s){ return s.replace(/[&<>]/g, c => ({"&":"&amp;","<":"&lt;",">":"&gt;"}[c])); }
$("#go").addEventListener("click", async () => {
  const body = { text: $("#text").value, min_score: parseFloat($("#min").value || "0.9"),
                 diff: $("#diff").checked };
  const resp = await fetch("/api/identify", { method: "POST",
    headers: {"Content-Type": "application/json"}, body: JSON.stringify(body) });
  const data = await resp.json();
  if(!resp.ok){ $("#out").textContent = `Error: ${data.error}`; return; }
  let html = data.entry_id
    ? `License: ${esc(data.entry_id)}  score ${data.score.toFixed(4)}`
    : `No match (closest: ${esc(data.candidate_id || "-")}, score ${data.score.toFixed(4)})`;
  for(const d of (data.diff || [])){
    const cls = d.tag === "added" ? "add" : d.tag === "removed" ? "del" : "";
    const pre = d.tag === "added" ? "+ " : d.tag === "removed" ? "- " : "  ";
    html += `\n<span class="${cls}">${esc(pre + d.text)}</span>`;
  }
  $("#out").innerHTML = html;
});
</script>
</body>
</html>
"""
    return Response(html, mimetype="text/html")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run the license matcher web UI")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--corpus", nargs="+", metavar="DIR")
    src.add_argument("--cache", metavar="PATH")
    ap.add_argument("--width", type=int)
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    global _engine
    _engine = Engine()
    if args.cache:
        _engine.load(cache=args.cache, width=args.width, verbose=args.verbose)
    else:
        _engine.build(roots=args.corpus, width=args.width, verbose=args.verbose)

    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        _engine.shutdown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
