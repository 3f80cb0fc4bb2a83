from __future__ import annotations
import json, subprocess, sys
from pathlib import Path

import pandas as pd

ROOT     = Path(__file__).resolve().parents[1]
CLIENTS  = ROOT / "retirement_irr" / "inputs" / "clients.csv"
OUTDIR   = ROOT / "_out_golden_baseline"
BASELINE = ROOT / "tests" / "golden" / "baseline.json"

# Rule-of-25 reference shape frozen alongside the client rows
SOLVER_CASE = {"A": 10000.0, "M": 2400.0, "N": 20, "X": 1191000.0}


def main() -> int:
    if not CLIENTS.exists():
        print(f"[x] Missing input: {CLIENTS}", file=sys.stderr)
        return 2

    cmd = [
        sys.executable, "-m", "retirement_irr", "run",
        "--input", str(CLIENTS),
        "--outputs-dir", str(OUTDIR),
        "--format", "csv",
    ]
    subprocess.run(cmd, check=True, cwd=ROOT)

    results = OUTDIR / f"{CLIENTS.stem}_results.csv"
    if not results.exists():
        print("[x] results CSV not produced; check CLI/run_file", file=sys.stderr)
        return 3

    df = pd.read_csv(results)
    clients = {
        str(cid): (None if pd.isna(rate) else float(rate))
        for cid, rate in zip(df["client_id"], df["required_rate"])
    }

    from retirement_irr.finance.irr import solve

    res = solve(**SOLVER_CASE)
    if not res.ok:
        print(f"[x] reference case did not converge: {res.state.value}", file=sys.stderr)
        return 4

    BASELINE.parent.mkdir(parents=True, exist_ok=True)
    BASELINE.write_text(
        json.dumps({"clients": clients, "solver": {**SOLVER_CASE, "rate": res.rate}},
                   indent=2, sort_keys=True),
        encoding="utf-8",
    )
    print(f"[ok] Wrote baseline {BASELINE}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
