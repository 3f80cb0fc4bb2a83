# retirement_irr/validate.py
from __future__ import annotations
import os, sys, json, math
from pathlib import Path
from typing import Any, Dict, Iterable, List
import pandas as pd
import yaml

from .schema import SCHEMA, REQUIRED_FIELDS, OPTIONAL_FIELDS, COMPOSITE_CONSTRAINTS

# Columns the runner itself adds to a processed row; allowed on re-runs.
DERIVED_FIELDS = {
    "years_to_retirement", "future_monthly_income", "fund_needed",
    "annual_contribution", "required_rate", "required_rate_display",
    "solver_status", "iterations", "error",
}


def mode_from_env_or_flag(flag: str | None) -> str:
    if flag in ("strict", "relaxed"):
        return flag
    env = (os.environ.get("VALIDATION_MODE") or "").lower()
    return env if env in ("strict", "relaxed") else "relaxed"


def _within(x: float, lo: float, hi: float) -> bool:
    return (x >= lo) and (x <= hi)


def validate_row(row: Dict[str, Any], *, mode: str = "relaxed", where: str = "<row>") -> Dict[str, Any]:
    """
    Check one client row against SCHEMA and return a copy with numeric
    fields coerced (ints for "int" fields, floats otherwise).
      - relaxed: unknown columns are carried through untouched
      - strict : unknown columns raise
    """
    missing = [k for k in REQUIRED_FIELDS if k not in row or _is_blank(row[k])]
    if missing:
        raise ValueError(f"{where}: missing required fields {missing}")

    if mode == "strict":
        allowed = set(REQUIRED_FIELDS) | set(OPTIONAL_FIELDS) | DERIVED_FIELDS
        unknown = [k for k in row.keys() if k not in allowed]
        if unknown:
            raise ValueError(f"{where}: unknown columns (strict mode): {unknown}")

    out: Dict[str, Any] = dict(row)
    for k, bounds in SCHEMA.items():
        try:
            v = float(row[k])
        except (TypeError, ValueError):
            raise ValueError(f"{where}: {k} is not a number: {row[k]!r}") from None
        if not math.isfinite(v):
            raise ValueError(f"{where}: {k} is not finite: {row[k]!r}")
        lo = float(bounds.get("min", float("-inf")))
        hi = float(bounds.get("max", float("inf")))
        if not _within(v, lo, hi):
            raise ValueError(f"{where}: {k} outside allowed range [{lo}, {hi}]: {v}")
        if bounds.get("type") == "int":
            if not v.is_integer():
                raise ValueError(f"{where}: {k} must be a whole number: {row[k]!r}")
            out[k] = int(v)
        else:
            out[k] = v

    for c in COMPOSITE_CONSTRAINTS:
        if not c["check"](out):
            raise ValueError(f"{where}: {c['message']}")

    return out


def _is_blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str):
        return not v.strip()
    try:
        return bool(pd.isna(v))
    except (TypeError, ValueError):
        return False


def _clean_record(rec: Dict[str, Any]) -> Dict[str, Any]:
    # pandas fills empty cells with NaN; drop them so optional columns stay optional
    return {str(k).strip(): v for k, v in rec.items() if not _is_blank(v)}


def load_rows_from_file(path: Path | str) -> List[Dict[str, Any]]:
    """
    Read client rows from .csv, .json (list of objects) or .yaml/.yml
    (list, or a mapping with a 'clients' list).
    """
    p = Path(path)
    if p.is_dir():
        raise SystemExit(f"{p} is a directory (expected a file)")
    suffix = p.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(p)
        return [_clean_record(r) for r in df.to_dict(orient="records")]

    text = p.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or []
    elif suffix == ".json":
        data = json.loads(text or "[]")
    else:
        raise SystemExit(f"{p}: unsupported input format '{suffix}' (use .csv, .json, .yaml)")

    if isinstance(data, dict):
        data = data.get("clients", [])
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise SystemExit(f"{p}: expected a list of client records")
    return [_clean_record(r) for r in data]


def _iter_input_files(p: Path) -> Iterable[Path]:
    if p.is_file():
        yield p
    elif p.is_dir():
        for ext in ("*.csv", "*.yaml", "*.yml", "*.json"):
            yield from sorted(p.rglob(ext))


def _main(argv: List[str] | None = None) -> int:
    import argparse
    parser = argparse.ArgumentParser(prog="retirement_irr.validate", add_help=True)
    parser.add_argument("paths", nargs="+", help="CSV/YAML/JSON files or directories to validate")
    parser.add_argument("--mode", choices=["strict", "relaxed"], default=None, help="validation mode")
    args = parser.parse_args(argv)

    mode = mode_from_env_or_flag(args.mode)
    had_error = False

    for raw in args.paths:
        target = Path(raw)
        any_seen = False
        for f in _iter_input_files(target):
            if not f.is_file():
                continue
            any_seen = True
            try:
                rows = load_rows_from_file(f)
                for i, row in enumerate(rows, start=1):
                    validate_row(row, mode=mode, where=f"{f}:{i}")
                print(f"OK: {f}")
            except (SystemExit, ValueError) as e:
                print(f"{e}", file=sys.stderr)
                had_error = True
            except Exception as e:
                print(f"{f}: ERROR: {e}", file=sys.stderr)
                had_error = True
        if not any_seen:
            print(f"{target}: no CSV/YAML/JSON files found", file=sys.stderr)
            had_error = True

    return 1 if had_error else 0

if __name__ == "__main__":
    raise SystemExit(_main())
