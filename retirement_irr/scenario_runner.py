# retirement_irr/scenario_runner.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional
import json, csv
import logging
import smtplib
import warnings

from .validate import load_rows_from_file, mode_from_env_or_flag, validate_row
from .planning import run_row
from .report import render_report
from .notify import MailSettings, send_report

log = logging.getLogger(__name__)

MODES = ("irr", "sensitivity")
FORMATS = ("csv", "jsonl")


@dataclass
class RunResult:
    summary: Dict[str, Any]
    summary_path: Path
    results_path: Optional[Path] = None


def _json_default(o: Any) -> Any:
    # numpy scalars coming through pandas-read extra columns
    if hasattr(o, "item"):
        return o.item()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def _write_jsonl(path: Path, rows: List[Dict[str, Any]]) -> None:
    with path.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, default=_json_default) + "\n")


def _write_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        path.write_text("", encoding="utf-8")
        return
    cols: List[str] = []
    for d in rows:
        for k in d.keys():
            if k not in cols:
                cols.append(k)
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=cols, restval="")
        w.writeheader()
        w.writerows(rows)


def _process_rows(
    rows: List[Dict[str, Any]], *, mode: str, where: str
) -> tuple[List[Dict[str, Any]], int]:
    """Validate + solve every row. Invalid rows are kept with status 'invalid'."""
    out: List[Dict[str, Any]] = []
    invalid = 0
    for i, raw in enumerate(rows, start=1):
        try:
            row = validate_row(raw, mode=mode, where=f"{where}:{i}")
            out.append(run_row(row))
        except ValueError as e:
            invalid += 1
            warnings.warn(f"Row {i} skipped: {e}")
            rec = dict(raw)
            rec.update({"solver_status": "invalid", "error": str(e)})
            out.append(rec)
    return out, invalid


def _notify_all(results: List[Dict[str, Any]], settings: MailSettings) -> tuple[int, int]:
    sent = errors = 0
    for res in results:
        to = res.get("email")
        if not to or res.get("solver_status") == "invalid":
            continue
        subject, body = render_report(res)
        try:
            if send_report(str(to), subject, body, settings):
                sent += 1
        except (OSError, smtplib.SMTPException) as e:
            # best-effort: one bad address or SMTP hiccup must not stop the batch
            errors += 1
            log.warning("report for %s not delivered: %s", to, e)
    return sent, errors


def run_file(
    input_path: str | Path,
    out_dir: str | Path,
    *,
    mode: str = "irr",
    fmt: str = "csv",
    notify: bool = False,
    settings: Optional[MailSettings] = None,
    validation_mode: Optional[str] = None,
) -> RunResult:
    """
    Process every client row in `input_path` and write:
      <out_dir>/<stem>_results.<fmt>      (mode="irr")
      <out_dir>/<stem>_sensitivity.csv    (mode="sensitivity")
      <out_dir>/summary.json
    """
    if mode not in MODES:
        raise SystemExit(f"unknown mode: {mode}")
    if fmt not in FORMATS:
        raise SystemExit(f"unknown fmt: {fmt}")

    src = Path(input_path)
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    vmode = mode_from_env_or_flag(validation_mode)
    rows = load_rows_from_file(src)
    if not rows:
        raise ValueError(f"{src}: no client rows found")
    log.info("loaded %d rows from %s (validation=%s)", len(rows), src, vmode)

    results, invalid = _process_rows(rows, mode=vmode, where=str(src))
    converged = sum(1 for r in results if r.get("solver_status") == "converged")

    summary: Dict[str, Any] = {
        "input": str(src),
        "mode": mode,
        "rows": len(results),
        "converged": converged,
        "failed": len(results) - converged - invalid,
        "invalid": invalid,
        "notified": 0,
        "notify_errors": 0,
    }

    results_path: Optional[Path] = None
    if mode == "irr":
        results_path = out / f"{src.stem}_results.{fmt}"
        if fmt == "jsonl":
            _write_jsonl(results_path, results)
        else:
            _write_csv(results_path, results)
    else:
        from .sensitivity import contribution_sweep
        import pandas as pd

        frames = []
        for i, res in enumerate(results, start=1):
            if res.get("solver_status") == "invalid":
                continue
            df = contribution_sweep(res)
            df.insert(0, "row", i)
            frames.append(df)
        results_path = out / f"{src.stem}_sensitivity.csv"
        if frames:
            pd.concat(frames, ignore_index=True).to_csv(results_path, index=False)
        else:
            results_path.write_text("", encoding="utf-8")

    if notify:
        sent, errors = _notify_all(results, settings or MailSettings())
        summary["notified"] = sent
        summary["notify_errors"] = errors

    summary_path = out / "summary.json"
    summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    log.info("wrote %s and %s", results_path, summary_path)

    return RunResult(summary=summary, summary_path=summary_path, results_path=results_path)


def run_dir(dir_path: str | Path, out_dir: str | Path, pattern: str = "*.csv", **kwargs) -> Dict[str, RunResult]:
    d = Path(dir_path)
    o = Path(out_dir)
    o.mkdir(parents=True, exist_ok=True)
    results: Dict[str, RunResult] = {}
    for f in sorted(d.glob(pattern)):
        # one sub-directory per input keeps summary.json files apart
        results[f.name] = run_file(f, o / f.stem, **kwargs)
    if not results:
        raise ValueError(f"{d}: no input files matching {pattern}")
    return results


__all__ = ["RunResult", "run_file", "run_dir", "MODES", "FORMATS"]
