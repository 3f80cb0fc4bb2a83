# retirement_irr/cli.py
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Only imports the thin runner and the solver; mail config loads on demand
from .scenario_runner import FORMATS, MODES, run_dir, run_file
from .finance.irr import format_rate, solve

EXIT_SOLVER_FAILED = 3


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="retirement_irr",
        description="Required annual return to reach a retirement fund",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level.")
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("run", help="Process a file of client rows.")
    r.add_argument(
        "--input",
        required=True,
        help="Client rows (.csv, .json or .yaml), or a directory of .csv files.",
    )
    r.add_argument(
        "--mode",
        default="irr",
        choices=list(MODES),
        help="Execution mode (default: irr).",
    )
    r.add_argument(
        "--outputs-dir",
        default=None,
        help="Directory to write result files (default: outputs, or outputs_dir from --config). Will be created if missing.",
    )
    r.add_argument(
        "--format",
        dest="fmt",
        default=None,
        choices=list(FORMATS),
        help="Output format for the results file (default: csv).",
    )
    r.add_argument(
        "--config",
        default=None,
        help="Optional YAML run config (mail settings, defaults).",
    )
    r.add_argument(
        "--notify",
        action="store_true",
        help="Email each client with an address their report (best-effort).",
    )
    v = r.add_mutually_exclusive_group()
    v.add_argument(
        "--strict",
        action="store_true",
        help="Enable strict validation (unknown columns rejected).",
    )
    v.add_argument(
        "--relaxed",
        action="store_true",
        help="Enable relaxed validation (unknown columns carried through).",
    )

    s = sub.add_parser("solve", help="Solve one (A, M, N, X) shape and print the rate.")
    s.add_argument("initial", type=float, help="A: amount invested today")
    s.add_argument("contribution", type=float, help="M: yearly contribution")
    s.add_argument("periods", type=int, help="N: number of years")
    s.add_argument("target", type=float, help="X: target amount at year N")
    return p.parse_args(argv)


def _apply_validation_mode(ns: argparse.Namespace) -> None:
    # Default: leave env as-is; flags override explicitly.
    if ns.strict:
        os.environ["VALIDATION_MODE"] = "strict"
    elif ns.relaxed:
        os.environ["VALIDATION_MODE"] = "relaxed"


def _run(ns: argparse.Namespace) -> int:
    _apply_validation_mode(ns)

    from .config import load_run_config, mail_settings

    cfg = load_run_config(ns.config) if ns.config else {}
    fmt = ns.fmt or cfg.get("format", "csv")
    outputs_dir = Path(ns.outputs_dir or cfg.get("outputs_dir", "outputs"))

    src = Path(ns.input).resolve()
    kwargs = dict(mode=ns.mode, fmt=fmt, notify=ns.notify, settings=mail_settings(cfg))
    if src.is_dir():
        # one sub-directory of outputs per input file
        for name, res in run_dir(src, outputs_dir.resolve(), **kwargs).items():
            print(f"{name}:")
            _print_summary(res, ns.notify)
        return 0

    _print_summary(run_file(src, outputs_dir.resolve(), **kwargs), ns.notify)
    return 0


def _print_summary(res, notify: bool) -> None:
    s = res.summary
    print(
        f"Processed {s['rows']} rows: {s['converged']} converged, "
        f"{s['failed']} failed, {s['invalid']} invalid."
    )
    if notify:
        print(f"Reports delivered: {s['notified']} ({s['notify_errors']} errors)")
    print(f"Results: {res.results_path}")


def _solve(ns: argparse.Namespace) -> int:
    result = solve(ns.initial, ns.contribution, ns.periods, ns.target)
    print(format_rate(result))
    return 0 if result.ok else EXIT_SOLVER_FAILED


def main(argv: list[str] | None = None) -> int:
    try:
        ns = parse_args(argv)
    except SystemExit as e:
        return int(e.code) if isinstance(e.code, int) else 2

    logging.basicConfig(
        level=logging.INFO if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if ns.command == "solve":
            return _solve(ns)
        return _run(ns)
    except SystemExit as e:
        # Propagate validation exit codes cleanly through CLI
        if isinstance(e.code, int):
            return e.code
        print(f"ERROR: {e.code}", file=sys.stderr)
        return 2
    except Exception as e:
        # Fail noisily with non-zero
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


__all__ = ["main", "parse_args"]
