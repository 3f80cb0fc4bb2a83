from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from retirement_irr.notify import MailSettings
from retirement_irr.scenario_runner import run_dir, run_file

CSV = """\
client_id,name,email,current_age,retirement_age,income_goal_monthly,inflation_pct,current_savings,monthly_contribution
C001,Avery Park,avery.park@example.com,35,55,4000,3,10000,200
C002,Jordan Silva,jordan.silva@example.com,30,60,3000,2.5,50000,800
C003,Sam Okafor,,50,60,5000,4,0,0
C004,Too Old,old@example.com,70,65,3000,2,1000,10
"""


def _write(p: Path, name: str, text: str) -> Path:
    f = p / name
    f.write_text(text, encoding="utf-8")
    return f


def test_run_file_writes_results_and_summary(tmp_path: Path):
    src = _write(tmp_path, "clients.csv", CSV)
    out = tmp_path / "out"
    with pytest.warns(UserWarning, match="Row 4 skipped"):
        res = run_file(src, out, fmt="csv", validation_mode="relaxed")

    assert res.results_path == out / "clients_results.csv"
    summary = json.loads(res.summary_path.read_text(encoding="utf-8"))
    assert summary == res.summary
    assert (summary["rows"], summary["converged"], summary["failed"], summary["invalid"]) == (4, 2, 1, 1)

    df = pd.read_csv(res.results_path)
    by_id = df.set_index("client_id")
    assert by_id.loc["C001", "solver_status"] == "converged"
    assert by_id.loc["C003", "solver_status"] == "domain_invalid"
    assert by_id.loc["C003", "required_rate_display"] == "Error: rate overflow or invalid"
    assert pd.isna(by_id.loc["C003", "required_rate"])
    assert by_id.loc["C004", "solver_status"] == "invalid"
    assert "retirement_age must be greater" in by_id.loc["C004", "error"]


def test_jsonl_results(tmp_path: Path):
    src = _write(tmp_path, "clients.csv", CSV)
    with pytest.warns(UserWarning):
        res = run_file(src, tmp_path / "o", fmt="jsonl")
    lines = res.results_path.read_text(encoding="utf-8").splitlines()
    rows = [json.loads(x) for x in lines]
    assert len(rows) == 4
    assert rows[0]["client_id"] == "C001"
    assert rows[2]["required_rate"] is None


def test_rerun_overwrites_results(tmp_path: Path):
    src = _write(tmp_path, "one.csv", CSV.splitlines()[0] + "\n" + CSV.splitlines()[1] + "\n")
    out = tmp_path / "o"
    run_file(src, out)
    first = (out / "one_results.csv").read_text(encoding="utf-8")
    run_file(src, out)
    assert (out / "one_results.csv").read_text(encoding="utf-8") == first


def test_sensitivity_mode(tmp_path: Path):
    src = _write(tmp_path, "clients.csv", CSV)
    with pytest.warns(UserWarning):
        res = run_file(src, tmp_path / "o", mode="sensitivity")
    df = pd.read_csv(res.results_path)
    # 3 valid rows x 7 multipliers
    assert len(df) == 21
    assert set(df["row"]) == {1, 2, 3}


def test_notify_to_outbox(tmp_path: Path):
    src = _write(tmp_path, "clients.csv", CSV)
    outbox = tmp_path / "outbox"
    with pytest.warns(UserWarning):
        res = run_file(src, tmp_path / "o", notify=True,
                       settings=MailSettings(outbox_dir=str(outbox)))
    # C003 has no email, C004 is invalid
    assert res.summary["notified"] == 2
    assert res.summary["notify_errors"] == 0
    assert sorted(p.name for p in outbox.glob("*.eml")) == [
        "avery.park_example.com.eml", "jordan.silva_example.com.eml",
    ]


def test_notify_errors_do_not_stop_the_batch(tmp_path: Path, monkeypatch):
    from retirement_irr import scenario_runner

    def boom(*a, **k):
        raise OSError("connection refused")

    monkeypatch.setattr(scenario_runner, "send_report", boom)
    src = _write(tmp_path, "clients.csv", CSV)
    with pytest.warns(UserWarning):
        res = run_file(src, tmp_path / "o", notify=True)
    assert res.summary["notified"] == 0
    assert res.summary["notify_errors"] == 2
    assert res.results_path.exists()


def test_unknown_mode_and_format(tmp_path: Path):
    src = _write(tmp_path, "clients.csv", CSV)
    with pytest.raises(SystemExit):
        run_file(src, tmp_path / "o", mode="montecarlo")
    with pytest.raises(SystemExit):
        run_file(src, tmp_path / "o", fmt="xlsx")


def test_empty_input(tmp_path: Path):
    src = _write(tmp_path, "empty.json", "[]")
    with pytest.raises(ValueError, match="no client rows"):
        run_file(src, tmp_path / "o")


def test_run_dir(tmp_path: Path):
    d = tmp_path / "in"
    d.mkdir()
    one_row = CSV.splitlines()[0] + "\n" + CSV.splitlines()[2] + "\n"
    _write(d, "a.csv", one_row)
    _write(d, "b.csv", one_row)
    results = run_dir(d, tmp_path / "o")
    assert sorted(results) == ["a.csv", "b.csv"]
    assert (tmp_path / "o" / "a" / "summary.json").exists()
    with pytest.raises(ValueError):
        run_dir(tmp_path / "o", tmp_path / "o2", pattern="*.nothing")
