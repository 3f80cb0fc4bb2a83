import importlib
import inspect
from pathlib import Path


def _param_names(fn):
    return [p.name for p in inspect.signature(fn).parameters.values()]


def test_finance_irr_public_api_is_stable():
    """Lock down that the solver lives in finance.irr with a stable entrypoint."""
    m = importlib.import_module("retirement_irr.finance.irr")
    for name in ("solve", "npv", "npv_derivative", "format_rate", "build_cashflows"):
        assert hasattr(m, name) and callable(getattr(m, name)), name

    # Keep argument order stable to avoid accidental API churn.
    assert _param_names(m.solve) == ["A", "M", "N", "X"]
    assert _param_names(m.npv)[:1] == ["rate"]

    # Frozen algorithm constants
    assert m.INITIAL_GUESS == 0.10
    assert m.MAX_ITERATIONS == 1000
    assert m.TOLERANCE == 1e-7
    assert m.DERIVATIVE_FLOOR == 1e-10
    assert (m.RATE_MIN, m.RATE_MAX) == (-0.99, 10.0)

    # Guard against accidental coupling/import creep in the thin math module.
    src = Path(m.__file__).read_text(encoding="utf-8")
    for forbidden in ("from retirement_irr", "import pandas", "import yaml", "smtplib"):
        assert forbidden not in src, f"Unexpected dependency '{forbidden}' inside finance/irr.py"


def test_rate_result_shape():
    m = importlib.import_module("retirement_irr.finance.irr")
    states = {s.value for s in m.SolverState}
    assert states == {"iterating", "converged", "domain_invalid", "flat", "exhausted"}
    res = m.solve(10000.0, 2400.0, 20, 1191000.0)
    assert res.ok and res.error is None
    assert isinstance(res.rate, float)


def test_planning_run_row_result_shape():
    p = importlib.import_module("retirement_irr.planning")
    res = p.run_row({
        "current_age": 40, "retirement_age": 41, "income_goal_monthly": 0.0,
        "inflation_pct": 0.0, "current_savings": 0.0, "monthly_contribution": 0.0,
    })
    assert isinstance(res, dict)
    for k in ("years_to_retirement", "future_monthly_income", "fund_needed",
              "annual_contribution", "required_rate", "required_rate_display",
              "solver_status", "iterations"):
        assert k in res


def test_validate_exports_are_stable():
    """validate module must expose these helpers (names kept stable)."""
    v = importlib.import_module("retirement_irr.validate")
    for name in ("validate_row", "load_rows_from_file", "mode_from_env_or_flag"):
        obj = getattr(v, name, None)
        assert callable(obj), f"Missing or non-callable export: {name}"


def test_scenario_runner_run_file_api_minimal(tmp_path):
    """run_file must accept (input, out_dir, ...) and return a summary-like object."""
    r = importlib.import_module("retirement_irr.scenario_runner")
    assert hasattr(r, "run_file") and callable(r.run_file)

    src = tmp_path / "clients.yaml"
    src.write_text(
        "- { current_age: 40, retirement_age: 50, income_goal_monthly: 2000,\n"
        "    inflation_pct: 2, current_savings: 20000, monthly_contribution: 300 }\n",
        encoding="utf-8",
    )
    res = r.run_file(src, tmp_path / "o", mode="irr", fmt="jsonl")
    summary = getattr(res, "summary", res)
    assert isinstance(summary, dict)
    for k in ("rows", "converged", "failed", "invalid"):
        assert k in summary
