# retirement_irr/planning.py
"""
Client row -> solver inputs -> result row.

Rule of 25: the fund needed at retirement is 25 years of the
inflation-adjusted income goal. No validation policy here; rows are
expected to have passed validate.validate_row.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from retirement_irr.finance.irr import RateResult, format_rate, solve

MONTHS_PER_YEAR = 12
WITHDRAWAL_MULTIPLE = 25


@dataclass(frozen=True)
class DerivedInputs:
    years: int
    future_monthly_income: float
    fund_needed: float
    # solver inputs (A, M, N, X)
    initial: float
    contribution: float
    periods: int
    target: float


def derive_inputs(row: Dict[str, Any]) -> DerivedInputs:
    years = int(row["retirement_age"]) - int(row["current_age"])
    if years < 1:
        raise ValueError(f"years to retirement must be >= 1, got {years}")

    inflation = float(row["inflation_pct"]) / 100.0
    future_income = float(row["income_goal_monthly"]) * (1.0 + inflation) ** years
    fund_needed = future_income * MONTHS_PER_YEAR * WITHDRAWAL_MULTIPLE

    return DerivedInputs(
        years=years,
        future_monthly_income=future_income,
        fund_needed=fund_needed,
        initial=float(row["current_savings"]),
        contribution=float(row["monthly_contribution"]) * MONTHS_PER_YEAR,
        periods=years,
        target=fund_needed,
    )


def solve_row(row: Dict[str, Any]) -> tuple[DerivedInputs, RateResult]:
    d = derive_inputs(row)
    return d, solve(d.initial, d.contribution, d.periods, d.target)


def run_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Original fields plus derived values and the solver outcome:
      years_to_retirement, future_monthly_income, fund_needed,
      annual_contribution, required_rate (None on failure),
      required_rate_display, solver_status, iterations
    """
    d, result = solve_row(row)
    out = dict(row)
    out.update(
        {
            "years_to_retirement": d.years,
            "future_monthly_income": d.future_monthly_income,
            "fund_needed": d.fund_needed,
            "annual_contribution": d.contribution,
            "required_rate": result.rate,
            "required_rate_display": format_rate(result),
            "solver_status": result.state.value,
            "iterations": result.iterations,
        }
    )
    return out


__all__ = ["DerivedInputs", "derive_inputs", "solve_row", "run_row",
           "MONTHS_PER_YEAR", "WITHDRAWAL_MULTIPLE"]
