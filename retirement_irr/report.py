from __future__ import annotations

from typing import Any, Dict, Tuple


# solver_status -> explanation printed under a failed rate
_FAILURE_REASONS = {
    "domain_invalid": "No return in the range -99% to 1000% reaches the target with these inputs.",
    "flat": "The plan barely responds to the rate here, so no required return could be found.",
    "exhausted": "The search for a required return did not settle, so no rate could be found.",
}


def _money(v: Any) -> str:
    return f"{float(v):,.2f}"


def render_report(res: Dict[str, Any]) -> Tuple[str, str]:
    """
    Plain-text report for one processed row (output of planning.run_row).
    Returns (subject, body).
    """
    who = res.get("name") or res.get("email") or "client"
    subject = f"Retirement plan: required annual return for {who}"

    rate_line = f"Required annual return:        {res.get('required_rate_display', 'n/a')}"
    if res.get("required_rate") is None:
        reason = _FAILURE_REASONS.get(res.get("solver_status"), _FAILURE_REASONS["exhausted"])
        rate_line += "\n" + reason

    lines = [
        f"Hello {who},",
        "",
        "Your inputs",
        f"  Current age:                 {res['current_age']}",
        f"  Retirement age:              {res['retirement_age']}",
        f"  Monthly income goal (today): {_money(res['income_goal_monthly'])}",
        f"  Inflation:                   {float(res['inflation_pct']):.2f}%",
        f"  Current savings:             {_money(res['current_savings'])}",
        f"  Monthly contribution:        {_money(res['monthly_contribution'])}",
        "",
        "Projection",
        f"  Years to retirement:         {res['years_to_retirement']}",
        f"  Monthly income at retirement: {_money(res['future_monthly_income'])}",
        f"  Fund needed (25x yearly):    {_money(res['fund_needed'])}",
        "",
        rate_line,
        "",
    ]
    return subject, "\n".join(lines)


__all__ = ["render_report"]
