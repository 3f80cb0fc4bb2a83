"""
Contribution sensitivity for one client row.
Re-solves the required rate with the monthly contribution scaled by a
range of multipliers, holding every other input fixed.
"""
from typing import Any, Dict, Iterable, Optional
import numpy as np
import pandas as pd

from .finance.irr import format_rate, solve
from .planning import derive_inputs, MONTHS_PER_YEAR


def contribution_sweep(
    row: Dict[str, Any],
    multipliers: Optional[Iterable[float]] = None,
) -> pd.DataFrame:
    """
    Required rate as a function of the monthly contribution.

    Args:
        row: Validated client row
        multipliers: Factors applied to monthly_contribution
            (default: 7 points from 0.5x to 2.0x)

    Returns:
        DataFrame with multiplier, monthly_contribution, required_rate,
        required_rate_display and status. Failed solves keep NaN in
        required_rate and the failure text in required_rate_display.
    """
    if multipliers is None:
        multipliers = np.linspace(0.5, 2.0, 7)
    d = derive_inputs(row)
    base_monthly = float(row["monthly_contribution"])

    out_data = []
    for k in multipliers:
        monthly = base_monthly * float(k)
        result = solve(d.initial, monthly * MONTHS_PER_YEAR, d.periods, d.target)
        out_data.append({
            "multiplier": float(k),
            "monthly_contribution": monthly,
            "required_rate": result.rate if result.ok else np.nan,
            "required_rate_display": format_rate(result),
            "status": result.state.value,
        })

    df = pd.DataFrame(out_data)
    if len(df) > 0:
        df.attrs["success_rate"] = float((df["status"] == "converged").mean())
    return df
