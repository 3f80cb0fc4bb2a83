"""
Finance metrics façade.

Design:
- NPV and the solver live only in retirement_irr.finance.irr.
- This module must not *define* npv (no 'def npv' here).
- It re-exports the solver surface and adds a numeric derivative
  check used by tests and diagnostics.
"""
from __future__ import annotations

from .irr import (  # re-exports
    build_cashflows as build_cashflows,
    format_rate as format_rate,
    npv as npv,
    npv_derivative as npv_derivative,
    solve as solve,
)


def finite_difference_derivative(
    rate: float, A: float, M: float, N: int, X: float, h: float = 1e-6
) -> float:
    """Central difference of npv around `rate`."""
    return (npv(rate + h, A, M, N, X) - npv(rate - h, A, M, N, X)) / (2.0 * h)


__all__ = [
    "build_cashflows", "format_rate", "npv", "npv_derivative", "solve",
    "finite_difference_derivative",
]
