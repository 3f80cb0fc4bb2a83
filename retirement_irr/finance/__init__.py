"""Numerical core: NPV and the Newton-Raphson required-return solver."""
from .irr import RateResult, SolverState, format_rate, solve

__all__ = ["RateResult", "SolverState", "format_rate", "solve"]
