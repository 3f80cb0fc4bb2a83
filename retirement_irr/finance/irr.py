# retirement_irr/finance/irr.py
"""
Required-return solver.

Cash-flow shape (annual):
    t=0        : -A            (current savings)
    t=1..N-1   : -M            (yearly contribution)
    t=N        : X - M         (target fund, net of the last contribution)

solve() runs Newton-Raphson on NPV(r) = 0 and returns a RateResult.
Solver failures are returned, never raised.
"""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

INITIAL_GUESS = 0.10
MAX_ITERATIONS = 1000
TOLERANCE = 1e-7
DERIVATIVE_FLOOR = 1e-10
RATE_MIN = -0.99
RATE_MAX = 10.0


class SolverState(str, Enum):
    ITERATING = "iterating"
    CONVERGED = "converged"
    DOMAIN_INVALID = "domain_invalid"
    FLAT = "flat"
    EXHAUSTED = "exhausted"


# Terminal state -> failure kind reported to callers
_ERRORS = {
    SolverState.DOMAIN_INVALID: "RateOverflowOrInvalid",
    SolverState.FLAT: "NotFound",
    SolverState.EXHAUSTED: "NotFound",
}

_MESSAGES = {
    "RateOverflowOrInvalid": "Error: rate overflow or invalid",
    "NotFound": "Error: IRR not found",
}


@dataclass(frozen=True)
class RateResult:
    state: SolverState
    rate: Optional[float] = None
    iterations: int = 0

    @property
    def ok(self) -> bool:
        return self.state is SolverState.CONVERGED

    @property
    def error(self) -> Optional[str]:
        """'RateOverflowOrInvalid', 'NotFound', or None on success."""
        return _ERRORS.get(self.state)


def _check_inputs(A: float, M: float, N: int, X: float) -> int:
    if isinstance(N, bool) or not isinstance(N, numbers.Integral):
        raise ValueError(f"N must be a positive integer, got {N!r}")
    if N < 1:
        raise ValueError(f"N must be >= 1, got {N}")
    for name, v in (("A", A), ("M", M), ("X", X)):
        try:
            finite = math.isfinite(float(v))
        except (TypeError, ValueError):
            finite = False
        if not finite:
            raise ValueError(f"{name} must be finite, got {v!r}")
    return int(N)


def _cashflow(t: int, M: float, N: int, X: float) -> float:
    return (X - M) if t == N else -M


# ---------- NPV ----------
def npv(rate: float, A: float, M: float, N: int, X: float) -> float:
    """
    NPV(r) = -A + sum_{t=1..N} CF[t] / (1+r)^t
    with CF[t] = -M for t < N and X - M at t = N.
    """
    value = -float(A)
    for t in range(1, N + 1):
        value += _cashflow(t, M, N, X) / ((1.0 + rate) ** t)
    return value


def npv_derivative(rate: float, A: float, M: float, N: int, X: float) -> float:
    """
    dNPV/dr = sum_{t=1..N} -t * CF[t] / (1+r)^(t+1)
    """
    deriv = 0.0
    for t in range(1, N + 1):
        deriv += -t * _cashflow(t, M, N, X) / ((1.0 + rate) ** (t + 1))
    return deriv


def build_cashflows(A: float, M: float, N: int, X: float) -> List[float]:
    """[-A, -M, ..., -M, X - M] with N + 1 entries (t = 0..N)."""
    N = _check_inputs(A, M, N, X)
    return [-float(A)] + [_cashflow(t, M, N, X) for t in range(1, N + 1)]


# ---------- Newton-Raphson ----------
def solve(A: float, M: float, N: int, X: float) -> RateResult:
    """
    Annual rate that makes NPV zero for the (A, M, N, X) shape.

    Each step checks, in order: flat derivative, out-of-window or
    non-finite candidate, convergence. Raises ValueError only when the
    inputs break the preconditions (N a positive int, finite A/M/X).
    """
    N = _check_inputs(A, M, N, X)

    rate = INITIAL_GUESS
    state = SolverState.ITERATING
    it = 0
    while state is SolverState.ITERATING:
        if it >= MAX_ITERATIONS:
            state = SolverState.EXHAUSTED
            break
        it += 1

        try:
            value = npv(rate, A, M, N, X)
            derivative = npv_derivative(rate, A, M, N, X)
        except (OverflowError, ZeroDivisionError):
            # (1+r)**t left float range for a long horizon
            state = SolverState.DOMAIN_INVALID
            break
        if abs(derivative) < DERIVATIVE_FLOOR:
            state = SolverState.FLAT
            break

        new_rate = rate - value / derivative
        if not math.isfinite(new_rate) or not (RATE_MIN < new_rate < RATE_MAX):
            state = SolverState.DOMAIN_INVALID
            break

        if abs(new_rate - rate) < TOLERANCE:
            return RateResult(SolverState.CONVERGED, new_rate, it)
        rate = new_rate

    return RateResult(state, None, it)


def format_rate(result: RateResult) -> str:
    """'22.5293%' on success; diagnostic text for failures."""
    if result.ok and result.rate is not None:
        # + 0.0 folds -0.0 so a converged ~1e-17 prints as 0.0000%
        return f"{round(result.rate * 100.0, 4) + 0.0:.4f}%"
    return _MESSAGES[result.error or "NotFound"]


__all__ = [
    "INITIAL_GUESS", "MAX_ITERATIONS", "TOLERANCE", "DERIVATIVE_FLOOR",
    "RATE_MIN", "RATE_MAX",
    "SolverState", "RateResult",
    "npv", "npv_derivative", "build_cashflows", "solve", "format_rate",
]
