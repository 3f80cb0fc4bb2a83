from __future__ import annotations
from typing import Dict, Any, List

# Row schema: units, type, min/max ranges, and description.
SCHEMA: Dict[str, Dict[str, Any]] = {
    "current_age":          {"unit": "years",      "type": "int",   "min": 0,     "max": 120,   "desc": "Client age today"},
    "retirement_age":       {"unit": "years",      "type": "int",   "min": 1,     "max": 120,   "desc": "Target retirement age"},
    "income_goal_monthly":  {"unit": "currency/mo","type": "float", "min": 0.0,   "max": 1e8,   "desc": "Monthly income goal in today's money"},
    "inflation_pct":        {"unit": "percent/yr", "type": "float", "min": -10.0, "max": 50.0,  "desc": "Annual inflation rate"},
    "current_savings":      {"unit": "currency",   "type": "float", "min": 0.0,   "max": 1e12,  "desc": "Savings invested today"},
    "monthly_contribution": {"unit": "currency/mo","type": "float", "min": 0.0,   "max": 1e9,   "desc": "Monthly amount added to savings"},
}

REQUIRED_FIELDS: List[str] = list(SCHEMA)

# Carried through to the results file; not numeric.
OPTIONAL_FIELDS: List[str] = ["email", "name", "client_id"]

# Composite constraints evaluated after scalar checks.
COMPOSITE_CONSTRAINTS = [
    {
        "name": "retirement_after_today",
        "check": lambda r: float(r.get("retirement_age", 0)) > float(r.get("current_age", 0)),
        "message": "retirement_age must be greater than current_age (at least one year to save).",
    },
]
