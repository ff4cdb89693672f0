# Cost estimation - deterministic demo catalog, clamp rules, manual override
from __future__ import annotations

import math
from typing import Any

from catalogs import DEFAULT_COST, PROCEDURE_COST_CATALOG
from models import ClinicalEntry, CostEstimate


def to_number(value: Any) -> float:
    """Coerce user input (numbers or numeric text) to a finite float; anything else is 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _round_half_up(number: float) -> float:
    return math.floor(number + 0.5)


def clamp_money(value: Any) -> float:
    """USD amount: non-negative, 2 decimals."""
    number = to_number(value)
    if number < 0:
        return 0.0
    scaled = number * 100
    if not math.isfinite(scaled):
        # Too large to carry cents; already a whole amount
        return number
    return _round_half_up(scaled) / 100


def clamp_minutes(value: Any) -> int:
    """Minutes: non-negative whole number."""
    number = to_number(value)
    if number < 0:
        return 0
    return int(_round_half_up(number))


def estimate_cost(procedure: str | None) -> CostEstimate:
    """
    Look up minutes + fee for a procedure.
    Blank procedure -> nothing to estimate; unknown procedure -> generic default.
    """
    name = (procedure or "").strip()
    if not name:
        return CostEstimate(minutes=0, fee=0.0, costManual=False, source="none")

    hit = PROCEDURE_COST_CATALOG.get(name)
    if hit is not None:
        minutes, fee = hit
        return CostEstimate(minutes=minutes, fee=float(fee), costManual=False, source="catalog")

    minutes, fee = DEFAULT_COST
    return CostEstimate(minutes=minutes, fee=float(fee), costManual=False, source="default")


def apply_estimate(entry: ClinicalEntry) -> ClinicalEntry:
    """Copy of the entry with AUTO cost fields matching its procedure."""
    estimate = estimate_cost(entry.procedure)
    return entry.copy(
        costManual=False,
        costFee=clamp_money(estimate.fee),
        costMinutes=clamp_minutes(estimate.minutes),
    )


def set_cost_override(entry: ClinicalEntry, fee: Any, minutes: Any) -> ClinicalEntry:
    """Pin fee/minutes; later procedure changes no longer touch them."""
    return entry.copy(
        costManual=True,
        costFee=clamp_money(fee),
        costMinutes=clamp_minutes(minutes),
    )


def revert_cost_to_auto(entry: ClinicalEntry) -> ClinicalEntry:
    return apply_estimate(entry)


def format_usd(amount: Any) -> str:
    return f"${clamp_money(amount):,.2f}"


def format_minutes(minutes: Any) -> str:
    value = clamp_minutes(minutes)
    if value == 0:
        return "—"
    return f"{value} min"
