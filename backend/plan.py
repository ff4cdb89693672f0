# Treatment plan projector - plan rows, filter, search, totals, export
from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from catalogs import DEFAULT_DIAGNOSIS, DEFAULT_PROCEDURE
from costs import clamp_minutes, clamp_money, estimate_cost
from models import (
    Manual,
    Patient,
    PlanFilter,
    Surface,
    ToothStatus,
    TreatmentPlanItem,
    TreatmentPlanTotals,
)
from odontogram import get_status

logger = logging.getLogger(__name__)

STATUS_RANK = {ToothStatus.ALERT.value: 0, ToothStatus.TREATED.value: 1, ToothStatus.NORMAL.value: 2}


def _tooth_sort_key(tooth: str) -> Tuple[int, int, str]:
    # Numeric FDI codes first in numeric order; anything else after, lexicographically
    if tooth.isdecimal():
        return (0, int(tooth), "")
    return (1, 0, tooth)


def _plan_sort_key(item: TreatmentPlanItem):
    return (STATUS_RANK.get(item.status, 2), _tooth_sort_key(item.tooth), item.surface)


def build_plan(patient: Patient) -> List[TreatmentPlanItem]:
    """
    One row per stored clinical entry, with the live odontogram status.
    Sorted alerts first, then treated, then normal; then tooth number; then surface code.
    """
    items: List[TreatmentPlanItem] = []

    for tooth, per_tooth in patient.clinical.items():
        for surface in Surface:
            entry = per_tooth.get(surface)
            if entry is None:
                continue

            status = get_status(patient, tooth, surface)
            procedure = entry.procedure or DEFAULT_PROCEDURE

            cost = entry.cost_slot()
            if isinstance(cost, Manual):
                minutes, fee = cost.value
                cost_minutes, cost_fee, cost_source = clamp_minutes(minutes), clamp_money(fee), "manual"
            else:
                estimate = estimate_cost(procedure)
                cost_minutes, cost_fee, cost_source = estimate.minutes, estimate.fee, estimate.source

            items.append(TreatmentPlanItem(
                tooth=tooth,
                surface=surface.value,
                surfaceName=surface.label,
                status=status.value,
                diagnosis=entry.diagnosis or DEFAULT_DIAGNOSIS,
                procedure=procedure,
                note=entry.note or "",
                procedureManual=bool(entry.procedureManual),
                costFee=cost_fee,
                costMinutes=cost_minutes,
                costManual=bool(entry.costManual),
                costSource=cost_source,
            ))

    items.sort(key=_plan_sort_key)
    return items


def filter_plan(items: List[TreatmentPlanItem], plan_filter: Union[PlanFilter, str]) -> List[TreatmentPlanItem]:
    if plan_filter == PlanFilter.ALERTS_ONLY:
        return [item for item in items if item.status == ToothStatus.ALERT.value]
    if plan_filter == PlanFilter.TREATED_ONLY:
        return [item for item in items if item.status == ToothStatus.TREATED.value]
    return list(items)


def _haystack(item: TreatmentPlanItem) -> str:
    return " ".join([
        item.tooth,
        item.surface,
        item.surfaceName,
        item.status,
        item.diagnosis,
        item.procedure,
        item.note,
        "manual" if item.procedureManual else "auto",
        "manual" if item.costManual else "auto",
    ]).lower()


def search_plan(items: List[TreatmentPlanItem], query: Optional[str]) -> List[TreatmentPlanItem]:
    """Case-insensitive substring search; a blank query matches everything."""
    q = (query or "").strip().lower()
    if not q:
        return list(items)
    return [item for item in items if q in _haystack(item)]


def plan_totals(items: List[TreatmentPlanItem]) -> TreatmentPlanTotals:
    """Totals over exactly the rows given (the filtered + searched view)."""
    total_minutes = sum(item.costMinutes for item in items)
    total_fee = sum(item.costFee for item in items)
    return TreatmentPlanTotals(totalMinutes=clamp_minutes(total_minutes), totalFee=clamp_money(total_fee))


def export_snapshot(
    patient: Patient,
    view: List[TreatmentPlanItem],
    totals: TreatmentPlanTotals,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Export document. Field names and nesting are consumed by downstream tooling."""
    timestamp = generated_at or datetime.now(timezone.utc)
    return {
        "patient": {
            "id": patient.id,
            "name": patient.name,
            "status": patient.status,
        },
        "generatedAt": timestamp.isoformat(),
        "items": [asdict(item) for item in view],
        "totals": asdict(totals),
    }


def copy_plan(document: Dict[str, Any], sink: Callable[[str], Any]) -> bool:
    """
    Hand the serialized export to an external sink (clipboard, file, ...).
    Returns False instead of raising when the sink is unavailable.
    """
    payload = json.dumps(document, indent=2, ensure_ascii=False)
    try:
        sink(payload)
    except Exception as exc:
        logger.warning("Treatment plan export sink failed: %s", exc)
        return False
    return True
