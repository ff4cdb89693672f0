# Patient store - command/query surface over the active patient
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Union

import clinical
import odontogram
from costs import format_minutes, format_usd, to_number
from costs import revert_cost_to_auto as _revert_cost, set_cost_override as _override_cost
from models import (
    ClinicalEntry,
    Patient,
    PlanFilter,
    Selection,
    Surface,
    ToothStatus,
    TreatmentPlanItem,
    TreatmentPlanTotals,
    patients,
    snapshot_patient,
    ui_state,
)
from plan import build_plan, copy_plan, export_snapshot as _export_snapshot, filter_plan, plan_totals, search_plan

logger = logging.getLogger(__name__)

SurfaceArg = Union[Surface, str]


# =============================================================================
# Patients
# =============================================================================

def get_patient(patient_id: str) -> Optional[Patient]:
    """Get patient by ID"""
    return patients.get(patient_id)


def get_active_patient() -> Optional[Patient]:
    if ui_state.activePatientId is None:
        return None
    return get_patient(ui_state.activePatientId)


def list_patients() -> List[Dict[str, Any]]:
    """Registry rows (no odontogram/clinical payload)."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "age": p.age,
            "gender": p.gender,
            "notes": p.notes,
            "status": p.status,
            "active": p.id == ui_state.activePatientId,
        }
        for p in patients.values()
    ]


def _next_patient_id() -> str:
    return f"PT-{len(patients) + 1:04d}"


def add_patient(name: str, age: Any = 0, gender: str = "", notes: str = "") -> Optional[Dict[str, Any]]:
    """
    Create a patient and make it active.
    Blank name is a no-op (returns None); callers check preconditions themselves.
    """
    if not (name or "").strip():
        return None

    patient = Patient(
        id=_next_patient_id(),
        name=name,
        age=max(0, int(to_number(age))),
        gender=gender or "",
        notes=notes or "",
        status="Active",
    )
    patients[patient.id] = patient
    ui_state.activePatientId = patient.id
    ui_state.selection = None
    logger.info("Created patient %s", patient.id)
    return snapshot_patient(patient)


def select_patient(patient_id: str) -> Optional[Dict[str, Any]]:
    """Switch the active patient. Unknown ids leave the selection as it was."""
    patient = get_patient(patient_id)
    if patient is None:
        return None
    ui_state.activePatientId = patient.id
    ui_state.selection = None
    return snapshot_patient(patient)


def _commit(patient: Patient) -> Dict[str, Any]:
    patient.version += 1
    return snapshot_patient(patient)


# =============================================================================
# Odontogram commands
# =============================================================================

def cycle_surface(tooth: str, surface: SurfaceArg) -> Optional[Dict[str, Any]]:
    """
    Advance one surface and keep its clinical entry consistent in the same step:
    first touch creates the entry, later touches re-recommend an AUTO procedure.
    """
    patient = get_active_patient()
    parsed = Surface.parse(surface)
    if patient is None or parsed is None:
        return None

    status = odontogram.cycle_surface(patient, tooth, parsed)
    ui_state.selection = Selection(tooth=tooth, surface=parsed)

    if clinical.get_entry(patient, tooth, parsed) is None:
        entry = clinical.get_or_init(patient, tooth, parsed, status)
        clinical.set_entry(patient, tooth, parsed, entry)
    else:
        clinical.refresh_if_auto(patient, tooth, parsed, status)

    logger.debug("Cycled %s %s/%s -> %s", patient.id, tooth, parsed.value, status.value)
    return _commit(patient)


def reset_tooth(tooth: str) -> Optional[Dict[str, Any]]:
    patient = get_active_patient()
    if patient is None:
        return None
    odontogram.reset_tooth(patient, tooth)
    if ui_state.selection is not None and ui_state.selection.tooth == tooth:
        ui_state.selection = None
    logger.info("Reset tooth %s for %s", tooth, patient.id)
    return _commit(patient)


def reset_all() -> Optional[Dict[str, Any]]:
    patient = get_active_patient()
    if patient is None:
        return None
    odontogram.reset_all(patient)
    ui_state.selection = None
    logger.info("Reset odontogram for %s", patient.id)
    return _commit(patient)


# =============================================================================
# Clinical entry commands
# =============================================================================

def set_clinical_entry(tooth: str, surface: SurfaceArg, entry: ClinicalEntry) -> Optional[Dict[str, Any]]:
    """Full overwrite. The caller sets procedureManual (True on a manual pick, False on revert)."""
    patient = get_active_patient()
    parsed = Surface.parse(surface)
    if patient is None or parsed is None:
        return None
    clinical.set_entry(patient, tooth, parsed, entry)
    return _commit(patient)


def clear_clinical_entry(tooth: str, surface: SurfaceArg) -> Optional[Dict[str, Any]]:
    """Remove one entry; odontogram status is left exactly as it was."""
    patient = get_active_patient()
    parsed = Surface.parse(surface)
    if patient is None or parsed is None:
        return None
    if not clinical.clear_entry(patient, tooth, parsed):
        return snapshot_patient(patient)

    selection = ui_state.selection
    if selection is not None and selection.tooth == tooth and selection.surface == parsed:
        ui_state.selection = None
    return _commit(patient)


def _edit_entry(
    tooth: str,
    surface: SurfaceArg,
    edit: Callable[[ClinicalEntry, ToothStatus, Surface], ClinicalEntry],
) -> Optional[Dict[str, Any]]:
    # Materializes the entry when the surface has never been touched
    patient = get_active_patient()
    parsed = Surface.parse(surface)
    if patient is None or parsed is None:
        return None
    status = odontogram.get_status(patient, tooth, parsed)
    entry = clinical.get_or_init(patient, tooth, parsed, status)
    clinical.set_entry(patient, tooth, parsed, edit(entry, status, parsed))
    return _commit(patient)


def update_diagnosis(tooth: str, surface: SurfaceArg, diagnosis: str) -> Optional[Dict[str, Any]]:
    return _edit_entry(tooth, surface, lambda e, st, s: clinical.apply_diagnosis(e, diagnosis, st, s))


def choose_procedure(tooth: str, surface: SurfaceArg, procedure: str) -> Optional[Dict[str, Any]]:
    return _edit_entry(tooth, surface, lambda e, st, s: clinical.apply_manual_procedure(e, procedure))


def update_note(tooth: str, surface: SurfaceArg, note: str) -> Optional[Dict[str, Any]]:
    return _edit_entry(tooth, surface, lambda e, st, s: clinical.apply_note(e, note))


def revert_procedure_to_auto(tooth: str, surface: SurfaceArg) -> Optional[Dict[str, Any]]:
    return _edit_entry(tooth, surface, clinical.revert_procedure_to_auto)


def set_cost_override(tooth: str, surface: SurfaceArg, fee: Any, minutes: Any) -> Optional[Dict[str, Any]]:
    """Pin fee/minutes. Bad numeric input becomes 0 rather than an error."""
    logger.info("Cost override %s/%s fee=%r minutes=%r", tooth, surface, fee, minutes)
    return _edit_entry(tooth, surface, lambda e, st, s: _override_cost(e, fee, minutes))


def revert_cost_to_auto(tooth: str, surface: SurfaceArg) -> Optional[Dict[str, Any]]:
    return _edit_entry(tooth, surface, lambda e, st, s: _revert_cost(e))


# =============================================================================
# Plan / panel UI state
# =============================================================================

def set_plan_filter(value: Union[PlanFilter, str]) -> str:
    """Unknown filter values are ignored; returns the filter in effect."""
    try:
        ui_state.planFilter = PlanFilter(value)
    except ValueError:
        logger.debug("Ignoring unknown plan filter %r", value)
    return ui_state.planFilter.value


def set_plan_search(text: Optional[str]) -> str:
    ui_state.planSearch = text or ""
    return ui_state.planSearch


def select_surface(tooth: str, surface: SurfaceArg) -> Optional[Dict[str, Any]]:
    """Point the clinical panel at a surface without cycling it."""
    parsed = Surface.parse(surface)
    if parsed is None:
        return None
    ui_state.selection = Selection(tooth=tooth, surface=parsed)
    return clinical_panel_view_model()


# =============================================================================
# Queries
# =============================================================================

def get_surface_status(tooth: str, surface: SurfaceArg) -> ToothStatus:
    patient = get_active_patient()
    parsed = Surface.parse(surface)
    if patient is None or parsed is None:
        return ToothStatus.NORMAL
    return odontogram.get_status(patient, tooth, parsed)


def get_or_init_clinical_entry(tooth: str, surface: SurfaceArg) -> Optional[ClinicalEntry]:
    """
    Stored entry or a synthesized one for the live status.
    Returns a detached copy; persist it with set_clinical_entry to keep it.
    """
    patient = get_active_patient()
    parsed = Surface.parse(surface)
    if patient is None or parsed is None:
        return None
    status = odontogram.get_status(patient, tooth, parsed)
    return clinical.get_or_init(patient, tooth, parsed, status).copy()


def treatment_plan() -> List[TreatmentPlanItem]:
    patient = get_active_patient()
    if patient is None:
        return []
    return build_plan(patient)


def treatment_plan_view() -> List[TreatmentPlanItem]:
    """Plan after the current filter and search."""
    return search_plan(filter_plan(treatment_plan(), ui_state.planFilter), ui_state.planSearch)


def treatment_plan_totals() -> TreatmentPlanTotals:
    return plan_totals(treatment_plan_view())


def clinical_panel_view_model(selection: Optional[Selection] = None) -> Optional[Dict[str, Any]]:
    """Panel data for the selected surface; None when nothing is selected."""
    patient = get_active_patient()
    selected = selection or ui_state.selection
    if patient is None or selected is None:
        return None

    surface = selected.surface
    status = odontogram.get_status(patient, selected.tooth, surface)
    entry = clinical.get_or_init(patient, selected.tooth, surface, status)

    return {
        "tooth": selected.tooth,
        "surface": surface.value,
        "surfaceName": surface.label,
        "status": status.value,
        "diagnosis": entry.diagnosis,
        "procedure": entry.procedure,
        "note": entry.note,
        "procedureManual": entry.procedureManual,
        "recommendedProcedure": clinical.recommend_for_entry(status, entry.diagnosis, surface),
        "costManual": entry.costManual,
        "costFee": entry.costFee,
        "costMinutes": entry.costMinutes,
        "costFeeDisplay": format_usd(entry.costFee),
        "costMinutesDisplay": format_minutes(entry.costMinutes),
        "persisted": clinical.get_entry(patient, selected.tooth, surface) is not None,
    }


def export_snapshot() -> Optional[Dict[str, Any]]:
    """Export document for the current view of the active patient's plan."""
    patient = get_active_patient()
    if patient is None:
        return None
    view = treatment_plan_view()
    return _export_snapshot(patient, view, plan_totals(view))


def copy_plan_to_sink(sink: Callable[[str], Any]) -> bool:
    """Write the export to an external sink; a failing sink only flips the copied flag."""
    document = export_snapshot()
    if document is None:
        ui_state.copiedPlan = False
        return False
    ui_state.copiedPlan = copy_plan(document, sink)
    return ui_state.copiedPlan
