# Clinical entry engine - lazy per-surface records and the procedure recommendation
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from catalogs import CLINICAL_TEMPLATES, DEFAULT_DIAGNOSIS, DIAGNOSIS_OPTIONS, PROCEDURE_OPTIONS
from costs import apply_estimate, clamp_minutes, clamp_money
from models import Auto, ClinicalEntry, Patient, Surface, ToothStatus

logger = logging.getLogger(__name__)

PROXIMAL = {Surface.MESIAL, Surface.DISTAL}
OCCLUSAL = {Surface.OCCLUSAL}
BUCCAL_LINGUAL = {Surface.BUCCAL, Surface.LINGUAL}

# Longest first so the most specific option wins the prefix match
_OPTIONS_BY_LENGTH = sorted(DIAGNOSIS_OPTIONS, key=len, reverse=True)


def clinical_template(status: ToothStatus, surface: Surface) -> Tuple[str, str, str]:
    """Canned (diagnosis, procedure, note) narrative for a status."""
    diagnosis, procedure, note = CLINICAL_TEMPLATES[status.value]
    return diagnosis.format(surface=surface.label), procedure, note


def normalize_diagnosis(diagnosis: Optional[str]) -> str:
    """
    Map free text onto the diagnosis catalog.
    Exact options pass through, narrative templates ("Lesion / risk detected on Mesial")
    map to the option they start with, anything else becomes "Requires evaluation".
    """
    text = (diagnosis or "").strip()
    if text in DIAGNOSIS_OPTIONS:
        return text
    for option in _OPTIONS_BY_LENGTH:
        if text.startswith(option):
            return option
    return DEFAULT_DIAGNOSIS


def recommend_procedure(status: ToothStatus, diagnosis: str, surface: Surface) -> str:
    """Status + diagnosis + surface recommendation. Total: always returns a procedure."""
    # 1) Treated: always control / follow-up
    if status == ToothStatus.TREATED:
        return "Control / Follow-up"

    # 2) Normal: prevention, unless the diagnosis says something is there
    if status == ToothStatus.NORMAL:
        if diagnosis != "No findings":
            return "Clinical evaluation"
        return "Prophylaxis"

    # 3) Alert: diagnosis + surface group
    is_proximal = surface in PROXIMAL
    is_occlusal = surface in OCCLUSAL
    is_buccal_lingual = surface in BUCCAL_LINGUAL

    if diagnosis == "Caries (suspected)":
        if is_occlusal:
            return "Sealant"
        if is_proximal or is_buccal_lingual:
            return "Resin restoration"
        return "Clinical evaluation"

    if diagnosis == "Lesion / risk":
        if is_occlusal:
            return "Sealant"
        return "Clinical evaluation"

    if diagnosis == "Sensitivity / wear":
        return "Clinical evaluation"

    if diagnosis == "Fracture / fissure":
        if is_proximal:
            return "Clinical evaluation"
        if is_occlusal:
            return "Inlay (mock)"
        return "Clinical evaluation"

    if diagnosis == "Infection / abscess (suspected)":
        if is_occlusal or is_proximal:
            return "Endodontics (mock)"
        return "Clinical evaluation"

    # "Requires evaluation" and anything unexpected
    return "Clinical evaluation"


def recommend_for_entry(status: ToothStatus, diagnosis: Optional[str], surface: Surface) -> str:
    return recommend_procedure(status, normalize_diagnosis(diagnosis or DEFAULT_DIAGNOSIS), surface)


def get_entry(patient: Patient, tooth: str, surface: Surface) -> Optional[ClinicalEntry]:
    return patient.clinical.get(tooth, {}).get(surface)


def get_or_init(patient: Patient, tooth: str, surface: Surface, status: ToothStatus) -> ClinicalEntry:
    """
    Existing entry, or a synthesized one built from the status template.
    A synthesized entry is not stored; call set_entry to keep it.
    """
    existing = get_entry(patient, tooth, surface)
    if existing is not None:
        return existing

    diagnosis, template_procedure, note = clinical_template(status, surface)
    recommended = recommend_for_entry(status, diagnosis, surface)
    entry = ClinicalEntry(
        diagnosis=diagnosis,
        procedure=recommended if recommended in PROCEDURE_OPTIONS else template_procedure,
        note=note,
        procedureManual=False,
    )
    return apply_estimate(entry)


def set_entry(patient: Patient, tooth: str, surface: Surface, entry: ClinicalEntry) -> ClinicalEntry:
    """Persist the full entry. AUTO cost is re-derived from the procedure being stored."""
    if entry.costManual:
        stored = entry.copy(costFee=clamp_money(entry.costFee), costMinutes=clamp_minutes(entry.costMinutes))
    else:
        stored = apply_estimate(entry)
    patient.clinical.setdefault(tooth, {})[surface] = stored
    return stored


def refresh_if_auto(patient: Patient, tooth: str, surface: Surface, status: ToothStatus) -> bool:
    """
    Re-recommend the procedure after a status change.
    Returns True when the stored entry changed; manual procedures are left alone.
    """
    existing = get_entry(patient, tooth, surface)
    if existing is None:
        return False
    if not isinstance(existing.procedure_slot(), Auto):
        return False

    recommended = recommend_for_entry(status, existing.diagnosis, surface)
    if existing.procedure == recommended:
        return False

    updated = existing.copy(procedure=recommended, procedureManual=False)
    if isinstance(existing.cost_slot(), Auto):
        updated = apply_estimate(updated)
    patient.clinical[tooth][surface] = updated
    logger.debug("Auto procedure %s/%s: %r -> %r", tooth, surface.value, existing.procedure, recommended)
    return True


def clear_entry(patient: Patient, tooth: str, surface: Surface) -> bool:
    """Remove one entry; drop the tooth key once it holds nothing. Status is untouched."""
    tooth_map: Dict[Surface, ClinicalEntry] = patient.clinical.get(tooth, {})
    if surface not in tooth_map:
        return False
    del tooth_map[surface]
    if not tooth_map:
        del patient.clinical[tooth]
    return True


def apply_diagnosis(entry: ClinicalEntry, diagnosis: str, status: ToothStatus, surface: Surface) -> ClinicalEntry:
    """New diagnosis; an AUTO procedure follows it."""
    updated = entry.copy(diagnosis=diagnosis)
    if not updated.procedureManual:
        recommended = recommend_for_entry(status, diagnosis, surface)
        if recommended in PROCEDURE_OPTIONS:
            updated = updated.copy(procedure=recommended)
    return updated


def apply_manual_procedure(entry: ClinicalEntry, procedure: str) -> ClinicalEntry:
    return entry.copy(procedure=procedure, procedureManual=True)


def apply_note(entry: ClinicalEntry, note: str) -> ClinicalEntry:
    return entry.copy(note=note)


def revert_procedure_to_auto(entry: ClinicalEntry, status: ToothStatus, surface: Surface) -> ClinicalEntry:
    recommended = recommend_for_entry(status, entry.diagnosis, surface)
    procedure = recommended if recommended in PROCEDURE_OPTIONS else entry.procedure
    return entry.copy(procedure=procedure, procedureManual=False)
