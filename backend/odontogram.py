# Odontogram state machine - per tooth/surface status cycling and resets
from typing import Dict

from models import Patient, Surface, ToothStatus

_NEXT_STATUS: Dict[ToothStatus, ToothStatus] = {
    ToothStatus.NORMAL: ToothStatus.ALERT,
    ToothStatus.ALERT: ToothStatus.TREATED,
    ToothStatus.TREATED: ToothStatus.NORMAL,
}


def empty_tooth() -> Dict[Surface, ToothStatus]:
    return {surface: ToothStatus.NORMAL for surface in Surface}


def next_status(status: ToothStatus) -> ToothStatus:
    """normal -> alert -> treated -> normal"""
    return _NEXT_STATUS[status]


def get_status(patient: Patient, tooth: str, surface: Surface) -> ToothStatus:
    """Status of one surface; anything never set reads as normal."""
    tooth_data = patient.odontogram.get(tooth)
    if not tooth_data:
        return ToothStatus.NORMAL
    return tooth_data.get(surface, ToothStatus.NORMAL)


def cycle_surface(patient: Patient, tooth: str, surface: Surface) -> ToothStatus:
    """Advance one surface to its next status and return it."""
    tooth_data = patient.odontogram.setdefault(tooth, empty_tooth())
    updated = next_status(tooth_data.get(surface, ToothStatus.NORMAL))
    tooth_data[surface] = updated
    return updated


def reset_tooth(patient: Patient, tooth: str) -> None:
    """All five surfaces back to normal. Clinical entries are history and stay."""
    patient.odontogram[tooth] = empty_tooth()


def reset_all(patient: Patient) -> None:
    """Clear the whole odontogram. Clinical entries stay."""
    patient.odontogram = {}
