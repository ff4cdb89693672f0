# In-memory data models - patient arena, odontogram, clinical entries, plan rows
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from catalogs import SURFACE_LABELS


class Surface(str, Enum):
    OCCLUSAL = "O"
    MESIAL = "M"
    DISTAL = "D"
    BUCCAL = "B"
    LINGUAL = "L"

    @property
    def label(self) -> str:
        return SURFACE_LABELS[self.value]

    @classmethod
    def parse(cls, value: Union[str, "Surface"]) -> Optional["Surface"]:
        """Accept a code ("o", "M") or a label ("Occlusal"); None when unknown."""
        if isinstance(value, Surface):
            return value
        text = str(value or "").strip()
        for surface in cls:
            if text.upper() == surface.value or text.lower() == surface.label.lower():
                return surface
        return None


class ToothStatus(str, Enum):
    NORMAL = "normal"
    ALERT = "alert"
    TREATED = "treated"


class PlanFilter(str, Enum):
    ALL = "all"
    ALERTS_ONLY = "alertsOnly"
    TREATED_ONLY = "treatedOnly"


# Tooth id -> surface -> status. Missing keys read as NORMAL.
Odontogram = Dict[str, Dict[Surface, ToothStatus]]


@dataclass(frozen=True)
class Auto:
    """Derived value the engine may recompute."""
    value: Any


@dataclass(frozen=True)
class Manual:
    """User-supplied value; never recomputed until reverted."""
    value: Any


@dataclass
class ClinicalEntry:
    """Editable clinical record for one tooth surface"""
    diagnosis: str
    procedure: str
    note: str
    procedureManual: bool = False
    costManual: bool = False
    costFee: float = 0.0  # USD
    costMinutes: int = 0

    def procedure_slot(self) -> Union[Auto, Manual]:
        if self.procedureManual:
            return Manual(self.procedure)
        return Auto(self.procedure)

    def cost_slot(self) -> Union[Auto, Manual]:
        pair = (self.costMinutes, self.costFee)
        if self.costManual:
            return Manual(pair)
        return Auto(pair)

    def copy(self, **changes) -> "ClinicalEntry":
        data = asdict(self)
        data.update(changes)
        return ClinicalEntry(**data)


# Tooth id -> surface -> entry. Sparse: a tooth key exists only while it holds entries.
ClinicalMap = Dict[str, Dict[Surface, ClinicalEntry]]


@dataclass
class Patient:
    """Patient record; owns its odontogram and clinical map exclusively"""
    id: str
    name: str
    age: int = 0
    gender: str = ""
    notes: str = ""
    status: str = "Active"
    odontogram: Odontogram = field(default_factory=dict)
    clinical: ClinicalMap = field(default_factory=dict)
    version: int = 0


@dataclass
class CostEstimate:
    minutes: int
    fee: float
    costManual: bool
    source: str  # "catalog" | "default" | "manual" | "none"


@dataclass
class TreatmentPlanItem:
    """Read-only plan row derived from a clinical entry and the live status"""
    tooth: str
    surface: str
    surfaceName: str
    status: str
    diagnosis: str
    procedure: str
    note: str
    procedureManual: bool
    costFee: float
    costMinutes: int
    costManual: bool
    costSource: str


@dataclass
class TreatmentPlanTotals:
    totalMinutes: int
    totalFee: float


@dataclass
class Selection:
    tooth: str
    surface: Surface


@dataclass
class UiState:
    """Per-session view state consumed by the projector and the clinical panel"""
    activePatientId: Optional[str] = None
    selection: Optional[Selection] = None
    planFilter: PlanFilter = PlanFilter.ALL
    planSearch: str = ""
    copiedPlan: bool = False


# In-memory storage
patients: Dict[str, Patient] = {}
ui_state = UiState()


def reset_ui_state(active_patient_id: Optional[str] = None) -> None:
    """Restore view state defaults in place (other modules hold a reference to ui_state)."""
    ui_state.activePatientId = active_patient_id
    ui_state.selection = None
    ui_state.planFilter = PlanFilter.ALL
    ui_state.planSearch = ""
    ui_state.copiedPlan = False


def snapshot_patient(patient: Patient) -> Dict[str, Any]:
    """Detached, JSON-ready copy of a patient record."""
    return {
        "id": patient.id,
        "name": patient.name,
        "age": patient.age,
        "gender": patient.gender,
        "notes": patient.notes,
        "status": patient.status,
        "version": patient.version,
        "odontogram": {
            tooth: {surface.value: status.value for surface, status in surfaces.items()}
            for tooth, surfaces in patient.odontogram.items()
        },
        "clinical": {
            tooth: {surface.value: asdict(entry) for surface, entry in entries.items()}
            for tooth, entries in patient.clinical.items()
        },
    }
