# Backend main entry point - odontogram + treatment plan API over the in-memory store
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
load_dotenv()  # Load .env so DEMO_MODE / LOG_LEVEL work for local reviewers
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

import store
from catalogs import (
    DIAGNOSIS_OPTIONS,
    LOWER_LEFT_TO_RIGHT,
    PROCEDURE_COST_CATALOG,
    PROCEDURE_OPTIONS,
    SURFACE_LABELS,
    UPPER_LEFT_TO_RIGHT,
    all_teeth,
)
from models import ClinicalEntry, PlanFilter, Selection, Surface, snapshot_patient, ui_state
from seed import seed_data


def _resolve_log_level(value: Optional[str]) -> str:
    """LOG_LEVEL name, upper-cased; unknown names fall back to INFO."""
    level = (value or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        return "INFO"
    return level


logging.basicConfig(
    level=_resolve_log_level(os.environ.get("LOG_LEVEL")),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize seed data
seed_data()

app = FastAPI(title="Odontogram Treatment Plan API")


def _is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"


def _export_path() -> Path:
    return Path(os.environ.get("PLAN_EXPORT_PATH", "treatment_plan.json"))


# Configure CORS - allow local dev and deployed frontend
_allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
_frontend_url = os.environ.get("FRONTEND_URL", "")
if _frontend_url:
    _allowed_origins.append(_frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Numeric form fields arrive as numbers or raw text; the engine coerces them
NumericInput = Union[float, str, None]


# Request models
class PatientCreate(BaseModel):
    name: str = ""
    age: NumericInput = 0
    gender: str = ""
    notes: str = ""


class ClinicalEntryBody(BaseModel):
    diagnosis: str = ""
    procedure: str = ""
    note: str = ""
    procedureManual: bool = False
    costManual: bool = False
    costFee: NumericInput = 0
    costMinutes: NumericInput = 0


class DiagnosisUpdate(BaseModel):
    diagnosis: str


class ProcedureChoice(BaseModel):
    procedure: str


class NoteUpdate(BaseModel):
    note: str = ""


class CostOverride(BaseModel):
    fee: NumericInput = 0
    minutes: NumericInput = 0


class PlanFilterUpdate(BaseModel):
    filter: PlanFilter


class PlanSearchUpdate(BaseModel):
    query: str = ""


class PanelSelection(BaseModel):
    tooth: str
    surface: str


def _parse_surface(surface: str) -> Surface:
    parsed = Surface.parse(surface)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Unknown surface '{surface}'. Use one of O, M, D, B, L")
    return parsed


def _require_snapshot(snapshot: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No active patient")
    return snapshot


def _plan_payload() -> Dict[str, Any]:
    view = store.treatment_plan_view()
    return {
        "filter": ui_state.planFilter.value,
        "search": ui_state.planSearch,
        "items": [asdict(item) for item in view],
        "totals": asdict(store.treatment_plan_totals()),
    }


@app.get("/")
def read_root():
    return {"message": "Odontogram Treatment Plan API"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/catalogs")
def get_catalogs():
    """Select options for the clinical panel"""
    return {
        "surfaces": [{"code": code, "label": label} for code, label in SURFACE_LABELS.items()],
        "upperTeeth": list(UPPER_LEFT_TO_RIGHT),
        "lowerTeeth": list(LOWER_LEFT_TO_RIGHT),
        "diagnosisOptions": list(DIAGNOSIS_OPTIONS),
        "procedureOptions": list(PROCEDURE_OPTIONS),
        "procedureCosts": {
            name: {"minutes": minutes, "fee": fee}
            for name, (minutes, fee) in PROCEDURE_COST_CATALOG.items()
        },
    }


# =============================================================================
# Patients
# =============================================================================

@app.get("/patients")
def get_all_patients():
    return store.list_patients()


@app.post("/patients")
def create_patient(body: PatientCreate):
    """Create and activate a patient. A blank name is accepted and ignored."""
    snapshot = store.add_patient(body.name, body.age, body.gender, body.notes)
    return {"created": snapshot is not None, "patient": snapshot}


@app.get("/patients/active")
def get_active_patient():
    patient = store.get_active_patient()
    if patient is None:
        raise HTTPException(status_code=404, detail="No active patient")
    return snapshot_patient(patient)


@app.post("/patients/{patient_id}/select")
def select_patient(patient_id: str):
    snapshot = store.select_patient(patient_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return snapshot


# =============================================================================
# Odontogram
# =============================================================================

@app.get("/odontogram")
def get_odontogram():
    """Full chart for the active patient, untouched surfaces included as normal"""
    return {
        tooth: {surface.value: store.get_surface_status(tooth, surface).value for surface in Surface}
        for tooth in all_teeth()
    }


@app.get("/odontogram/{tooth}/{surface}")
def get_surface_status(tooth: str, surface: str):
    parsed = _parse_surface(surface)
    return {"tooth": tooth, "surface": parsed.value, "status": store.get_surface_status(tooth, parsed).value}


@app.post("/odontogram/reset")
def reset_odontogram():
    return _require_snapshot(store.reset_all())


@app.post("/odontogram/{tooth}/reset")
def reset_tooth(tooth: str):
    return _require_snapshot(store.reset_tooth(tooth))


@app.post("/odontogram/{tooth}/{surface}/cycle")
def cycle_surface(tooth: str, surface: str):
    parsed = _parse_surface(surface)
    snapshot = _require_snapshot(store.cycle_surface(tooth, parsed))
    return {
        "status": store.get_surface_status(tooth, parsed).value,
        "panel": store.clinical_panel_view_model(),
        "patient": snapshot,
    }


# =============================================================================
# Clinical entries
# =============================================================================

@app.get("/clinical/{tooth}/{surface}")
def get_clinical_entry(tooth: str, surface: str):
    """Stored entry, or the entry that would be created for the current status"""
    entry = store.get_or_init_clinical_entry(tooth, _parse_surface(surface))
    if entry is None:
        raise HTTPException(status_code=404, detail="No active patient")
    return asdict(entry)


@app.put("/clinical/{tooth}/{surface}")
def put_clinical_entry(tooth: str, surface: str, body: ClinicalEntryBody):
    entry = ClinicalEntry(**body.model_dump())
    return _require_snapshot(store.set_clinical_entry(tooth, _parse_surface(surface), entry))


@app.delete("/clinical/{tooth}/{surface}")
def delete_clinical_entry(tooth: str, surface: str):
    return _require_snapshot(store.clear_clinical_entry(tooth, _parse_surface(surface)))


@app.post("/clinical/{tooth}/{surface}/diagnosis")
def post_diagnosis(tooth: str, surface: str, body: DiagnosisUpdate):
    return _require_snapshot(store.update_diagnosis(tooth, _parse_surface(surface), body.diagnosis))


@app.post("/clinical/{tooth}/{surface}/procedure")
def post_procedure(tooth: str, surface: str, body: ProcedureChoice):
    return _require_snapshot(store.choose_procedure(tooth, _parse_surface(surface), body.procedure))


@app.post("/clinical/{tooth}/{surface}/procedure/auto")
def post_procedure_auto(tooth: str, surface: str):
    return _require_snapshot(store.revert_procedure_to_auto(tooth, _parse_surface(surface)))


@app.post("/clinical/{tooth}/{surface}/note")
def post_note(tooth: str, surface: str, body: NoteUpdate):
    return _require_snapshot(store.update_note(tooth, _parse_surface(surface), body.note))


@app.post("/clinical/{tooth}/{surface}/cost")
def post_cost_override(tooth: str, surface: str, body: CostOverride):
    return _require_snapshot(store.set_cost_override(tooth, _parse_surface(surface), body.fee, body.minutes))


@app.post("/clinical/{tooth}/{surface}/cost/auto")
def post_cost_auto(tooth: str, surface: str):
    return _require_snapshot(store.revert_cost_to_auto(tooth, _parse_surface(surface)))


# =============================================================================
# Clinical panel
# =============================================================================

@app.get("/panel")
def get_panel(tooth: Optional[str] = None, surface: Optional[str] = None):
    """Panel for an explicit tooth/surface, or for the current selection"""
    selection = None
    if tooth is not None and surface is not None:
        selection = Selection(tooth=tooth, surface=_parse_surface(surface))
    return {"panel": store.clinical_panel_view_model(selection)}


@app.post("/panel/select")
def select_panel_surface(body: PanelSelection):
    return {"panel": store.select_surface(body.tooth, _parse_surface(body.surface))}


# =============================================================================
# Treatment plan
# =============================================================================

@app.get("/plan")
def get_plan():
    return _plan_payload()


@app.post("/plan/filter")
def set_plan_filter(body: PlanFilterUpdate):
    store.set_plan_filter(body.filter)
    return _plan_payload()


@app.post("/plan/search")
def set_plan_search(body: PlanSearchUpdate):
    store.set_plan_search(body.query)
    return _plan_payload()


@app.get("/plan/export")
def get_plan_export():
    return _require_snapshot(store.export_snapshot())


@app.post("/plan/export")
def write_plan_export():
    """Write the export JSON to PLAN_EXPORT_PATH. Sink errors are reported, not raised."""
    path = _export_path()

    def _file_sink(payload: str) -> None:
        path.write_text(payload, encoding="utf-8")

    copied = store.copy_plan_to_sink(_file_sink)
    return {"copied": copied, "path": str(path)}


# =============================================================================
# Demo
# =============================================================================

@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": _is_demo_mode()}


@app.post("/demo/reset")
def demo_reset():
    """
    Reset prototype to baseline. Only available when DEMO_MODE=true.
    Restores the seeded patients, clears charts, entries and plan filters.
    """
    if not _is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data()
    logger.info("Demo store reset")
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
