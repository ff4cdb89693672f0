"""
Shared pytest fixtures for the odontogram / treatment plan engine tests.
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from models import ClinicalEntry, Patient, Surface, patients, ui_state
from seed import seed_data


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def seeded_store():
    """
    Reset to seed data: PT-0001 (María González, active) and PT-0002 (Carlos Méndez),
    both with empty odontograms and clinical maps.
    """
    seed_data()
    yield patients
    seed_data()


@pytest.fixture
def blank_patient():
    """Detached patient for engine-level tests (not registered in the store)."""
    return Patient(id="PT-9999", name="Test Patient", age=30)


def make_entry(
    diagnosis: str = "Caries (suspected)",
    procedure: str = "Resin restoration",
    note: str = "",
    procedure_manual: bool = False,
    cost_manual: bool = False,
    fee: float = 0,
    minutes: int = 0,
) -> ClinicalEntry:
    """Helper: build a ClinicalEntry with short keyword names."""
    return ClinicalEntry(
        diagnosis=diagnosis,
        procedure=procedure,
        note=note,
        procedureManual=procedure_manual,
        costManual=cost_manual,
        costFee=fee,
        costMinutes=minutes,
    )


def active_entry(tooth: str, surface: Surface) -> ClinicalEntry:
    """Helper: stored entry of the active patient (fails loudly if missing)."""
    patient = patients[ui_state.activePatientId]
    return patient.clinical[tooth][surface]
