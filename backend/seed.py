# Seed data - the two demo patients the registry starts with
from models import Patient, patients, reset_ui_state


def seed_data():
    """Reset the in-memory store to the demo registry; the first patient is active"""
    # Clear existing data
    patients.clear()

    # Empty odontograms and clinical maps: charts are built up during the demo
    patients["PT-0001"] = Patient(
        id="PT-0001",
        name="María González",
        age=34,
        gender="Female",
        notes="Routine checkup",
        status="Active",
    )
    patients["PT-0002"] = Patient(
        id="PT-0002",
        name="Carlos Méndez",
        age=41,
        gender="Male",
        notes="Post-surgery review",
        status="Follow-up",
    )

    reset_ui_state(active_patient_id="PT-0001")
