"""
API smoke tests using FastAPI TestClient
"""
import json

import pytest
from fastapi.testclient import TestClient

from main import _resolve_log_level, app
from seed import seed_data

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_seed_data():
    seed_data()
    yield
    seed_data()


class TestMetaEndpoints:

    def test_root_and_health(self):
        assert client.get("/").status_code == 200
        assert client.get("/health").json() == {"status": "healthy"}

    def test_catalogs(self):
        data = client.get("/catalogs").json()
        assert [s["code"] for s in data["surfaces"]] == ["O", "M", "D", "B", "L"]
        assert len(data["upperTeeth"]) == 16
        assert "Sealant" in data["procedureOptions"]
        assert data["procedureCosts"]["Root canal therapy"] == {"minutes": 90, "fee": 950}


class TestPatientsEndpoints:

    def test_get_patients_returns_seeded(self):
        response = client.get("/patients")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["PT-0001", "PT-0002"]

    def test_create_patient(self):
        response = client.post("/patients", json={"name": "Ana", "age": "29", "gender": "Female"})
        assert response.status_code == 200
        data = response.json()
        assert data["created"] is True
        assert data["patient"]["id"] == "PT-0003"
        assert client.get("/patients/active").json()["name"] == "Ana"

    def test_create_patient_blank_name_is_ignored(self):
        data = client.post("/patients", json={"name": ""}).json()
        assert data == {"created": False, "patient": None}
        assert len(client.get("/patients").json()) == 2

    def test_select_patient(self):
        assert client.post("/patients/PT-0002/select").json()["name"] == "Carlos Méndez"
        assert client.post("/patients/PT-9999/select").status_code == 404


class TestOdontogramEndpoints:

    def test_cycle_surface(self):
        response = client.post("/odontogram/11/O/cycle")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "alert"
        assert data["panel"]["procedure"] == "Sealant"
        assert data["patient"]["clinical"]["11"]["O"]["costFee"] == 150.0

    def test_surface_accepts_label(self):
        client.post("/odontogram/11/mesial/cycle")
        assert client.get("/odontogram/11/M").json()["status"] == "alert"

    def test_unknown_surface_is_400(self):
        assert client.post("/odontogram/11/X/cycle").status_code == 400
        assert client.get("/odontogram/11/X").status_code == 400

    def test_full_chart_defaults_normal(self):
        chart = client.get("/odontogram").json()
        assert len(chart) == 32
        assert chart["48"] == {"O": "normal", "M": "normal", "D": "normal", "B": "normal", "L": "normal"}

    def test_reset_tooth_and_all(self):
        client.post("/odontogram/11/O/cycle")
        client.post("/odontogram/21/O/cycle")

        data = client.post("/odontogram/11/reset").json()
        assert data["odontogram"]["11"]["O"] == "normal"
        assert "11" in data["clinical"]

        data = client.post("/odontogram/reset").json()
        assert data["odontogram"] == {}
        assert set(data["clinical"].keys()) == {"11", "21"}


class TestClinicalEndpoints:

    def test_get_entry_is_not_persisted(self):
        entry = client.get("/clinical/21/B").json()
        assert entry["diagnosis"] == "No findings on Buccal"
        assert client.get("/plan").json()["items"] == []

    def test_put_and_delete_entry(self):
        body = {"diagnosis": "Caries (suspected)", "procedure": "Crown placement", "procedureManual": True}
        data = client.put("/clinical/11/O", json=body).json()
        assert data["clinical"]["11"]["O"]["costFee"] == 1200.0

        data = client.delete("/clinical/11/O").json()
        assert data["clinical"] == {}

    def test_diagnosis_procedure_note_edits(self):
        client.post("/odontogram/11/M/cycle")
        data = client.post("/clinical/11/M/diagnosis", json={"diagnosis": "Caries (suspected)"}).json()
        assert data["clinical"]["11"]["M"]["procedure"] == "Resin restoration"

        data = client.post("/clinical/11/M/procedure", json={"procedure": "Extraction"}).json()
        assert data["clinical"]["11"]["M"]["procedureManual"] is True

        data = client.post("/clinical/11/M/procedure/auto").json()
        assert data["clinical"]["11"]["M"]["procedure"] == "Resin restoration"

        data = client.post("/clinical/11/M/note", json={"note": "recheck"}).json()
        assert data["clinical"]["11"]["M"]["note"] == "recheck"

    def test_cost_override_and_revert(self):
        client.post("/odontogram/11/O/cycle")
        data = client.post("/clinical/11/O/cost", json={"fee": "abc", "minutes": 12}).json()
        assert (data["clinical"]["11"]["O"]["costFee"], data["clinical"]["11"]["O"]["costMinutes"]) == (0.0, 12)

        data = client.post("/clinical/11/O/cost/auto").json()
        assert data["clinical"]["11"]["O"]["costManual"] is False
        assert data["clinical"]["11"]["O"]["costFee"] == 150.0

    def test_cost_override_with_oversized_numbers(self):
        client.post("/odontogram/11/O/cycle")
        response = client.post("/clinical/11/O/cost", json={"fee": "1e307", "minutes": 5})
        assert response.status_code == 200
        assert response.json()["clinical"]["11"]["O"]["costFee"] == 1e307

        body = {"procedure": "Extraction", "costManual": True, "costFee": 1e307, "costMinutes": "1e400"}
        entry = client.put("/clinical/11/O", json=body).json()["clinical"]["11"]["O"]
        assert (entry["costFee"], entry["costMinutes"]) == (1e307, 0)


class TestPanelEndpoints:

    def test_panel_empty_until_selected(self):
        assert client.get("/panel").json() == {"panel": None}
        panel = client.post("/panel/select", json={"tooth": "11", "surface": "O"}).json()["panel"]
        assert panel["status"] == "normal"
        assert client.get("/panel?tooth=11&surface=D").json()["panel"]["surface"] == "D"


class TestPlanEndpoints:

    def test_filter_and_search(self):
        client.post("/odontogram/11/O/cycle")
        client.post("/odontogram/21/O/cycle")
        client.post("/odontogram/21/O/cycle")

        data = client.post("/plan/filter", json={"filter": "alertsOnly"}).json()
        assert [i["tooth"] for i in data["items"]] == ["11"]

        client.post("/plan/filter", json={"filter": "all"})
        data = client.post("/plan/search", json={"query": "follow-up"}).json()
        assert [i["tooth"] for i in data["items"]] == ["21"]
        assert data["totals"] == {"totalMinutes": 30, "totalFee": 150.0}

    def test_plan_survives_non_decimal_digit_tooth(self):
        assert client.post("/odontogram/\u00b2/O/cycle").status_code == 200
        client.post("/odontogram/11/O/cycle")

        response = client.get("/plan")
        assert response.status_code == 200
        assert [i["tooth"] for i in response.json()["items"]] == ["11", "\u00b2"]
        assert client.get("/plan/export").status_code == 200

    def test_unknown_filter_is_422(self):
        assert client.post("/plan/filter", json={"filter": "everything"}).status_code == 422

    def test_export_document(self):
        client.post("/odontogram/11/O/cycle")
        doc = client.get("/plan/export").json()
        assert doc["patient"]["id"] == "PT-0001"
        assert doc["items"][0]["procedure"] == "Sealant"
        assert "generatedAt" in doc

    def test_export_to_file(self, tmp_path, monkeypatch):
        target = tmp_path / "plan.json"
        monkeypatch.setenv("PLAN_EXPORT_PATH", str(target))
        client.post("/odontogram/11/O/cycle")

        data = client.post("/plan/export").json()

        assert data["copied"] is True
        written = json.loads(target.read_text(encoding="utf-8"))
        assert written["items"][0]["tooth"] == "11"

    def test_export_sink_failure_is_reported(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PLAN_EXPORT_PATH", str(tmp_path / "missing" / "plan.json"))
        response = client.post("/plan/export")
        assert response.status_code == 200
        assert response.json()["copied"] is False


class TestLogLevelConfig:

    @pytest.mark.parametrize("value,expected", [
        ("debug", "DEBUG"),
        (" warning ", "WARNING"),
        ("verbose", "INFO"),
        ("", "INFO"),
        (None, "INFO"),
    ])
    def test_resolve_log_level(self, value, expected):
        assert _resolve_log_level(value) == expected
