from fastapi.testclient import TestClient

from ckmrisk.api.main import app
from ckmrisk.therapy.hazard_ratios import HazardRatioTable

PATIENT = {
    "age": "60",
    "egfr": "30",
    "uacr": "300",
    "sbp": "130",
    "total_cholesterol": "200",
    "hdl_cholesterol": "50",
}


def _fresh_hazard_ratio_table() -> None:
    app.state.hazard_ratio_table = HazardRatioTable()


def _enter(client: TestClient, session_id: str, values: dict[str, str]) -> None:
    for field, value in values.items():
        response = client.put(f"/sessions/{session_id}/fields/{field}/draft", json={"value": value})
        assert response.status_code == 200
        assert response.json()["accepted"] is True
        response = client.post(f"/sessions/{session_id}/fields/{field}/commit")
        assert response.status_code == 200


def test_healthz() -> None:
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_session_flow_calculated_results() -> None:
    _fresh_hazard_ratio_table()
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]

    _enter(client, session_id, PATIENT)
    assert client.put(f"/sessions/{session_id}/sex", json={"sex": "male"}).status_code == 200
    assert client.put(f"/sessions/{session_id}/toggles/diabetes", json={"value": True}).status_code == 200

    body = client.get(f"/sessions/{session_id}/results").json()
    assert body["status"] == "ok"
    assert body["mode"] == "calculated"
    assert body["models"]["kfre"]["status"] == "available"
    assert body["models"]["kfre"]["result"]["equation"] == "4-variable"
    assert body["models"]["prevent"]["status"] == "available"
    assert body["models"]["kdigo"]["result"]["egfr_category"] == "30-45"
    assert body["models"]["kdigo"]["result"]["acr_category"] == "30-300"
    assert body["models"]["kfre"]["treated"] == []


def test_draft_without_commit_does_not_feed_models() -> None:
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    client.put(f"/sessions/{session_id}/fields/egfr/draft", json={"value": "50"})
    client.put(f"/sessions/{session_id}/fields/uacr/draft", json={"value": "20"})

    body = client.get(f"/sessions/{session_id}/results").json()
    assert body["models"]["kdigo"]["status"] == "absent"

    state = client.get(f"/sessions/{session_id}").json()
    assert state["drafts"]["egfr"] == "50"
    assert state["committed"]["egfr"] == ""


def test_hard_error_suppresses_all_results_and_is_audited() -> None:
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    _enter(client, session_id, {**PATIENT, "bmi": "90"})
    client.put(f"/sessions/{session_id}/sex", json={"sex": "male"})

    body = client.get(f"/sessions/{session_id}/results").json()
    assert body["status"] == "suppressed"
    assert body["reason"] == "hard validation error"
    assert body["hard_error_fields"] == ["bmi"]
    assert body["validation"]["bmi"]["severity"] == "hard"
    assert all(item["status"] == "suppressed" for item in body["models"].values())
    assert all(item["result"] is None for item in body["models"].values())

    events = client.get(f"/sessions/{session_id}/audit").json()["events"]
    assert any(event["type"] == "VALIDATION_HARD" and event["code"] == "bmi" for event in events)


def test_commit_reports_soft_message() -> None:
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    client.put(f"/sessions/{session_id}/fields/age/draft", json={"value": "95"})
    body = client.post(f"/sessions/{session_id}/fields/age/commit").json()
    assert body["committed"] == "95"
    assert body["validation"] == {"severity": "soft", "message": "Input is unusually high. Please check."}


def test_manual_mode_and_switch_back() -> None:
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    _enter(client, session_id, {"egfr": "50", "uacr": "20"})
    client.put(f"/sessions/{session_id}/manual/kfre", json={"value": "45"})
    client.put(f"/sessions/{session_id}/mode", json={"mode": "manual"})

    body = client.get(f"/sessions/{session_id}/results").json()
    assert body["mode"] == "manual"
    assert body["models"]["kfre"]["result"]["two_year"] == 45.0
    assert body["models"]["kfre"]["result"]["risk_level"] == "High"
    assert body["models"]["kdigo"]["status"] == "absent"

    client.put(f"/sessions/{session_id}/mode", json={"mode": "calculated"})
    body = client.get(f"/sessions/{session_id}/results").json()
    assert body["models"]["kdigo"]["result"]["egfr_category"] == "45-60"
    assert client.get(f"/sessions/{session_id}").json()["manual"]["kfre"] == "45"

    events = client.get(f"/sessions/{session_id}/audit").json()["events"]
    assert [event["code"] for event in events if event["type"] == "MODE_CHANGED"] == ["manual", "calculated"]


def test_treatment_effect_uses_current_overrides() -> None:
    _fresh_hazard_ratio_table()
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    _enter(client, session_id, {"egfr": "45", "uacr": "300"})
    client.put(f"/sessions/{session_id}/treatment-effect", json={"enabled": True})

    response = client.put("/hazard-ratios/sglt2i/ckd", json={"value": "0.5"})
    assert response.status_code == 200

    body = client.get(f"/sessions/{session_id}/results").json()
    treated = {item["figure"]: item for item in body["models"]["kdigo"]["treated"]}
    sglt2i = next(item for item in treated["ckd_progression"]["estimates"] if item["medication"] == "sglt2i")
    assert sglt2i["hazard_ratio"] == 0.5
    assert sglt2i["custom_hazard_ratio"] is True
    assert abs(sglt2i["treated"] - 18.988 * 0.5) < 1e-9

    client.delete("/hazard-ratios/sglt2i/ckd")
    body = client.get(f"/sessions/{session_id}/results").json()
    treated = {item["figure"]: item for item in body["models"]["kdigo"]["treated"]}
    sglt2i = next(item for item in treated["ckd_progression"]["estimates"] if item["medication"] == "sglt2i")
    assert sglt2i["hazard_ratio"] == 0.63
    assert sglt2i["custom_hazard_ratio"] is False


def test_reset_keeps_hazard_ratio_overrides() -> None:
    _fresh_hazard_ratio_table()
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    _enter(client, session_id, {"age": "70"})
    client.put("/hazard-ratios/nsmra/hf", json={"value": "0.9"})

    assert client.post(f"/sessions/{session_id}/reset").json() == {"status": "reset"}
    state = client.get(f"/sessions/{session_id}").json()
    assert state["committed"]["age"] == ""
    assert state["mode"] == "calculated"

    entries = client.get("/hazard-ratios").json()["entries"]
    nsmra_hf = next(item for item in entries if item["medication"] == "nsmra" and item["outcome"] == "hf")
    assert nsmra_hf["effective"] == 0.9
    _fresh_hazard_ratio_table()


def test_stateless_calculate() -> None:
    client = TestClient(app)
    response = client.post(
        "/calculate",
        json={"values": PATIENT, "sex": "female", "toggles": {"smoking": True}},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert 0 <= body["models"]["prevent"]["result"]["cvd"] <= 100

    manual = client.post("/calculate", json={"mode": "manual", "manual": {"cvd": "9"}}).json()
    assert manual["models"]["prevent"]["result"]["cvd"] == 9.0
    assert manual["models"]["kfre"]["status"] == "absent"


def test_validation_ranges_and_hazard_ratio_table() -> None:
    _fresh_hazard_ratio_table()
    client = TestClient(app)
    ranges = client.get("/validation/ranges").json()
    assert ranges["age"]["hard_min"] == 18
    assert ranges["age"]["hard_max"] == 120

    entries = client.get("/hazard-ratios").json()["entries"]
    assert len(entries) == 9
    glp1_hf = next(item for item in entries if item["medication"] == "glp1ra" and item["outcome"] == "hf")
    assert glp1_hf["applicable"] is False
    assert glp1_hf["effective"] is None
    assert glp1_hf["medication_label"] == "GLP-1 RA"


def test_content_lookup() -> None:
    client = TestClient(app)
    response = client.get("/content/evidence/sglt2i.hf")
    assert response.status_code == 200
    assert "title" in response.json()["content"]
    assert client.get("/content/inputs/egfr").json()["content"].startswith("Estimated")


def test_delete_session() -> None:
    client = TestClient(app)
    session_id = client.post("/sessions").json()["session_id"]
    assert client.delete(f"/sessions/{session_id}").json() == {"status": "destroyed"}
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_content_index_lists_kinds_and_keys() -> None:
    client = TestClient(app)
    kinds = client.get("/content").json()
    assert kinds["kind"] is None
    assert kinds["keys"] == ["evidence", "formulas", "inputs", "outputs"]

    evidence = client.get("/content/evidence").json()
    assert evidence == {"kind": "evidence", "keys": ["glp1ra", "nsmra", "sglt2i"]}
