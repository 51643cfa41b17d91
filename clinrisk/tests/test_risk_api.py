from datetime import datetime, timezone

from fastapi.testclient import TestClient

from clinrisk.api.main import app
from clinrisk.internal_core.contracts import questionnaire_from_answers
from clinrisk.risk.engine import RiskAssessmentEngine


def _install_engine() -> RiskAssessmentEngine:
    engine = RiskAssessmentEngine()
    app.state.risk_engine = engine
    return engine


def _remove_engine(engine: RiskAssessmentEngine) -> None:
    if hasattr(app.state, "risk_engine"):
        delattr(app.state, "risk_engine")
    engine.close()


def test_healthz() -> None:
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_assess_returns_full_result() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.post(
            "/risk/assess",
            json={
                "questionnaire": {
                    "subject_id": "api_acs",
                    "responses": [
                        {"question_id": "chest_pain_at_rest", "answer": True, "type": "boolean"},
                        {"question_id": "shortness_of_breath", "answer": True, "type": "boolean"},
                    ],
                },
                "profile": {"age": 62, "gender": "M"},
                "track": False,
            },
        )
    finally:
        _remove_engine(engine)
    assert response.status_code == 200
    body = response.json()
    assert body["subject_id"] == "api_acs"
    assert body["protocol"]["escalation_level"] == "emergency_dispatch"
    assert body["alerts"][0]["indicator"] == "ACUTE_CORONARY_SYNDROME_SUSPECTED"
    assert 0.0 <= body["composite"]["overall_score"] <= 100.0


def test_assess_rejects_invalid_questionnaire() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.post("/risk/assess", json={"questionnaire": {"responses": []}})
    finally:
        _remove_engine(engine)
    assert response.status_code == 422


def test_emergency_requires_symptoms() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.post("/risk/emergency", json={"subject_id": "api_er", "symptoms": ["  "]})
    finally:
        _remove_engine(engine)
    assert response.status_code == 400
    assert "symptom" in response.json()["detail"]


def test_emergency_reassessment_endpoint() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.post(
            "/risk/emergency",
            json={"subject_id": "api_er", "symptoms": ["I have a suicide plan"]},
        )
    finally:
        _remove_engine(engine)
    assert response.status_code == 200
    body = response.json()
    assert "suicide_plan" in body["matched_items"]
    assert body["protocol"]["escalation_level"] in {"emergency_dispatch", "human_review"}
    assert body["alerts"]


def test_temporal_rejects_unknown_window() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.get("/risk/temporal/api_hist", params={"window": "2w"})
    finally:
        _remove_engine(engine)
    assert response.status_code == 400
    assert "Invalid window" in response.json()["detail"]


def test_temporal_without_history_returns_404() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.get("/risk/temporal/api_nobody")
    finally:
        _remove_engine(engine)
    assert response.status_code == 404


def test_temporal_report_after_recording() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        result = engine.assess(questionnaire_from_answers("api_hist", {"polyuria": True}))
        assert engine.tracker.record("api_hist", result, timestamp=datetime.now(timezone.utc))
        response = client.get("/risk/temporal/api_hist", params={"window": "7d"})
    finally:
        _remove_engine(engine)
    assert response.status_code == 200
    body = response.json()
    assert body["window"] == "7d"
    assert body["records"][0]["condition"] == "composite"
    assert body["records"][0]["points"][0]["score"] == result.composite.overall_score


def test_bulk_assess_rejects_empty_batch() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.post("/risk/bulk-assess", json={"items": []})
    finally:
        _remove_engine(engine)
    assert response.status_code == 400


def test_bulk_assess_reports_per_item_status() -> None:
    engine = _install_engine()
    client = TestClient(app)
    try:
        response = client.post(
            "/risk/bulk-assess",
            json={
                "items": [
                    {"subject_id": "bulk_ok", "responses": [{"question_id": "wheezing", "answer": True}]},
                    {"subject_id": ""},
                ]
            },
        )
    finally:
        _remove_engine(engine)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["completed"] == 1
    assert body["failed"] == 1
    assert body["items"][0]["status"] == "completed"
    assert body["items"][1]["status"] == "failed"
