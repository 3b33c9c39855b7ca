import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_evaluation_pipeline
from main import app
from services.pipeline.orchestrator import EvaluationPipeline
from services.result_cache import ResultCache
from services.rubric import load_rubric


@pytest.fixture
def client(gateway):
    pipeline = EvaluationPipeline(gateway=gateway, rubric=load_rubric(), cache=ResultCache(ttl_days=7))
    app.dependency_overrides[get_evaluation_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


PROFILE = {
    "grade_level": 11,
    "academic": {"gpa_weighted": 4.1, "courses": [{"name": "AP Biology", "rigor": "ap", "grade": "A"}]},
    "activities": [{"name": "Hospital volunteer", "category": "service", "years_involved": 2}],
    "essays": [{"prompt": "PIQ 1", "text": "I learned to listen at the hospital front desk."}],
    "goals": {"intended_major": "Nursing"},
}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["schema_version"] == "dimension-v1"
    assert "hits" in data["cache"]


def test_evaluate(client):
    response = client.post("/evaluate", json={"profile": PROFILE, "mode": "ucla"})
    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "ucla"
    assert data["state"] == "complete"
    assert 0 <= data["synthesis"]["overall_score"] <= 10
    assert data["synthesis"]["tier"] in ("exceptional", "strong", "developing", "foundational")
    assert set(data["dimensions"]) == {
        "academic_excellence",
        "leadership_initiative",
        "intellectual_curiosity",
        "community_impact",
        "authenticity_voice",
        "future_readiness",
    }
    assert len(data["guidance"]["recommendations"]) <= 8


def test_evaluate_defaults_to_general_uc(client):
    response = client.post("/evaluate", json={"profile": PROFILE})
    assert response.status_code == 200
    assert response.json()["mode"] == "general_uc"


def test_evaluate_rejects_unknown_mode(client):
    response = client.post("/evaluate", json={"profile": PROFILE, "mode": "stanford"})
    assert response.status_code == 422


def test_evaluate_rejects_bad_grade(client):
    response = client.post("/evaluate", json={"profile": {**PROFILE, "grade_level": 8}})
    assert response.status_code == 422
