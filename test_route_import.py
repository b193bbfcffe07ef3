#!/usr/bin/env python3
"""
Tests for the ranking and student progress routes
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import config
from main import app
from progress_tracker import CourseProgressTracker
from routes.ranking import router as ranking_router
from routes.student_progress import get_tracker, router as student_progress_router

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def client():
    app.dependency_overrides[get_tracker] = lambda: CourseProgressTracker(str(DATA_DIR))
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_routers_register_routes():
    ranking_paths = {route.path for route in ranking_router.routes}
    assert {"/tiers", "/weights", "/points", "/rank/{points}", "/health"} <= ranking_paths

    progress_paths = {route.path for route in student_progress_router.routes}
    assert {"/student/{student_id}", "/course/{course_id}", "/overview", "/health"} <= progress_paths


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/ranking/health").json()["status"] == "healthy"
    assert client.get("/student-progress/health").json()["service"] == "student_progress"


def test_tiers(client):
    response = client.get("/ranking/tiers")
    assert response.status_code == 200
    assert [tier["threshold"] for tier in response.json()] == [0, 50, 150, 300]


def test_weights(client):
    assert client.get("/ranking/weights").json() == {"lesson": 1, "material": 1, "assignment": 2, "exam": 2}


def test_score_counts(client):
    response = client.post(
        "/ranking/points",
        json={
            "completed_lessons": 10,
            "completed_materials": 5,
            "completed_assignments": 10,
            "completed_exams": 5,
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total_points"] == 45
    assert body["ranking"]["rank"] == "Bronze"
    assert body["ranking"]["next_rank_points"] == 50


def test_negative_counts_are_rejected(client):
    response = client.post("/ranking/points", json={"completed_lessons": -1})
    assert response.status_code == 422


def test_rank_for_points(client):
    body = client.get("/ranking/rank/300").json()
    assert body["rank"] == "Platinum"
    assert body["next_rank_points"] is None
    assert client.get("/ranking/rank/-5").status_code == 422


def test_student_progress(client):
    response = client.get("/student-progress/student/s1")
    assert response.status_code == 200
    body = response.json()
    assert body["total_points"] == 9
    assert body["ranking"]["rank"] == "Bronze"

    scoped = client.get("/student-progress/student/s1", params={"course_id": "c1"}).json()
    assert scoped["total_points"] == 7


def test_unknown_student_is_404(client):
    response = client.get("/student-progress/student/nobody")
    assert response.status_code == 404
    assert "nobody" in response.json()["detail"]


def test_course_roster(client):
    body = client.get("/student-progress/course/c1").json()
    assert [s["student_id"] for s in body["students"]] == ["s1", "s2"]
    assert client.get("/student-progress/course/c9").status_code == 404


def test_overview(client):
    body = client.get("/student-progress/overview").json()
    assert body["total_students"] == 3
    assert body["rank_distribution"]["Bronze"] == 3


def test_malformed_table_is_json_500(tmp_path, monkeypatch, caplog):
    (tmp_path / "enrollments.csv").write_text("student_id,course_id\ns1,c1\n")
    monkeypatch.setattr(config, "DATA_DIR", str(tmp_path))

    response = TestClient(app).get("/student-progress/overview")
    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail.startswith("Error loading progress data:")
    assert "is_active" in detail
    assert "Error loading progress data" in caplog.text
