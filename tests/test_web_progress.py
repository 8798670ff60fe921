"""Tests for progress, attempt history and dashboard endpoints."""

import pytest

from transported.db import attempts_repository, progress_repository


@pytest.fixture
def with_attempts(student, sample_module):
    module_id = sample_module.module.id
    for score in (40, 70, 100):
        attempts_repository.insert_attempt(student["user"].id, module_id, score, [])
    return sample_module


class TestProgressList:
    """Tests for GET /api/progress."""

    def test_only_own_rows(self, client, student, sample_module, account_factory):
        other = account_factory("other@example.com")
        module_id = sample_module.module.id
        progress_repository.upsert_progress(student["user"].id, module_id)
        progress_repository.upsert_progress(other["user"].id, module_id)

        response = client.get("/api/progress", headers=student["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["progress"][0]["user_id"] == student["user"].id


class TestAttemptHistory:
    """Tests for GET /api/attempts and /api/attempts/summary."""

    def test_own_attempts_newest_first(self, client, student, with_attempts, account_factory):
        other = account_factory("other@example.com")
        attempts_repository.insert_attempt(other["user"].id, with_attempts.module.id, 10, [])

        response = client.get("/api/attempts", headers=student["headers"])
        data = response.json()
        assert data["count"] == 3
        assert [a["score"] for a in data["attempts"]] == [100, 70, 40]

    def test_admin_sees_everyone(self, client, admin, student, with_attempts, account_factory):
        other = account_factory("other@example.com")
        attempts_repository.insert_attempt(other["user"].id, with_attempts.module.id, 10, [])

        response = client.get("/api/attempts", params={"all": "true"}, headers=admin["headers"])
        assert response.status_code == 200
        assert response.json()["count"] == 4

    def test_summary(self, client, student, with_attempts):
        response = client.get("/api/attempts/summary", headers=student["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["total_attempts"] == 3
        assert data["best_score"] == 100
        assert data["average_score"] == pytest.approx(70)
        assert [p["label"] for p in data["chart"]] == ["#1", "#2", "#3"]
        assert [p["score"] for p in data["chart"]] == [40, 70, 100]


class TestDashboard:
    """Tests for GET /api/dashboard."""

    def test_dashboard(self, client, student, with_attempts):
        progress_repository.upsert_progress(student["user"].id, with_attempts.module.id)

        response = client.get("/api/dashboard", headers=student["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["completed_modules"] == 1
        assert data["total_modules"] == 1
        assert data["progress_percentage"] == 100
        assert data["average_score"] == pytest.approx(70)
        assert len(data["recent_attempts"]) == 3
        assert data["recent_attempts"][0]["module_title"] == "Conduction Basics"
        assert data["next_module_id"] is None

    def test_empty_dashboard(self, client, student):
        data = client.get("/api/dashboard", headers=student["headers"]).json()
        assert data["total_modules"] == 0
        assert data["progress_percentage"] == 0
        assert data["recent_attempts"] == []
