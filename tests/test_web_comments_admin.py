"""Tests for comments and admin endpoints."""

from transported.db import attempts_repository, comments_repository, progress_repository


class TestModuleComments:
    """Tests for GET/POST /api/modules/{id}/comments."""

    def test_post_and_list(self, client, student, sample_module):
        url = f"/api/modules/{sample_module.module.id}/comments"

        first = client.post(url, json={"content": "  Great module!  "}, headers=student["headers"])
        assert first.status_code == 201
        assert first.json()["content"] == "Great module!"
        assert first.json()["user_name"] == "Ana Student"

        client.post(url, json={"content": "Second"}, headers=student["headers"])

        response = client.get(url, headers=student["headers"])
        data = response.json()
        assert data["count"] == 2
        assert [c["content"] for c in data["comments"]] == ["Great module!", "Second"]

    def test_blank_comment_rejected(self, client, student, sample_module):
        response = client.post(
            f"/api/modules/{sample_module.module.id}/comments",
            json={"content": "   "},
            headers=student["headers"],
        )
        assert response.status_code == 400
        assert comments_repository.list_all_comments() == []

    def test_missing_module(self, client, student):
        response = client.post(
            "/api/modules/missing/comments", json={"content": "Hi"}, headers=student["headers"]
        )
        assert response.status_code == 404


class TestAdminComments:
    """Tests for GET /api/admin/comments."""

    def test_all_comments_newest_first(self, client, admin, student, sample_module):
        module_id = sample_module.module.id
        comments_repository.insert_comment(student["user"].id, module_id, "Old")
        comments_repository.insert_comment(admin["user"].id, module_id, "New")

        response = client.get("/api/admin/comments", headers=admin["headers"])
        assert response.status_code == 200
        data = response.json()
        assert [c["content"] for c in data["comments"]] == ["New", "Old"]
        assert data["comments"][1]["user_email"] == "student@example.com"
        assert data["comments"][1]["module_title"] == "Conduction Basics"


class TestAdminAnalytics:
    """Tests for GET /api/admin/analytics."""

    def test_report(self, client, admin, student, sample_module, account_factory):
        module_id = sample_module.module.id
        other = account_factory("ben@example.com", name="Ben")
        progress_repository.upsert_progress(student["user"].id, module_id)
        attempts_repository.insert_attempt(student["user"].id, module_id, 90, [])
        attempts_repository.insert_attempt(other["user"].id, module_id, 50, [])

        response = client.get("/api/admin/analytics", headers=admin["headers"])
        assert response.status_code == 200
        data = response.json()

        assert data["overview"]["total_students"] == 2
        assert data["overview"]["active_students"] == 2
        assert data["overview"]["average_progress"] == 50
        assert data["overview"]["total_attempts"] == 2

        rows = {r["student_email"]: r for r in data["students"]}
        assert rows["student@example.com"]["completed_modules"] == 1
        assert rows["student@example.com"]["average_score"] == 90
        assert rows["ben@example.com"]["progress_percentage"] == 0

        assert data["modules"][0]["total_completions"] == 1
        assert data["modules"][0]["average_score"] == 70
        assert data["modules"][0]["band"] == "good"
        assert [a["score"] for a in data["attempts"]] == [50, 90]
