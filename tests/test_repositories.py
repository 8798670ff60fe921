"""Tests for the sqlite repositories."""

import sqlite3

import pytest

from transported.db import get_db, init_db
from transported.db import (
    attempts_repository,
    comments_repository,
    modules_repository,
    progress_repository,
    users_repository,
)
from transported.db.users_repository import DuplicateEmailError


@pytest.fixture
def user():
    user, _ = users_repository.insert_user("Reader@Example.com", "hash", "Reader")
    return user


@pytest.fixture
def module():
    return modules_repository.insert_module(
        title="Viscous Flow",
        content="Newtonian fluids.",
        category="Momentum Transfer",
    )


class TestSchema:
    """Tests for schema creation."""

    def test_init_db_is_idempotent(self, isolated_db):
        """Running init_db twice keeps existing rows."""
        users_repository.insert_user("a@example.com", "hash", "A")
        init_db(isolated_db)
        assert users_repository.get_user_by_email("a@example.com") is not None

    def test_tables_exist(self):
        with get_db() as conn:
            names = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        assert {
            "users",
            "profiles",
            "modules",
            "quizzes",
            "quiz_attempts",
            "progress",
            "comments",
            "revoked_tokens",
        } <= names


class TestUsersRepository:
    """Tests for users and profiles."""

    def test_insert_user_creates_student_profile(self):
        """A profile with role student is created in the same transaction."""
        user, profile = users_repository.insert_user("new@example.com", "hash", "  Newbie ")
        assert profile.user_id == user.id
        assert profile.role == "student"
        assert profile.name == "Newbie"
        assert profile.email == "new@example.com"
        assert users_repository.get_profile(user.id) == profile

    def test_blank_name_defaults_to_user(self):
        _, profile = users_repository.insert_user("blank@example.com", "hash", "   ")
        assert profile.name == "User"

    def test_email_is_normalized(self, user):
        assert user.email == "reader@example.com"
        assert users_repository.get_user_by_email("READER@example.com ") == user

    def test_duplicate_email_rejected(self, user):
        with pytest.raises(DuplicateEmailError):
            users_repository.insert_user("reader@EXAMPLE.com", "hash", "Again")

    def test_duplicate_leaves_no_orphan_profile(self, user):
        with pytest.raises(DuplicateEmailError):
            users_repository.insert_user("reader@example.com", "hash", "Again")
        assert len(users_repository.list_profiles()) == 1

    def test_confirm_user_email_sets_timestamp_once(self):
        user, _ = users_repository.insert_user("c@example.com", "hash", "C")
        assert user.is_confirmed is False

        first = users_repository.confirm_user_email(user.id)
        second = users_repository.confirm_user_email(user.id)
        assert first.is_confirmed
        assert second.email_confirmed_at == first.email_confirmed_at

    def test_confirm_unknown_user_returns_none(self):
        assert users_repository.confirm_user_email("missing") is None

    def test_update_profile_role_rejects_unknown_role(self, user):
        with pytest.raises(ValueError):
            users_repository.update_profile_role(user.id, "teacher")

    def test_list_profiles_filters_by_role(self, user):
        admin, _ = users_repository.insert_user("boss@example.com", "hash", "Boss")
        users_repository.update_profile_role(admin.id, "admin")

        students = users_repository.list_profiles(role="student")
        assert [p.user_id for p in students] == [user.id]

    def test_revoked_tokens(self):
        users_repository.revoke_token("jti-1", "2999-01-01T00:00:00+00:00")
        assert users_repository.is_token_revoked("jti-1")
        assert not users_repository.is_token_revoked("jti-2")


class TestModulesRepository:
    """Tests for modules and quiz questions."""

    def test_list_modules_in_creation_order(self, module):
        second = modules_repository.insert_module("Diffusion", "Fick's law.", "Mass Transfer")
        assert [m.id for m in modules_repository.list_modules()] == [module.id, second.id]

    def test_list_modules_by_category(self, module):
        modules_repository.insert_module("Diffusion", "Fick's law.", "Mass Transfer")
        rows = modules_repository.list_modules(category="Mass Transfer")
        assert [m.title for m in rows] == ["Diffusion"]

    def test_update_missing_module_returns_none(self):
        assert modules_repository.update_module("missing", "T", "C", "Heat Transfer") is None

    def test_resources(self):
        module = modules_repository.insert_module(
            "Radiation",
            "Stefan-Boltzmann.",
            "Heat Transfer",
            image_url="https://example.com/a.png",
            video_link="https://example.com/v",
        )
        assert module.resources == ["image", "video"]

    def test_replace_questions(self, module):
        modules_repository.replace_questions(
            module.id,
            [
                {"question": "Q1", "type": "mcq", "options": ["a", "b"], "correct_answer": "a"},
                {"question": "Q2", "type": "short", "correct_answer": "x"},
            ],
        )
        replaced = modules_repository.replace_questions(
            module.id,
            [{"question": "Q3", "type": "numeric", "correct_answer": "1.5"}],
        )

        stored = modules_repository.list_questions(module.id)
        assert [q.question for q in stored] == ["Q3"]
        assert stored[0].id == replaced[0].id
        assert stored[0].options == []
        assert modules_repository.count_questions(module.id) == 1

    def test_questions_keep_order_and_options(self, module):
        modules_repository.replace_questions(
            module.id,
            [
                {"question": "First", "type": "mcq", "options": ["x", "y"], "correct_answer": "y"},
                {"question": "Second", "type": "short", "correct_answer": "z"},
            ],
        )
        stored = modules_repository.list_questions(module.id)
        assert [q.position for q in stored] == [0, 1]
        assert stored[0].options == ["x", "y"]

    def test_failed_replace_keeps_old_questions(self, module):
        """An invalid row rolls back the whole replacement."""
        modules_repository.replace_questions(
            module.id, [{"question": "Keep", "type": "short", "correct_answer": "k"}]
        )
        with pytest.raises(sqlite3.IntegrityError):
            modules_repository.replace_questions(
                module.id, [{"question": "Bad", "type": "essay", "correct_answer": "k"}]
            )
        assert [q.question for q in modules_repository.list_questions(module.id)] == ["Keep"]

    def test_delete_module_cascades(self, module, user):
        modules_repository.replace_questions(
            module.id, [{"question": "Q", "type": "short", "correct_answer": "a"}]
        )
        progress_repository.upsert_progress(user.id, module.id)
        attempts_repository.insert_attempt(user.id, module.id, 100, [])
        comments_repository.insert_comment(user.id, module.id, "Nice")

        assert modules_repository.delete_module(module.id) is True
        assert modules_repository.list_questions(module.id) == []
        assert progress_repository.list_progress(user.id) == []
        assert attempts_repository.list_attempts(user_id=user.id) == []
        assert comments_repository.list_all_comments() == []
        assert modules_repository.delete_module(module.id) is False


class TestProgressRepository:
    """Tests for progress upserts."""

    def test_upsert_is_unique_per_user_and_module(self, user, module):
        first = progress_repository.upsert_progress(user.id, module.id, completed=True)
        second = progress_repository.upsert_progress(user.id, module.id, completed=False)

        assert first.id == second.id
        assert second.completed is False
        assert len(progress_repository.list_progress(user.id)) == 1

    def test_unknown_module_rejected(self, user):
        with pytest.raises(sqlite3.IntegrityError):
            progress_repository.upsert_progress(user.id, "missing")


class TestAttemptsRepository:
    """Tests for quiz attempts."""

    def test_list_attempts_newest_first(self, user, module):
        a1 = attempts_repository.insert_attempt(user.id, module.id, 50, [])
        a2 = attempts_repository.insert_attempt(
            user.id, module.id, 100, [{"question_id": "q", "user_answer": "a", "is_correct": True}]
        )

        attempts = attempts_repository.list_attempts(user_id=user.id)
        assert [a.id for a in attempts] == [a2.id, a1.id]
        assert attempts[0].answers[0]["is_correct"] is True

    def test_limit(self, user, module):
        for score in (10, 20, 30):
            attempts_repository.insert_attempt(user.id, module.id, score, [])
        attempts = attempts_repository.list_attempts(user_id=user.id, limit=2)
        assert [a.score for a in attempts] == [30, 20]

    def test_score_out_of_range_rejected(self, user, module):
        with pytest.raises(sqlite3.IntegrityError):
            attempts_repository.insert_attempt(user.id, module.id, 120, [])


class TestCommentsRepository:
    """Tests for comments."""

    def test_module_comments_oldest_first_with_author(self, user, module):
        c1 = comments_repository.insert_comment(user.id, module.id, "First")
        c2 = comments_repository.insert_comment(user.id, module.id, "Second")

        comments = comments_repository.list_module_comments(module.id)
        assert [c.id for c in comments] == [c1.id, c2.id]
        assert comments[0].user_name == "Reader"
        assert comments[0].module_title == "Viscous Flow"

    def test_all_comments_newest_first(self, user, module):
        c1 = comments_repository.insert_comment(user.id, module.id, "First")
        c2 = comments_repository.insert_comment(user.id, module.id, "Second")
        assert [c.id for c in comments_repository.list_all_comments()] == [c2.id, c1.id]
