"""Shared fixtures.

Every test runs against its own temporary database and a config that
ignores ./data/config, so the suite never touches real data.
"""

import pytest
from fastapi.testclient import TestClient

from transported.config import clear_config_cache
from transported.core.auth import create_access_token, create_user, set_role
from transported.core.catalog import ModuleDraft, QuestionDraft, save_module
from transported.core.events import reset_change_broker
from transported.db import init_db

TEST_SECRET = "test-secret-key-not-for-production"
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point config and database at a temporary directory."""
    db_path = tmp_path / "db" / "test.db"
    monkeypatch.setenv("TRANSPORTED_CONFIG", str(tmp_path / "missing_config.yaml"))
    monkeypatch.setenv("TRANSPORTED_SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("TRANSPORTED_DB_PATH", str(db_path))
    clear_config_cache()
    reset_change_broker()
    init_db(db_path)
    yield db_path
    clear_config_cache()
    reset_change_broker()


def make_account(email: str, name: str = "Test User", role: str = "student") -> dict:
    """Create a confirmed account and a bearer token for it."""
    user, profile = create_user(email, PASSWORD, name)
    if role != "student":
        profile = set_role(email, role)
    token, _ = create_access_token(user, profile)
    return {
        "user": user,
        "profile": profile,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture
def client():
    """Test client for the Web API."""
    from transported.web.api import create_app

    return TestClient(create_app())


@pytest.fixture
def student():
    return make_account("student@example.com", name="Ana Student")


@pytest.fixture
def admin():
    return make_account("admin@example.com", name="Admin", role="admin")


@pytest.fixture
def sample_questions() -> list[QuestionDraft]:
    return [
        QuestionDraft(
            question="Fourier's law relates heat flux to?",
            type="mcq",
            options=["Temperature gradient", "Velocity gradient", "Concentration gradient"],
            correct_answer="Temperature gradient",
            explanation="q = -k dT/dx",
        ),
        QuestionDraft(
            question="Thermal conductivity of copper in W/m.K (approx.)",
            type="numeric",
            correct_answer="400",
        ),
        QuestionDraft(
            question="Name the dimensionless number for convective heat transfer",
            type="short",
            correct_answer="Nusselt",
        ),
    ]


@pytest.fixture
def sample_module(sample_questions):
    """A Heat Transfer module with three quiz questions."""
    result = save_module(
        ModuleDraft(
            title="Conduction Basics",
            content="Heat conduction through solids.",
            category="Heat Transfer",
            video_link="https://example.com/video",
        ),
        sample_questions,
    )
    return result


@pytest.fixture
def account_factory():
    """Create extra accounts inside a test."""
    return make_account
