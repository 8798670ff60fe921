"""Repository functions for users, profiles and revoked tokens.

Creating a user also creates its profile in the same transaction, with
role 'student' and the user's email copied onto the profile.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from transported.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)

ROLES = ("student", "admin")
DEFAULT_PROFILE_NAME = "User"


@dataclass
class UserRecord:
    """Auth user record from database."""

    id: str
    email: str
    password_hash: str
    email_confirmed_at: str | None
    created_at: str

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    def to_public_dict(self) -> dict[str, str | None]:
        """User fields safe to return to clients."""
        return {
            "id": self.id,
            "email": self.email,
            "email_confirmed_at": self.email_confirmed_at,
            "created_at": self.created_at,
        }


@dataclass
class ProfileRecord:
    """Profile record from database."""

    id: str
    user_id: str
    name: str
    email: str | None
    role: str
    created_at: str
    updated_at: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class DuplicateEmailError(Exception):
    """Raised when an auth user with the same email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A user with email '{email}' already exists")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def insert_user(
    email: str,
    password_hash: str,
    name: str | None,
    email_confirmed: bool = False,
) -> tuple[UserRecord, ProfileRecord]:
    """Insert an auth user and its student profile.

    Args:
        email: User email (normalized to lowercase)
        password_hash: Hashed password
        name: Display name; blank falls back to "User"
        email_confirmed: Mark the email as confirmed immediately

    Returns:
        Tuple of (UserRecord, ProfileRecord)

    Raises:
        DuplicateEmailError: If the email is already registered
    """
    email = normalize_email(email)
    now = utc_now()
    user_id = new_id()
    profile_id = new_id()
    display_name = (name or "").strip() or DEFAULT_PROFILE_NAME

    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, password_hash, email_confirmed_at, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, email, password_hash, now if email_confirmed else None, now),
            )
            conn.execute(
                """
                INSERT INTO profiles (id, user_id, name, email, role, created_at, updated_at)
                VALUES (?, ?, ?, ?, 'student', ?, ?)
                """,
                (profile_id, user_id, display_name, email, now, now),
            )
    except sqlite3.IntegrityError as e:
        raise DuplicateEmailError(email) from e

    logger.debug("users.inserted", user_id=user_id, confirmed=email_confirmed)

    user = UserRecord(
        id=user_id,
        email=email,
        password_hash=password_hash,
        email_confirmed_at=now if email_confirmed else None,
        created_at=now,
    )
    profile = ProfileRecord(
        id=profile_id,
        user_id=user_id,
        name=display_name,
        email=email,
        role="student",
        created_at=now,
        updated_at=now,
    )
    return user, profile


def get_user_by_email(email: str) -> UserRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
        ).fetchone()
    return _row_to_user(row) if row else None


def get_user_by_id(user_id: str) -> UserRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return _row_to_user(row) if row else None


def confirm_user_email(user_id: str) -> UserRecord | None:
    """Set email_confirmed_at if not already set.

    Returns:
        Updated UserRecord, or None if the user does not exist
    """
    with get_db() as conn:
        conn.execute(
            """
            UPDATE users SET email_confirmed_at = COALESCE(email_confirmed_at, ?)
            WHERE id = ?
            """,
            (utc_now(), user_id),
        )

    return get_user_by_id(user_id)


def get_profile(user_id: str) -> ProfileRecord | None:
    """Get profile by auth user ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE user_id = ?", (user_id,)
        ).fetchone()
    return _row_to_profile(row) if row else None


def update_profile_name(user_id: str, name: str) -> ProfileRecord | None:
    with get_db() as conn:
        conn.execute(
            "UPDATE profiles SET name = ?, updated_at = ? WHERE user_id = ?",
            (name, utc_now(), user_id),
        )
    return get_profile(user_id)


def update_profile_role(user_id: str, role: str) -> ProfileRecord | None:
    """Change a profile's role.

    Raises:
        ValueError: If role is not one of ROLES
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role '{role}'")

    with get_db() as conn:
        conn.execute(
            "UPDATE profiles SET role = ?, updated_at = ? WHERE user_id = ?",
            (role, utc_now(), user_id),
        )

    logger.info("profiles.role_updated", user_id=user_id, role=role)
    return get_profile(user_id)


def list_profiles(role: str | None = None) -> list[ProfileRecord]:
    """List profiles, newest first.

    Args:
        role: Optional role filter ('student' or 'admin')
    """
    query = "SELECT * FROM profiles"
    params: tuple[str, ...] = ()
    if role:
        query += " WHERE role = ?"
        params = (role,)
    query += " ORDER BY created_at DESC, rowid DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_profile(row) for row in rows]


def revoke_token(jti: str, expires_at: str) -> None:
    with get_db() as conn:
        conn.execute(
            "INSERT OR IGNORE INTO revoked_tokens (jti, expires_at) VALUES (?, ?)",
            (jti, expires_at),
        )
        # Expired entries can never match a valid token again
        conn.execute("DELETE FROM revoked_tokens WHERE expires_at < ?", (utc_now(),))


def is_token_revoked(jti: str) -> bool:
    with get_db() as conn:
        row = conn.execute(
            "SELECT 1 FROM revoked_tokens WHERE jti = ?", (jti,)
        ).fetchone()
    return row is not None


def _row_to_user(row: sqlite3.Row) -> UserRecord:
    return UserRecord(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        email_confirmed_at=row["email_confirmed_at"],
        created_at=row["created_at"],
    )


def _row_to_profile(row: sqlite3.Row) -> ProfileRecord:
    return ProfileRecord(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
