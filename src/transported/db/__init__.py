"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for users/profiles, modules/quizzes, progress,
  quiz attempts and comments
"""

from transported.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
