"""Core business logic.

Modules:
- auth: Accounts, passwords, bearer tokens, sign in/out
- catalog: Learning module and quiz question management
- quiz_grader: Server-side quiz grading and score bands
- analytics: Student/module rollups for dashboards and admin analytics
- events: Change notifications for live admin views
"""

__all__ = [
    "auth",
    "catalog",
    "quiz_grader",
    "analytics",
    "events",
]
