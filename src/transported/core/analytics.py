"""Analytics rollups for dashboards and the admin report.

All build_* functions are pure: they take records already fetched from the
repositories and return dataclasses. load_* functions do the fetching.

Definitions:
- progress_percentage: completed modules / total modules × 100 (0 if none)
- average_score: mean of attempt scores (0 if none)
- last_activity: latest progress update, else the profile creation time
- active student: last_activity strictly within the active window
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from transported.config import load_app_config
from transported.core.quiz_grader import ScoreBand, score_band
from transported.db import (
    attempts_repository,
    modules_repository,
    progress_repository,
    users_repository,
)
from transported.db.attempts_repository import AttemptRecord
from transported.db.modules_repository import ModuleRecord
from transported.db.progress_repository import ProgressRecord
from transported.db.users_repository import ProfileRecord

logger = structlog.get_logger(__name__)

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_MODULE = "Unknown Module"

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class StudentProgressRow:
    student_id: str
    student_name: str
    student_email: str | None
    total_modules: int
    completed_modules: int
    progress_percentage: float
    average_score: float
    total_attempts: int
    last_activity: str


@dataclass
class ModuleStatsRow:
    module_id: str
    module_title: str
    total_completions: int
    total_attempts: int
    average_score: float
    band: ScoreBand


@dataclass
class Overview:
    total_students: int
    active_students: int
    average_progress: float
    total_attempts: int


@dataclass
class AttemptFeedItem:
    attempt_id: str
    user_id: str
    student_name: str
    student_email: str | None
    module_id: str
    module_title: str
    score: float
    band: ScoreBand
    attempt_date: str


@dataclass
class AdminAnalytics:
    """Everything the admin analytics view shows."""

    overview: Overview
    students: list[StudentProgressRow]
    modules: list[ModuleStatsRow]
    attempts: list[AttemptFeedItem]
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RecentAttempt:
    attempt_id: str
    module_id: str
    module_title: str
    score: float
    band: ScoreBand
    attempt_date: str


@dataclass
class StudentDashboard:
    completed_modules: int
    total_modules: int
    progress_percentage: float
    average_score: float
    recent_attempts: list[RecentAttempt] = field(default_factory=list)
    next_module_id: str | None = None
    next_module_title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ChartPoint:
    label: str
    score: float
    attempt_date: str


@dataclass
class QuizResultsSummary:
    total_attempts: int
    average_score: float
    best_score: float
    chart: list[ChartPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# HELPERS
# =============================================================================


def _parse_ts(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def _group_by_user(rows: list[Any]) -> dict[str, list[Any]]:
    grouped: dict[str, list[Any]] = defaultdict(list)
    for row in rows:
        grouped[row.user_id].append(row)
    return grouped


# =============================================================================
# BUILDERS
# =============================================================================


def build_student_progress(
    students: list[ProfileRecord],
    modules: list[ModuleRecord],
    progress: list[ProgressRecord],
    attempts: list[AttemptRecord],
) -> list[StudentProgressRow]:
    """One rollup row per student, in the order students are given."""
    total_modules = len(modules)
    progress_by_user = _group_by_user(progress)
    attempts_by_user = _group_by_user(attempts)

    rows = []
    for student in students:
        user_progress = progress_by_user.get(student.user_id, [])
        user_attempts = attempts_by_user.get(student.user_id, [])
        completed = sum(1 for p in user_progress if p.completed)

        if user_progress:
            last_activity = max(_parse_ts(p.updated_at) for p in user_progress)
        else:
            last_activity = _parse_ts(student.created_at)

        rows.append(
            StudentProgressRow(
                student_id=student.user_id,
                student_name=student.name,
                student_email=student.email,
                total_modules=total_modules,
                completed_modules=completed,
                progress_percentage=_percentage(completed, total_modules),
                average_score=_mean([a.score for a in user_attempts]),
                total_attempts=len(user_attempts),
                last_activity=last_activity.isoformat(),
            )
        )

    return rows


def build_module_stats(
    modules: list[ModuleRecord],
    progress: list[ProgressRecord],
    attempts: list[AttemptRecord],
) -> list[ModuleStatsRow]:
    """Completions, attempts and average score per module."""
    completions: dict[str, int] = defaultdict(int)
    for p in progress:
        if p.completed:
            completions[p.module_id] += 1

    scores: dict[str, list[float]] = defaultdict(list)
    for a in attempts:
        scores[a.module_id].append(a.score)

    rows = []
    for module in modules:
        average = _mean(scores.get(module.id, []))
        rows.append(
            ModuleStatsRow(
                module_id=module.id,
                module_title=module.title,
                total_completions=completions.get(module.id, 0),
                total_attempts=len(scores.get(module.id, [])),
                average_score=average,
                band=score_band(average),
            )
        )
    return rows


def build_overview(
    student_rows: list[StudentProgressRow],
    now: datetime | None = None,
    active_window_days: int | None = None,
) -> Overview:
    """Headline numbers for the admin view."""
    now = now or datetime.now(timezone.utc)
    if active_window_days is None:
        active_window_days = load_app_config().analytics.active_window_days
    cutoff = now - timedelta(days=active_window_days)

    active = sum(1 for row in student_rows if _parse_ts(row.last_activity) > cutoff)

    return Overview(
        total_students=len(student_rows),
        active_students=active,
        average_progress=_mean([row.progress_percentage for row in student_rows]),
        total_attempts=sum(row.total_attempts for row in student_rows),
    )


def build_attempt_feed(
    attempts: list[AttemptRecord],
    profiles: list[ProfileRecord],
    modules: list[ModuleRecord],
) -> list[AttemptFeedItem]:
    """All attempts newest first, labelled with student and module."""
    profiles_by_id = {p.user_id: p for p in profiles}
    titles = {m.id: m.title for m in modules}

    ordered = sorted(attempts, key=lambda a: _parse_ts(a.attempt_date), reverse=True)

    feed = []
    for attempt in ordered:
        student = profiles_by_id.get(attempt.user_id)
        feed.append(
            AttemptFeedItem(
                attempt_id=attempt.id,
                user_id=attempt.user_id,
                student_name=student.name if student else UNKNOWN_STUDENT,
                student_email=student.email if student else None,
                module_id=attempt.module_id,
                module_title=titles.get(attempt.module_id, UNKNOWN_MODULE),
                score=attempt.score,
                band=score_band(attempt.score),
                attempt_date=attempt.attempt_date,
            )
        )
    return feed


def build_student_dashboard(
    modules: list[ModuleRecord],
    progress: list[ProgressRecord],
    attempts: list[AttemptRecord],
    attempt_window: int | None = None,
    recent_count: int | None = None,
) -> StudentDashboard:
    """A student's own dashboard.

    Args:
        modules: All modules in creation order
        progress: The student's progress rows
        attempts: The student's attempts, newest first
        attempt_window: How many recent attempts feed the average
        recent_count: How many attempts to list
    """
    settings = load_app_config().analytics
    if attempt_window is None:
        attempt_window = settings.dashboard_attempt_window
    if recent_count is None:
        recent_count = settings.dashboard_recent_attempts

    completed_ids = {p.module_id for p in progress if p.completed}
    completed = len(completed_ids)
    titles = {m.id: m.title for m in modules}

    windowed = attempts[:attempt_window]
    recent = [
        RecentAttempt(
            attempt_id=a.id,
            module_id=a.module_id,
            module_title=titles.get(a.module_id, UNKNOWN_MODULE),
            score=a.score,
            band=score_band(a.score),
            attempt_date=a.attempt_date,
        )
        for a in windowed[:recent_count]
    ]

    next_module = next((m for m in modules if m.id not in completed_ids), None)

    return StudentDashboard(
        completed_modules=completed,
        total_modules=len(modules),
        progress_percentage=_percentage(completed, len(modules)),
        average_score=_mean([a.score for a in windowed]),
        recent_attempts=recent,
        next_module_id=next_module.id if next_module else None,
        next_module_title=next_module.title if next_module else None,
    )


def build_quiz_results(
    attempts: list[AttemptRecord],
    chart_size: int | None = None,
) -> QuizResultsSummary:
    """Summary of a student's attempts (given newest first).

    The chart holds the latest attempts in chronological order, labelled
    with their sequence number across all attempts.
    """
    if chart_size is None:
        chart_size = load_app_config().analytics.results_chart_size

    window = list(reversed(attempts[:chart_size]))
    first_number = len(attempts) - len(window) + 1
    chart = [
        ChartPoint(label=f"#{first_number + i}", score=a.score, attempt_date=a.attempt_date)
        for i, a in enumerate(window)
    ]

    scores = [a.score for a in attempts]
    return QuizResultsSummary(
        total_attempts=len(attempts),
        average_score=_mean(scores),
        best_score=max(scores) if scores else 0.0,
        chart=chart,
    )


# =============================================================================
# LOADERS
# =============================================================================


def load_admin_analytics(now: datetime | None = None) -> AdminAnalytics:
    """Fetch all rows and build the admin report."""
    now = now or datetime.now(timezone.utc)

    profiles = users_repository.list_profiles()
    students = [p for p in profiles if p.role == "student"]
    modules = modules_repository.list_modules()
    progress = progress_repository.list_progress()
    attempts = attempts_repository.list_attempts()

    student_ids = {s.user_id for s in students}
    student_progress = [p for p in progress if p.user_id in student_ids]
    student_attempts = [a for a in attempts if a.user_id in student_ids]

    student_rows = build_student_progress(students, modules, student_progress, student_attempts)
    report = AdminAnalytics(
        overview=build_overview(student_rows, now=now),
        students=student_rows,
        modules=build_module_stats(modules, progress, attempts),
        attempts=build_attempt_feed(attempts, profiles, modules),
        generated_at=now.isoformat(),
    )

    logger.debug(
        "analytics.admin_report_built",
        students=len(student_rows),
        modules=len(modules),
        attempts=len(attempts),
    )
    return report


def load_student_dashboard(user_id: str) -> StudentDashboard:
    settings = load_app_config().analytics
    return build_student_dashboard(
        modules=modules_repository.list_modules(),
        progress=progress_repository.list_progress(user_id=user_id),
        attempts=attempts_repository.list_attempts(
            user_id=user_id, limit=settings.dashboard_attempt_window
        ),
    )


def load_quiz_results(user_id: str) -> QuizResultsSummary:
    return build_quiz_results(attempts_repository.list_attempts(user_id=user_id))
