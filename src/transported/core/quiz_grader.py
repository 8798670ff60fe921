"""Quiz grading module.

Responsibilities:
- Grade a submitted answer set against a module's question set
- Compute the percentage score (rounded half up to an integer)
- Classify scores into bands used across dashboards and analytics

Comparison rules per question type:
- mcq: exact match against the correct option text
- numeric: numeric equality when both sides parse, trimmed text otherwise
- short: trimmed, case-insensitive text equality
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from transported.config import load_app_config
from transported.db.modules_repository import QuestionRecord

logger = structlog.get_logger(__name__)

ScoreBand = Literal["excellent", "good", "needs_improvement"]

NUMERIC_TOLERANCE = 1e-9


class QuizNotAvailableError(Exception):
    """The module has no quiz questions."""

    pass


@dataclass
class QuestionResult:
    """Outcome for a single question."""

    question_id: str
    user_answer: str
    is_correct: bool
    correct_answer: str
    explanation: str | None = None

    def to_answer_dict(self) -> dict[str, Any]:
        """Stored form inside quiz_attempts.answers."""
        return {
            "question_id": self.question_id,
            "user_answer": self.user_answer,
            "is_correct": self.is_correct,
        }


@dataclass
class QuizGrade:
    """Result of grading a whole answer set."""

    score: int
    correct_count: int
    total_questions: int
    results: list[QuestionResult] = field(default_factory=list)

    @property
    def band(self) -> ScoreBand:
        return score_band(self.score)

    @property
    def feedback(self) -> str:
        return feedback_message(self.score)


def _parse_number(value: str) -> float | None:
    try:
        number = float(value.strip().replace(",", "."))
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def is_answer_correct(question: QuestionRecord, answer: str | None) -> bool:
    """Check one answer against a question's correct answer."""
    if answer is None:
        return False

    expected = question.correct_answer

    if question.type == "mcq":
        return answer == expected

    if question.type == "numeric":
        given_number = _parse_number(answer)
        expected_number = _parse_number(expected)
        if given_number is not None and expected_number is not None:
            return math.isclose(given_number, expected_number, abs_tol=NUMERIC_TOLERANCE)
        return answer.strip() == expected.strip()

    return answer.strip().lower() == expected.strip().lower()


def percentage_score(correct: int, total: int) -> int:
    """Percentage of correct answers, rounded half up using integer arithmetic."""
    return (correct * 200 + total) // (2 * total)


def grade_quiz(questions: list[QuestionRecord], answers: dict[str, Any]) -> QuizGrade:
    """Grade answers keyed by question ID.

    Args:
        questions: The module's question set
        answers: Mapping of question_id -> answer; unknown IDs are ignored

    Returns:
        QuizGrade with per-question results in question order

    Raises:
        QuizNotAvailableError: If there are no questions
    """
    if not questions:
        raise QuizNotAvailableError("This module doesn't have any quiz questions yet.")

    results = []
    for question in questions:
        raw = answers.get(question.id)
        given = "" if raw is None else str(raw)
        results.append(
            QuestionResult(
                question_id=question.id,
                user_answer=given,
                is_correct=is_answer_correct(question, None if raw is None else given),
                correct_answer=question.correct_answer,
                explanation=question.explanation,
            )
        )

    correct_count = sum(1 for r in results if r.is_correct)
    score = percentage_score(correct_count, len(questions))

    unknown = set(answers) - {q.id for q in questions}
    if unknown:
        logger.debug("quiz.unknown_answers_ignored", count=len(unknown))

    return QuizGrade(
        score=score,
        correct_count=correct_count,
        total_questions=len(questions),
        results=results,
    )


def score_band(score: float) -> ScoreBand:
    """Classify a percentage score."""
    scoring = load_app_config().scoring
    if score >= scoring.excellent:
        return "excellent"
    if score >= scoring.good:
        return "good"
    return "needs_improvement"


def feedback_message(score: float) -> str:
    return {
        "excellent": "Excellent!",
        "good": "Good job!",
        "needs_improvement": "Keep practicing!",
    }[score_band(score)]
