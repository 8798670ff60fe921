"""Tests for quiz grading."""

import pytest

from transported.core.quiz_grader import (
    QuizNotAvailableError,
    feedback_message,
    grade_quiz,
    is_answer_correct,
    percentage_score,
    score_band,
)
from transported.db.modules_repository import QuestionRecord


def _question(qid: str, qtype: str, correct: str, options=None) -> QuestionRecord:
    return QuestionRecord(
        id=qid,
        module_id="m1",
        position=0,
        question=f"Question {qid}",
        type=qtype,
        options=options or [],
        correct_answer=correct,
        explanation=f"Because {correct}",
    )


@pytest.fixture
def questions():
    return [
        _question("q1", "mcq", "Laminar", ["Laminar", "Turbulent"]),
        _question("q2", "numeric", "2300"),
        _question("q3", "short", "Reynolds"),
    ]


class TestIsAnswerCorrect:
    """Tests for per-type answer comparison."""

    def test_mcq_exact_match(self):
        q = _question("q", "mcq", "Laminar", ["Laminar", "Turbulent"])
        assert is_answer_correct(q, "Laminar")
        assert not is_answer_correct(q, "laminar")

    @pytest.mark.parametrize("answer", ["2300", " 2300 ", "2300.0", "2.3e3"])
    def test_numeric_equal_values(self, answer):
        assert is_answer_correct(_question("q", "numeric", "2300"), answer)

    def test_numeric_decimal_comma(self):
        assert is_answer_correct(_question("q", "numeric", "0.5"), "0,5")

    def test_numeric_wrong_value(self):
        assert not is_answer_correct(_question("q", "numeric", "2300"), "2301")

    def test_numeric_non_number_falls_back_to_text(self):
        q = _question("q", "numeric", "n/a")
        assert is_answer_correct(q, " n/a ")

    def test_short_case_and_whitespace_insensitive(self):
        assert is_answer_correct(_question("q", "short", "Reynolds"), "  reynolds ")

    def test_missing_answer_is_wrong(self):
        assert not is_answer_correct(_question("q", "short", "x"), None)


class TestGradeQuiz:
    """Tests for grading a whole answer set."""

    def test_all_correct(self, questions):
        grade = grade_quiz(questions, {"q1": "Laminar", "q2": "2300", "q3": "reynolds"})
        assert grade.score == 100
        assert grade.correct_count == 3
        assert grade.band == "excellent"
        assert grade.feedback == "Excellent!"

    def test_partial_score_rounds_half_up(self, questions):
        grade = grade_quiz(questions, {"q1": "Laminar", "q2": "2300", "q3": "Prandtl"})
        assert grade.score == 67
        assert grade.band == "good"

    def test_missing_answers_recorded_as_empty(self, questions):
        grade = grade_quiz(questions, {"q1": "Laminar"})
        assert grade.score == 33
        assert [r.user_answer for r in grade.results] == ["Laminar", "", ""]
        assert [r.is_correct for r in grade.results] == [True, False, False]
        assert grade.feedback == "Keep practicing!"

    def test_results_carry_correct_answer_and_explanation(self, questions):
        grade = grade_quiz(questions, {})
        assert grade.results[1].correct_answer == "2300"
        assert grade.results[1].explanation == "Because 2300"

    def test_stored_answer_shape(self, questions):
        grade = grade_quiz(questions, {"q1": "Turbulent"})
        assert grade.results[0].to_answer_dict() == {
            "question_id": "q1",
            "user_answer": "Turbulent",
            "is_correct": False,
        }

    def test_unknown_question_ids_ignored(self, questions):
        grade = grade_quiz(questions, {"other": "x", "q1": "Laminar"})
        assert grade.total_questions == 3
        assert grade.correct_count == 1

    def test_no_questions(self):
        with pytest.raises(QuizNotAvailableError):
            grade_quiz([], {})


class TestScoreBands:
    """Tests for score bands and feedback."""

    @pytest.mark.parametrize(
        "score,band,message",
        [
            (100, "excellent", "Excellent!"),
            (80, "excellent", "Excellent!"),
            (79.9, "good", "Good job!"),
            (60, "good", "Good job!"),
            (59, "needs_improvement", "Keep practicing!"),
            (0, "needs_improvement", "Keep practicing!"),
        ],
    )
    def test_bands(self, score, band, message):
        assert score_band(score) == band
        assert feedback_message(score) == message

    @pytest.mark.parametrize(
        "correct,total,expected",
        [
            (5, 8, 63),
            (1, 3, 33),
            (2, 3, 67),
            (23, 40, 58),
            (46, 80, 58),
            (29, 200, 15),
            (0, 4, 0),
            (4, 4, 100),
        ],
    )
    def test_percentage_score_rounds_half_up(self, correct, total, expected):
        assert percentage_score(correct, total) == expected

    def test_exact_half_is_rounded_up_when_grading(self):
        questions = [_question(f"q{i}", "short", "yes") for i in range(40)]
        answers = {f"q{i}": "yes" for i in range(23)}

        grade = grade_quiz(questions, answers)

        assert grade.correct_count == 23
        assert grade.score == 58
