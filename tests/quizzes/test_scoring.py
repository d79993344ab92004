from types import SimpleNamespace
from uuid import uuid4

import pytest

from learnix.models import QuestionType
from learnix.quizzes.scoring import is_correct, score_submission


def _question(qtype: QuestionType, key: str, points: int | None = 1) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), type=qtype, correct_answer=key, points=points)


@pytest.mark.parametrize(
    ("qtype", "answer", "key", "expected"),
    [
        (QuestionType.MULTIPLE_CHOICE, "A", "A", True),
        (QuestionType.MULTIPLE_CHOICE, " B ", "B", True),
        (QuestionType.MULTIPLE_CHOICE, "a", "A", False),
        (QuestionType.TRUE_FALSE, "B", "A", False),
        (QuestionType.MULTI_SELECT, "C, A", "A,C", True),
        (QuestionType.MULTI_SELECT, "A", "A,C", False),
        (QuestionType.SHORT_ANSWER, "  Paris ", "paris", True),
        (QuestionType.SHORT_ANSWER, "Lyon", "Paris", False),
    ],
)
def test_is_correct(qtype: QuestionType, answer: str, key: str, expected: bool) -> None:
    assert is_correct(qtype, answer, key) is expected


def test_score_weights_points_and_treats_zero_as_one() -> None:
    heavy = _question(QuestionType.MULTIPLE_CHOICE, "A", points=3)
    free = _question(QuestionType.TRUE_FALSE, "B", points=0)
    missed = _question(QuestionType.SHORT_ANSWER, "yield")

    score, total, percentage = score_submission(
        [heavy, free, missed], {str(heavy.id): "A", str(free.id): "B"}
    )
    assert (score, total) == (4.0, 5.0)
    assert percentage == pytest.approx(80.0)


def test_score_without_questions() -> None:
    assert score_submission([], {}) == (0.0, 0.0, 0.0)
