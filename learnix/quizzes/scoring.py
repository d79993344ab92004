"""Pure quiz scoring.  No I/O; callers pass questions and the submitted answers."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from learnix.models.enums import QuestionType


class ScorableQuestion(Protocol):
    id: object
    type: QuestionType
    correct_answer: str
    points: int | None


def _choices(value: str) -> list[str]:
    return sorted(part.strip() for part in value.split(",") if part.strip())


def is_correct(question_type: QuestionType | str, answer: str, key: str) -> bool:
    qtype = QuestionType(question_type)
    if qtype == QuestionType.MULTI_SELECT:
        return _choices(answer) == _choices(key)
    if qtype == QuestionType.SHORT_ANSWER:
        return answer.strip().lower() == key.strip().lower()
    return answer.strip() == key.strip()


def score_submission(
    questions: Iterable[ScorableQuestion],
    answers: Mapping[str, str],
) -> tuple[float, float, float]:
    """Return ``(score, total_points, percentage)``.

    ``answers`` is keyed by question id as a string.  A question worth 0 points
    counts as 1, and an unanswered question is scored against ``""``.
    """
    score = 0
    total = 0
    for question in questions:
        points = question.points or 1
        total += points
        answer = answers.get(str(question.id)) or ""
        if is_correct(question.type, answer, question.correct_answer):
            score += points
    percentage = score / total * 100 if total > 0 else 0.0
    return float(score), float(total), float(percentage)
