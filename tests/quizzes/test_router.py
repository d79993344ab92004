import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.models import Lesson, Notification, NotificationType, QuestionType
from learnix.quizzes import ai_generator

API = "/api/v1/quizzes"

QUESTIONS = [
    {
        "question_text": "Which literal creates a list?",
        "options": ["A: []", "B: {}"],
        "correct_answer": "A",
        "type": "multiple_choice",
    },
    {
        "question_text": "Pick the mutable types",
        "options": ["A: list", "B: tuple", "C: dict"],
        "correct_answer": "A,C",
        "type": "multi_select",
    },
    {
        "question_text": "Keyword that pauses a generator",
        "correct_answer": "yield",
        "type": "short_answer",
    },
    {
        "question_text": "Tuples are mutable",
        "options": ["A: True", "B: False"],
        "correct_answer": "B",
        "type": "true_false",
    },
]


async def _create_quiz(client: AsyncClient, author, headers, **extra) -> dict:
    resp = await client.post(
        API,
        json={"title": "Python basics", "questions": QUESTIONS, **extra},
        headers=headers(author),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_quiz_keeps_question_order(client: AsyncClient, instructor, headers) -> None:
    quiz = await _create_quiz(client, instructor, headers)
    assert quiz["status"] == "draft"
    assert quiz["ai_generated"] is False
    assert quiz["created_by"] == str(instructor.id)
    assert [q["position"] for q in quiz["questions"]] == [0, 1, 2, 3]
    assert all(q["points"] == 1 for q in quiz["questions"])

    mine = await client.get(f"{API}/my-quizzes", headers=headers(instructor))
    assert [q["id"] for q in mine.json()] == [quiz["id"]]


@pytest.mark.asyncio
async def test_students_cannot_author(client: AsyncClient, student, headers) -> None:
    resp = await client.post(API, json={"title": "Nope"}, headers=headers(student))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_quiz_with_unknown_lesson(client: AsyncClient, instructor, headers) -> None:
    resp = await client.post(
        API,
        json={"title": "Orphan", "lesson_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers(instructor),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_renaming_quiz_renames_lesson(
    client: AsyncClient, db: AsyncSession, course, instructor, headers
) -> None:
    lesson_id = course.sections[0].lessons[1].id
    quiz = await _create_quiz(
        client, instructor, headers, course_id=str(course.id), lesson_id=str(lesson_id)
    )

    by_lesson = await client.get(f"{API}/by-lesson/{lesson_id}", headers=headers(instructor))
    assert by_lesson.json()["id"] == quiz["id"]

    resp = await client.patch(
        f"{API}/{quiz['id']}", json={"title": "Checkpoint quiz"}, headers=headers(instructor)
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Checkpoint quiz"

    db.expire_all()
    refreshed = await db.get(Lesson, lesson_id)
    assert refreshed.title == "Checkpoint quiz"


@pytest.mark.asyncio
async def test_by_lesson_without_quiz(client: AsyncClient, course, student, headers) -> None:
    lesson = course.sections[0].lessons[0]
    resp = await client.get(f"{API}/by-lesson/{lesson.id}", headers=headers(student))
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_approve_quiz(client: AsyncClient, instructor, headers) -> None:
    quiz = await _create_quiz(client, instructor, headers)
    resp = await client.patch(f"{API}/{quiz['id']}/approve", headers=headers(instructor))
    assert resp.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_question_crud_and_reorder(client: AsyncClient, instructor, headers) -> None:
    quiz = await _create_quiz(client, instructor, headers)
    quiz_id = quiz["id"]

    added = await client.post(
        f"{API}/{quiz_id}/questions",
        json={"question_text": "2 + 2", "correct_answer": "4", "type": "short_answer", "points": 2},
        headers=headers(instructor),
    )
    assert added.status_code == 201
    assert added.json()["position"] == 4
    assert added.json()["points"] == 2

    question_id = added.json()["id"]
    edited = await client.patch(
        f"{API}/questions/{question_id}",
        json={"question_text": "2 + 3", "correct_answer": "5", "explanation": None},
        headers=headers(instructor),
    )
    assert edited.json()["question_text"] == "2 + 3"

    ids = [q["id"] for q in quiz["questions"]] + [question_id]
    reordered = await client.patch(
        f"{API}/{quiz_id}/reorder-questions",
        json={"question_ids": list(reversed(ids))},
        headers=headers(instructor),
    )
    assert reordered.status_code == 200

    current = await client.get(f"{API}/{quiz_id}", headers=headers(instructor))
    assert [q["id"] for q in current.json()["questions"]] == list(reversed(ids))

    deleted = await client.delete(f"{API}/questions/{question_id}", headers=headers(instructor))
    assert deleted.status_code == 204
    current = await client.get(f"{API}/{quiz_id}", headers=headers(instructor))
    assert len(current.json()["questions"]) == 4


@pytest.mark.asyncio
async def test_reorder_rejects_foreign_questions(client: AsyncClient, instructor, headers) -> None:
    first = await _create_quiz(client, instructor, headers)
    second = await _create_quiz(client, instructor, headers)
    resp = await client.patch(
        f"{API}/{first['id']}/reorder-questions",
        json={"question_ids": [second["questions"][0]["id"]]},
        headers=headers(instructor),
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Some questions do not belong to this quiz"


@pytest.mark.asyncio
async def test_progress_then_submit(
    client: AsyncClient, db: AsyncSession, instructor, student, headers
) -> None:
    quiz = await _create_quiz(client, instructor, headers)
    q1, q2, q3, q4 = (q["id"] for q in quiz["questions"])

    assert (await client.get(f"{API}/{quiz['id']}/submission", headers=headers(student))).json() is None

    saved = await client.post(
        f"{API}/{quiz['id']}/save-progress", json={"answers": {q1: "A"}}, headers=headers(student)
    )
    assert saved.status_code == 200
    assert saved.json()["completed_at"] is None

    merged = await client.post(
        f"{API}/{quiz['id']}/save-progress", json={"answers": {q2: "C"}}, headers=headers(student)
    )
    assert merged.json()["id"] == saved.json()["id"]
    assert merged.json()["responses"] == {q1: "A", q2: "C"}

    submitted = await client.post(
        f"{API}/{quiz['id']}/submit",
        json={"answers": {q1: "A", q2: "C, A", q3: " Yield ", q4: "A"}},
        headers=headers(student),
    )
    body = submitted.json()
    assert body["id"] == saved.json()["id"]
    assert (body["score"], body["total_points"], body["percentage"]) == (3.0, 4.0, 75.0)
    assert body["completed_at"] is not None

    latest = await client.get(f"{API}/{quiz['id']}/submission", headers=headers(student))
    assert latest.json()["id"] == body["id"]

    rows = await db.execute(
        select(Notification).where(Notification.notification_type == NotificationType.QUIZ_SUBMITTED)
    )
    note = rows.scalar_one()
    assert note.user_id == student.id
    assert note.title == "Quiz Completed 👍"
    assert "(75%)" in note.message


@pytest.mark.asyncio
async def test_submit_unknown_quiz(client: AsyncClient, student, headers) -> None:
    resp = await client.post(
        f"{API}/00000000-0000-0000-0000-000000000000/submit",
        json={"answers": {}},
        headers=headers(student),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_generate_quiz_stores_ai_questions(
    client: AsyncClient, instructor, headers, monkeypatch
) -> None:
    async def fake_generate(text, count):
        assert count == 3
        return ai_generator.GeneratedQuiz(
            title="Generated",
            questions=[
                ai_generator.GeneratedQuestion(
                    question_text=f"Question {i}", correct_answer="A", type=QuestionType.MULTIPLE_CHOICE,
                    options=["A: yes", "B: no"],
                )
                for i in range(3)
            ],
        )

    monkeypatch.setattr(ai_generator, "generate_quiz_from_text", fake_generate)
    resp = await client.post(
        f"{API}/generate",
        json={"lesson_text": "Generators yield values lazily.", "number_of_questions": 3},
        headers=headers(instructor),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "ai_generated"
    assert body["ai_generated"] is True
    assert body["title"] == "Generated"
    assert len(body["questions"]) == 3


@pytest.mark.asyncio
async def test_generate_quiz_without_ai_key(client: AsyncClient, instructor, headers) -> None:
    resp = await client.post(
        f"{API}/generate",
        json={"lesson_text": "Some text", "number_of_questions": 3},
        headers=headers(instructor),
    )
    assert resp.status_code == 503
