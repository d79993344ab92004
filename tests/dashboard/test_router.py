import pytest
from httpx import AsyncClient

from learnix.models import CourseStatus

API = "/api/v1/dashboard"
COURSES = "/api/v1/courses"


async def _enroll_and_finish(client: AsyncClient, course, user, headers) -> None:
    await client.post(f"{COURSES}/{course.id}/enroll", headers=headers(user))
    for lesson in course.sections[0].lessons:
        resp = await client.post(
            f"{COURSES}/{course.id}/lessons/{lesson.id}/complete", headers=headers(user)
        )
        assert resp.status_code == 200, resp.text


@pytest.mark.asyncio
async def test_dashboard_requires_login(client: AsyncClient) -> None:
    for path in ("/stats", "/progress", "/activity"):
        assert (await client.get(f"{API}{path}")).status_code == 401


@pytest.mark.asyncio
async def test_student_stats_start_empty(client: AsyncClient, student, headers) -> None:
    resp = await client.get(f"{API}/stats", headers=headers(student))
    assert resp.status_code == 200
    assert resp.json() == {"courses_enrolled": 0, "hours_learned": 0, "average_score": 0}


@pytest.mark.asyncio
async def test_student_stats_count_hours_and_quiz_scores(
    client: AsyncClient, course, instructor, student, headers
) -> None:
    await _enroll_and_finish(client, course, student, headers)

    quiz = await client.post(
        "/api/v1/quizzes",
        json={
            "title": "Check",
            "questions": [
                {"question_text": "One", "correct_answer": "a", "type": "short_answer"},
                {"question_text": "Two", "correct_answer": "b", "type": "short_answer"},
            ],
        },
        headers=headers(instructor),
    )
    first, second = (q["id"] for q in quiz.json()["questions"])
    await client.post(
        f"/api/v1/quizzes/{quiz.json()['id']}/submit",
        json={"answers": {first: "a", second: "wrong"}},
        headers=headers(student),
    )

    stats = (await client.get(f"{API}/stats", headers=headers(student))).json()
    # two 30-minute lessons
    assert stats == {"courses_enrolled": 1, "hours_learned": 1, "average_score": 50}


@pytest.mark.asyncio
async def test_progress_lists_current_courses(client: AsyncClient, course, student, headers) -> None:
    await client.post(f"{COURSES}/{course.id}/enroll", headers=headers(student))
    first = course.sections[0].lessons[0].id
    await client.post(f"{COURSES}/{course.id}/lessons/{first}/complete", headers=headers(student))

    resp = await client.get(f"{API}/progress", headers=headers(student))
    assert resp.status_code == 200
    assert resp.json() == {
        "current_courses": [
            {
                "id": str(course.id),
                "title": course.title,
                "progress": 50,
                "total_lessons": 2,
                "completed_lessons": 1,
            }
        ]
    }


@pytest.mark.asyncio
async def test_unpublished_courses_drop_out_of_student_figures(
    client: AsyncClient, course, instructor, student, headers
) -> None:
    await client.post(f"{COURSES}/{course.id}/enroll", headers=headers(student))
    unpublish = await client.patch(f"{COURSES}/{course.id}/unpublish", headers=headers(instructor))
    assert unpublish.status_code == 200

    stats = (await client.get(f"{API}/stats", headers=headers(student))).json()
    assert stats["courses_enrolled"] == 0
    progress = (await client.get(f"{API}/progress", headers=headers(student))).json()
    assert progress == {"current_courses": []}


@pytest.mark.asyncio
async def test_instructor_stats(
    client: AsyncClient, make_course, make_user, instructor, student, headers
) -> None:
    published = await make_course(instructor, title="Published")
    await make_course(instructor, title="Draft", status=CourseStatus.DRAFT)
    other = await make_user(email="other@example.com", full_name="Otto Other")

    await client.post(f"{COURSES}/{published.id}/enroll", headers=headers(student))
    await client.post(f"{COURSES}/{published.id}/enroll", headers=headers(other))

    stats = (await client.get(f"{API}/stats", headers=headers(instructor))).json()
    assert stats == {
        "courses_created": 2,
        "total_students": 2,
        "active_students": 2,
        "new_students_count": 2,
    }


@pytest.mark.asyncio
async def test_admin_stats(client: AsyncClient, course, make_course, instructor, student, admin, headers) -> None:
    await make_course(instructor, title="Hidden", status=CourseStatus.PENDING)
    await client.post(f"{COURSES}/{course.id}/enroll", headers=headers(student))

    stats = (await client.get(f"{API}/stats", headers=headers(admin))).json()
    assert stats == {
        "total_users": 3,
        "total_courses": 1,
        "total_enrollments": 1,
        "active_students": 1,
        "new_users_count": 3,
        "new_courses_count": 1,
    }


@pytest.mark.asyncio
async def test_activity_depends_on_role(
    client: AsyncClient, course, instructor, student, admin, headers
) -> None:
    await client.post(f"{COURSES}/{course.id}/enroll", headers=headers(student))

    mine = (await client.get(f"{API}/activity", headers=headers(student))).json()["activities"]
    assert [(a["type"], a["title"], a["course"]) for a in mine] == [
        ("enrollment", 'Enrolled in "Intro to Python"', "Intro to Python")
    ]

    taught = (await client.get(f"{API}/activity", headers=headers(instructor))).json()["activities"]
    assert [(a["type"], a["title"]) for a in taught] == [
        ("course_created", 'Created course "Intro to Python"')
    ]

    admin_feed = (await client.get(f"{API}/activity", headers=headers(admin))).json()["activities"]
    assert {a["type"] for a in admin_feed} == {"user_registered"}
    assert {a["title"] for a in admin_feed} == {
        "New user registered: student@example.com",
        "New user registered: ivy@example.com",
        "New user registered: admin@example.com",
    }


@pytest.mark.asyncio
async def test_activity_is_capped(client: AsyncClient, make_course, instructor, headers) -> None:
    for i in range(7):
        await make_course(instructor, title=f"Course {i}")
    taught = (await client.get(f"{API}/activity", headers=headers(instructor))).json()["activities"]
    assert len(taught) == 5
