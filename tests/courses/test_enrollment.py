import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.models import CourseStatus, Notification, NotificationType

API = "/api/v1/courses"


def _lesson_ids(course) -> list[str]:
    return [str(lesson.id) for lesson in course.sections[0].lessons]


@pytest.mark.asyncio
async def test_enroll_in_free_course(
    client: AsyncClient, db: AsyncSession, course, student, headers
) -> None:
    resp = await client.post(f"{API}/{course.id}/enroll", headers=headers(student))
    assert resp.status_code == 201
    assert resp.json()["completed_lesson_ids"] == []

    again = await client.post(f"{API}/{course.id}/enroll", headers=headers(student))
    assert again.status_code == 409

    rows = await db.execute(select(Notification).where(Notification.user_id == student.id))
    notes = rows.scalars().all()
    assert [n.notification_type for n in notes] == [NotificationType.ENROLLMENT]


@pytest.mark.asyncio
async def test_admin_cannot_enroll(client: AsyncClient, course, admin, headers) -> None:
    resp = await client.post(f"{API}/{course.id}/enroll", headers=headers(admin))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_cannot_enroll_in_draft(client: AsyncClient, make_course, instructor, student, headers) -> None:
    draft = await make_course(instructor, status=CourseStatus.DRAFT)
    resp = await client.post(f"{API}/{draft.id}/enroll", headers=headers(student))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_access_check(client: AsyncClient, course, student, instructor, headers) -> None:
    before = await client.get(f"{API}/{course.id}/enrollment", headers=headers(student))
    assert before.json()["has_access"] is False
    assert before.json()["enrollment"] is None

    owner = await client.get(f"{API}/{course.id}/enrollment", headers=headers(instructor))
    assert owner.json()["is_instructor"] is True
    assert owner.json()["has_access"] is True

    await client.post(f"{API}/{course.id}/enroll", headers=headers(student))
    after = await client.get(f"{API}/{course.id}/enrollment", headers=headers(student))
    assert after.json()["is_enrolled"] is True
    assert after.json()["has_access"] is True


@pytest.mark.asyncio
async def test_lesson_access_rules(client: AsyncClient, course, student, headers) -> None:
    preview_id, locked_id = _lesson_ids(course)

    preview = await client.get(f"{API}/{course.id}/lessons/{preview_id}", headers=headers(student))
    assert preview.status_code == 200
    assert preview.json()["lesson"]["is_free_preview"] is True

    locked = await client.get(f"{API}/{course.id}/lessons/{locked_id}", headers=headers(student))
    assert locked.status_code == 403

    await client.post(f"{API}/{course.id}/enroll", headers=headers(student))
    unlocked = await client.get(f"{API}/{course.id}/lessons/{locked_id}", headers=headers(student))
    assert unlocked.status_code == 200


@pytest.mark.asyncio
async def test_lesson_from_other_course_is_not_found(
    client: AsyncClient, make_course, course, instructor, student, headers
) -> None:
    other = await make_course(instructor, title="Other")
    foreign_lesson = _lesson_ids(other)[0]
    resp = await client.get(f"{API}/{course.id}/lessons/{foreign_lesson}", headers=headers(student))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_completing_lessons_tracks_progress(
    client: AsyncClient, db: AsyncSession, course, student, headers
) -> None:
    first, second = _lesson_ids(course)
    await client.post(f"{API}/{course.id}/enroll", headers=headers(student))

    resp = await client.post(f"{API}/{course.id}/lessons/{first}/complete", headers=headers(student))
    assert resp.status_code == 200
    assert resp.json()["completed_lesson_ids"] == [first]
    assert resp.json()["completed_at"] is None

    # Completing twice is a no-op
    again = await client.post(f"{API}/{course.id}/lessons/{first}/complete", headers=headers(student))
    assert again.json()["completed_lesson_ids"] == [first]

    listing = await client.get(f"{API}/enrolled", headers=headers(student))
    item = listing.json()[0]
    assert (item["progress"], item["completed_lessons"], item["total_lessons"]) == (50, 1, 2)
    assert item["status"] == "in-progress"

    done = await client.post(f"{API}/{course.id}/lessons/{second}/complete", headers=headers(student))
    assert done.json()["completed_at"] is not None

    completed = await client.get(
        f"{API}/enrolled", params={"status": "completed"}, headers=headers(student)
    )
    assert [c["progress"] for c in completed.json()] == [100]
    in_progress = await client.get(
        f"{API}/enrolled", params={"status": "in-progress"}, headers=headers(student)
    )
    assert in_progress.json() == []

    rows = await db.execute(
        select(Notification).where(
            Notification.user_id == student.id,
            Notification.notification_type == NotificationType.COURSE_COMPLETED,
        )
    )
    assert len(rows.scalars().all()) == 1


@pytest.mark.asyncio
async def test_complete_without_enrollment(client: AsyncClient, course, student, instructor, headers) -> None:
    lesson = _lesson_ids(course)[0]
    resp = await client.post(f"{API}/{course.id}/lessons/{lesson}/complete", headers=headers(student))
    assert resp.status_code == 404

    owner = await client.post(f"{API}/{course.id}/lessons/{lesson}/complete", headers=headers(instructor))
    assert owner.status_code == 200
    assert owner.json() is None


@pytest.mark.asyncio
async def test_archive_and_unarchive(client: AsyncClient, course, student, headers) -> None:
    await client.post(f"{API}/{course.id}/enroll", headers=headers(student))

    archived = await client.patch(f"{API}/{course.id}/archive", headers=headers(student))
    assert archived.status_code == 200
    assert (await client.patch(f"{API}/{course.id}/archive", headers=headers(student))).status_code == 409

    active = await client.get(f"{API}/enrolled", headers=headers(student))
    assert active.json() == []
    shelf = await client.get(f"{API}/enrolled", params={"archived": True}, headers=headers(student))
    assert [c["is_archived"] for c in shelf.json()] == [True]

    restored = await client.patch(f"{API}/{course.id}/unarchive", headers=headers(student))
    assert restored.status_code == 200
    assert (await client.patch(f"{API}/{course.id}/unarchive", headers=headers(student))).status_code == 409


@pytest.mark.asyncio
async def test_archive_requires_enrollment(client: AsyncClient, course, student, headers) -> None:
    resp = await client.patch(f"{API}/{course.id}/archive", headers=headers(student))
    assert resp.status_code == 404
