import pytest
from httpx import AsyncClient

from learnix.models import CourseLevel, CourseStatus

API = "/api/v1/courses"


@pytest.mark.asyncio
async def test_catalog_only_lists_public_courses(client: AsyncClient, make_course, instructor) -> None:
    await make_course(instructor, title="Published")
    await make_course(instructor, title="Draft", status=CourseStatus.DRAFT)
    await make_course(instructor, title="Pending", status=CourseStatus.PENDING)

    resp = await client.get(API)
    assert resp.status_code == 200
    body = resp.json()
    assert [c["title"] for c in body["data"]] == ["Published"]
    assert body["meta"] == {"total": 1, "page": 1, "limit": 10, "total_pages": 1}


@pytest.mark.asyncio
async def test_catalog_filters(client: AsyncClient, make_course, instructor) -> None:
    await make_course(instructor, title="Rust for beginners", tags=["rust"], price=30)
    await make_course(
        instructor, title="Advanced Python", tags=["python"], price=10, level=CourseLevel.ADVANCED
    )
    await make_course(instructor, title="Data Science", tags=["python", "data"], price=20)

    search = await client.get(API, params={"search": "rust"})
    assert [c["title"] for c in search.json()["data"]] == ["Rust for beginners"]

    level = await client.get(API, params={"level": "advanced"})
    assert [c["title"] for c in level.json()["data"]] == ["Advanced Python"]

    tagged = await client.get(API, params={"tags": "data,rust"})
    assert {c["title"] for c in tagged.json()["data"]} == {"Rust for beginners", "Data Science"}

    by_price = await client.get(API, params={"sort": "price", "order": "ASC"})
    assert [c["price"] for c in by_price.json()["data"]] == [10.0, 20.0, 30.0]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client: AsyncClient, make_course, instructor) -> None:
    await make_course(instructor, title="Rust for beginners", tags=["rust"])
    await make_course(instructor, title="Data Science", tags=["data"])

    for term in ("%", "_", "\\"):
        resp = await client.get(API, params={"search": term})
        assert resp.json()["meta"]["total"] == 0, term

    await make_course(instructor, title="100% Python", tags=["snake_case"])
    percent = await client.get(API, params={"search": "%"})
    assert [c["title"] for c in percent.json()["data"]] == ["100% Python"]
    underscore = await client.get(API, params={"tags": "snake_case"})
    assert [c["title"] for c in underscore.json()["data"]] == ["100% Python"]
    assert (await client.get(API, params={"tags": "snake%"})).json()["meta"]["total"] == 0


@pytest.mark.asyncio
async def test_non_ascii_tags_and_search(client: AsyncClient, make_course, instructor) -> None:
    await make_course(instructor, title="French pastry", tags=["café", "baking"])
    await make_course(instructor, title="Rust for beginners", tags=["rust"])

    tagged = await client.get(API, params={"tags": "café"})
    assert [c["title"] for c in tagged.json()["data"]] == ["French pastry"]
    searched = await client.get(API, params={"search": "café"})
    assert [c["title"] for c in searched.json()["data"]] == ["French pastry"]


@pytest.mark.asyncio
async def test_catalog_pagination(client: AsyncClient, make_course, instructor) -> None:
    for i in range(3):
        await make_course(instructor, title=f"Course {i}")
    resp = await client.get(API, params={"page": 2, "limit": 2})
    body = resp.json()
    assert len(body["data"]) == 1
    assert body["meta"]["total"] == 3
    assert body["meta"]["total_pages"] == 2


@pytest.mark.asyncio
async def test_catalog_rejects_bad_sort(client: AsyncClient) -> None:
    resp = await client.get(API, params={"sort": "popularity"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_tags_come_from_public_courses(client: AsyncClient, make_course, instructor) -> None:
    await make_course(instructor, tags=["python", "web"])
    await make_course(instructor, tags=["secret"], status=CourseStatus.DRAFT)
    resp = await client.get(f"{API}/tags")
    assert resp.status_code == 200
    assert sorted(resp.json()) == ["python", "web"]


@pytest.mark.asyncio
async def test_draft_course_hidden_from_others(
    client: AsyncClient, make_course, make_user, instructor, student, admin, headers
) -> None:
    draft = await make_course(instructor, status=CourseStatus.DRAFT)
    other = await make_user(instructor.role, email="other-instructor@example.com")

    assert (await client.get(f"{API}/{draft.id}")).status_code == 404
    assert (await client.get(f"{API}/{draft.id}", headers=headers(student))).status_code == 404
    assert (await client.get(f"{API}/{draft.id}", headers=headers(other))).status_code == 404

    owner = await client.get(f"{API}/{draft.id}", headers=headers(instructor))
    assert owner.status_code == 200
    assert owner.json()["sections"][0]["lessons"][0]["title"] == "Lesson 1"
    assert (await client.get(f"{API}/{draft.id}", headers=headers(admin))).status_code == 200


@pytest.mark.asyncio
async def test_public_course_detail_has_student_count(
    client: AsyncClient, course, student, headers
) -> None:
    await client.post(f"{API}/{course.id}/enroll", headers=headers(student))
    resp = await client.get(f"{API}/{course.id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["student_count"] == 1
    assert body["instructor"]["full_name"] == "Ivy Instructor"


@pytest.mark.asyncio
async def test_recommendations_by_shared_tags(
    client: AsyncClient, make_course, instructor, student, headers
) -> None:
    taken = await make_course(instructor, title="Python 101", tags=["python", "basics"])
    await make_course(instructor, title="Python Web", tags=["python", "web"])
    await make_course(instructor, title="Python Basics Lab", tags=["Python", "basics"])
    await make_course(instructor, title="Cooking", tags=["food"])

    fresh = await client.get(f"{API}/recommendations", headers=headers(student))
    assert fresh.status_code == 200
    assert all(item["score"] == 0 for item in fresh.json())
    assert len(fresh.json()) == 4

    await client.post(f"{API}/{taken.id}/enroll", headers=headers(student))
    resp = await client.get(f"{API}/recommendations", headers=headers(student))
    items = resp.json()
    assert [i["course"]["title"] for i in items] == ["Python Basics Lab", "Python Web"]
    assert items[0]["score"] == 2
    assert items[0]["matching_tags"] == ["python", "basics"]


@pytest.mark.asyncio
async def test_recommendations_require_login(client: AsyncClient) -> None:
    assert (await client.get(f"{API}/recommendations")).status_code == 401
