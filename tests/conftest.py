import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from decimal import Decimal
from pathlib import Path

# Settings are cached on first import, so the environment is fixed before learnix loads.
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="learnix-tests-"))
os.environ.update({
    "ENV_NAME": "test",
    "DATABASE_URL": f"sqlite+aiosqlite:///{_TMP_ROOT / 'bootstrap.db'}",
    "RATE_LIMIT_ENABLED": "false",
    "RATE_LIMIT_STORAGE_URI": "memory://",
    "JWT_SECRET": "test-jwt-secret",
    "TOKEN_ENCRYPTION_SECRET": "test-cookie-secret",
    "SMTP_HOST": "",
    "GEMINI_API_KEY": "",
    "UPLOAD_PATH": str(_TMP_ROOT / "uploads"),
    "BACKEND_URL": "http://testserver",
    "FRONTEND_URL": "http://frontend.test",
})

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from learnix.database import Base, get_session_factory, init_db
from learnix.main import app
from learnix.models import (
    Course,
    CourseLevel,
    CourseSection,
    CourseStatus,
    Lesson,
    User,
    UserRole,
)
from learnix.security import create_access_token
from learnix.users import service as users_service

PASSWORD = "password123"


def _enable_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    init_db(f"sqlite+aiosqlite:///{tmp_path / 'learnix.db'}")
    engine: AsyncEngine = get_session_factory().kw["bind"]
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role.value if user.role else None)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers() -> Callable[[User], dict[str, str]]:
    return auth_headers


# ── Factories ────────────────────────────────────────────────────────────────

@pytest.fixture
def make_user(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    counter = {"n": 0}

    async def _make(
        role: UserRole | None = UserRole.STUDENT,
        *,
        email: str | None = None,
        full_name: str = "Test User",
        verified: bool = True,
    ) -> User:
        counter["n"] += 1
        user = await users_service.create_user(
            db,
            email=email or f"user{counter['n']}@example.com",
            full_name=full_name,
            password=PASSWORD,
            role=role,
            is_email_verified=verified,
        )
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_course(db: AsyncSession) -> Callable[..., Awaitable[Course]]:
    async def _make(
        instructor: User,
        *,
        title: str = "Intro to Python",
        price: str | int = 0,
        tags: list[str] | None = None,
        status: CourseStatus = CourseStatus.PUBLISHED,
        level: CourseLevel = CourseLevel.BEGINNER,
        lesson_count: int = 2,
        lesson_text: str = "Python lists hold ordered items.",
    ) -> Course:
        course = Course(
            title=title,
            description=f"All about {title}",
            price=Decimal(str(price)),
            level=level,
            status=status,
            is_published=status == CourseStatus.PUBLISHED,
            tags=list(tags if tags is not None else ["python", "programming"]),
            instructor_id=instructor.id,
        )
        section = CourseSection(title="Getting started", order_index=0)
        section.lessons = [
            Lesson(
                title=f"Lesson {i + 1}",
                content=[{"id": f"b{i}", "type": "text", "content": lesson_text, "order_index": 0}],
                duration_seconds=1800,
                is_free_preview=i == 0,
                order_index=i,
            )
            for i in range(lesson_count)
        ]
        course.sections = [section]
        db.add(course)
        await db.commit()
        return course

    return _make


@pytest_asyncio.fixture
async def student(make_user) -> User:
    return await make_user(UserRole.STUDENT, email="student@example.com", full_name="Sam Student")


@pytest_asyncio.fixture
async def instructor(make_user) -> User:
    return await make_user(UserRole.INSTRUCTOR, email="ivy@example.com", full_name="Ivy Instructor")


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, email="admin@example.com", full_name="Ada Admin")


@pytest_asyncio.fixture
async def course(make_course, instructor) -> Course:
    return await make_course(instructor)
