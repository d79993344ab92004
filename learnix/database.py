"""Async engine, session factory and the ``get_db`` request dependency."""
import json
import ssl
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Session

from learnix.config import get_settings


class Base(DeclarativeBase):
    pass


_session_factory: async_sessionmaker[AsyncSession] | None = None


def _ssl_connect_args(mode: str, cert_path: str) -> dict[str, Any]:
    """asyncpg ``connect_args`` for ``DATABASE_SSL`` (``disable``, ``require`` or ``verify``)."""
    mode = mode.lower()
    if not mode or mode == "disable":
        return {}
    if mode == "verify" and cert_path and Path(cert_path).exists():
        return {"connect_args": {"ssl": ssl.create_default_context(cafile=cert_path)}}
    return {"connect_args": {"ssl": "require"}}


def _json_dumps(value: Any) -> str:
    # Non-ASCII stays unescaped; the catalog LIKE filters over cast JSON rely on it
    return json.dumps(value, ensure_ascii=False)


def get_async_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    kwargs.setdefault("json_serializer", _json_dumps)
    if database_url.startswith("sqlite"):
        # Tests and local scripts; SQLite pools take no sizing options
        return create_async_engine(database_url, **kwargs)

    settings = get_settings()
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_recycle": 3600,
        **_ssl_connect_args(settings.database_ssl, settings.database_ssl_cert),
    }
    options.update(kwargs)
    return create_async_engine(database_url, **options)


def get_async_session_factory(
    database_url: str,
    *,
    expire_on_commit: bool = False,
    **engine_kwargs: Any,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        get_async_engine(database_url, **engine_kwargs),
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
    )


def init_db(database_url: str, **engine_kwargs: Any) -> None:
    # Registers every table on Base.metadata before create_all() or Alembic run
    import learnix.models  # noqa: F401

    global _session_factory
    _session_factory = get_async_session_factory(database_url, **engine_kwargs)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized; call init_db() first")
    return _session_factory


# ── Post-commit callbacks ─────────────────────────────────────────────────────

_AFTER_COMMIT = "after_commit_callbacks"


def on_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """Queue *callback* to run once *session* commits; a rollback drops it."""
    session.info.setdefault(_AFTER_COMMIT, []).append(callback)


@event.listens_for(Session, "after_rollback")
def _drop_commit_callbacks(session: Session) -> None:
    session.info.pop(_AFTER_COMMIT, None)


async def commit(session: AsyncSession) -> None:
    """Commit, then run the callbacks queued with ``on_commit`` in order."""
    await session.commit()
    for callback in session.info.pop(_AFTER_COMMIT, []):
        await callback()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: commit when the handler returns, roll back if it raises."""
    async with get_session_factory()() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await session.rollback()
            raise
