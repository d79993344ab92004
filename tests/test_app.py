import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from learnix.middleware import error_envelope_middleware, request_id_middleware


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "learnix"}


@pytest.mark.asyncio
async def test_request_id_is_echoed_or_minted(client: AsyncClient) -> None:
    echoed = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert echoed.headers["X-Request-ID"] == "abc123"

    minted = await client.get("/health")
    assert len(minted.headers["X-Request-ID"]) == 32


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not Found"}


@pytest.mark.asyncio
async def test_openapi_lists_every_area(client: AsyncClient) -> None:
    paths = (await client.get("/openapi.json")).json()["paths"]
    for prefix in (
        "/api/v1/auth",
        "/api/v1/courses",
        "/api/v1/quizzes",
        "/api/v1/payments",
        "/api/v1/notifications",
        "/api/v1/upload",
        "/api/v1/dashboard",
        "/api/v1/admin",
        "/api/v1/exercises",
        "/api/v1/code-execution",
    ):
        assert any(path.startswith(prefix) for path in paths), prefix


@pytest.mark.asyncio
async def test_unhandled_errors_become_an_envelope() -> None:
    app = FastAPI()
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaput")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/boom", headers={"X-Request-ID": "req-1"})

    assert resp.status_code == 500
    assert resp.json() == {
        "error": {"code": "internal_error", "message": "An unexpected error occurred"},
        "request_id": "req-1",
    }
