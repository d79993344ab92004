import httpx
import pytest
from httpx import AsyncClient

from learnix.exercises.router import get_piston_transport
from learnix.main import app


@pytest.fixture
def piston_replies():
    replies: list[httpx.Response] = []
    transport = httpx.MockTransport(lambda request: replies.pop(0))
    app.dependency_overrides[get_piston_transport] = lambda: transport
    yield replies
    app.dependency_overrides.pop(get_piston_transport, None)


def _run(output: str, code: int = 0) -> dict:
    return {"stdout": output, "stderr": "", "code": code, "signal": None, "output": output}


@pytest.mark.asyncio
async def test_playground_run_is_open_to_guests(client: AsyncClient, piston_replies) -> None:
    piston_replies.append(
        httpx.Response(200, json={"language": "cpp", "version": "10.2.0", "run": _run("3\n")})
    )
    resp = await client.post(
        "/api/v1/code-execution/run",
        json={"language": "c++", "source_code": "int main() {}", "stdin": ""},
    )
    assert resp.status_code == 200
    assert resp.json() == {"stdout": "3\n", "stderr": "", "code": 0, "output": "3\n"}


@pytest.mark.asyncio
async def test_playground_failure_is_bad_gateway(client: AsyncClient, piston_replies) -> None:
    piston_replies.append(httpx.Response(500, json={"message": "sandbox crashed"}))
    resp = await client.post(
        "/api/v1/code-execution/run", json={"language": "python", "source_code": "print(1)"}
    )
    assert resp.status_code == 502
    assert resp.json()["detail"] == "sandbox crashed"


@pytest.mark.asyncio
async def test_execute_returns_piston_result(client: AsyncClient, piston_replies) -> None:
    piston_replies.append(
        httpx.Response(200, json={"language": "python", "version": "3.12.0", "run": _run("hi\n")})
    )
    resp = await client.post("/api/v1/exercises/execute", json={"language": "python", "code": "print('hi')"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["version"] == "3.12.0"
    assert body["run"]["output"] == "hi\n"
    assert body["run"]["signal"] is None


@pytest.mark.asyncio
async def test_execute_unavailable(client: AsyncClient, piston_replies) -> None:
    piston_replies.append(httpx.Response(503, text="busy"))
    resp = await client.post("/api/v1/exercises/execute", json={"language": "python", "code": "1"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to execute code service"


@pytest.mark.asyncio
async def test_submit_requires_login(client: AsyncClient, piston_replies) -> None:
    resp = await client.post(
        "/api/v1/exercises/submit", json={"language": "python", "code": "print(1)", "expected_output": "1"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_submit_grades_output(client: AsyncClient, piston_replies, student, headers) -> None:
    piston_replies.append(
        httpx.Response(200, json={"language": "python", "version": "3.12.0", "run": _run("1\n")})
    )
    resp = await client.post(
        "/api/v1/exercises/submit",
        json={"language": "python", "code": "print(1)", "expected_output": "1"},
        headers=headers(student),
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "output": "1"}

    empty = await client.post(
        "/api/v1/exercises/submit",
        json={"language": "python", "code": "print(1)"},
        headers=headers(student),
    )
    assert empty.json() == {"success": False, "output": "No validation criteria provided"}
