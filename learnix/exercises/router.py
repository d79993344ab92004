"""Code playground and coding exercises, both executed remotely by Piston."""

import httpx
from fastapi import APIRouter, Depends, Request

from learnix.config import Settings, get_settings
from learnix.dependencies import CurrentUser, get_current_user
from learnix.exercises import controller
from learnix.exercises.schemas import (
    ExecuteRequest,
    PistonResult,
    RunCodeRequest,
    RunCodeResponse,
    SubmitRequest,
    SubmitResponse,
)
from learnix.rate_limit import limiter

router = APIRouter(prefix="/exercises", tags=["Exercises"])
code_execution_router = APIRouter(prefix="/code-execution", tags=["Exercises"])


def get_piston_transport() -> httpx.AsyncBaseTransport | None:
    """The default httpx transport; tests override this dependency."""
    return None


@code_execution_router.post(
    "/run",
    response_model=RunCodeResponse,
    summary="Run code in the playground",
    description="Open to guests. JavaScript and TypeScript get `input()` and `print()` helpers "
    "fed from `stdin`, and a simulated Express when the code requires it.",
)
@limiter.limit("20/minute")
async def run_code(
    request: Request,
    body: RunCodeRequest,
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_piston_transport),
) -> RunCodeResponse:
    return await controller.run_code(body, settings, transport)


@router.post(
    "/execute",
    response_model=PistonResult,
    summary="Run exercise code",
    description="Runs the code unchanged on the latest runtime for the language.",
)
@limiter.limit("20/minute")
async def execute(
    request: Request,
    body: ExecuteRequest,
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_piston_transport),
) -> PistonResult:
    return await controller.execute(body, settings, transport)


@router.post(
    "/submit",
    response_model=SubmitResponse,
    summary="Grade an exercise submission",
    description="With `test_code` the tests run after the code and pass on exit code 0. "
    "Otherwise the trimmed output is compared with `expected_output`.",
)
@limiter.limit("10/minute")
async def submit(
    request: Request,
    body: SubmitRequest,
    current_user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_piston_transport),
) -> SubmitResponse:
    return await controller.submit(body, settings, transport)
