from __future__ import annotations

import logging

import httpx
from fastapi import HTTPException, status

from learnix.config import Settings
from learnix.exceptions import CodeExecutionError
from learnix.exercises import service
from learnix.exercises.schemas import (
    ExecuteRequest,
    PistonResult,
    RunCodeRequest,
    RunCodeResponse,
    SubmitRequest,
    SubmitResponse,
)

logger = logging.getLogger(__name__)


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, CodeExecutionError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    logger.exception("Unhandled error in exercises controller", exc_info=exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def run_code(
    body: RunCodeRequest, settings: Settings, transport: httpx.AsyncBaseTransport | None
) -> RunCodeResponse:
    try:
        run = await service.run_code(
            body.language, body.source_code, body.stdin, settings=settings, transport=transport
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return RunCodeResponse(stdout=run.stdout, stderr=run.stderr, code=run.code, output=run.output)


async def execute(
    body: ExecuteRequest, settings: Settings, transport: httpx.AsyncBaseTransport | None
) -> PistonResult:
    try:
        return await service.execute_exercise(
            body.language, body.code, body.stdin, settings=settings, transport=transport
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def submit(
    body: SubmitRequest, settings: Settings, transport: httpx.AsyncBaseTransport | None
) -> SubmitResponse:
    try:
        success, output = await service.validate_submission(
            body.language,
            body.code,
            body.expected_output,
            body.test_code,
            settings=settings,
            transport=transport,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return SubmitResponse(success=success, output=output)
