"""Running learner code and grading exercise submissions through Piston."""
from __future__ import annotations

import logging

import httpx

from learnix.config import Settings
from learnix.exceptions import CodeExecutionError
from learnix.exercises import piston
from learnix.exercises.schemas import PistonResult, PistonRun

logger = logging.getLogger(__name__)

NO_CRITERIA_MESSAGE = "No validation criteria provided"


async def run_code(
    language: str,
    source_code: str,
    stdin: str | None,
    *,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PistonRun:
    """Playground run: pinned runtime per language, JS/TS preludes applied."""
    runtime = piston.resolve_runtime(language)
    source = piston.prepare_source(language, source_code, stdin)
    logger.info("Executing code for language %s mapped to %s", language, runtime.language)
    result = await piston.execute(
        runtime.language, runtime.version, source, stdin, settings=settings, transport=transport
    )
    return result.run


async def execute_exercise(
    language: str,
    code: str,
    stdin: str | None = None,
    *,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PistonResult:
    """Run *code* unchanged on the latest runtime Piston has for *language*."""
    try:
        return await piston.execute(
            language, "*", code, stdin, settings=settings, transport=transport
        )
    except CodeExecutionError as exc:
        raise CodeExecutionError() from exc


async def validate_submission(
    language: str,
    code: str,
    expected_output: str | None = None,
    test_code: str | None = None,
    *,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[bool, str]:
    """
    Grade a submission and return ``(success, output)``.

    With *test_code* the tests are appended to the learner's code and the run
    passes when it exits with 0, so failing tests are expected to throw.
    Otherwise the trimmed output must equal the trimmed *expected_output*.
    """
    if test_code:
        result = await execute_exercise(
            language, f"{code}\n\n{test_code}", settings=settings, transport=transport
        )
        return result.run.code == 0, result.run.output.strip()

    if expected_output is not None:
        result = await execute_exercise(language, code, settings=settings, transport=transport)
        output = result.run.output.strip()
        return output == expected_output.strip(), output

    return False, NO_CRITERIA_MESSAGE
