from __future__ import annotations

from pydantic import BaseModel, Field

MAX_SOURCE_LENGTH = 64_000


# ── Piston results ────────────────────────────────────────────────────────────

class PistonRun(BaseModel):
    stdout: str = ""
    stderr: str = ""
    # None when the process was killed by a signal
    code: int | None = None
    signal: str | None = None
    output: str = ""


class PistonResult(BaseModel):
    language: str
    version: str
    run: PistonRun


# ── Playground ────────────────────────────────────────────────────────────────

class RunCodeRequest(BaseModel):
    language: str = Field(min_length=1, max_length=32)
    source_code: str = Field(max_length=MAX_SOURCE_LENGTH)
    stdin: str | None = None


class RunCodeResponse(BaseModel):
    stdout: str
    stderr: str
    code: int | None
    output: str


# ── Exercises ─────────────────────────────────────────────────────────────────

class ExecuteRequest(BaseModel):
    language: str = Field(min_length=1, max_length=32)
    code: str = Field(max_length=MAX_SOURCE_LENGTH)
    stdin: str | None = None


class SubmitRequest(BaseModel):
    language: str = Field(min_length=1, max_length=32)
    code: str = Field(max_length=MAX_SOURCE_LENGTH)
    expected_output: str | None = None
    test_code: str | None = Field(default=None, max_length=MAX_SOURCE_LENGTH)


class SubmitResponse(BaseModel):
    success: bool
    output: str
