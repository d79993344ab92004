"""
Quiz generation with Gemini.

Calls the ``generateContent`` REST endpoint over httpx, asks for a strict JSON
quiz and validates what comes back.  Overload (503), quota (429) and
unparseable or empty answers are retried with exponential backoff.

``transport`` and ``sleep`` are injectable so tests can run against
``httpx.MockTransport`` without waiting.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from learnix.config import Settings, get_settings
from learnix.exceptions import (
    AIGenerationError,
    AINotConfiguredError,
    AIServiceUnavailableError,
)
from learnix.models.enums import QuestionType
from learnix.quizzes.schemas import GeneratedQuestion, GeneratedQuiz, GeneratedQuizPayload

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
MAX_CHARS = 20_000
MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 2.0
DEFAULT_TITLE = "AI Generated Quiz"

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_JSON_RE = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


class _RetryableError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# ── Prompt ────────────────────────────────────────────────────────────────────

def truncate_text(text: str, limit: int = MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    logger.warning("Lesson text too long (%d chars); truncating to %d", len(text), limit)
    return text[:limit] + "... (truncated)"


def build_prompt(
    lesson_text: str,
    number_of_questions: int,
    preferred_types: Sequence[str] | None = None,
) -> str:
    types = list(preferred_types) if preferred_types else [QuestionType.MULTIPLE_CHOICE.value]
    types_sentence = f"Use these question types: {', '.join(types)}."
    return f"""You are an expert educator. Based on the following lesson content, generate a suitable quiz title and exactly {number_of_questions} questions to test student understanding.

{types_sentence}

Lesson Content:
{truncate_text(lesson_text)}

Requirements:
1. Generate exactly {number_of_questions} questions.
2. Supported types:
   - multiple_choice: 4 options ("A: ...", "B: ..."), exactly ONE correct answer (e.g. "A").
   - multi_select: 4 options, ONE OR MORE correct answers, comma-separated (e.g. "A,C").
   - true_false: 2 options ("A: True", "B: False"), exactly ONE correct answer (e.g. "A").
   - short_answer: no options, correct_answer is a short text string.
3. Include an explanation for every correct answer.
4. Return ONLY a valid JSON object with this exact structure:
{{
  "title": "Quiz Title",
  "questions": [
    {{
      "question_text": "...",
      "type": "multiple_choice",
      "options": ["A: ...", "B: ..."],
      "correct_answer": "A",
      "explanation": "..."
    }}
  ]
}}"""


# ── Response parsing ──────────────────────────────────────────────────────────

def _valid_questions(raw_questions: list[Any]) -> list[GeneratedQuestion]:
    questions = []
    for raw in raw_questions:
        try:
            questions.append(GeneratedQuestion.model_validate(raw))
        except ValidationError:
            logger.warning("Filtering out invalid question: %s", json.dumps(raw, default=str)[:200])
    return questions


def parse_quiz_response(content: str, number_of_questions: int) -> GeneratedQuiz:
    """Turn the model's text into a validated quiz.

    Raises ``_RetryableError`` when nothing usable can be extracted.
    """
    cleaned = _FENCE_RE.sub("", content).strip()
    match = _JSON_RE.search(cleaned)
    if match:
        cleaned = match.group(1)
    try:
        result = json.loads(cleaned)
    except ValueError as exc:
        logger.error("JSON parse failed. Content: %s...", cleaned[:500])
        raise _RetryableError("Failed to parse AI response. The response was not valid JSON.") from exc

    if isinstance(result, list):
        payload = GeneratedQuizPayload(questions=result)
    elif isinstance(result, dict):
        payload = GeneratedQuizPayload.model_validate(result)
    else:
        payload = GeneratedQuizPayload()

    if not payload.questions:
        raise _RetryableError("Invalid response format: No questions found")

    questions = _valid_questions(payload.questions)
    if not questions:
        raise _RetryableError("AI generated invalid questions. Please try again.")

    logger.info("Generated %d valid questions", len(questions))
    return GeneratedQuiz(
        title=payload.title or DEFAULT_TITLE,
        questions=questions[:number_of_questions],
    )


def _response_text(payload: dict) -> str | None:
    try:
        return payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None


# ── Gemini call ───────────────────────────────────────────────────────────────

async def _call_gemini(prompt: str, settings: Settings, client: httpx.AsyncClient) -> str:
    response = await client.post(
        GEMINI_URL.format(model=settings.gemini_model),
        headers={"x-goog-api-key": settings.gemini_api_key},
        json={"contents": [{"parts": [{"text": prompt}]}]},
    )
    if response.status_code in (429, 503):
        raise _RetryableError(f"Gemini returned {response.status_code}", response.status_code)
    if response.status_code != 200:
        raise AIGenerationError(
            f"Failed to generate quiz: Gemini request failed with status {response.status_code}"
        )
    text = _response_text(response.json())
    if not text:
        logger.error("Gemini returned empty response")
        raise _RetryableError("No response from Gemini")
    return text


async def generate_quiz_from_text(
    lesson_text: str,
    number_of_questions: int = 5,
    preferred_types: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> GeneratedQuiz:
    settings = settings or get_settings()
    if not settings.gemini_api_key:
        raise AINotConfiguredError()

    prompt = build_prompt(lesson_text, number_of_questions, preferred_types)
    async with httpx.AsyncClient(timeout=60.0, transport=transport) as client:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                content = await _call_gemini(prompt, settings, client)
                return parse_quiz_response(content, number_of_questions)
            except _RetryableError as exc:
                logger.error("Quiz generation attempt %d failed: %s", attempt, exc)
                if attempt < MAX_ATTEMPTS:
                    delay = BASE_DELAY_SECONDS * 2 ** (attempt - 1)
                    logger.warning("Retrying in %.0fs", delay)
                    await sleep(delay)
                    continue
                if exc.status_code == 429:
                    raise AIServiceUnavailableError(
                        "AI service quota exceeded. Please try again later."
                    ) from exc
                if exc.status_code == 503:
                    raise AIServiceUnavailableError(
                        "AI service is currently overloaded. Please try again later."
                    ) from exc
                raise AIGenerationError(f"Failed to generate quiz: {exc}") from exc
            except httpx.HTTPError as exc:
                logger.error("Gemini request failed: %s", exc)
                raise AIGenerationError(f"Failed to generate quiz: {exc}") from exc

    raise AIGenerationError("Failed to generate quiz after multiple attempts.")
