"""
Client for the Piston code-execution API.

Submitted code never runs in this process.  It is posted to Piston's
``/execute`` endpoint, which runs it in a sandbox and answers with the
captured output and exit code.  ``transport`` is injectable so tests can
stand in for Piston with ``httpx.MockTransport``.

JavaScript and TypeScript sources get a small prelude: ``input()`` reads the
request's stdin line by line and ``print()`` (``println()`` in TypeScript)
writes a line.  Sources that ``require('express')`` also get an in-memory
Express stand-in, since the sandbox has no network and no npm packages.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from learnix.config import Settings
from learnix.exceptions import CodeExecutionError
from learnix.exercises.schemas import PistonResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Runtime:
    language: str
    version: str


LANGUAGE_MAP: dict[str, Runtime] = {
    "c++": Runtime("cpp", "10.2.0"),
    "c": Runtime("c", "10.2.0"),
    "csharp": Runtime("csharp", "6.12.0"),
    "java": Runtime("java", "15.0.2"),
    "rust": Runtime("rust", "1.68.2"),
    "go": Runtime("go", "1.16.2"),
    "python": Runtime("python", "3.10.0"),
    "javascript": Runtime("javascript", "18.15.0"),
    "typescript": Runtime("typescript", "5.0.3"),
}

_SCRIPT_LANGUAGES = ("javascript", "typescript")

_EXPRESS_REQUIRE = re.compile(r"""require\s*\(\s*['"]express['"]\s*\)""")


def resolve_runtime(language: str) -> Runtime:
    """Known names map to pinned Piston runtimes; anything else asks for the latest version."""
    return LANGUAGE_MAP.get(language.lower(), Runtime(language, "*"))


# ── Script preludes ───────────────────────────────────────────────────────────

JS_STDIN_HELPERS = r"""
// --- stdin helpers: input() reads a line, print() writes one ---
const __inputLines = (typeof __stdin !== 'undefined' ? __stdin : '').split('\n');
let __inputIndex = 0;

function input() {
    if (__inputIndex >= __inputLines.length) {
        return '';
    }
    return __inputLines[__inputIndex++];
}

function print(...args) {
    console.log(...args);
}
// ---
"""

# window.print() clashes with a TypeScript print(), hence println()
TS_STDIN_HELPERS = r"""
// --- stdin helpers: input() reads a line, println() writes one ---
const __inputLines: string[] = (typeof __stdin !== 'undefined' ? __stdin : '').split('\n');
let __inputIndex: number = 0;

const input = (): string => {
    if (__inputIndex >= __inputLines.length) {
        return '';
    }
    return __inputLines[__inputIndex++];
};

const println = (...args: any[]): void => {
    console.log(...args);
};
// ---
"""

EXPRESS_MOCK = r"""
// --- Express stand-in: routes are recorded, no port is opened ---
global.__LEARNIX_MOCK__ = { routes: [], listening: false, port: null };

global.LearnixTest = {
    expectRoute: (method, path) => {
        const found = global.__LEARNIX_MOCK__.routes.some(
            r => r.method === method.toUpperCase() && r.path === path
        );
        if (!found) {
            throw new Error(`❌ Test Failed: Expected route "${method.toUpperCase()} ${path}" to be defined, but it was not found.`);
        }
    },
    expectListening: (port) => {
        if (!global.__LEARNIX_MOCK__.listening) {
            throw new Error("❌ Test Failed: Expected server to be listening (app.listen), but it wasn't called.");
        }
        if (port && global.__LEARNIX_MOCK__.port !== port) {
            throw new Error(`❌ Test Failed: Expected server to listen on port ${port}, but it is listening on ${global.__LEARNIX_MOCK__.port}.`);
        }
    }
};

var require = (moduleName) => {
    if (moduleName === 'express') {
        const register = (method) => (path) => {
            console.log(`[MOCK] Registered ${method} ${path}`);
            global.__LEARNIX_MOCK__.routes.push({ method, path });
        };
        const app = () => ({
            listen: (port, cb) => {
                console.log(`\x1b[32m[MOCK SERVER] Server running at http://localhost:${port}\x1b[0m`);
                console.log('\x1b[33m[NOTE] This is a simulation. No real network port is opened.\x1b[0m');
                global.__LEARNIX_MOCK__.listening = true;
                global.__LEARNIX_MOCK__.port = port;
                if (cb) cb();
                return { close: () => {} };
            },
            get: register('GET'),
            post: register('POST'),
            put: register('PUT'),
            delete: register('DELETE'),
            all: register('ALL'),
            use: (arg) => register('USE')(typeof arg === 'string' ? arg : '/'),
        });
        app.static = () => {};
        app.json = () => {};
        app.urlencoded = () => {};
        return app;
    }
    try {
        return module.require(moduleName);
    } catch (e) {
        console.warn(`[WARNING] Module '${moduleName}' not installed in this playground.`);
        return {};
    }
};
// ---
"""


def prepare_source(language: str, source: str, stdin: str | None = None) -> str:
    """Prepend the stdin helpers, and the Express stand-in when needed, to JS/TS sources."""
    language = language.lower()
    if language not in _SCRIPT_LANGUAGES:
        return source

    helpers = TS_STDIN_HELPERS if language == "typescript" else JS_STDIN_HELPERS
    prepared = f"const __stdin = {json.dumps(stdin or '')};\n{helpers}\n{source}"
    if _EXPRESS_REQUIRE.search(source):
        logger.info("Injecting Express mock shim")
        prepared = f"{EXPRESS_MOCK}\n{prepared}"
    return prepared


# ── HTTP ──────────────────────────────────────────────────────────────────────

def _error_message(response: httpx.Response) -> str:
    try:
        message = response.json().get("message")
    except (json.JSONDecodeError, AttributeError):
        message = None
    return message or f"Piston returned status {response.status_code}"


async def execute(
    language: str,
    version: str,
    source: str,
    stdin: str | None,
    *,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PistonResult:
    payload = {
        "language": language,
        "version": version,
        "files": [{"content": source}],
        "stdin": stdin or "",
    }
    async with httpx.AsyncClient(
        timeout=settings.piston_timeout_seconds, transport=transport
    ) as client:
        try:
            response = await client.post(f"{settings.piston_api_url}/execute", json=payload)
        except httpx.HTTPError as exc:
            logger.error("Piston request failed: %s", exc)
            raise CodeExecutionError(str(exc) or None) from exc

    if response.status_code != 200:
        message = _error_message(response)
        logger.error("Execution failed: %s", message)
        raise CodeExecutionError(message)
    try:
        return PistonResult.model_validate(response.json())
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Unexpected Piston response: %s", response.text[:500])
        raise CodeExecutionError("Unexpected response from code execution service") from exc
