import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from learnix.admin.router import router as admin_router
from learnix.auth.router import router as auth_router
from learnix.config import get_settings
from learnix.courses.router import router as courses_router
from learnix.dashboard.router import router as dashboard_router
from learnix.database import init_db
from learnix.exercises.router import code_execution_router
from learnix.exercises.router import router as exercises_router
from learnix.middleware import error_envelope_middleware, request_id_middleware
from learnix.notifications.gateway import router as notifications_gateway
from learnix.notifications.router import router as notifications_router
from learnix.payments.router import router as payments_router
from learnix.quizzes.router import router as quizzes_router
from learnix.rate_limit import limiter
from learnix.upload.router import router as upload_router


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Learnix API

Backend for the Learnix learning platform:

* **Auth**: e-mail/password sign-up with activation links, Google and GitHub sign-in,
  password reset, role selection.
* **Courses**: public catalog, enrollment and lesson progress, instructor authoring,
  admin moderation, tag-based recommendations.
* **Quizzes**: authoring, AI generation from lesson text, taking and scoring.
* **Exercises**: a code playground and exercise grading, run remotely by Piston.
* **Payments**: mock card checkout for paid courses.
* **Notifications**: stored notifications plus live push over `/ws/notifications`.
* **Upload**: images, videos and documents stored on local disk, served under `/uploads`.

### Authentication
Either the encrypted `access_token` cookie set at login, or:
```
Authorization: Bearer <access_token>
```

### Error shape
Handled errors return `{ "detail": "Human-readable message" }`. Anything unexpected
returns `{ "error": {"code", "message"}, "request_id" }`.
"""

_TAGS_METADATA = [
    {"name": "auth", "description": "Sign-up, login, OAuth, password flows and the caller's profile."},
    {"name": "Courses", "description": "Catalog, enrollment, authoring and moderation."},
    {"name": "Quizzes", "description": "Quiz authoring, AI generation and submissions."},
    {"name": "Exercises", "description": "Code playground and exercise grading through Piston."},
    {"name": "Payments", "description": "Mock checkout and payment history."},
    {"name": "Notifications", "description": "In-app notifications."},
    {"name": "Upload", "description": "File uploads to local storage."},
    {"name": "Dashboard", "description": "Per-role dashboard figures."},
    {"name": "Admin", "description": "**Admin only.** Users and platform statistics."},
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.database_url)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Learnix API",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Last added = outermost; CORS wraps everything so 429s carry CORS headers too.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    for router in (
        auth_router,
        courses_router,
        quizzes_router,
        exercises_router,
        code_execution_router,
        payments_router,
        notifications_router,
        upload_router,
        dashboard_router,
        admin_router,
    ):
        app.include_router(router, prefix="/api/v1")
    app.include_router(notifications_gateway)

    upload_root = Path(settings.upload_path)
    upload_root.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_root), name="uploads")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="learnix")

    return app


app = create_app()
