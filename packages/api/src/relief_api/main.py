# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from relief_db import SessionLocal
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .routes import applications, drafts, funds, health, identities, profile, session
from .schemas.error import ErrorResponse
from .services.decision import get_decision_service
from .services.drafts import DraftCache
from .services.feed import get_change_feed
from .services.scratch import build_scratch_storage
from .services.seed import seed_funds
from .services.session import SessionRegistry, init_session_registry
from .services.verification import build_sso_linker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    logger.info("Starting %s", settings.APP_NAME)
    if settings.SEED_FUNDS:
        async with SessionLocal() as db:
            await seed_funds(db)

    scratch = build_scratch_storage()
    registry = init_session_registry(
        SessionRegistry(
            session_factory=SessionLocal,
            feed=get_change_feed(),
            drafts=DraftCache(scratch),
            decision_service=get_decision_service(),
            sso_linker=build_sso_linker(),
        )
    )
    yield
    await registry.close_all()
    await scratch.close()


app = FastAPI(
    title="Relief Portal API",
    description="Identity verification and eligibility access control for relief fund applicants",
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


_TITLES = {
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _problem(request: Request, status_code: int, detail: str, headers: dict | None = None) -> JSONResponse:
    """RFC 7807 Problem Details response carrying the caller's request id."""
    body = ErrorResponse(
        title=_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _problem(request, exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _problem(request, 422, str(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    response = _problem(request, 500, "An unexpected error occurred.")
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return response


for router, prefix, tag in (
    (health.router, "/health", "health"),
    (profile.router, "/api/profile", "profile"),
    (session.router, "/api/session", "session"),
    (identities.router, "/api/identities", "identities"),
    (applications.router, "/api/applications", "applications"),
    (drafts.router, "/api/drafts", "drafts"),
    (funds.router, "/api/funds", "funds"),
):
    app.include_router(router, prefix=prefix, tags=[tag])


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Welcome to the Relief Portal API"}
