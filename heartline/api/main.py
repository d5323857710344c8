"""
heartline.api.main — FastAPI application entry point
======================================================

Run with::

    uvicorn heartline.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from heartline.api.deps import get_config, get_engine  # noqa: E402
from heartline.api.routes.members import router as members_router  # noqa: E402
from heartline.api.routes.messages import router as messages_router  # noqa: E402
from heartline.api.routes.requests import router as requests_router  # noqa: E402
from heartline.api.routes.transfers import router as transfers_router  # noqa: E402
from heartline.errors import HeartlineError, ValidationError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine and config."""
    engine = get_engine()
    config = get_config()
    logger.info(
        "Heartline API started for %s — engine ready (%s)",
        config.community_name, engine.url.database,
    )
    yield
    logger.info("Heartline API shutting down")


app = FastAPI(
    title="Heartline Recognition & Consent API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HeartlineError)
async def heartline_error_handler(request: Request, exc: HeartlineError) -> JSONResponse:
    """Serialise engine errors as ``{"error", "code", "message"}``."""
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query strings use the same envelope as engine errors."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    error = ValidationError("invalid-body", problems or "Request body is invalid")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Mount routers
app.include_router(transfers_router, prefix="/api")
app.include_router(requests_router, prefix="/api")
app.include_router(messages_router, prefix="/api")
app.include_router(members_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
