"""
questline.api.main — FastAPI application entry point
======================================================

Run with::

    uvicorn questline.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from questline.api.deps import get_engine  # noqa: E402
from questline.api.routes.assistant import router as assistant_router  # noqa: E402
from questline.api.routes.messages import router as messages_router  # noqa: E402
from questline.api.routes.profile import router as profile_router  # noqa: E402
from questline.api.routes.quests import router as quests_router  # noqa: E402
from questline.errors import PersistenceError, ValidationError  # noqa: E402

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
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    logger.info("Questline API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Questline API shutting down")


app = FastAPI(
    title="Questline API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=422)


@app.exception_handler(PersistenceError)
async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    # Already logged with traceback where it was wrapped.
    return JSONResponse({"error": "Storage is temporarily unavailable."}, status_code=503)


app.include_router(profile_router, prefix="/api")
app.include_router(quests_router, prefix="/api")
app.include_router(messages_router, prefix="/api")
app.include_router(assistant_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
