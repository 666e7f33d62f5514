"""
docpipe/main.py

FastAPI application entry point.

Responsibilities:
  - Create the FastAPI app with metadata from config
  - Cap upload body sizes before routes buffer them
  - Register all API routers
  - Sweep stale scratch files on startup; close the storage client on shutdown
  - Add global exception handlers for AppBaseException that escape controllers
  - Expose a /health endpoint for liveness probes
"""

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docpipe.api.body_limit import BodySizeLimitMiddleware
from docpipe.api.convert_controller import router as convert_router
from docpipe.api.priority_controller import router as priority_router
from docpipe.api.upload_controller import router as upload_router
from docpipe.core.config import settings
from docpipe.core.exceptions import AppBaseException, UploadTooLargeError
from docpipe.core.logger import get_logger
from docpipe.services.conversion_service import conversion_service
from docpipe.services.upload_service import upload_service

logger = get_logger(__name__)


def _upload_limits() -> Dict[str, int]:
    """Per-route body limits, read on every request."""
    return {
        "/convert": settings.max_upload_bytes,
        "/upload": settings.storage_max_upload_bytes,
    }


# ── Lifespan ───────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    conversion_service.store.sweep(settings.scratch_sweep_age_seconds)
    logger.info("%s %s started.", settings.app_name, settings.app_version)
    try:
        yield
    finally:
        await upload_service.storage.aclose()


# ── App instance ───────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Converts site spreadsheets to PDF, stores uploaded files in object "
        "storage, and suggests task priorities."
    ),
    lifespan=lifespan,
)

app.add_middleware(BodySizeLimitMiddleware, limits=_upload_limits)

# ── Routers ────────────────────────────────────────────────────────────────────

app.include_router(convert_router)
app.include_router(upload_router)
app.include_router(priority_router)

# ── Global exception handlers ──────────────────────────────────────────────────

@app.exception_handler(UploadTooLargeError)
async def upload_too_large_handler(request: Request, exc: UploadTooLargeError) -> JSONResponse:
    """Body limit tripped somewhere a controller did not translate it."""
    logger.warning("Body limit exceeded on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=413, content={"error": f"File too large (max {exc.limit} bytes)."})


@app.exception_handler(AppBaseException)
async def app_exception_handler(request: Request, exc: AppBaseException) -> JSONResponse:
    """
    Safety-net for any AppBaseException that escapes controller-level handling.
    The detail is logged; the client only sees a generic message.
    """
    logger.exception("Unhandled application error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error."})


# ── Health endpoint ────────────────────────────────────────────────────────────

@app.get("/health", tags=["Health"], summary="Liveness probe")
async def health() -> dict:
    """Returns 200 OK when the service is running."""
    return {"status": "ok", "version": settings.app_version}
