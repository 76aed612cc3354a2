"""FastAPI application entrypoint — lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from botanica.config import get_settings
from botanica.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from botanica.routes import analysis, plants
from botanica.services.analysis_service import AnalysisService
from botanica.services.analysis_sessions import AnalysisSessionRegistry
from botanica.services.credentials import resolve_credential
from botanica.services.plant_store import PlantStore
from botanica.services.storage import build_storage

logger = structlog.get_logger("botanica")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Open the configured key-value storage backend
      3. Create the shared plant store, analysis client and session registry

    Shutdown:
      1. Cancel in-flight analyses
      2. Close the analysis HTTP client and the storage backend
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "Botanica starting",
        storage_backend=settings.storage_backend.value,
        storage_key=settings.storage_key,
        analysis_configured=resolve_credential(settings) is not None,
    )

    storage = build_storage(settings)
    http_client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)
    sessions = AnalysisSessionRegistry()

    app.state.storage = storage
    app.state.store = PlantStore(storage, settings.storage_key)
    app.state.analyzer = AnalysisService(settings, http_client)
    app.state.analysis_sessions = sessions

    yield

    logger.info("Botanica shutting down")
    await sessions.aclose()
    await http_client.aclose()
    await storage.aclose()


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    storage = getattr(app.state, "storage", None)
    if storage is None:
        storage_check = {"ok": False, "message": "storage not initialized"}
    elif await storage.ping():
        storage_check = {"ok": True, "message": "ok"}
    else:
        storage_check = {"ok": False, "message": "storage unreachable"}

    configured = resolve_credential() is not None
    return {
        "storage": storage_check,
        "analysis": {
            "ok": configured,
            "message": "ok" if configured else "no analysis API key configured",
        },
    }


app = FastAPI(
    title="Botanica API",
    description=(
        "Houseplant cabinet API — photo-based botanical analysis, plant records "
        "kept in a single key-value slot, watering/fertilizing/moisture history "
        "and the care calendar derived from it."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "botanica",
        "version": "0.1.0",
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Storage must answer; a missing analysis key degrades but does not fail."""
    checks = await _run_readiness_checks(app)
    ready = checks["storage"]["ok"]
    degraded = not all(check["ok"] for check in checks.values())
    body = {"status": "degraded" if degraded else "ok", "checks": checks}
    return JSONResponse(status_code=200 if ready else 503, content=body)


# ── Router registration ────────────────────────────────────────────────────
app.include_router(plants.router, prefix="/api/v1")
app.include_router(analysis.router, prefix="/api/v1")


def run() -> None:
    """Serve the API with uvicorn (``botanica-api`` console script)."""
    settings = get_settings()
    uvicorn.run(
        "botanica.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
