"""
Model Aggregator backend.

Searches several 3D-model catalogs concurrently and serves one merged,
paginated result list.
"""
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

from exceptions import ModelAggregatorError
from observability.health import run_health_checks
from observability.middleware import ObservabilityMiddleware
from observability.sentry_config import init_sentry
from routes.models import alias_router, get_aggregation_service, router as models_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="Model Aggregator Backend",
    description="Concurrent search across 3D model catalogs",
    version=VERSION,
)


def _cors_origins():
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(models_router)
app.include_router(alias_router)


class HealthResponse(BaseModel):
    status: str
    version: str


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return {
        "status": "healthy",
        "version": VERSION,
    }


@app.get("/health/ready")
async def readiness_check():
    """
    Readiness check - reports registered sources.

    Returns 503 when no source adapter is registered.
    """
    report = run_health_checks(get_aggregation_service().repository)
    return JSONResponse(
        status_code=503 if report["status"] == "unhealthy" else 200,
        content=report,
    )


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(ModelAggregatorError)
async def aggregator_exception_handler(request: Request, exc: ModelAggregatorError):
    if exc.status_code >= 500:
        logger.error(f"[{type(exc).__name__}] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    - Logs full traceback
    - Returns safe error message to client
    """
    error_id = f"ERR-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}-{id(exc)}"

    logger.error(
        f"[ERROR {error_id}] Unhandled exception",
        extra={
            "error_id": error_id,
            "error_type": type(exc).__name__,
            "path": str(request.url.path),
            "method": request.method,
        },
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please try again.",
        },
    )


@app.on_event("startup")
async def startup_event():
    """Run on application startup"""
    logger.info(f"Model aggregator starting (environment: {os.getenv('ENVIRONMENT', 'development')})")
    init_sentry()
    sources = get_aggregation_service().repository.source_names()
    logger.info(f"Registered sources: {sources}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Model aggregator shutting down...")
