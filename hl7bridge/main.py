"""
HL7 Bridge - Main Application Entry Point
HL7 v2.x interoperability pipeline: parsing, validation, FHIR conversion
and post-conversion agent review.
"""

# Load environment variables
import os
from dotenv import load_dotenv

load_dotenv()

from contextlib import asynccontextmanager
import logging
import uuid

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hl7bridge import __version__
from hl7bridge.api.v1.api import api_router as v1_router
from hl7bridge.config import get_region, get_settings, is_phi_allowed_in_logs
from hl7bridge.metrics import get_metrics
from hl7bridge.models import HealthCheckResponse
from hl7bridge.security_utils.phi_filter import redact_phi
from hl7bridge.utils.error_responses import create_error_response

settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle management - startup and shutdown
    """
    logger.info("Starting HL7 Bridge (region=%s, simulation_enabled=%s)", get_region(), settings.simulation_enabled)
    yield
    logger.info("Shutting down HL7 Bridge")


# Create FastAPI application
app = FastAPI(
    title="HL7 Bridge",
    description="HL7 v2.x to FHIR interoperability pipeline",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(v1_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.get("/health", response_model=HealthCheckResponse)
async def root_health():
    """
    Lightweight health check for container orchestration.
    """
    return HealthCheckResponse(
        status="healthy",
        service="HL7 Bridge",
        version=__version__,
        region=get_region(),
        metrics=get_metrics().get_stats(),
    )


# ==================== ERROR HANDLERS ====================

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled exceptions.
    """
    correlation_id = getattr(request.state, "correlation_id", uuid.uuid4().hex)

    logger.error(
        "Unhandled exception [%s] at %s %s: %s",
        correlation_id,
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=is_phi_allowed_in_logs(),
    )

    payload = create_error_response(
        "An unexpected error occurred",
        status_code=500,
        correlation_id=correlation_id,
        error_type=type(exc).__name__,
        path=str(request.url.path),
    )
    if os.getenv("DEBUG", "False").lower() == "true":
        payload["detail"] = redact_phi(str(exc))

    return JSONResponse(status_code=500, content=payload)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    HTTP exception handler with a consistent error body.
    """
    correlation_id = getattr(request.state, "correlation_id", uuid.uuid4().hex)

    if exc.status_code >= 500:
        logger.error("HTTPException [%s] %s: %s", correlation_id, exc.status_code, exc.detail)
    else:
        logger.warning("HTTPException [%s] %s: %s", correlation_id, exc.status_code, exc.detail)

    payload = create_error_response(
        exc.detail if exc.detail else "Request failed",
        status_code=exc.status_code,
        correlation_id=correlation_id,
    )

    return JSONResponse(status_code=exc.status_code, content=payload)


# ==================== MAIN ====================

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    logger.info("Starting HL7 Bridge on %s:%s", host, port)

    uvicorn.run(
        app,
        host=host,
        port=port,
        reload=os.getenv("DEBUG", "False").lower() == "true",
    )
