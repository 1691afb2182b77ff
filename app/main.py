"""Main FastAPI application."""

import logging
import os
import time

import psutil
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import analytics, health
from app.core.config import get_settings
from app.core.logging_config import configure_logging
from src.analytics import InsufficientDataError, InvalidInputError, InvalidParametersError

logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Performance logging middleware
@app.middleware("http")
async def log_performance(request: Request, call_next):
    """Log request execution time and memory usage."""
    process = psutil.Process(os.getpid())

    start_time = time.time()
    start_memory = process.memory_info().rss / 1024 / 1024  # MB

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    end_memory = process.memory_info().rss / 1024 / 1024  # MB
    memory_used = end_memory - start_memory

    # Slow requests are surfaced at WARNING
    level = logging.WARNING if duration_ms >= 500 else logging.INFO
    logger.log(
        level,
        "[PERF] %-6s %s | %d | %.2fms | %+.2fMB | RSS: %.1fMB",
        request.method, request.url.path, response.status_code,
        duration_ms, memory_used, end_memory
    )

    return response


# Error handlers
@app.exception_handler(InsufficientDataError)
async def insufficient_data_handler(request: Request, exc: InsufficientDataError):
    return JSONResponse(
        status_code=400,
        content={"error": "Insufficient data", "message": str(exc)}
    )


@app.exception_handler(InvalidParametersError)
async def invalid_parameters_handler(request: Request, exc: InvalidParametersError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid parameters", "message": str(exc)}
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input", "message": str(exc)}
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    configure_logging(settings.log_level, settings.log_format)
    logger.info("%s v%s started", settings.app_name, settings.app_version)
    logger.info("API docs available at /docs")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("%s shutting down", settings.app_name)


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(analytics.router, prefix="/api/v1", tags=["Analytics"])
