# main.py — SyncFlow API
# Features:
# - Request correlation IDs
# - Security headers
# - Domain errors rendered as {"detail", "code", "errors"?, "request_id"}
# - Optional demo-data seeding on startup
# - Health check with DB verification

import os
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from database import init_db, close_db, get_db_session, get_db_context
from exceptions import AppError, ValidationError
from llm import resolve_provider

APP_VERSION = "1.0.0"

# Logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("syncflow")


def _check_startup_config():
    """Log configuration problems that degrade features without stopping the app."""
    warnings = []

    provider = resolve_provider()
    if provider:
        logger.info(f"LLM provider configured: {provider[0]}")
    else:
        warnings.append(
            "No LLM provider configured — PR analysis and chat will return 502. "
            "Set OPENAI_API_KEY, GROQ_API_KEY or LOCAL_LLM_URL"
        )

    for w in warnings:
        logger.warning(w)

    return len(warnings) == 0


async def _seed_if_requested():
    if os.getenv("SEED_DATABASE", "false").lower() != "true":
        return
    from seed import seed_database
    from storage import Storage

    async with get_db_context() as session:
        await seed_database(Storage(session))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting SyncFlow v{APP_VERSION}...")
    await init_db()
    await _seed_if_requested()
    _check_startup_config()
    yield
    logger.info("Shutting down SyncFlow...")
    await close_db()


app = FastAPI(
    title="SyncFlow",
    description="Collaboration backend: kanban board, ADRs, AI-assisted PR reviews, activity feed and notifications",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ============================================================
# CORS
# ============================================================

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(",")
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE: Correlation IDs + Timing
# ============================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    correlation_id = request.headers.get("X-Correlation-ID", request_id)
    request.state.request_id = request_id
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Response-Time"] = f"{duration:.4f}s"

    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({duration:.3f}s) [rid={request_id[:8]}]"
    )
    return response


# ============================================================
# MIDDLEWARE: Security Headers
# ============================================================

@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _error_response(request: Request, exc: AppError) -> JSONResponse:
    content = exc.to_dict()
    content["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Body/query validation failures share the 400 shape raised by the store
    return _error_response(request, ValidationError.from_pydantic(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "code": AppError.code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import (
    users, kanban, adrs, pr_reviews, activities, notifications, chat, team,
)

app.include_router(users.router)
app.include_router(kanban.router)
app.include_router(adrs.router)
app.include_router(pr_reviews.router)
app.include_router(activities.router)
app.include_router(notifications.router)
app.include_router(chat.router)
app.include_router(team.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db_session)):
    """Health check with database connectivity verification"""
    db_status = "unknown"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)[:100]}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": APP_VERSION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "database": db_status,
        "services": {
            "api": "operational",
            "ai": "operational" if resolve_provider() else "unconfigured",
        },
    }


@app.get("/")
async def root():
    return {
        "name": "SyncFlow",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT") != "production",
        workers=int(os.getenv("WORKERS", 1)),
    )
