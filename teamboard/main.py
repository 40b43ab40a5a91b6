"""
FastAPI application for the Team Task Board
"""
import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from teamboard.api.v1.router import api_router
from teamboard.config import settings
from teamboard.core.database import async_session_factory, close_db, init_db
from teamboard.core.exceptions import APIException
from teamboard.core.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


def error_response(status_code: int, code: str, message: str, details: Optional[Any] = None) -> JSONResponse:
    """Error envelope shared by every failure the API reports"""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message, "details": details},
            "timestamp": time.time()
        }
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")
    try:
        await init_db()
    except Exception as e:
        # Keep serving; /health reports the database as unhealthy
        logger.error(f"Database initialization failed: {e}")
    yield
    await close_db()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Team kanban board with role-gated card workflow",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.perf_counter() - started:.6f}"
    return response


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return error_response(exc.status_code, exc.error_code, exc.message, exc.details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}", exc_info=True)
    details = None
    if settings.debug:
        details = {"exception_type": type(exc).__name__, "traceback": traceback.format_exc()}
    return error_response(500, "SYS_001", "Internal server error", details)


@app.get("/")
async def root():
    return {
        "success": True,
        "data": {
            "message": f"Welcome to the {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.environment
        },
        "timestamp": time.time()
    }


@app.get("/health")
async def health_check():
    """Liveness plus a round trip to the database"""
    database = {"status": "healthy", "error": None}
    try:
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        database = {"status": "unhealthy", "error": str(e)}

    return {
        "success": True,
        "data": {
            "status": "healthy" if database["status"] == "healthy" else "degraded",
            "version": settings.app_version,
            "database": database
        },
        "timestamp": time.time()
    }


app.include_router(api_router, prefix="/api")
