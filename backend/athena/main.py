"""
Athena FastAPI Application Entry Point.

Run with: uvicorn athena.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from athena.api.routes import conversations, tutor
from athena.config import get_settings
from athena.db.session import engine
from athena.errors import AthenaError, StoreUnavailable

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup: refuse to serve without a database
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.critical("Database unreachable at startup: %s", e)
        raise StoreUnavailable("database is unreachable") from e
    logger.info("%s started (%s)", settings.app_name, settings.environment)
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Conversational tutoring API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AthenaError)
async def athena_error_handler(request: Request, exc: AthenaError) -> JSONResponse:
    """Store or gateway failures outside the tutoring routes."""
    logger.error("Request %s %s failed: %r", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Request failed"},
    )


# Include routers
app.include_router(tutor.router)
app.include_router(conversations.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
