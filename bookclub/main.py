"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookclub.api import health, studies
from bookclub.core.database import init_db
from bookclub.core.exceptions import StudyError
from bookclub.core.settings import settings
from bookclub.workers.transition_sweep import sweep_scheduler

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting book club application...")

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    if settings.run_sweep_in_web:
        await sweep_scheduler.start()
    else:
        logger.info("Web server mode - study sweep runs in separate worker process")

    yield

    # Cleanup
    logger.info("Shutting down...")
    await sweep_scheduler.stop()
    logger.info("Application stopped")


# Create FastAPI app
app = FastAPI(
    title="Book Club Studies",
    description="Reading groups with capacity-limited enrollment and a dated life cycle",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(StudyError)
async def study_error_handler(request: Request, exc: StudyError) -> JSONResponse:
    """Render domain errors as JSON with a stable code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


# Include API routers
app.include_router(health.router)
app.include_router(studies.router, prefix="/api")


if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "bookclub.main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.env == "dev",
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
