"""
MfgFlow - Manufacturing Management Backend
FastAPI Application Entry Point
"""
import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from mfgflow import __version__
from mfgflow.core import settings, engine, Base
from mfgflow.core.exception_handlers import setup_exception_handlers
from mfgflow.api import api_router
from mfgflow.jobs import start_scheduler, stop_scheduler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Lifespan for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables if not exist
    Base.metadata.create_all(bind=engine)
    logger.info(
        f"{settings.APP_NAME} starting on port {settings.APP_PORT} "
        f"(completion mode: {settings.COMPLETION_MODE})"
    )

    if settings.STOCK_AUDIT_ENABLED:
        start_scheduler()

    yield

    # Shutdown
    if settings.STOCK_AUDIT_ENABLED:
        stop_scheduler()
    logger.info(f"{settings.APP_NAME} shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Manufacturing orders, BOMs, work orders and stock ledger",
    version=__version__,
    lifespan=lifespan
)

setup_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api")


# Health check
@app.get("/health")
def health_check():
    return {
        "success": True,
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": __version__,
        "timestamp": datetime.now().isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )
