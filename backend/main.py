"""
Upload Manager API
Main FastAPI application entry point
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from core.config import settings
from core.middleware import RequestIDMiddleware, LoggingMiddleware
from api.router import api_router
from services.upload_manager import upload_manager
from utils.error_handlers import AppError, app_error_handler
from utils.file_utils import ensure_directory

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events"""
    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME} API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    output_dir = ensure_directory(upload_manager.options.output_dir)
    logger.info(f"Derivatives are written to {output_dir}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME} API...")
    upload_manager.shutdown(wait=True)
    logger.info("Transform workers stopped")


# Create FastAPI application
app = FastAPI(
    title="Upload Manager API",
    description="Multipart upload ingestion with compressed and resized image derivatives",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

app.add_exception_handler(AppError, app_error_handler)

# Include API routes under /api/v1
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint (kept outside /api for load balancers)"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }
