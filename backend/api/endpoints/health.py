"""
Health check endpoints
"""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from core.config import settings
from api.endpoints.upload import get_upload_manager
from services.upload_manager import UploadManager

router = APIRouter()


@router.get("/status")
async def health_status(manager: UploadManager = Depends(get_upload_manager)):
    """Get detailed health status"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "version": "0.1.0",
        "output_dir": manager.options.output_dir
    }


@router.get("/ready")
async def readiness_check(manager: UploadManager = Depends(get_upload_manager)):
    """Readiness check: ready once the output directory exists and is writable"""
    output_dir = manager.options.output_dir
    writable = os.path.isdir(output_dir) and os.access(output_dir, os.W_OK)
    return {"ready": writable, "output_dir": output_dir}
