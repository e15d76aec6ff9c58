"""
File upload endpoint
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from services.upload_manager import UploadManager, upload_manager

logger = logging.getLogger(__name__)

router = APIRouter()


def get_upload_manager() -> UploadManager:
    """Dependency returning the shared upload manager"""
    return upload_manager


@router.post("")
async def upload_files(
    request: Request,
    manager: UploadManager = Depends(get_upload_manager)
):
    """
    Upload any number of files as multipart/form-data.

    - Rejects the request if any part fails the extension allow-list (400)
    - Produces compressed and/or resized JPEG derivatives for image parts
    - Returns metadata for every derivative in request order
    """
    result = await manager.upload_files(request)

    if not result.ok:
        request_id = getattr(request.state, "request_id", "unknown")
        logger.info(f"[{request_id}] Upload failed with {result.code}: {result.error['type']}")

    return JSONResponse(status_code=result.code, content=result.to_response())
