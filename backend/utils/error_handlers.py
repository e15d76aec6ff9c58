"""
Error types for the upload pipeline and helpers to turn them into responses.
"""

import logging
import traceback
from typing import Any, Dict, Optional, Union
from datetime import datetime, timezone

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error class."""

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        status_code: int = 500,
        details: Optional[Dict] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.user_message = user_message or message
        self.timestamp = datetime.now(timezone.utc).isoformat()


class InvalidFileType(AppError):
    """File extension and MIME type both fail the allow-list."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            code="INVALID_FILE_TYPE",
            status_code=400,
            **kwargs
        )


class DecodeError(AppError):
    """Image bytes could not be decoded."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            code="DECODE_ERROR",
            status_code=500,
            **kwargs
        )


class EncodeError(AppError):
    """Encoder failed to produce output bytes."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            code="ENCODE_ERROR",
            status_code=500,
            **kwargs
        )


class WriteError(AppError):
    """Derivative could not be written to its destination."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            code="WRITE_ERROR",
            status_code=500,
            **kwargs
        )


class DecoderError(AppError):
    """Multipart body could not be decoded (malformed, too large, too many parts)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            code="DECODER_ERROR",
            status_code=500,
            **kwargs
        )


def as_app_error(error: Exception) -> AppError:
    """Wrap an arbitrary exception so it can travel through the result channel."""
    if isinstance(error, AppError):
        return error
    return AppError(
        message=str(error) or type(error).__name__,
        code="INTERNAL_ERROR",
        status_code=500,
        user_message="An unexpected error occurred"
    )


def error_payload(error: Union[AppError, Exception]) -> Dict[str, Any]:
    """
    Build the JSON body for a failed upload.

    Args:
        error: The error to describe

    Returns:
        Dictionary shaped as ``{"code", "data", "error"}``
    """
    app_error = as_app_error(error)
    return {
        "code": app_error.status_code,
        "data": {},
        "error": {
            "type": app_error.code,
            "message": app_error.user_message,
            "details": app_error.details,
            "timestamp": app_error.timestamp
        }
    }


def error_response(error: Union[AppError, Exception]) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error: The error to convert to response

    Returns:
        JSONResponse with error details
    """
    if not isinstance(error, AppError):
        # Log the actual error
        logger.error(f"Unhandled error: {str(error)}", exc_info=error)

    payload = error_payload(error)
    return JSONResponse(
        status_code=payload["code"],
        content=payload
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """FastAPI exception handler for errors raised outside the upload manager."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(f"[{request_id}] {exc.code}: {exc.message}")
    return error_response(exc)


def log_error(error: Exception, context: Optional[Dict] = None):
    """
    Log error with context and traceback.

    Args:
        error: The error to log
        context: Additional context information
    """
    error_info = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_info["context"] = context

    if isinstance(error, AppError):
        error_info["error_code"] = error.code
        error_info["error_details"] = error.details
        logger.warning(f"{error.code}: {error.message}", extra={"error_info": error_info})
    else:
        error_info["traceback"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
        logger.error("Error occurred", extra={"error_info": error_info}, exc_info=error)
