"""
Multipart decoding into in-memory file parts.

Parsing is delegated to Starlette's form parser (python-multipart). This module
only enforces size and count limits and converts uploaded files to
IncomingFilePart values, in the order they appear in the body.
"""

import logging
from typing import List

from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect, Request

from models.upload import IncomingFilePart
from utils.error_handlers import DecoderError

logger = logging.getLogger(__name__)

DEFAULT_TRANSFER_ENCODING = "7bit"
DEFAULT_MIME_TYPE = "application/octet-stream"


class MultipartDecoder:
    """Decode a request body into file parts with whole-body limits"""

    def __init__(self, max_upload_size: int, max_files: int):
        self.max_upload_size = max_upload_size
        self.max_files = max_files

    def _check_declared_length(self, request: Request) -> None:
        content_length = request.headers.get("content-length")
        if content_length is None:
            return
        try:
            declared = int(content_length)
        except ValueError:
            raise DecoderError(
                "Invalid Content-Length header",
                details={"content_length": content_length}
            )
        if declared > self.max_upload_size:
            raise DecoderError(
                "Request body too large",
                details={"size": declared, "max_size": self.max_upload_size}
            )

    async def decode(self, request: Request) -> List[IncomingFilePart]:
        """
        Parse the request's multipart body.

        Args:
            request: Incoming Starlette/FastAPI request

        Returns:
            File parts in body order; plain form fields are ignored

        Raises:
            DecoderError: Malformed body, too many parts or body too large
        """
        self._check_declared_length(request)

        try:
            form = await request.form(max_files=self.max_files, max_fields=self.max_files)
        except MultiPartException as e:
            raise DecoderError(f"Malformed multipart body: {e.message}") from e
        except StarletteHTTPException as e:
            raise DecoderError(f"Malformed multipart body: {e.detail}") from e
        except ClientDisconnect as e:
            raise DecoderError("Client disconnected while sending the body") from e

        parts: List[IncomingFilePart] = []
        total_size = 0
        try:
            for field_name, value in form.multi_items():
                if not isinstance(value, UploadFile):
                    continue

                content = await value.read()
                total_size += len(content)
                if total_size > self.max_upload_size:
                    raise DecoderError(
                        "Request body too large",
                        details={"size": total_size, "max_size": self.max_upload_size}
                    )

                parts.append(IncomingFilePart(
                    field_name=field_name,
                    original_name=value.filename or "",
                    encoding=value.headers.get("content-transfer-encoding", DEFAULT_TRANSFER_ENCODING),
                    mime_type=value.content_type or DEFAULT_MIME_TYPE,
                    raw_bytes=content,
                ))
        finally:
            await form.close()

        logger.debug(f"Decoded {len(parts)} file part(s), {total_size} bytes")
        return parts
