"""
Storage sinks for derivatives
"""

import os
import logging
import aiofiles

from models.upload import IncomingFilePart
from utils.error_handlers import WriteError
from utils.file_utils import ensure_directory

logger = logging.getLogger(__name__)


class LocalStorage:
    """Writes derivative bytes to the local filesystem"""

    async def write(self, destination_path: str, content: bytes) -> int:
        """
        Write bytes to an absolute destination, creating its directory.
        Returns: number of bytes written
        """
        try:
            ensure_directory(os.path.dirname(destination_path))
            async with aiofiles.open(destination_path, 'wb') as f:
                await f.write(content)
        except OSError as e:
            raise WriteError(
                f"Failed to write {destination_path}",
                details={"path": destination_path, "error": str(e)}
            ) from e

        return len(content)


class RemoteUploadStub:
    """Hand-off point for non-image files; remote upload is not implemented"""

    async def enqueue(self, part: IncomingFilePart, file_name: str) -> None:
        logger.debug(
            f"Deferred remote upload of '{part.original_name}' as {file_name} "
            f"({part.size} bytes, {part.mime_type})"
        )


# Singleton instances
local_storage = LocalStorage()
remote_upload_stub = RemoteUploadStub()
