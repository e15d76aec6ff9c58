"""
Upload manager: decodes a multipart request, gates its parts, produces image
derivatives and reports the outcome as a single UploadResult.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.config import settings
from models.upload import DerivativeRecord, IncomingFilePart, UploadOptions, UploadResult
from services.derivative_planner import DerivativePlan, RequestNaming, execute_plan
from services.extension_filter import ExtensionFilter
from services.multipart import MultipartDecoder
from services.storage import local_storage, remote_upload_stub
from utils.error_handlers import AppError, as_app_error, error_payload, log_error
from utils.file_utils import resolve_within, unix_timestamp

logger = logging.getLogger(__name__)

UploadCallback = Callable[[Optional[AppError], Optional[Dict[str, Any]]], None]


class UploadManager:
    """
    Turns multipart uploads into image derivatives on disk.

    A manager holds only read-only state (options, the compiled allow-list and
    a transform worker pool), so one instance can serve concurrent requests.
    One bad part fails the whole request; files already written stay on disk.
    """

    def __init__(
        self,
        options: Optional[UploadOptions] = None,
        storage=None,
        remote=None,
        decoder: Optional[MultipartDecoder] = None,
        max_workers: Optional[int] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize upload manager.

        Args:
            options: Upload options (defaults when None)
            storage: Sink with ``async write(path, content) -> int``
            remote: Sink with ``async enqueue(part, file_name)`` for non-image files
            decoder: Multipart decoder (settings limits when None)
            max_workers: Size of the transform worker pool
            clock: Source of the naming timestamp
        """
        self.options = options or UploadOptions()
        self.extension_filter = ExtensionFilter(self.options.extensions)
        self.storage = storage or local_storage
        self.remote = remote or remote_upload_stub
        self.decoder = decoder or MultipartDecoder(
            max_upload_size=settings.MAX_UPLOAD_SIZE,
            max_files=settings.MAX_UPLOAD_FILES
        )
        self.clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.TRANSFORM_WORKERS,
            thread_name_prefix="transform"
        )

    async def upload_files(
        self,
        request,
        callback: Optional[UploadCallback] = None
    ) -> UploadResult:
        """
        Process every file part of a multipart request.

        Never raises for upload failures; the error travels in the result.
        When a callback is given it is invoked exactly once, as
        ``callback(None, {"code": 200, "data": records})`` on success or
        ``callback(error, None)`` on failure.

        Args:
            request: Starlette/FastAPI request with a multipart body
            callback: Optional completion callback

        Returns:
            UploadResult with code 200 and records, or the error's status
        """
        started = time.perf_counter()
        try:
            parts = await self.decoder.decode(request)
            logger.info(f"Upload started: {len(parts)} file part(s)")
            records = await self.process_parts(parts)
        except Exception as e:
            error = as_app_error(e)
            log_error(e, context={"stage": "upload_files"})
            result = UploadResult(
                code=error.status_code,
                data=[],
                error=error_payload(error)["error"]
            )
            if callback:
                callback(error, None)
            return result

        logger.info(
            f"Upload finished: {len(records)} record(s) "
            f"in {time.perf_counter() - started:.3f}s"
        )
        result = UploadResult(code=200, data=records)
        if callback:
            callback(None, {"code": 200, "data": list(records)})
        return result

    async def process_parts(self, parts: Sequence[IncomingFilePart]) -> List[DerivativeRecord]:
        """
        Gate and process decoded parts in order.

        Every part is checked against the allow-list before any is processed,
        so a rejected part means nothing is written for the request.

        Raises:
            InvalidFileType, DecodeError, EncodeError, WriteError
        """
        for part in parts:
            self.extension_filter.check(part)

        naming = RequestNaming(self.options, unix_timestamp(self.clock()))
        records: List[DerivativeRecord] = []
        for part in parts:
            if part.is_image:
                records.extend(await self._process_image(part, naming))
            else:
                records.append(await self._defer_file(part, naming))
        return records

    async def _process_image(self, part: IncomingFilePart, naming: RequestNaming) -> List[DerivativeRecord]:
        plans = naming.plan_image(part)
        tasks = [asyncio.ensure_future(self._produce(part, plan)) for plan in plans]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # Stop sibling derivatives of the failed one before propagating
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _produce(self, part: IncomingFilePart, plan: DerivativePlan) -> DerivativeRecord:
        loop = asyncio.get_running_loop()
        content = await loop.run_in_executor(
            self._executor,
            execute_plan,
            plan,
            part.raw_bytes,
            self.options.image_quality
        )
        size = await self.storage.write(plan.destination_path, content)
        logger.debug(f"Wrote {plan.operation.value} derivative {plan.destination_path} ({size} bytes)")

        return DerivativeRecord(
            field_name=part.field_name,
            original_name=part.original_name,
            encoding=part.encoding,
            mime_type=part.mime_type,
            file_name=plan.file_name,
            destination_path=plan.destination_path,
            size=size,
        )

    async def _defer_file(self, part: IncomingFilePart, naming: RequestNaming) -> DerivativeRecord:
        file_name = naming.name_file(part)
        await self.remote.enqueue(part, file_name)

        return DerivativeRecord(
            field_name=part.field_name,
            original_name=part.original_name,
            encoding=part.encoding,
            mime_type=part.mime_type,
            file_name=file_name,
            destination_path=resolve_within(self.options.output_dir, file_name),
            size=part.size,
            deferred=True,
        )

    def shutdown(self, wait: bool = True):
        """Release the transform worker pool"""
        self._executor.shutdown(wait=wait)


# Singleton instance
upload_manager = UploadManager(UploadOptions.from_settings(settings))
