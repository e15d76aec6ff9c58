"""
Derivative planning: how many outputs an accepted image yields, their size,
name and destination.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Set, Tuple

from models.upload import IncomingFilePart, UploadOptions
from services import image_transform
from utils.file_utils import get_file_extension, resolve_within, sanitize_filename


class TransformOperation(str, Enum):
    COMPRESS_AND_RESIZE = "compress_and_resize"
    RESIZE = "resize"
    COMPRESS = "compress"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class DerivativePlan:
    """One derivative to produce from an input image"""
    operation: TransformOperation
    file_name: str
    destination_path: str
    size: Optional[Tuple[int, int]] = None


def field_stem(field_name: str) -> str:
    """File-name safe form of a multipart field name"""
    return sanitize_filename(field_name, fallback="file")


def derivative_name(stem: str, timestamp: int,
                    size: Optional[Tuple[int, int]] = None) -> str:
    """``{stem}_{w}x{h}_{ts}.jpeg`` for resized outputs, ``{stem}_{ts}.jpeg`` otherwise"""
    if size:
        width, height = size
        return f"{stem}_{width}x{height}_{timestamp}.{image_transform.OUTPUT_EXTENSION}"
    return f"{stem}_{timestamp}.{image_transform.OUTPUT_EXTENSION}"


def passthrough_name(part: IncomingFilePart, timestamp: int,
                     stem: Optional[str] = None) -> str:
    """Name for a non-image part, keeping its original extension"""
    stem = stem or field_stem(part.field_name)
    extension = sanitize_filename(get_file_extension(part.original_name), fallback="bin")
    return f"{stem}_{timestamp}.{extension}"


def plan_derivatives(part: IncomingFilePart,
                     options: UploadOptions,
                     timestamp: int,
                     stem: Optional[str] = None) -> List[DerivativePlan]:
    """
    Decide which derivatives to produce for one accepted image.

    Resize ratios yield one plan each, in declared order; without ratios a
    single plan is produced. Duplicate ratios produce colliding names.

    Args:
        part: Accepted image part
        options: Upload options of the manager
        timestamp: Second-resolution Unix timestamp shared by the request
        stem: Name prefix; the sanitized field name when None

    Returns:
        Ordered list of DerivativePlan

    Raises:
        WriteError: If a destination would fall outside the output directory
    """
    stem = stem or field_stem(part.field_name)
    output_dir = options.output_dir

    if options.file_resize_ratio:
        operation = (
            TransformOperation.COMPRESS_AND_RESIZE
            if options.file_compression
            else TransformOperation.RESIZE
        )
        plans = []
        for width, height in options.file_resize_ratio:
            file_name = derivative_name(stem, timestamp, (width, height))
            plans.append(DerivativePlan(
                operation=operation,
                file_name=file_name,
                destination_path=resolve_within(output_dir, file_name),
                size=(width, height),
            ))
        return plans

    operation = (
        TransformOperation.COMPRESS
        if options.file_compression
        else TransformOperation.PASSTHROUGH
    )
    file_name = derivative_name(stem, timestamp)
    return [DerivativePlan(
        operation=operation,
        file_name=file_name,
        destination_path=resolve_within(output_dir, file_name),
    )]


class RequestNaming:
    """
    Hands out file names that are unique within one request.

    Parts sharing a field name get ``-1``, ``-2``... appended to the stem of
    every repeat, so ``photos`` twice yields ``photos_{ts}.jpeg`` and
    ``photos-1_{ts}.jpeg``.
    """

    def __init__(self, options: UploadOptions, timestamp: int):
        self.options = options
        self.timestamp = timestamp
        self._taken: Set[str] = set()

    def plan_image(self, part: IncomingFilePart) -> List[DerivativePlan]:
        return self._claim(
            part,
            lambda stem: plan_derivatives(part, self.options, self.timestamp, stem),
            lambda plans: [plan.file_name for plan in plans]
        )

    def name_file(self, part: IncomingFilePart) -> str:
        return self._claim(
            part,
            lambda stem: passthrough_name(part, self.timestamp, stem),
            lambda name: [name]
        )

    def _claim(self, part: IncomingFilePart, build: Callable, names_of: Callable):
        base = field_stem(part.field_name)
        occurrence = 0
        while True:
            stem = base if occurrence == 0 else f"{base}-{occurrence}"
            planned = build(stem)
            names = names_of(planned)
            if self._taken.isdisjoint(names):
                self._taken.update(names)
                return planned
            occurrence += 1


def execute_plan(plan: DerivativePlan, data: bytes, quality: int) -> bytes:
    """Run the transform a plan calls for and return the bytes to write"""
    if plan.operation is TransformOperation.COMPRESS_AND_RESIZE:
        width, height = plan.size
        return image_transform.compress_and_resize(data, width, height, quality)
    if plan.operation is TransformOperation.RESIZE:
        width, height = plan.size
        return image_transform.resize(data, width, height)
    if plan.operation is TransformOperation.COMPRESS:
        return image_transform.compress(data, quality)

    # Passthrough keeps the original bytes, but they still have to be an image
    image_transform.verify_image(data)
    return data
