"""
Upload-related models: options, incoming parts, derivative records and results
"""

import os
from dataclasses import dataclass
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from typing import List, Optional, Tuple, Any, Dict

DEFAULT_ALLOW_EXTENSION: Tuple[str, ...] = ("jpeg", "jpg", "png")


class UploadOptions(BaseModel):
    """Options for one upload manager; validated once, never mutated"""
    model_config = ConfigDict(frozen=True)

    file_compression: bool = False
    file_resize_ratio: Optional[Tuple[Tuple[PositiveInt, PositiveInt], ...]] = None
    allow_extension: Optional[Tuple[str, ...]] = None
    image_quality: int = Field(default=80, ge=1, le=100)
    base_path: str = Field(default_factory=os.getcwd)
    local_path: str = "../public"

    @field_validator("file_resize_ratio", mode="after")
    @classmethod
    def empty_ratios_mean_unset(cls, v):
        return v or None

    @field_validator("allow_extension", mode="after")
    @classmethod
    def empty_allow_list_means_default(cls, v):
        return v or None

    @property
    def extensions(self) -> Tuple[str, ...]:
        """Effective allow-list"""
        return self.allow_extension or DEFAULT_ALLOW_EXTENSION

    @property
    def output_dir(self) -> str:
        """Absolute directory derivatives are written to"""
        return os.path.abspath(os.path.join(self.base_path, self.local_path))

    @classmethod
    def from_settings(cls, settings) -> "UploadOptions":
        """Build options from the application settings"""
        values: Dict[str, Any] = {
            "file_compression": settings.UPLOAD_FILE_COMPRESSION,
            "file_resize_ratio": settings.UPLOAD_FILE_RESIZE_RATIO,
            "allow_extension": settings.UPLOAD_ALLOW_EXTENSION,
            "image_quality": settings.UPLOAD_IMAGE_QUALITY,
            "local_path": settings.UPLOAD_LOCAL_PATH,
        }
        if settings.UPLOAD_BASE_PATH:
            values["base_path"] = settings.UPLOAD_BASE_PATH
        return cls(**values)


@dataclass(frozen=True)
class IncomingFilePart:
    """One decoded file field of a multipart request"""
    field_name: str
    original_name: str
    encoding: str
    mime_type: str
    raw_bytes: bytes

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def size(self) -> int:
        return len(self.raw_bytes)


class DerivativeRecord(BaseModel):
    """Metadata for one produced derivative or deferred non-image file"""
    model_config = ConfigDict(frozen=True)

    field_name: str
    original_name: str
    encoding: str
    mime_type: str
    file_name: str
    destination_path: str
    size: int
    deferred: bool = False  # non-image, handed to remote upload instead of written locally


class UploadResult(BaseModel):
    """Outcome of one upload request"""
    code: int = 200
    data: List[DerivativeRecord] = []
    error: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response(self) -> Dict[str, Any]:
        """JSON body: records on success, ``{}`` plus error details on failure"""
        if self.ok:
            return {"code": self.code, "data": [r.model_dump() for r in self.data]}
        return {"code": self.code, "data": {}, "error": self.error}
