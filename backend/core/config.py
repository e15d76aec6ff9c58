"""
Application configuration management
"""

from typing import Annotated, List, Optional, Tuple
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings"""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Upload Manager"

    # CORS Settings
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:8000"]

    # Multipart decoding limits
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50MB
    MAX_UPLOAD_FILES: int = 1000

    # Derivative generation
    UPLOAD_FILE_COMPRESSION: bool = False
    UPLOAD_FILE_RESIZE_RATIO: Annotated[Optional[List[Tuple[int, int]]], NoDecode] = None
    UPLOAD_ALLOW_EXTENSION: Annotated[Optional[List[str]], NoDecode] = None
    UPLOAD_IMAGE_QUALITY: int = 80
    UPLOAD_BASE_PATH: Optional[str] = None  # process working directory when unset
    UPLOAD_LOCAL_PATH: str = "../public"

    # Worker pool for CPU-bound transforms
    TRANSFORM_WORKERS: int = 4

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("UPLOAD_ALLOW_EXTENSION", mode="before")
    @classmethod
    def parse_allow_extension(cls, v):
        if isinstance(v, str):
            return [ext.strip() for ext in v.split(",") if ext.strip()] or None
        return v

    @field_validator("UPLOAD_FILE_RESIZE_RATIO", mode="before")
    @classmethod
    def parse_resize_ratio(cls, v):
        # "100x100,200x200" -> [(100, 100), (200, 200)]
        if isinstance(v, str):
            ratios = []
            for item in v.split(","):
                item = item.strip().lower()
                if not item:
                    continue
                width, _, height = item.partition("x")
                ratios.append((int(width), int(height)))
            return ratios or None
        return v


# Create settings instance
settings = Settings()
