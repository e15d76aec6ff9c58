"""
File handling utilities
"""

import os
import time
from pathlib import Path
from typing import Optional, Union

from utils.error_handlers import WriteError


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if not"""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_file_extension(filename: str) -> str:
    """Get the text after the last dot, or the whole name when there is none"""
    return filename.rsplit(".", 1)[-1]


def sanitize_filename(filename: str, fallback: str = "file") -> str:
    """Sanitize a client-supplied name for use inside a file name"""
    # Remove path components
    filename = os.path.basename(filename.replace("\\", "/"))
    # Replace spaces and special characters
    filename = "".join(c if c.isalnum() or c in ".-_" else "_" for c in filename)
    filename = filename.strip(".")
    return filename or fallback


def unix_timestamp(now: Optional[float] = None) -> int:
    """Second-resolution Unix timestamp"""
    return int(time.time() if now is None else now)


def resolve_path(*segments: str) -> str:
    """Resolve segments right-to-left into an absolute path, without following symlinks"""
    return os.path.abspath(os.path.join(*segments))


def resolve_within(directory: str, file_name: str) -> str:
    """Resolve file_name inside directory, refusing anything that lands outside it"""
    root = os.path.abspath(directory)
    path = resolve_path(root, file_name)
    if os.path.dirname(path) != root:
        raise WriteError(
            f"Destination escapes the output directory: {file_name}",
            details={"file_name": file_name, "output_dir": root}
        )
    return path
