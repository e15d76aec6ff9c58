"""
Allow-list gate for incoming file parts.

Entries are literal substrings: a part passes when any entry occurs in its
lower-cased extension or in its MIME type. ``"jp"`` therefore admits
``"jpeg"``, and ``"png"`` admits ``"image/apng"``.
"""

import re
import logging
from typing import Iterable, Pattern

from models.upload import IncomingFilePart, DEFAULT_ALLOW_EXTENSION
from utils.error_handlers import InvalidFileType
from utils.file_utils import get_file_extension

logger = logging.getLogger(__name__)


def build_pattern(allow_list: Iterable[str]) -> Pattern:
    """Compile the allow-list into a single alternation of literal substrings"""
    entries = [re.escape(entry) for entry in allow_list if entry]
    if not entries:
        entries = [re.escape(entry) for entry in DEFAULT_ALLOW_EXTENSION]
    return re.compile("(" + "|".join(entries) + ")")


def accepts(original_name: str, mime_type: str, allow_list: Iterable[str]) -> bool:
    """Return True when the extension or MIME type matches the allow-list"""
    pattern = build_pattern(allow_list)
    return _matches(pattern, original_name, mime_type)


def _matches(pattern: Pattern, original_name: str, mime_type: str) -> bool:
    extension = get_file_extension(original_name or "").lower()
    return bool(pattern.search(extension) or pattern.search(mime_type or ""))


class ExtensionFilter:
    """Compiled allow-list bound to one upload manager"""

    def __init__(self, allow_list: Iterable[str] = DEFAULT_ALLOW_EXTENSION):
        self.allow_list = tuple(allow_list)
        self.pattern = build_pattern(self.allow_list)

    def accepts(self, original_name: str, mime_type: str) -> bool:
        return _matches(self.pattern, original_name, mime_type)

    def check(self, part: IncomingFilePart) -> None:
        """
        Raise InvalidFileType when the part is not allowed.

        Args:
            part: Decoded file part to gate
        """
        if self.accepts(part.original_name, part.mime_type):
            return

        logger.info(
            f"Rejected part '{part.field_name}' ({part.original_name}, {part.mime_type})"
        )
        raise InvalidFileType(
            f"File type not allowed: {part.original_name}",
            details={
                "field_name": part.field_name,
                "original_name": part.original_name,
                "mime_type": part.mime_type,
                "allowed": list(self.allow_list),
            }
        )
