"""
Unit tests for the extension allow-list gate.
"""

import unittest

from models.upload import IncomingFilePart
from services.extension_filter import ExtensionFilter, accepts, build_pattern
from utils.error_handlers import InvalidFileType


def make_part(original_name: str, mime_type: str, field_name: str = "file") -> IncomingFilePart:
    return IncomingFilePart(
        field_name=field_name,
        original_name=original_name,
        encoding="7bit",
        mime_type=mime_type,
        raw_bytes=b"",
    )


class TestAccepts(unittest.TestCase):
    """Test the functional accepts() contract."""

    def test_default_extensions_accepted(self):
        allow = ["jpeg", "jpg", "png"]
        self.assertTrue(accepts("photo.jpg", "image/jpeg", allow))
        self.assertTrue(accepts("photo.png", "image/png", allow))
        self.assertTrue(accepts("photo.jpeg", "application/octet-stream", allow))

    def test_extension_is_lower_cased(self):
        self.assertTrue(accepts("PHOTO.JPG", "application/octet-stream", ["jpg"]))

    def test_mime_type_alone_is_enough(self):
        self.assertTrue(accepts("upload.bin", "image/png", ["png"]))

    def test_rejects_when_neither_matches(self):
        self.assertFalse(accepts("notes.txt", "text/plain", ["jpeg", "jpg", "png"]))

    def test_matching_is_substring_based(self):
        self.assertTrue(accepts("photo.jpeg", "application/octet-stream", ["jp"]))

    def test_allow_list_is_case_sensitive_for_mime(self):
        self.assertFalse(accepts("scan.bin", "image/png", ["PNG"]))

    def test_name_without_dot_is_tested_whole(self):
        self.assertTrue(accepts("png", "application/octet-stream", ["png"]))
        self.assertFalse(accepts("README", "text/plain", ["png"]))

    def test_entries_are_literal(self):
        # "." must not act as a regex wildcard
        self.assertFalse(accepts("file.pdf", "application/pdf", ["p.f"]))

    def test_empty_allow_list_falls_back_to_defaults(self):
        pattern = build_pattern([])
        self.assertTrue(pattern.search("jpeg"))
        self.assertFalse(pattern.search("gif"))


class TestExtensionFilter(unittest.TestCase):
    """Test the compiled filter used by the upload manager."""

    def setUp(self):
        self.extension_filter = ExtensionFilter(["jpeg", "jpg", "png", "pdf"])

    def test_check_passes_allowed_part(self):
        self.extension_filter.check(make_part("report.pdf", "application/pdf"))

    def test_check_raises_invalid_file_type(self):
        with self.assertRaises(InvalidFileType) as ctx:
            self.extension_filter.check(make_part("clip.mp4", "video/mp4", field_name="video"))

        error = ctx.exception
        self.assertEqual(error.status_code, 400)
        self.assertEqual(error.code, "INVALID_FILE_TYPE")
        self.assertEqual(error.details["field_name"], "video")
        self.assertEqual(error.details["original_name"], "clip.mp4")


if __name__ == '__main__':
    unittest.main()
