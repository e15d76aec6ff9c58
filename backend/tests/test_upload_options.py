"""
Tests for upload options validation and settings parsing.
"""

import os

import pytest
from pydantic import ValidationError

from core.config import Settings
from models.upload import DEFAULT_ALLOW_EXTENSION, UploadOptions


class TestUploadOptions:
    """Construction-time validation and defaults."""

    def test_defaults(self):
        options = UploadOptions()

        assert options.file_compression is False
        assert options.file_resize_ratio is None
        assert options.extensions == DEFAULT_ALLOW_EXTENSION
        assert options.image_quality == 80
        assert options.base_path == os.getcwd()
        assert options.local_path == "../public"

    @pytest.mark.parametrize("quality", [1, 100])
    def test_boundary_quality_accepted(self, quality):
        assert UploadOptions(image_quality=quality).image_quality == quality

    @pytest.mark.parametrize("quality", [0, 101, -1, 1000])
    def test_out_of_range_quality_rejected(self, quality):
        with pytest.raises(ValidationError):
            UploadOptions(image_quality=quality)

    @pytest.mark.parametrize("ratios", [[[0, 100]], [[100, -1]], [[100]]])
    def test_invalid_ratios_rejected(self, ratios):
        with pytest.raises(ValidationError):
            UploadOptions(file_resize_ratio=ratios)

    def test_ratios_are_normalised_to_tuples(self):
        options = UploadOptions(file_resize_ratio=[[100, 100], [200, 50]])
        assert options.file_resize_ratio == ((100, 100), (200, 50))

    def test_empty_allow_list_uses_defaults(self):
        assert UploadOptions(allow_extension=[]).extensions == DEFAULT_ALLOW_EXTENSION

    def test_options_are_immutable(self):
        options = UploadOptions()
        with pytest.raises(ValidationError):
            options.image_quality = 50

    def test_output_dir(self, tmp_path):
        options = UploadOptions(base_path=str(tmp_path / "app"), local_path="../public")
        assert options.output_dir == str(tmp_path / "public")


class TestSettings:
    """Environment parsing of upload settings."""

    def test_resize_ratio_and_extensions_from_env(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_FILE_RESIZE_RATIO", "100x100, 200X150")
        monkeypatch.setenv("UPLOAD_ALLOW_EXTENSION", "jpeg, png,gif")
        monkeypatch.setenv("UPLOAD_FILE_COMPRESSION", "true")
        monkeypatch.setenv("UPLOAD_IMAGE_QUALITY", "70")

        settings = Settings()

        assert settings.UPLOAD_FILE_RESIZE_RATIO == [(100, 100), (200, 150)]
        assert settings.UPLOAD_ALLOW_EXTENSION == ["jpeg", "png", "gif"]

        options = UploadOptions.from_settings(settings)
        assert options.file_compression is True
        assert options.image_quality == 70
        assert options.file_resize_ratio == ((100, 100), (200, 150))
        assert options.extensions == ("jpeg", "png", "gif")

    def test_base_path_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("UPLOAD_BASE_PATH", str(tmp_path))
        monkeypatch.setenv("UPLOAD_LOCAL_PATH", "media")

        options = UploadOptions.from_settings(Settings())

        assert options.output_dir == str(tmp_path / "media")

    def test_invalid_quality_from_env_rejected(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_IMAGE_QUALITY", "0")
        with pytest.raises(ValidationError):
            UploadOptions.from_settings(Settings())
