"""
Unit tests for kiosk_config module.

Tests configuration defaults, validation, and JSON load/save.
"""

import json
from pathlib import Path

import pytest

from MK_Libs.kiosk_config import KioskConfig, load_config, save_config


class TestDefaults:
    """Tests for default configuration values."""

    def test_default_values(self):
        config = KioskConfig()

        assert config.capture_quality == 0.9
        assert config.output_quality == 0.95
        assert (config.camera_ideal_width, config.camera_ideal_height) == (1920, 1080)
        assert config.facing_mode == "environment"
        assert config.max_upload_bytes == 5 * 1024 * 1024
        assert config.background_threshold == 240
        assert config.contrast_amount == 1.3
        assert config.sharpen_amount == 0.5
        assert config.upload_url == "http://localhost:3000/api/images"

    def test_device_indices_not_shared(self):
        first = KioskConfig()
        first.camera_device_indices["user"] = 7

        assert KioskConfig().camera_device_indices["user"] == 1

    def test_allowed_mime_types(self):
        assert "image/heic" in KioskConfig().allowed_mime_types
        assert "image/heic" not in KioskConfig(allow_extended_mime_types=False).allowed_mime_types


class TestValidation:
    """Tests for __post_init__ validation."""

    @pytest.mark.parametrize("quality", [0, 1.5, -0.1])
    def test_invalid_quality(self, quality):
        with pytest.raises(ValueError):
            KioskConfig(output_quality=quality)

    def test_invalid_facing_mode(self):
        with pytest.raises(ValueError):
            KioskConfig(facing_mode="sideways")

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            KioskConfig(display_max_width=0)

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            KioskConfig(background_threshold=300)

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            KioskConfig(camera_ready_timeout=0)


class TestSerialization:
    """Tests for dict and JSON round trips."""

    def test_from_dict_ignores_unknown_keys(self):
        config = KioskConfig.from_dict({"output_quality": 0.8, "theme": "dark"})

        assert config.output_quality == 0.8

    def test_to_dict_contains_all_fields(self):
        data = KioskConfig().to_dict()

        assert data["facing_mode"] == "environment"
        assert data["camera_device_indices"] == {"environment": 0, "user": 1}

    def test_missing_file_yields_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.json") == KioskConfig()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "kiosk_config.json"
        config = KioskConfig(max_upload_bytes=25 * 1024 * 1024, facing_mode="user")

        save_config(config, path)
        loaded = load_config(path)

        assert loaded == config
        assert json.loads(path.read_text(encoding="utf-8"))["facing_mode"] == "user"

    def test_non_object_raises_error(self, tmp_path):
        path = Path(tmp_path) / "bad.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_json_raises_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            load_config(path)
