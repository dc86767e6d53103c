"""Tests for configuration models."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from validate_me.models.config import ValidationConfig, ViewportConfig, VisualConfig


class TestVisualConfig:
    def test_default_values(self):
        config = VisualConfig()
        assert config.pixel_diff_threshold == 0.1
        assert config.alpha_weight == 0.1
        assert config.pass_threshold == 5.0
        assert config.retention_days == 7

    def test_rejects_out_of_range_threshold(self):
        with pytest.raises(ValidationError):
            VisualConfig(pixel_diff_threshold=1.5)

    def test_rejects_negative_retention(self):
        with pytest.raises(ValidationError):
            VisualConfig(retention_days=-1)


class TestValidationConfig:
    def test_default_values(self):
        config = ValidationConfig()
        assert config.product_url == "http://localhost:3000"
        assert config.headless is True
        assert config.viewport == ViewportConfig(width=1280, height=720)
        assert config.personas_file == "config/personas.yaml"
        assert config.min_passing_score == 3.0
        assert isinstance(config.visual, VisualConfig)

    def test_env_password_resolved(self):
        with patch.dict(os.environ, {"QA_PASSWORD": "hunter2"}):
            config = ValidationConfig(test_password="env:QA_PASSWORD")
        assert config.test_password == "hunter2"

    def test_env_password_missing_raises(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValidationError, match="QA_PASSWORD"):
                ValidationConfig(test_password="env:QA_PASSWORD")

    def test_save_and_load_roundtrip(self, tmp_path):
        path = tmp_path / "nested" / "validate-me.json"
        config = ValidationConfig(
            product_url="https://shop.example.com",
            visual=VisualConfig(pass_threshold=2.5),
        )
        config.save(path)

        loaded = ValidationConfig.load(path)

        assert loaded.product_url == "https://shop.example.com"
        assert loaded.visual.pass_threshold == 2.5

    def test_load_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ValidationConfig.load(tmp_path / "missing.json")

    def test_load_or_default(self, tmp_path):
        config = ValidationConfig.load_or_default(tmp_path / "missing.json")
        assert config == ValidationConfig()

    def test_load_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "validate-me.json"
        path.write_text(json.dumps({"visual": {"retention_days": 3}}))
        config = ValidationConfig.load(path)
        assert config.visual.retention_days == 3
        assert config.visual.pass_threshold == 5.0

    def test_persona_baselines_dir(self):
        config = ValidationConfig(baselines_dir="store")
        assert config.persona_baselines_dir("returning-user") == Path("store") / "returning-user"

    def test_redacted_masks_password(self):
        data = ValidationConfig(test_password="secret").redacted()
        assert data["test_password"] == "***"
        assert data["product_url"] == "http://localhost:3000"
