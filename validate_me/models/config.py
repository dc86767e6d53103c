"""Configuration models for validate-me."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class VisualConfig(BaseModel):
    """Tuning knobs for the visual regression comparator."""

    # Per-pixel colour distance (0-1) treated as "same"
    pixel_diff_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    # Blending factor for unchanged pixels in the diff output
    alpha_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    # Percentage of differing pixels below which a capture passes
    pass_threshold: float = Field(default=5.0, ge=0.0, le=100.0)
    retention_days: int = Field(default=7, ge=0)


class ValidationConfig(BaseModel):
    # Target
    product_url: str = "http://localhost:3000"
    test_email: str = "test@example.com"
    test_password: str = "testpassword123"

    # Browser
    headless: bool = True
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    step_timeout_ms: int = 30000

    # Inputs
    personas_file: str = "config/personas.yaml"
    evaluator_prompt_file: str = "config/evaluator.prompt"

    # Output
    reports_root: str = "reports"
    baselines_dir: str = "baselines"

    # AI settings
    ai_model: str = "claude-sonnet-4-20250514"
    ai_max_tokens: int = 4000
    ai_temperature: float = 0.7
    ai_visual_analysis: bool = False

    # A persona run scoring below this exits non-zero
    min_passing_score: float = 3.0

    visual: VisualConfig = Field(default_factory=VisualConfig)

    @field_validator("test_password", mode="before")
    @classmethod
    def resolve_env_password(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @classmethod
    def load(cls, path: str | Path) -> "ValidationConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def load_or_default(cls, path: str | Path) -> "ValidationConfig":
        """Load config if the file exists, otherwise return defaults."""
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def persona_baselines_dir(self, persona_id: str) -> Path:
        """Baselines are kept per persona so shared screenshot names never collide."""
        return Path(self.baselines_dir) / persona_id

    def redacted(self) -> dict:
        """Config as a dict with secrets masked, for writing into artifacts."""
        data = self.model_dump()
        data["test_password"] = "***"
        return data
