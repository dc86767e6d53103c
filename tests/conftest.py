"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from validate_me.models.config import ValidationConfig, ViewportConfig, VisualConfig
from validate_me.models.evaluation import Evaluation
from validate_me.models.journey import JourneyResult, StepRecord
from validate_me.personas import Persona
from validate_me.visual.baseline_store import BaselineStore
from validate_me.visual.comparator import VisualComparator


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def visual_config() -> VisualConfig:
    return VisualConfig()


@pytest.fixture
def validation_config(tmp_path: Path) -> ValidationConfig:
    """Config whose output directories live under tmp_path."""
    return ValidationConfig(
        product_url="https://example.com",
        test_email="qa@example.com",
        test_password="secret",
        viewport=ViewportConfig(width=1280, height=720),
        personas_file=str(tmp_path / "config" / "personas.yaml"),
        evaluator_prompt_file=str(tmp_path / "config" / "evaluator.prompt"),
        reports_root=str(tmp_path / "reports"),
        baselines_dir=str(tmp_path / "baselines"),
    )


@pytest.fixture
def persona() -> Persona:
    return Persona(
        id="first-time-user",
        goal="Understand the product and sign up",
        task="Find the sign-up flow",
    )


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def make_png(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a white PNG with an optional black band of ``changed_rows`` rows."""

    def _make(
        name: str,
        size: tuple[int, int] = (50, 50),
        changed_rows: int = 0,
        directory: Path | None = None,
    ) -> Path:
        directory = directory or tmp_path / "captures"
        directory.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGBA", size, (255, 255, 255, 255))
        width, _ = size
        for y in range(changed_rows):
            for x in range(width):
                img.putpixel((x, y), (0, 0, 0, 255))
        path = directory / name
        img.save(path, format="PNG")
        return path

    return _make


@pytest.fixture
def baseline_store(tmp_path: Path) -> BaselineStore:
    store = BaselineStore(
        baseline_dir=tmp_path / "baselines",
        diff_dir=tmp_path / "reports" / "diffs",
    )
    store.ensure_ready()
    return store


@pytest.fixture
def comparator(baseline_store: BaselineStore, tmp_path: Path, visual_config: VisualConfig) -> VisualComparator:
    return VisualComparator(baseline_store, tmp_path / "reports", visual_config)


# ============================================================================
# Journey / Evaluation Fixtures
# ============================================================================


@pytest.fixture
def journey(tmp_path: Path) -> JourneyResult:
    reports_dir = tmp_path / "reports" / "2025-01-01T00-00-00-first-time-user"
    return JourneyResult(
        run_id="2025-01-01T00-00-00",
        persona_id="first-time-user",
        persona_goal="Understand the product and sign up",
        persona_task="Find the sign-up flow",
        product_url="https://example.com",
        reports_dir=str(reports_dir),
        timestamp="2025-01-01T00:00:00+00:00",
        steps=[
            StepRecord(
                step_id="navigate",
                description="Navigate to product",
                timestamp="2025-01-01T00:00:01+00:00",
                duration_ms=120,
            ),
            StepRecord(
                step_id="analyze_page",
                description="Analyze page structure",
                timestamp="2025-01-01T00:00:02+00:00",
                duration_ms=40,
                result={"title": "Example", "buttons": 3},
            ),
        ],
        screenshots=[str(reports_dir / "01-navigate.png"), str(reports_dir / "02-page-loaded.png")],
    )


@pytest.fixture
def evaluation_data() -> dict:
    return {
        "summary": "Clear landing page, sign-up is easy to find.",
        "rubric": {
            "onboarding_clarity": {"score": 4, "justification": "Obvious call to action"},
            "task_completion_efficiency": {"score": 3, "justification": "One extra step"},
            "user_interface_quality": {"score": 5, "justification": "Polished"},
        },
        "blockers": ["Password rules are hidden"],
        "quick_wins": ["Show password rules inline"],
        "verdict": "fix then ship",
    }


@pytest.fixture
def evaluation(evaluation_data: dict) -> Evaluation:
    return Evaluation.model_validate(evaluation_data)
