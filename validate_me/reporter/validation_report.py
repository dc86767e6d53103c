"""Markdown product validation report and raw JSON artifacts."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from validate_me.models.evaluation import Evaluation
from validate_me.models.journey import JourneyResult

logger = logging.getLogger(__name__)

REPORT_FILENAME = "ValidationReport.md"
ARTIFACTS_FILENAME = "artifacts.json"
EVALUATION_FILENAME = "evaluation.json"


def criterion_title(key: str) -> str:
    """``task_completion_efficiency`` -> ``Task Completion Efficiency``."""
    return " ".join(word.capitalize() for word in key.replace("-", "_").split("_") if word)


def _numbered(items: list[str], empty: str) -> str:
    if not items:
        return empty
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1))


def _step_section(index: int, step) -> str:
    lines = [
        f"### Step {index}: {step.description}",
        f"- **Timestamp:** {step.timestamp}",
        f"- **Duration:** {step.duration_ms}ms",
        f"- **Status:** {'✅ Success' if step.success else '❌ Failed'}",
    ]
    if step.result is not None:
        lines.append(f"- **Result:** {json.dumps(step.result, indent=2, default=str)}")
    if step.error:
        lines.append(f"- **Error:** {step.error}")
    return "\n".join(lines)


def render_validation_report(
    journey: JourneyResult,
    evaluation: Evaluation,
    generated_at: datetime | None = None,
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)

    rubric_rows = "\n".join(
        f"| {criterion_title(key)} | {score.score:g}/5 | {score.justification} |"
        for key, score in evaluation.rubric.items()
    )
    steps = "\n\n".join(_step_section(i, s) for i, s in enumerate(journey.steps, 1))
    screenshots = "\n\n".join(
        f"![Step {i}](./{Path(s).name})" for i, s in enumerate(journey.screenshots, 1)
    )

    return f"""# Product Validation Report

**Persona:** {journey.persona_id}
**Goal:** {journey.persona_goal}
**Task:** {journey.persona_task}
**Generated:** {generated_at.isoformat()}

## Executive Summary

{evaluation.summary}

## Rubric Scores

| Criteria | Score | Justification |
|----------|-------|---------------|
{rubric_rows}

## Overall Score

**{evaluation.overall_score:.2f}/5**

## Verdict

**{evaluation.verdict.upper()}**

## Top Blockers

{_numbered(evaluation.blockers, "No blockers identified")}

## Quick Wins

{_numbered(evaluation.quick_wins, "No quick wins identified")}

## Step-by-Step Analysis

{steps}

## Screenshots

{screenshots}

## Raw Data

- [Artifacts](./{ARTIFACTS_FILENAME})
- [Evaluation](./{EVALUATION_FILENAME})
"""


def write_artifacts(journey: JourneyResult, reports_dir: Path) -> Path:
    path = reports_dir / ARTIFACTS_FILENAME
    with open(path, "w", encoding="utf-8") as f:
        json.dump(journey.to_artifacts(), f, indent=2, default=str)
    logger.debug("Saved journey artifacts to %s", path)
    return path


def write_evaluation(evaluation: Evaluation, reports_dir: Path) -> Path:
    path = reports_dir / EVALUATION_FILENAME
    data = evaluation.model_dump()
    data["overall_score"] = evaluation.overall_score
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.debug("Saved evaluation to %s", path)
    return path


def write_validation_report(
    journey: JourneyResult, evaluation: Evaluation, reports_dir: Path
) -> Path:
    path = reports_dir / REPORT_FILENAME
    path.write_text(render_validation_report(journey, evaluation), encoding="utf-8")
    logger.info("Report generated: %s", path)
    return path
