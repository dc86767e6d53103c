"""Pipeline orchestrator — journey, evaluation, visual regression and reports."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from validate_me.ai.client import AIClient, set_debug_dir
from validate_me.ai.evaluator import EvaluationError, ProductEvaluator
from validate_me.models.config import ValidationConfig
from validate_me.models.journey import JourneyResult
from validate_me.models.visual import RunSummary
from validate_me.personas import Persona
from validate_me.reporter.validation_report import (
    write_artifacts,
    write_evaluation,
    write_validation_report,
)
from validate_me.runner.journey_runner import JourneyRunner
from validate_me.visual.comparator import VisualComparator

logger = logging.getLogger(__name__)

FAILED_VERDICT = "FAILED"


class PersonaOutcome(BaseModel):
    persona_id: str
    score: float = 0.0
    verdict: str = FAILED_VERDICT
    report_path: Optional[str] = None
    visual: Optional[RunSummary] = None
    error: Optional[str] = None


class Orchestrator:
    """Coordinates a persona run end to end."""

    def __init__(self, config: ValidationConfig, ai_client: AIClient | None = None):
        self.config = config
        self.framework_dir = Path(".validate-me")
        set_debug_dir(self.framework_dir / "debug")

        # Evaluation is mandatory; a missing API key is fatal here
        self.ai_client = ai_client or AIClient(
            model=config.ai_model,
            max_tokens=config.ai_max_tokens,
        )
        self.evaluator = ProductEvaluator(
            self.ai_client,
            prompt_file=config.evaluator_prompt_file,
            temperature=config.ai_temperature,
        )

    def visual_comparator(self, reports_dir: Path, persona_id: str) -> VisualComparator:
        """Comparator with per-persona baselines and diffs under the run's report dir."""
        return VisualComparator.for_reports_dir(
            reports_dir,
            baseline_dir=self.config.persona_baselines_dir(persona_id),
            config=self.config.visual,
        )

    def run_persona(self, persona: Persona) -> PersonaOutcome:
        return asyncio.run(self._run_persona(persona))

    def run_all(self, personas: list[Persona]) -> list[PersonaOutcome]:
        """Run every persona; one persona failing does not stop the others."""
        outcomes = []
        for persona in personas:
            try:
                outcome = self.run_persona(persona)
                logger.info("%s: %.2f/5 (%s)", persona.id, outcome.score, outcome.verdict)
            except Exception as e:
                logger.error("%s: Failed - %s", persona.id, e)
                outcome = PersonaOutcome(persona_id=persona.id, error=str(e))
            outcomes.append(outcome)
        return outcomes

    async def _run_persona(self, persona: Persona) -> PersonaOutcome:
        start = time.time()
        logger.info("=== Validating persona %s against %s ===",
                    persona.id, self.config.product_url)

        runner = JourneyRunner(self.config, persona)
        try:
            await runner.setup()
            await runner.execute_persona()
        finally:
            await runner.cleanup()
            if runner.reports_dir.exists():
                write_artifacts(runner.result, runner.reports_dir)

        journey = runner.result
        reports_dir = runner.reports_dir
        return self._evaluate_and_report(journey, persona, reports_dir, start)

    def _evaluate_and_report(
        self, journey: JourneyResult, persona: Persona, reports_dir: Path, start: float
    ) -> PersonaOutcome:
        evaluation = self.evaluator.evaluate(journey, persona)
        write_evaluation(evaluation, reports_dir)

        if self.config.ai_visual_analysis and journey.screenshots:
            try:
                analysis = self.evaluator.analyze_screenshots(journey.screenshots)
                (reports_dir / "visual-analysis.md").write_text(analysis, encoding="utf-8")
            except EvaluationError as e:
                logger.warning("Visual analysis skipped: %s", e)

        visual_summary = None
        if journey.screenshots:
            comparator = self.visual_comparator(reports_dir, persona.id)
            comparator.setup()
            visual_summary = comparator.compare_all(journey.screenshots, journey.run_id)
            comparator.write_report(visual_summary, journey.run_id)

        report_path = write_validation_report(journey, evaluation, reports_dir)
        logger.info("=== Persona %s complete in %.1fs ===", persona.id, time.time() - start)

        return PersonaOutcome(
            persona_id=persona.id,
            score=evaluation.overall_score,
            verdict=evaluation.verdict,
            report_path=str(report_path),
            visual=visual_summary,
        )
