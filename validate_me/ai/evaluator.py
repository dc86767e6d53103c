"""Product evaluator — asks Claude to score a persona journey against the rubric."""

from __future__ import annotations

import logging
from pathlib import Path

import anthropic
from pydantic import ValidationError

from validate_me.ai.client import AIClient
from validate_me.ai.prompts.evaluation import EVALUATOR_SYSTEM_PROMPT, build_evaluation_prompt
from validate_me.ai.prompts.visual_analysis import (
    VISUAL_ANALYSIS_SYSTEM_PROMPT,
    build_visual_analysis_prompt,
)
from validate_me.models.evaluation import Evaluation
from validate_me.models.journey import JourneyResult
from validate_me.personas import Persona

logger = logging.getLogger(__name__)


class EvaluationError(Exception):
    """The AI evaluation could not be obtained or understood."""


class ProductEvaluator:
    """Scores product experience with an LLM. There is no offline fallback."""

    def __init__(
        self,
        ai_client: AIClient,
        prompt_file: str | Path | None = None,
        temperature: float = 0.7,
    ):
        self.ai_client = ai_client
        self.prompt_file = Path(prompt_file) if prompt_file else None
        self.temperature = temperature

    def system_prompt(self) -> str:
        """Custom prompt file contents if present, otherwise the built-in prompt."""
        if self.prompt_file and self.prompt_file.is_file():
            logger.debug("Using evaluator prompt from %s", self.prompt_file)
            return self.prompt_file.read_text(encoding="utf-8")
        return EVALUATOR_SYSTEM_PROMPT

    def evaluate(self, journey: JourneyResult, persona: Persona) -> Evaluation:
        logger.info("Running AI evaluation for persona %s...", persona.id)
        try:
            data = self.ai_client.complete_json(
                system_prompt=self.system_prompt(),
                user_message=build_evaluation_prompt(journey, persona),
                temperature=self.temperature,
            )
        except anthropic.APIError as e:
            raise EvaluationError(f"AI evaluation request failed: {e}") from e
        except ValueError as e:
            raise EvaluationError(f"Could not parse AI evaluation: {e}") from e

        try:
            evaluation = Evaluation.model_validate(data)
        except ValidationError as e:
            raise EvaluationError(f"AI evaluation has an unexpected shape: {e}") from e

        logger.info("AI evaluation completed: %.2f/5 (%s)",
                    evaluation.overall_score, evaluation.verdict)
        return evaluation

    def analyze_screenshots(self, screenshots: list[str]) -> str:
        if not screenshots:
            raise EvaluationError("No screenshots available for visual analysis")
        try:
            return self.ai_client.complete_with_images(
                system_prompt=VISUAL_ANALYSIS_SYSTEM_PROMPT,
                user_message=build_visual_analysis_prompt(screenshots),
                image_paths=screenshots,
                max_tokens=1000,
            )
        except (anthropic.APIError, OSError) as e:
            raise EvaluationError(f"Visual analysis failed: {e}") from e
