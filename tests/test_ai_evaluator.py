"""Tests for the product evaluator and its prompts."""

from unittest.mock import Mock

import anthropic
import pytest

from validate_me.ai.evaluator import EvaluationError, ProductEvaluator
from validate_me.ai.prompts.evaluation import EVALUATOR_SYSTEM_PROMPT, build_evaluation_prompt
from validate_me.ai.prompts.visual_analysis import build_visual_analysis_prompt
from validate_me.models.evaluation import Evaluation


class TestBuildEvaluationPrompt:
    def test_includes_persona_and_steps(self, journey, persona):
        prompt = build_evaluation_prompt(journey, persona)
        assert "- **ID**: first-time-user" in prompt
        assert "- **Goal**: Understand the product and sign up" in prompt
        assert "- **Total Steps**: 2" in prompt
        assert "- **Success**: Yes" in prompt
        assert "navigate: ✅" in prompt
        assert 'Result: {"title": "Example", "buttons": 3}' in prompt

    def test_lists_screenshot_names(self, journey, persona):
        prompt = build_evaluation_prompt(journey, persona)
        assert "1. 01-navigate.png" in prompt
        assert "2. 02-page-loaded.png" in prompt

    def test_reports_failed_steps(self, journey, persona):
        journey.steps[1].success = False
        journey.steps[1].error = "Timeout"
        prompt = build_evaluation_prompt(journey, persona)
        assert "- **Success**: No" in prompt
        assert "Error: Timeout" in prompt

    def test_requests_json_structure(self, journey, persona):
        prompt = build_evaluation_prompt(journey, persona)
        assert '"quick_wins"' in prompt
        assert '"verdict": "fix then ship"' in prompt


def test_visual_analysis_prompt_names_screenshots():
    prompt = build_visual_analysis_prompt(["/tmp/run/01-navigate.png", "/tmp/run/07-final-state.png"])
    assert "Screenshots: 01-navigate.png, 07-final-state.png" in prompt


class TestEvaluationModel:
    def test_overall_score_is_mean(self, evaluation):
        assert evaluation.overall_score == pytest.approx(4.0)

    def test_overall_score_without_rubric(self):
        assert Evaluation().overall_score == 0.0

    def test_verdict_normalized(self, evaluation_data):
        evaluation_data["verdict"] = "  Fix Then Ship "
        assert Evaluation.model_validate(evaluation_data).verdict == "fix then ship"

    def test_unknown_verdict_rejected(self, evaluation_data):
        evaluation_data["verdict"] = "maybe"
        with pytest.raises(ValueError):
            Evaluation.model_validate(evaluation_data)

    def test_score_out_of_range_rejected(self, evaluation_data):
        evaluation_data["rubric"]["flow_friction"] = {"score": 9, "justification": ""}
        with pytest.raises(ValueError):
            Evaluation.model_validate(evaluation_data)


class TestProductEvaluator:
    def test_evaluate_returns_model(self, journey, persona, evaluation_data):
        ai = Mock()
        ai.complete_json.return_value = evaluation_data
        evaluator = ProductEvaluator(ai)

        result = evaluator.evaluate(journey, persona)

        assert result.verdict == "fix then ship"
        assert result.blockers == ["Password rules are hidden"]
        kwargs = ai.complete_json.call_args.kwargs
        assert kwargs["system_prompt"] == EVALUATOR_SYSTEM_PROMPT
        assert kwargs["temperature"] == 0.7

    def test_custom_prompt_file(self, tmp_path, journey, persona, evaluation_data):
        prompt_file = tmp_path / "evaluator.prompt"
        prompt_file.write_text("Custom rubric")
        ai = Mock()
        ai.complete_json.return_value = evaluation_data

        ProductEvaluator(ai, prompt_file=prompt_file).evaluate(journey, persona)

        assert ai.complete_json.call_args.kwargs["system_prompt"] == "Custom rubric"

    def test_missing_prompt_file_falls_back(self, tmp_path):
        evaluator = ProductEvaluator(Mock(), prompt_file=tmp_path / "missing.prompt")
        assert evaluator.system_prompt() == EVALUATOR_SYSTEM_PROMPT

    def test_unparseable_response(self, journey, persona):
        ai = Mock()
        ai.complete_json.side_effect = ValueError("AI returned invalid JSON")
        with pytest.raises(EvaluationError, match="Could not parse"):
            ProductEvaluator(ai).evaluate(journey, persona)

    def test_api_error(self, journey, persona):
        ai = Mock()
        ai.complete_json.side_effect = anthropic.APIError("rate limited", request=Mock(), body=None)
        with pytest.raises(EvaluationError, match="request failed"):
            ProductEvaluator(ai).evaluate(journey, persona)

    def test_wrong_shape(self, journey, persona):
        ai = Mock()
        ai.complete_json.return_value = {"rubric": {"x": {"score": "high"}}, "verdict": "ship"}
        with pytest.raises(EvaluationError, match="unexpected shape"):
            ProductEvaluator(ai).evaluate(journey, persona)

    def test_analyze_screenshots(self):
        ai = Mock()
        ai.complete_with_images.return_value = "Consistent styling"
        result = ProductEvaluator(ai).analyze_screenshots(["a.png"])
        assert result == "Consistent styling"
        assert ai.complete_with_images.call_args.kwargs["image_paths"] == ["a.png"]

    def test_analyze_without_screenshots(self):
        with pytest.raises(EvaluationError, match="No screenshots"):
            ProductEvaluator(Mock()).analyze_screenshots([])
