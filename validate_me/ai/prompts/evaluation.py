"""System prompt and request builder for the product experience evaluator."""

from __future__ import annotations

import json
from pathlib import Path

from validate_me.models.journey import JourneyResult
from validate_me.personas import Persona

EVALUATOR_SYSTEM_PROMPT = """You are a "Product Evaluator" for user experience testing. Judge if the product helps users achieve their goals effectively.

Rubric (score 1–5; justify with 1–2 sentences + evidence links/screens):

1. Onboarding clarity
2. Task completion efficiency
3. User interface quality
4. Flow friction
5. Content clarity
6. Feature accessibility
7. Overall satisfaction

Deliverables:

* Summary (≤150 words)
* Step-by-step notes with timestamps and screenshot refs
* Top 5 blockers (ranked)
* Top 5 quick wins (ranked)
* Verdict: {ship | fix then ship | rethink}"""

RESPONSE_FORMAT = {
    "summary": "Your summary here",
    "rubric": {
        "onboarding_clarity": {"score": 4, "justification": "Clear navigation and sign-in process"},
        "task_completion_efficiency": {"score": 3, "justification": "Good workflow but could be more streamlined"},
        "user_interface_quality": {"score": 4, "justification": "Modern design with good usability"},
        "flow_friction": {"score": 4, "justification": "Minimal clicks, smooth progression"},
        "content_clarity": {"score": 3, "justification": "Mostly clear but some ambiguous labels"},
        "feature_accessibility": {"score": 4, "justification": "Features are easily discoverable"},
        "overall_satisfaction": {"score": 4, "justification": "High confidence in user satisfaction"},
    },
    "blockers": ["Navigation could be clearer", "Loading states unclear"],
    "quick_wins": ["Add progress indicators", "Improve button labeling"],
    "verdict": "fix then ship",
}


def build_evaluation_prompt(journey: JourneyResult, persona: Persona) -> str:
    """Build the user message describing a finished persona journey."""
    lines = [
        "# Product Validation Evaluation Request",
        "",
        "## Persona Context",
        f"- **ID**: {persona.id}",
        f"- **Goal**: {persona.goal}",
        f"- **Task**: {persona.task}",
        "",
        "## Execution Summary",
        f"- **Success**: {'Yes' if journey.success else 'No'}",
        f"- **Total Steps**: {len(journey.steps)}",
        f"- **Screenshots**: {len(journey.screenshots)}",
        f"- **Product URL**: {journey.product_url or 'Not specified'}",
        "",
        "## Step-by-Step Execution Log",
    ]
    for i, step in enumerate(journey.steps, 1):
        lines.append(f"{i}. **{step.timestamp}** - {step.step_id}: {'✅' if step.success else '❌'}")
        if step.result is not None:
            lines.append(f"   Result: {json.dumps(step.result, default=str)}")
        if step.error:
            lines.append(f"   Error: {step.error}")
        lines.append("")

    if journey.screenshots:
        lines.append("## Screenshots Available")
        lines.extend(f"{i}. {Path(s).name}" for i, s in enumerate(journey.screenshots, 1))
        lines.append("")

    lines += [
        "## Evaluation Request",
        "",
        "Please evaluate this product user experience test run and provide:",
        "",
        "1. **Summary** (≤150 words): Overall assessment of the user journey",
        "2. **Rubric Scores** (1-5 scale with justification) for every rubric criterion",
        "3. **Top 5 Blockers** (ranked by severity)",
        "4. **Top 5 Quick Wins** (ranked by impact)",
        "5. **Verdict**: ship | fix then ship | rethink",
        "",
        "Return ONLY a JSON object with this structure:",
        json.dumps(RESPONSE_FORMAT, indent=2, ensure_ascii=False),
    ]
    return "\n".join(lines)
