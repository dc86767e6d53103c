"""LLM product evaluation data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

RUBRIC_CRITERIA = [
    "onboarding_clarity",
    "task_completion_efficiency",
    "user_interface_quality",
    "flow_friction",
    "content_clarity",
    "feature_accessibility",
    "overall_satisfaction",
]

VERDICTS = ("ship", "fix then ship", "rethink")


class RubricScore(BaseModel):
    score: float = Field(ge=1, le=5)
    justification: str = ""


class Evaluation(BaseModel):
    summary: str = ""
    rubric: dict[str, RubricScore] = Field(default_factory=dict)
    blockers: list[str] = Field(default_factory=list)
    quick_wins: list[str] = Field(default_factory=list)
    verdict: str = "rethink"

    @field_validator("verdict", mode="before")
    @classmethod
    def normalize_verdict(cls, v: str) -> str:
        v = str(v).strip().lower()
        if v not in VERDICTS:
            raise ValueError(f"Unknown verdict '{v}', expected one of {', '.join(VERDICTS)}")
        return v

    @property
    def overall_score(self) -> float:
        if not self.rubric:
            return 0.0
        return sum(r.score for r in self.rubric.values()) / len(self.rubric)
