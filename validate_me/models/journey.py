"""Data structures recorded while driving a persona journey."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class StepRecord(BaseModel):
    """Result of executing a single journey step."""
    step_id: str
    description: str = ""
    timestamp: str
    success: bool = True
    duration_ms: int = 0
    result: Optional[Any] = None
    error: Optional[str] = None


class JourneyResult(BaseModel):
    run_id: str
    persona_id: str
    persona_goal: str = ""
    persona_task: str = ""
    product_url: str
    reports_dir: str
    timestamp: str
    steps: list[StepRecord] = Field(default_factory=list)
    screenshots: list[str] = Field(default_factory=list)  # file paths
    config: dict[str, Any] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(step.success for step in self.steps)

    def to_artifacts(self) -> dict[str, Any]:
        data = self.model_dump()
        data["success"] = self.success
        return data
