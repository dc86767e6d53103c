"""Visual regression result data structures."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ComparisonStatus(str, Enum):
    NEW = "new"
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class ComparisonOutcome(BaseModel):
    """Result of comparing one capture against its baseline."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: ComparisonStatus
    diff_percentage: float = 0.0
    baseline_path: str
    current_path: str
    diff_path: Optional[str] = None
    error: Optional[str] = None


class RunSummary(BaseModel):
    run_id: str
    total: int = 0
    passed: int = 0
    failed: int = 0  # includes outcomes with status "error"
    new: int = 0
    comparisons: list[ComparisonOutcome] = Field(default_factory=list)

    @property
    def errored(self) -> int:
        return sum(1 for c in self.comparisons if c.status == ComparisonStatus.ERROR)

    def record(self, outcome: ComparisonOutcome) -> None:
        """Append an outcome and bump the matching counter."""
        self.comparisons.append(outcome)
        self.total += 1
        if outcome.status == ComparisonStatus.NEW:
            self.new += 1
        elif outcome.status == ComparisonStatus.PASSED:
            self.passed += 1
        else:
            self.failed += 1
