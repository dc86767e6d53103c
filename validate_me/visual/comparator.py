"""Visual regression comparator — classifies captures against stored baselines."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

from PIL import Image, UnidentifiedImageError
from pixelmatch.contrib.PIL import pixelmatch

from validate_me.models.config import VisualConfig
from validate_me.models.visual import ComparisonOutcome, ComparisonStatus, RunSummary
from validate_me.visual.baseline_store import BaselineStore
from validate_me.visual.errors import DecodeError, DimensionMismatchError, StorageError
from validate_me.visual.report import render_visual_report

logger = logging.getLogger(__name__)

REPORT_FILENAME = "visual-regression-report.md"

DIFF_COLOR = (255, 0, 0)
AA_COLOR = (0, 255, 0)

# Reported for captures that could not be compared at all
ERROR_DIFF_PERCENTAGE = 100.0


def load_image(path: Path) -> Image.Image:
    """Decode a PNG into RGBA, raising DecodeError for anything unreadable."""
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Cannot decode image {path}: {e}") from e


class VisualComparator:
    """Compares a run's screenshots with the baseline store and reports on them."""

    def __init__(
        self,
        store: BaselineStore,
        reports_dir: Path,
        config: VisualConfig | None = None,
    ):
        self.store = store
        self.reports_dir = Path(reports_dir)
        self.config = config or VisualConfig()

    @classmethod
    def for_reports_dir(
        cls, reports_dir: Path, baseline_dir: Path, config: VisualConfig | None = None
    ) -> "VisualComparator":
        """Build a comparator whose diff artifacts live under ``reports_dir/diffs``."""
        reports_dir = Path(reports_dir)
        store = BaselineStore(baseline_dir=baseline_dir, diff_dir=reports_dir / "diffs")
        return cls(store, reports_dir, config)

    @property
    def report_path(self) -> Path:
        return self.reports_dir / REPORT_FILENAME

    def diff_path_for(self, run_id: str, filename: str) -> Path:
        return self.store.diff_dir / f"{run_id}-{filename}"

    def setup(self) -> None:
        self.store.ensure_ready()

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def compare_all(self, captured_paths: Iterable[str | Path], run_id: str) -> RunSummary:
        """Compare every capture in order and aggregate the outcomes."""
        logger.info("Running visual regression analysis for run %s...", run_id)
        summary = RunSummary(run_id=run_id)

        for captured in captured_paths:
            summary.record(self.compare_one(captured, run_id))

        logger.info(
            "Visual regression results: %d/%d passed, %d failed, %d new",
            summary.passed, summary.total, summary.failed, summary.new,
        )
        return summary

    def compare_one(self, captured_path: str | Path, run_id: str) -> ComparisonOutcome:
        """Classify a single capture. Never raises for per-image problems."""
        current = Path(captured_path)
        filename = current.name
        baseline = self.store.path_for(filename)

        try:
            # Decode first so an unreadable capture is never adopted as a baseline
            current_image = load_image(current)
            if not self.store.has_baseline(filename):
                self.store.adopt(current, filename)
                logger.info("New baseline: %s", filename)
                return ComparisonOutcome(
                    filename=filename,
                    status=ComparisonStatus.NEW,
                    diff_percentage=0.0,
                    baseline_path=str(baseline),
                    current_path=str(current),
                )

            diff_percentage, diff_path = self._compare_images(
                current_image, baseline, self.diff_path_for(run_id, filename)
            )
        except StorageError:
            # The store itself is broken; later images would fail the same way
            raise
        except Exception as e:
            logger.error("Error comparing %s: %s", filename, e)
            return ComparisonOutcome(
                filename=filename,
                status=ComparisonStatus.ERROR,
                diff_percentage=ERROR_DIFF_PERCENTAGE,
                baseline_path=str(baseline),
                current_path=str(current),
                error=str(e),
            )

        if diff_path is None:
            logger.info("Match: %s (%.2f%% diff)", filename, diff_percentage)
            status = ComparisonStatus.PASSED
        else:
            logger.warning("Diff: %s (%.2f%% diff)", filename, diff_percentage)
            status = ComparisonStatus.FAILED

        return ComparisonOutcome(
            filename=filename,
            status=status,
            diff_percentage=diff_percentage,
            baseline_path=str(baseline),
            current_path=str(current),
            diff_path=str(diff_path) if diff_path else None,
        )

    def _compare_images(
        self, current: Image.Image, baseline_path: Path, diff_path: Path
    ) -> tuple[float, Path | None]:
        """Pixel-diff a capture against a baseline file.

        Returns the diff percentage and the written diff artifact, or None when
        the capture passes.
        """
        baseline = load_image(baseline_path)

        if current.size != baseline.size:
            raise DimensionMismatchError(baseline.size, current.size)

        width, height = current.size
        diff = Image.new("RGBA", (width, height))
        diff_pixels = pixelmatch(
            current,
            baseline,
            diff,
            threshold=self.config.pixel_diff_threshold,
            alpha=self.config.alpha_weight,
            diff_color=DIFF_COLOR,
            aa_color=AA_COLOR,
        )

        total = width * height
        diff_percentage = (diff_pixels / total) * 100 if total else 0.0
        if diff_percentage < self.config.pass_threshold:
            return diff_percentage, None

        try:
            diff_path.parent.mkdir(parents=True, exist_ok=True)
            diff.save(diff_path, format="PNG")
        except OSError as e:
            raise StorageError(f"Cannot write diff image {diff_path}: {e}") from e
        logger.debug("Saved diff image to %s", diff_path)
        return diff_percentage, diff_path

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def render_report(
        self, summary: RunSummary, run_id: str, generated_at: datetime | None = None
    ) -> str:
        return render_visual_report(
            summary,
            run_id,
            config=self.config,
            baseline_dir=self.store.baseline_dir,
            diff_dir=self.store.diff_dir,
            generated_at=generated_at,
        )

    def write_report(
        self, summary: RunSummary, run_id: str, generated_at: datetime | None = None
    ) -> Path:
        """Render the Markdown report and persist it next to the run's artifacts."""
        report = self.render_report(summary, run_id, generated_at)
        path = self.report_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(report, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot write visual regression report {path}: {e}") from e
        logger.info("Visual regression report generated: %s", path)
        return path

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def prune_diff_artifacts(self, max_age: timedelta | None = None) -> list[str]:
        """Delete diff images at least ``max_age`` old. Errors are logged, not raised."""
        if max_age is None:
            max_age = timedelta(days=self.config.retention_days)
        max_age_seconds = max_age.total_seconds()
        deleted: list[str] = []

        try:
            entries = sorted(self.store.diff_dir.iterdir())
        except OSError as e:
            logger.error("Error cleaning up old diffs: %s", e)
            return deleted

        now = time.time()
        for path in entries:
            # One locked or vanished file must not stop the rest of the cleanup
            try:
                if not path.is_file():
                    continue
                if now - path.stat().st_mtime >= max_age_seconds:
                    path.unlink()
                    deleted.append(path.name)
                    logger.info("Cleaned up old diff: %s", path.name)
            except OSError as e:
                logger.error("Error cleaning up old diff %s: %s", path.name, e)

        return deleted

    def promote(self, captured_path: str | Path, filename: str | None = None) -> Path:
        """Accept a capture as the new baseline, e.g. after reviewing a diff."""
        filename = filename or Path(captured_path).name
        path = self.store.adopt(captured_path, filename)
        logger.info("Updated baseline: %s", filename)
        return path

    def delete(self, filename: str) -> bool:
        return self.store.remove(filename)

    def list_baselines(self) -> list[str]:
        return self.store.list_all()
