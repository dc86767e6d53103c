"""Markdown report for a visual regression run."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from validate_me.models.config import VisualConfig
from validate_me.models.visual import ComparisonOutcome, ComparisonStatus, RunSummary

STATUS_GLYPHS = {
    ComparisonStatus.PASSED: "✅",
    ComparisonStatus.FAILED: "❌",
    ComparisonStatus.NEW: "📸",
    ComparisonStatus.ERROR: "⚠️",
}

NEXT_STEPS = """## Next Steps

1. **Review Failed Comparisons**: Check diff images for unintended UI changes
2. **Update Baselines**: If changes are intentional, promote the new captures to baseline
3. **Investigate Failures**: Look for patterns in failed comparisons (e.g., timing issues, dynamic content)
4. **Optimize Thresholds**: Adjust diff thresholds if needed for better accuracy
"""


def _link(label: str, path: Optional[str]) -> str:
    return f"[{label}]({Path(path).name})" if path else "N/A"


def _format_row(c: ComparisonOutcome) -> str:
    diff = f"{c.diff_percentage:.2f}%" if c.diff_percentage else "N/A"
    return (
        f"| {c.filename} | {STATUS_GLYPHS[c.status]} | {diff} "
        f"| {_link('Baseline', c.baseline_path)} "
        f"| {_link('Current', c.current_path)} "
        f"| {_link('Diff', c.diff_path)} |"
    )


def _recommendations(summary: RunSummary) -> list[str]:
    paragraphs = []
    if summary.failed > 0:
        paragraphs.append(
            f"⚠️ **{summary.failed} screenshots have visual differences.** Please review "
            "the diff images to determine if changes are intentional or represent UI regressions."
        )
    if summary.new > 0:
        paragraphs.append(
            f"📸 **{summary.new} new screenshots added to baseline.** These will be used as "
            "the new reference for future comparisons."
        )
    if summary.passed > 0:
        paragraphs.append(
            f"✅ **{summary.passed} screenshots match baseline.** No visual changes detected."
        )
    return paragraphs


def render_visual_report(
    summary: RunSummary,
    run_id: str,
    config: VisualConfig,
    baseline_dir: Path,
    diff_dir: Path,
    generated_at: datetime | None = None,
) -> str:
    """Render the run summary as a Markdown document."""
    generated_at = generated_at or datetime.now(timezone.utc)

    lines = [
        "# Visual Regression Report",
        "",
        f"**Run ID:** {run_id}  ",
        f"**Date:** {generated_at.isoformat()}  ",
        f"**Total Screenshots:** {summary.total}",
        "",
        "## Summary",
        "",
        f"- ✅ **Passed:** {summary.passed}",
        f"- ❌ **Failed:** {summary.failed}  ",
        f"- 📸 **New:** {summary.new}",
        "",
        "## Detailed Results",
        "",
        "| Screenshot | Status | Diff % | Baseline | Current | Diff |",
        "|------------|--------|--------|----------|---------|------|",
    ]
    lines.extend(_format_row(c) for c in summary.comparisons)
    lines += ["", "## Recommendations", ""]
    for paragraph in _recommendations(summary):
        lines += [paragraph, ""]

    lines.append(NEXT_STEPS)
    lines += [
        "## Technical Details",
        "",
        f"- **Diff Threshold**: {config.pass_threshold:g}% (configurable)",
        f"- **Pixel Threshold**: {config.pixel_diff_threshold:g}",
        f"- **Alpha Weight**: {config.alpha_weight:g}",
        f"- **Baseline Directory**: `{baseline_dir}`",
        f"- **Diff Directory**: `{diff_dir}`",
        "- **Image Format**: PNG",
        "- **Comparison Algorithm**: Pixelmatch with alpha channel support",
        "",
    ]
    return "\n".join(lines)
