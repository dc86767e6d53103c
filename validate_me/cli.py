"""CLI entry point for validate-me."""

from __future__ import annotations

import logging
import os
import sys
from datetime import timedelta
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from validate_me.models.config import ValidationConfig
from validate_me.orchestrator import Orchestrator
from validate_me.personas import SAMPLE_PERSONAS, find_persona, load_personas
from validate_me.visual.comparator import VisualComparator
from validate_me.visual.errors import VisualRegressionError

console = Console()

DEFAULT_CONFIG = "validate-me.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str, **overrides) -> ValidationConfig:
    updates = {k: v for k, v in overrides.items() if v is not None}
    try:
        cfg = ValidationConfig.load_or_default(path)
        if updates:
            # Re-validate so overrides get the same checks as the file (env: passwords)
            cfg = ValidationConfig.model_validate({**cfg.model_dump(), **updates})
    except ValueError as e:
        console.print(f"[red]Invalid config {path}:[/red] {escape(str(e))}")
        sys.exit(1)
    return cfg


def _load_personas_or_exit(cfg: ValidationConfig):
    try:
        return load_personas(cfg.personas_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print("Run 'validate-me init' to create a sample personas file.")
        sys.exit(1)


def _comparator(
    cfg: ValidationConfig, reports_dir: str, baselines: str | None, persona: str
) -> VisualComparator:
    """Comparator reading the same per-persona baselines a test run uses, unless overridden."""
    baseline_dir = Path(baselines) if baselines else cfg.persona_baselines_dir(persona)
    return VisualComparator.for_reports_dir(
        Path(reports_dir),
        baseline_dir=baseline_dir,
        config=cfg.visual,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """AI-powered product validation framework"""
    setup_logging(verbose)


@cli.command()
@click.option("--url", "-u", prompt="Product URL", default="http://localhost:3000",
              help="Product URL to test")
def init(url: str) -> None:
    """Create a default config and a sample personas file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists() and not click.confirm(f"{config_path} already exists. Overwrite?"):
        return
    # model_copy skips validation, so the env: reference is written unresolved
    cfg = ValidationConfig(product_url=url).model_copy(
        update={"test_password": "env:TEST_PASSWORD"}
    )
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")

    personas_path = Path(cfg.personas_file)
    if personas_path.exists():
        console.print(f"[green]{personas_path} already exists[/green]")
    else:
        personas_path.parent.mkdir(parents=True, exist_ok=True)
        personas_path.write_text(SAMPLE_PERSONAS, encoding="utf-8")
        console.print(f"[green]Created {personas_path}[/green]")

    console.print("\nNext steps:")
    console.print("  1. Export ANTHROPIC_API_KEY and TEST_PASSWORD")
    console.print(f"  2. Customize {personas_path} for your users")
    console.print("  3. Run: [blue]validate-me test --persona first-time-user[/blue]")


@cli.command()
@click.option("--persona", "-p", default="first-time-user", help="Persona to test")
@click.option("--url", "-u", default=None, help="Product URL to test")
@click.option("--email", "-e", default=None, help="Test email for authentication")
@click.option("--password", "-w", default=None, help="Test password for authentication")
@click.option("--headful", is_flag=True, help="Run with a visible browser")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def test(persona: str, url, email, password, headful: bool, config: str) -> None:
    """Run product validation for one persona."""
    cfg = _load_config(
        config, product_url=url, test_email=email, test_password=password,
        headless=False if headful else None,
    )
    personas = _load_personas_or_exit(cfg)
    try:
        selected = find_persona(personas, persona)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        sys.exit(1)

    try:
        outcome = Orchestrator(cfg).run_persona(selected)
    except Exception as e:
        console.print(f"[red]Validation failed:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print("\n[bold green]Validation complete[/bold green]")
    console.print(f"Overall score: {outcome.score:.2f}/5")
    console.print(f"Verdict: {outcome.verdict.upper()}")
    console.print(f"Report: [blue]{outcome.report_path}[/blue]")
    if outcome.visual:
        v = outcome.visual
        console.print(f"Visual regression: {v.passed}/{v.total} passed, "
                      f"{v.failed} failed, {v.new} new")

    if outcome.score < cfg.min_passing_score:
        console.print("[yellow]Low score detected - consider reviewing blockers and quick wins[/yellow]")
        sys.exit(1)


@cli.command("test-all")
@click.option("--url", "-u", default=None, help="Product URL to test")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def test_all(url, config: str) -> None:
    """Run product validation for every persona."""
    cfg = _load_config(config, product_url=url)
    personas = _load_personas_or_exit(cfg)

    try:
        orchestrator = Orchestrator(cfg)
    except EnvironmentError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    outcomes = orchestrator.run_all(personas)

    table = Table(title="Summary")
    table.add_column("Persona", style="bold")
    table.add_column("Score")
    table.add_column("Verdict")
    for o in outcomes:
        style = "red" if o.error else "green"
        table.add_row(o.persona_id, f"{o.score:.2f}/5", f"[{style}]{o.verdict}[/{style}]")
    console.print(table)

    average = sum(o.score for o in outcomes) / len(outcomes) if outcomes else 0.0
    console.print(f"\nAverage Score: {average:.2f}/5")
    if average < cfg.min_passing_score:
        console.print("[yellow]Low average score - consider reviewing blockers and quick wins[/yellow]")
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def verify(config: str) -> None:
    """Check that the environment is ready for a validation run."""
    ok = True

    config_path = Path(config)
    if config_path.exists():
        console.print(f"[green]✓[/green] {config_path}: Found")
    else:
        console.print(f"[yellow]![/yellow] {config_path}: Not found, using defaults")
    cfg = _load_config(config)
    console.print(f"[green]✓[/green] Product URL: {cfg.product_url}")

    if os.environ.get("ANTHROPIC_API_KEY"):
        console.print("[green]✓[/green] ANTHROPIC_API_KEY: Set")
    else:
        console.print("[red]✗[/red] ANTHROPIC_API_KEY: Not set")
        ok = False

    if Path(cfg.personas_file).exists():
        console.print(f"[green]✓[/green] {cfg.personas_file}: Found")
    else:
        console.print(f"[red]✗[/red] {cfg.personas_file}: Not found")
        ok = False

    if not ok:
        console.print("\n[red]Setup verification failed.[/red] Run 'validate-me init'.")
        sys.exit(1)
    console.print("\n[bold green]Setup verified.[/bold green] Run: [blue]validate-me test[/blue]")


@cli.group()
def visual() -> None:
    """Visual regression against stored baselines."""
    pass


@visual.command("compare")
@click.argument("run_id")
@click.argument("captures", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--reports-dir", "-r", required=True, help="Directory for the report and diffs")
@click.option("--persona", "-p", default="first-time-user", help="Persona whose baselines to use")
@click.option("--baselines", "-b", default=None, help="Baseline directory (overrides --persona)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def visual_compare(run_id: str, captures: tuple[str, ...], reports_dir: str, persona: str,
                   baselines, config: str) -> None:
    """Compare CAPTURES with their baselines and write a report."""
    cfg = _load_config(config)
    comparator = _comparator(cfg, reports_dir, baselines, persona)
    try:
        comparator.setup()
        summary = comparator.compare_all(captures, run_id)
        report = comparator.write_report(summary, run_id)
    except VisualRegressionError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title=f"Visual Regression - {run_id}")
    table.add_column("Screenshot", style="bold")
    table.add_column("Status")
    table.add_column("Diff %")
    for c in summary.comparisons:
        table.add_row(c.filename, c.status.value, f"{c.diff_percentage:.2f}")
    console.print(table)
    console.print(f"Report: [blue]{report}[/blue]")

    if summary.failed > 0:
        sys.exit(1)


@cli.group()
def baseline() -> None:
    """Manage visual baselines."""
    pass


@baseline.command("list")
@click.option("--persona", "-p", default="first-time-user", help="Persona whose baselines to list")
@click.option("--baselines", "-b", default=None, help="Baseline directory (overrides --persona)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_list(persona: str, baselines, config: str) -> None:
    """List stored baselines."""
    cfg = _load_config(config)
    names = _comparator(cfg, cfg.reports_root, baselines, persona).list_baselines()
    if not names:
        console.print("[yellow]No baselines stored[/yellow]")
        return
    for i, name in enumerate(names, 1):
        console.print(f"  {i}. {name}")


@baseline.command("promote")
@click.argument("capture", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", "-n", default=None, help="Baseline filename (defaults to the capture's)")
@click.option("--persona", "-p", default="first-time-user", help="Persona the baseline belongs to")
@click.option("--baselines", "-b", default=None, help="Baseline directory (overrides --persona)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_promote(capture: str, name, persona: str, baselines, config: str) -> None:
    """Accept CAPTURE as the new baseline."""
    cfg = _load_config(config)
    try:
        path = _comparator(cfg, cfg.reports_root, baselines, persona).promote(capture, name)
    except VisualRegressionError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(f"[green]Updated baseline:[/green] {path}")


@baseline.command("delete")
@click.argument("name")
@click.option("--persona", "-p", default="first-time-user", help="Persona the baseline belongs to")
@click.option("--baselines", "-b", default=None, help="Baseline directory (overrides --persona)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_delete(name: str, persona: str, baselines, config: str) -> None:
    """Delete the baseline NAME."""
    cfg = _load_config(config)
    if _comparator(cfg, cfg.reports_root, baselines, persona).delete(name):
        console.print(f"[green]Deleted baseline:[/green] {name}")
    else:
        console.print(f"[yellow]No baseline named {name}[/yellow]")


@cli.command()
@click.option("--reports-dir", "-r", required=True, help="Run report directory holding diffs/")
@click.option("--days", "-d", type=float, default=None, help="Retention window in days")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def prune(reports_dir: str, days, config: str) -> None:
    """Delete diff images older than the retention window."""
    cfg = _load_config(config)
    max_age = timedelta(days=days) if days is not None else None
    # Pruning only touches diffs/, baselines are never read
    comparator = VisualComparator.for_reports_dir(
        Path(reports_dir), baseline_dir=Path(cfg.baselines_dir), config=cfg.visual
    )
    deleted = comparator.prune_diff_artifacts(max_age)
    console.print(f"[green]Removed {len(deleted)} diff image(s)[/green]")


if __name__ == "__main__":
    cli()
