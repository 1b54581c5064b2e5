"""
Command-Line Interface

CLI using rich for colored output, progress indicators, and formatted
results. Entry point for users and for scripts that want JSON.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Union

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .classify import classify
from .config import load_config
from .errors import AuditError
from .geometry import project
from .models import AuditReport, BoundsPolicy, ClassifiedError, RawImage
from .pipeline import AuditPipeline
from .providers import PROVIDER_NAMES, get_provider


console = Console()
err_console = Console(stderr=True)

SEVERITY_STYLES = {
    "critical": ("red", "🔴"),
    "warning": ("yellow", "🟡"),
    "info": ("blue", "🔵"),
}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _parse_display_size(ctx, param, value: Optional[str]) -> Optional[tuple[int, int]]:
    if value is None:
        return None
    try:
        width, height = value.lower().split("x", 1)
        size = int(width), int(height)
    except ValueError:
        raise click.BadParameter("expected WIDTHxHEIGHT, e.g. 1280x800")
    if size[0] <= 0 or size[1] <= 0:
        raise click.BadParameter("width and height must be positive")
    return size


@click.group()
@click.version_option(version=__version__)
def main():
    """
    UX-Ray - Screenshot UI Audit

    Send a UI screenshot to a vision model and get a scored, annotated
    critique with critical issues and quick fixes.
    """


@main.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--provider",
    default=None,
    type=click.Choice(PROVIDER_NAMES, case_sensitive=False),
    help="Vision provider to use. Defaults to VISION_PROVIDER from .env"
)
@click.option("--model", default=None, help="Target model identifier")
@click.option(
    "--output",
    default="rich",
    type=click.Choice(["rich", "json"], case_sensitive=False),
    help="Output format: rich (colored terminal) or json (export envelope)"
)
@click.option("--max-kb", type=click.IntRange(min=1), default=None, help="Compressed size budget in KiB")
@click.option("--max-dimension", type=click.IntRange(min=1), default=None, help="Longest edge after downscale, in pixels")
@click.option(
    "--bounds-policy",
    default=None,
    type=click.Choice([p.value for p in BoundsPolicy], case_sensitive=False),
    help="Out-of-range scores/boxes: clamp, reject or passthrough"
)
@click.option("--no-annotations", is_flag=True, help="Use the prompt without bounding boxes")
@click.option(
    "--display-size",
    default=None,
    callback=_parse_display_size,
    help="Project annotation boxes onto a WIDTHxHEIGHT display"
)
@click.option("--zoom", type=click.FloatRange(min=0, min_open=True), default=1.0, help="Zoom scale for projected boxes")
@click.option(
    "--env-file",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Path to .env file (defaults to ./.env)"
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def analyze(
    image: Path,
    provider: Optional[str],
    model: Optional[str],
    output: str,
    max_kb: Optional[int],
    max_dimension: Optional[int],
    bounds_policy: Optional[str],
    no_annotations: bool,
    display_size: Optional[tuple[int, int]],
    zoom: float,
    env_file: Optional[Path],
    verbose: bool
):
    """
    Audit a screenshot.

    Examples:

      # Basic usage (uses .env config)
      ux-ray analyze screenshot.png

      # Different provider, JSON export
      ux-ray analyze screenshot.png --provider anthropic --output json

      # Show annotation boxes in pixels for a 1280x800 display at 2x zoom
      ux-ray analyze screenshot.png --display-size 1280x800 --zoom 2
    """
    _setup_logging(verbose)

    try:
        config = load_config(env_file)

        overrides = {}
        if max_kb is not None:
            overrides["max_bytes"] = max_kb * 1024
        if max_dimension is not None:
            overrides["max_dimension"] = max_dimension
        if bounds_policy is not None:
            overrides["bounds_policy"] = BoundsPolicy(bounds_policy.lower())
        if no_annotations:
            overrides["annotations"] = False
        if model is not None:
            overrides["model"] = model
        if overrides:
            config = config.model_copy(update=overrides)

        provider_name = (provider or config.vision_provider).lower()
        vision_provider = get_provider(provider_name, config)
        raw = RawImage.from_path(image)
    except AuditError as e:
        _fail(classify(e), output)
        return
    except ValueError as e:
        err_console.print(f"[red]❌ Invalid configuration: {e}[/red]")
        sys.exit(2)

    outcome = asyncio.run(_run_audit(AuditPipeline(vision_provider, config), raw, output))

    if isinstance(outcome, ClassifiedError):
        _fail(outcome, output)
        return

    if output == "json":
        _output_json(outcome, vision_provider.name, config.model or vision_provider.default_model)
    else:
        _output_rich(outcome, vision_provider.name, display_size, zoom)


@main.command()
@click.option(
    "--env-file",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Path to .env file (defaults to ./.env)"
)
def providers(env_file: Optional[Path]):
    """List vision providers and whether they are configured."""
    config = load_config(env_file)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Provider", style="cyan")
    table.add_column("Default model")
    table.add_column("Status", justify="center")

    for name in PROVIDER_NAMES:
        marker = " (default)" if name == config.vision_provider else ""
        try:
            vision_provider = get_provider(name, config)
        except AuditError:
            table.add_row(f"{name}{marker}", "-", "[red]no API key[/red]")
            continue
        available = vision_provider.is_available()
        table.add_row(
            f"{name}{marker}",
            vision_provider.default_model,
            "[green]ready[/green]" if available else "[yellow]unavailable[/yellow]"
        )

    console.print(table)


async def _run_audit(
    pipeline: AuditPipeline,
    image: RawImage,
    output: str
) -> Union[AuditReport, ClassifiedError]:
    """Run the pipeline with a progress spinner"""
    if output == "json":
        return await pipeline.run(image)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True
    ) as progress:
        progress.add_task(
            f"[cyan]Analyzing UI with {pipeline.provider.name}...", total=None
        )
        return await pipeline.run(image)


def _fail(error: ClassifiedError, output: str) -> None:
    """Report a classified failure and exit non-zero"""
    if output == "json":
        print(json.dumps({"error": error.to_dict()}, indent=2))
    else:
        err_console.print(f"[red]❌ {error.message}[/red] [dim]({error.http_status})[/dim]")
    sys.exit(1)


def _score_color(score: float) -> str:
    if score >= 90:
        return "green"
    elif score >= 75:
        return "yellow"
    elif score >= 60:
        return "dark_orange"
    else:
        return "red"


def _output_rich(
    report: AuditReport,
    provider_name: str,
    display_size: Optional[tuple[int, int]],
    zoom: float
):
    """Output report in rich formatted terminal output"""

    console.print()
    console.print(Panel.fit(
        f"[bold]UI Audit[/bold]  "
        f"[{_score_color(report.score)}]{report.score}/100 ({report.grade()})[/]\n"
        f"{escape(report.summary)}\n"
        f"[dim]Provider: {provider_name}[/dim]",
        border_style="cyan"
    ))

    # Scores table
    console.print("\n[bold]📊 Scores[/bold]")
    scores_table = Table(show_header=True, header_style="bold magenta")
    scores_table.add_column("Category", style="cyan")
    scores_table.add_column("Score", justify="right")
    scores_table.add_column("Comment")

    categories = report.categories
    rows = [
        ("Visual Hierarchy", categories.visual_hierarchy),
        ("Accessibility", categories.accessibility),
        ("Consistency", categories.consistency),
    ]
    if categories.usability is not None:
        rows.append(("Usability", categories.usability))

    for label, category in rows:
        scores_table.add_row(
            label,
            f"[{_score_color(category.score)}]{category.score}/100[/]",
            escape(category.comment)
        )

    console.print(scores_table)

    if report.critical_issues:
        console.print(f"\n[bold red]🚨 Critical Issues ({len(report.critical_issues)})[/bold red]")
        for i, issue in enumerate(report.critical_issues, 1):
            console.print(f"  {i}. {escape(issue)}")

    if report.quick_fixes:
        console.print("\n[bold]💡 Quick Fixes[/bold]")
        for i, fix in enumerate(report.quick_fixes, 1):
            console.print(f"  {i}. {escape(fix)}")

    if report.annotations:
        counts = ", ".join(
            f"{count} {severity}" for severity, count in report.severity_counts().items() if count
        )
        console.print(f"\n[bold]🔍 Annotations ({counts})[/bold]")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right")
        table.add_column("Severity")
        table.add_column("Label")
        table.add_column("Box (% x,y,w,h)")
        if display_size:
            table.add_column(f"Pixels @ {display_size[0]}x{display_size[1]} x{zoom:g}")
        table.add_column("Description")

        for annotation in report.annotations:
            style, emoji = SEVERITY_STYLES[annotation.severity]
            row = [
                str(annotation.id),
                f"{emoji} [{style}]{annotation.severity}[/]",
                escape(annotation.label),
                f"{annotation.x:g}, {annotation.y:g}, {annotation.width:g}, {annotation.height:g}",
            ]
            if display_size:
                box = project(annotation, display_size[0], display_size[1], zoom)
                row.append(
                    f"{box.left:.0f}, {box.top:.0f}, {box.width:.0f}, {box.height:.0f}"
                )
            row.append(escape(annotation.description))
            table.add_row(*row)

        console.print(table)
    console.print()


def _output_json(report: AuditReport, provider_name: str, model: str):
    """Output report as the JSON export envelope"""
    export = report.to_export()
    export["provider"] = provider_name
    export["model"] = model
    print(json.dumps(export, indent=2))


if __name__ == "__main__":
    main()
