"""Command-line interface for greetmotion."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .exceptions import ConfigurationError, ExpressionError, JobFileError
from .logging import setup_logging
from .models import GreetingJob
from .processing.pipeline import RenderPipeline

console = Console()


def parse_variables(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse ``--set name=value`` options into a dict."""
    variables = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected name=value, got {pair!r}", param_hint="--set")
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


def load_pipeline(job_file: Path, variables: dict[str, str]) -> RenderPipeline:
    """Load a job file and build its pipeline, exiting with a message on errors."""
    try:
        job = GreetingJob.from_file(job_file)
        return RenderPipeline(job, variables=variables, user_config=get_config())
    except JobFileError as e:
        console.print(f"[red]Error loading job:[/red] {e}")
        raise SystemExit(1)
    except ConfigurationError as e:
        console.print(f"[red]Invalid overlay:[/red] {e}")
        raise SystemExit(1)
    except ExpressionError as e:
        console.print(f"[red]Invalid position expression:[/red] {e}")
        raise SystemExit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for log files",
)
@click.option("--json-logs", is_flag=True, help="Write the log file as JSON lines")
def main(verbose: bool, log_dir: Optional[Path], json_logs: bool):
    """Greeting video generator.

    Composite animated text and image overlays onto a template video.
    """
    setup_logging(verbose=verbose, log_dir=log_dir, json_file=json_logs)


@main.command()
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output video (default: <job name>.mp4 next to the job file)",
)
@click.option(
    "--set",
    "set_vars",
    multiple=True,
    metavar="NAME=VALUE",
    help="Fill a {NAME} placeholder in text overlays (repeatable)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the FFmpeg command without running it",
)
def render(job_file: Path, output: Optional[Path], set_vars: tuple[str, ...], dry_run: bool):
    """Render the greeting described by JOB_FILE."""
    variables = parse_variables(set_vars)
    pipeline = load_pipeline(job_file, variables)
    output = output or job_file.with_suffix(".mp4")

    result = pipeline.run(output, dry_run=dry_run)

    if dry_run:
        console.print(Panel(result.ffmpeg_command or "", title="FFmpeg command", border_style="blue"))
        console.print("[yellow]Dry run - not rendering[/yellow]")
        return

    if not result.success:
        console.print(f"[red]Render failed:[/red] {result.error}")
        raise SystemExit(1)

    console.print(f"[green]Rendered {result.overlay_count} overlays:[/green] {result.output_path}")


@main.command()
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--set", "set_vars", multiple=True, metavar="NAME=VALUE", help="Fill a {NAME} placeholder")
def inspect(job_file: Path, set_vars: tuple[str, ...]):
    """Show the compiled expressions of every overlay in JOB_FILE."""
    pipeline = load_pipeline(job_file, parse_variables(set_vars))

    table = Table(title=f"Overlays ({job_file.name})", show_lines=True)
    table.add_column("#", style="dim")
    table.add_column("Kind")
    table.add_column("Overlay", style="cyan")
    table.add_column("Window")
    table.add_column("Expressions", overflow="fold")

    for index, preview in enumerate(pipeline.preview()):
        expressions = "\n".join(f"[bold]{name}[/bold] = {text}" for name, text in preview.expressions.items())
        table.add_row(
            str(index),
            preview.kind,
            preview.label,
            f"{preview.start:g}s - {preview.end:g}s",
            expressions,
        )

    console.print(table)
    if pipeline.still is not None:
        console.print(f"Closing still: [cyan]{pipeline.still.path.name}[/cyan] for {pipeline.still.duration:g}s")


@main.command()
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--time", "-t", "time_", type=float, required=True, help="Frame time in seconds")
@click.option("--set", "set_vars", multiple=True, metavar="NAME=VALUE", help="Fill a {NAME} placeholder")
def sample(job_file: Path, time_: float, set_vars: tuple[str, ...]):
    """Evaluate every overlay of JOB_FILE at one frame time.

    Overlay sizes are taken as zero, so positions are top-left corners.
    """
    pipeline = load_pipeline(job_file, parse_variables(set_vars))
    try:
        samples = pipeline.sample(time_)
    except ExpressionError as e:
        console.print(f"[red]Cannot evaluate overlay:[/red] {e}")
        raise SystemExit(1)

    table = Table(title=f"t = {time_:g}s")
    for column in ("#", "Overlay", "Visible", "x", "y", "alpha", "size"):
        table.add_column(column)

    for index, (preview, values) in enumerate(zip(pipeline.preview(), samples)):
        visible = "[green]yes[/green]" if values["enable"] else "[dim]no[/dim]"
        table.add_row(
            str(index),
            preview.label,
            visible,
            f"{values['x']:.1f}",
            f"{values['y']:.1f}",
            f"{values['alpha']:.2f}" if "alpha" in values else "-",
            f"{values['size']:.1f}" if "size" in values else "-",
        )

    console.print(table)


if __name__ == "__main__":
    main()
