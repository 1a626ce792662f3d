"""CLI entry point for framelapse.

Usage:
    framelapse run -c process_config.yaml     # Extract (and assemble) every job
    framelapse scan -c process_config.yaml    # Show the jobs a run would process
    framelapse init-config                    # Write a default config file
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from framelapse.core.logging import setup_logging

app = typer.Typer(name="framelapse", help="Sample frames from video batches and build time-lapses")
console = Console()

DEFAULT_CONFIG = Path("process_config.yaml")


@app.command()
def run(
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c", help="Config file (YAML or JSON)"),
    log_level: str = typer.Option("INFO", help="Logging level"),
) -> None:
    """Run frame extraction for every configured input location."""
    setup_logging(log_level)
    from framelapse.core.errors import ProcessError
    from framelapse.core.pipeline_runner import run_video_extraction_from_file

    console.print(f"[green]Using config file:[/green] {config}")
    try:
        stats = run_video_extraction_from_file(config)
    except ProcessError as e:
        console.print(f"[red]Video processing failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Processing Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Files processed", str(stats.files_processed))
    table.add_row("Files failed", str(stats.files_failed))
    table.add_row("Success rate", f"{stats.success_rate():.2f}%")
    table.add_row("Frames written", str(stats.frames_written))
    table.add_row("Frames skipped", str(stats.frames_skipped))
    table.add_row("Processing time", f"{stats.elapsed_time:.2f}s")
    console.print(table)

    for output in stats.outputs:
        console.print(f"[green]Created:[/green] {output}")
    if stats.error_messages:
        console.print("[yellow]Errors encountered:[/yellow]")
        for message in stats.error_messages:
            console.print(f"  - {message}")


@app.command()
def scan(
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c", help="Config file (YAML or JSON)"),
) -> None:
    """Show the directory jobs a run would process."""
    setup_logging("WARNING")
    from framelapse.core.config import load_extraction_config
    from framelapse.core.errors import ProcessError
    from framelapse.core.job_runner import select_strategy, sort_videos
    from framelapse.core.pipeline_runner import scan_jobs

    try:
        cfg = load_extraction_config(config)
        jobs = scan_jobs(cfg)
    except ProcessError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    strategy = select_strategy(cfg.extraction_mode, cfg.video_creation_mode)
    table = Table(title=f"Jobs ({strategy.value}, every {cfg.frame_interval} frames)")
    table.add_column("#", style="dim")
    table.add_column("Tag", style="cyan")
    table.add_column("Directory", style="green")
    table.add_column("Videos", style="yellow")

    for i, job in enumerate(jobs, 1):
        names = ", ".join(p.name for p in sort_videos(job.video_list))
        table.add_row(str(i), job.directory_tag, job.directory, names)
    console.print(table)


@app.command()
def init_config(
    path: Path = typer.Argument(DEFAULT_CONFIG, help="Where to write the config"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a default configuration file."""
    from framelapse.core.config import generate_default_config

    if path.exists() and not force:
        console.print(f"[red]{path} already exists (use --force to overwrite)[/red]")
        raise typer.Exit(1)
    generate_default_config(path)
    console.print(f"[green]Generated '{path}' successfully![/green]")


if __name__ == "__main__":
    app()
