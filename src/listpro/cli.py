"""Command-line interface using Typer."""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from listpro import __version__
from listpro.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="listpro",
    help="ListPro - turn product videos into resale listings",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ListPro v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """ListPro - generate marketplace listings from a single video."""
    pass


@app.command()
def process(
    video: str = typer.Argument(..., help="Path or URL of the product video"),
    owner: str = typer.Option(..., "--owner", "-o", help="Owner ID for the listing"),
    platform: Optional[list[str]] = typer.Option(
        None, "--platform", "-p", help="Target platform (repeatable)"
    ),
    queue: bool = typer.Option(False, "--queue", "-q", help="Enqueue instead of running inline"),
) -> None:
    """Process a video into a stored listing."""
    if queue:
        from listpro.jobs.tasks import process_video_listing_task

        task = process_video_listing_task.delay(
            video_url=video, owner_id=owner, platforms=platform or None
        )
        console.print(f"[green]Task enqueued: {task.id}[/green]")
        return

    from listpro.errors import PipelineError
    from listpro.services.pipeline import ListingPipeline
    from listpro.utils.async_utils import run_async

    console.print(f"[bold blue]Processing {video}...[/bold blue]")

    try:
        pipeline = ListingPipeline.from_settings()
        result = run_async(pipeline.process_video(video, owner, platform or None))
    except PipelineError as e:
        console.print(f"[bold red]✗ Failed at {e.stage}: {e.message}[/bold red]")
        if e.frame_index is not None:
            console.print(f"[dim]Frame: {e.frame_index}[/dim]")
        raise typer.Exit(code=1)

    details = result.analysis.item_details if result.analysis else None
    console.print(
        Panel(
            f"[bold]{details.title if details else 'Untitled Item'}[/bold]\n"
            f"Listing: {result.listing_id}\n"
            f"Confidence: {result.confidence:.2f}",
            title="Listing created",
            border_style="green",
        )
    )

    table = Table(title="Platform Content")
    table.add_column("Platform", style="cyan")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Title")

    for name, content in result.platform_content.contents.items():
        table.add_row(
            name, "[green]✓[/green]", f"{content.optimization_score:.2f}", content.title[:60]
        )
    for name, failure in result.platform_content.failures.items():
        table.add_row(name, "[red]✗[/red]", "-", failure.reason[:60])

    console.print(table)

    if result.frame_failures:
        skipped = ", ".join(str(i) for i in sorted(result.frame_failures))
        console.print(f"[yellow]Skipped frames: {skipped}[/yellow]")


@app.command()
def platforms() -> None:
    """List supported platforms and their constraints."""
    from listpro.config import settings
    from listpro.services.content_generator import PLATFORM_SPECS

    defaults = {p.lower() for p in settings.default_platforms}

    table = Table(title="Platforms")
    table.add_column("Platform", style="cyan")
    table.add_column("Title limit", justify="right")
    table.add_column("Description limit", justify="right")
    table.add_column("Style")
    table.add_column("Default")

    for name, spec in PLATFORM_SPECS.items():
        table.add_row(
            str(name),
            str(spec.title_limit) if spec.title_limit else "-",
            str(spec.description_limit),
            spec.style,
            "✓" if str(name) in defaults else "",
        )

    console.print(table)


@app.command()
def job(task_id: str = typer.Argument(..., help="Task ID to check")) -> None:
    """Check the status of a queued listing job."""
    from celery.result import AsyncResult

    from listpro.worker import celery_app

    result = AsyncResult(task_id, app=celery_app)
    console.print(f"[bold]Task:[/bold] {task_id}")
    console.print(f"[bold]State:[/bold] {result.state}")
    if result.ready():
        console.print(result.result)


if __name__ == "__main__":
    app()
