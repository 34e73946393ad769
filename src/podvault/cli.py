"""CLI entry point for Podvault."""

import asyncio
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from podvault.config.logging import setup_logging
from podvault.config.manager import ConfigManager
from podvault.service import OperationResult, PodvaultService
from podvault.summary.prompts import DEFAULT_SUMMARY_PROMPT
from podvault.utils.errors import PodvaultError

app = typer.Typer(
    name="podvault",
    help="Sync podcast feeds into a local library and summarize episodes with Gemini",
    no_args_is_help=True,
)
console = Console()


def _get_service() -> PodvaultService:
    config = ConfigManager().load_config()
    return PodvaultService(config)


def _open_service() -> PodvaultService:
    try:
        return _get_service()
    except PodvaultError as e:
        console.print(f"[red]✗[/red] Error: {e}")
        sys.exit(1)


def _unwrap(result: OperationResult):
    """Return the result data, or print the error and exit."""
    if not result.success:
        console.print(f"[red]✗[/red] Error: {result.error}")
        sys.exit(1)
    return result.data


def _format_duration(seconds: int) -> str:
    if seconds <= 0:
        return "—"
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _run_with_spinner(description: str, coro):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        return asyncio.run(coro)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
) -> None:
    """Podvault - Podcast library with AI summaries."""
    # Initialize logging before any command runs
    setup_logging(verbose=verbose, log_file=log_file)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from podvault import __version__

    console.print(f"[bold cyan]Podvault[/bold cyan] v{__version__}")


@app.command("subscribe")
def subscribe(
    url: str = typer.Argument(..., help="RSS feed URL"),
    artwork: str | None = typer.Option(
        None, "--artwork", help="Artwork URL to use instead of the feed's"
    ),
) -> None:
    """Subscribe to a podcast feed.

    Examples:
        podvault subscribe https://example.com/feed.xml
    """
    service = _open_service()
    sync = _unwrap(_run_with_spinner("Fetching feed...", service.sync_feed(url, artwork)))
    podcast = _unwrap(service.get_podcast(sync.podcast_id))

    console.print(
        f"[green]✓[/green] Subscribed to '[bold]{podcast.title}[/bold]' "
        f"({sync.episode_count} episodes)"
    )
    console.print(f"[dim]  ID: {sync.podcast_id}[/dim]")


@app.command("refresh")
def refresh(
    podcast_id: str | None = typer.Argument(None, help="Podcast ID (default: all podcasts)"),
) -> None:
    """Re-fetch one podcast feed, or every subscribed feed."""
    service = _open_service()

    if podcast_id:
        podcasts = [_unwrap(service.get_podcast(podcast_id))]
    else:
        podcasts = _unwrap(service.list_podcasts())

    if not podcasts:
        console.print("[yellow]No podcasts subscribed yet.[/yellow]")
        return

    failures = 0
    for podcast in podcasts:
        result = _run_with_spinner(
            f"Refreshing {podcast.title}...", service.sync_feed(podcast.feed_url)
        )
        if result.success:
            console.print(
                f"[green]✓[/green] {podcast.title}: {result.data.episode_count} episodes"
            )
        else:
            failures += 1
            console.print(f"[red]✗[/red] {podcast.title}: {result.error}")

    if failures:
        sys.exit(1)


@app.command("podcasts")
def list_podcasts() -> None:
    """List subscribed podcasts."""
    service = _open_service()
    podcasts = _unwrap(service.list_podcasts())

    if not podcasts:
        console.print("[yellow]No podcasts subscribed yet.[/yellow]")
        console.print("\nSubscribe: [cyan]podvault subscribe <url>[/cyan]")
        return

    table = Table(title="[bold]Podcasts[/bold]")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Last fetched", style="green")
    table.add_column("Prompt", justify="center", style="yellow")

    for podcast in podcasts:
        fetched = (
            podcast.last_fetched_at.strftime("%Y-%m-%d %H:%M") if podcast.last_fetched_at else "—"
        )
        table.add_row(podcast.id, podcast.title, fetched, "✓" if podcast.custom_prompt else "—")

    console.print(table)
    console.print(f"\n[dim]Total: {len(podcasts)} podcast(s)[/dim]")


@app.command("episodes")
def list_episodes(
    podcast_id: str = typer.Argument(..., help="Podcast ID"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Number of episodes to show"),
) -> None:
    """List a podcast's episodes, newest first."""
    service = _open_service()
    podcast = _unwrap(service.get_podcast(podcast_id))
    episodes = _unwrap(service.list_episodes(podcast_id))

    table = Table(title=f"[bold]{podcast.title}[/bold]")
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title", style="cyan")
    table.add_column("Published", style="green", no_wrap=True)
    table.add_column("Duration", justify="right")
    table.add_column("Saved", justify="center", style="yellow")

    for episode in episodes[:limit]:
        table.add_row(
            episode.id,
            episode.title,
            episode.pub_date.strftime("%Y-%m-%d"),
            _format_duration(episode.duration),
            "✓" if episode.is_downloaded else "—",
        )

    console.print(table)
    console.print(f"\n[dim]Showing {min(limit, len(episodes))} of {len(episodes)} episode(s)[/dim]")


@app.command("download")
def download(episode_id: str = typer.Argument(..., help="Episode ID")) -> None:
    """Save an episode's audio to the media library."""
    service = _open_service()
    path = _unwrap(_run_with_spinner("Downloading...", service.download_episode(episode_id)))
    console.print(f"[green]✓[/green] Saved to {path}")


@app.command("delete-download")
def delete_download(episode_id: str = typer.Argument(..., help="Episode ID")) -> None:
    """Delete an episode's downloaded audio file."""
    service = _open_service()
    _unwrap(service.delete_download(episode_id))
    console.print("[green]✓[/green] Download removed")


@app.command("summarize")
def summarize(episode_id: str = typer.Argument(..., help="Episode ID")) -> None:
    """Generate an AI summary of an episode."""
    service = _open_service()
    service.startup()

    markdown = _unwrap(
        _run_with_spinner("Generating summary...", service.generate_summary(episode_id))
    )
    console.print(Markdown(markdown))
    console.print("\n[green]✓[/green] Summary saved")


@app.command("summaries")
def list_summaries(episode_id: str = typer.Argument(..., help="Episode ID")) -> None:
    """Show stored summaries of an episode."""
    service = _open_service()
    documents = _unwrap(service.list_documents(episode_id))

    if not documents:
        console.print("[yellow]No summaries for this episode yet.[/yellow]")
        console.print(f"\nGenerate one: [cyan]podvault summarize {episode_id}[/cyan]")
        return

    for document in documents:
        console.print(
            f"[bold]{document.created_at.strftime('%Y-%m-%d %H:%M')}[/bold] "
            f"[dim]({document.id})[/dim]"
        )
        console.print(Markdown(document.content))
        console.print()


@app.command("prompt")
def prompt_command(
    podcast_id: str = typer.Argument(..., help="Podcast ID"),
    text: str | None = typer.Argument(None, help="New custom prompt"),
    reset: bool = typer.Option(False, "--reset", help="Restore the default prompt"),
) -> None:
    """Show or change a podcast's summary prompt.

    Examples:
        podvault prompt <id>

        podvault prompt <id> "Summarize in three bullet points"

        podvault prompt <id> --reset
    """
    service = _open_service()

    if reset or text is not None:
        _unwrap(service.update_custom_prompt(podcast_id, None if reset else text))
        console.print(
            "[green]✓[/green] Prompt reset to default" if reset else "[green]✓[/green] Prompt updated"
        )
        return

    podcast = _unwrap(service.get_podcast(podcast_id))
    if podcast.custom_prompt:
        console.print("[bold]Custom prompt[/bold]\n")
        console.print(podcast.custom_prompt, markup=False)
    else:
        console.print("[bold]Default prompt[/bold]\n")
        console.print(DEFAULT_SUMMARY_PROMPT, markup=False)


@app.command("remove")
def remove_podcast(
    podcast_id: str = typer.Argument(..., help="Podcast ID"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmation prompt"
    ),
) -> None:
    """Remove a podcast with its episodes, summaries and downloads."""
    service = _open_service()
    podcast = _unwrap(service.get_podcast(podcast_id))

    if not force:
        console.print(f"\nPodcast: [bold]{podcast.title}[/bold]")
        console.print(f"Feed:    [dim]{podcast.feed_url}[/dim]")
        confirm: bool = typer.confirm("\nAre you sure you want to remove this podcast?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            return

    _unwrap(service.delete_podcast(podcast_id))
    console.print(f"[green]✓[/green] Podcast '[bold]{podcast.title}[/bold]' removed")


@app.command("stats")
def show_stats() -> None:
    """Show library statistics."""
    service = _open_service()
    stats = _unwrap(service.get_db_stats())

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white", justify="right")

    table.add_row("Podcasts", str(stats.podcasts))
    table.add_row("Episodes", str(stats.episodes))
    table.add_row("Summaries", str(stats.documents))
    table.add_row("Downloaded", str(stats.downloaded))

    console.print("\n[bold]Podvault Library[/bold]\n")
    console.print(table)


if __name__ == "__main__":
    app()
