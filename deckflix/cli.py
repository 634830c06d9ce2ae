"""DeckFlix CLI - Main command-line interface."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from deckflix import __version__
from deckflix.config import Config, get_config_dir, load_config, save_config
from deckflix.exceptions import DeckFlixError
from deckflix.models import ContentRecord, SearchResult, StreamCandidate
from deckflix.player import get_available_players
from deckflix.scoring import score
from deckflix.service import DeckFlixService

console = Console()
log = logging.getLogger("deckflix")

T = TypeVar("T")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                show_path=False,
                markup=False,
            )
        ],
    )
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ===== DISPLAY HELPERS =====

def display_catalog_table(items: list[ContentRecord], title: str = "Catalog"):
    """Display a table of catalog records."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="cyan")
    table.add_column("Year", style="green", width=10)
    table.add_column("Rating", style="yellow", width=6)
    table.add_column("ID", style="dim")

    for i, item in enumerate(items, 1):
        table.add_row(str(i), item.name, item.year or "", item.rating or "", item.id)

    console.print(table)


def display_search_table(items: list[SearchResult], title: str = "Results"):
    """Display a table of search results."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="cyan")
    table.add_column("Type", style="green", width=8)
    table.add_column("Year", width=10)
    table.add_column("ID", style="dim")

    for i, item in enumerate(items, 1):
        table.add_row(str(i), item.name, item.kind, item.year or "", item.id)

    console.print(table)


def display_streams_table(streams: list[StreamCandidate], limit: int = 20):
    """Display ranked streams."""
    table = Table(title=f"Streams ({len(streams)})", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Quality", style="green", width=12)
    table.add_column("Size", width=10)
    table.add_column("Seeds", style="yellow", width=6)
    table.add_column("Score", style="magenta", width=6)
    table.add_column("Title", style="cyan")

    for i, stream in enumerate(streams[:limit], 1):
        table.add_row(
            str(i),
            stream.quality or "?",
            stream.size or "",
            "" if stream.seeders is None else str(stream.seeders),
            f"{score(stream):.1f}",
            stream.title.splitlines()[0],
        )

    if len(streams) > limit:
        console.print(f"[dim](Showing first {limit} of {len(streams)} streams)[/]")
    console.print(table)


# ===== ASYNC RUNNERS =====

def run_with_service(ctx: click.Context, fn: Callable[[DeckFlixService], Awaitable[T]]) -> T:
    """Run `fn` against a fresh service and close it afterwards."""
    config: Config = ctx.obj["config"]

    async def runner() -> T:
        async with DeckFlixService(config) as service:
            return await fn(service)

    try:
        return asyncio.run(runner())
    except DeckFlixError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1) from e


async def play_and_wait(service: DeckFlixService, url: str, title: str | None) -> None:
    """Start playback and keep the downloader alive until the player exits."""
    status = await service.play(url, title)
    console.print(f"[green]▶ {status}[/]")

    process = service.playback.player_process
    if process is None:
        return
    if service.supervisor.is_running:
        console.print("[dim]Downloading while playing. Close the player or press Ctrl+C to stop.[/]")
    while process.poll() is None:
        await asyncio.sleep(0.5)


# ===== CLI COMMANDS =====

@click.group(invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, version, verbose):
    """DeckFlix CLI - Browse addon catalogs and stream from your terminal."""
    if version:
        console.print(f"DeckFlix v{__version__}")
        return

    setup_logging(verbose)
    try:
        ctx.obj = {"config": load_config()}
    except DeckFlixError as e:
        console.print(f"[red]{e}[/]")
        raise SystemExit(1) from e

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command("catalog")
@click.argument("kind", type=click.Choice(["movie", "series", "anime"]))
@click.option("--catalog", "catalog_name", default="top", help="Catalog id (default: top)")
@click.pass_context
def catalog_cmd(ctx, kind: str, catalog_name: str):
    """Show a popular catalog."""
    console.print(f"[dim]Fetching {kind} catalog '{catalog_name}'...[/]")
    records = run_with_service(ctx, lambda s: s.fetch_catalog(kind, catalog_name))
    display_catalog_table(records, f"{kind.title()} - {catalog_name}")


@main.command()
@click.argument("query")
@click.pass_context
def search(ctx, query: str):
    """Search movies, series and anime across all providers."""
    results = run_with_service(ctx, lambda s: s.search(query))
    if not results:
        console.print("[yellow]No results found[/]")
        return
    display_search_table(results, f"Search Results - '{query}'")


@main.command()
@click.argument("content_id")
@click.option("--limit", "-n", default=20, show_default=True, help="Rows to show")
@click.pass_context
def streams(ctx, content_id: str, limit: int):
    """List ranked streams for an IMDb id (tt1234567 or tt1234567:S:E)."""
    candidates = run_with_service(ctx, lambda s: s.resolve_streams(content_id))
    display_streams_table(candidates, limit)


@main.command("play")
@click.argument("stream_url")
@click.option("--title", "-t", default=None, help="Window title for the player")
@click.pass_context
def play_cmd(ctx, stream_url: str, title: Optional[str]):
    """Play a direct URL or a magnet link."""
    try:
        run_with_service(ctx, lambda s: play_and_wait(s, stream_url, title))
    except KeyboardInterrupt:
        console.print("\n[yellow]Playback cancelled[/]")


@main.command("watch")
@click.argument("content_id")
@click.option("--pick", "-p", default=1, show_default=True, help="Which ranked stream to play")
@click.option("--title", "-t", default=None, help="Window title for the player")
@click.option("--interactive", "-i", is_flag=True, help="Choose the stream from a list")
@click.pass_context
def watch_cmd(ctx, content_id: str, pick: int, title: Optional[str], interactive: bool):
    """Resolve streams for an IMDb id and play the best (or --pick N)."""
    import questionary

    async def do_watch(service: DeckFlixService) -> None:
        candidates = await service.resolve_streams(content_id)

        if interactive:
            choices = [
                questionary.Choice(
                    title=f"[{s.quality or '?'}] {s.title.splitlines()[0]} ({s.size or '?'}, {s.seeders or 0} seeds)",
                    value=s,
                )
                for s in candidates[:20]  # Limit to 20 for usability
            ]
            choices.append(questionary.Choice(title="[Cancel]", value=None))
            chosen = await questionary.select(
                "Select stream (↑↓ arrows, Enter to select):",
                choices=choices,
            ).ask_async()
            if chosen is None:
                return
        elif 1 <= pick <= len(candidates):
            chosen = candidates[pick - 1]
        else:
            raise click.BadParameter(f"only {len(candidates)} streams available", param_hint="--pick")

        console.print(f"[dim]Selected: {chosen.title.splitlines()[0]} ({chosen.quality or '?'})[/]")
        await play_and_wait(service, chosen.url, title or chosen.title.splitlines()[0])

    try:
        run_with_service(ctx, do_watch)
    except KeyboardInterrupt:
        console.print("\n[yellow]Playback cancelled[/]")


@main.command()
@click.pass_context
def status(ctx):
    """Show provider, downloader and player readiness."""
    console.print(run_with_service(ctx, lambda s: s.status()))


@main.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--player", type=click.Choice(["mpv", "vlc"]), help="Set default player")
@click.option("--download-dir", type=click.Path(), help="Set torrent download directory")
@click.option("--timeout", type=float, help="Set per-request timeout in seconds")
@click.pass_context
def config(ctx, show: bool, player: Optional[str], download_dir: Optional[str], timeout: Optional[float]):
    """View or modify configuration."""
    cfg: Config = ctx.obj["config"]

    if show or (not player and not download_dir and timeout is None):
        table = Table(title="Configuration", show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Default Player", cfg.default_player or "auto")
        table.add_row("Request Timeout", f"{cfg.request_timeout:g}s")
        table.add_row("Downloader Port", str(cfg.downloader_port))
        table.add_row("Download Dir", cfg.download_dir)
        table.add_row("Providers", ", ".join(str(p.get("name", "?")) for p in cfg.providers) or "defaults")
        table.add_row("Config File", str(get_config_dir() / "config.json"))
        table.add_row("Available Players", ", ".join(get_available_players()) or "none")

        console.print(table)
        return

    if player:
        cfg.default_player = player
    if download_dir:
        cfg.download_dir = download_dir
    if timeout is not None:
        if timeout <= 0:
            raise click.BadParameter("must be positive", param_hint="--timeout")
        cfg.request_timeout = timeout

    save_config(cfg)
    console.print(Panel("[green]Configuration saved[/]"))


if __name__ == "__main__":
    main()
