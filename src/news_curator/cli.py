"""Command-line interface for News Curator."""

import asyncio
import json
import logging
import sys

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from news_curator.config import Settings
from news_curator.exceptions import ConfigurationError, CuratorError
from news_curator.models import Article
from news_curator.pipeline import CurationPipeline
from news_curator.sources import resolve_sources
from news_curator.storage import ArticleIndex

app = typer.Typer(
    name="news-curator",
    help="News Curator - Ranked, deduplicated digests from RSS feeds",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger("news_curator")


def _load_settings() -> Settings:
    load_dotenv()
    return Settings()


def _article_table(title: str, articles: list[Article]) -> Table:
    table = Table(title=title)
    table.add_column("Published", style="dim", width=16)
    table.add_column("Title", width=60)
    table.add_column("Link", style="cyan", width=40)

    for article in articles:
        table.add_row(
            article.update_date.strftime("%Y-%m-%d %H:%M"),
            article.title_text[:60] + ("..." if len(article.title_text) > 60 else ""),
            article.redirection_url[:40],
        )
    return table


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@app.command()
def run(
    operations: str = typer.Option(
        None,
        "--operations",
        "-o",
        help="Comma-separated operations: reconfigure, ingest, publish (default: OPERATIONS)",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Build the digest without uploading"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run the curation pipeline."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    settings = _load_settings()
    selected = operations.split(",") if operations else None
    pipeline = CurationPipeline(settings)

    try:
        curation = asyncio.run(pipeline.run(selected, dry_run=dry_run))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(2)
    except CuratorError as e:
        logger.error(f"Pipeline failed: {e}")
        raise typer.Exit(1)

    stats = curation.stats
    if stats.errors:
        console.print(f"[yellow]{len(stats.errors)} feed(s) failed:[/yellow]")
        for error in stats.errors:
            console.print(f"  [dim]{error}[/dim]")

    if "publish" in curation.operations:
        title = f"Digest ({len(curation.published)} articles)"
        console.print(_article_table(title, curation.published))
        if curation.destination:
            console.print(f"[green]Published to {curation.destination}[/green]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query (supports full-text search)"),
    limit: int = typer.Option(20, "--limit", "-l", help="Max results"),
) -> None:
    """Search the article index using full-text search."""
    try:
        index = ArticleIndex(_load_settings().index_path)
        results = index.search_text(query, limit=limit)
    except CuratorError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not results:
        console.print(f"[yellow]No results found for '{query}'[/yellow]")
        return

    console.print(_article_table(f"Search Results: '{query}'", results))
    console.print(f"\n[dim]Found {len(results)} results[/dim]")


@app.command()
def recent(
    limit: int = typer.Option(10, "--limit", "-l", help="Max articles to show"),
) -> None:
    """Show the most recently published indexed articles."""
    try:
        articles = ArticleIndex(_load_settings().index_path).recent(limit=limit)
    except CuratorError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not articles:
        console.print("[yellow]Index is empty[/yellow]")
        return

    console.print(_article_table(f"Latest {len(articles)} Articles", articles))


@app.command()
def sources() -> None:
    """List all configured feed sources."""
    all_sources = resolve_sources(_load_settings())

    table = Table(title=f"Configured Feeds ({len(all_sources)} total)")
    table.add_column("Name", width=30)
    table.add_column("Format", style="cyan", width=8)
    table.add_column("URL", style="green")

    for source in sorted(all_sources, key=lambda s: (s.summary_format.value, s.name)):
        table.add_row(source.name[:30], source.summary_format.value, source.url)

    console.print(table)


@app.command()
def stats() -> None:
    """Show index statistics."""
    settings = _load_settings()
    try:
        stats_data = ArticleIndex(settings.index_path).get_stats()
    except CuratorError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(Panel(f"[bold]Index Statistics[/bold]\n{settings.index_path}", style="blue"))
    console.print(f"\n[bold]Total Articles:[/bold] {stats_data['total_articles']:,}")
    if stats_data["total_articles"]:
        console.print(f"[bold]Oldest:[/bold] {stats_data['oldest']}")
        console.print(f"[bold]Newest:[/bold] {stats_data['newest']}")


@app.command("query-dsl")
def query_dsl() -> None:
    """Print the Elasticsearch body equivalent to the configured scoring query."""
    try:
        query = _load_settings().scoring_query()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(2)
    typer.echo(json.dumps(query.to_dsl(), indent=2))


if __name__ == "__main__":
    app()
