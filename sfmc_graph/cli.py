"""CLI entry point for the SFMC metadata crawler."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .core.config import SFMCConfig, get_config
from .core.errors import AuthenticationError, CrawlCancelledError, CrawlerError
from .crawler.metadata_crawler import MetadataCrawler
from .output.graph_writer import write_graph

logger = logging.getLogger(__name__)

# CLI app
app = typer.Typer(
    name="sfmc-graph",
    help="SFMC Metadata Graph - crawl Salesforce Marketing Cloud assets into a dependency graph",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"sfmc-graph version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        help="Show version and exit",
    ),
) -> None:
    """SFMC Metadata Graph - crawl SFMC metadata into a node/edge graph."""
    pass


def _load_config(
    subdomain: Optional[str],
    token: Optional[str],
    soap_token: Optional[str],
    timeout: Optional[float],
) -> SFMCConfig:
    config = get_config().with_overrides(
        subdomain=subdomain,
        access_token=token,
        soap_token=soap_token,
        crawl_timeout=timeout,
    )
    errors = config.validate()
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        console.print("\nPass options or set environment variables / create a .env file.")
        raise typer.Exit(1)
    return config


@app.command()
def crawl(
    subdomain: Optional[str] = typer.Option(
        None,
        "--subdomain",
        "-s",
        help="SFMC tenant subdomain (defaults to SFMC_SUBDOMAIN)",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        "-t",
        help="Bearer access token (defaults to SFMC_ACCESS_TOKEN)",
    ),
    soap_token: Optional[str] = typer.Option(
        None,
        "--soap-token",
        help="Distinct SOAP fueloauth token (defaults to the access token)",
    ),
    output: Path = typer.Option(
        Path("./graph.json"),
        "--output",
        "-o",
        help="Output JSON file",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Abort the crawl after this many seconds",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """Crawl the account and write the dependency graph."""
    setup_logging(verbose)
    config = _load_config(subdomain, token, soap_token, timeout)

    console.print("\n[bold]SFMC Metadata Crawl[/bold]")
    console.print(f"Subdomain: {config.subdomain}")
    console.print(f"Output: {output}")
    console.print()

    try:
        graph = asyncio.run(run_crawl(config))
    except AuthenticationError as e:
        console.print(f"[red]Authentication failed:[/red] {e}")
        console.print("Obtain a fresh token and retry.")
        raise typer.Exit(2)
    except CrawlCancelledError as e:
        console.print(f"[yellow]Crawl aborted:[/yellow] {e}")
        raise typer.Exit(1)
    except CrawlerError as e:
        step = e.phase or "setup"
        console.print(f"[red]Crawl failed during '{step}':[/red] {e.message}")
        raise typer.Exit(1)

    write_graph(graph, output)
    print_summary(graph, output)


async def run_crawl(config: SFMCConfig) -> dict[str, Any]:
    """Run the crawl with a spinner showing the current phase."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Starting crawl...", total=None)

        def progress_callback(phase: str, index: int, total: int) -> None:
            progress.update(task, description=f"[{index + 1}/{total}] {phase.replace('_', ' ')}")

        crawler = MetadataCrawler(config, progress_callback=progress_callback)
        return await crawler.crawl()


def print_summary(graph: dict[str, Any], output: Path) -> None:
    """Print node/edge counts and performance."""
    metadata = graph["metadata"]
    performance = metadata["performance"]

    console.print()
    table = Table(title="Crawl Summary")
    table.add_column("Collection", style="cyan")
    table.add_column("Count", justify="right")

    for name, count in metadata.get("collections", {}).items():
        table.add_row(name, str(count))

    console.print(table)

    edge_table = Table(title="Edges by Type")
    edge_table.add_column("Type", style="cyan")
    edge_table.add_column("Count", justify="right")
    for edge_type, count in sorted(metadata.get("edgeTypes", {}).items()):
        edge_table.add_row(edge_type, str(count))
    console.print(edge_table)

    console.print()
    console.print(f"[bold]Nodes:[/bold] {metadata['totalNodes']}")
    console.print(f"[bold]Edges:[/bold] {metadata['totalEdges']} ({metadata.get('inferredEdges', 0)} inferred)")
    console.print(
        f"[bold]API calls:[/bold] {performance['apiCalls']} "
        f"(retries {performance['retries']}, success {performance['successRate']})"
    )
    console.print(f"[bold]Duration:[/bold] {performance['durationSeconds']}s")
    console.print(f"[bold]Output:[/bold] {output}")


@app.command()
def check() -> None:
    """Check configuration."""
    config = get_config()

    console.print("[bold]Configuration Check[/bold]\n")

    errors = config.validate()
    if errors:
        console.print("[red]Missing configuration:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        console.print("\nPlease set environment variables or create a .env file.")
        raise typer.Exit(1)

    console.print(f"[green]Subdomain:[/green] {config.subdomain}")
    console.print(f"[green]Access token:[/green] {config.access_token[:8]}...")
    console.print(f"[green]SOAP token:[/green] {'separate' if config.soap_token else 'same as access token'}")
    console.print(f"[green]REST URL:[/green] {config.rest_url}")
    console.print(f"[green]SOAP URL:[/green] {config.soap_url}")
    console.print(
        f"[green]Retries:[/green] {config.max_retries} "
        f"(base delay {config.retry_delay}s, timeout {config.timeout}s)"
    )
    console.print("\n[green]Configuration OK[/green]")


if __name__ == "__main__":
    app()
