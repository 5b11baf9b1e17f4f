"""
Relationship Graph Intelligence CLI

Command-line interface for finding introduction paths and analyzing network
influence over an exported relationship graph.
"""

import asyncio
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

# Initialize console for rich output
console = Console()


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging with rich handler."""
    handlers = [RichHandler(console=console, show_path=False)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=handlers,
    )


def _load_session(ctx: click.Context, input_dir: Optional[str]):
    """Load the snapshot named on the command line (or in config) into a session."""
    from graph_intel.errors import SnapshotUnavailable
    from graph_intel.pipeline.loader import FileGraphStore, create_store
    from graph_intel.pipeline.session import AnalysisSession, create_embedding_provider

    config = ctx.obj["config"]
    try:
        store = FileGraphStore(input_dir) if input_dir else create_store(config.store)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(f"Loading snapshot from {store.describe()}...", total=None)
        try:
            provider = create_embedding_provider(config)
            session = asyncio.run(
                AnalysisSession.load(store, config=config, embedding_provider=provider)
            )
        except (SnapshotUnavailable, ValueError) as e:
            progress.update(task, completed=True)
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
        progress.update(task, completed=True)

    diagnostics = session.index.diagnostics
    console.print(
        f"  [green]✓[/green] Loaded {diagnostics.total_entities} entities, "
        f"{diagnostics.indexed_edges} connections"
    )
    if diagnostics.dropped_edges or diagnostics.invalid_records:
        console.print(
            f"  [yellow]![/yellow] Skipped {diagnostics.dropped_edges} invalid edges, "
            f"{diagnostics.invalid_records} invalid records"
        )
    return session


def _embed_context(session, context: Optional[str]) -> Optional[list[float]]:
    if not context:
        return None
    try:
        embedding = asyncio.run(session.service.embed_context(context))
    except Exception as e:
        console.print(f"  [yellow]![/yellow] Context embedding failed, scoring without it: {e}")
        logging.debug(f"Embedding error: {e}", exc_info=True)
        return None
    if embedding is None:
        console.print("  [yellow]![/yellow] No embedding provider configured, ignoring --context")
    return embedding


def _paths_table(paths) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Path")
    table.add_column("Strategy", justify="center")
    table.add_column("Hops", justify="right")
    table.add_column("Strength", justify="right")
    table.add_column("Score", justify="right")

    for i, p in enumerate(paths, 1):
        table.add_row(
            str(i),
            p.explanation,
            p.strategy.value,
            str(p.hop_count),
            f"{p.strength:.3f}",
            f"{p.score:.4f}",
        )
    return table


input_option = click.option(
    "--input", "-i",
    "input_dir",
    default=None,
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
    help="Directory with entities/edges exports (default: configured store)",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--config", "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config.yaml",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config_path: Optional[str]) -> None:
    """Relationship Graph Intelligence - Find warm introductions through your network."""
    from graph_intel.utils.config import load_config

    ctx.ensure_object(dict)
    config = load_config(config_path)
    ctx.obj["config"] = config

    if verbose:
        ctx.obj["log_level"] = "DEBUG"
    elif quiet:
        ctx.obj["log_level"] = "WARNING"
    else:
        ctx.obj["log_level"] = config.logging.level

    setup_logging(ctx.obj["log_level"], config.logging.file)


@cli.command("warm-intros")
@click.option(
    "--target", "-t",
    "targets",
    required=True,
    multiple=True,
    help="Target entity id (repeat for several targets)",
)
@input_option
@click.option(
    "--output", "-o",
    "output_dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Write reports to this directory",
)
@click.option(
    "--format", "-f",
    "formats",
    multiple=True,
    type=click.Choice(["csv", "markdown", "json"]),
    default=None,
    help="Output formats to generate",
)
@click.option("--max-results", default=None, type=int, help="Introductions per target")
@click.option("--max-hops", default=None, type=int, help="Hop budget per seed")
@click.option("--context", default=None, help="Free-text context for semantic scoring")
@click.pass_context
def warm_intros(
    ctx: click.Context,
    targets: tuple[str, ...],
    input_dir: Optional[str],
    output_dir: Optional[str],
    formats: tuple[str, ...],
    max_results: Optional[int],
    max_hops: Optional[int],
    context: Optional[str],
) -> None:
    """Find warm introductions from internal people to target entities."""
    from graph_intel.pipeline.outputs import OutputGenerator

    config = ctx.obj["config"]
    console.print("\n[bold blue]Warm Introductions[/bold blue]")
    console.print("=" * 50)

    session = _load_session(ctx, input_dir)
    context_embedding = _embed_context(session, context)
    max_results = max_results or config.warm_introductions.max_results

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Searching introduction paths...", total=len(targets))

        def progress_cb(current, total):
            progress.update(task, completed=current)

        reports = session.service.find_warm_introductions_batch(
            targets,
            max_results=max_results,
            max_hops=max_hops,
            context_embedding=context_embedding,
            progress_callback=progress_cb,
        )

    generator = None
    if output_dir:
        generator = OutputGenerator(
            output_dir=output_dir,
            formats=list(formats) or config.output.formats,
            timestamp_filenames=config.output.timestamp_filenames,
            max_items_per_section=config.output.max_items_per_section,
        )

    for target_id, report in reports.items():
        target_name = session.index.name_of(target_id)
        console.print(f"\n[bold]{target_name}[/bold] [dim]({target_id})[/dim]")

        if report.error:
            console.print(f"  [red]✗[/red] Search failed: {report.error}")
        elif report.unknown_target:
            console.print("  [yellow]Unknown entity[/yellow]")
        elif report.empty_seed_set:
            console.print("  [yellow]No internal people to start from[/yellow]")
        elif not report.paths:
            console.print(f"  [yellow]No warm introductions within {max_hops or config.warm_introductions.max_hops} hops[/yellow]")
        else:
            console.print(_paths_table(report.paths))

        if generator is not None:
            output_files = generator.generate_introduction_paths(report, target_name=target_name)
            for fmt, path in output_files.items():
                console.print(f"  • {fmt}: [cyan]{path}[/cyan]")

    session.close()
    console.print()


@cli.command()
@click.option("--source", "-s", required=True, help="Source entity id")
@click.option("--target", "-t", required=True, help="Target entity id")
@input_option
@click.option(
    "--strategy",
    "strategies",
    multiple=True,
    type=click.Choice(["shortest", "strongest", "hub", "organization"]),
    default=None,
    help="Strategies to run (repeatable, default: configured set)",
)
@click.option("--max-hops", default=None, type=int, help="Hop budget")
@click.option("--max-paths", default=None, type=int, help="Paths returned")
@click.option("--min-strength", default=0.0, type=float, help="Minimum cumulative strength")
@click.option("--context", default=None, help="Free-text context for semantic scoring")
@click.pass_context
def paths(
    ctx: click.Context,
    source: str,
    target: str,
    input_dir: Optional[str],
    strategies: tuple[str, ...],
    max_hops: Optional[int],
    max_paths: Optional[int],
    min_strength: float,
    context: Optional[str],
) -> None:
    """Find ranked introduction paths between two entities."""
    from graph_intel.models.entities import PathStrategy

    config = ctx.obj["config"]
    session = _load_session(ctx, input_dir)
    index = session.index

    for entity_id in (source, target):
        if not index.has_entity(entity_id):
            console.print(f"[red]Unknown entity: {entity_id}[/red]")
            sys.exit(1)

    selected = [PathStrategy(s) for s in strategies] if strategies else config.paths.strategies
    found = session.service.find_optimal_paths(
        source,
        target,
        strategies=selected,
        max_hops=max_hops,
        max_paths=max_paths,
        min_path_strength=min_strength,
        context_embedding=_embed_context(session, context),
    )

    console.print(
        f"\n[bold blue]Paths from {index.name_of(source)} to {index.name_of(target)}[/bold blue]"
    )
    if not found:
        console.print("[yellow]No paths found.[/yellow]")
    else:
        console.print(_paths_table(found))

    session.close()
    console.print()


@cli.command()
@click.option(
    "--entity", "-e",
    "entity_ids",
    required=True,
    multiple=True,
    help="Entity id (repeat for several entities)",
)
@input_option
@click.pass_context
def connectivity(ctx: click.Context, entity_ids: tuple[str, ...], input_dir: Optional[str]) -> None:
    """Show connectivity and influence for entities."""
    session = _load_session(ctx, input_dir)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Entity")
    table.add_column("Connections", justify="right")
    table.add_column("Out / In", justify="right")
    table.add_column("Reachable", justify="right")
    table.add_column("Influence", justify="right")
    table.add_column("Density", justify="right")
    table.add_column("Well connected", justify="center")
    table.add_column("Influential", justify="center")

    for entity_id in entity_ids:
        summary = session.analyzer.analyze_connectivity(entity_id)
        if summary is None:
            console.print(f"[yellow]Unknown entity: {entity_id}[/yellow]")
            continue
        table.add_row(
            summary.entity_name,
            str(summary.total_connections),
            f"{summary.outgoing_connections} / {summary.incoming_connections}",
            str(summary.reachable_entities),
            f"{summary.influence_score:.1f}",
            f"{summary.network_density:.4f}",
            "[green]Yes[/green]" if summary.is_well_connected else "[dim]No[/dim]",
            "[green]Yes[/green]" if summary.is_influential else "[dim]No[/dim]",
        )

    console.print(table)
    session.close()


@cli.command()
@input_option
@click.option("--top-k", default=None, type=int, help="Number of top influencers")
@click.option(
    "--output", "-o",
    "output_dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Write reports to this directory",
)
@click.pass_context
def insights(
    ctx: click.Context,
    input_dir: Optional[str],
    top_k: Optional[int],
    output_dir: Optional[str],
) -> None:
    """Summarize network-wide connectivity and influence."""
    from graph_intel.pipeline.outputs import OutputGenerator

    config = ctx.obj["config"]
    session = _load_session(ctx, input_dir)
    if top_k is not None:
        session.analyzer.top_k = top_k

    result = session.analyzer.compute_network_insights()

    console.print("\n[bold blue]Network Insights[/bold blue]")
    console.print("=" * 50)

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Entities", str(result.total_entities))
    table.add_row("Connections", str(result.total_connections))
    table.add_row("Network density", f"{result.network_density:.4%}")
    table.add_row("Well connected", str(result.well_connected_entities))
    table.add_row("Influential", str(result.influential_entities))
    if result.dropped_edges:
        table.add_row("Dropped edges", str(result.dropped_edges))
    console.print(table)

    if result.top_influencers:
        console.print("\n[bold]Top Influencers:[/bold]")
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Influence", justify="right")
        for i, entry in enumerate(result.top_influencers, 1):
            table.add_row(str(i), entry.name, entry.type, f"{entry.influence_score:.1f}")
        console.print(table)

    if output_dir:
        generator = OutputGenerator(
            output_dir=output_dir,
            formats=config.output.formats,
            timestamp_filenames=config.output.timestamp_filenames,
            max_items_per_section=config.output.max_items_per_section,
        )
        for fmt, path in generator.generate_network_insights(result).items():
            console.print(f"  • {fmt}: [cyan]{path}[/cyan]")

    session.close()
    console.print()


@cli.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from graph_intel import __version__

    console.print(f"Relationship Graph Intelligence v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
