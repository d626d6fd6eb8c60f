#!/usr/bin/env python3
"""
UI Rendering Benchmark - CLI Entry Point

Usage:
    python main.py run                 # all targets, 5 iterations
    python main.py run react 10
    python main.py report --input out/all-results.json
    python main.py list-targets
"""

import sys
import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from uibench import __version__
from uibench.config import Config
from uibench.targets import ConfigurationError, get_target, list_targets, resolve_targets
from uibench.data import RENDER_SIZES, write_dataset
from uibench.benchmark.orchestrator import Orchestrator, load_reports
from uibench.benchmark.reporter import collect_sizes
from uibench.benchmark.utils import format_ms

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()


def setup_logging(verbose: bool = False, debug: bool = False):
    """Configure logging level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure root logger
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )

    # Also set level for our modules
    for module in ['uibench.targets', 'uibench.benchmark', 'uibench.data']:
        logging.getLogger(module).setLevel(level)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output (INFO level)')
@click.option('--debug', is_flag=True, help='Enable debug output (DEBUG level, shows every attempt)')
@click.pass_context
def cli(ctx, verbose, debug):
    """
    UI Rendering Benchmark Tool

    Builds and serves each UI stack, drives it through a headless browser
    and compares render, bulk-update and mount/unmount timings.

    Use -v for verbose output, --debug for per-attempt logs.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['debug'] = debug
    setup_logging(verbose, debug)


@cli.command()
@click.argument('target', default='all')
@click.argument('iterations', default=Config.ITERATIONS, type=click.IntRange(min=1))
@click.option('--output', '-o', default=None, type=click.Path(file_okay=False), help='Output directory')
def run(target, iterations, output):
    """
    Benchmark TARGET ("all" or a target name) for ITERATIONS iterations.

    Example:
        python main.py run angular 3
    """
    console.print(f"\n[bold blue]UI Rendering Benchmark[/bold blue]")

    try:
        targets = resolve_targets(target)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"Targets: [cyan]{', '.join(t.name for t in targets)}[/cyan]")
    console.print(f"Iterations: [cyan]{iterations}[/cyan]")
    console.print("")

    orchestrator = Orchestrator(targets, iterations=iterations, output_dir=output)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Running benchmark...", total=len(targets))
        orchestrator.on_target(lambda report: progress.advance(task))

        try:
            artifacts = asyncio.run(orchestrator.run())
        except OSError as e:
            console.print(f"[red]Fatal error writing results: {e}[/red]")
            sys.exit(1)

    _print_summary(artifacts.reports)
    console.print(f"\n📄 Markdown report: [green]{artifacts.output_dir / 'report.md'}[/green]")
    console.print(f"📊 CSV results: [green]{artifacts.output_dir / 'results.csv'}[/green]")

    for name in artifacts.failed_targets:
        console.print(f"[yellow]⚠️  {name}: unavailable (see logs)[/yellow]")


def _print_summary(reports):
    """Print median timings per target as a table."""
    sizes = collect_sizes(reports)

    table = Table(title="Median timings (ms)")
    table.add_column("Target", style="cyan")
    table.add_column("Status")
    for size in sizes:
        table.add_column(f"render {size}", justify="right")
    table.add_column("bulk", justify="right")
    table.add_column("churn", justify="right")

    for report in reports:
        stats = report.stats
        status = "[green]ok[/green]" if report.available else "[red]unavailable[/red]"
        render_cells = [
            format_ms(stats.render_by_size[size].median) if stats.render_by_size.get(size) else "N/A"
            for size in sizes
        ]
        table.add_row(
            report.target,
            status,
            *render_cells,
            format_ms(stats.bulk.median if stats.bulk else None),
            format_ms(stats.churn.median if stats.churn else None),
        )

    console.print(table)


@cli.command()
@click.option('--input', '-i', 'input_path', default=None, type=click.Path(dir_okay=False),
              help='all-results.json to rebuild from (default: <output>/all-results.json)')
@click.option('--output', '-o', default=None, type=click.Path(file_okay=False), help='Output directory')
def report(input_path, output):
    """
    Rebuild results.csv, report.md and charts from saved results.

    Example:
        python main.py report -i out/all-results.json
    """
    output_dir = Path(output) if output else Config.OUTPUT_DIR
    source = Path(input_path) if input_path else output_dir / "all-results.json"

    if not source.exists():
        console.print(f"[red]Error: Results file not found: {source}[/red]")
        sys.exit(1)

    reports = load_reports(source)
    orchestrator = Orchestrator([], output_dir=output_dir)

    try:
        artifacts = orchestrator.write_artifacts(reports)
    except OSError as e:
        console.print(f"[red]Fatal error writing results: {e}[/red]")
        sys.exit(1)

    _print_summary(artifacts.reports)
    console.print(f"\n📄 Markdown report: [green]{artifacts.output_dir / 'report.md'}[/green]")


@cli.command('list-targets')
def list_targets_cmd():
    """List configured targets."""
    console.print("\n[bold]Configured Targets:[/bold]\n")

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Port", justify="right")
    table.add_column("Directory")
    table.add_column("Build")
    table.add_column("Start")
    table.add_column("Status")

    for name in list_targets():
        target = get_target(name)
        if target.working_directory.exists():
            status = "[green]✅ Found[/green]"
        else:
            status = "[red]❌ Missing directory[/red]"

        table.add_row(
            name,
            str(target.port),
            str(target.working_directory),
            " ".join(target.build_command),
            " ".join(target.start_command),
            status,
        )

    console.print(table)
    console.print("\nTo change a target, set <NAME>_DIR, <NAME>_PORT, <NAME>_BUILD_COMMAND or <NAME>_START_COMMAND in .env")


@cli.command('export-dataset')
@click.option('--output', '-o', default='dataset.json', help='Output filename')
@click.option('--rows', '-n', default=RENDER_SIZES[1], type=click.IntRange(min=0), help='Number of rows')
@click.option('--format', '-f', type=click.Choice(['json', 'csv']), default='json', help='Output format')
def export_dataset(output, rows, format):
    """Write the canonical benchmark rows, for checking a page's data generator."""
    write_dataset(output, rows, format)
    console.print(f"[green]✅ Dataset created: {output} ({rows} rows)[/green]")


@cli.command('init')
def init():
    """Initialize output directories and check the environment."""
    console.print("\n[bold blue]Initializing Benchmark Project[/bold blue]\n")

    # Create directories
    output_dir = Config.ensure_directories()
    console.print(f"✅ Created output directory: {output_dir}")
    console.print(f"✅ Created plots directory: {output_dir / 'plots'}")

    # Check .env
    env_file = Path(".env")
    if not env_file.exists():
        console.print("\n[yellow]⚠️  No .env file found, using defaults.[/yellow]")
    else:
        console.print("✅ .env file exists")

    console.print("\n[bold]Next steps:[/bold]")
    console.print(f"1. Place the UI projects under {Config.BENCH_ROOT} (or set BENCH_ROOT)")
    console.print("2. Install the browser: playwright install chromium")
    console.print("3. Run: python main.py run all 5")


if __name__ == "__main__":
    cli()
