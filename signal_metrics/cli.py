"""
Command-line interface for signal-metrics.
"""

import os
import sys
import threading

import click
from rich.console import Console
from rich.progress import Progress, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn
from rich.table import Table

from signal_metrics import __version__
from signal_metrics.batch import BatchConverter
from signal_metrics.config import ConverterConfig, MISSING_FIELD_POLICIES
from signal_metrics.exceptions import MissingFieldError, SignalMetricsException
from signal_metrics.file_stats import analyze_file_age
from signal_metrics.metrics import ProviderMetricsExtractor
from signal_metrics.report import ReportRenderer, read_report
from signal_metrics.utils import configure_logging, format_file_size

console = Console()


def _fail(error):
    console.print(f"\n[bold red]✗ Error:[/bold red] {error}", soft_wrap=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """
    Signal Metrics - Extract provider metrics from saved profile snapshots.
    """
    configure_logging(verbose)


@cli.command(name="convert")
@click.argument('html_file', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--output', '-o',
    help='Report path (defaults to the _root.txt companion file)',
    type=click.Path(dir_okay=False)
)
@click.option(
    '--jitter-seed',
    help='Seed for the end-of-range jitter',
    type=int
)
def convert(html_file, output, jitter_seed):
    """
    Convert one root document into a text report.

    Examples:

        signal-metrics convert mql5/Alpha_123_root.html

        signal-metrics convert Alpha_123_root.html -o alpha.txt
    """
    config = ConverterConfig.from_env().with_overrides(jitter_seed=jitter_seed)
    try:
        extractor = ProviderMetricsExtractor(jitter_seed=config.jitter_seed)
        metrics = extractor.extract(html_file)
        renderer = ReportRenderer()
        report = renderer.write(metrics, output or renderer.report_path_for(html_file))
    except (SignalMetricsException, OSError) as e:
        _fail(e)

    table = Table(title=f"Metrics: {os.path.basename(html_file)}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Balance", f"{metrics.balance:.2f}")
    table.add_row("Equity drawdown", f"{metrics.equity_drawdown:.2f}%")
    table.add_row("Graphic drawdown", f"{metrics.graphic_drawdown:.2f}%")
    table.add_row("Average 3 month profit", f"{metrics.average_3month_profit:.2f}%")
    table.add_row("Stability", f"{metrics.stability.score:.2f}")
    table.add_row("Months", str(len(metrics.monthly_returns)))
    table.add_row("Chart points", str(len(metrics.chart_series)))

    console.print()
    console.print(table)
    console.print(f"\n[bold green]✓ Report written:[/bold green] {report}")
    console.print()


@cli.command(name="batch")
@click.argument('root', type=click.Path(exists=True, file_okay=False))
@click.option(
    '--version-dir', '-d', 'version_dirs',
    multiple=True,
    help='Version subdirectory to scan (repeatable, default: mql4 and mql5)'
)
@click.option(
    '--recursive/--no-recursive',
    default=None,
    help='Scan version directories recursively'
)
@click.option(
    '--on-missing-field',
    type=click.Choice(MISSING_FIELD_POLICIES),
    help='Abort the batch or skip the document when balance or drawdown is missing'
)
@click.option(
    '--jitter-seed',
    help='Seed for the end-of-range jitter',
    type=int
)
def batch(root, version_dirs, recursive, on_missing_field, jitter_seed):
    """
    Convert every root document below ROOT.

    Example:

        signal-metrics batch ./downloads --on-missing-field skip
    """
    try:
        config = ConverterConfig.from_env().with_overrides(
            version_dirs=tuple(version_dirs) or None,
            recursive=recursive,
            on_missing_field=on_missing_field,
            jitter_seed=jitter_seed,
        )
    except ValueError as e:
        _fail(e)

    cancel_event = threading.Event()
    with BatchConverter(config) as converter:
        total = len(converter.discover(root))
        if total == 0:
            console.print("\n[yellow]No root documents found.[/yellow]\n")
            return

        console.print(f"\n[bold cyan]Converting {total} documents...[/bold cyan]")
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Converting", total=100)

            def update_progress(percent, message):
                progress.update(task, completed=percent, description=message)

            future = converter.submit(root, update_progress, cancel_event)
            try:
                result = future.result()
            except KeyboardInterrupt:
                cancel_event.set()
                result = future.result()
            except (SignalMetricsException, OSError) as e:
                _fail(e)

    table = Table(title="Batch Summary")
    table.add_column("Total", style="cyan")
    table.add_column("Converted", style="green")
    table.add_column("Skipped", style="yellow")
    table.add_column("Failed", style="red")
    table.add_row(str(result.total), str(result.converted), str(result.skipped), str(result.failed))
    console.print()
    console.print(table)

    for error in result.errors:
        console.print(f"  • [dim]{error['status']}[/dim] {os.path.basename(error['file'])}: {error['error']}", soft_wrap=True)

    if result.cancelled:
        console.print("\n[bold yellow]Conversion cancelled[/bold yellow]")
    console.print()
    if result.failed:
        sys.exit(1)


@cli.command(name="info")
@click.argument('html_file', type=click.Path(exists=True, dir_okay=False))
def show_info(html_file):
    """
    Display what can be extracted from a root document without writing a report.

    Example:

        signal-metrics info mql5/Alpha_123_root.html
    """
    extractor = ProviderMetricsExtractor()
    try:
        text = extractor.cache.get_text(html_file)
        months = extractor.monthly.all(html_file)
        recent = extractor.monthly.recent_three(html_file)
        series = extractor.chart.extract(html_file)
        stability = extractor.stability.details(html_file)
    except SignalMetricsException as e:
        _fail(e)

    def optional_field(getter):
        try:
            return f"{getter(html_file):.2f}"
        except MissingFieldError:
            return "[red]missing[/red]"

    table = Table(title=f"Document: {os.path.basename(html_file)}")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("File Path", os.path.abspath(html_file))
    table.add_row("File Size", format_file_size(os.path.getsize(html_file)))
    table.add_row("Encoding", extractor.cache.encoding_for(html_file) or "")
    table.add_row("Characters", str(len(text)))
    table.add_row("Balance", optional_field(extractor.balance))
    table.add_row("Equity Drawdown", optional_field(extractor.equity_drawdown))
    table.add_row("Months", str(len(months)))
    table.add_row("Last 3 Months", ", ".join(recent) or "-")
    table.add_row("Chart Points", str(len(series)))
    table.add_row("Stability", f"{stability.score:.2f}")

    console.print()
    console.print(table)
    console.print()


@cli.command(name="read")
@click.argument('report_file', type=click.Path(exists=True, dir_okay=False))
def read(report_file):
    """
    Show the key=value fields of a generated report.

    Example:

        signal-metrics read mql5/Alpha_123_root.txt
    """
    try:
        values = read_report(report_file)
    except (OSError, UnicodeDecodeError) as e:
        _fail(e)

    table = Table(title=f"Report: {os.path.basename(report_file)}")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    for key, value in values.items():
        if value:
            table.add_row(key, value)

    console.print()
    console.print(table)
    console.print()


@cli.command(name="stats")
@click.argument('directory', type=click.Path(file_okay=False))
@click.option(
    '--max-days',
    default=30,
    show_default=True,
    help='Largest age bucket in days',
    type=click.IntRange(min=0)
)
def stats(directory, max_days):
    """
    Show how old the root documents in DIRECTORY are.

    Example:

        signal-metrics stats ./downloads/mql5 --max-days 14
    """
    distribution = analyze_file_age(directory, max_days)

    table = Table(title=f"Document Age: {directory}")
    table.add_column("Age (days)", style="cyan", justify="right")
    table.add_column("Files", style="green", justify="right")
    for age, count in distribution.items():
        if count:
            label = f"{age}+" if age == max_days else str(age)
            table.add_row(label, str(count))

    console.print()
    console.print(table)
    console.print(f"[dim]Total: {sum(distribution.values())} documents[/dim]")
    console.print()


if __name__ == '__main__':
    cli()
