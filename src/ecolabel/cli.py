"""CLI interface for ecolabel."""

import json
import logging
import socket
import sys
from typing import Optional

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from . import __version__
from .analyzer import MAX_URLS_PER_REQUEST, analyze_url, analyze_website, normalize_url
from .auditors import build_auditor
from .config import AUDITORS, STRATEGIES, Settings
from .discovery import discover_pages
from .exceptions import AggregationFailure, BatchFailure, EcoLabelError, ReportNotFoundError
from .models import EcoData, PageAnalysis, WebsiteReport
from .scoring import classify
from .storage import ReportStore


console = Console()


def setup_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_score_bar(score: float, color: str, width: int = 20) -> Text:
    """Create a visual score bar."""
    filled = int((max(0, min(100, score)) / 100) * width)
    empty = width - filled

    bar = Text()
    bar.append("█" * filled, style=color)
    bar.append("░" * empty, style="dim")
    bar.append(f" {score:.0f}/100", style=f"bold {color}")
    return bar


def metrics_table(eco: EcoData) -> Table:
    """Table of the EcoScore components and CO2 estimate."""
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Performance", f"{eco.performance:.1f}/100")
    table.add_row("Total bytes", f"{eco.total_bytes / 1024:.1f} KB")
    table.add_row("Bootup time", f"{eco.bootup_time:.1f} ms")
    table.add_row("Green hosting", "[green]Yes[/green]" if eco.hosting_green else "[red]No[/red]")
    table.add_row("Image optimization", "[green]Yes[/green]" if eco.image_optimization else "[red]No[/red]")
    table.add_row("CLS", f"{eco.cls:.3f}")
    if eco.co2:
        table.add_row("CO2 per visit", f"{eco.co2.total_co2_kg * 1000:.3f} g")
        table.add_row("Trees / year", f"{eco.co2.equivalent_trees:.4f}")
        table.add_row("Car distance", f"{eco.co2.equivalent_cars_km * 1000:.2f} m")
    else:
        table.add_row("CO2 per visit", "[dim]unavailable[/dim]")
    return table


def print_analysis(analysis: PageAnalysis) -> None:
    """Print a single page analysis to console."""
    label = analysis.eco_label
    console.print()
    console.print(Panel(
        f"[bold]{analysis.url}[/bold]\n"
        f"[dim]Analyzed {analysis.analyzed_at}[/dim]",
        title="🌱 EcoLabel",
        border_style="green"
    ))
    console.print()
    console.print("  EcoScore: ", end="")
    console.print(print_score_bar(analysis.eco_data.eco_score, label.color, width=25))
    console.print(f"  Grade: [bold {label.color}]{label.grade.value}[/] - {label.label}")
    console.print(metrics_table(analysis.eco_data))
    if analysis.filename:
        console.print(f"[dim]📄 Report saved: {analysis.filename}[/dim]")


def print_website_report(report: WebsiteReport, filename: Optional[str]) -> None:
    """Print a website report to console."""
    label = report.eco_label
    data = report.aggregated_eco_data

    console.print()
    console.print(Panel(
        f"[bold]{report.domain}[/bold]\n"
        f"[dim]Pages analyzed: {report.successful_analyses}/{report.analyzed_pages}[/dim]",
        title="🌐 Website EcoLabel",
        border_style="green"
    ))
    console.print()
    console.print("  EcoScore: ", end="")
    console.print(print_score_bar(data.eco_score, label.color, width=25))
    console.print(f"  Grade: [bold {label.color}]{label.grade.value}[/] - {label.label}")
    console.print(metrics_table(data))

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Page", style="cyan")
    table.add_column("EcoScore", justify="right")
    table.add_column("Grade")
    table.add_column("Performance", justify="right")
    for page in report.pages:
        table.add_row(
            page.url,
            f"[{page.eco_label.color}]{page.eco_data.eco_score}/100[/]",
            page.eco_label.grade.value,
            f"{page.eco_data.performance:.1f}",
        )
    console.print(table)

    if report.errors:
        console.print("[bold]⚠ Errors:[/bold]\n")
        for err in report.errors:
            console.print(f"  [red]✗[/red] {err.url}: {err.error}")
        console.print()

    if filename:
        console.print(f"[dim]📄 Report saved: {filename}[/dim]")


def print_footer() -> None:
    console.print("[dim]─" * 50 + "[/dim]")
    console.print(f"[dim]ecolabel v{__version__}[/dim]")
    console.print()


def auditor_options(f):
    """Options shared by commands that run audits."""
    options = [
        click.option("--auditor", type=click.Choice(AUDITORS), default=None,
                     help="Audit backend (default: $ECOLABEL_AUDITOR or pagespeed)"),
        click.option("--strategy", type=click.Choice(STRATEGIES), default=None,
                     help="Device emulation (default: desktop)"),
        click.option("--api-key", default=None, help="PageSpeed Insights API key (default: $PSI_API_KEY)"),
        click.option("-t", "--timeout", type=float, default=None, help="Audit timeout in seconds"),
        click.option("--reports-dir", type=click.Path(file_okay=False), default=None,
                     help="Where reports are saved (default: ./reports)"),
        click.option("--no-save", is_flag=True, help="Don't save reports"),
        click.option("--json", "json_output", is_flag=True, help="Output as JSON"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _settings(auditor, strategy, api_key, timeout, reports_dir) -> Settings:
    return Settings.from_env(
        auditor=auditor,
        strategy=strategy,
        api_key=api_key,
        timeout=timeout,
        reports_dir=reports_dir,
    )


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx, verbose):
    """EcoLabel - ecological efficiency audit for web pages.

    \b
    Quick start:
        ecolabel analyze example.com
        ecolabel site example.com example.com/about

    \b
    Commands:
        analyze   EcoScore for one or more pages
        site      Aggregated EcoLabel for a whole site
        reports   Browse saved reports
        scenario  Sample CPU/memory usage while visiting pages
        serve     Run the HTTP API
    """
    setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@auditor_options
def analyze(urls, auditor, strategy, api_key, timeout, reports_dir, no_save, json_output):
    """Analyze one or more pages independently.

    \b
    Examples:
        ecolabel analyze example.com
        ecolabel analyze example.com python.org --json
    """
    settings = _settings(auditor, strategy, api_key, timeout, reports_dir)
    store = None if no_save else ReportStore(settings.reports_dir)

    results: list[PageAnalysis] = []
    failures: list[tuple[str, str]] = []
    try:
        with build_auditor(settings) as audit_backend:
            for url in urls:
                with console.status(f"[bold green]Analyzing {url}...[/bold green]"):
                    try:
                        results.append(analyze_url(url, audit_backend, store))
                    except EcoLabelError as e:
                        failures.append((normalize_url(url), str(e)))
    except EcoLabelError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if json_output:
        output = [r.to_dict() for r in results] + [{"url": u, "error": err} for u, err in failures]
        click.echo(json.dumps(output, indent=2))
    else:
        for result in results:
            print_analysis(result)
        for url, error in failures:
            console.print(f"\n[red]✗ {url}:[/red] {error}")

        console.print()
        if results:
            average = sum(r.eco_data.eco_score for r in results) / len(results)
            label = classify(average)
            console.print(f"🌱 Average EcoScore: [bold {label.color}]{average:.1f} ({label.grade.value})[/]")
        else:
            console.print("🌱 Average EcoScore: [dim]n/a[/dim]")
        print_footer()

    if not results:
        sys.exit(1)


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--discover", is_flag=True,
              help=f"Find up to {MAX_URLS_PER_REQUEST} pages linked from the first URL")
@auditor_options
def site(urls, discover, auditor, strategy, api_key, timeout, reports_dir, no_save, json_output):
    """Analyze several pages of a site and aggregate them.

    \b
    Examples:
        ecolabel site example.com example.com/about example.com/contact
        ecolabel site example.com --discover
    """
    settings = _settings(auditor, strategy, api_key, timeout, reports_dir)
    store = None if no_save else ReportStore(settings.reports_dir)

    targets = list(urls)
    if discover:
        with console.status(f"[bold green]Discovering pages on {targets[0]}...[/bold green]"):
            try:
                targets = discover_pages(normalize_url(targets[0]), limit=MAX_URLS_PER_REQUEST)
            except httpx.HTTPError as e:
                console.print(f"[red]Error discovering pages:[/red] {e}")
                sys.exit(1)

    status = console.status("[bold green]Analyzing...[/bold green]")

    def progress(index: int, total: int, url: str) -> None:
        status.update(f"[bold green]Analyzing {index}/{total}: {url}[/bold green]")

    try:
        with status, build_auditor(settings) as audit_backend:
            report, filename = analyze_website(targets, audit_backend, store, on_progress=progress)
    except (BatchFailure, AggregationFailure) as e:
        console.print(f"[red]Error:[/red] {e}")
        for err in e.errors:
            console.print(f"  [red]✗[/red] {err.url}: {err.error}")
        sys.exit(1)
    except EcoLabelError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps({"filename": filename, **report.to_dict()}, indent=2))
    else:
        print_website_report(report, filename)
        print_footer()


@cli.group()
def reports():
    """Browse saved reports."""


@reports.command("list")
@click.option("--reports-dir", type=click.Path(file_okay=False), default=None)
def list_reports(reports_dir):
    """List saved reports, newest first."""
    store = ReportStore(Settings.from_env(reports_dir=reports_dir).reports_dir)
    saved = store.list()
    if not saved:
        console.print("[dim]No reports found[/dim]")
        return

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Report", style="cyan")
    table.add_column("Created")
    table.add_column("Size", justify="right")
    for info in saved:
        table.add_row(info.filename, info.created_at.strftime("%Y-%m-%d %H:%M:%S"), f"{info.size / 1024:.1f} KB")
    console.print(table)


@reports.command("show")
@click.argument("filename")
@click.option("--reports-dir", type=click.Path(file_okay=False), default=None)
def show_report(filename, reports_dir):
    """Print a saved report as JSON."""
    store = ReportStore(Settings.from_env(reports_dir=reports_dir).reports_dir)
    try:
        report = store.load(filename)
    except ReportNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    click.echo(json.dumps(report, indent=2))


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def scenario(urls, headed, json_output):
    """Sample browser and system resource usage while visiting pages.

    \b
    Examples:
        ecolabel scenario example.com python.org
    """
    from .scenario import Scenario, ScenarioRunner

    scenarios = [Scenario(f"Scenario {i}: {url}", normalize_url(url)) for i, url in enumerate(urls, 1)]
    settings = Settings.from_env()
    with console.status("[bold green]Running scenarios...[/bold green]"):
        with ScenarioRunner(headless=not headed, executable_path=settings.chrome_path) as runner:
            results = runner.run(scenarios)

    if json_output:
        click.echo(json.dumps([
            {"name": r.name, "url": r.url, "metrics": r.metrics, "error": r.error} for r in results
        ], indent=2))
        return

    for result in results:
        console.print()
        if result.error:
            console.print(f"[red]✗ {result.name}:[/red] {result.error}")
            continue
        table = Table(title=result.name, box=box.SIMPLE, show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        for name, value in sorted(result.metrics.items()):
            table.add_row(name, f"{value:.3f}" if isinstance(value, float) else str(value))
        console.print(table)
    print_footer()


def port_available(host: str, port: int) -> bool:
    """Check whether a TCP port can be bound."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


@cli.command()
@click.option("--host", default=None, help="Bind address (default: $HOST or 127.0.0.1)")
@click.option("--port", type=int, default=None, help="Port (default: $PORT or 3000)")
def serve(host, port):
    """Run the HTTP API.

    If the port is taken, the next one up is used.
    """
    import uvicorn

    from .server import create_app

    settings = Settings.from_env(host=host, port=port)
    port = settings.port
    if not port_available(settings.host, port):
        console.print(f"[red]❌ Port {port} is already in use[/red]")
        port += 1
        console.print(f"Trying port {port}...")
    console.print(f"🌍 EcoLabel server running on http://{settings.host}:{port}")
    uvicorn.run(create_app(settings), host=settings.host, port=port)


# Convenience: allow `ecolabel URL` as shortcut for `ecolabel analyze URL`
def main():
    """Entry point that handles both `ecolabel URL` and `ecolabel analyze URL`."""
    args = sys.argv[1:]
    commands = ["analyze", "site", "reports", "scenario", "serve", "--help", "--version"]

    if args and not args[0].startswith('-') and args[0] not in commands:
        if '.' in args[0] or args[0].startswith("localhost"):
            sys.argv.insert(1, 'analyze')

    cli()


if __name__ == "__main__":
    main()
