#!/usr/bin/env python3
"""
LUMEN CLEW - Plain-language repository scanner

Main entry point for the scanner CLI.

Usage:
    python main.py scan --repo https://github.com/owner/repo
    python main.py scan --repo https://github.com/owner/repo --mode full --output report.json
    python main.py serve --port 3000
"""

import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

# Add src to path for running from a checkout
sys.path.insert(0, str(Path(__file__).parent / "src"))

from lumenclew import __version__
from lumenclew.config import SCAN_MODES, load_config
from lumenclew.core.orchestrator import ScanCoordinator
from lumenclew.errors import ConfigError
from lumenclew.logging_config import configure_logging


console = Console()

_IMPORTANCE_STYLES = {
    "important": "bold red",
    "explore": "yellow",
    "note": "cyan",
    "fyi": "dim",
}

_STATUS_STYLES = {
    "success": "green",
    "partial": "yellow",
    "skipped": "dim",
    "error": "red",
}


@click.group()
@click.version_option(version=__version__, prog_name="LUMEN CLEW")
@click.option('--verbose', is_flag=True, help='Enable debug logging')
@click.option('--config', 'config_path', type=click.Path(), help='YAML configuration file')
@click.pass_context
def cli(ctx, verbose: bool, config_path: str):
    """
    LUMEN CLEW - Plain-language repository scanner

    Scans a GitHub repository for code quality, dependency, secret and
    accessibility findings, and explains each one in plain language.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path


def _load_config_or_exit(ctx):
    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(2)


@cli.command()
@click.option('--repo', required=True, help='GitHub repository URL (https://github.com/owner/repo)')
@click.option('--mode', type=click.Choice(SCAN_MODES), default='fast', help='Scan mode (default: fast)')
@click.option('--output', type=click.Path(), help='Save the report to a JSON file')
@click.pass_context
def scan(ctx, repo: str, mode: str, output: str):
    """
    Scan a GitHub repository.

    Example:
        python main.py scan --repo https://github.com/owner/repo
        python main.py scan --repo https://github.com/owner/repo --mode full
    """
    configure_logging(verbose=ctx.obj["verbose"])
    config = _load_config_or_exit(ctx)

    console.print("\n" + "=" * 80)
    console.print("LUMEN CLEW - Plain-language repository scanner")
    console.print("=" * 80 + "\n")

    console.print(f"[green]Repository:[/green] {repo}")
    console.print(f"[green]Mode:[/green] {mode}")
    console.print(f"[green]Max Files:[/green] {config.mode(mode).max_files}")
    console.print(
        f"[green]Translation:[/green] "
        f"{'[bold green]Enabled[/bold green]' if config.translation.api_key else '[dim]No API key - showing original findings[/dim]'}"
    )
    console.print()

    exit_code = asyncio.run(run_scan(config, repo, mode, output))
    sys.exit(exit_code)


async def run_scan(config, repo: str, mode: str, output: str) -> int:
    """
    Run one scan and render the result.

    Returns:
        Process exit code (0 for success/partial)
    """
    coordinator = ScanCoordinator.from_config(config)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("[cyan]Scanning repository...", total=None)

            result = await coordinator.scan(repo, mode, client_id="cli")

            progress.update(task, description="[green]Scan complete!")
    finally:
        await coordinator.close()

    if result.error is not None:
        console.print(f"\n[bold red]{result.error.code.value}:[/bold red] {result.error.message}")

    if result.report is not None:
        render_report(result.report)

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)

        console.print(f"\n[green]Report saved to:[/green] {output_path}")

    return 0 if result.report is not None and result.error is None else 1


def render_report(report):
    """Print the panel summary and findings of a report"""
    status_style = _STATUS_STYLES.get(report.status.value, "white")
    console.print(f"\n[bold]Status:[/bold] [{status_style}]{report.status.value.upper()}[/]")
    console.print(
        f"[bold]Files:[/bold] {report.scan_scope.files_scanned} scanned, "
        f"{report.scan_scope.files_skipped} skipped "
        f"({report.scan_duration} ms)"
    )

    table = Table(title="Panels")
    table.add_column("Panel", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Findings", justify="right")
    table.add_column("Notes", style="yellow")

    for panel_result in report.panels.values():
        style = _STATUS_STYLES.get(panel_result.status.value, "white")
        notes = panel_result.error_message or panel_result.status_reason or ""
        if panel_result.truncated:
            notes = f"showing {panel_result.finding_count} of {panel_result.original_count}"
        table.add_row(
            panel_result.panel.value,
            f"[{style}]{panel_result.status.value}[/]",
            str(panel_result.finding_count),
            notes,
        )

    console.print()
    console.print(table)

    for panel_result in report.panels.values():
        if not panel_result.findings:
            continue

        console.print(f"\n[bold cyan]{panel_result.panel.value.upper()}[/bold cyan]")
        for i, finding in enumerate(panel_result.findings, 1):
            style = _IMPORTANCE_STYLES.get(finding.importance.value, "white")
            location = f"{finding.file}:{finding.line}" if finding.file else ""
            console.print(f"[{style}][{i}] {finding.importance.value.upper()}[/] {location}")
            console.print(f"  {finding.plain_language}")
            console.print(f"  [dim]{finding.reflection}[/dim]")

    console.print(f"\n[italic]{report.orientation_note}[/italic]\n")


@cli.command()
@click.option('--host', default='0.0.0.0', help='Bind address (default: 0.0.0.0)')
@click.option('--port', default=3000, type=int, help='Port (default: 3000)')
@click.pass_context
def serve(ctx, host: str, port: int):
    """
    Run the HTTP API (POST /api/scan).

    Example:
        python main.py serve --port 3000
    """
    from aiohttp import web
    from lumenclew.api import create_app

    configure_logging(verbose=ctx.obj["verbose"], json_output=True)
    config = _load_config_or_exit(ctx)

    console.print(f"[cyan]Serving on http://{host}:{port}[/cyan]")
    web.run_app(create_app(ScanCoordinator.from_config(config)), host=host, port=port, print=None)


@cli.command()
def version():
    """Show version information and analyzers"""
    console.print(f"\n[bold cyan]LUMEN CLEW v{__version__}[/bold cyan]")
    console.print("[cyan]Plain-language repository scanner[/cyan]\n")

    table = Table(title="Analyzers")
    table.add_column("Panel", style="cyan", no_wrap=True)
    table.add_column("Tool", style="green")
    table.add_column("Notes", style="yellow")

    table.add_row("Code Quality", "ESLint", "Requires npx")
    table.add_row("Dependencies", "npm audit", "Requires npm and package.json")
    table.add_row("Secrets", "Regex patterns", "Built in")
    table.add_row("Accessibility", "Regex patterns", "JSX/TSX/HTML only")

    console.print(table)
    console.print()


if __name__ == '__main__':
    cli()
