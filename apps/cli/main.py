"""CLI application for pkgbump."""

import asyncio
import json
import logging
import sys
import time
from enum import Enum
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from pkgbump.check import check_manifest, run_check
from pkgbump.config import Settings, get_settings
from pkgbump.detect import identify
from pkgbump.errors import ManifestError, WriteError
from pkgbump.models import Status, UpdateReport
from pkgbump.parse_node import parse_package_json
from pkgbump.registry import NpmRegistryClient
from pkgbump.resolve import Resolver

console = Console(soft_wrap=True)

EXIT_OK = 0
EXIT_MANIFEST_ERROR = 1
EXIT_WRITE_ERROR = 2
EXIT_INTERRUPTED = 130

STATUS_STYLES = {
    Status.UP_TO_DATE: "green",
    Status.UPDATE_AVAILABLE: "yellow",
    Status.UNRESOLVED: "red",
}


class OutputFormat(str, Enum):
    table = "table"
    diff = "diff"
    json = "json"


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def format_table(report: UpdateReport) -> Table:
    """Build the report table, one row per dependency."""
    table = Table(title=escape(report.filename))
    table.add_column("Group")
    table.add_column("Package")
    table.add_column("Declared")
    table.add_column("Latest")
    table.add_column("Status")

    for result in report.changes:
        latest = str(result.latest_version) if result.latest_version else "-"
        table.add_row(
            result.entry.group.value,
            escape(result.entry.name),
            escape(result.entry.spec),
            escape(latest),
            f"[{STATUS_STYLES[result.status]}]{escape(result.describe())}[/]",
        )

    return table


def format_json_output(report: UpdateReport) -> str:
    """Format JSON output."""
    return json.dumps(
        {
            "file": report.filename,
            "reports": [result.to_dict() for result in report.changes],
            "has_changes": report.has_changes,
            "written": report.written,
            "notes": report.notes,
        },
        indent=2,
    )


def _check_stdin(settings: Settings) -> UpdateReport:
    content = sys.stdin.read()
    ecosystem = identify(content)
    if ecosystem != "node":
        raise ManifestError(f"Unsupported ecosystem: {ecosystem}")

    manifest = parse_package_json(content)
    client = NpmRegistryClient.from_settings(settings)
    resolver = Resolver(client, max_concurrency=settings.max_concurrency)
    return asyncio.run(check_manifest(manifest, resolver, "<stdin>"))


def _check_file(path: str, settings: Settings, update: bool) -> UpdateReport:
    ecosystem = identify("", Path(path).name)
    if ecosystem == "python":
        raise ManifestError(f"Unsupported ecosystem: {ecosystem}")

    client = NpmRegistryClient.from_settings(settings)
    return asyncio.run(run_check(path, settings=settings, update=update, client=client))


app = typer.Typer(
    name="pkgbump",
    help="pkgbump - Check package.json for outdated dependencies and bump their ranges",
    add_completion=False,
)


@app.command()
def check(
    path: str = typer.Argument("package.json", help="Path to package.json (use '-' for stdin)"),
    update: bool = typer.Option(False, "--update", "-u", help="Rewrite package.json with the new ranges"),
    format_type: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format"),
    registry: str | None = typer.Option(None, "--registry", help="Registry URL (env: PKGBUMP_REGISTRY_URL)"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds per registry request"),
    retries: int | None = typer.Option(None, "--retries", help="Retries for transient registry failures"),
    concurrency: int | None = typer.Option(None, "--concurrency", help="Maximum concurrent registry requests"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log registry traffic and decisions"),
) -> None:
    """pkgbump - Check package.json for outdated dependencies (dry run unless --update)."""
    start = time.perf_counter()

    try:
        settings = get_settings(
            registry_url=registry,
            timeout=timeout,
            max_retries=retries,
            max_concurrency=concurrency,
            log_level="DEBUG" if verbose else None,
        )
    except ValidationError as e:
        console.print(f"Error: Invalid settings: {escape(str(e))}", style="red")
        raise typer.Exit(EXIT_MANIFEST_ERROR)

    configure_logging(settings.log_level)

    if path == "-" and update:
        console.print("Error: --update needs a file path, not stdin", style="red")
        raise typer.Exit(EXIT_MANIFEST_ERROR)

    try:
        if path == "-":
            report = _check_stdin(settings)
        else:
            report = _check_file(path, settings, update)
    except ManifestError as e:
        console.print(f"Error: {escape(str(e))}", style="red")
        raise typer.Exit(EXIT_MANIFEST_ERROR)
    except WriteError as e:
        console.print(f"Error: {escape(str(e))}. {escape(path)} was left unchanged.", style="red")
        raise typer.Exit(EXIT_WRITE_ERROR)
    except KeyboardInterrupt:
        console.print("Interrupted, nothing was written", style="red")
        raise typer.Exit(EXIT_INTERRUPTED)

    if format_type is OutputFormat.json:
        typer.echo(format_json_output(report))
        raise typer.Exit(EXIT_OK)

    if format_type is OutputFormat.diff:
        typer.echo(report.diff if report.has_changes else "No updates available")
        raise typer.Exit(EXIT_OK)

    console.print(format_table(report))
    for note in report.notes:
        console.print(note, style="yellow")

    if report.written:
        console.print(
            f"Updated {escape(path)}. Please install the updated packages (npm/yarn/pnpm install)!"
        )
    elif not report.updates:
        console.print("No dependency updates found.")
    elif not update:
        console.print("Run with --update to write the new ranges.")

    console.print(f"Operation completed, duration: {time.perf_counter() - start:.2f}s")


if __name__ == "__main__":
    app()
