"""CLI commands for safefs."""

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from safefs import __version__

app = typer.Typer(
    name="safefs",
    help="safefs - crash-safe file read, write and append",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"safefs v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
    verbose: bool = typer.Option(False, "--verbose", help="Log every recovery step to stderr"),
):
    """safefs - crash-safe file read, write and append."""
    if verbose:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG")
        logger.enable("safefs")


def _parse_mode(value: str | None) -> int | None:
    if value is None:
        return None
    text = value.strip().lower()
    try:
        return int(text[2:] if text.startswith("0o") else text, 8)
    except ValueError:
        raise typer.BadParameter(f"Not an octal permission mode: {value}")


def _input_text(text: str | None) -> str:
    if text is not None:
        return text
    return sys.stdin.read()


def _ops():
    from safefs.config import load_settings
    from safefs.fileops import FileOps

    return FileOps(load_settings())


# ============================================================================
# File operations
# ============================================================================


@app.command()
def read(
    path: Path = typer.Argument(..., help="File to read"),
    return_as: str = typer.Option("utf8", "--as", help="utf8, buf, json or jsonWithDates"),
    safe: bool = typer.Option(False, "--safe", help="Fall back to the backup file"),
):
    """Print a file's content."""
    from safefs.codec import ReturnAs, normalize_return_as, serialize_json
    from safefs.errors import DecodeError

    mode = normalize_return_as(return_as)
    try:
        data = _ops().read(path, mode, {"safe": safe})
    except DecodeError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)

    if data is None:
        err_console.print(f"[yellow]No file at {path}[/yellow]")
        raise typer.Exit(1)

    if mode is ReturnAs.BUF:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    elif mode is ReturnAs.UTF8:
        typer.echo(data, nl=False)
    else:
        typer.echo(serialize_json(data, indent=2))


@app.command()
def write(
    path: Path = typer.Argument(..., help="File to write"),
    text: str = typer.Argument(None, help="Content; read from stdin when omitted"),
    safe: bool = typer.Option(False, "--safe", help="Stage, back up and swap"),
    mode: str = typer.Option(None, "--mode", help="Octal permission bits, e.g. 600"),
    as_json: bool = typer.Option(False, "--json", help="Parse content as JSON and re-serialize"),
    indent: int = typer.Option(None, "--indent", help="JSON indent width"),
):
    """Write content to a file, replacing what was there."""
    content = _input_text(text)
    data: object = content
    if as_json:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"Content is not valid JSON: {e}")

    _ops().write(path, data, {"safe": safe, "mode": _parse_mode(mode), "json_indent": indent})
    console.print(f"[green]✓[/green] Wrote {path}")


@app.command()
def append(
    path: Path = typer.Argument(..., help="File to append to"),
    text: str = typer.Argument(None, help="Content; read from stdin when omitted"),
    mode: str = typer.Option(None, "--mode", help="Octal permission bits if created"),
):
    """Append content to a file, creating it if needed."""
    _ops().append(path, _input_text(text), {"mode": _parse_mode(mode)})
    console.print(f"[green]✓[/green] Appended to {path}")


# ============================================================================
# Recovery
# ============================================================================


@app.command()
def remnants(
    directory: Path = typer.Argument(Path("."), help="Directory to scan recursively"),
):
    """List staging and backup files left by interrupted safe writes."""
    from safefs.config import load_settings
    from safefs.recovery import find_remnants

    reports = find_remnants(directory, load_settings())
    if not reports:
        console.print(f"[green]✓[/green] No remnants under {directory}")
        return

    table = Table(title="Safe write remnants")
    table.add_column("Path", style="cyan")
    table.add_column("State")
    table.add_column("Primary")
    table.add_column("Staging")
    table.add_column("Backup")
    table.add_column("Current")

    for report in reports:
        table.add_row(
            str(report.path),
            report.state.value,
            "✓" if report.primary_exists else "-",
            "✓" if report.staging else "-",
            "✓" if report.backup else "-",
            str(report.current) if report.current else "-",
        )

    console.print(table)
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
