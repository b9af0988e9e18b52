"""Scriptag CLI

Render or run template files.

Usage:
    scriptag render deploy.sh.tpl -s host=example.com
    scriptag run report.py.tpl -t python -d limit=10 -- extra args
    scriptag types -D scriptag.yaml
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from scriptag import __version__
from scriptag.builder import Builder
from scriptag.definitions import create_registry
from scriptag.exceptions import ScriptagError
from scriptag.loader import load_definitions
from scriptag.registry import Registry

console = Console(stderr=True)

app = typer.Typer(help="Build scripts from templates and run them.", no_args_is_help=True)


def parse_assignments(items: Optional[List[str]]) -> dict[str, Any]:
    """Parse NAME=VALUE pairs; values are read as YAML scalars/collections."""
    values: dict[str, Any] = {}
    for item in items or []:
        name, sep, raw_value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected NAME=VALUE, got {item!r}")
        try:
            values[name] = yaml.safe_load(raw_value) if raw_value else ""
        except yaml.YAMLError:
            values[name] = raw_value
    return values


def read_template(template: str) -> str:
    if template == "-":
        return sys.stdin.read()
    path = Path(template)
    if not path.exists():
        raise typer.BadParameter(f"Template not found: {template}")
    return path.read_text()


def get_registry(definitions: Optional[Path]) -> Registry:
    registry = create_registry()
    if definitions is not None:
        load_definitions(definitions, registry)
    return registry


def build(
    template: str,
    type_name: Optional[str],
    values: Optional[List[str]],
    declare: Optional[List[str]],
    definitions: Optional[Path],
) -> tuple[Builder, dict[str, Any]]:
    """Build a script and the parameter values to declare in it."""
    registry = get_registry(definitions)
    tag = registry.tag(type_name) if type_name else registry.script
    builder = tag(read_template(template), **parse_assignments(values))
    params = parse_assignments(declare)
    for name in params:
        builder.param(name)
    return builder, params


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"scriptag {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging."),
) -> None:
    setup_logging(verbose)


@app.command()
def render(
    template: str = typer.Argument(..., help="Template file, or - for stdin."),
    type_name: Optional[str] = typer.Option(
        None, "-t", "--type", help="Script type (default: from #! header)."
    ),
    values: Optional[List[str]] = typer.Option(None, "-s", "--set", help="Template value NAME=VALUE."),
    declare: Optional[List[str]] = typer.Option(
        None, "-d", "--declare", help="Declared parameter NAME=VALUE."
    ),
    definitions: Optional[Path] = typer.Option(
        None, "-D", "--definitions", help="YAML file with extra script types."
    ),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to file instead of stdout."),
) -> None:
    """Print the generated script."""
    try:
        builder, params = build(template, type_name, values, declare, definitions)
        content = asyncio.run(builder.content(params))
    except ScriptagError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if output is not None:
        output.write_text(content)
        console.print(f"[green]Wrote {output}[/green]")
    else:
        sys.stdout.write(content)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    template: str = typer.Argument(..., help="Template file, or - for stdin."),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments passed to the interpreter."),
    type_name: Optional[str] = typer.Option(
        None, "-t", "--type", help="Script type (default: from #! header)."
    ),
    values: Optional[List[str]] = typer.Option(None, "-s", "--set", help="Template value NAME=VALUE."),
    declare: Optional[List[str]] = typer.Option(
        None, "-d", "--declare", help="Declared parameter NAME=VALUE."
    ),
    definitions: Optional[Path] = typer.Option(
        None, "-D", "--definitions", help="YAML file with extra script types."
    ),
    file_mode: bool = typer.Option(False, "--file", help="Pass the script as a temporary file."),
) -> None:
    """Run the generated script and exit with its exit code."""

    async def execute() -> int | None:
        builder, params = build(template, type_name, values, declare, definitions)
        result = await builder.exec(
            params,
            stdout="inherit",
            stderr="inherit",
            use_stdin=False if file_mode else None,
            args=list(args or []),
        )
        return await result.exit

    try:
        code = asyncio.run(execute())
    except ScriptagError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    raise typer.Exit(code or 0)


@app.command("types")
def list_types(definitions: Optional[Path] = typer.Option(
        None, "-D", "--definitions", help="YAML file with extra script types."
    )) -> None:
    """List registered script types."""
    try:
        registry = get_registry(definitions)
    except ScriptagError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Script types")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Command")
    for name in registry:
        entry = registry.get(name)
        runner = entry.defaults.get("runner")
        command = getattr(getattr(runner, "command", None), "bin", "")
        table.add_row(name, entry.name, str(command))
    Console().print(table)


if __name__ == "__main__":
    app()
