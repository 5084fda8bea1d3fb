#!/usr/bin/env python3
"""
namedsql CLI - inspect and validate query files from the command line

Usage:
    namedsql --help
    namedsql list queries/users.sql
    namedsql list queries/ --recursive
    namedsql show queries/users.sql find-user-by-email
    namedsql show queries/reports.sql monthly --data '{"region": "EU"}'
    namedsql check queries/*.sql

Install:
    pip install -e .  # From repo root
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from namedsql import __version__
from namedsql.config import Settings, get_settings
from namedsql.exceptions import NamedSQLError
from namedsql.store import QueryStore, load_directory, load_file

console = Console()


def load_path(path: str, recursive: bool, settings: Settings) -> QueryStore:
    """Load a query file, or a directory of one-query files."""
    if Path(path).is_dir():
        return load_directory(path, recursive=recursive, settings=settings)
    return load_file(path, settings=settings)


def handle_error(error: NamedSQLError):
    """Print a library error and exit."""
    console.print(f"Error: {error}", style="bold red", markup=False)
    sys.exit(1)


# =============================================================================
# MAIN CLI GROUP
# =============================================================================

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--plain", is_flag=True, help="Treat query bodies as plain text (no templating)")
@click.option("--strict", is_flag=True, help="Fail on undefined template values")
@click.version_option(version=__version__, prog_name="namedsql")
@click.pass_context
def cli(ctx, verbose, output_json, plain, strict):
    """
    namedsql CLI - inspect named SQL query files.

    \b
    Environment Variables:
        NAMEDSQL_EXTENSION        - Query file extension (default: .sql)
        NAMEDSQL_ENCODING         - Source encoding (default: utf-8)
        NAMEDSQL_MAX_LINE_LENGTH  - Longest accepted line (default: 65536)
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    update = {}
    if plain:
        update["templating"] = False
    if strict:
        update["strict_undefined"] = True

    ctx.ensure_object(dict)
    ctx.obj["output_json"] = output_json
    ctx.obj["settings"] = get_settings().model_copy(update=update)


# =============================================================================
# LIST COMMAND
# =============================================================================

@cli.command("list")
@click.argument("path", type=click.Path(exists=True))
@click.option("--recursive", "-r", is_flag=True, help="Descend into subdirectories")
@click.pass_context
def list_queries(ctx, path, recursive):
    """List the queries defined in PATH."""
    try:
        store = load_path(path, recursive, ctx.obj["settings"])
    except NamedSQLError as e:
        handle_error(e)

    if ctx.obj.get("output_json"):
        click.echo(json.dumps(store.queries(), indent=2))
        return

    if not len(store):
        console.print("[yellow]No queries found[/yellow]")
        return

    table = Table(title=f"Queries in {path}", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Lines", style="green", justify="right")
    table.add_column("Source", style="dim")

    for name in sorted(store):
        definition = store.lookup(name)
        table.add_row(name, str(definition.body.count("\n")), definition.source or "")

    console.print(table)


# =============================================================================
# SHOW COMMAND
# =============================================================================

@cli.command()
@click.argument("path", type=click.Path(exists=True))
@click.argument("name")
@click.option("--recursive", "-r", is_flag=True, help="Descend into subdirectories")
@click.option("--data", "data_json", default=None, help="Template data as a JSON object")
@click.option("--raw", is_flag=True, help="Print the query without rendering it")
@click.option("--pretty", is_flag=True, help="Syntax-highlight the output")
@click.pass_context
def show(ctx, path, name, recursive, data_json, raw, pretty):
    """Print query NAME from PATH, rendered with the given data."""
    data: Optional[dict] = None
    if data_json:
        try:
            data = json.loads(data_json)
        except json.JSONDecodeError as e:
            console.print(f"[red]Invalid JSON: {e}[/red]")
            sys.exit(1)
        if not isinstance(data, dict):
            console.print("[red]--data must be a JSON object[/red]")
            sys.exit(1)

    try:
        store = load_path(path, recursive, ctx.obj["settings"])
        text = store.raw(name) if raw else store.with_data(data).render(name)
    except NamedSQLError as e:
        handle_error(e)

    if ctx.obj.get("output_json"):
        click.echo(json.dumps({"name": name, "query": text}, indent=2))
    elif pretty:
        console.print(Syntax(text, "sql"))
    else:
        click.echo(text, nl=False)


# =============================================================================
# CHECK COMMAND
# =============================================================================

@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--recursive", "-r", is_flag=True, help="Descend into subdirectories")
@click.pass_context
def check(ctx, paths, recursive):
    """Load every PATH and report template or load errors."""
    failures = 0
    results = []

    for path in paths:
        try:
            store = load_path(path, recursive, ctx.obj["settings"])
        except NamedSQLError as e:
            failures += 1
            results.append({"path": path, "ok": False, "error": str(e)})
            continue
        results.append({"path": path, "ok": True, "queries": len(store)})

    if ctx.obj.get("output_json"):
        click.echo(json.dumps(results, indent=2))
    else:
        for result in results:
            if result["ok"]:
                console.print(f"[green]✓[/green] {result['path']} ({result['queries']} queries)")
            else:
                console.print("[red]✗[/red] ", end="")
                console.print(result["error"], markup=False)

    if failures:
        sys.exit(1)


# =============================================================================
# ENTRY POINT
# =============================================================================

def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
