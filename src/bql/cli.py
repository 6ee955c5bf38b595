"""
BQL command line interface.

Commands:
    bql run FILE      Evaluate a program and print its result
    bql parse FILE    Print the canonical form (or tree) of a program
    bql tokens FILE   List the tokens of a program
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from bql._version import get_version
from bql.api import execute
from bql.core.errors import BqlError, BqlSyntaxError, make_syntax_error
from bql.core.lang.parser import parse_program
from bql.core.lang.tokenizer import tokenize
from bql.core.settings import get_settings

logger = logging.getLogger(__name__)

console = Console()


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        typer.echo(f"bql {get_version()}")
        raise typer.Exit()


# =============================================================================
# Main Application
# =============================================================================

app = typer.Typer(
    help="BQL - a small embeddable expression and scripting language",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version",
    ),
) -> None:
    """Configure logging and the interpreter from the environment."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if settings.recursion_limit is not None:
        logger.debug("Setting recursion limit to %d", settings.recursion_limit)
        sys.setrecursionlimit(settings.recursion_limit)


# =============================================================================
# Helpers
# =============================================================================


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        typer.echo(f"Cannot read {path}: {e}", err=True)
        raise typer.Exit(code=1) from e


def _parse_var(option: str) -> tuple[str, Any]:
    """Split a ``NAME=JSON`` option into a binding."""
    name, sep, raw = option.partition("=")
    name = name.strip()
    if not sep or not name:
        typer.echo(f"Invalid --var '{option}': expected NAME=JSON", err=True)
        raise typer.Exit(code=1)
    try:
        return name, json.loads(raw)
    except json.JSONDecodeError as e:
        typer.echo(f"Invalid JSON for variable '{name}': {e}", err=True)
        raise typer.Exit(code=1) from e


def _load_bindings(variables: list[str], vars_file: Path | None) -> dict[str, Any]:
    bindings: dict[str, Any] = {}
    if vars_file is not None:
        try:
            data = json.loads(_read_source(vars_file))
        except json.JSONDecodeError as e:
            typer.echo(f"Invalid JSON in {vars_file}: {e}", err=True)
            raise typer.Exit(code=1) from e
        if not isinstance(data, dict):
            typer.echo(f"{vars_file} must contain a JSON object", err=True)
            raise typer.Exit(code=1)
        bindings.update(data)
    # Command-line values override the file
    for option in variables:
        name, value = _parse_var(option)
        bindings[name] = value
    return bindings


def _format_result(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _build_tree(node: BaseModel, tree: Tree) -> None:
    """Add the fields of an AST node to ``tree``, recursing into child nodes."""
    for name, value in node:
        if isinstance(value, BaseModel):
            _build_tree(value, tree.add(f"[cyan]{name}[/cyan]: {type(value).__name__}"))
        elif isinstance(value, list):
            branch = tree.add(f"[cyan]{name}[/cyan]")
            for item in value:
                if isinstance(item, tuple):
                    pair = branch.add("pair")
                    for part, label in zip(item, ("key", "value")):
                        _build_tree(part, pair.add(f"[cyan]{label}[/cyan]: {type(part).__name__}"))
                else:
                    _build_tree(item, branch.add(type(item).__name__))
        elif value is not None:
            tree.add(f"[cyan]{name}[/cyan] = {escape(repr(value))}")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def run(
    file: Path = typer.Argument(..., help="Program to evaluate"),  # noqa: B008
    variables: list[str] = typer.Option(  # noqa: B008
        [],
        "--var",
        help="Input binding as NAME=JSON (repeatable)",
    ),
    vars_file: Path | None = typer.Option(  # noqa: B008
        None,
        "--vars-file",
        help="JSON object file with input bindings",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON",
    ),
) -> None:
    """Evaluate a program and print its result."""
    source = _read_source(file)
    bindings = _load_bindings(variables, vars_file)

    try:
        result = execute(source, bindings)
    except BqlError as e:
        if isinstance(e, BqlSyntaxError) and e.context is None:
            e = make_syntax_error(e.errors, source, str(file))
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e

    if as_json:
        typer.echo(json.dumps(result, ensure_ascii=False))
    elif result is not None:
        typer.echo(_format_result(result))


@app.command()
def parse(
    file: Path = typer.Argument(..., help="Program to parse"),  # noqa: B008
    tree: bool = typer.Option(
        False,
        "--tree",
        help="Show the syntax tree instead of the canonical form",
    ),
) -> None:
    """Parse a program and print it back in canonical form."""
    source = _read_source(file)
    program, errors = parse_program(source)
    if errors:
        typer.echo(str(make_syntax_error(errors, source, str(file))), err=True)
        raise typer.Exit(code=1)

    if tree:
        root = Tree(f"[bold]Program[/bold] ({file.name})")
        for stmt in program.statements:
            _build_tree(stmt, root.add(type(stmt).__name__))
        console.print(root)
    else:
        for stmt in program.statements:
            typer.echo(str(stmt))


@app.command()
def tokens(
    file: Path = typer.Argument(..., help="Program to tokenize"),  # noqa: B008
) -> None:
    """List the tokens of a program with their positions."""
    source = _read_source(file)

    table = Table(title=f"Tokens: {file.name}")
    table.add_column("Pos", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Value")

    for token in tokenize(source):
        table.add_row(str(token.pos), token.kind.name, escape(repr(token.value)))

    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app()


if __name__ == "__main__":
    main()
