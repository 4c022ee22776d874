"""CLI interface for mdpipe.

Typer-based command-line interface with Rich output formatting.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from mdpipe import __version__
from mdpipe.pipeline import CompileOptions
from mdpipe.service import DocumentService

if TYPE_CHECKING:
    from mdpipe.types import Document

__all__ = ["app"]

app = typer.Typer(
    name="mdpipe",
    help="Split, render and compile markdown documents with front-matter headers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Pipeline config file (TOML)"),
]
FileArgument = Annotated[Path, typer.Argument(help="Document to process")]


def _service(config: Path | None) -> DocumentService:
    return DocumentService(config)


def _fail(message: str, error: BaseException) -> NoReturn:
    console.print(f"[red]{message}:[/red] {error}")
    raise typer.Exit(code=1)


def _load(service: DocumentService, path: Path) -> Document:
    result = asyncio.run(service.load_and_split(path))
    if not result.ok:
        _fail(f"Cannot load {path.name}", result.error)
    return result.value


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


@app.command()
def version() -> None:
    """Show mdpipe version."""
    console.print(f"mdpipe {__version__}")


@app.command()
def parse(path: FileArgument, config: ConfigOption = None) -> None:
    """Show the front-matter metadata of a document."""
    document = _load(_service(config), path)

    if not document.metadata:
        console.print(f"[dim]{path.name} has no front-matter.[/dim]")
    else:
        table = Table(show_header=True, box=None, padding=(0, 2))
        table.add_column("key", style="dim")
        table.add_column("value", style="bold")
        for key, value in document.metadata.items():
            table.add_row(key, _format_value(value))
        console.print(table)

    console.print(f"\nBody: {len(document.body)} chars")
    if document.needs_review:
        console.print("[yellow]Marked as needing review.[/yellow]")


@app.command()
def render(path: FileArgument, config: ConfigOption = None) -> None:
    """Render a document body to HTML."""
    service = _service(config)
    document = _load(service, path)

    result = asyncio.run(service.render_html(document.full_text))
    if not result.ok:
        _fail(f"Cannot render {path.name}", result.error)
    typer.echo(result.value, nl=False)


@app.command(name="compile")
def compile_cmd(
    path: FileArgument,
    source_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Source format (mdx, md)"),
    ] = "mdx",
    output_format: Annotated[
        str,
        typer.Option("--output-format", "-o", help="Output format (program, function-body)"),
    ] = "program",
    config: ConfigOption = None,
) -> None:
    """Compile a document body to Python program source."""
    if source_format not in ("mdx", "md"):
        console.print(f"[red]Unknown format:[/red] {source_format}")
        raise typer.Exit(code=1)
    if output_format not in ("program", "function-body"):
        console.print(f"[red]Unknown output format:[/red] {output_format}")
        raise typer.Exit(code=1)

    service = _service(config)
    document = _load(service, path)

    options = CompileOptions(
        source_format=source_format,  # type: ignore[arg-type]
        output_format=output_format,  # type: ignore[arg-type]
    )
    result = asyncio.run(service.compile_program(document.full_text, options))
    if not result.ok:
        _fail(f"Cannot compile {path.name}", result.error)

    typer.echo(result.value.code, nl=False)
    for diagnostic in result.value.diagnostics:
        err_console.print(f"[dim]{diagnostic.level}: {diagnostic.message}[/dim]")


@app.command()
def params(path: FileArgument, config: ConfigOption = None) -> None:
    """List the parameter definitions declared in a document."""
    service = _service(config)
    document = _load(service, path)

    fields = service.extract_known_config_fields(document.metadata)
    if fields.provider or fields.model:
        console.print(f"Provider: {fields.provider or '-'}  Model: {fields.model or '-'}")

    definitions = service.extract_parameter_definitions(document.metadata)
    if not definitions:
        console.print("[dim]No parameters declared.[/dim]")
        return

    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("name", style="bold")
    table.add_column("type")
    table.add_column("required")
    table.add_column("default")
    table.add_column("description", style="dim")
    for name, definition in definitions.items():
        table.add_row(
            name,
            definition.type,
            "yes" if definition.required else "no",
            "" if definition.default is None else _format_value(definition.default),
            definition.description or "",
        )
    console.print(table)
