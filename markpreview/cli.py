"""CLI entrypoints for markpreview."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from .config import RenderConfig, load_config
from .diagrams import DiagramRenderer
from .errors import ConfigError, RenderError
from .export import export_document
from .models import RenderResult
from .pipeline import render as render_pipeline
from .search import count_matches
from .typeset import MathTypesetter

console = Console()
app = typer.Typer(help="Render Markdown into sanitized preview HTML.")

SourceArgument = Annotated[
    Path,
    typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Markdown file to render."),
]
ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file or directory."),
]
QueryOption = Annotated[
    str | None,
    typer.Option("--query", "-q", help="Highlight occurrences of this text."),
]
CaseSensitiveFlag = Annotated[
    bool,
    typer.Option("--case-sensitive", help="Match the query case-sensitively."),
]
TypesetFlag = Annotated[
    bool,
    typer.Option("--typeset", help="Render math containers to MathML."),
]
DiagramsFlag = Annotated[
    bool,
    typer.Option("--diagrams", help="Render diagram blocks to SVG with the Mermaid CLI."),
]


@app.command()
def render(  # noqa: PLR0913
    source: SourceArgument,
    query: QueryOption = None,
    case_sensitive: CaseSensitiveFlag = False,
    active: Annotated[
        int,
        typer.Option("--active", help="1-based index of the match to mark as active."),
    ] = 0,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write HTML to this file instead of stdout."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Emit the HTML and the extracted expressions as JSON."),
    ] = False,
    typeset: TypesetFlag = False,
    diagrams: DiagramsFlag = False,
    config_path: ConfigPathOption = ".",
) -> None:
    """Render a Markdown file to sanitized HTML."""
    config = _load(config_path)
    result = _render_or_exit(source, config, query, case_sensitive, active)
    html = _post_process(result.html, config, typeset=typeset, diagrams=diagrams)

    if as_json:
        payload = result.to_dict()
        payload["html"] = html
        console.print_json(data=payload)
        return

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(html, encoding="utf-8")
        console.print(
            f"[bold green]Rendered[/]: {_display_path(output)} "
            f"({len(result.expressions)} math expression(s))"
        )
        return

    typer.echo(html)


@app.command()
def matches(
    source: SourceArgument,
    query: Annotated[str, typer.Option("--query", "-q", help="Text to search for.")],
    case_sensitive: CaseSensitiveFlag = False,
    config_path: ConfigPathOption = ".",
) -> None:
    """Count search matches in the rendered preview, outside code blocks."""
    config = _load(config_path)
    result = _render_or_exit(source, config, None, False, 0)
    typer.echo(str(count_matches(result.html, query, case_sensitive)))


@app.command()
def export(
    source: SourceArgument,
    title: Annotated[
        str | None,
        typer.Option("--title", "-t", help="Document title; defaults to the file name."),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Directory for exported documents."),
    ] = None,
    typeset: TypesetFlag = False,
    diagrams: DiagramsFlag = False,
    config_path: ConfigPathOption = ".",
) -> None:
    """Write a standalone, printable HTML document."""
    config = _load(config_path)
    result = _render_or_exit(source, config, None, False, 0)
    html = _post_process(result.html, config, typeset=typeset, diagrams=diagrams)

    target_dir = output_dir or config.export.output_dir
    path = export_document(title or source.stem, html, target_dir, keep=config.export.keep)
    console.print(f"[bold green]Exported[/]: {_display_path(path)}")


def _render_or_exit(
    source: Path,
    config: RenderConfig,
    query: str | None,
    case_sensitive: bool,
    active: int,
) -> RenderResult:
    text = source.read_text(encoding="utf-8")
    try:
        return render_pipeline(text, query, case_sensitive, active, config=config)
    except RenderError as exc:
        console.print(f"[bold red]Render failed[/]: {exc}")
        typer.echo("")
        raise typer.Exit(code=1) from exc


def _post_process(html: str, config: RenderConfig, *, typeset: bool, diagrams: bool) -> str:
    if diagrams:
        html = DiagramRenderer(config).process(html)
    if typeset:
        html = MathTypesetter().process(html)
    return html


def _load(path: str) -> RenderConfig:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _display_path(path: Path) -> str:
    try:
        return path.resolve().relative_to(Path.cwd()).as_posix()
    except ValueError:
        return path.as_posix()
