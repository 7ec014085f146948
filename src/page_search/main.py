import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from typer import Argument, BadParameter, Exit, Option, Typer

from .config import SearchSettings
from .document import LineAnchor, PageAnchor, split_pages, units_from_pages, units_from_text
from .engine import LocalSearchEngine
from .errors import PageSearchError
from .models import SearchMode
from .search import context_snippet
from .session import SearchManager, SearchSession
from .vocabulary import convert_glove, write_payload

app = Typer()

_MODES: tuple[SearchMode, ...] = ("semantic", "exact", "fuzzy")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


def describe_anchors(anchors: Sequence[Any]) -> str:
    lines = [a.line for a in anchors if isinstance(a, LineAnchor)]
    if lines and len(lines) == len(anchors):
        if len(lines) == 1:
            return f"line {lines[0]}"
        return f"lines {lines[0]}-{lines[-1]}"
    parts = []
    for anchor in anchors:
        if isinstance(anchor, PageAnchor):
            parts.append(f"p.{anchor.page} l.{anchor.line}")
        else:
            parts.append(str(anchor))
    return ", ".join(parts)


async def run_search(
    file: Path,
    query: str,
    mode: SearchMode,
    *,
    settings: SearchSettings,
    embeddings: str | None = None,
    pdf_pages: bool = False,
) -> SearchSession:
    console = Console()
    text = file.read_text(encoding="utf-8", errors="replace")
    units = units_from_pages(split_pages(text)) if pdf_pages else units_from_text(text)

    engine = LocalSearchEngine(settings, embeddings_path=embeddings)
    manager = SearchManager(engine, settings=settings)
    manager.set_document(units)
    try:
        with console.status(status=f"Searching {file.name}...") as status:
            session = await manager.start(query, mode)
            status.update("Gathering the results...")
    finally:
        await manager.close()

    for number, match in enumerate(session.matches, start=1):
        content = (
            f"{context_snippet(match.chunk.text, session.query, context_words=settings.context_words)}"
            f"\n\n*{describe_anchors(match.matched_anchors)}*"
        )
        console.print(
            Panel(
                Markdown(content),
                title_align="left",
                title=f"Match {number} (score {match.score:.3f})",
                border_style="bold yellow",
            )
        )

    summary = f"Found **{len(session.matches)}** {session.mode} matches for `{session.query}`"
    console.print(
        Panel(
            Markdown(summary),
            title_align="left",
            title="Search complete",
            border_style="bold green" if session.matches else "bold magenta",
        )
    )
    return session


@app.command()
def search(
    file: Annotated[Path, Argument(help="Plain-text document to search.")],
    query: Annotated[str, Option("--query", "-q", help="Text to look for.")],
    mode: Annotated[
        str,
        Option("--mode", "-m", help="Matching strategy: semantic, exact or fuzzy."),
    ] = "semantic",
    embeddings: Annotated[
        str | None,
        Option("--embeddings", "-e", help="Path of the embeddings JSON payload."),
    ] = None,
    threshold: Annotated[
        float | None,
        Option("--threshold", help="Similarity threshold for semantic matches."),
    ] = None,
    fuzzy_threshold: Annotated[
        float | None,
        Option("--fuzzy-threshold", help="Maximum fuzzy distance (0 exact, 1 anything)."),
    ] = None,
    chunk_words: Annotated[
        int | None,
        Option("--chunk-words", help="Words per chunk before it is sealed."),
    ] = None,
    pdf_pages: Annotated[
        bool,
        Option("--pdf-pages", help="Treat form feeds as page breaks (pdftotext output)."),
    ] = False,
    verbose: Annotated[bool, Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    configure_logging(verbose)
    if mode not in _MODES:
        raise BadParameter(f"mode must be one of {', '.join(_MODES)}", param_hint="--mode")
    if not file.is_file():
        raise BadParameter(f"No such file: {file}", param_hint="FILE")

    settings = SearchSettings.from_env(
        similarity_threshold=threshold,
        fuzzy_threshold=fuzzy_threshold,
        chunk_words=chunk_words,
    )
    try:
        asyncio.run(
            run_search(
                file,
                query,
                mode,  # type: ignore[arg-type]
                settings=settings,
                embeddings=embeddings,
                pdf_pages=pdf_pages,
            )
        )
    except PageSearchError as exc:
        Console().print(
            Panel(str(exc), title="Search failed", title_align="left", border_style="bold red")
        )
        raise Exit(code=1)


@app.command("build-embeddings")
def build_embeddings(
    glove_file: Annotated[Path, Argument(help="GloVe text file (word v1 ... vD per line).")],
    output: Annotated[Path, Argument(help="Where to write the embeddings JSON payload.")],
    vocab_size: Annotated[int, Option("--vocab-size", help="Number of words to keep.")] = 15000,
    dim: Annotated[int, Option("--dim", help="Vector dimension of the GloVe file.")] = 50,
) -> None:
    console = Console()
    if not glove_file.is_file():
        raise BadParameter(f"No such file: {glove_file}", param_hint="GLOVE_FILE")
    with glove_file.open("r", encoding="utf-8") as f:
        payload = convert_glove(f, vocab_size=vocab_size, dim=dim)
    written = write_payload(payload, output)
    console.print(f"Wrote {len(payload['embeddings'])} embeddings to [bold]{written}[/]")


@app.command()
def serve(
    host: Annotated[str, Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, Option("--port", help="Port to listen on.")] = 8000,
    verbose: Annotated[bool, Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    from .server import run_server

    configure_logging(verbose)
    run_server(host=host, port=port)
