"""ProjectLens CLI - Ask questions about a codebase, answered from its own code."""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from projectlens.config import Settings
from projectlens.errors import (
    CompletionError,
    EmbeddingError,
    RankingError,
    RetrievalError,
    SourceLoadError,
)
from projectlens.logging_config import setup_logging
from projectlens.retrieval.ranker import Match
from projectlens.retrieval.retriever import CodebaseRetriever

console = Console()

# Short user-facing label per failure kind
_ERROR_LABELS = {
    SourceLoadError: "Could not read project",
    EmbeddingError: "Embedding failed",
    RankingError: "Ranking failed",
}


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment settings, overridden by command-line flags."""
    settings = Settings.from_env()
    if args.embedding_backend:
        settings.embedding_backend = args.embedding_backend
    if args.embedding_model:
        settings.embedding_model = args.embedding_model
    if args.concurrency is not None:
        settings.embed_concurrency = args.concurrency
    if getattr(args, "max_chunk_length", None) is not None:
        settings.max_chunk_length = args.max_chunk_length
    return settings


def _top_k(args: argparse.Namespace, settings: Settings) -> int:
    return args.top_k if args.top_k is not None else settings.top_k


def _report_retrieval_error(error: RetrievalError) -> int:
    label = next(
        (text for kind, text in _ERROR_LABELS.items() if isinstance(error, kind)),
        "Retrieval failed",
    )
    console.print(f"[red]Error:[/red] {label}: {escape(str(error))}")
    return 1


def _print_matches(matches: list[Match], title: str) -> None:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("File", style="cyan")
    table.add_column("Score", style="green", justify="right")

    for i, match in enumerate(matches, 1):
        table.add_row(str(i), match.source_path, f"{match.score:.3f}")

    console.print(table)


def cmd_search(args: argparse.Namespace) -> int:
    """Rank the codebase's chunks against a query, without calling an LLM."""
    settings = _settings_from_args(args)
    project = Path(args.dir).resolve()

    console.print(f"\n[bold]Query:[/bold] {args.query}\n")

    try:
        retriever = CodebaseRetriever.from_settings(settings)
        with console.status("[bold green]Scanning and embedding codebase..."):
            matches = retriever.search(args.query, project, top_k=_top_k(args, settings))
    except RetrievalError as e:
        return _report_retrieval_error(e)

    _print_matches(matches, "Top Matching Chunks")
    console.print()

    for i, match in enumerate(matches, 1):
        console.print(Panel(
            Syntax(match.text, Syntax.guess_lexer(match.source_path), theme="monokai"),
            title=f"Result {i}: {match.source_path}",
            subtitle=f"Similarity: {match.score:.2%}",
        ))

    return 0


def cmd_ask(args: argparse.Namespace) -> int:
    """Answer a question using the codebase as context."""
    settings = _settings_from_args(args)
    project = Path(args.dir).resolve()

    console.print(f"\n[bold]Question:[/bold] {args.question}\n")

    try:
        retriever = CodebaseRetriever.from_settings(settings)
        with console.status("[bold green]Retrieving context and asking the LLM..."):
            result = retriever.ask(args.question, project, top_k=_top_k(args, settings))
    except RetrievalError as e:
        return _report_retrieval_error(e)
    except CompletionError as e:
        console.print(f"[red]Error:[/red] LLM call failed: {escape(e.reason)}")
        if e.context:
            # Retrieval worked; show what was gathered
            console.print(Panel(Text(e.context), title="Gathered Context", border_style="yellow"))
        return 1

    _print_matches(result.matches, "Top Matching Chunks")
    if not args.hide_context:
        console.print(Panel(Text(result.context), title="Context", border_style="blue"))

    console.print(Panel(Text(result.answer), title="Answer", border_style="green"))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="projectlens",
        description="Ask questions about a codebase using embedding retrieval + an LLM",
    )
    parser.add_argument(
        "--embedding-backend",
        choices=["local", "remote"],
        help="Embed locally with transformers or via the Hugging Face Inference API",
    )
    parser.add_argument(
        "--embedding-model",
        help="Embedding model id (default: sentence-transformers/all-MiniLM-L6-v2)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum simultaneous embedding calls (default: 5)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def _add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "-d", "--dir",
            default=".",
            help="Project directory (default: current directory)",
        )
        sub.add_argument(
            "-k", "--top-k",
            type=int,
            help="Number of chunks to retrieve (default: 3)",
        )
        sub.add_argument(
            "--max-chunk-length",
            type=int,
            help="Maximum characters per chunk (default: 1000)",
        )

    # Ask command
    ask_parser = subparsers.add_parser("ask", help="Answer a question about the codebase")
    ask_parser.add_argument("question", help="Natural language question")
    _add_common(ask_parser)
    ask_parser.add_argument(
        "--hide-context",
        action="store_true",
        help="Do not print the code context sent to the LLM",
    )
    ask_parser.set_defaults(func=cmd_ask)

    # Search command
    search_parser = subparsers.add_parser("search", help="Semantic search without an LLM")
    search_parser.add_argument("query", help="Natural language query")
    _add_common(search_parser)
    search_parser.set_defaults(func=cmd_search)

    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "WARNING")
    try:
        return args.func(args)
    except ValueError as e:
        # Bad settings (environment variables or flag values)
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
