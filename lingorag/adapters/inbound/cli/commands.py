"""CLI interface for the lingorag content cache."""

import asyncio
import json
import os
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ....application.rag_client import RagClient
from ....composition.container import build_rag_client
from ....config.logging import setup_logging
from ....config.settings import settings
from ....core.domain import (
    GenerationContext,
    GenerationRequest,
    LessonContext,
    OperationResult,
    SearchFilters,
)
from ....core.domain.exceptions import RetriesExhaustedError
from ...common.exception_handler import format_exception_json, format_result_error

app = typer.Typer(
    name="lingorag",
    help="lingorag - reuse stored lesson content before paying for new generations",
    add_completion=False,
)

console = Console(force_terminal=True, legacy_windows=False)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
    else:
        error_type = error_data["error"]["type"]
        error_msg = error_data["error"]["message"]
        error_code = error_data["error"].get("code", "UNKNOWN")

        console.print(f"\n[red]Error [{error_code}]:[/] {error_msg}")
        console.print(f"[dim]Type: {error_type}[/]")
        console.print("[dim]Set DEBUG=true for full details[/]")


def report_failure(result: OperationResult[Any]) -> None:
    """Print a failed result and exit non-zero."""
    error = format_result_error(result)["error"]
    if result.degraded:
        console.print(f"[yellow]Backend unavailable:[/] {error['message']}")
    else:
        console.print(f"[red]Failed [{error['code']}]:[/] {error['message']}")
    raise typer.Exit(1)


def run_with_client(action: Callable[[RagClient], Awaitable[Any]]) -> Any:
    """Build a client, run ``action`` on it and close it, all in one event loop."""
    setup_logging(settings.log_level, json_format=settings.log_json)
    try:
        client = build_rag_client(settings)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    async def _run() -> Any:
        async with client:
            return await action(client)

    return asyncio.run(_run())


@app.command()
def status() -> None:
    """Check backend connectivity and show the active configuration."""
    console.print("[bold]lingorag status[/]\n")
    console.print(f"Backend: {settings.rag_backend_url}")
    console.print(f"API key: {'configured' if settings.rag_api_key else 'not set'}")
    console.print(f"Model: {settings.llm_model}")
    console.print(
        f"Search: threshold {settings.similarity_threshold}, "
        f"max {settings.search_max_results} results"
    )

    result = run_with_client(lambda client: client.initialize())
    if result.degraded:
        console.print(f"\n[red]Backend unreachable:[/] {result.error}")
        raise typer.Exit(1)
    if result.data:
        console.print("\n[green]Backend ready[/]")
    else:
        console.print("\n[yellow]Backend answered but is not ready[/]")
        raise typer.Exit(1)


@app.command()
def store(
    content: str = typer.Argument(..., help="Document text"),
    type: str = typer.Option(..., "--type", "-t", help="Document type, e.g. lesson"),
    topic: str = typer.Option(..., "--topic", help="Topic label, e.g. grammar"),
    language: str | None = typer.Option(None, "--language", "-l"),
    tags: list[str] | None = typer.Option(None, "--tag", help="Tag (repeatable)"),
) -> None:
    """Store a document for future reuse."""
    metadata = {"language": language, "tags": tags or []}
    result = run_with_client(lambda client: client.store(content, type, topic, metadata))
    if not result.success:
        report_failure(result)
    console.print(f"[green]Stored[/] {result.data}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text"),
    type: str | None = typer.Option(None, "--type", "-t"),
    topic: str | None = typer.Option(None, "--topic"),
    language: str | None = typer.Option(None, "--language", "-l"),
    max_results: int | None = typer.Option(None, "--max-results", "-n", min=1),
    threshold: float | None = typer.Option(None, "--threshold", min=0.0, max=1.0),
    rerank: bool = typer.Option(False, "--rerank", help="Ask the backend to rerank"),
) -> None:
    """Search stored documents."""
    filters = SearchFilters(type=type, topic=topic, language=language)
    result = run_with_client(
        lambda client: client.search(
            query,
            filters,
            max_results=max_results,
            similarity_threshold=threshold,
            use_reranking=rerank,
        )
    )
    if not result.success:
        report_failure(result)
    if not result.data:
        console.print("[dim]No relevant stored content.[/]")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("Relevance", justify="right")
    table.add_column("Similarity", justify="right")
    table.add_column("Type")
    table.add_column("Topic")
    table.add_column("Context")
    for match in result.data:
        snippet = match.context if len(match.context) <= 80 else match.context[:77] + "..."
        table.add_row(
            f"{match.relevance:.2f}",
            f"{match.similarity:.2f}",
            match.document.type,
            match.document.topic,
            snippet,
        )
    console.print(table)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question about the lesson"),
    lesson_id: str | None = typer.Option(None, "--lesson-id"),
    title: str | None = typer.Option(None, "--title"),
    topic: str | None = typer.Option(None, "--topic"),
    level: str | None = typer.Option(None, "--level"),
) -> None:
    """Ask a tutoring question and get an answer."""
    lesson = LessonContext(
        lesson_id=lesson_id, lesson_title=title, lesson_topic=topic, lesson_level=level
    )
    with console.status("[bold green]Thinking...[/]"):
        result = run_with_client(lambda client: client.answer(question, lesson))

    if not result.success:
        label = "Backend unavailable" if result.degraded else "Failed"
        console.print(f"[red]{label}:[/] {result.error}")
        raise typer.Exit(1)

    console.print(Panel(Markdown(result.answer or ""), title="[bold]Tutor[/]"))
    if result.sources:
        console.print("[dim]Sources:[/]")
        for source in result.sources:
            console.print(f"  [dim]{source.document.type}/{source.document.topic} ({source.document.id})[/]")
    else:
        console.print("[dim]Answered from general knowledge.[/]")
    console.print(f"[dim]Estimated cost: ${result.estimated_cost:.4f}[/]")


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Prompt for the inference service"),
    search_query: str = typer.Option("", "--search-query", "-q"),
    type: str = typer.Option("explanation", "--type", "-t", help="Type to store the output as"),
    topic: str = typer.Option("general", "--topic"),
    retries: int | None = typer.Option(
        None, "--retries", min=0, help="Retries after the first attempt (default from settings)"
    ),
) -> None:
    """Generate content, reusing stored documents as context."""
    request = GenerationRequest(
        prompt=prompt,
        context=GenerationContext(search_query=search_query),
        document_type=type,
        topic=topic,
    )
    with console.status("[bold green]Generating...[/]"):
        outcome = run_with_client(
            lambda client: client.generate_with_retries(request, max_retries=retries)
        )

    if outcome.exhausted:
        handle_cli_error(
            RetriesExhaustedError(
                f"Generation failed after {outcome.attempts} attempts: {outcome.error}",
                context={"attempts": outcome.attempts, "prompt": prompt},
            )
        )
        raise typer.Exit(1)

    response = outcome.result
    console.print(Panel(Markdown(response.content or ""), title="[bold]Generated[/]"))
    if response.used_context:
        console.print(f"[dim]Context from: {', '.join(response.document_ids)}[/]")
    console.print(
        f"[dim]Attempts: {outcome.attempts} | Estimated cost: ${response.estimated_cost:.4f}[/]"
    )


@app.command()
def analytics() -> None:
    """Show usage and cost analytics."""
    result = run_with_client(lambda client: client.get_analytics())
    if not result.success:
        report_failure(result)
    snapshot = result.data

    summary = Table(title="Content cache analytics", show_header=False)
    summary.add_row("Documents", str(snapshot.total_documents))
    summary.add_row("Chunks", str(snapshot.total_chunks))
    summary.add_row("Total cost", f"${snapshot.total_cost:.4f}")
    summary.add_row("Avg cost / document", f"${snapshot.average_cost_per_document:.4f}")
    summary.add_row("Reuse rate", f"{snapshot.content_reuse_rate:.0%}")
    console.print(summary)

    if snapshot.type_distribution:
        types = Table(title="By type")
        types.add_column("Type")
        types.add_column("Count", justify="right")
        for doc_type, count in sorted(snapshot.type_distribution.items()):
            types.add_row(doc_type, str(count))
        console.print(types)

    recent = snapshot.recent()
    if recent:
        console.print("\n[bold]Recent activity[/]")
        for entry in recent:
            marker = " [dim](ai)[/]" if entry.ai_generated else ""
            console.print(
                f"  {entry.created_at:%Y-%m-%d %H:%M} {entry.type}/{entry.topic}{marker}"
            )


@app.command()
def cleanup(
    max_age_days: int = typer.Option(
        settings.cleanup_max_age_days, "--max-age-days", "-d", min=1
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete documents older than the given age. Irreversible."""
    if not yes and not typer.confirm(
        f"Delete every document older than {max_age_days} days? This cannot be undone."
    ):
        console.print("[dim]Cleanup cancelled.[/]")
        raise typer.Exit(0)

    result = run_with_client(lambda client: client.cleanup(max_age_days))
    if not result.success:
        report_failure(result)
    console.print(f"[green]Deleted {result.data} documents[/]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port", "-p"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("lingorag.adapters.inbound.api.main:app", host=host, port=port)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
