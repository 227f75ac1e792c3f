"""
Command-line interface for Draftsmith.

Commands:
    models  - List generation models for a vendor
    index   - Chunk, embed and store documents for retrieval
    forget  - Purge stored chunks of documents
    write   - Generate or refine a post grounded in documents
    serve   - Start the FastAPI server
    version - Show version information
"""

import asyncio
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from draftsmith.exceptions import DraftsmithError
from draftsmith.models import GenerationRequest, KnowledgeMode, PostType, Vendor

app = typer.Typer(
    name="draftsmith",
    help="Grounded LinkedIn post drafting",
    add_completion=False,
)
console = Console()


@app.callback()
def main() -> None:
    """Configure logging once for every command."""
    from draftsmith.config import settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def document_id_for(path: Path) -> str:
    """Stable document id for a file, so re-indexing reuses chunk slots."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, path.resolve().as_uri()))


def _load_document(service, path: Path):
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    mime_type = mimetypes.guess_type(path.name)[0] or "text/plain"
    return service.knowledge.add_document(
        path.name,
        mime_type,
        path.read_bytes(),
        document_id=document_id_for(path),
    )


def _resolve_vendor(vendor: Optional[str]) -> Vendor:
    from draftsmith.config import settings

    try:
        return Vendor(vendor) if vendor else settings.default_vendor
    except ValueError:
        console.print(f"[red]Unknown vendor: {vendor}[/red]")
        raise typer.Exit(1)


def _resolve_post_type(name: str) -> PostType:
    try:
        return PostType[name.upper()]
    except KeyError:
        console.print(f"[red]Unknown post type: {name} (expected post or comment)[/red]")
        raise typer.Exit(1)


@app.command()
def models(
    vendor: Optional[str] = typer.Option(None, "--vendor", "-V", help="google or openai"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Override configured key"),
) -> None:
    """List generation models available to the credential."""
    from draftsmith.service import create_service

    selected = _resolve_vendor(vendor)
    service = create_service()

    try:
        with console.status(f"[bold green]Fetching {selected.value} models..."):
            found = asyncio.run(service.list_models(selected, api_key))
    except DraftsmithError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{selected.value} models")
    table.add_column("Name", style="cyan")
    table.add_column("Display name", style="green")
    table.add_column("Description")
    for info in found:
        table.add_row(info.name, info.display_name, info.description)
    console.print(table)


@app.command()
def index(
    paths: list[Path] = typer.Argument(..., help="Documents to index"),
    vendor: Optional[str] = typer.Option(None, "--vendor", "-V", help="google or openai"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Override configured key"),
) -> None:
    """Chunk, embed and store documents for retrieval."""
    from draftsmith.service import create_service

    selected = _resolve_vendor(vendor)
    service = create_service()

    async def _run() -> None:
        try:
            for path in paths:
                document = _load_document(service, path)
                with console.status(f"[bold green]Indexing {path.name}..."):
                    await service.set_knowledge_mode(
                        document.id, KnowledgeMode.RAG, selected, api_key
                    )
                console.print(f"[green]  ✓ {path.name} indexed for {selected.value}[/green]")
        finally:
            await service.close()

    try:
        asyncio.run(_run())
    except DraftsmithError as e:
        console.print(f"[red]Indexing failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def forget(
    paths: list[Path] = typer.Argument(..., help="Documents whose chunks to purge"),
) -> None:
    """Purge stored chunks of documents for every vendor."""
    from draftsmith.service import create_service

    service = create_service()

    async def _run() -> None:
        try:
            for path in paths:
                removed = await service.knowledge.vector_store.delete_by_document(
                    document_id_for(path)
                )
                console.print(f"[green]  ✓ {path.name}: {removed} chunks removed[/green]")
        finally:
            await service.close()

    try:
        asyncio.run(_run())
    except DraftsmithError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def write(
    instructions: str = typer.Option("", "--instructions", "-i", help="Key arguments or refinement instructions"),
    context: str = typer.Option("", "--context", "-c", help="Post context; URLs enable web grounding"),
    persona: str = typer.Option("", "--persona", "-p", help="Persona / voice description"),
    post_type: str = typer.Option("post", "--post-type", help="post (long form) or comment (short form)"),
    doc: list[Path] = typer.Option([], "--doc", "-d", help="Document inlined in full"),
    rag: list[Path] = typer.Option([], "--rag", "-r", help="Document used through retrieval"),
    draft: Optional[Path] = typer.Option(None, "--draft", help="Current draft to refine"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result to a file"),
    vendor: Optional[str] = typer.Option(None, "--vendor", "-V", help="google or openai"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Generation model"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Override configured key"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
) -> None:
    """Generate a new post, or refine an existing draft."""
    from draftsmith.config import settings
    from draftsmith.service import create_service

    selected = _resolve_vendor(vendor)
    service = create_service()

    request = GenerationRequest(
        model=model or settings.default_model_for(selected),
        context=context,
        persona=persona,
        instructions=instructions,
        post_type=_resolve_post_type(post_type),
        current_draft=draft.read_text(encoding="utf-8") if draft else None,
    )

    async def _run():
        try:
            for path in doc:
                _load_document(service, path)
            for path in rag:
                document = _load_document(service, path)
                await service.set_knowledge_mode(
                    document.id, KnowledgeMode.RAG, selected, api_key
                )
            return await service.generate(selected, request, api_key)
        finally:
            await service.close()

    try:
        with console.status("[bold green]Architecting content..."):
            result = asyncio.run(_run())
    except DraftsmithError as e:
        console.print(f"[red]Generation failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(result.text)
    console.print()

    if result.sources:
        console.print("[blue]Sources:[/blue]")
        for source in result.sources:
            console.print(f"  • {source.title}: {source.uri}")
        console.print()

    if output:
        output.write_text(result.text, encoding="utf-8")
        console.print(f"[green]Saved to {output}[/green]")

    if verbose:
        table = Table(title="Metadata")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Vendor", selected.value)
        table.add_row("Model", request.model)
        table.add_row("Mode", "refinement" if request.is_refinement else "new draft")
        table.add_row("Context documents", str(len(doc)))
        table.add_row("RAG documents", str(len(rag)))
        table.add_row("Sources", str(len(result.sources)))
        console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind"),
    port: Optional[int] = typer.Option(None, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Start the FastAPI server."""
    import uvicorn

    from draftsmith.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[green]Starting Draftsmith server on {host}:{port}[/green]")

    # One worker: documents live in process memory
    uvicorn.run(
        "draftsmith.api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from draftsmith import __version__

    console.print(f"Draftsmith v{__version__}")


if __name__ == "__main__":
    app()
