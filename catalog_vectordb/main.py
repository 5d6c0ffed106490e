"""
CLI entrypoint for the catalog_vectordb reconciliation service.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Config
from .errors import CatalogSyncError, ReconciliationPreconditionError
from .factory import build_engine, build_reference_store
from .logging_utils import configure_logging, get_logger
from .models import ReconciliationReport
from .single_flight import SingleFlight, run_all


app = typer.Typer(help="Product catalog → embeddings → vector index reconciliation")
console = Console()
logger = get_logger(__name__)


def _load_config(
    catalog_backend: Optional[str] = None,
    reference_store: Optional[str] = None,
    embedding_backend: Optional[str] = None,
    vector_index: Optional[str] = None,
) -> Config:
    cfg = Config()
    if catalog_backend:
        cfg.catalog_backend = catalog_backend
    if reference_store:
        cfg.reference_store_backend = reference_store
    if embedding_backend:
        cfg.embedding_backend = embedding_backend
    if vector_index:
        cfg.vector_index_backend = vector_index

    try:
        cfg.validate()
    except CatalogSyncError as exc:
        raise typer.BadParameter(str(exc)) from exc
    configure_logging(cfg.log_level)
    return cfg


CatalogBackendOption = typer.Option(
    None, "--catalog-backend", help="Override catalog source backend (http|excel)."
)
ReferenceStoreOption = typer.Option(
    None, "--reference-store", "-r", help="Override reference store backend (s3|mongodb)."
)
EmbeddingBackendOption = typer.Option(
    None, "--embedding-backend", "-e", help="Override embedding backend (sentence-transformers|bedrock)."
)
VectorIndexOption = typer.Option(
    None, "--vector-index", "-v", help="Override vector index backend (chromadb|pgvector|milvus)."
)


@app.command()
def reconcile(
    tenant_ids: List[str] = typer.Argument(..., help="Ecommerce ids to reconcile."),
    catalog_backend: Optional[str] = CatalogBackendOption,
    reference_store: Optional[str] = ReferenceStoreOption,
    embedding_backend: Optional[str] = EmbeddingBackendOption,
    vector_index: Optional[str] = VectorIndexOption,
) -> None:
    """
    Reconcile the vector index and reference document of each ecommerce with its catalog.

    Exits with 1 if any run failed on a retryable or internal error, 2 if the
    only failures were rejected preconditions.
    """
    cfg = _load_config(catalog_backend, reference_store, embedding_backend, vector_index)
    engine = build_engine(cfg)

    console.print("[bold cyan]Starting catalog reconciliation...[/bold cyan]")
    console.print(f"[bold]Catalog:[/bold] {cfg.catalog_backend}")
    console.print(f"[bold]References:[/bold] {cfg.reference_store_backend}")
    console.print(f"[bold]Embeddings:[/bold] {cfg.embedding_backend}")
    console.print(f"[bold]Vector index:[/bold] {cfg.vector_index_backend}")

    flight = SingleFlight()
    # Repeated ids join the same run instead of racing on the same document.
    calls = {tenant_id: (lambda t=tenant_id: engine.reconcile(t)) for tenant_id in tenant_ids}
    results: Dict[str, object] = asyncio.run(run_all(flight, calls))

    table = Table(title="Reconciliation results")
    table.add_column("Ecommerce")
    table.add_column("Status")
    table.add_column("Embedded", justify="right")
    table.add_column("Deleted", justify="right")
    table.add_column("Unchanged", justify="right")
    table.add_column("Detail")

    failed = False
    rejected = False
    for tenant_id, result in results.items():
        if isinstance(result, ReconciliationReport):
            table.add_row(
                tenant_id,
                "[green]done[/green]",
                str(result.embedded),
                str(result.deleted),
                str(result.unchanged),
                f"{result.elapsed_seconds:.2f}s",
            )
            continue

        if isinstance(result, ReconciliationPreconditionError):
            rejected = True
            status = "[yellow]rejected[/yellow]"
        else:
            failed = True
            status = "[red]failed[/red]"
        if not isinstance(result, CatalogSyncError):
            logger.error("Unexpected error reconciling '%s': %r", tenant_id, result)
        table.add_row(tenant_id, status, "-", "-", "-", str(result))

    console.print(table)
    if failed or rejected:
        raise typer.Exit(code=1 if failed else 2)
    console.print("[bold green]Reconciliation completed successfully.[/bold green]")


@app.command()
def plan(
    tenant_id: str = typer.Argument(..., help="Ecommerce id to diff."),
    catalog_backend: Optional[str] = CatalogBackendOption,
    reference_store: Optional[str] = ReferenceStoreOption,
    embedding_backend: Optional[str] = EmbeddingBackendOption,
    vector_index: Optional[str] = VectorIndexOption,
) -> None:
    """
    Show what a reconciliation would do, without embedding or writing anything.
    """
    cfg = _load_config(catalog_backend, reference_store, embedding_backend, vector_index)
    engine = build_engine(cfg)

    try:
        result = asyncio.run(engine.plan(tenant_id))
    except CatalogSyncError as exc:
        console.print(f"[bold red]Planning failed:[/bold red] {exc}")
        raise typer.Exit(code=2 if isinstance(exc, ReconciliationPreconditionError) else 1)

    console.print(f"[bold]To embed:[/bold] {len(result.to_embed_and_upsert)}")
    console.print(f"[bold]Vectors to delete:[/bold] {len(result.vector_ids_to_delete)}")
    console.print(f"[bold]Unchanged:[/bold] {result.unchanged}")

    if result.to_embed_and_upsert:
        table = Table(title="Items to embed")
        table.add_column("Item id")
        table.add_column("New vector id")
        table.add_column("Text", overflow="fold")
        for request in result.to_embed_and_upsert:
            table.add_row(request.item_id, request.vector_id, request.text[:80])
        console.print(table)

    for vector_id in result.vector_ids_to_delete:
        console.print(f"  delete {vector_id}")


@app.command("show-references")
def show_references(
    tenant_id: str = typer.Argument(..., help="Ecommerce id."),
    reference_store: Optional[str] = ReferenceStoreOption,
) -> None:
    """
    Print the reference document stored for an ecommerce.
    """
    cfg = _load_config(reference_store=reference_store)
    store = build_reference_store(cfg)
    references = asyncio.run(store.find_reference_set(tenant_id))

    if references is None:
        console.print(f"[yellow]No reference document for '{tenant_id}'.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"References for {tenant_id} ({len(references)})")
    table.add_column("Item id")
    table.add_column("Vector id")
    table.add_column("Content hash")
    for item_id, reference in sorted(references.items()):
        table.add_row(item_id, reference.vector_id, reference.content_hash[:16])
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
