"""Simple demonstration script for folder-scoped extraction.

This script builds a throwaway project with scoped fields, runs the
simulated provider over a folder and prints the resulting rows.
"""

import asyncio
import logging
import tempfile
import time
from pathlib import Path

from doc_extraction.database import (
    DatabaseManager,
    DocumentRepository,
    ExtractionFieldRepository,
    ProjectRepository,
    SQLAlchemyResultStore,
)
from doc_extraction.processors import ExtractionService, ProgressEvent, ProgressEventType
from doc_extraction.providers import SimulatedProvider
from doc_extraction.scoping import ROOT
from doc_extraction.storage import LocalFileStorage


def simple_progress_callback(event: ProgressEvent) -> None:
    """Simple progress callback that prints events."""
    timestamp = time.strftime("%H:%M:%S")

    if event.event_type == ProgressEventType.RUN_STARTED:
        print(f"🚀 [{timestamp}] {event.message}")

    elif event.event_type == ProgressEventType.DOCUMENT_STARTED:
        print(f"📄 [{timestamp}] Analyzing {event.document_name} "
              f"({event.completed_documents + 1}/{event.total_documents})")

    elif event.event_type == ProgressEventType.DOCUMENT_COMPLETED:
        print(f"✅ [{timestamp}] Completed {event.document_name} ({event.progress:.0f}%)")

    elif event.event_type == ProgressEventType.DOCUMENT_FAILED:
        print(f"❌ [{timestamp}] Failed {event.document_name}: {event.error}")

    elif event.event_type == ProgressEventType.RUN_COMPLETED:
        print(f"🎉 [{timestamp}] {event.message}")


async def demonstrate_folder_extraction(workdir: Path) -> None:
    """Demonstrate field scoping and a folder extraction run."""
    print("=== Folder Extraction Demonstration ===\n")

    db_manager = DatabaseManager(f"sqlite:///{workdir / 'demo.db'}")
    projects = ProjectRepository(db_manager)
    documents = DocumentRepository(db_manager, LocalFileStorage(str(workdir / "storage")))
    fields = ExtractionFieldRepository(db_manager)
    store = SQLAlchemyResultStore(db_manager)

    project = projects.create_project("Claims", "Demo project")
    invoices = projects.create_folder(project.id, "Invoices")
    customer = fields.create_field(project.id, "Customer Name", "text")
    total = fields.create_field(project.id, "Invoice Total", "number", folder_ids=[invoices.id])
    fields.create_field(project.id, "Invoice Date", "date", folder_ids=[invoices.id])
    fields.create_field(project.id, "Paid", "boolean", folder_ids=[invoices.id])

    for i in range(1, 4):
        documents.upload_document(project.id, f"invoice_{i}", f"Invoice {i}".encode(),
                                  f"invoice_{i}.txt", "text/plain", invoices.id)

    service = ExtractionService(
        projects=projects,
        documents=documents,
        fields=fields,
        store=store,
        provider=SimulatedProvider(fields, seed=42),
    )

    at_root = service.applicable_fields(project.id, ROOT)
    in_folder = service.applicable_fields(project.id, invoices.id)
    print(f"Fields at project root: {', '.join(f.name for f in at_root)}")
    print(f"Fields in {invoices.name}: {', '.join(f.name for f in in_folder)}")
    print()

    start_time = time.time()
    run = await service.extract_folder(
        project.id, invoices.id, [f.id for f in in_folder],
        progress_callback=simple_progress_callback
    )
    processing_time = time.time() - start_time

    print(f"\n=== Results ===")
    print(f"Processing time: {processing_time:.3f} seconds")
    print(run.summary_message())

    rows = service.folder_results(project.id, invoices.id)
    for row in rows:
        print(f"  {row.document_name:<10} {row.field_name:<14} "
              f"{row.formatted_value:<40} {row.confidence_display:>5} ({row.confidence_bucket.value})")

    summary = service.summarize(rows)
    print(f"\nAverage confidence: {summary.average_confidence:.2f}")
    print(f"Confidence buckets: {summary.bucket_counts}")

    try:
        await service.extract_folder(project.id, ROOT, [total.id, customer.id])
    except Exception as e:
        print(f"\nRejected as expected: {str(e)}")


async def main():
    """Run the demonstration."""
    logging.basicConfig(level=logging.WARNING)
    try:
        with tempfile.TemporaryDirectory() as workdir:
            await demonstrate_folder_extraction(Path(workdir))
        print("\n🎉 Demonstration completed successfully!")

    except Exception as e:
        print(f"\n💥 Demo failed: {str(e)}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    asyncio.run(main())
