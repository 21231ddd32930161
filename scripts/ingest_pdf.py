#!/usr/bin/env python
"""Ingest a PDF from disk into the vector index.

Usage:
    python scripts/ingest_pdf.py report.pdf                      # New document id
    python scripts/ingest_pdf.py report.pdf --document-id abc    # Re-ingest under a fixed id
    python scripts/ingest_pdf.py report.pdf --replace --document-id abc
    python scripts/ingest_pdf.py report.pdf --ask "What is this about?"
"""
import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docchat import config
from docchat.errors import DocChatError
from docchat.main import configure_logging
from docchat.services import build_services
import structlog

logger = structlog.get_logger()


def print_report(path: Path, result, elapsed_seconds: float):
    """Print ingestion results."""
    print(f"\n{'=' * 60}")
    print(f"  Ingestion Complete!")
    print(f"{'=' * 60}\n")
    print(f"  📄 File:            {path.name}")
    print(f"  🆔 Document id:     {result.document_id}")
    print(f"  📑 Pages:           {result.page_count}")
    print(f"  📝 Chunks created:  {result.chunk_count}")
    print(f"  ⏱️  Time elapsed:    {elapsed_seconds:.1f}s")
    print(f"\n{'=' * 60}\n")


async def main():
    """Main entry point for the ingest script."""
    parser = argparse.ArgumentParser(
        description="Ingest a PDF into the Pinecone index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/ingest_pdf.py report.pdf
  python scripts/ingest_pdf.py report.pdf --document-id abc --replace
  python scripts/ingest_pdf.py report.pdf --ask "Summarize page 2"
        """,
    )

    parser.add_argument("pdf", type=Path, help="Path to the PDF file")
    parser.add_argument(
        "--document-id",
        default=None,
        help="Store under this id (default: generate a new one)",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete the document's existing vectors first",
    )
    parser.add_argument(
        "--ask",
        default=None,
        help="Ask a question about the document after ingestion",
    )

    args = parser.parse_args()
    configure_logging()

    try:
        if not args.pdf.exists():
            raise FileNotFoundError(f"PDF not found: {args.pdf}")

        data = args.pdf.read_bytes()
        if len(data) > config.MAX_FILE_SIZE:
            print(f"\n⚠️  {args.pdf.name} is larger than MAX_FILE_SIZE ({config.MAX_FILE_SIZE} bytes).\n")

        print("\n📋 Configuration:")
        print(f"   Index:            {config.PINECONE_INDEX_NAME}")
        print(f"   Embedding model:  {config.EMBEDDING_MODEL}")
        print(f"   Chunk size:       {config.CHUNK_SIZE} chars")
        print(f"   Chunk overlap:    {config.CHUNK_OVERLAP} chars")

        services = build_services()

        if args.replace and args.document_id:
            await services.vector_store.delete_namespace(args.document_id)

        start = datetime.now()
        result = await services.ingest.ingest_pdf(data, document_id=args.document_id)
        print_report(args.pdf, result, (datetime.now() - start).total_seconds())

        if args.ask:
            answer = await services.answerer.answer(result.document_id, args.ask)
            print(f"💬 {answer.message}\n")
            for citation in answer.citations:
                print(f"   [page {citation.page_number}] {citation.text}")
            print()

    except KeyboardInterrupt:
        print("\n\n⚠️  Ingestion cancelled by user.\n")
        sys.exit(1)

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}\n")
        sys.exit(1)

    except DocChatError as e:
        print(f"\n❌ {e.error}: {e.details or e.message}\n")
        logger.error("ingest_script_failed", error=e.message, error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
