"""Ingest pipeline for uploaded PDF documents.

Orchestrates:
- PDF text extraction
- Text chunking
- Index existence check
- Embedding generation and vector storage
"""
import asyncio
import secrets
import string
import time
from dataclasses import dataclass

import structlog

from docchat.errors import ValidationError
from docchat.rag.chunker import TextChunker
from docchat.rag.pdf_parser import extract_pdf
from docchat.rag.store_pinecone import PineconeVectorStore

logger = structlog.get_logger()

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_document_id() -> str:
    """Opaque id of the form ``{epoch_millis}-{random base36}``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass
class IngestResult:
    document_id: str
    page_count: int
    chunk_count: int


class IngestPipeline:
    """Pipeline for ingesting a PDF into the vector store."""

    def __init__(self, vector_store: PineconeVectorStore, chunker: TextChunker = None):
        """Initialize the ingest pipeline.

        Args:
            vector_store: Gateway that stores the document's vectors
            chunker: Text chunker (default chunk size and overlap from config)
        """
        self.vector_store = vector_store
        self.chunker = chunker or TextChunker()

    async def ingest_pdf(self, data: bytes, document_id: str = None) -> IngestResult:
        """Extract, chunk, embed and store a PDF.

        Args:
            data: Raw PDF bytes
            document_id: Id to store under (generated if not provided)

        Returns:
            IngestResult with page and chunk counts

        Raises:
            ParseError: If the PDF cannot be read
            ValidationError: If the PDF yields no text or no chunks
        """
        document_id = document_id or new_document_id()

        logger.info("ingesting_document", document_id=document_id, size_bytes=len(data))

        # pypdf is CPU-bound; parse off the event loop
        extracted = await asyncio.to_thread(extract_pdf, data)
        if not extracted.text.strip():
            raise ValidationError("PDF appears to be empty or unreadable")

        chunks = self.chunker.chunk_text(extracted.text)
        if not chunks:
            raise ValidationError("Failed to create text chunks from PDF")

        logger.info(
            "document_chunked",
            document_id=document_id,
            **self.chunker.get_chunk_stats(chunks),
        )

        await self.vector_store.ensure_index_exists()
        await self.vector_store.upsert(document_id, chunks)

        logger.info(
            "document_ingested",
            document_id=document_id,
            page_count=extracted.page_count,
            chunk_count=len(chunks),
        )

        return IngestResult(
            document_id=document_id,
            page_count=extracted.page_count,
            chunk_count=len(chunks),
        )
