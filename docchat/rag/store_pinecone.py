"""Pinecone vector store for per-document semantic search.

Handles:
- Index creation (cosine, serverless) with a settle delay
- Batched, rate-limited embedding and upsert
- Namespace-scoped similarity search
- Namespace deletion

Each document lives in its own namespace, so queries never cross documents.
The Pinecone SDK is synchronous; calls run in a worker thread.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List

import structlog
from pinecone import Pinecone, ServerlessSpec
from pinecone.exceptions import PineconeException

from docchat import config
from docchat.errors import InvalidCredentials, VectorStoreUnavailable
from docchat.rag.chunker import TextChunk
from docchat.rag.embedder import EmbeddingClient

logger = structlog.get_logger()


@dataclass(frozen=True)
class RetrievalResult:
    """A single retrieved chunk with its similarity score."""

    text: str
    page_number: int
    score: float


def vector_id(document_id: str, chunk_index: int) -> str:
    """Deterministic record id; re-ingesting a document overwrites its records."""
    return f"{document_id}_chunk_{chunk_index}"


def _translate_pinecone_error(e: PineconeException, operation: str) -> Exception:
    if getattr(e, "status", None) == 401:
        return InvalidCredentials(details="Please check PINECONE_API_KEY.")
    return VectorStoreUnavailable(
        f"Pinecone {operation} failed",
        details="Failed to reach Pinecone. Please check your API key and index configuration.",
    )


class PineconeVectorStore:
    """Gateway to a hosted Pinecone index partitioned by document id."""

    def __init__(
        self,
        client: Pinecone,
        embedder: EmbeddingClient,
        index_name: str = None,
        dimension: int = None,
        cloud: str = None,
        region: str = None,
        settle_seconds: float = None,
        embed_batch_size: int = None,
        embed_batch_delay: float = None,
        upsert_batch_size: int = None,
        sleep=asyncio.sleep,
    ):
        """Initialize the vector store.

        Args:
            client: Pinecone control-plane client
            embedder: Embedding client used for chunks and queries
            index_name: Index name (default from config)
            dimension: Embedding dimension the index is created with
            cloud: Serverless cloud provider
            region: Serverless region
            settle_seconds: Wait after creating an index before it is used
            embed_batch_size: Chunks embedded concurrently per round
            embed_batch_delay: Pause between embedding rounds, in seconds
            upsert_batch_size: Records per upsert call
            sleep: Awaitable sleep, replaced in tests
        """
        self.client = client
        self.embedder = embedder
        self.index_name = index_name or config.PINECONE_INDEX_NAME
        self.dimension = dimension or config.EMBEDDING_DIMENSION
        self.cloud = cloud or config.PINECONE_CLOUD
        self.region = region or config.PINECONE_REGION
        self.settle_seconds = (
            config.INDEX_SETTLE_SECONDS if settle_seconds is None else settle_seconds
        )
        self.embed_batch_size = embed_batch_size or config.EMBED_BATCH_SIZE
        self.embed_batch_delay = (
            config.EMBED_BATCH_DELAY if embed_batch_delay is None else embed_batch_delay
        )
        self.upsert_batch_size = upsert_batch_size or config.UPSERT_BATCH_SIZE
        self._sleep = sleep
        self._index_handle = None

    async def _index(self):
        # Resolving a handle by name describes the index over the network
        if self._index_handle is None:
            self._index_handle = await asyncio.to_thread(self.client.Index, self.index_name)
        return self._index_handle

    async def list_index_names(self) -> List[str]:
        """List index names in the project.

        Raises:
            PineconeException: On control-plane failures
        """
        indexes = await asyncio.to_thread(self.client.list_indexes)
        return list(indexes.names())

    async def ensure_index_exists(self) -> bool:
        """Create the index if it is missing.

        Best effort: control-plane failures are logged and swallowed so a
        transient error does not abort ingestion.

        Returns:
            True if the index was created by this call
        """
        try:
            if self.index_name in await self.list_index_names():
                return False

            logger.info(
                "creating_pinecone_index",
                index_name=self.index_name,
                dimension=self.dimension,
                cloud=self.cloud,
                region=self.region,
            )

            await asyncio.to_thread(
                self.client.create_index,
                name=self.index_name,
                dimension=self.dimension,
                metric="cosine",
                spec=ServerlessSpec(cloud=self.cloud, region=self.region),
            )

            logger.info("waiting_for_index_ready", settle_seconds=self.settle_seconds)
            await self._sleep(self.settle_seconds)
            return True

        except Exception as e:
            logger.error(
                "index_creation_failed",
                index_name=self.index_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def _build_records(self, document_id: str, chunks: List[TextChunk]) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []

        for start in range(0, len(chunks), self.embed_batch_size):
            batch = chunks[start : start + self.embed_batch_size]

            logger.info(
                "embedding_batch_started",
                document_id=document_id,
                first=start + 1,
                last=start + len(batch),
                total=len(chunks),
            )

            embeddings = await asyncio.gather(*(self.embedder.embed(c.text) for c in batch))

            for chunk, embedding in zip(batch, embeddings):
                records.append(
                    {
                        "id": vector_id(document_id, chunk.chunk_index),
                        "values": embedding,
                        "metadata": {
                            "documentId": document_id,
                            "text": chunk.text,
                            "pageNumber": chunk.page_number,
                            "chunkIndex": chunk.chunk_index,
                        },
                    }
                )

            if start + self.embed_batch_size < len(chunks):
                await self._sleep(self.embed_batch_delay)

        return records

    async def upsert(self, document_id: str, chunks: List[TextChunk]) -> int:
        """Embed chunks and write them into the document's namespace.

        Any failure aborts the remaining batches. Ids are deterministic, so
        a failed ingestion can simply be re-run.

        Args:
            document_id: Document (and namespace) id
            chunks: Chunks produced by the chunker

        Returns:
            Number of records written
        """
        records = await self._build_records(document_id, chunks)

        try:
            index = await self._index()
        except PineconeException as e:
            logger.error("vector_index_unavailable", index_name=self.index_name, error=str(e))
            raise _translate_pinecone_error(e, "upsert") from e

        for start in range(0, len(records), self.upsert_batch_size):
            batch = records[start : start + self.upsert_batch_size]

            logger.info(
                "upserting_vectors",
                document_id=document_id,
                first=start + 1,
                last=start + len(batch),
                total=len(records),
            )

            try:
                await asyncio.to_thread(index.upsert, vectors=batch, namespace=document_id)
            except PineconeException as e:
                logger.error("vector_upsert_failed", document_id=document_id, error=str(e))
                raise _translate_pinecone_error(e, "upsert") from e

        logger.info("vectors_upserted", document_id=document_id, count=len(records))

        return len(records)

    async def query(self, document_id: str, query_text: str, top_k: int = None) -> List[RetrievalResult]:
        """Search a document's namespace for the chunks closest to a query.

        Args:
            document_id: Document (and namespace) id
            query_text: Natural-language query
            top_k: Maximum number of matches

        Returns:
            Up to top_k results, best first; empty if nothing matched
        """
        top_k = config.RETRIEVAL_TOP_K if top_k is None else top_k
        if top_k <= 0:
            return []

        query_embedding = await self.embedder.embed(query_text)

        try:
            index = await self._index()
            response = await asyncio.to_thread(
                index.query,
                vector=query_embedding,
                top_k=top_k,
                include_metadata=True,
                namespace=document_id,
            )
        except PineconeException as e:
            logger.error("vector_query_failed", document_id=document_id, error=str(e))
            raise _translate_pinecone_error(e, "query") from e

        results = []
        for match in response.matches or []:
            metadata = match.metadata or {}
            results.append(
                RetrievalResult(
                    text=str(metadata.get("text", "")),
                    page_number=int(metadata.get("pageNumber", 1)),
                    score=float(match.score or 0.0),
                )
            )

        results.sort(key=lambda r: r.score, reverse=True)

        logger.info(
            "vector_search_completed",
            document_id=document_id,
            top_k=top_k,
            results_found=len(results),
        )

        return results[:top_k]

    async def delete_namespace(self, document_id: str) -> None:
        """Delete every vector of a document. Failures are logged, not raised."""
        try:
            index = await self._index()
            await asyncio.to_thread(index.delete, delete_all=True, namespace=document_id)
            logger.info("namespace_deleted", document_id=document_id)
        except Exception as e:
            logger.error(
                "namespace_deletion_failed",
                document_id=document_id,
                error=str(e),
                error_type=type(e).__name__,
            )
