"""Provider clients and pipeline components, built once per process."""
import asyncio
from dataclasses import dataclass

import structlog
from pinecone import Pinecone

from docchat import config
from docchat.errors import InvalidCredentials
from docchat.hf_client import HuggingFaceClient
from docchat.rag.answerer import AnswerAssembler
from docchat.rag.embedder import EmbeddingClient
from docchat.rag.ingest import IngestPipeline
from docchat.rag.store_pinecone import PineconeVectorStore

logger = structlog.get_logger()


@dataclass
class Services:
    """Everything a request handler needs; stateless after construction."""

    hf_client: HuggingFaceClient
    embedder: EmbeddingClient
    vector_store: PineconeVectorStore
    ingest: IngestPipeline
    answerer: AnswerAssembler


def build_services(
    hf_client: HuggingFaceClient = None,
    pinecone_client: Pinecone = None,
    sleep=asyncio.sleep,
) -> Services:
    """Wire up clients and components.

    Args:
        hf_client: Inference client (built from config if not provided)
        pinecone_client: Pinecone client (built from config if not provided)
        sleep: Awaitable sleep used for retries, pacing and settle delays

    Raises:
        InvalidCredentials: If a required API key is not configured
    """
    if hf_client is None:
        if not config.HUGGINGFACE_API_KEY:
            raise InvalidCredentials("Missing HUGGINGFACE_API_KEY env var")
        hf_client = HuggingFaceClient()

    if pinecone_client is None:
        if not config.PINECONE_API_KEY:
            raise InvalidCredentials("Missing PINECONE_API_KEY env var")
        pinecone_client = Pinecone(api_key=config.PINECONE_API_KEY)

    embedder = EmbeddingClient(hf_client, sleep=sleep)
    vector_store = PineconeVectorStore(pinecone_client, embedder, sleep=sleep)

    logger.info(
        "services_initialized",
        index_name=vector_store.index_name,
        embedding_model=embedder.model,
        generation_model=config.HF_MODEL,
    )

    return Services(
        hf_client=hf_client,
        embedder=embedder,
        vector_store=vector_store,
        ingest=IngestPipeline(vector_store),
        answerer=AnswerAssembler(vector_store, hf_client),
    )
