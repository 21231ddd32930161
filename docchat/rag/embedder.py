"""Embedding generation through the hosted feature-extraction model."""
from typing import List

import structlog

from docchat import config
from docchat.errors import QuotaExceeded, UnexpectedFormat
from docchat.hf_client import (
    HuggingFaceClient,
    NestedVectorResult,
    ProviderErrorResult,
    VectorResult,
)
from docchat.retry import retry_with_backoff

logger = structlog.get_logger()


def is_retryable(exc: BaseException) -> bool:
    """Quota exhaustion is terminal; every other failure may be retried."""
    return not isinstance(exc, QuotaExceeded)


class EmbeddingClient:
    """Turns text into fixed-length vectors, retrying transient failures."""

    def __init__(
        self,
        hf_client: HuggingFaceClient,
        model: str = None,
        dimension: int = None,
        max_attempts: int = None,
        base_delay: float = None,
        sleep=None,
    ):
        """Initialize the embedding client.

        Args:
            hf_client: Shared inference client
            model: Feature-extraction model (default from config)
            dimension: Expected vector length (default from config)
            max_attempts: Attempts per text, including the first
            base_delay: Seconds before the first retry; doubles each retry
            sleep: Optional awaitable sleep, replaced in tests
        """
        self.hf_client = hf_client
        self.model = model or config.EMBEDDING_MODEL
        self.dimension = dimension or config.EMBEDDING_DIMENSION
        self.max_attempts = max_attempts or config.EMBED_MAX_ATTEMPTS
        self.base_delay = config.EMBED_RETRY_DELAY if base_delay is None else base_delay
        self._sleep = sleep

    async def _embed_once(self, text: str) -> List[float]:
        result = await self.hf_client.feature_extraction(text, model=self.model)

        match result:
            case VectorResult(values=values):
                return values
            case NestedVectorResult(vectors=vectors):
                return vectors[0]
            case ProviderErrorResult(error=error):
                raise UnexpectedFormat(details=f"Embedding provider returned an error: {error}")
            case _:
                raise UnexpectedFormat(details="Unexpected embedding format from Hugging Face")

    async def embed(self, text: str) -> List[float]:
        """Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            QuotaExceeded: Immediately, without retrying
            DocChatError: The last failure once attempts are exhausted
        """
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}

        embedding = await retry_with_backoff(
            lambda: self._embed_once(text),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            is_retryable=is_retryable,
            **kwargs,
        )

        if len(embedding) != self.dimension:
            logger.warning(
                "embedding_dimension_mismatch",
                expected=self.dimension,
                actual=len(embedding),
                model=self.model,
            )

        return embedding
