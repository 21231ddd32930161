"""Retrieval-augmented answering over a single uploaded document.

Handles:
- Namespace-scoped retrieval
- Context and prompt assembly
- Generation with the hosted chat model
- Answer clean-up and citation building
"""
import re
from dataclasses import dataclass, field
from typing import List

import structlog

from docchat import config
from docchat.errors import (
    GenerationFailed,
    ModelNotFound,
    ProviderMisconfigured,
    ProviderUnavailable,
    UnexpectedFormat,
)
from docchat.hf_client import ChatCompletionResult, HuggingFaceClient, ProviderErrorResult
from docchat.rag.store_pinecone import PineconeVectorStore, RetrievalResult

logger = structlog.get_logger()

NO_CONTEXT_MESSAGE = (
    "I couldn't find relevant information in the document to answer your question."
)

SPECIAL_TOKEN_PATTERN = re.compile(r"<\|.*?\|>")
ANSWER_PREFIX_PATTERN = re.compile(r"^(Answer|Response):\s*", re.IGNORECASE)

CITATION_PREVIEW_CHARS = 150

PROMPT_TEMPLATE = """You are a helpful assistant that answers questions based on provided document context.

Context from document:
{context}

Question: {question}

Instructions:
- Answer based only on the provided context
- Cite page numbers when referencing information
- Be concise and accurate"""


@dataclass(frozen=True)
class Citation:
    page_number: int
    text: str


@dataclass
class ChatAnswer:
    message: str
    citations: List[Citation] = field(default_factory=list)


def build_context(results: List[RetrievalResult]) -> str:
    """Number retrieved chunks and label each with its page, best first."""
    return "\n\n".join(
        f"[{i}] (Page {result.page_number}): {result.text}"
        for i, result in enumerate(results, 1)
    )


def build_prompt(context: str, question: str) -> str:
    return PROMPT_TEMPLATE.format(context=context, question=question)


def clean_generated_text(text: str) -> str:
    """Strip special delimiter tokens and a leading Answer:/Response: label."""
    cleaned = SPECIAL_TOKEN_PATTERN.sub("", text).strip()
    cleaned = ANSWER_PREFIX_PATTERN.sub("", cleaned, count=1)
    return cleaned.strip()


def build_citations(results: List[RetrievalResult]) -> List[Citation]:
    """One citation per page, keeping the snippet of the highest-ranked chunk.

    Citations come from the retrieved chunks, not from the model output.
    """
    citations = {}
    for result in results:
        if result.page_number in citations:
            continue
        citations[result.page_number] = Citation(
            page_number=result.page_number,
            text=result.text[:CITATION_PREVIEW_CHARS] + "...",
        )
    return list(citations.values())


class AnswerAssembler:
    """Answers questions about a document from its retrieved chunks."""

    def __init__(
        self,
        vector_store: PineconeVectorStore,
        hf_client: HuggingFaceClient,
        model: str = None,
        top_k: int = None,
        max_new_tokens: int = None,
        temperature: float = None,
    ):
        """Initialize the assembler.

        Args:
            vector_store: Gateway used for retrieval
            hf_client: Inference client used for generation
            model: Generation model (default from config)
            top_k: Chunks retrieved per question (default from config)
            max_new_tokens: Generation length bound (default from config)
            temperature: Sampling temperature (default from config)
        """
        self.vector_store = vector_store
        self.hf_client = hf_client
        self.model = model or config.HF_MODEL
        self.top_k = config.RETRIEVAL_TOP_K if top_k is None else top_k
        self.max_new_tokens = (
            config.GENERATION_MAX_TOKENS if max_new_tokens is None else max_new_tokens
        )
        self.temperature = (
            config.GENERATION_TEMPERATURE if temperature is None else temperature
        )

    async def generate(self, prompt: str) -> str:
        """Run the generation model on a prompt and clean its output.

        Raises:
            ModelLoading: The model is cold; retry after a delay
            ModelNotSupported: The configured model cannot be served
            ModelNotFound: The configured model does not exist
            GenerationFailed: Any other generation failure
        """
        try:
            result = await self.hf_client.chat_completion(
                [{"role": "user", "content": prompt}],
                model=self.model,
                max_tokens=self.max_new_tokens,
                temperature=self.temperature,
                wait_for_model=True,
            )
        except (ProviderUnavailable, ProviderMisconfigured, ModelNotFound):
            raise
        except Exception as e:
            logger.error(
                "generation_failed",
                model=self.model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise GenerationFailed(details=str(e)) from e

        match result:
            case ChatCompletionResult(content=content):
                return clean_generated_text(content)
            case ProviderErrorResult(error=error):
                raise GenerationFailed(details=f"HF Model Error: {error}")
            case _:
                raise UnexpectedFormat(details="Unexpected response format from HF API")

    async def answer(self, document_id: str, question: str) -> ChatAnswer:
        """Answer a question using only the given document.

        Args:
            document_id: Document to search
            question: User question, used verbatim in the prompt

        Returns:
            ChatAnswer with the cleaned message and deduplicated citations
        """
        results = await self.vector_store.query(document_id, question, self.top_k)

        if not results:
            logger.info("no_relevant_context_found", document_id=document_id)
            return ChatAnswer(message=NO_CONTEXT_MESSAGE, citations=[])

        context = build_context(results)

        logger.info(
            "context_assembled",
            document_id=document_id,
            num_chunks=len(results),
            context_length=len(context),
        )

        message = await self.generate(build_prompt(context, question))

        return ChatAnswer(message=message, citations=build_citations(results))
