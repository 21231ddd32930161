"""Hugging Face inference client wrapper with error handling."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx
import structlog

from docchat import config
from docchat.errors import (
    InvalidCredentials,
    ModelLoading,
    ModelNotFound,
    ModelNotSupported,
    ProviderRequestFailed,
    ProviderUnavailable,
    QuotaExceeded,
    UnexpectedFormat,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class VectorResult:
    """A single embedding vector."""

    values: List[float]


@dataclass(frozen=True)
class NestedVectorResult:
    """A batch of vectors (e.g. per-token representations)."""

    vectors: List[List[float]]


@dataclass(frozen=True)
class ChatCompletionResult:
    """Content of the first choice of a chat completion."""

    content: str


@dataclass(frozen=True)
class ProviderErrorResult:
    """An error object returned with a successful HTTP status."""

    error: Any


ProviderResult = Union[VectorResult, NestedVectorResult, ChatCompletionResult, ProviderErrorResult]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_vector(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(_is_number(v) for v in value)


def parse_response(data: Any) -> ProviderResult:
    """Classify a provider JSON body into one of the known response shapes.

    Raises:
        UnexpectedFormat: If the body matches none of the shapes
    """
    if isinstance(data, list):
        if _is_vector(data):
            return VectorResult(values=[float(v) for v in data])
        if data and all(_is_vector(v) for v in data):
            return NestedVectorResult(vectors=[[float(x) for x in v] for v in data])

    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return ChatCompletionResult(content=message["content"].strip())
        if "error" in data:
            return ProviderErrorResult(error=data["error"])

    raise UnexpectedFormat(
        details=f"Unrecognized provider response of type {type(data).__name__}"
    )


def raise_for_provider_status(response: httpx.Response, model: str) -> None:
    """Map a failed provider response onto the error taxonomy."""
    if response.is_success:
        return

    status = response.status_code
    body = response.text
    lowered = body.lower()

    logger.error(
        "hf_api_error",
        status_code=status,
        model=model,
        body_preview=body[:200],
    )

    if status == 402 or "insufficient_quota" in lowered or (status == 429 and "quota" in lowered):
        raise QuotaExceeded(details="The inference provider quota is exhausted. Check billing.")
    if status in (401, 403):
        raise InvalidCredentials(details="Please check HUGGINGFACE_API_KEY.")
    if status == 400 and ("model_not_supported" in lowered or "not supported" in lowered):
        raise ModelNotSupported(
            f'Model "{model}" is not supported by Inference Providers.',
            details=f'Model "{model}" is not supported by Inference Providers. '
            "Set HF_MODEL to a supported model such as meta-llama/Llama-3.1-8B-Instruct.",
        )
    if status == 503:
        raise ModelLoading(
            details="Please wait 30-60 seconds and try again. The model needs time to initialize."
        )
    if status == 404:
        raise ModelNotFound(f"Model not found or not available: {model}")

    raise ProviderRequestFailed(
        f"Hugging Face API error: {status} {response.reason_phrase}",
        details=body[:500] or None,
    )


class HuggingFaceClient:
    """Async client for the Hugging Face inference router."""

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token (defaults to config.HUGGINGFACE_API_KEY)
            base_url: Router base URL (defaults to config.HF_BASE_URL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key or config.HUGGINGFACE_API_KEY
        self.base_url = (base_url or config.HF_BASE_URL).rstrip("/")
        self.timeout = timeout or config.HF_TIMEOUT
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise InvalidCredentials("Missing HUGGINGFACE_API_KEY env var")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, url: str, payload: Dict[str, Any], model: str, headers: Dict[str, str]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TransportError as e:
            logger.error("hf_connection_error", error=str(e), url=url)
            raise ProviderUnavailable(
                "Could not reach the inference provider", details=str(e)
            ) from e

        raise_for_provider_status(response, model)

        try:
            return response.json()
        except ValueError as e:
            raise UnexpectedFormat(details="Provider returned a non-JSON body") from e

    async def feature_extraction(self, text: str, model: str = None) -> ProviderResult:
        """Run a feature-extraction (embedding) model on a text.

        Args:
            text: Text to embed
            model: Model to use (defaults to config.EMBEDDING_MODEL)

        Returns:
            VectorResult or NestedVectorResult, or ProviderErrorResult

        Raises:
            DocChatError: On provider or transport failures
        """
        model = model or config.EMBEDDING_MODEL

        logger.debug("hf_embedding_request", model=model, text_length=len(text))

        data = await self._post(
            f"{self.base_url}/hf-inference/models/{model}/pipeline/feature-extraction",
            {"inputs": text, "options": {"wait_for_model": True}},
            model,
            self._headers(),
        )
        return parse_response(data)

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        max_tokens: int = None,
        temperature: float = None,
        top_p: float = None,
        wait_for_model: bool = True,
    ) -> ProviderResult:
        """Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model to use (defaults to config.HF_MODEL)
            max_tokens: Upper bound on generated tokens
            temperature: Sampling temperature
            top_p: Nucleus sampling probability
            wait_for_model: Ask the provider to wait for a cold model to load

        Returns:
            ChatCompletionResult or ProviderErrorResult

        Raises:
            DocChatError: On provider or transport failures
        """
        model = model or config.HF_MODEL

        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens if max_tokens is not None else config.GENERATION_MAX_TOKENS,
            "temperature": temperature if temperature is not None else config.GENERATION_TEMPERATURE,
            "top_p": top_p if top_p is not None else config.GENERATION_TOP_P,
            "stream": False,
        }

        headers = self._headers()
        if wait_for_model:
            headers["x-wait-for-model"] = "true"

        logger.info("hf_chat_request", model=model, message_count=len(messages))

        data = await self._post(f"{self.base_url}/v1/chat/completions", payload, model, headers)
        result = parse_response(data)

        if isinstance(result, ChatCompletionResult):
            logger.info("hf_chat_response", model=model, response_length=len(result.content))

        return result

