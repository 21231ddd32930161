"""Shared test fixtures and provider doubles.

Provides: in-memory Pinecone double, deterministic embeddings, a mocked
Hugging Face transport and a minimal PDF builder.
"""
import json
import math
import re
import threading
import zlib
from types import SimpleNamespace
from typing import Dict, List

import httpx
import pytest

from docchat.hf_client import HuggingFaceClient
from docchat.services import build_services

DIMENSION = 384


def embed_text(text: str, dimension: int = DIMENSION) -> List[float]:
    """Bag-of-words vector; texts sharing words point the same way."""
    vector = [0.0] * dimension
    for word in re.findall(r"\w+", text.lower()):
        vector[zlib.crc32(word.encode()) % dimension] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


def cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeIndexList(list):
    def names(self) -> List[str]:
        return [index["name"] for index in self]


class FakePineconeIndex:
    """Namespace -> id -> record store with cosine search."""

    def __init__(self):
        self.namespaces: Dict[str, Dict[str, dict]] = {}
        self.upsert_calls: List[int] = []

    def upsert(self, vectors, namespace=""):
        self.upsert_calls.append(len(vectors))
        records = self.namespaces.setdefault(namespace, {})
        for vector in vectors:
            records[vector["id"]] = vector
        return {"upserted_count": len(vectors)}

    def query(self, vector, top_k, include_metadata=True, namespace=""):
        records = self.namespaces.get(namespace, {}).values()
        scored = sorted(
            (
                SimpleNamespace(
                    id=record["id"],
                    score=cosine(vector, record["values"]),
                    metadata=dict(record["metadata"]) if include_metadata else None,
                )
                for record in records
            ),
            key=lambda match: match.score,
            reverse=True,
        )
        return SimpleNamespace(matches=scored[:top_k])

    def delete(self, delete_all=False, namespace=""):
        if delete_all:
            self.namespaces.pop(namespace, None)


class FakePinecone:
    """Stands in for pinecone.Pinecone."""

    def __init__(self):
        self.indexes: Dict[str, FakePineconeIndex] = {}
        self.created: List[dict] = []
        self.index_threads: List[int] = []

    def list_indexes(self):
        return FakeIndexList({"name": name} for name in self.indexes)

    def create_index(self, name, dimension, metric, spec):
        self.created.append({"name": name, "dimension": dimension, "metric": metric, "spec": spec})
        self.indexes.setdefault(name, FakePineconeIndex())

    def Index(self, name):
        self.index_threads.append(threading.get_ident())
        return self.indexes.setdefault(name, FakePineconeIndex())


class FakeEmbedder:
    """Embedding client double returning bag-of-words vectors."""

    def __init__(self):
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        return embed_text(text)


class SleepRecorder:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeHuggingFace:
    """httpx handler emulating the feature-extraction and chat endpoints."""

    def __init__(self, answer: str = "Answer: The document says hello world (page 1).<|eot_id|>"):
        self.answer = answer
        self.chat_status = 200
        self.chat_error_body = "model error"
        self.chat_requests: List[dict] = []
        self.embedding_requests: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)

        if request.url.path.endswith("/pipeline/feature-extraction"):
            self.embedding_requests.append(payload["inputs"])
            return httpx.Response(200, json=embed_text(payload["inputs"]))

        if request.url.path == "/v1/chat/completions":
            self.chat_requests.append(payload)
            if self.chat_status != 200:
                return httpx.Response(self.chat_status, text=self.chat_error_body)
            return httpx.Response(
                200,
                json={"choices": [{"message": {"role": "assistant", "content": self.answer}}]},
            )

        return httpx.Response(404, text="unknown route")


def build_pdf(pages: List[str]) -> bytes:
    """Build a small text-only PDF with one Helvetica line per page."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    for page_id, text in zip(page_ids, pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode()
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_pinecone() -> FakePinecone:
    return FakePinecone()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_hf() -> FakeHuggingFace:
    return FakeHuggingFace()


@pytest.fixture
def hf_client(fake_hf) -> HuggingFaceClient:
    return HuggingFaceClient(
        api_key="test-key",
        base_url="https://hf.test",
        transport=httpx.MockTransport(fake_hf),
    )


@pytest.fixture
def services(hf_client, fake_pinecone, sleep_recorder):
    """Fully wired services backed by provider doubles."""
    return build_services(hf_client=hf_client, pinecone_client=fake_pinecone, sleep=sleep_recorder)


@pytest.fixture
def make_pdf():
    return build_pdf
