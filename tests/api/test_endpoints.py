"""HTTP API tests using the Quart test client and provider doubles."""
import io

import pytest
from werkzeug.datastructures import FileStorage

from docchat.main import create_app
from docchat.rag.answerer import NO_CONTEXT_MESSAGE

SAMPLE_TEXT = "Hello world. This is page 1 testing."


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    return app.test_client()


def pdf_file(data: bytes, filename: str = "sample.pdf", content_type: str = "application/pdf") -> FileStorage:
    return FileStorage(io.BytesIO(data), filename=filename, content_type=content_type)


async def upload(client, data: bytes, **kwargs):
    return await client.post("/upload", files={"file": pdf_file(data, **kwargs)})


class TestUpload:
    async def test_ingests_pdf(self, client, make_pdf, fake_pinecone, services):
        data = make_pdf([SAMPLE_TEXT])

        response = await upload(client, data)

        assert response.status_code == 200
        body = await response.get_json()
        assert body["name"] == "sample.pdf"
        assert body["pageCount"] == 1
        assert body["chunkCount"] == 1
        assert body["url"].startswith("data:application/pdf;base64,")
        assert body["uploadedAt"]
        assert body["id"].split("-")[0].isdigit()

        namespace = fake_pinecone.Index(services.vector_store.index_name).namespaces[body["id"]]
        assert list(namespace) == [f"{body['id']}_chunk_0"]

    async def test_api_prefix_is_served(self, client, make_pdf):
        response = await client.post("/api/upload", files={"file": pdf_file(make_pdf([SAMPLE_TEXT]))})

        assert response.status_code == 200

    async def test_missing_file(self, client):
        response = await client.post("/upload", form={"note": "no file here"})

        assert response.status_code == 400
        body = await response.get_json()
        assert body["error"] == "Invalid request"
        assert body["details"] == "No file provided"

    async def test_rejects_non_pdf(self, client):
        response = await upload(client, b"plain text", filename="notes.txt", content_type="text/plain")

        assert response.status_code == 400
        assert await response.get_json() == {
            "error": "Invalid request",
            "details": "Only PDF files are allowed (got text/plain)",
        }

    async def test_rejects_oversize_file(self, app, client, make_pdf, fake_pinecone):
        app.config["MAX_FILE_SIZE"] = 100

        response = await upload(client, make_pdf([SAMPLE_TEXT]))

        assert response.status_code == 400
        assert (await response.get_json())["error"] == "Invalid request"
        assert (await response.get_json())["details"].startswith("File size exceeds")
        assert fake_pinecone.created == []

    async def test_corrupt_pdf(self, client):
        response = await upload(client, b"this is not really a pdf")

        assert response.status_code == 400
        assert (await response.get_json())["error"] == "PDF parsing failed"

    async def test_pdf_without_text(self, client, make_pdf):
        response = await upload(client, make_pdf([""]))

        assert response.status_code == 400
        assert (await response.get_json())["details"] == "PDF appears to be empty or unreadable"


class TestChat:
    async def test_answers_with_citations(self, client, make_pdf, fake_hf):
        document_id = (await (await upload(client, make_pdf([SAMPLE_TEXT]))).get_json())["id"]

        response = await client.post(
            "/chat", json={"message": "What does the document say?", "documentId": document_id}
        )

        assert response.status_code == 200
        body = await response.get_json()
        assert body["message"] == "The document says hello world (page 1)."
        assert 1 in [c["pageNumber"] for c in body["citations"]]
        assert body["citations"][0]["text"].endswith("...")

        prompt = fake_hf.chat_requests[0]["messages"][0]["content"]
        assert "Question: What does the document say?" in prompt
        assert "(Page 1): Hello world." in prompt

    @pytest.mark.parametrize(
        "payload",
        [
            {"documentId": "doc-1"},
            {"message": "Hi?"},
            {"message": "   ", "documentId": "doc-1"},
        ],
    )
    async def test_missing_fields(self, client, payload):
        response = await client.post("/chat", json=payload)

        assert response.status_code == 400
        assert (await response.get_json())["error"] == "Invalid request"

    async def test_non_json_body(self, client):
        response = await client.post("/chat", data="not json")

        assert response.status_code == 400

    async def test_unknown_document_returns_fallback(self, client, fake_hf):
        response = await client.post("/chat", json={"message": "Anything?", "documentId": "never-uploaded"})

        assert response.status_code == 200
        body = await response.get_json()
        assert body == {"message": NO_CONTEXT_MESSAGE, "citations": []}
        assert fake_hf.chat_requests == []

    @pytest.mark.parametrize(
        "provider_status, provider_body, status_code, error",
        [
            (503, "Model is loading", 503, "The AI model is currently loading"),
            (400, "Model is not supported by any provider", 400, "Model not supported"),
            (404, "Not Found", 404, "Model not available"),
            (401, "Unauthorized", 401, "Invalid API key"),
            (402, "Payment required", 402, "API quota exceeded"),
            (500, "Internal error", 500, "Failed to generate a response"),
        ],
    )
    async def test_generation_failures_map_to_statuses(
        self, client, make_pdf, fake_hf, provider_status, provider_body, status_code, error
    ):
        document_id = (await (await upload(client, make_pdf([SAMPLE_TEXT]))).get_json())["id"]
        fake_hf.chat_status = provider_status
        fake_hf.chat_error_body = provider_body

        response = await client.post("/api/chat", json={"message": "Hello?", "documentId": document_id})

        assert response.status_code == status_code
        assert (await response.get_json())["error"] == error


async def test_cors_headers_on_responses(client):
    response = await client.get("/health/live")

    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]


async def test_preflight(client):
    response = await client.options("/chat")

    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Max-Age"] == "86400"


async def test_delete_document(client, make_pdf, fake_pinecone, services):
    document_id = (await (await upload(client, make_pdf([SAMPLE_TEXT]))).get_json())["id"]

    response = await client.delete(f"/documents/{document_id}")

    assert response.status_code == 204
    assert document_id not in fake_pinecone.Index(services.vector_store.index_name).namespaces


async def test_readiness_tracks_index(client, make_pdf):
    assert (await client.get("/health/ready")).status_code == 503

    await upload(client, make_pdf([SAMPLE_TEXT]))

    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert (await response.get_json())["index"] is True
