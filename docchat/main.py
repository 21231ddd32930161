"""Main Quart application for the PDF chat service."""
import base64
import logging
from datetime import datetime, timezone

import structlog
from pydantic import ValidationError as PydanticValidationError
from quart import Blueprint, Quart, Response, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from docchat import config
from docchat.errors import DocChatError, ValidationError
from docchat.models import ChatRequest, ChatResponse, CitationModel, ErrorResponse, UploadResponse
from docchat.services import Services, build_services

logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

api = Blueprint("api", __name__)


def configure_logging(level: str = None) -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(format="%(message)s", level=(level or config.LOG_LEVEL).upper())
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def _services() -> Services:
    return current_app.extensions["docchat"]


def _error_body(error: str, details: str = None) -> dict:
    return ErrorResponse(error=error, details=details).model_dump()


@api.route("/upload", methods=["POST"])
async def upload():
    """Ingest an uploaded PDF.

    Expects multipart/form-data with a ``file`` field.

    Returns JSON:
    {
        "id": "document-id",
        "name": "file.pdf",
        "url": "data:application/pdf;base64,...",
        "pageCount": 3,
        "chunkCount": 7,
        "uploadedAt": "timestamp"
    }
    """
    files = await request.files
    file = files.get("file")

    if file is None:
        raise ValidationError("No file provided")

    if file.mimetype != "application/pdf":
        raise ValidationError(f"Only PDF files are allowed (got {file.mimetype or 'unknown type'})")

    data = file.read()
    max_size = current_app.config["MAX_FILE_SIZE"]
    if len(data) > max_size:
        raise ValidationError(
            f"File size exceeds {max_size / (1024 * 1024):g}MB (got {len(data)} bytes)"
        )

    logger.info("upload_received", filename=file.filename, size_bytes=len(data))

    result = await _services().ingest.ingest_pdf(data)

    response = UploadResponse(
        id=result.document_id,
        name=file.filename or "document.pdf",
        url="data:application/pdf;base64," + base64.b64encode(data).decode("ascii"),
        page_count=result.page_count,
        chunk_count=result.chunk_count,
        uploaded_at=datetime.now(timezone.utc).isoformat(),
    )

    return jsonify(response.model_dump(by_alias=True))


@api.route("/chat", methods=["POST"])
async def chat():
    """Answer a question about an uploaded document.

    Expects JSON body:
    {
        "message": "user question",
        "documentId": "document-id"
    }

    Returns JSON:
    {
        "message": "answer text",
        "citations": [{"pageNumber": 1, "text": "..."}]
    }
    """
    data = await request.get_json(silent=True)

    if not isinstance(data, dict):
        raise ValidationError("Missing required fields")

    try:
        chat_request = ChatRequest.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(f"Missing required fields: {fields}") from e

    logger.info(
        "chat_request_received",
        document_id=chat_request.document_id,
        message_length=len(chat_request.message),
        user_message_preview=chat_request.message[:100],
    )

    answer = await _services().answerer.answer(chat_request.document_id, chat_request.message)

    logger.info(
        "chat_response_sent",
        document_id=chat_request.document_id,
        response_length=len(answer.message),
        citation_count=len(answer.citations),
    )

    response = ChatResponse(
        message=answer.message,
        citations=[
            CitationModel(page_number=c.page_number, text=c.text) for c in answer.citations
        ],
    )
    return jsonify(response.model_dump(by_alias=True))


@api.route("/documents/<document_id>", methods=["DELETE"])
async def delete_document(document_id: str):
    """Remove a document's vectors (best effort)."""
    await _services().vector_store.delete_namespace(document_id)
    return "", 204


@api.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@api.route("/health/ready")
async def health_ready():
    """Readiness probe - check that the vector index is reachable and exists."""
    store = _services().vector_store
    checks = {"status": "healthy", "index": False}

    try:
        checks["index"] = store.index_name in await store.list_index_names()
        if not checks["index"]:
            checks["status"] = "unhealthy"
            checks["error"] = f"Missing index: {store.index_name}"
    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        checks["status"] = "unhealthy"
        checks["error"] = str(e)

    status_code = 200 if checks["status"] == "healthy" else 503
    return jsonify(checks), status_code


def create_app(services: Services = None) -> Quart:
    """Create the Quart application.

    Args:
        services: Pre-built clients; built from configuration if not provided
    """
    configure_logging()

    app = Quart(__name__)
    app.config["MAX_FILE_SIZE"] = config.MAX_FILE_SIZE
    app.extensions["docchat"] = services or build_services()

    app.register_blueprint(api)
    app.register_blueprint(api, url_prefix="/api", name="api_prefixed")

    @app.before_request
    async def log_and_preflight():
        logger.info("api_request", method=request.method, path=request.path)
        if request.method == "OPTIONS":
            return Response("", status=204, headers={**CORS_HEADERS, "Access-Control-Max-Age": "86400"})
        return None

    @app.after_request
    async def add_cors_headers(response: Response) -> Response:
        for header, value in CORS_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.errorhandler(DocChatError)
    async def handle_docchat_error(error: DocChatError):
        log = logger.error if error.status_code >= 500 else logger.warning
        log(
            "request_failed",
            path=request.path,
            status_code=error.status_code,
            error=error.message,
            details=error.details,
            error_type=type(error).__name__,
        )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    async def handle_http_error(error: HTTPException):
        return jsonify(_error_body(error.name, error.description)), error.code

    @app.errorhandler(Exception)
    async def handle_unexpected_error(error: Exception):
        logger.exception(
            "internal_server_error",
            path=request.path,
            error=str(error),
            error_type=type(error).__name__,
        )
        return jsonify(
            _error_body(
                "Internal server error",
                "An unexpected error occurred. Please try again or contact support if the issue persists.",
            )
        ), 500

    return app


if __name__ == "__main__":
    # For development - use hypercorn "docchat.main:create_app()" in production
    create_app().run(host="0.0.0.0", port=5000, debug=True)
