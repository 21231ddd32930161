"""Request and response bodies of the HTTP API."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(ApiModel):
    message: str = Field(..., description="User question")
    document_id: str = Field(..., description="Id returned by the upload endpoint")

    @field_validator("message", "document_id")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class CitationModel(ApiModel):
    page_number: int
    text: str


class ChatResponse(ApiModel):
    message: str
    citations: List[CitationModel]


class UploadResponse(ApiModel):
    id: str
    name: str
    url: str
    page_count: int
    chunk_count: int
    uploaded_at: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
