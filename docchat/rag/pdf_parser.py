"""PDF text extraction for uploaded documents."""
import io
from dataclasses import dataclass, field
from typing import List

import structlog
from pypdf import PdfReader

from docchat.errors import ParseError

logger = structlog.get_logger()


@dataclass
class ExtractedDocument:
    """Text pulled out of a PDF, one entry per page plus the joined text."""

    text: str
    page_count: int
    pages: List[str] = field(default_factory=list)


def extract_pdf(data: bytes) -> ExtractedDocument:
    """Extract the text of every page of a PDF.

    Args:
        data: Raw PDF bytes

    Returns:
        ExtractedDocument with pages joined by blank lines

    Raises:
        ParseError: If the PDF is corrupt or password-protected
    """
    try:
        reader = PdfReader(io.BytesIO(data))

        if reader.is_encrypted and not reader.decrypt(""):
            raise ParseError(
                "PDF is password-protected",
                details="The PDF file may be corrupted or password-protected.",
            )

        pages = [page.extract_text() or "" for page in reader.pages]
    except ParseError:
        raise
    except Exception as e:
        logger.error("pdf_parsing_failed", error=str(e), error_type=type(e).__name__)
        raise ParseError(
            "Failed to parse PDF",
            details="The PDF file may be corrupted or password-protected.",
        ) from e

    text = "\n\n".join(pages)

    logger.info("pdf_extracted", page_count=len(pages), text_length=len(text))

    return ExtractedDocument(text=text, page_count=len(pages), pages=pages)
