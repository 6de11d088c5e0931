"""Plain-text extraction from PDF documents."""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from utils.errors import ParseError

LOGGER = logging.getLogger(__name__)


def extract_pdf_text(content: bytes) -> str:
    """Return the text of every page joined by blank lines.

    A readable PDF without a text layer yields an empty string; the caller
    decides whether that is acceptable.

    Raises:
        ParseError: If the bytes are not a readable PDF.
    """
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError) as exc:
        raise ParseError(f"Failed to parse PDF content: {exc}") from exc

    text = "\n\n".join(page for page in pages if page)
    LOGGER.info("PDF parsed: %d pages, %d characters extracted", len(pages), len(text))
    return text
