"""
Document text extraction.

Turns an uploaded PDF into plain text: every page in order, each page's text
fragments in order joined with a single space, pages joined with a newline.
"""
import asyncio
import logging
import tempfile
from pathlib import Path
from typing import List, Optional

import pypdf
from pypdf.errors import PyPdfError

from app.core.config import settings
from app.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_SIGNATURE = b"%PDF"


def _normalize_fragment(fragment: str) -> str:
    return " ".join(fragment.split())


def extract_page_text(page: pypdf.PageObject) -> str:
    """Join the non-blank text fragments of one page with single spaces."""
    fragments: List[str] = []

    def visitor(text, cm, tm, font_dict, font_size):
        fragment = _normalize_fragment(text)
        if fragment:
            fragments.append(fragment)

    page.extract_text(visitor_text=visitor)
    return " ".join(fragments)


class DocumentExtractor:
    """
    Extracts text from uploaded documents.

    The document is parsed from a scratch file inside a temporary directory
    that is removed on every exit path.
    """

    SUPPORTED_MEDIA_TYPES = {PDF_MEDIA_TYPE}

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds or settings.EXTRACTION_TIMEOUT_SECONDS

    async def extract(self, content: bytes, media_type: str) -> str:
        """
        Extract text without blocking the event loop.

        Raises:
            ExtractionError: If the document cannot be parsed as the declared
                format, is encrypted, holds no text, or parsing times out.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.extract_text, content, media_type),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Text extraction timed out after {self.timeout_seconds}s")
            raise ExtractionError(
                f"Text extraction timed out after {self.timeout_seconds}s",
                {"reason": "timeout"},
            ) from e

    def extract_text(self, content: bytes, media_type: str) -> str:
        """Synchronous extraction; see ``extract``."""
        if media_type not in self.SUPPORTED_MEDIA_TYPES:
            raise ExtractionError(
                f"Unsupported media type: {media_type}. Only PDF files are supported.",
                {"reason": "unsupported_media_type", "media_type": media_type},
            )
        if not content.startswith(PDF_SIGNATURE):
            raise ExtractionError(
                "File content does not match PDF format. File may be corrupted or have wrong type.",
                {"reason": "signature_mismatch"},
            )

        with tempfile.TemporaryDirectory(prefix="resume-") as scratch_dir:
            scratch_path = Path(scratch_dir) / "document.pdf"
            scratch_path.write_bytes(content)
            return self._extract_from_path(scratch_path)

    def _extract_from_path(self, path: Path) -> str:
        try:
            with open(path, 'rb') as file:
                reader = pypdf.PdfReader(file)
                if reader.is_encrypted:
                    raise ExtractionError("PDF is encrypted", {"reason": "encrypted"})
                pages = [extract_page_text(page) for page in reader.pages]
        except ExtractionError:
            raise
        except PyPdfError as e:
            logger.warning(f"PDF parse failed: {e}")
            raise ExtractionError(f"PDF parse failed: {e}", {"reason": "corrupt"}) from e
        except Exception as e:
            # pypdf surfaces some malformed structures as generic errors
            logger.error(f"Unexpected error while reading PDF: {e}", exc_info=True)
            raise ExtractionError(f"An error occurred while reading the PDF: {e}", {"reason": "corrupt"}) from e

        text = "\n".join(pages)
        if not text.strip():
            raise ExtractionError("No text could be extracted from the PDF", {"reason": "no_text"})

        logger.info(f"Successfully extracted {len(text)} characters from {len(pages)} pages")
        return text
