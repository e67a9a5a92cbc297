"""Resume upload validation."""

import logging
from pathlib import PurePath
from typing import Optional, Set

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.schemas.records import UploadedDocument


class FileValidator:
    """
    Validates uploaded resume documents before anything is stored.

    Responsibilities:
    - Require a file name and non-empty content
    - Validate the declared media type
    - Validate file size (configurable max)

    Content-level checks (signature, parseability) belong to the extractor:
    a document that passes here is always stored, even if it later fails
    to parse.
    """

    SUPPORTED_MEDIA_TYPES: Set[str] = {'application/pdf'}

    def __init__(self, logger: Optional[logging.Logger] = None, max_size_mb: Optional[int] = None):
        """
        Initialize file validator.

        Args:
            logger: Logger instance (optional)
            max_size_mb: Maximum file size in MB (optional, defaults to MAX_FILE_SIZE_MB)
        """
        self.logger = logger or logging.getLogger(__name__)
        size_mb = max_size_mb if max_size_mb is not None else settings.MAX_FILE_SIZE_MB
        self.max_file_size_bytes = size_mb * 1024 * 1024

    def validate(self, document: UploadedDocument) -> None:
        """
        Validate an uploaded document.

        Raises:
            ValidationError: If the document is empty, has no usable name,
                has an unsupported media type or is too large.
        """
        if not document.file_name or not PurePath(document.file_name).name:
            raise ValidationError("No file uploaded")

        if document.size == 0:
            raise ValidationError(f"Resume file is empty: {document.file_name}")

        if document.media_type not in self.SUPPORTED_MEDIA_TYPES:
            raise ValidationError(
                "Only PDF files are supported",
                {"media_type": document.media_type, "supported": sorted(self.SUPPORTED_MEDIA_TYPES)},
            )

        if document.size > self.max_file_size_bytes:
            max_mb = self.max_file_size_bytes / (1024 * 1024)
            actual_mb = document.size / (1024 * 1024)
            raise ValidationError(
                f"Resume file too large: {actual_mb:.1f}MB exceeds {max_mb:.0f}MB limit",
                {"size_bytes": document.size, "max_bytes": self.max_file_size_bytes},
            )

        self.logger.info(f"Resume validation passed: {document.file_name} ({document.size / 1024:.1f}KB)")
