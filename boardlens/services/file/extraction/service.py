"""Unified extraction service for all supported board document formats."""

import logging

import httpx

from boardlens.config import Settings
from boardlens.exceptions import ExtractionError
from boardlens.services.file.extraction.models import ExtractionResult
from boardlens.services.file.extraction.normalizer import normalize_elements
from boardlens.services.file.extraction.partition import (
    UnstructuredPartitionClient,
    partition_options,
)
from boardlens.services.file.validation import get_file_type

logger = logging.getLogger(__name__)


class ExtractionService:
    """Partition a file with the Unstructured API and normalize the result."""

    def __init__(
        self,
        partition_client: UnstructuredPartitionClient,
        split_pdf_concurrency: int = 15,
        languages: list[str] | None = None,
    ):
        self.partition_client = partition_client
        self.split_pdf_concurrency = split_pdf_concurrency
        self.languages = languages or ["eng"]

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        partition_client: UnstructuredPartitionClient | None = None,
    ) -> "ExtractionService":
        return cls(
            partition_client or UnstructuredPartitionClient.from_settings(settings),
            split_pdf_concurrency=settings.pdf_split_concurrency,
            languages=settings.partition_languages,
        )

    async def extract(
        self,
        content: bytes,
        file_name: str,
        file_path: str | None = None,
    ) -> ExtractionResult:
        """
        Extract and normalize one file.

        A file either normalizes completely or fails; partial extraction
        is never returned.

        Args:
            content: Raw file bytes
            file_name: File name, used to resolve the type
            file_path: Storage path for error messages (defaults to file_name)

        Returns:
            ExtractionResult for the file

        Raises:
            UnsupportedFileTypeError: Before any network call
            ExtractionError: On transport failure, non-200 status or no elements
        """
        file_type = get_file_type(file_name)
        source = file_path or file_name
        options = partition_options(file_type, self.split_pdf_concurrency, self.languages)

        try:
            response = await self.partition_client.partition(content, file_name, options)
        except httpx.HTTPError as e:
            logger.error(
                f"Partition call failed for {source}: {e}",
                extra={"file_path": source, "step": "partition"},
            )
            raise ExtractionError(source, type(e).__name__) from e

        if response.status_code != 200:
            raise ExtractionError(source, f"partition service returned {response.status_code}")
        if not response.elements:
            raise ExtractionError(source, "no elements returned")

        result = normalize_elements(response.elements, file_type, file_name)
        logger.info(f"Extracted {len(result.elements)} elements from {source} ({file_type})")
        return result
