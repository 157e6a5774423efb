"""Client for the Unstructured partition API."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from boardlens.config import Settings
from boardlens.enums import FileType

logger = logging.getLogger(__name__)

PARTITION_PATH = "/general/v0/general"


@dataclass
class PartitionResponse:
    """Status and raw elements returned by one partition call."""

    status_code: int
    elements: list[dict[str, Any]] | None


def partition_options(
    file_type: FileType,
    split_pdf_concurrency: int = 15,
    languages: list[str] | None = None,
) -> dict[str, Any]:
    """
    Build format-specific partition parameters.

    PDFs are split by page and processed concurrently with the
    high-resolution strategy; spreadsheets keep formulas and cell formats;
    Word documents keep formatting and images; slides use the defaults.
    """
    options: dict[str, Any] = {
        "strategy": "hi_res",
        "languages": languages or ["eng"],
    }
    if file_type is FileType.PDF:
        options.update(
            split_pdf_page=True,
            split_pdf_allow_failed=True,
            split_pdf_concurrency_level=split_pdf_concurrency,
        )
    elif file_type is FileType.XLSX:
        options.update(
            preserve_formulas=True,
            extract_cell_formats=True,
            include_header_footer=True,
        )
    elif file_type is FileType.DOCX:
        options.update(
            preserve_formatting=True,
            include_header_footer=True,
            extract_images=True,
        )
    return options


def _form_value(value: Any) -> str | list[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return [str(v) for v in value]
    return str(value)


class UnstructuredPartitionClient:
    """Stateless, reusable handle to the partition endpoint.

    Construct once per process and share; the underlying httpx client
    pools connections. Timeouts are enforced here, not by callers.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 300.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._headers = {"unstructured-api-key": api_key, "accept": "application/json"}

    @classmethod
    def from_settings(cls, settings: Settings) -> "UnstructuredPartitionClient":
        return cls(
            api_url=settings.unstructured_api_url,
            api_key=settings.unstructured_api_key,
            timeout=settings.unstructured_timeout_seconds,
        )

    async def partition(
        self,
        content: bytes,
        file_name: str,
        options: dict[str, Any],
    ) -> PartitionResponse:
        """
        Partition a file into typed, positioned elements.

        Args:
            content: Raw file bytes
            file_name: File name (the service infers the parser from it)
            options: Partition parameters from partition_options()

        Returns:
            PartitionResponse; elements is None unless the call succeeded
            with a JSON list

        Raises:
            httpx.HTTPError: On transport failures and timeouts
        """
        response = await self._client.post(
            f"{self.api_url}{PARTITION_PATH}",
            headers=self._headers,
            files={"files": (file_name, content)},
            data={key: _form_value(value) for key, value in options.items()},
        )

        if response.status_code != 200:
            logger.warning(
                f"Partition request for {file_name} returned {response.status_code}",
                extra={"file_name": file_name, "status_code": response.status_code},
            )
            return PartitionResponse(status_code=response.status_code, elements=None)

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Partition response for {file_name} was not valid JSON")
            return PartitionResponse(status_code=response.status_code, elements=None)

        elements = payload if isinstance(payload, list) else None
        return PartitionResponse(status_code=response.status_code, elements=elements)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "UnstructuredPartitionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
