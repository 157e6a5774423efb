"""Document pipeline: extraction fan-out, chunking, analysis and uploads."""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from boardlens.config import Settings
from boardlens.enums import AnalysisStatus, DocumentStatus, DocumentType
from boardlens.exceptions import (
    AnalysisError,
    BoardlensError,
    ConfigurationError,
    RecordStoreError,
    StorageError,
    UnauthorizedError,
)
from boardlens.models import Analysis, BoardDocument
from boardlens.result import ActionResult
from boardlens.services.analysis import (
    ANALYSIS_SYSTEM_PROMPT,
    BoardAnalysis,
    DocumentSummary,
    PreliminaryAnalysis,
    build_analysis_messages,
    build_analysis_prompt,
    build_preliminary_messages,
    build_summary_messages,
    merge_analyses,
)
from boardlens.services.anthropic import StructuredGenerator, validate_output
from boardlens.services.file.chunking import RecursiveTextSplitter, SplitterConfig
from boardlens.services.file.extraction import (
    ExtractionResult,
    ExtractionService,
    combine_documents,
    format_extracted_text,
    split_documents,
)
from boardlens.services.file.tokenizer import Tokenizer
from boardlens.services.file.validation import document_type_for, get_file_type, validate_file
from boardlens.services.records import RecordStore
from boardlens.services.storage import StorageClient, company_file_path, path_from_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Allowed analysis status transitions; needs_review is left to a reviewer
ANALYSIS_TRANSITIONS: dict[AnalysisStatus, set[AnalysisStatus]] = {
    AnalysisStatus.PENDING: {AnalysisStatus.IN_PROGRESS},
    AnalysisStatus.IN_PROGRESS: {
        AnalysisStatus.COMPLETED,
        AnalysisStatus.NEEDS_REVIEW,
        AnalysisStatus.FAILED,
    },
    AnalysisStatus.NEEDS_REVIEW: set(),
    AnalysisStatus.COMPLETED: set(),
    AnalysisStatus.FAILED: set(),
}


@dataclass
class FileInput:
    file_name: str
    content: bytes
    file_path: str | None = None


@dataclass
class ProcessedDocument:
    """One file after extraction, with its framed and labelled text."""

    file_name: str
    file_path: str
    result: ExtractionResult
    text: str

    @property
    def metadata(self) -> dict[str, Any]:
        return {**self.result.metadata.to_dict(), "extracted_elements": len(self.result.elements)}


@dataclass
class PreparedBatch:
    """Documents in input order plus their combined text."""

    documents: list[ProcessedDocument]
    combined_text: str

    @property
    def metadata(self) -> list[dict[str, Any]]:
        return [document.metadata for document in self.documents]


@dataclass
class AnalysisProgress:
    """One streamed update: a partial object for the current chunk, or the final result."""

    chunk_index: int
    chunk_count: int
    partial: dict[str, Any] = field(default_factory=dict)
    result: BoardAnalysis | None = None
    status: AnalysisStatus = AnalysisStatus.IN_PROGRESS


@dataclass
class UploadOutcome:
    document: BoardDocument
    extraction: ProcessedDocument
    summary: DocumentSummary
    chunk_analyses: list[PreliminaryAnalysis]


class DocumentPipeline:
    """Orchestrates extraction, chunking and analysis over injected clients."""

    def __init__(
        self,
        extraction: ExtractionService,
        storage: StorageClient,
        records: RecordStore,
        generator: StructuredGenerator,
        settings: Settings,
        tokenizer: Tokenizer | None = None,
        max_concurrent_llm_calls: int = 4,
    ):
        self.extraction = extraction
        self.storage = storage
        self.records = records
        self.generator = generator
        self.settings = settings
        self.tokenizer = tokenizer
        self.max_concurrent_llm_calls = max_concurrent_llm_calls

    # Extraction

    async def extract_document(
        self,
        content: bytes,
        file_name: str,
        file_path: str | None = None,
    ) -> ProcessedDocument:
        result = await self.extraction.extract(content, file_name, file_path)
        return ProcessedDocument(
            file_name=file_name,
            file_path=file_path or file_name,
            result=result,
            text=format_extracted_text(result),
        )

    async def prepare_documents(self, files: Sequence[FileInput]) -> PreparedBatch:
        """
        Extract several files concurrently and combine them in input order.

        Fails fast: unsupported types are rejected before any network call,
        and the first extraction failure cancels the remaining calls.

        Raises:
            UnsupportedFileTypeError: If any file has an unsupported extension
            ExtractionError: If any file fails to extract
        """
        for file in files:
            get_file_type(file.file_name)

        documents = await _gather_fail_fast(
            [self.extract_document(f.content, f.file_name, f.file_path) for f in files]
        )
        return PreparedBatch(
            documents=documents,
            combined_text=combine_documents(d.text for d in documents),
        )

    async def load_documents(self, paths: Sequence[str]) -> PreparedBatch:
        """
        Download stored files and prepare them as one batch.

        Paths may be public object URLs; they are resolved back to bucket paths.

        Raises:
            UnsupportedFileTypeError: Before any download
            DownloadError: If any file cannot be downloaded
            ExtractionError: If any file fails to extract
        """
        clean_paths = [path_from_url(p) for p in paths]
        for path in clean_paths:
            get_file_type(_file_name(path))

        documents = await _gather_fail_fast([self._load_one(path) for path in clean_paths])
        return PreparedBatch(
            documents=documents,
            combined_text=combine_documents(d.text for d in documents),
        )

    async def _load_one(self, path: str) -> ProcessedDocument:
        content = await self.storage.download(path)
        return await self.extract_document(content, _file_name(path), path)

    # Chunking

    def splitter_config(self) -> SplitterConfig:
        return SplitterConfig(chunk_size=self.settings.chunk_size, chunk_overlap=self.settings.chunk_overlap)

    def chunk_text(self, text: str, config: SplitterConfig | None = None) -> list[str]:
        """
        Split combined document text into chunks.

        The "=== Next Document ===" divider is a forced boundary: each
        document section is split on its own, so no chunk spans two files.
        Prefer `chunk_batch` for prepared batches; it does not rely on the
        divider, which a document may itself contain.
        """
        splitter = RecursiveTextSplitter(config or self.splitter_config(), self.tokenizer)
        chunks: list[str] = []
        for section in split_documents(text):
            chunks.extend(splitter.split(section))
        return chunks

    def chunk_batch(self, batch: PreparedBatch, config: SplitterConfig | None = None) -> list[str]:
        """Chunk each document of a batch on its own, in input order."""
        return [chunk for document in batch.documents for chunk in self.chunk_document(document, config)]

    def chunk_document(self, document: ProcessedDocument, config: SplitterConfig | None = None) -> list[str]:
        # Splits the document's own text, so a divider inside it is not a boundary
        return RecursiveTextSplitter(config or self.splitter_config(), self.tokenizer).split(document.text)

    # Analysis

    async def create_analysis(
        self,
        company_id: uuid.UUID,
        user_id: str,
        document_type: DocumentType,
        title: str,
        document_paths: Sequence[str],
        document_ids: Sequence[str] = (),
    ) -> ActionResult[Analysis]:
        try:
            _require_user(user_id)
            company = await self.records.get_company(company_id)
            if company is None:
                raise RecordStoreError(f"Company not found: {company_id}")
            analysis = await self.records.create_analysis(
                company_id=company_id,
                analyzer_id=user_id,
                type=document_type,
                title=title,
                document_ids=document_ids,
                document_paths=document_paths,
            )
        except ConfigurationError:
            raise
        except BoardlensError as e:
            logger.error(f"Error creating analysis '{title}': {e}")
            return ActionResult.fail(e)
        return ActionResult.ok(analysis, "Analysis created successfully")

    async def analyze(self, analysis_id: uuid.UUID, prompt: str | None = None) -> ActionResult[Analysis]:
        """
        Run an analysis to completion.

        Moves the record pending -> in_progress, then to needs_review,
        completed, or failed. Failures after the start are recorded on the
        analysis; an analysis that cannot start is left untouched.
        """
        try:
            analysis = await self._start(analysis_id)
        except ConfigurationError:
            raise
        except BoardlensError as e:
            logger.error(f"Could not start analysis {analysis_id}: {e}")
            return ActionResult.fail(e)

        try:
            batch = await self.load_documents(analysis.document_paths)
            chunks = self.chunk_batch(batch)
            instructions = prompt or build_analysis_prompt(DocumentType(analysis.type))

            semaphore = asyncio.Semaphore(self.max_concurrent_llm_calls)

            async def analyze_chunk(index: int, chunk: str) -> BoardAnalysis:
                async with semaphore:
                    return await self.generator.generate(
                        BoardAnalysis,
                        build_analysis_messages(instructions, chunk, index, len(chunks)),
                        system=ANALYSIS_SYSTEM_PROMPT,
                    )

            logger.info(f"Analyzing {len(batch.documents)} documents in {len(chunks)} chunks")
            results = await _gather_fail_fast([analyze_chunk(i, c) for i, c in enumerate(chunks)])
            updated = await self._finish(analysis_id, merge_analyses(results), batch)
        except ConfigurationError:
            raise
        except BoardlensError as e:
            await self._fail(analysis_id, e)
            return ActionResult.fail(e)
        return ActionResult.ok(updated, "Analysis completed")

    async def stream_analysis(
        self,
        analysis_id: uuid.UUID,
        prompt: str | None = None,
    ) -> AsyncIterator[AnalysisProgress]:
        """
        Run an analysis, yielding partial results as they are generated.

        Chunks are analyzed one after another. For each chunk the partial
        object grows field by field (summary first, then findings). The
        last update carries the merged result and the final status.
        Abandoning the iterator leaves the record as last written.

        Raises:
            AnalysisError: If the analysis is not pending; it is left untouched
            BoardlensError: After the analysis has been marked failed
        """
        analysis = await self._start(analysis_id)
        try:
            batch = await self.load_documents(analysis.document_paths)
            chunks = self.chunk_batch(batch)
            instructions = prompt or build_analysis_prompt(DocumentType(analysis.type))

            results: list[BoardAnalysis] = []
            for index, chunk in enumerate(chunks):
                partial: dict[str, Any] = {}
                async for partial in self.generator.stream(
                    BoardAnalysis,
                    build_analysis_messages(instructions, chunk, index, len(chunks)),
                    system=ANALYSIS_SYSTEM_PROMPT,
                ):
                    yield AnalysisProgress(chunk_index=index, chunk_count=len(chunks), partial=partial)
                results.append(validate_output(BoardAnalysis, partial))

            merged = merge_analyses(results)
            updated = await self._finish(analysis_id, merged, batch)
        except ConfigurationError:
            raise
        except BoardlensError as e:
            await self._fail(analysis_id, e)
            raise

        yield AnalysisProgress(
            chunk_index=len(chunks) - 1,
            chunk_count=len(chunks),
            partial=merged.model_dump(mode="json"),
            result=merged,
            status=AnalysisStatus(updated.status),
        )

    async def _start(self, analysis_id: uuid.UUID) -> Analysis:
        analysis = await self.records.get_analysis(analysis_id)
        if analysis is None:
            raise RecordStoreError(f"Analysis not found: {analysis_id}")
        _check_transition(AnalysisStatus(analysis.status), AnalysisStatus.IN_PROGRESS, analysis_id)
        return await self.records.update_analysis(
            analysis_id,
            status=AnalysisStatus.IN_PROGRESS,
            started_at=datetime.now(UTC),
            metadata={"progress": {"status": "in_progress", "step": "Extracting documents"}},
        )

    async def _finish(
        self,
        analysis_id: uuid.UUID,
        result: BoardAnalysis,
        batch: PreparedBatch,
    ) -> Analysis:
        status = AnalysisStatus.NEEDS_REVIEW if result.requires_human_review else AnalysisStatus.COMPLETED
        await self.records.add_findings(
            analysis_id,
            [finding.model_dump(mode="json") for finding in result.key_findings],
        )
        logger.info(f"Analysis {analysis_id} finished with {len(result.key_findings)} findings ({status})")
        return await self.records.update_analysis(
            analysis_id,
            status=status,
            summary=result.executive_summary,
            recommendations=result.recommendations,
            completed_at=datetime.now(UTC),
            metadata={
                "progress": {"status": str(status), "step": "Analysis complete", "progress": 100},
                "documents": batch.metadata,
                "requires_human_review": result.requires_human_review,
            },
        )

    async def _fail(self, analysis_id: uuid.UUID, error: BoardlensError) -> None:
        logger.error(
            f"Analysis {analysis_id} failed: {error}",
            extra={"analysis_id": str(analysis_id), "exception_type": type(error).__name__},
        )
        try:
            analysis = await self.records.get_analysis(analysis_id)
            if analysis is None or analysis.status != AnalysisStatus.IN_PROGRESS:
                return
            await self.records.update_analysis(
                analysis_id,
                status=AnalysisStatus.FAILED,
                completed_at=datetime.now(UTC),
                metadata={
                    "progress": {"status": "failed", "step": "Analysis failed"},
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )
        except RecordStoreError as e:
            logger.error(f"Could not mark analysis {analysis_id} as failed: {e}")

    # Uploads

    async def process_upload(
        self,
        content: bytes,
        file_name: str,
        content_type: str,
        company_id: uuid.UUID,
        user_id: str,
    ) -> ActionResult[UploadOutcome]:
        """
        Validate, extract, summarize and store an uploaded document.

        If the document record cannot be created after the file was
        uploaded, the uploaded object is deleted again (best effort).
        """
        try:
            _require_user(user_id)
            file_type = validate_file(
                file_name, len(content), content_type, max_size=self.settings.max_file_size_bytes
            )
            path = company_file_path(user_id, str(company_id), file_name)
            extraction = await self.extract_document(content, file_name, path)
            chunks = self.chunk_document(extraction)

            summary = await self.generator.generate(
                DocumentSummary,
                build_summary_messages(chunks[0]),
                model=self.settings.claude_fast_model,
            )
            semaphore = asyncio.Semaphore(self.max_concurrent_llm_calls)

            async def preliminary(chunk: str) -> PreliminaryAnalysis:
                async with semaphore:
                    return await self.generator.generate(
                        PreliminaryAnalysis,
                        build_preliminary_messages(chunk),
                        model=self.settings.claude_fast_model,
                    )

            chunk_analyses = await _gather_fail_fast([preliminary(c) for c in chunks])

            await self.storage.upload(path, content, content_type, upsert=False)
            url = self.storage.get_public_url(path)
            try:
                document = await self.records.create_document(
                    company_id=company_id,
                    user_id=user_id,
                    name=file_name,
                    type=document_type_for(file_type),
                    url=url,
                    storage_path=path,
                    status=DocumentStatus.PROCESSED,
                    metadata={
                        **extraction.metadata,
                        **summary.model_dump(mode="json"),
                        "processing_date": datetime.now(UTC).isoformat(),
                        "chunks": len(chunks),
                        "analysis": [a.model_dump(mode="json") for a in chunk_analyses],
                    },
                )
            except RecordStoreError:
                await self._remove_orphan(path)
                raise
        except ConfigurationError:
            raise
        except BoardlensError as e:
            logger.error(f"Processing upload {file_name} failed: {e}")
            return ActionResult.fail(e)

        return ActionResult.ok(
            UploadOutcome(
                document=document,
                extraction=extraction,
                summary=summary,
                chunk_analyses=chunk_analyses,
            ),
            "Document processed successfully",
        )

    async def _remove_orphan(self, path: str) -> None:
        try:
            await self.storage.remove([path])
            logger.info(f"Removed orphaned upload {path}")
        except StorageError as e:
            logger.warning(f"Failed to remove orphaned upload {path}: {e}")


def _file_name(path: str) -> str:
    return path.rsplit("/", 1)[-1] or "document"


def _require_user(user_id: str | None) -> None:
    if not user_id:
        raise UnauthorizedError("Unauthorized")


def _check_transition(current: AnalysisStatus, target: AnalysisStatus, analysis_id: uuid.UUID) -> None:
    if target not in ANALYSIS_TRANSITIONS[current]:
        raise AnalysisError(
            f"Analysis {analysis_id} cannot move from {current} to {target}",
            analysis_id=str(analysis_id),
        )


async def _gather_fail_fast(coros: Sequence[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
