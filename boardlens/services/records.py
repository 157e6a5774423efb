"""Record store for companies, documents, analyses and findings."""

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from boardlens.enums import AnalysisStatus
from boardlens.exceptions import RecordStoreError
from boardlens.models import Analysis, BoardDocument, Company, Finding

logger = logging.getLogger(__name__)


class RecordStore:
    """Create/read/update access to persisted records, keyed by UUID.

    Each call runs in its own session and commits before returning, so
    a caller abandoning a stream keeps whatever was already written.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_company(self, company_id: uuid.UUID) -> Company | None:
        try:
            async with self.session_factory() as session:
                return await session.get(Company, company_id)
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to load company {company_id}") from e

    async def create_document(
        self,
        *,
        company_id: uuid.UUID,
        user_id: str,
        name: str,
        type: str,
        url: str,
        storage_path: str,
        status: str,
        metadata: dict[str, Any] | None = None,
    ) -> BoardDocument:
        document = BoardDocument(
            company_id=company_id,
            user_id=user_id,
            name=name,
            type=type,
            url=url,
            storage_path=storage_path,
            status=status,
            metadata_=metadata,
        )
        try:
            async with self.session_factory() as session:
                session.add(document)
                await session.commit()
                await session.refresh(document)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create document record for {name}")
            raise RecordStoreError(f"Failed to create document record: {name}") from e
        return document

    async def create_analysis(
        self,
        *,
        company_id: uuid.UUID,
        analyzer_id: str,
        type: str,
        title: str,
        document_ids: Sequence[str] = (),
        document_paths: Sequence[str] = (),
    ) -> Analysis:
        analysis = Analysis(
            company_id=company_id,
            analyzer_id=analyzer_id,
            type=type,
            title=title,
            document_ids=list(document_ids),
            document_paths=list(document_paths),
            status=AnalysisStatus.PENDING,
            recommendations=[],
            metadata_={"progress": {"status": "pending", "step": "Initializing analysis", "progress": 0}},
        )
        try:
            async with self.session_factory() as session:
                session.add(analysis)
                await session.commit()
                await session.refresh(analysis)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create analysis '{title}'")
            raise RecordStoreError(f"Failed to create analysis: {title}") from e
        return analysis

    async def get_analysis(self, analysis_id: uuid.UUID) -> Analysis | None:
        try:
            async with self.session_factory() as session:
                return await session.get(Analysis, analysis_id)
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to load analysis {analysis_id}") from e

    async def update_analysis(self, analysis_id: uuid.UUID, **fields: Any) -> Analysis:
        """
        Update columns of an analysis.

        `metadata` is accepted as an alias for the `metadata_` attribute.

        Raises:
            RecordStoreError: If the analysis does not exist or the update fails
        """
        if "metadata" in fields:
            fields["metadata_"] = fields.pop("metadata")
        try:
            async with self.session_factory() as session:
                analysis = await session.get(Analysis, analysis_id)
                if analysis is None:
                    raise RecordStoreError(f"Analysis not found: {analysis_id}")
                for key, value in fields.items():
                    setattr(analysis, key, value)
                await session.commit()
                await session.refresh(analysis)
                return analysis
        except SQLAlchemyError as e:
            logger.exception(f"Failed to update analysis {analysis_id}")
            raise RecordStoreError(f"Failed to update analysis {analysis_id}") from e

    async def add_findings(
        self,
        analysis_id: uuid.UUID,
        findings: Sequence[dict[str, Any]],
    ) -> list[Finding]:
        if not findings:
            return []
        rows = [Finding(analysis_id=analysis_id, **finding) for finding in findings]
        try:
            async with self.session_factory() as session:
                session.add_all(rows)
                await session.commit()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to store findings for analysis {analysis_id}")
            raise RecordStoreError(f"Failed to store findings for analysis {analysis_id}") from e
        return rows

    async def list_analyses(self, company_id: uuid.UUID) -> list[Analysis]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Analysis)
                    .where(Analysis.company_id == company_id)
                    .order_by(Analysis.created_at)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to list analyses for company {company_id}") from e
