"""Tests for the record store with a mocked session factory."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from boardlens.enums import AnalysisStatus, DocumentStatus
from boardlens.exceptions import RecordStoreError
from boardlens.models import Analysis, BoardDocument, Finding
from boardlens.services.records import RecordStore


def mock_session_factory():
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory, session


class TestCreateDocument:
    """Tests for RecordStore.create_document."""

    @pytest.mark.asyncio
    async def test_adds_and_commits(self):
        factory, session = mock_session_factory()
        store = RecordStore(factory)

        document = await store.create_document(
            company_id=uuid.uuid4(),
            user_id="user-1",
            name="q3.pdf",
            type="report",
            url="https://storage.test/q3.pdf",
            storage_path="user-1/c/q3.pdf",
            status=DocumentStatus.PROCESSED,
            metadata={"total_pages": 3},
        )

        assert isinstance(document, BoardDocument)
        assert document.metadata_ == {"total_pages": 3}
        session.add.assert_called_once_with(document)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_error_wrapped(self):
        factory, session = mock_session_factory()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))
        store = RecordStore(factory)

        with pytest.raises(RecordStoreError, match="q3.pdf"):
            await store.create_document(
                company_id=uuid.uuid4(),
                user_id="user-1",
                name="q3.pdf",
                type="report",
                url="u",
                storage_path="p",
                status=DocumentStatus.PROCESSED,
            )


class TestAnalyses:
    """Tests for analysis records."""

    @pytest.mark.asyncio
    async def test_create_analysis_starts_pending(self):
        factory, session = mock_session_factory()
        store = RecordStore(factory)

        analysis = await store.create_analysis(
            company_id=uuid.uuid4(),
            analyzer_id="user-1",
            type="financial",
            title="Q3 review",
            document_paths=["user-1/c/q3.pdf"],
        )

        assert analysis.status == AnalysisStatus.PENDING
        assert analysis.document_paths == ["user-1/c/q3.pdf"]
        assert analysis.metadata_["progress"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_update_analysis_sets_fields(self):
        factory, session = mock_session_factory()
        existing = Analysis(analyzer_id="user-1", type="risk", title="t", status=AnalysisStatus.PENDING)
        session.get.return_value = existing
        store = RecordStore(factory)

        updated = await store.update_analysis(
            uuid.uuid4(), status=AnalysisStatus.IN_PROGRESS, metadata={"progress": {"step": "x"}}
        )

        assert updated is existing
        assert existing.status == AnalysisStatus.IN_PROGRESS
        assert existing.metadata_ == {"progress": {"step": "x"}}
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_missing_analysis(self):
        factory, session = mock_session_factory()
        session.get.return_value = None

        with pytest.raises(RecordStoreError, match="not found"):
            await RecordStore(factory).update_analysis(uuid.uuid4(), status=AnalysisStatus.FAILED)
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_add_findings(self):
        factory, session = mock_session_factory()
        analysis_id = uuid.uuid4()

        rows = await RecordStore(factory).add_findings(
            analysis_id,
            [{"type": "risk_flag", "severity": "high", "title": "Covenant", "description": "Near breach"}],
        )

        assert len(rows) == 1
        assert isinstance(rows[0], Finding)
        assert rows[0].analysis_id == analysis_id
        session.add_all.assert_called_once_with(rows)

    @pytest.mark.asyncio
    async def test_add_no_findings_skips_session(self):
        factory, _ = mock_session_factory()
        assert await RecordStore(factory).add_findings(uuid.uuid4(), []) == []
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_analyses(self):
        factory, session = mock_session_factory()
        analyses = [Analysis(analyzer_id="u", type="risk", title="a")]
        result = MagicMock()
        result.scalars.return_value.all.return_value = analyses
        session.execute.return_value = result

        assert await RecordStore(factory).list_analyses(uuid.uuid4()) == analyses
