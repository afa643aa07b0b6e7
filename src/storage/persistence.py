"""Split-store persistence for cases, evidence documents and timeline events.

Document metadata (``documents``) and document content (``document_blobs``)
live in separate tables so listing a case stays cheap no matter how large the
evidence is. Both halves of a document are always written and deleted inside
one transaction: a reader never sees metadata without its content or the
other way round.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database import Base, create_engine, create_sessionmaker
from src.audit.models import AuditEvent, AuditEventType
from src.audit.schemas import AuditEventResponse
from src.cases.models import Case
from src.cases.schemas import CaseData
from src.documents.models import Document, DocumentBlob
from src.documents.schemas import DocumentContent, DocumentMetadata, EvidenceDocument
from src.timeline.models import TimelineEvent
from src.timeline.schemas import TimelineEventData
from src.shared.exceptions import (
    EventCommittedError,
    NotFoundError,
    StorageError,
    StorageUnavailable,
    StorageWriteFailed,
)

logger = logging.getLogger(__name__)

_EVENT_FIELDS = (
    "date", "title", "actor", "cause", "effect", "claim", "relief",
    "legal_significance", "citations", "source_document_id", "source_quote",
    "needs_clarification", "clarification_question", "committed",
)


class PersistenceLayer:
    def __init__(self, database_url: Optional[str] = None, bates_prefix: Optional[str] = None):
        self.database_url = database_url or settings.SQLALCHEMY_DATABASE_URI
        self.bates_prefix = bates_prefix or settings.BATES_PREFIX
        self.engine = None
        self._sessionmaker = None

    async def init(self, create_schema: Optional[bool] = None) -> None:
        """Open the store, creating the schema when configured to."""
        if create_schema is None:
            create_schema = settings.AUTO_CREATE_SCHEMA
        try:
            self.engine = create_engine(self.database_url)
            async with self.engine.begin() as conn:
                if create_schema:
                    await conn.run_sync(Base.metadata.create_all)
                else:
                    await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError, ImportError) as exc:
            logger.error("Could not open evidence store: %s", exc)
            if self.engine is not None:
                await self.engine.dispose()
                self.engine = None
            raise StorageUnavailable(f"Could not open evidence store: {exc}") from exc

        self._sessionmaker = create_sessionmaker(self.engine)
        logger.info("Evidence store ready")

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self._sessionmaker = None

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    def _session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise StorageUnavailable("Evidence store used before init()")
        return self._sessionmaker()

    @asynccontextmanager
    async def _read(self):
        session = self._session()
        try:
            async with session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Storage read failed: %s", exc)
            raise StorageError(f"Storage read failed: {exc}") from exc

    @asynccontextmanager
    async def _write(self, action: str):
        """One session, one transaction. Commits on exit, rolls back on any error."""
        session = self._session()
        try:
            async with session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            logger.error("Storage write failed during %s: %s", action, exc)
            raise StorageWriteFailed(f"{action} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    async def list_cases(self) -> List[CaseData]:
        async with self._read() as session:
            result = await session.execute(select(Case).order_by(Case.created_at))
            return [CaseData.model_validate(row) for row in result.scalars().all()]

    async def get_case(self, case_id: UUID) -> Optional[CaseData]:
        async with self._read() as session:
            row = await session.get(Case, case_id)
            return CaseData.model_validate(row) if row else None

    async def save_case(self, case: CaseData) -> CaseData:
        """Whole-record upsert. Saving a case as active deactivates every other case."""
        async with self._write("save_case") as session:
            row = await session.get(Case, case.id)
            if row is None:
                row = Case(id=case.id)
                if case.created_at:
                    row.created_at = case.created_at
                session.add(row)
            row.name = case.name
            row.description = case.description
            row.is_active = case.is_active
            if case.is_active:
                await session.execute(
                    update(Case).where(Case.id != case.id).values(is_active=False)
                )
            await session.flush()
            saved = CaseData.model_validate(row)
        return saved

    async def set_active_case(self, case_id: UUID) -> CaseData:
        async with self._write("set_active_case") as session:
            row = await session.get(Case, case_id)
            if row is None:
                raise NotFoundError(f"Case {case_id} not found")
            await session.execute(
                update(Case).where(Case.id != case_id).values(is_active=False)
            )
            row.is_active = True
            await session.flush()
            saved = CaseData.model_validate(row)
        return saved

    async def get_active_case(self) -> Optional[CaseData]:
        async with self._read() as session:
            result = await session.execute(select(Case).where(Case.is_active.is_(True)).limit(1))
            row = result.scalars().first()
            return CaseData.model_validate(row) if row else None

    async def delete_case(self, case_id: UUID) -> bool:
        """Remove a case and everything it owns in one transaction."""
        async with self._write("delete_case") as session:
            row = await session.get(Case, case_id)
            if row is None:
                return False
            doc_ids = select(Document.id).where(Document.case_id == case_id)
            await session.execute(delete(DocumentBlob).where(DocumentBlob.id.in_(doc_ids)))
            await session.execute(delete(Document).where(Document.case_id == case_id))
            await session.execute(delete(TimelineEvent).where(TimelineEvent.case_id == case_id))
            await session.execute(delete(AuditEvent).where(AuditEvent.case_id == case_id))
            await session.delete(row)
        logger.info("Deleted case %s", case_id)
        return True

    # ------------------------------------------------------------------
    # Timeline events
    # ------------------------------------------------------------------

    async def list_events(self, case_id: UUID, committed: Optional[bool] = None) -> List[TimelineEventData]:
        async with self._read() as session:
            stmt = select(TimelineEvent).where(TimelineEvent.case_id == case_id)
            if committed is not None:
                stmt = stmt.where(TimelineEvent.committed.is_(committed))
            result = await session.execute(stmt.order_by(TimelineEvent.date, TimelineEvent.created_at))
            return [TimelineEventData.model_validate(row) for row in result.scalars().all()]

    async def get_event(self, event_id: UUID) -> Optional[TimelineEventData]:
        async with self._read() as session:
            row = await session.get(TimelineEvent, event_id)
            return TimelineEventData.model_validate(row) if row else None

    async def save_event(self, event: TimelineEventData) -> TimelineEventData:
        """Upsert keyed by event id. Committed events raise ``EventCommittedError``."""
        saved = await self.save_events([event])
        return saved[0]

    async def save_events(self, events: Iterable[TimelineEventData]) -> List[TimelineEventData]:
        async with self._write("save_events") as session:
            rows = [await self._upsert_event(session, event) for event in events]
            await session.flush()
            saved = [TimelineEventData.model_validate(row) for row in rows]
        return saved

    @staticmethod
    async def _upsert_event(session: AsyncSession, event: TimelineEventData) -> TimelineEvent:
        row = await session.get(TimelineEvent, event.id)
        if row is None:
            row = TimelineEvent(id=event.id, case_id=event.case_id)
            session.add(row)
        elif row.committed:
            raise EventCommittedError(f"Event {event.id} is committed and cannot be changed")
        for field in _EVENT_FIELDS:
            setattr(row, field, getattr(event, field))
        return row

    async def delete_event(self, event_id: UUID) -> bool:
        async with self._write("delete_event") as session:
            result = await session.execute(delete(TimelineEvent).where(TimelineEvent.id == event_id))
        return result.rowcount > 0

    async def commit_events(self, case_id: UUID) -> List[TimelineEventData]:
        """Move every draft in the case into the permanent event set."""
        async with self._write("commit_events") as session:
            result = await session.execute(
                select(TimelineEvent).where(
                    TimelineEvent.case_id == case_id,
                    TimelineEvent.committed.is_(False),
                )
            )
            rows = list(result.scalars().all())
            for row in rows:
                row.committed = True
            if rows:
                session.add(AuditEvent(
                    case_id=case_id,
                    event_type=AuditEventType.EVENTS_COMMITTED,
                    detail={"event_ids": [str(row.id) for row in rows]},
                ))
            await session.flush()
            committed = [TimelineEventData.model_validate(row) for row in rows]
        return committed

    # ------------------------------------------------------------------
    # Documents (split store)
    # ------------------------------------------------------------------

    async def list_document_metadata(self, case_id: UUID) -> List[DocumentMetadata]:
        """Metadata only. Content blobs are never loaded here."""
        async with self._read() as session:
            result = await session.execute(
                select(Document)
                .where(Document.case_id == case_id)
                .order_by(Document.sequence_number)
            )
            return [DocumentMetadata.model_validate(row) for row in result.scalars().all()]

    async def get_document_metadata(self, document_id: UUID) -> Optional[DocumentMetadata]:
        async with self._read() as session:
            row = await session.get(Document, document_id)
            return DocumentMetadata.model_validate(row) if row else None

    async def get_document_content(self, document_id: UUID) -> Optional[DocumentContent]:
        """Content group for a document, or ``None`` when there is none."""
        async with self._read() as session:
            row = await session.get(DocumentBlob, document_id)
            return DocumentContent.model_validate(row) if row else None

    async def save_document(self, document: EvidenceDocument) -> DocumentMetadata:
        """Write metadata and content as one transaction.

        On first insert the document gets the next sequence number in its case
        and a Bates label. The digest, sequence number and Bates label of an
        existing document are never rewritten.
        """
        async with self._write("save_document") as session:
            row = await session.get(Document, document.id)
            if row is None:
                sequence = await self._next_sequence(session, document.case_id)
                row = Document(
                    id=document.id,
                    case_id=document.case_id,
                    digest=document.digest,
                    sequence_number=sequence,
                    bates_number=self._bates_label(sequence),
                    added_at=document.added_at,
                )
                session.add(row)
            elif row.digest != document.digest:
                logger.warning(
                    "Keeping ingestion digest for document %s; supplied digest ignored", document.id
                )
            row.title = document.title
            row.media_kind = document.media_kind
            row.mime_type = document.mime_type
            row.original_filename = document.original_filename
            row.document_date = document.document_date
            row.summary = document.summary
            row.reliability_score = document.reliability_score
            await session.flush()

            await session.merge(self._blob_row(document))
            await session.flush()
            saved = DocumentMetadata.model_validate(row)

        logger.info("Stored document %s as %s", saved.id, saved.bates_number)
        return saved

    async def delete_document(self, document_id: UUID, audited: bool = False) -> bool:
        """Remove metadata and content together. Events keep their (now dangling) reference.

        With ``audited`` a ``DOCUMENT_DELETED`` row is written in the same transaction.
        """
        async with self._write("delete_document") as session:
            audit = None
            if audited:
                row = await session.get(Document, document_id)
                if row is not None:
                    audit = dict(
                        case_id=row.case_id,
                        event_type=AuditEventType.DOCUMENT_DELETED,
                        document_id=document_id,
                        filename=row.original_filename,
                        detail={"bates_number": row.bates_number, "digest": row.digest},
                    )
            await session.execute(delete(DocumentBlob).where(DocumentBlob.id == document_id))
            result = await session.execute(delete(Document).where(Document.id == document_id))
            if audit is not None:
                session.add(AuditEvent(**audit))
        return result.rowcount > 0

    @staticmethod
    def _blob_row(document: EvidenceDocument) -> DocumentBlob:
        return DocumentBlob(id=document.id, text=document.text, media_payload=document.media_payload)

    @staticmethod
    async def _next_sequence(session: AsyncSession, case_id: UUID) -> int:
        result = await session.execute(
            select(func.coalesce(func.max(Document.sequence_number), 0))
            .where(Document.case_id == case_id)
        )
        return int(result.scalar_one()) + 1

    def _bates_label(self, sequence: int) -> str:
        return f"{self.bates_prefix}-{sequence:03d}"

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    async def record_audit(
        self,
        case_id: UUID,
        event_type: AuditEventType,
        document_id: Optional[UUID] = None,
        filename: Optional[str] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        async with self._write("record_audit") as session:
            session.add(AuditEvent(
                case_id=case_id,
                event_type=event_type,
                document_id=document_id,
                filename=filename,
                detail=detail,
            ))

    async def list_audit_events(self, case_id: UUID) -> List[AuditEventResponse]:
        async with self._read() as session:
            result = await session.execute(
                select(AuditEvent)
                .where(AuditEvent.case_id == case_id)
                .order_by(AuditEvent.created_at.desc())
            )
            return [AuditEventResponse.model_validate(row) for row in result.scalars().all()]
