"""Per-file ingestion pipeline: hash → dedupe → extract → persist.

File states::

    RECEIVED → HASHED → EXACT_DUPLICATE
                      → SEMANTIC_DUPLICATE
                      → EXTRACTING → PERSISTED
                                   → FAILED

Files are processed one at a time in the order given. A failure is recorded
against its own file and the batch moves on; only ``StorageUnavailable``
stops the batch.
"""

import logging
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

from src.audit.models import AuditEventType
from src.documents.models import MediaKind
from src.documents.schemas import EvidenceDocument
from src.ingestion.dedup import DeduplicationGate, IngestionBatch
from src.ingestion.extraction import EvidenceExtractor
from src.ingestion.hashing import ContentHasher
from src.ingestion.schemas import (
    BatchReport,
    DuplicateCheck,
    DuplicateEntry,
    DuplicateKind,
    EvidenceUpload,
    FailureEntry,
    FileOutcome,
    FileState,
)
from src.ingestion.service import IngestionService
from src.llm.client import ExtractionClient
from src.shared.exceptions import (
    ExtractionError,
    NoActiveCaseError,
    NotFoundError,
    StorageError,
    StorageUnavailable,
    StorageWriteFailed,
)
from src.storage.persistence import PersistenceLayer

logger = logging.getLogger(__name__)

PASTED_TEXT_FILENAME = "pasted-text.txt"


class IngestionOrchestrator:
    def __init__(
        self,
        persistence: PersistenceLayer,
        client: ExtractionClient,
        hasher: Optional[ContentHasher] = None,
        ingestion: Optional[IngestionService] = None,
    ):
        self.persistence = persistence
        self.gate = DeduplicationGate(persistence, client, hasher)
        self.extractor = EvidenceExtractor(client)
        self.ingestion = ingestion or IngestionService()

    async def resolve_case(self, case_id: Optional[UUID]) -> UUID:
        """The given case, or the active one when none is given."""
        if case_id is None:
            active = await self.persistence.get_active_case()
            if active is None:
                raise NoActiveCaseError("No active case. Create or select a case first.")
            return active.id
        if await self.persistence.get_case(case_id) is None:
            raise NotFoundError(f"Case {case_id} not found")
        return case_id

    async def ingest_batch(self, uploads: Sequence[EvidenceUpload], case_id: Optional[UUID] = None) -> BatchReport:
        case_id = await self.resolve_case(case_id)
        batch = IngestionBatch()
        report = BatchReport()

        for index, upload in enumerate(uploads, start=1):
            logger.info("Analyzing file %d of %d: %s", index, len(uploads), upload.filename)
            outcome = await self._ingest_file(case_id, upload, batch, report)
            report.outcomes.append(outcome)
            report.files_processed += 1

        logger.info(
            "Batch for case %s: %d processed, %d added, %d exact duplicates, %d semantic duplicates, %d failed",
            case_id, report.files_processed, report.added, report.skipped_exact_duplicate,
            report.skipped_semantic_duplicate, report.failed,
        )
        return report

    async def ingest_text(self, text: str, case_id: Optional[UUID] = None, title: Optional[str] = None) -> BatchReport:
        """Pasted text is evidence too: same digest, dedupe and custody rules as a file."""
        upload = EvidenceUpload(
            filename=PASTED_TEXT_FILENAME,
            content=text.encode("utf-8"),
            content_type="text/plain",
            title=title,
        )
        return await self.ingest_batch([upload], case_id)

    # ------------------------------------------------------------------
    # One file
    # ------------------------------------------------------------------

    async def _ingest_file(
        self,
        case_id: UUID,
        upload: EvidenceUpload,
        batch: IngestionBatch,
        report: BatchReport,
    ) -> FileOutcome:
        outcome = FileOutcome(filename=upload.filename)
        try:
            item = self.ingestion.prepare(upload.filename, upload.content, upload.content_type)
            verdict = await self.gate.check(case_id, upload.content, batch, evidence=item)
            outcome.digest = verdict.digest
            self._advance(outcome, FileState.HASHED)

            if verdict.is_duplicate:
                await self._record_duplicate(case_id, outcome, verdict, report)
                return outcome

            self._advance(outcome, FileState.EXTRACTING)
            extraction = await self.extractor.extract(item, verdict.identity)

            identity = verdict.identity
            document = EvidenceDocument(
                case_id=case_id,
                title=upload.title or (identity.title if identity else None) or extraction.title or upload.filename,
                media_kind=item.media_kind,
                mime_type=item.mime_type,
                original_filename=upload.filename,
                document_date=(identity.date if identity else None) or extraction.document_date,
                summary=(identity.summary if identity else None) or extraction.summary,
                digest=verdict.digest,
                text=item.text,
                media_payload=None if self._is_plain_text(item.media_kind, item.mime_type) else item.raw,
            )
            metadata = await self.persistence.save_document(document)

            drafts = self.extractor.to_draft_events(extraction.events, case_id, metadata.id)
            try:
                saved_events = await self.persistence.save_events(drafts) if drafts else []
            except StorageWriteFailed:
                # Keep the file all-or-nothing: no document without its extracted events
                await self.persistence.delete_document(metadata.id)
                raise

            await batch.accept(verdict.digest, metadata.title, metadata.document_date)
            outcome.document_id = metadata.id
            self._advance(outcome, FileState.PERSISTED)
            report.added += 1
            report.documents.append(metadata)
            report.draft_events.extend(saved_events)
            await self._audit(
                case_id, AuditEventType.DOCUMENT_INGESTED, upload.filename,
                document_id=metadata.id,
                detail={"digest": metadata.digest, "bates_number": metadata.bates_number, "events": len(saved_events)},
            )
            return outcome

        except StorageUnavailable:
            raise
        except (StorageError, ExtractionError, ValueError) as e:
            logger.error("Ingestion failed for %s: %s", upload.filename, e)
            return await self._record_failure(case_id, outcome, e, report)
        except Exception as e:
            logger.exception("Unexpected ingestion error for %s", upload.filename)
            return await self._record_failure(case_id, outcome, e, report)

    @staticmethod
    def _is_plain_text(media_kind: Optional[MediaKind], mime_type: str) -> bool:
        return media_kind == MediaKind.TEXT and mime_type.startswith("text/")

    @staticmethod
    def _advance(outcome: FileOutcome, state: FileState) -> None:
        logger.debug("%s: %s -> %s", outcome.filename, outcome.state.value, state.value)
        outcome.state = state

    async def _record_duplicate(
        self,
        case_id: UUID,
        outcome: FileOutcome,
        verdict: DuplicateCheck,
        report: BatchReport,
    ) -> None:
        if verdict.kind == DuplicateKind.EXACT:
            self._advance(outcome, FileState.EXACT_DUPLICATE)
            report.skipped_exact_duplicate += 1
            event_type = AuditEventType.DUPLICATE_SKIPPED_EXACT
        else:
            self._advance(outcome, FileState.SEMANTIC_DUPLICATE)
            report.skipped_semantic_duplicate += 1
            event_type = AuditEventType.DUPLICATE_SKIPPED_SEMANTIC
        outcome.duplicate_of = verdict.match_title
        report.duplicates.append(DuplicateEntry(
            filename=outcome.filename, match=verdict.match_title or "", kind=verdict.kind,
        ))
        await self._audit(
            case_id, event_type, outcome.filename,
            detail={"match": verdict.match_title, "digest": verdict.digest},
        )

    async def _record_failure(
        self,
        case_id: UUID,
        outcome: FileOutcome,
        error: Exception,
        report: BatchReport,
    ) -> FileOutcome:
        message = f"{type(error).__name__}: {error}"
        self._advance(outcome, FileState.FAILED)
        outcome.error = message
        report.failed += 1
        report.failures.append(FailureEntry(filename=outcome.filename, error=message))
        await self._audit(
            case_id, AuditEventType.INGESTION_FAILED, outcome.filename,
            detail={"error": message, "digest": outcome.digest},
        )
        return outcome

    async def _audit(
        self,
        case_id: UUID,
        event_type: AuditEventType,
        filename: str,
        document_id: Optional[UUID] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        # The batch report already carries the outcome; a lost audit row must not fail the file
        try:
            await self.persistence.record_audit(case_id, event_type, document_id=document_id, filename=filename, detail=detail)
        except StorageWriteFailed as e:
            logger.error("Could not record %s audit for %s: %s", event_type.value, filename, e)
