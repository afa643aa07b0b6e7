import asyncio
import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from src.ingestion.hashing import ContentHasher
from src.ingestion.prompts import (
    IDENTITY_SYSTEM_PROMPT,
    IDENTITY_USER_PROMPT,
    MEDIA_CONTENT_NOTE,
    TEXT_CONTENT_BLOCK,
)
from src.ingestion.schemas import DocumentIdentity, DuplicateCheck, DuplicateKind, EvidenceItem
from src.llm.client import ExtractionClient
from src.storage.persistence import PersistenceLayer

logger = logging.getLogger(__name__)

BATCH_MATCH_LABEL = "Duplicate in current batch"
SEMANTIC_MATCH_LABEL = "Existing Record"
# Text sent for the comparison call is capped; identity is decided from the opening pages
IDENTITY_TEXT_LIMIT = 12000


def format_content(item: EvidenceItem, limit: Optional[int] = None) -> str:
    if item.text:
        text = item.text if limit is None else item.text[:limit]
        return TEXT_CONTENT_BLOCK.format(text=text)
    return MEDIA_CONTENT_NOTE.format(mime_type=item.mime_type)


class IngestionBatch:
    """Digests and titles accepted so far in one ingestion batch.

    This is the only state shared between files of a batch, so every access
    goes through one lock.
    """

    def __init__(self):
        self._digests: Dict[str, Optional[str]] = {}
        self._titles: List[Tuple[str, Optional[str]]] = []
        self._lock = asyncio.Lock()

    async def match(self, digest: str) -> Tuple[bool, Optional[str]]:
        async with self._lock:
            if digest in self._digests:
                return True, self._digests[digest]
            return False, None

    async def accept(self, digest: str, title: Optional[str] = None, date: Optional[str] = None) -> None:
        async with self._lock:
            self._digests[digest] = title
            if title:
                self._titles.append((title, date))

    async def titles(self) -> List[Tuple[str, Optional[str]]]:
        async with self._lock:
            return list(self._titles)

    @property
    def is_empty(self) -> bool:
        return not self._digests


class DeduplicationGate:
    """Exact digest match first; semantic comparison by the model only when needed."""

    def __init__(self, persistence: PersistenceLayer, client: ExtractionClient, hasher: Optional[ContentHasher] = None):
        self.persistence = persistence
        self.client = client
        self.hasher = hasher or ContentHasher.from_settings()

    async def check(
        self,
        case_id: UUID,
        raw_bytes: bytes,
        batch: IngestionBatch,
        evidence: Optional[EvidenceItem] = None,
    ) -> DuplicateCheck:
        digest = self.hasher.digest(raw_bytes)

        existing = await self.persistence.list_document_metadata(case_id)
        for doc in existing:
            if doc.digest == digest:
                logger.info("Exact duplicate of %s (%s)", doc.bates_number, doc.title)
                return DuplicateCheck(DuplicateKind.EXACT, digest, match_title=doc.title)

        in_batch, batch_title = await batch.match(digest)
        if in_batch:
            return DuplicateCheck(DuplicateKind.EXACT, digest, match_title=batch_title or BATCH_MATCH_LABEL)

        batch_titles = await batch.titles()
        if (not existing and batch.is_empty) or evidence is None:
            return DuplicateCheck(DuplicateKind.NOVEL, digest)

        listing = [f'Title: "{doc.title}", Date: {doc.document_date or "Unknown"}' for doc in existing]
        listing += [f'Title: "{title}", Date: {date or "Unknown"} (Processing)' for title, date in batch_titles]

        identity: DocumentIdentity = await self.client.generate_structured(
            IDENTITY_SYSTEM_PROMPT,
            IDENTITY_USER_PROMPT.format(
                existing_documents="\n".join(listing),
                filename=evidence.filename,
                content=format_content(evidence, IDENTITY_TEXT_LIMIT),
            ),
            DocumentIdentity,
            attachments=evidence.attachments,
        )

        if identity.is_duplicate:
            match = identity.duplicate_of or SEMANTIC_MATCH_LABEL
            logger.info("Semantic duplicate: %s matches %s", evidence.filename, match)
            return DuplicateCheck(DuplicateKind.SEMANTIC, digest, match_title=match, identity=identity)
        return DuplicateCheck(DuplicateKind.NOVEL, digest, identity=identity)
