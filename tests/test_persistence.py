from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.audit.models import AuditEventType
from src.cases.schemas import CaseData
from src.documents.models import MediaKind
from src.documents.schemas import EvidenceDocument
from src.storage.persistence import PersistenceLayer
from src.shared.exceptions import EventCommittedError, NotFoundError, StorageUnavailable, StorageWriteFailed
from src.timeline.schemas import TimelineEventData


def make_document(case_id, title="Arrest Report", digest="a" * 64, **kwargs) -> EvidenceDocument:
    return EvidenceDocument(
        case_id=case_id,
        title=title,
        media_kind=MediaKind.TEXT,
        mime_type="text/plain",
        original_filename=f"{title.lower().replace(' ', '-')}.txt",
        digest=digest,
        text=f"Full text of {title}",
        **kwargs,
    )


def disk_full(*args, **kwargs):
    raise OperationalError("INSERT INTO document_blobs", {}, Exception("disk I/O error"))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unopenable_store_is_unavailable(tmp_path):
    layer = PersistenceLayer(database_url=f"sqlite+aiosqlite:///{tmp_path}/missing/dir/casefile.db")
    with pytest.raises(StorageUnavailable):
        await layer.init(create_schema=True)
    assert layer.engine is None


@pytest.mark.asyncio
async def test_use_before_init_is_unavailable(tmp_path):
    layer = PersistenceLayer(database_url=f"sqlite+aiosqlite:///{tmp_path / 'casefile.db'}")
    with pytest.raises(StorageUnavailable):
        await layer.list_cases()


# ---------------------------------------------------------------------------
# Cases
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_only_one_case_is_active(persistence):
    first = await persistence.save_case(CaseData(name="State v. Doe", is_active=True))
    second = await persistence.save_case(CaseData(name="Doe v. City", is_active=True))

    active = await persistence.get_active_case()
    assert active.id == second.id
    assert (await persistence.get_case(first.id)).is_active is False

    await persistence.set_active_case(first.id)
    assert (await persistence.get_active_case()).id == first.id
    assert (await persistence.get_case(second.id)).is_active is False


@pytest.mark.asyncio
async def test_activating_unknown_case_fails(persistence):
    with pytest.raises(NotFoundError):
        await persistence.set_active_case(uuid4())


@pytest.mark.asyncio
async def test_delete_case_removes_everything_it_owns(persistence, case):
    doc = await persistence.save_document(make_document(case.id))
    await persistence.save_event(TimelineEventData(case_id=case.id, title="Arrest", source_document_id=doc.id))
    await persistence.record_audit(case.id, AuditEventType.DOCUMENT_INGESTED, document_id=doc.id)

    assert await persistence.delete_case(case.id) is True

    assert await persistence.get_case(case.id) is None
    assert await persistence.list_document_metadata(case.id) == []
    assert await persistence.get_document_content(doc.id) is None
    assert await persistence.list_events(case.id) == []
    assert await persistence.list_audit_events(case.id) == []
    assert await persistence.delete_case(case.id) is False


# ---------------------------------------------------------------------------
# Documents (split store)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_documents_get_sequential_bates_numbers(persistence, case):
    first = await persistence.save_document(make_document(case.id, "Arrest Report", "a" * 64))
    second = await persistence.save_document(make_document(case.id, "Motion to Dismiss", "b" * 64))

    assert (first.sequence_number, first.bates_number) == (1, "DEF-001")
    assert (second.sequence_number, second.bates_number) == (2, "DEF-002")
    listed = await persistence.list_document_metadata(case.id)
    assert [doc.title for doc in listed] == ["Arrest Report", "Motion to Dismiss"]


@pytest.mark.asyncio
async def test_bates_numbers_are_per_case(persistence, case):
    other = await persistence.save_case(CaseData(name="Doe v. City"))
    await persistence.save_document(make_document(case.id))
    doc = await persistence.save_document(make_document(other.id))
    assert doc.bates_number == "DEF-001"


@pytest.mark.asyncio
async def test_content_is_stored_apart_from_metadata(persistence, case):
    document = make_document(case.id, media_payload=b"%PDF-1.7 ...")
    saved = await persistence.save_document(document)

    content = await persistence.get_document_content(saved.id)
    assert content.text == "Full text of Arrest Report"
    assert content.media_payload == b"%PDF-1.7 ..."
    # Metadata carries no content
    assert not hasattr(saved, "text")


@pytest.mark.asyncio
async def test_resave_keeps_digest_and_bates_number(persistence, case):
    document = make_document(case.id)
    original = await persistence.save_document(document)

    edited = document.model_copy(update={"title": "Arrest Report (amended)", "digest": "f" * 64})
    saved = await persistence.save_document(edited)

    assert saved.title == "Arrest Report (amended)"
    assert saved.digest == original.digest
    assert saved.bates_number == original.bates_number
    assert len(await persistence.list_document_metadata(case.id)) == 1


@pytest.mark.asyncio
async def test_failed_content_write_leaves_no_metadata(persistence, case):
    await persistence.save_document(make_document(case.id, "Arrest Report", "a" * 64))

    with patch.object(PersistenceLayer, "_blob_row", side_effect=disk_full):
        with pytest.raises(StorageWriteFailed):
            await persistence.save_document(make_document(case.id, "Motion to Dismiss", "b" * 64))

    listed = await persistence.list_document_metadata(case.id)
    assert [doc.title for doc in listed] == ["Arrest Report"]

    # The failed write did not consume a sequence number
    retry = await persistence.save_document(make_document(case.id, "Motion to Dismiss", "b" * 64))
    assert retry.bates_number == "DEF-002"


@pytest.mark.asyncio
async def test_failed_update_keeps_previous_version(persistence, case):
    document = make_document(case.id)
    await persistence.save_document(document)

    edited = document.model_copy(update={"title": "Changed", "text": "Changed text"})
    with patch.object(PersistenceLayer, "_blob_row", side_effect=disk_full):
        with pytest.raises(StorageWriteFailed):
            await persistence.save_document(edited)

    metadata = await persistence.get_document_metadata(document.id)
    content = await persistence.get_document_content(document.id)
    assert metadata.title == "Arrest Report"
    assert content.text == "Full text of Arrest Report"


@pytest.mark.asyncio
async def test_delete_document_leaves_event_reference_dangling(persistence, case):
    doc = await persistence.save_document(make_document(case.id))
    event = await persistence.save_event(TimelineEventData(case_id=case.id, title="Arrest", source_document_id=doc.id))

    assert await persistence.delete_document(doc.id) is True

    assert await persistence.get_document_metadata(doc.id) is None
    assert await persistence.get_document_content(doc.id) is None
    assert (await persistence.get_event(event.id)).source_document_id == doc.id
    assert await persistence.delete_document(doc.id) is False


@pytest.mark.asyncio
async def test_audited_delete_writes_the_audit_row(persistence, case):
    doc = await persistence.save_document(make_document(case.id))

    assert await persistence.delete_document(doc.id, audited=True) is True

    audit = await persistence.list_audit_events(case.id)
    assert audit[0].event_type == AuditEventType.DOCUMENT_DELETED
    assert audit[0].document_id == doc.id
    assert audit[0].detail == {"bates_number": "DEF-001", "digest": doc.digest}


@pytest.mark.asyncio
async def test_audited_delete_rolls_back_when_the_audit_row_fails(persistence, case):
    doc = await persistence.save_document(make_document(case.id))

    with patch("src.storage.persistence.AuditEvent", side_effect=disk_full):
        with pytest.raises(StorageWriteFailed):
            await persistence.delete_document(doc.id, audited=True)

    assert await persistence.get_document_metadata(doc.id) is not None
    assert (await persistence.get_document_content(doc.id)).text == "Full text of Arrest Report"


# ---------------------------------------------------------------------------
# Events and audit
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_save_event_is_an_upsert(persistence, case):
    event = TimelineEventData(case_id=case.id, title="Arrest", date="2024-01-05", citations=["Terry v. Ohio"])
    await persistence.save_event(event)
    await persistence.save_event(event.model_copy(update={"title": "Arrest at 5th St"}))

    events = await persistence.list_events(case.id)
    assert len(events) == 1
    assert events[0].title == "Arrest at 5th St"
    assert events[0].citations == ["Terry v. Ohio"]


@pytest.mark.asyncio
async def test_committed_event_cannot_be_rewritten(persistence, case):
    event = await persistence.save_event(TimelineEventData(case_id=case.id, title="Arrest", date="2024-01-05"))
    committed = (await persistence.commit_events(case.id))[0]

    with pytest.raises(EventCommittedError):
        await persistence.save_event(committed.model_copy(update={"title": "Rewritten", "committed": False}))
    with pytest.raises(EventCommittedError):
        await persistence.save_events([
            TimelineEventData(case_id=case.id, title="New draft", date="2024-01-06"),
            committed.model_copy(update={"title": "Rewritten"}),
        ])

    stored = await persistence.get_event(event.id)
    assert (stored.title, stored.committed) == ("Arrest", True)
    # The batch is all-or-nothing, so the new draft was not written either
    assert len(await persistence.list_events(case.id)) == 1


@pytest.mark.asyncio
async def test_commit_events_marks_drafts_and_audits(persistence, case):
    await persistence.save_events([
        TimelineEventData(case_id=case.id, title="Arrest", date="2024-01-05"),
        TimelineEventData(case_id=case.id, title="Arraignment", date="2024-01-08"),
    ])

    committed = await persistence.commit_events(case.id)

    assert len(committed) == 2
    assert await persistence.list_events(case.id, committed=False) == []
    audit = await persistence.list_audit_events(case.id)
    assert audit[0].event_type == AuditEventType.EVENTS_COMMITTED
    assert len(audit[0].detail["event_ids"]) == 2


@pytest.mark.asyncio
async def test_audit_events_are_listed_per_case(persistence, case):
    await persistence.record_audit(case.id, AuditEventType.INGESTION_FAILED, filename="scan.pdf", detail={"error": "boom"})

    audit = await persistence.list_audit_events(case.id)
    assert len(audit) == 1
    assert audit[0].filename == "scan.pdf"
    assert audit[0].detail == {"error": "boom"}
