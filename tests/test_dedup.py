import pytest

from src.documents.models import MediaKind
from src.documents.schemas import EvidenceDocument
from src.ingestion.dedup import BATCH_MATCH_LABEL, DeduplicationGate, IngestionBatch
from src.ingestion.hashing import ContentHasher
from src.ingestion.schemas import DuplicateKind, EvidenceItem

ARREST_REPORT = b"INCIDENT REPORT 24-0105. Officer Reyes arrested John Doe on 2024-01-05."


def text_item(filename: str, raw: bytes) -> EvidenceItem:
    return EvidenceItem(
        filename=filename,
        raw=raw,
        mime_type="text/plain",
        media_kind=MediaKind.TEXT,
        text=raw.decode("utf-8"),
    )


async def store(persistence, case, raw: bytes, title: str):
    return await persistence.save_document(EvidenceDocument(
        case_id=case.id,
        title=title,
        digest=ContentHasher().digest(raw),
        text=raw.decode("utf-8"),
        document_date="2024-01-05",
    ))


@pytest.fixture
def gate(persistence, extraction_client) -> DeduplicationGate:
    return DeduplicationGate(persistence, extraction_client, ContentHasher())


@pytest.mark.asyncio
async def test_first_document_is_novel_without_a_model_call(gate, case, models):
    verdict = await gate.check(case.id, ARREST_REPORT, IngestionBatch(), evidence=text_item("a.txt", ARREST_REPORT))

    assert verdict.kind == DuplicateKind.NOVEL
    assert verdict.digest == ContentHasher().digest(ARREST_REPORT)
    assert models["primary"].calls == []


@pytest.mark.asyncio
async def test_exact_match_against_stored_evidence(gate, persistence, case, models):
    await store(persistence, case, ARREST_REPORT, "Arrest Report")

    verdict = await gate.check(case.id, ARREST_REPORT, IngestionBatch(), evidence=text_item("copy.txt", ARREST_REPORT))

    assert verdict.kind == DuplicateKind.EXACT
    assert verdict.match_title == "Arrest Report"
    assert models["primary"].calls == []


@pytest.mark.asyncio
async def test_exact_match_within_batch(gate, case, models):
    batch = IngestionBatch()
    await batch.accept(ContentHasher().digest(ARREST_REPORT), "Arrest Report", "2024-01-05")

    verdict = await gate.check(case.id, ARREST_REPORT, batch)

    assert verdict.kind == DuplicateKind.EXACT
    assert verdict.match_title == "Arrest Report"
    assert models["primary"].calls == []


@pytest.mark.asyncio
async def test_untitled_batch_match_uses_label(gate, case):
    batch = IngestionBatch()
    await batch.accept(ContentHasher().digest(ARREST_REPORT))

    verdict = await gate.check(case.id, ARREST_REPORT, batch)
    assert verdict.match_title == BATCH_MATCH_LABEL


@pytest.mark.asyncio
async def test_semantic_duplicate_is_reported_with_match(gate, persistence, case, models):
    await store(persistence, case, ARREST_REPORT, "Arrest Report")
    rescan = b"Incident report 24-0105 (scanned copy). Officer Reyes arrested John Doe, Jan 5 2024."
    models["primary"].script({
        "title": "Arrest Report",
        "date": "2024-01-05",
        "summary": "Officer Reyes arrests John Doe.",
        "is_duplicate": True,
        "duplicate_of": "Arrest Report",
    })

    verdict = await gate.check(case.id, rescan, IngestionBatch(), evidence=text_item("scan.txt", rescan))

    assert verdict.kind == DuplicateKind.SEMANTIC
    assert verdict.match_title == "Arrest Report"
    assert verdict.is_duplicate
    # The model sees what is already on file
    prompt = models["primary"].calls[0][1].content
    assert 'Title: "Arrest Report", Date: 2024-01-05' in prompt


@pytest.mark.asyncio
async def test_distinct_document_is_novel_with_identity(gate, persistence, case, models):
    await store(persistence, case, ARREST_REPORT, "Arrest Report")
    motion = b"MOTION TO DISMISS. Defendant moves to dismiss for lack of probable cause."
    models["primary"].script({
        "title": "Motion to Dismiss",
        "date": "2024-02-01",
        "summary": "Defence motion to dismiss.",
        "is_duplicate": False,
    })

    verdict = await gate.check(case.id, motion, IngestionBatch(), evidence=text_item("motion.txt", motion))

    assert verdict.kind == DuplicateKind.NOVEL
    assert verdict.identity.title == "Motion to Dismiss"
    assert not verdict.is_duplicate


@pytest.mark.asyncio
async def test_batch_titles_are_offered_for_comparison(gate, case, models):
    batch = IngestionBatch()
    await batch.accept("0" * 64, "Arrest Report", None)
    models["primary"].script({"title": "Bodycam Transcript", "is_duplicate": False})

    await gate.check(case.id, ARREST_REPORT, batch, evidence=text_item("bodycam.txt", ARREST_REPORT))

    prompt = models["primary"].calls[0][1].content
    assert 'Title: "Arrest Report", Date: Unknown (Processing)' in prompt
