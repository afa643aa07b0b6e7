"""Error taxonomy for the evidence pipeline.

Storage errors come from the split-store persistence layer, extraction errors
from the LLM client. Per-file errors are turned into batch report entries by
the ingestion orchestrator; only ``StorageUnavailable`` aborts a whole batch.
"""
from typing import List, Optional


class CasefileError(Exception):
    """Base class for all domain errors."""


class StorageError(CasefileError):
    pass


class StorageUnavailable(StorageError):
    """The store could not be opened. Fatal to the session."""


class StorageWriteFailed(StorageError):
    """A single record's transaction failed. Fatal to that record only."""


class ExtractionError(CasefileError):
    pass


class ExtractionProviderError(ExtractionError):
    """Every configured provider failed to answer."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"All LLM providers failed: {'; '.join(errors)}")


class ExtractionUnrecoverable(ExtractionError):
    """Structured output could not be parsed even after the repair request."""

    def __init__(self, message: str, raw_text: Optional[str] = None, parse_error: Optional[str] = None):
        self.raw_text = raw_text
        self.parse_error = parse_error
        super().__init__(message)


class NotFoundError(CasefileError):
    pass


class NoActiveCaseError(CasefileError):
    pass


class EventCommittedError(CasefileError):
    """Committed timeline events are immutable."""


class ClarificationPending(CasefileError):
    def __init__(self, event_ids: list):
        self.event_ids = event_ids
        super().__init__(
            f"{len(event_ids)} draft event(s) need a date or clarification before commit"
        )
