IDENTITY_SYSTEM_PROMPT = """You are a forensic evidence clerk. You identify documents and recognise
when a new item is the same evidence as something already on file, even under a different
file name or format."""

IDENTITY_USER_PROMPT = """Analyze this document.
1. Determine its official Title (e.g., "Arrest Report", "Motion to Dismiss").
2. Extract the Document Date (YYYY-MM-DD), or leave it empty if unknown.
3. Summarize it in one sentence.
4. Compare it against this list of existing documents:
---
{existing_documents}
---
If this document is the same as one in the list, set is_duplicate to true and duplicate_of
to the existing title. Otherwise set is_duplicate to false.

File name: {filename}
{content}"""

EXTRACTION_SYSTEM_PROMPT = """You are a forensic legal analyst. Extract a strictly chronological
timeline of factual events from the provided evidence.

RULES:
1. Give a specific date (YYYY-MM-DD) for every event. If the date is ambiguous or missing,
   leave it empty, set needs_clarification to true and write a clarification_question asking
   for the date.
2. Identify the acting party (actor), the cause (action or omission) and the effect.
3. Identify the legal or factual claim the event supports and any relief available.
4. List statutes, case law or constitutional provisions the document cites.
5. Quote the exact phrase or sentence in the source that proves each event (source_quote).
6. Also give the document's own title, date and a one sentence summary."""

EXTRACTION_USER_PROMPT = """File name: {filename}
{known_identity}
{content}"""

TEXT_CONTENT_BLOCK = """Document text:
<<<
{text}
>>>"""

MEDIA_CONTENT_NOTE = "The evidence is attached ({mime_type})."
