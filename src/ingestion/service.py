import io
import base64
import mimetypes
from typing import List, Optional
from langchain_community.document_loaders.parsers.pdf import PyPDFParser
from langchain_core.document_loaders import Blob
from docx import Document as DocxDocument

from src.documents.models import MediaKind
from src.ingestion.schemas import EvidenceItem

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_APPLICATION_TYPES = (DOCX_MIME, "application/json", "application/xml", "application/rtf")


class IngestionService:
    """Turns raw uploads into ``EvidenceItem``s the extraction client can read."""

    def __init__(self):
        self.pdf_parser = PyPDFParser()

    def prepare(self, filename: str, file_content: bytes, content_type: Optional[str] = None) -> EvidenceItem:
        if not file_content:
            raise ValueError("Empty file")
        mime_type = self.resolve_mime_type(filename, content_type)
        media_kind = self.detect_media_kind(mime_type)
        item = EvidenceItem(filename=filename, raw=file_content, mime_type=mime_type, media_kind=media_kind)

        if media_kind in (MediaKind.TEXT, MediaKind.PDF, None):
            # Unrecognised types are still tried as UTF-8 text
            try:
                item.text = self.extract_text(file_content, filename, mime_type)
            except ValueError:
                raise
            except Exception as e:
                raise ValueError(f"Could not read {filename}: {e}") from e
            if media_kind == MediaKind.PDF and not item.text.strip():
                # Scanned PDF with no text layer: let the model read the file itself
                item.attachments.append(self._file_block(file_content, mime_type))
        elif media_kind == MediaKind.IMAGE:
            item.attachments.append({
                "type": "image_url",
                "image_url": {
                    "url": f"data:{mime_type};base64,{base64.b64encode(file_content).decode('utf-8')}",
                },
            })
        else:
            item.attachments.append(self._file_block(file_content, mime_type))
        return item

    @staticmethod
    def _file_block(file_content: bytes, mime_type: str) -> dict:
        return {
            "type": "file",
            "source_type": "base64",
            "mime_type": mime_type,
            "data": base64.b64encode(file_content).decode("utf-8"),
        }

    @staticmethod
    def resolve_mime_type(filename: str, content_type: Optional[str]) -> str:
        if content_type and content_type != "application/octet-stream":
            return content_type
        guessed, _ = mimetypes.guess_type(filename)
        return guessed or "application/octet-stream"

    @staticmethod
    def detect_media_kind(mime_type: str) -> Optional[MediaKind]:
        """Media kind for a MIME type, or ``None`` when it is not one we recognise."""
        if mime_type == "application/pdf":
            return MediaKind.PDF
        if mime_type.startswith("text/") or mime_type in TEXT_APPLICATION_TYPES:
            return MediaKind.TEXT
        for prefix, kind in (("image/", MediaKind.IMAGE), ("audio/", MediaKind.AUDIO), ("video/", MediaKind.VIDEO)):
            if mime_type.startswith(prefix):
                return kind
        return None

    def extract_text(self, file_content: bytes, filename: str, mime_type: Optional[str] = None) -> str:
        """
        Extracts full text from the uploaded file.
        Supports PDF, DOCX, and plain text.
        """
        lower = filename.lower()
        if mime_type == "application/pdf" or lower.endswith('.pdf'):
            pages = self.extract_pages(file_content)
            return "\n".join(p["content"] for p in pages)
        elif mime_type == DOCX_MIME or lower.endswith('.docx'):
            return self._extract_docx_text(file_content)
        else:
            try:
                return file_content.decode('utf-8')
            except UnicodeDecodeError:
                raise ValueError("Unsupported file format or encoding")

    def extract_pages(self, file_content: bytes) -> List[dict]:
        """Extract text page-by-page from a PDF using LangChain's PyPDFParser."""
        blob = Blob.from_data(file_content, mime_type="application/pdf")
        documents = list(self.pdf_parser.lazy_parse(blob))
        pages = []
        for doc in documents:
            text = doc.page_content or ""
            if text.strip():
                page_num = doc.metadata.get("page", 0) + 1  # PyPDFParser is 0-indexed
                pages.append({"page_number": page_num, "content": text})
        return pages

    def _extract_docx_text(self, file_content: bytes) -> str:
        """Extract text from a DOCX file using python-docx."""
        doc = DocxDocument(io.BytesIO(file_content))
        return "\n".join(p.text for p in doc.paragraphs if p.text.strip())
