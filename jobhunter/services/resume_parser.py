"""
Resume text extraction.

``RESUME_FORMATS`` is the single table of accepted upload types. The upload
validator and ``GET /api/resume/formats`` both read it, so the client and the
server cannot drift apart.
"""
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Dict, List, Optional, Tuple

import fitz  # pymupdf
from docx import Document

logger = logging.getLogger(__name__)


def clean_text(text: str) -> str:
    return (text or "").replace("\x00", "").strip()


def parse_text(data: bytes) -> str:
    return clean_text(data.decode("utf-8", errors="replace"))


def parse_pdf(data: bytes) -> str:
    text = ""
    with fitz.open(stream=data, filetype="pdf") as doc:
        for page in doc:
            text += page.get_text()
    return clean_text(text)


def parse_docx(data: bytes) -> str:
    document = Document(BytesIO(data))
    lines = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append(" | ".join(cell.text for cell in row.cells))
    return clean_text("\n".join(lines))


def parse_image(data: bytes, filetype: str) -> str:
    """OCR an image through MuPDF's Tesseract bridge."""
    with fitz.open(stream=data, filetype=filetype) as image:
        pdf_bytes = image.convert_to_pdf()
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        text = ""
        for page in doc:
            textpage = page.get_textpage_ocr(full=True)
            text += page.get_text(textpage=textpage)
    return clean_text(text)


def no_extraction(data: bytes) -> str:
    # Legacy binary .doc: original is stored, no text
    return ""


@dataclass(frozen=True)
class ResumeFormat:
    label: str
    extensions: Tuple[str, ...]
    parser: Callable[[bytes], str]


RESUME_FORMATS: Dict[str, ResumeFormat] = {
    "text/plain": ResumeFormat("Plain text", (".txt",), parse_text),
    "application/pdf": ResumeFormat("PDF", (".pdf",), parse_pdf),
    "application/msword": ResumeFormat("Word 97-2003", (".doc",), no_extraction),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ResumeFormat(
        "Word", (".docx",), parse_docx
    ),
    "image/jpeg": ResumeFormat("JPEG image", (".jpg", ".jpeg"), lambda data: parse_image(data, "jpeg")),
    "image/png": ResumeFormat("PNG image", (".png",), lambda data: parse_image(data, "png")),
    "image/webp": ResumeFormat("WebP image", (".webp",), lambda data: parse_image(data, "webp")),
}


def normalize_mime(mime_type: Optional[str]) -> str:
    """Drop parameters such as ``; charset=utf-8``."""
    return (mime_type or "").split(";")[0].strip().lower()


def get_format(mime_type: Optional[str]) -> Optional[ResumeFormat]:
    return RESUME_FORMATS.get(normalize_mime(mime_type))


def describe_formats() -> List[dict]:
    return [
        {"mimeType": mime, "label": fmt.label, "extensions": list(fmt.extensions)}
        for mime, fmt in RESUME_FORMATS.items()
    ]


def parse_resume(data: bytes, mime_type: str) -> str:
    """
    Extract text for a supported type.

    Extraction failures are logged and reported as empty text; callers decide
    how to present a low-confidence result.
    """
    fmt = get_format(mime_type)
    if fmt is None:
        return ""
    try:
        return fmt.parser(data)
    except Exception as e:
        logger.warning(f"Resume text extraction failed: mime_type={mime_type}, error={e}")
        return ""
