from __future__ import annotations

from io import BytesIO
from pathlib import Path
import logging
import unicodedata

logger = logging.getLogger("file_extract")


def _clean_text(text: str) -> str:
    out = unicodedata.normalize("NFC", text or "")
    if out.startswith("\ufeff"):
        out = out[1:]
    return out.replace("\r\n", "\n").strip()


def _extract_txt(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1", errors="ignore")


def _extract_pdf(data: bytes) -> str:
    try:
        from pypdf import PdfReader  # type: ignore
    except ImportError as exc:
        raise RuntimeError("PDF support requires pypdf") from exc

    reader = PdfReader(BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_text_from_file(filename: str, data: bytes, content_type: str | None = None) -> str:
    """Plain text for an uploaded source document; PDFs that fail to parse are read as text."""
    ext = Path(filename or "").suffix.lower()
    ctype = (content_type or "").lower()

    if ext == ".pdf" or ctype == "application/pdf":
        try:
            return _clean_text(_extract_pdf(data))
        except RuntimeError:
            raise
        except Exception as exc:
            logger.warning("PDF parse failed for %s, falling back to plain text: %s", filename, exc)
    return _clean_text(_extract_txt(data))
