"""Resume text extraction: PDF via pymupdf (optional dependency) and plain text."""

import asyncio
import logging
from pathlib import Path

from jobstream.core.errors import DocumentError, DocumentErrorKind

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".pdf", ".txt")

# Below this many characters a PDF is treated as image-only.
MIN_TEXT_CHARS = 50


def extract_text_from_pdf(path: str | Path) -> str:
    """Extract plain text from a PDF file.

    Args:
        path: Path to the PDF file.

    Returns:
        Concatenated text from all pages.

    Raises:
        FileNotFoundError: If the PDF file does not exist.
        ImportError: If pymupdf is not installed.
        DocumentError: ``corrupted`` when the file cannot be opened,
            ``no_extractable_text`` when it holds (almost) no text.
    """
    path = Path(path)
    if not path.exists():
        msg = f"PDF file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for PDF extraction. "
            "Install with: pip install 'jobstream[profile]'"
        )
        raise ImportError(msg) from None

    try:
        doc = pymupdf.open(str(path))
    except RuntimeError as e:
        raise DocumentError(DocumentErrorKind.CORRUPTED, str(e)) from e

    try:
        text_parts = [page.get_text() for page in doc]
    finally:
        doc.close()

    text = "\n".join(text_parts).strip()
    if len(text) < MIN_TEXT_CHARS:
        raise DocumentError(DocumentErrorKind.NO_EXTRACTABLE_TEXT)
    return text


def extract_text(path: str | Path) -> str:
    """Extract text from a resume document, dispatching on file suffix.

    Raises:
        FileNotFoundError: If the file does not exist.
        DocumentError: ``unsupported_format`` for anything but PDF or TXT.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise DocumentError(DocumentErrorKind.UNSUPPORTED_FORMAT, f"Unsupported file type: {suffix}")

    if suffix == ".pdf":
        return extract_text_from_pdf(path)

    if not path.exists():
        msg = f"File not found: {path}"
        raise FileNotFoundError(msg)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DocumentError(DocumentErrorKind.CORRUPTED, "File is not valid UTF-8 text") from e
    if not text.strip():
        raise DocumentError(DocumentErrorKind.NO_EXTRACTABLE_TEXT)
    return text.strip()


async def extract_text_async(path: str | Path, timeout: float = 30.0) -> str:
    """Run ``extract_text`` in a worker thread, bounded by ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(extract_text, path), timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Text extraction from %s timed out after %.1fs", path, timeout)
        raise DocumentError(DocumentErrorKind.TIMEOUT) from e
