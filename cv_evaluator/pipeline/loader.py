"""Document loader: stored file → plain text, dispatched on extension.

PDF extraction uses PyMuPDF; text formats are read as UTF-8.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import fitz  # PyMuPDF
import structlog

from cv_evaluator.errors import DocumentIOError, UnsupportedFormatError

logger = structlog.get_logger(__name__)


def extract_text_from_pdf(pdf_path: Path) -> str:
    """Extract all page text from a PDF, skipping blank pages."""
    with fitz.open(pdf_path) as doc:
        text_parts = []
        for page in doc:
            text = page.get_text()
            if text.strip():
                text_parts.append(text)
    return "\n".join(text_parts)


def extract_text_from_file(text_path: Path) -> str:
    return text_path.read_text(encoding="utf-8")


class DocumentLoader:
    """Reads CVs and project reports from disk."""

    def __init__(self) -> None:
        self._readers: dict[str, Callable[[Path], str]] = {
            ".pdf": extract_text_from_pdf,
            ".txt": extract_text_from_file,
            ".md": extract_text_from_file,
        }

    @property
    def supported_extensions(self) -> frozenset[str]:
        return frozenset(self._readers)

    def read(self, path: str | Path) -> str:
        """Return the plain text of the document at ``path``.

        Raises:
            UnsupportedFormatError: no reader for the file extension.
            DocumentIOError: the file is missing or cannot be decoded.
        """
        file_path = Path(path)
        ext = file_path.suffix.lower()
        reader = self._readers.get(ext)
        if reader is None:
            raise UnsupportedFormatError(f"unsupported file type: {ext or '<none>'}")

        try:
            text = reader(file_path)
        except (OSError, UnicodeDecodeError, RuntimeError) as exc:
            # PyMuPDF raises RuntimeError subclasses for corrupt files
            raise DocumentIOError(f"failed to read {file_path.name}: {exc}") from exc

        logger.debug("document_loaded", path=str(file_path), chars=len(text))
        return text
