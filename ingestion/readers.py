"""
Text readers per document type.

Markdown and plain text are decoded as UTF-8 (undecodable bytes replaced),
HTML is reduced to its visible text with BeautifulSoup, and PDF text is
extracted page by page with PyMuPDF. Document types without a reader
(docx, pptx, xlsx, audio) are reported by the caller, not guessed at.
"""

from pathlib import Path
from typing import Callable

import pymupdf
from bs4 import BeautifulSoup


def _read_plain(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _read_html(path: Path) -> str:
    soup = BeautifulSoup(_read_plain(path), "html.parser")
    for element in soup(["script", "style", "noscript"]):
        element.decompose()
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


def _read_pdf(path: Path) -> str:
    pages: list[str] = []
    with pymupdf.open(str(path)) as doc:
        for page in doc:
            text = page.get_text("text")
            if text.strip():
                pages.append(text.strip())
    return "\n\n".join(pages)


READERS: dict[str, Callable[[Path], str]] = {
    "markdown": _read_plain,
    "text": _read_plain,
    "html": _read_html,
    "pdf": _read_pdf,
}


def has_reader(document_type: str | None) -> bool:
    return document_type in READERS


def read_document(path: str | Path, document_type: str) -> str:
    """
    Extract the text of a document.

    Raises:
        ValueError: If no reader exists for the document type.
        OSError: If the file cannot be read.
        RuntimeError: If PyMuPDF cannot parse the PDF.
    """
    reader = READERS.get(document_type)
    if reader is None:
        raise ValueError(f"No text reader for document type '{document_type}'")
    return reader(Path(path))
