"""
File classification: document type by extension and test-file detection.
"""

import posixpath
import re
from typing import Optional

# Allow-list: extension -> document type
DOCUMENT_TYPES: dict[str, str] = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".doc": "docx",
    ".pptx": "pptx",
    ".ppt": "pptx",
    ".xlsx": "xlsx",
    ".xls": "xlsx",
    ".html": "html",
    ".htm": "html",
    ".md": "markdown",
    ".markdown": "markdown",
    ".txt": "text",
    ".mp3": "audio",
    ".wav": "audio",
    ".m4a": "audio",
    ".flac": "audio",
}

NO_EXTENSION = "(no extension)"

_TEST_DIR_PATTERN = re.compile(r"(^|/)(__tests__|tests?|spec)/")


def file_extension(path: str) -> str:
    """Lower-cased extension of the last path component, '' if none."""
    return posixpath.splitext(path.replace("\\", "/"))[1].lower()


def detect_document_type(path: str) -> Optional[str]:
    return DOCUMENT_TYPES.get(file_extension(path))


def is_test_file(path: str) -> bool:
    """
    True if the path lies in a test directory or its file name mentions
    "test" or "spec".
    """
    normalized = path.replace("\\", "/")
    if _TEST_DIR_PATTERN.search(normalized):
        return True
    name = normalized.rsplit("/", 1)[-1].lower()
    return "test" in name or "spec" in name
