"""
Heading Detection for the Structure-Aware Chunker

Scans a text line by line and reports every heading with its nesting level
and character offset. Recognised forms:

- Markdown ATX headings: "# Title" ... "###### Title" (level = number of #)
- Setext headings: a title line underlined with === (level 1) or --- (level 2)
- ALL-CAPS lines standing on their own after a blank line (level 1)
- Numbered sections: "1. Introduction", "2.3 Scope" (level = number depth)
- Chapter / Section markers: "Chapter 3: Results", "Section IV" (level 1 / 2)

Lines inside fenced code blocks (``` or ~~~) are never headings.

Usage:
    from chunking.headings import detect_headings, heading_paths

    headings = detect_headings("# A\\n\\nfoo\\n\\n## B\\n\\nbar")
    # [Heading(title="A", level=1, ...), Heading(title="B", level=2, ...)]
"""

import re

from .models import Heading

_MARKDOWN_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_UNDERLINE_PATTERN = re.compile(r"^(={3,}|-{3,})$")
_ALL_CAPS_PATTERN = re.compile(r"^[A-Z][A-Z0-9 \t:'&/-]{2,}$")
_NUMBERED_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)\.?[ \t]+([A-Z].{2,60})$")
_MARKER_PATTERN = re.compile(
    r"^(chapter|part|section|article)[ \t]+(\d+|[IVXLC]+)\b[:.]?[ \t]*(.*)$",
    re.IGNORECASE,
)
_FENCE_PATTERN = re.compile(r"^(```|~~~)")

_MARKER_LEVELS = {"chapter": 1, "part": 1, "section": 2, "article": 2}
_MAX_TITLE_LENGTH = 100


def _is_all_caps_heading(line: str, prev_line: str, next_line: str) -> bool:
    stripped = line.strip()
    if not 3 <= len(stripped) <= 60:
        return False
    if not _ALL_CAPS_PATTERN.match(stripped):
        return False
    if sum(1 for ch in stripped if ch.isalpha()) < 3:
        return False
    if prev_line.strip():
        return False
    next_stripped = next_line.strip()
    return bool(next_stripped) and not _UNDERLINE_PATTERN.match(next_stripped)


def detect_headings(text: str) -> list[Heading]:
    """
    Detect headings in document order.

    Args:
        text: Full document text.

    Returns:
        Headings sorted by offset; at most one heading per line.
    """
    if not text:
        return []

    lines = text.split("\n")
    offsets: list[int] = []
    position = 0
    for line in lines:
        offsets.append(position)
        position += len(line) + 1

    headings: list[Heading] = []
    in_fence = False
    skip_next = False

    for i, raw_line in enumerate(lines):
        if skip_next:
            skip_next = False
            continue

        line = raw_line.rstrip("\r")
        stripped = line.strip()

        if _FENCE_PATTERN.match(stripped):
            in_fence = not in_fence
            continue
        if in_fence or not stripped:
            continue

        prev_line = lines[i - 1] if i > 0 else ""
        next_line = lines[i + 1].rstrip("\r") if i + 1 < len(lines) else ""

        md = _MARKDOWN_PATTERN.match(line)
        if md:
            headings.append(Heading(
                title=md.group(2).strip(),
                level=len(md.group(1)),
                offset=offsets[i],
                line=i + 1,
            ))
            continue

        underline = _UNDERLINE_PATTERN.match(next_line.strip())
        if (
            underline
            and len(stripped) < _MAX_TITLE_LENGTH
            and not _UNDERLINE_PATTERN.match(stripped)
        ):
            headings.append(Heading(
                title=stripped,
                level=1 if underline.group(1).startswith("=") else 2,
                offset=offsets[i],
                line=i + 1,
            ))
            # The underline belongs to this heading
            skip_next = True
            continue

        if _is_all_caps_heading(line, prev_line, next_line):
            headings.append(Heading(
                title=stripped,
                level=1,
                offset=offsets[i],
                line=i + 1,
            ))
            continue

        numbered = _NUMBERED_PATTERN.match(stripped)
        if numbered:
            depth = numbered.group(1).count(".") + 1
            headings.append(Heading(
                title=numbered.group(2).strip(),
                level=min(depth, 6),
                offset=offsets[i],
                line=i + 1,
            ))
            continue

        marker = _MARKER_PATTERN.match(stripped)
        if marker:
            keyword = marker.group(1)
            title = marker.group(3).strip() or f"{keyword} {marker.group(2)}"
            headings.append(Heading(
                title=title,
                level=_MARKER_LEVELS[keyword.lower()],
                offset=offsets[i],
                line=i + 1,
            ))

    return headings


def heading_paths(headings: list[Heading]) -> list[list[str]]:
    """
    Compute the heading path active at each heading.

    Maintains a stack of (level, title) pairs: a new heading pops every
    entry of equal or deeper level before being pushed.

    Returns:
        One path per heading, outermost title first.
    """
    stack: list[tuple[int, str]] = []
    paths: list[list[str]] = []
    for heading in headings:
        while stack and stack[-1][0] >= heading.level:
            stack.pop()
        stack.append((heading.level, heading.title))
        paths.append([title for _, title in stack])
    return paths
