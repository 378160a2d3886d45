"""
Recursive separator splitting.

Splits an oversized span of text into pieces no longer than the target size,
trying separators from coarse to fine:

    paragraph break -> line break -> sentence end -> "; " -> ", " -> " "
    -> raw character boundary

Each separator stays attached to the piece before it, so the pieces of a
span always concatenate back to the span. Pieces are returned as offsets
into the source text, never as copies.
"""

import re
from typing import NamedTuple

_SENTENCE = "sentence"
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?] )")

SEPARATORS: tuple[str, ...] = ("\n\n", "\n", _SENTENCE, "; ", ", ", " ")


class Piece(NamedTuple):
    """A [start, end) slice of the source text."""
    start: int
    end: int
    character_split: bool = False


def _split_keeping_separator(text: str, separator: str) -> list[str]:
    if separator == _SENTENCE:
        parts = _SENTENCE_BOUNDARY.split(text)
    else:
        raw = text.split(separator)
        parts = [part + separator for part in raw[:-1]]
        parts.append(raw[-1])
    return [part for part in parts if part]


def _character_split(start: int, end: int, size: int) -> list[Piece]:
    return [
        Piece(position, min(position + size, end), True)
        for position in range(start, end, size)
    ]


def split_span(text: str, start: int, end: int, size: int, level: int = 0) -> list[Piece]:
    """
    Split ``text[start:end]`` into pieces of at most ``size`` characters.

    Args:
        text: The full source text.
        start: Span start offset.
        end: Span end offset (exclusive).
        size: Maximum piece length.
        level: Index into SEPARATORS of the first separator to try.

    Returns:
        Contiguous pieces covering the span in order.
    """
    if end - start <= size:
        return [Piece(start, end)]

    while level < len(SEPARATORS):
        parts = _split_keeping_separator(text[start:end], SEPARATORS[level])
        if len(parts) > 1:
            break
        level += 1
    else:
        return _character_split(start, end, size)

    pieces: list[Piece] = []
    # Pending piece is [current_start, position)
    current_start = start
    position = start

    for part in parts:
        part_end = position + len(part)

        if len(part) > size:
            if position > current_start:
                pieces.append(Piece(current_start, position))
            pieces.extend(split_span(text, position, part_end, size, level + 1))
            current_start = part_end
        elif part_end - current_start > size:
            pieces.append(Piece(current_start, position))
            current_start = position

        position = part_end

    if position > current_start:
        pieces.append(Piece(current_start, position))

    return pieces
