"""Output truncation that never splits a UTF-8 character."""

from __future__ import annotations

from dataclasses import dataclass

from agent_exec.types import MAX_OUTPUT_BYTES, TRUNCATION_MARKER


@dataclass
class TruncationResult:
    text: str
    was_truncated: bool
    original_bytes: int


def _is_continuation(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def find_char_boundary(data: bytes, limit: int) -> int:
    """Largest offset at or before ``limit`` that starts a UTF-8 character.

    Scans backward over continuation bytes, so slicing ``data[:offset]``
    never leaves half a character behind.
    """
    if limit >= len(data):
        return len(data)
    boundary = max(limit, 0)
    while boundary > 0 and _is_continuation(data[boundary]):
        boundary -= 1
    return boundary


def truncate_output(text: str, max_bytes: int = MAX_OUTPUT_BYTES) -> TruncationResult:
    """Cap ``text`` at ``max_bytes`` of UTF-8 and append the truncation marker.

    The marker is added after the cut and does not count against the cap.
    """
    data = text.encode("utf-8", errors="replace")
    if len(data) <= max_bytes:
        return TruncationResult(text=text, was_truncated=False, original_bytes=len(data))

    boundary = find_char_boundary(data, max_bytes)
    head = data[:boundary].decode("utf-8", errors="replace")
    return TruncationResult(
        text=head + TRUNCATION_MARKER,
        was_truncated=True,
        original_bytes=len(data),
    )
