"""Line-based, structure-aware code chunker."""

import re
from dataclasses import dataclass

from projectlens.loader.file_loader import SourceFile

# A declaration line closes the chunk it ends up in
_BOUNDARY_RE = re.compile(r"^\s*(?:async\s+)?(?:function|class|const|let|var|def)\b")


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of one file's text."""

    source_path: str
    text: str


def is_boundary(line: str) -> bool:
    """Return True if the line starts a declaration."""
    return _BOUNDARY_RE.match(line) is not None


def chunk_code(text: str, max_length: int = 1000) -> list[str]:
    """
    Split text into line-aligned chunks of at most max_length characters.

    A chunk is closed when its newline-joined length reaches max_length or
    when the line just added is a declaration. A line that would push a
    non-empty chunk past max_length starts the next chunk instead. Lines
    are never split: a single line longer than max_length becomes its own
    oversized chunk.

    Joining the result with "\\n" gives back the original text exactly.

    Args:
        text: Full file text
        max_length: Character budget per chunk

    Returns:
        List of chunk strings (empty for empty text)
    """
    if max_length < 1:
        raise ValueError(f"max_length must be >= 1, got {max_length}")
    if not text:
        return []

    chunks: list[str] = []
    buffer: list[str] = []
    length = 0  # len("\n".join(buffer))

    for line in text.split("\n"):
        if buffer and length + 1 + len(line) > max_length:
            chunks.append("\n".join(buffer))
            buffer, length = [], 0

        length = length + 1 + len(line) if buffer else len(line)
        buffer.append(line)

        if length >= max_length or is_boundary(line):
            chunks.append("\n".join(buffer))
            buffer, length = [], 0

    if buffer:
        chunks.append("\n".join(buffer))

    return chunks


def chunk_file(source: SourceFile, max_length: int = 1000) -> list[Chunk]:
    """Chunk one file and tag every chunk with its source path."""
    return [Chunk(source_path=source.path, text=t) for t in chunk_code(source.content, max_length)]
