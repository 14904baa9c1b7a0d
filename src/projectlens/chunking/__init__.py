"""Chunking Module — Splits source text into embeddable segments.

Chunks are line-aligned, bounded by a character budget and closed early
at declaration lines (function, class, const/let/var, def), so they tend
to line up with logical code units.

Usage:
    from projectlens.chunking import chunk_code

    chunks = chunk_code(source_text, max_length=1000)
    assert "\\n".join(chunks) == source_text
"""

from projectlens.chunking.chunker import Chunk, chunk_code, chunk_file, is_boundary

__all__ = ["Chunk", "chunk_code", "chunk_file", "is_boundary"]
