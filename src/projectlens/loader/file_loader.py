"""Project file enumeration with include/exclude glob filters."""

import fnmatch
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from projectlens.config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS
from projectlens.errors import SourceLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """One project file: posix path relative to the root, plus its text."""

    path: str
    content: str


def expand_pattern(pattern: str) -> list[str]:
    """Expand a pattern so it also matches inside nested directories.

    Examples:
        '*.py'    -> ['*.py', '**/*.py']
        'dist/**' -> ['dist/**', '**/dist/**']
        'secrets' -> ['secrets', 'secrets/**', '**/secrets', '**/secrets/**']

    A bare name (no slash, no wildcard) matches a file or a directory of
    that name at any depth.
    """
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return []
    if pattern.startswith("**/"):
        return [pattern]
    if pattern.startswith("*.") or "/**" in pattern:
        return [pattern, "**/" + pattern]
    if "/" not in pattern and not any(c in pattern for c in "*?["):
        return [pattern, pattern + "/**", "**/" + pattern, "**/" + pattern + "/**"]
    return [pattern]


def _expand_patterns(patterns: list[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for p in patterns:
        for ep in expand_pattern(p):
            if ep not in seen:
                seen.add(ep)
                out.append(ep)
    return out


def _match_any(path: str, globs: list[str]) -> bool:
    return any(fnmatch.fnmatchcase(path, g) for g in globs)


def _is_binary(path: Path) -> bool:
    with path.open("rb") as f:
        sample = f.read(2048)
    return b"\x00" in sample


def load_source_files(
    root_dir: Path | str,
    include_globs: Optional[list[str]] = None,
    exclude_globs: Optional[list[str]] = None,
    max_file_size_kb: int = 512,
) -> list[SourceFile]:
    """
    Load every project file that matches the include globs and none of the
    exclude globs.

    Args:
        root_dir: Project root directory
        include_globs: Patterns a relative path must match (default: code files)
        exclude_globs: Patterns that drop a path or a whole directory
        max_file_size_kb: Larger files are skipped

    Returns:
        SourceFile per matched file. Order is not part of the contract.

    Raises:
        SourceLoadError: If root_dir does not exist or is not a directory
    """
    root = Path(root_dir)
    if not root.is_dir():
        raise SourceLoadError(f"Project root does not exist or is not a directory: {root}")

    include = _expand_patterns(include_globs if include_globs is not None else DEFAULT_INCLUDE_PATTERNS)
    exclude = _expand_patterns(exclude_globs if exclude_globs is not None else DEFAULT_EXCLUDE_PATTERNS)

    files: list[SourceFile] = []
    skipped = 0

    def _on_walk_error(err: OSError) -> None:
        logger.warning("Cannot list %s: %s", err.filename, err.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"

        # Prune excluded directories so we never descend into them
        dirnames[:] = sorted(
            d for d in dirnames if not _match_any(f"{prefix}{d}/", exclude)
        )

        for name in sorted(filenames):
            rel = prefix + name
            if _match_any(rel, exclude) or not _match_any(rel, include):
                continue

            file_path = current / name
            try:
                if file_path.stat().st_size / 1024.0 > max_file_size_kb:
                    logger.debug("Skipping %s: larger than %d KB", rel, max_file_size_kb)
                    skipped += 1
                    continue
                if _is_binary(file_path):
                    logger.debug("Skipping %s: binary content", rel)
                    skipped += 1
                    continue
                content = file_path.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable file %s: %s", rel, e)
                skipped += 1
                continue

            files.append(SourceFile(path=rel, content=content))

    logger.info("Loaded %d files from %s (%d skipped)", len(files), root, skipped)
    return files
