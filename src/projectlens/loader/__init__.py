"""Loader Module — Reads a project's source files from disk.

Walks a project root, applies include/exclude globs and returns each
matching file's relative path and text.

Usage:
    from projectlens.loader import load_source_files

    files = load_source_files(Path("./my_project"), ["*.py"], ["build/**"])
"""

from projectlens.loader.file_loader import SourceFile, load_source_files

__all__ = ["SourceFile", "load_source_files"]
