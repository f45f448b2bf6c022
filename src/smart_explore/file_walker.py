#!/usr/bin/env python3
"""
Source file discovery with directory exclusions and size/binary guards
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pathspec

from .constants import (
    BINARY_SNIFF_CHARS,
    CODE_EXTENSIONS,
    IGNORE_DIRS,
    IGNORE_FILENAME,
    MAX_FILE_SIZE_BYTES,
    MAX_WALK_DEPTH,
)

logger = logging.getLogger("file-walker")


def load_ignore_spec(root: Union[str, Path]) -> Optional[pathspec.PathSpec]:
    """
    Compile gitignore-style patterns from the root's ignore file, if present.

    Invalid patterns are skipped individually so one bad line does not disable
    the whole file.
    """
    ignore_file = Path(root) / IGNORE_FILENAME
    if not ignore_file.is_file():
        return None

    try:
        raw_lines = ignore_file.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        logger.warning(f"Failed to read {ignore_file}: {e}")
        return None

    patterns: List[str] = []
    for line_number, line in enumerate(raw_lines, 1):
        pattern = line.strip()
        if not pattern or pattern.startswith("#"):
            continue
        try:
            pathspec.PathSpec.from_lines("gitwildmatch", [pattern])
        except Exception as e:
            logger.warning(f"{IGNORE_FILENAME}:{line_number}: invalid pattern {pattern!r}: {e}")
            continue
        patterns.append(pattern)

    if not patterns:
        return None
    logger.debug(f"Loaded {len(patterns)} patterns from {ignore_file}")
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def walk_code_files(root: Union[str, Path], max_depth: int = MAX_WALK_DEPTH,
                    ignore_spec: Optional[pathspec.PathSpec] = None) -> Iterator[Path]:
    """
    Yield source files under root, in sorted order.

    Skips hidden entries, the built-in ignored directories, anything matched by
    ignore_spec (paths relative to root) and files without a code extension.
    """
    root = Path(root)

    def _walk(directory: Path, depth: int) -> Iterator[Path]:
        if depth <= 0:
            return
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as e:
            logger.debug(f"Cannot list {directory}: {e}")
            return

        for entry in entries:
            if entry.name.startswith(".") or entry.name in IGNORE_DIRS:
                continue

            path = Path(entry.path)
            is_dir = entry.is_dir(follow_symlinks=False)
            if ignore_spec is not None:
                relative = path.relative_to(root).as_posix()
                if ignore_spec.match_file(relative + "/" if is_dir else relative):
                    continue

            if is_dir:
                yield from _walk(path, depth - 1)
            elif entry.is_file() and path.suffix in CODE_EXTENSIONS:
                yield path

    yield from _walk(root, max_depth)


def safe_read_file(file_path: Union[str, Path]) -> Optional[str]:
    """
    Read a source file, or return None if it is empty, too large, binary or unreadable
    """
    path = Path(file_path)
    try:
        size = path.stat().st_size
        if size == 0 or size > MAX_FILE_SIZE_BYTES:
            return None
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Skipping unreadable file {path}: {e}")
        return None

    if "\0" in content[:BINARY_SNIFF_CHARS]:
        return None
    return content
