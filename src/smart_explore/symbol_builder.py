#!/usr/bin/env python3
"""
Build a nested symbol forest for one file from query engine matches
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .heuristics import ExportRange
from .languages import (
    EXPORT_TAG,
    IMPORT_TAG,
    KIND_MAP,
    NAME_TAG,
    export_convention_for,
    extractor_for,
)
from .models import Capture, Match, Symbol

logger = logging.getLogger("symbol-builder")

ANONYMOUS = "anonymous"


@dataclass
class BuildResult:
    symbols: List[Symbol] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)


def capture_text(capture: Capture, lines: Sequence[str]) -> str:
    """Literal text of a capture, recovered from the source lines if the engine omitted it"""
    if capture.text is not None:
        return capture.text

    if capture.start_row >= len(lines):
        return ""
    if capture.start_row == capture.end_row:
        return lines[capture.start_row][capture.start_col:capture.end_col]

    parts = [lines[capture.start_row][capture.start_col:]]
    parts.extend(lines[capture.start_row + 1:capture.end_row])
    if capture.end_row < len(lines):
        parts.append(lines[capture.end_row][:capture.end_col])
    return "\n".join(parts)


def _collect_exports_and_imports(matches: Sequence[Match],
                                 lines: Sequence[str]) -> Tuple[List[ExportRange], List[str]]:
    export_ranges: List[ExportRange] = []
    imports: List[str] = []

    for match in matches:
        for capture in match.captures:
            if capture.tag == EXPORT_TAG:
                export_ranges.append((capture.start_row, capture.end_row))
            elif capture.tag == IMPORT_TAG:
                if capture.text:
                    imports.append(capture.text)
                elif capture.start_row < len(lines):
                    imports.append(lines[capture.start_row].strip())
                else:
                    imports.append("")

    return export_ranges, imports


def _find_capture(match: Match, wanted) -> Optional[Capture]:
    for capture in match.captures:
        if wanted(capture.tag):
            return capture
    return None


def nest_symbols(symbols: List[Symbol]) -> List[Symbol]:
    """
    Attach every symbol to the tightest container that strictly contains it.

    A function attached to a container becomes a method. Attached symbols are
    removed from the returned top-level forest; partial overlaps stay top level.
    Encounter order is preserved both at top level and inside each container.
    """
    containers = [s for s in symbols if s.is_container]
    if not containers:
        return list(symbols)

    top_level: List[Symbol] = []
    for symbol in symbols:
        owner: Optional[Symbol] = None
        for container in containers:
            if container is symbol or not container.contains(symbol):
                continue
            # Tightest owner: latest start, then earliest end
            if owner is None or (container.line_start, -container.line_end) > (owner.line_start, -owner.line_end):
                owner = container

        if owner is None:
            top_level.append(symbol)
            continue

        if symbol.kind == "function":
            symbol.kind = "method"
        owner.children.append(symbol)

    return top_level


def build_symbols(matches: Sequence[Match], lines: Sequence[str], language: str) -> BuildResult:
    """
    Convert one file's matches into a symbol forest plus its import statements.

    Args:
        matches: Ordered matches for the file
        lines: File content split into lines
        language: Detected language name

    Returns:
        BuildResult with top-level symbols (children nested) and import literals
    """
    export_ranges, imports = _collect_exports_and_imports(matches, lines)
    extractor = extractor_for(language)
    exports = export_convention_for(language)

    symbols: List[Symbol] = []
    for match in matches:
        kind_capture = _find_capture(match, lambda tag: tag in KIND_MAP)
        if kind_capture is None:
            continue

        name_capture = _find_capture(match, lambda tag: tag == NAME_TAG)
        name = capture_text(name_capture, lines) if name_capture else ""
        name = name or ANONYMOUS

        start_row = kind_capture.start_row
        end_row = max(kind_capture.end_row, start_row)

        symbols.append(Symbol(
            name=name,
            kind=KIND_MAP[kind_capture.tag],
            signature=extractor.extract_signature(lines, start_row, end_row),
            documentation=extractor.extract_documentation(lines, start_row, end_row),
            line_start=start_row,
            line_end=end_row,
            exported=exports.is_exported(name, start_row, end_row, export_ranges, lines),
        ))

    logger.debug(f"Built {len(symbols)} symbols and {len(imports)} imports for {language}")
    return BuildResult(symbols=nest_symbols(symbols), imports=imports)
