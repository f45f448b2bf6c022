#!/usr/bin/env python3
"""
Resolve a symbol inside a file index and extract its original source
"""

from typing import List, Optional, Sequence, Union

from .heuristics import HeuristicExtractor, is_comment_line
from .languages import extractor_for
from .models import FileIndex, Symbol


def find_symbol_by_name(symbols: Sequence[Symbol], name: str) -> Optional[Symbol]:
    """Depth-first exact name search, checking each symbol before its children"""
    for symbol in symbols:
        if symbol.name == name:
            return symbol
        found = find_symbol_by_name(symbol.children, name)
        if found is not None:
            return found
    return None


def find_symbol_by_path(symbols: Sequence[Symbol], segments: Sequence[str],
                        index: int = 0) -> Optional[Symbol]:
    """Walk a dotted path one forest level per segment"""
    if index >= len(segments):
        return None

    segment = segments[index]
    for symbol in symbols:
        if symbol.name != segment:
            continue
        if index == len(segments) - 1:
            return symbol
        found = find_symbol_by_path(symbol.children, segments, index + 1)
        if found is not None:
            return found
    return None


def find_symbol(symbols: Sequence[Symbol], identifier: str) -> Optional[Symbol]:
    """
    Locate a symbol by simple name, then by dotted path (e.g. "Example.run").

    Returns:
        The symbol, or None when neither strategy finds it
    """
    symbol = find_symbol_by_name(symbols, identifier)
    if symbol is None and "." in identifier:
        segments = [segment for segment in identifier.split(".") if segment]
        if segments:
            symbol = find_symbol_by_path(symbols, segments)
    return symbol


def leading_context_start(lines: Sequence[str], line_start: int,
                          extractor: Optional[HeuristicExtractor] = None) -> int:
    """Move the start upward over blank and comment lines directly above a symbol"""
    is_comment = extractor.is_comment if extractor is not None else is_comment_line
    start = line_start
    for row in range(min(line_start, len(lines)) - 1, -1, -1):
        trimmed = lines[row].strip()
        if trimmed and not is_comment(trimmed):
            break
        start = row
    return start


def unfold_symbol(content: str, file_path: str, symbol_name: str,
                  file_index: Union[FileIndex, Sequence[Symbol]]) -> Optional[str]:
    """
    Extract the full source of one symbol, including its leading comments.

    Args:
        content: File content the index was built from
        file_path: Path shown in the location header
        symbol_name: Simple name or dotted path
        file_index: Precomputed FileIndex, or a bare symbol forest

    Returns:
        Location header plus source lines, or None if the symbol is not found
    """
    if isinstance(file_index, FileIndex):
        symbols = file_index.symbols
        extractor = extractor_for(file_index.language)
    else:
        symbols, extractor = file_index, None
    symbol = find_symbol(symbols, symbol_name)
    if symbol is None:
        return None

    lines: List[str] = content.split("\n")
    start = leading_context_start(lines, symbol.line_start, extractor)
    extracted = "\n".join(lines[start:symbol.line_end + 1])
    return f"// 📍 {file_path} L{start + 1}-{symbol.line_end + 1}\n{extracted}"
