#!/usr/bin/env python3
"""
Fuzzy structural search across a source tree.

Files are discovered, indexed in per-language batches, then every symbol is scored
against the query on name, signature and documentation. Results are ranked by how
well the dotted symbol name matches and trimmed to a token-friendly size.
"""

import logging
import os
import re
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .constants import DEFAULT_RESULTS
from .file_walker import load_ignore_spec, safe_read_file, walk_code_files
from .folded_view import first_doc_line, format_folded_view
from .indexer import StructuralIndexer
from .models import FileIndex, RankedSymbolMatch, SearchResult, SourceFile, Symbol

logger = logging.getLogger("smart-search")

BatchParser = Callable[[List[SourceFile]], Awaitable[Dict[str, FileIndex]]]

_QUERY_SEPARATORS = re.compile(r"[\s_\-./]+")

EXACT_SCORE = 10
SUBSTRING_SCORE = 5
SUBSEQUENCE_SCORE = 1

NAME_WEIGHT = 3
SIGNATURE_BONUS = 2
DOCUMENTATION_BONUS = 1


def normalize_query(query: str) -> List[str]:
    """Lowercase and split on whitespace, underscore, hyphen, dot and slash"""
    return [part for part in _QUERY_SEPARATORS.split(query.lower()) if part]


def is_subsequence(part: str, text: str) -> bool:
    """True if every character of part appears in text, in order"""
    cursor = 0
    for char in part:
        index = text.find(char, cursor)
        if index == -1:
            return False
        cursor = index + 1
    return True


def match_score(text: str, query_parts: Sequence[str]) -> int:
    """
    Score text against query parts: 10 exact, 5 substring, 1 subsequence, per part
    """
    score = 0
    for part in query_parts:
        if text == part:
            score += EXACT_SCORE
        elif part in text:
            score += SUBSTRING_SCORE
        elif is_subsequence(part, text):
            score += SUBSEQUENCE_SCORE
    return score


def score_symbol(symbol: Symbol, query_lower: str, query_parts: Sequence[str]):
    """
    Returns:
        Tuple of (score, reason); score 0 means no match
    """
    score = 0
    reasons: List[str] = []

    name_score = match_score(symbol.name.lower(), query_parts)
    if name_score > 0:
        score += name_score * NAME_WEIGHT
        reasons.append("name match")

    if query_lower in symbol.signature.lower():
        score += SIGNATURE_BONUS
        reasons.append("signature" if reasons else "signature match")

    if symbol.documentation and query_lower in symbol.documentation.lower():
        score += DOCUMENTATION_BONUS
        reasons.append("documentation" if reasons else "documentation match")

    return score, " + ".join(reasons)


def collect_symbol_matches(file_index: FileIndex, query_lower: str,
                           query_parts: Sequence[str]) -> List[RankedSymbolMatch]:
    """Score every symbol in a file (nested ones under their dotted path)"""
    matches: List[RankedSymbolMatch] = []

    def _visit(symbols: Sequence[Symbol], parent: Optional[str]):
        for symbol in symbols:
            dotted = f"{parent}.{symbol.name}" if parent else symbol.name
            score, reason = score_symbol(symbol, query_lower, query_parts)
            if score > 0:
                matches.append(RankedSymbolMatch(
                    file_path=file_index.file_path,
                    symbol_name=dotted,
                    kind=symbol.kind,
                    signature=symbol.signature,
                    documentation=symbol.documentation,
                    line_start=symbol.line_start,
                    line_end=symbol.line_end,
                    match_reason=reason,
                ))
            _visit(symbol.children, dotted)

    _visit(file_index.symbols, None)
    return matches


def rank_and_trim(indexed: Dict[str, FileIndex], query: str,
                  max_results: int = DEFAULT_RESULTS,
                  total_files_scanned: Optional[int] = None) -> SearchResult:
    """
    Rank symbols across indexed files and trim the result set.

    Counters describe the full pre-trim universe; the token estimate only covers
    the folded files that survive trimming.
    """
    query_lower = query.lower()
    query_parts = normalize_query(query)

    folded_files: List[FileIndex] = []
    matching_symbols: List[RankedSymbolMatch] = []
    total_symbols = 0

    for relative_path, file_index in indexed.items():
        total_symbols += file_index.symbol_count()
        file_matches = collect_symbol_matches(file_index, query_lower, query_parts)
        path_matches = match_score(relative_path.lower(), query_parts) > 0

        if path_matches or file_matches:
            folded_files.append(file_index)
            matching_symbols.extend(file_matches)

    # sorted() is stable, so ties keep encounter order
    matching_symbols = sorted(
        matching_symbols,
        key=lambda match: match_score(match.symbol_name.lower(), query_parts),
        reverse=True,
    )

    trimmed_symbols = matching_symbols[:max_results]
    referenced = {match.file_path for match in trimmed_symbols}
    trimmed_files = [f for f in folded_files if f.file_path in referenced][:max_results]

    return SearchResult(
        folded_files=trimmed_files,
        matching_symbols=trimmed_symbols,
        total_files_scanned=len(indexed) if total_files_scanned is None else total_files_scanned,
        total_symbols_found=total_symbols,
        token_estimate=sum(f.folded_token_estimate for f in trimmed_files),
    )


def collect_source_files(root: Union[str, Path], file_pattern: Optional[str] = None) -> List[SourceFile]:
    """Discover readable source files under root, optionally filtered by path substring"""
    root = Path(root)
    pattern = file_pattern.lower() if file_pattern else None
    ignore_spec = load_ignore_spec(root)

    files: List[SourceFile] = []
    for path in walk_code_files(root, ignore_spec=ignore_spec):
        relative = os.path.relpath(path, root)
        if pattern and pattern not in relative.lower():
            continue

        content = safe_read_file(path)
        if not content:
            continue
        files.append(SourceFile(relative_path=relative, absolute_path=str(path), content=content))

    return files


async def search_codebase(root: Union[str, Path], query: str, *,
                          max_results: int = DEFAULT_RESULTS,
                          file_pattern: Optional[str] = None,
                          indexer: Optional[StructuralIndexer] = None,
                          batch_parser: Optional[BatchParser] = None) -> SearchResult:
    """
    Search a source tree for symbols matching a free-text query.

    Args:
        root: Directory to search
        query: Free-text query, e.g. "parse config" or "UserService.save"
        max_results: Cap on matching symbols (and on folded files)
        file_pattern: Case-insensitive substring the relative path must contain
        indexer: Session used for indexing (a temporary one is created if omitted)
        batch_parser: Replacement for indexer.index_batch

    Returns:
        SearchResult
    """
    if not query or not query.strip():
        raise ValueError("Search query must not be empty")
    if max_results < 1:
        raise ValueError(f"max_results must be positive, got {max_results}")

    files = collect_source_files(root, file_pattern)
    logger.info(f"🔍 Searching {len(files)} files under {root} for '{query}'")

    if batch_parser is not None:
        indexed = await batch_parser(files)
    elif indexer is not None:
        indexed = await indexer.index_batch(files)
    else:
        async with StructuralIndexer() as session:
            indexed = await session.index_batch(files)

    result = rank_and_trim(indexed, query, max_results, total_files_scanned=len(files))
    logger.info(
        f"✓ {len(result.matching_symbols)} matches across {len(result.folded_files)} files "
        f"({result.total_symbols_found} symbols scanned)"
    )
    return result


def format_search_results(result: SearchResult, query: str) -> str:
    """Render a search result as a compact text report"""
    parts = [
        f'🔍 Smart Search: "{query}"',
        f"   Scanned {result.total_files_scanned} files, found {result.total_symbols_found} symbols",
        f"   {len(result.matching_symbols)} matches across {len(result.folded_files)} files "
        f"(~{result.token_estimate} tokens for folded view)",
        "",
    ]

    if not result.matching_symbols:
        parts.append("   No matching symbols found.")
        return "\n".join(parts)

    parts.extend(["── Matching Symbols ──", ""])
    for match in result.matching_symbols:
        parts.append(f"  {match.kind} {match.symbol_name} ({match.file_path}:{match.line_start + 1})")
        parts.append(f"    {match.signature}")
        doc = first_doc_line(match.documentation)
        if doc:
            parts.append(f"    💬 {doc}")
        parts.append("")

    parts.extend(["── Folded File Views ──", ""])
    for file_index in result.folded_files:
        parts.append(format_folded_view(file_index))
        parts.append("")

    parts.append("── Actions ──")
    parts.append("  To see full implementation: use smart_unfold with file path and symbol name")
    return "\n".join(parts)
