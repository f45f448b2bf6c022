#!/usr/bin/env python3
"""
Data model for the structural index: captures, matches, symbols and file indexes
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SYMBOL_KINDS = (
    "function", "method", "class", "interface", "type",
    "enum", "struct", "trait", "impl",
)

# Kinds that may own nested child symbols
CONTAINER_KINDS = frozenset({"class", "struct", "impl", "trait"})


@dataclass
class Capture:
    """A tagged source span reported by the query engine (rows are 0-based)"""
    tag: str
    start_row: int
    start_col: int
    end_row: int
    end_col: int
    text: Optional[str] = None


@dataclass
class Match:
    """One firing of a query pattern, grouping related captures"""
    pattern: int
    captures: List[Capture] = field(default_factory=list)


@dataclass
class Symbol:
    """A named structural unit (function, class, method, ...)"""
    name: str
    kind: str
    signature: str
    line_start: int
    line_end: int
    exported: bool
    documentation: Optional[str] = None
    children: List["Symbol"] = field(default_factory=list)

    def __post_init__(self):
        if self.line_start > self.line_end:
            raise ValueError(
                f"Symbol {self.name!r} has line_start {self.line_start} after line_end {self.line_end}"
            )

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    def contains(self, other: "Symbol") -> bool:
        """Strict line containment: starts after this symbol and ends no later"""
        return other.line_start > self.line_start and other.line_end <= self.line_end

    def walk(self):
        """Yield this symbol and all of its descendants, depth first"""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "signature": self.signature,
            "documentation": self.documentation,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "exported": self.exported,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class FileIndex:
    """Structural outline of one file, rebuilt fully on every parse"""
    file_path: str
    language: str
    symbols: List[Symbol] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    total_lines: int = 0
    folded_token_estimate: int = 0

    def symbol_count(self) -> int:
        """Count every symbol in the forest, nested ones included"""
        return sum(1 for top in self.symbols for _ in top.walk())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "language": self.language,
            "symbols": [symbol.to_dict() for symbol in self.symbols],
            "imports": list(self.imports),
            "total_lines": self.total_lines,
            "folded_token_estimate": self.folded_token_estimate,
        }


@dataclass
class SourceFile:
    """A file handed to batch indexing"""
    relative_path: str
    absolute_path: str
    content: str


@dataclass
class RankedSymbolMatch:
    """A symbol that matched a search query"""
    file_path: str
    symbol_name: str  # dotted path, e.g. Parent.child
    kind: str
    signature: str
    line_start: int
    line_end: int
    match_reason: str
    documentation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "symbol_name": self.symbol_name,
            "kind": self.kind,
            "signature": self.signature,
            "documentation": self.documentation,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "match_reason": self.match_reason,
        }


@dataclass
class SearchResult:
    """Ranked and trimmed result of a codebase search"""
    folded_files: List[FileIndex] = field(default_factory=list)
    matching_symbols: List[RankedSymbolMatch] = field(default_factory=list)
    total_files_scanned: int = 0
    total_symbols_found: int = 0
    token_estimate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folded_files": [f.to_dict() for f in self.folded_files],
            "matching_symbols": [m.to_dict() for m in self.matching_symbols],
            "total_files_scanned": self.total_files_scanned,
            "total_symbols_found": self.total_symbols_found,
            "token_estimate": self.token_estimate,
        }


@dataclass
class IndexDiagnostics:
    """Counters for files that were indexed on a degraded path"""
    files_indexed: int = 0
    unsupported_files: int = 0
    engine_failures: int = 0
    degraded_files: int = 0

    def reset(self):
        self.files_indexed = 0
        self.unsupported_files = 0
        self.engine_failures = 0
        self.degraded_files = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "files_indexed": self.files_indexed,
            "unsupported_files": self.unsupported_files,
            "engine_failures": self.engine_failures,
            "degraded_files": self.degraded_files,
        }
