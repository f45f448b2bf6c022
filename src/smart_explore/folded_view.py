#!/usr/bin/env python3
"""
Folded (signature-only) rendering of a file index, plus token estimation
"""

import math
import re
from typing import List, Optional

from .constants import CHARS_PER_TOKEN, FOLDED_IMPORT_DISPLAY_LIMIT
from .models import FileIndex, Symbol

SYMBOL_ICONS = {
    "function": "ƒ",
    "method": "ƒ",
    "class": "◆",
    "struct": "◆",
    "interface": "◇",
    "type": "◇",
    "trait": "◇",
    "enum": "▣",
    "impl": "◈",
}
DEFAULT_ICON = "·"

_LEADING_PUNCTUATION = re.compile(r"^[\s*/#]+")
_LEADING_QUOTES = re.compile(r"^['\"`]{3}")
_TRAILING_QUOTES = re.compile(r"['\"`]{3}$")


def estimate_tokens(text: str) -> int:
    """Token estimate used for folded views: ceil(chars / 4)"""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def symbol_icon(kind: str) -> str:
    return SYMBOL_ICONS.get(kind, DEFAULT_ICON)


def format_line_range(line_start: int, line_end: int) -> str:
    """1-based line label, e.g. L4 or L4-12"""
    if line_start == line_end:
        return f"L{line_start + 1}"
    return f"L{line_start + 1}-{line_end + 1}"


def first_doc_line(documentation: Optional[str]) -> Optional[str]:
    """First line of a comment or docstring with the comment punctuation removed"""
    if not documentation:
        return None

    for raw in documentation.split("\n"):
        cleaned = _LEADING_PUNCTUATION.sub("", raw)
        cleaned = _LEADING_QUOTES.sub("", cleaned)
        cleaned = _TRAILING_QUOTES.sub("", cleaned.rstrip()).strip()
        if cleaned:
            return cleaned
    return None


def format_symbol(symbol: Symbol, indent: str) -> str:
    export_tag = " [exported]" if symbol.exported else ""
    line_range = format_line_range(symbol.line_start, symbol.line_end)

    parts = [
        f"{indent}{symbol_icon(symbol.kind)} {symbol.name}{export_tag} ({line_range})",
        f"{indent}  {symbol.signature}",
    ]

    doc = first_doc_line(symbol.documentation)
    if doc:
        parts.append(f"{indent}  💬 {doc}")

    for child in symbol.children:
        parts.append(format_symbol(child, indent + "  "))

    return "\n".join(parts)


def format_folded_view(file_index: FileIndex) -> str:
    """Render a compact outline of a file: header, imports, then folded symbols"""
    parts: List[str] = [
        f"📁 {file_index.file_path} ({file_index.language}, {file_index.total_lines} lines)",
        "",
    ]

    imports = file_index.imports
    if imports:
        parts.append(f"  📦 Imports: {len(imports)} statements")
        for statement in imports[:FOLDED_IMPORT_DISPLAY_LIMIT]:
            parts.append(f"    {statement}")
        if len(imports) > FOLDED_IMPORT_DISPLAY_LIMIT:
            parts.append(f"    ... +{len(imports) - FOLDED_IMPORT_DISPLAY_LIMIT} more")
        parts.append("")

    for symbol in file_index.symbols:
        parts.append(format_symbol(symbol, "  "))

    return "\n".join(parts)
