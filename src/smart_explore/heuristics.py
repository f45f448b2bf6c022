#!/usr/bin/env python3
"""
Line-oriented heuristics for signatures, documentation and export visibility.

The query engine only reports coarse spans, so everything here works on raw source
lines rather than syntax trees. Extractors and export conventions are strategy
objects attached to a language profile, which lets a language family swap its
heuristics without touching the symbol builder.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from .constants import (
    DOCSTRING_LOOKAHEAD_LINES,
    SIGNATURE_BRACE_WINDOW,
    SIGNATURE_LOOKAHEAD_LINES,
    SIGNATURE_MAX_LEN,
)

# Prefixes (after trimming) that mark a documentation/comment line
COMMENT_MARKERS: Tuple[str, ...] = ("/**", "*", "*/", "//", "///", "//!", "#", "@")

# C preprocessor directives share the "#" marker but are never documentation
_PREPROCESSOR_LINE = re.compile(
    r"^#\s*(?:include|define|undef|if|ifdef|ifndef|elif|else|endif|pragma|error|warning|line)\b"
)
# One or more leading annotations, e.g. @Override or @SuppressWarnings("unchecked")
_LEADING_ANNOTATIONS = re.compile(r"^\s*(?:@[\w.]+(?:\([^)]*\))?\s*)+")
_TRAILING_OPENER = re.compile(r"\s*[{:]\s*$")
_WHITESPACE_RUN = re.compile(r"\s+")

ExportRange = Tuple[int, int]


def is_comment_line(trimmed: str) -> bool:
    """True if an already-trimmed line starts with a recognised comment marker"""
    return trimmed.startswith(COMMENT_MARKERS)


def _line(lines: Sequence[str], row: int) -> str:
    if 0 <= row < len(lines):
        return lines[row]
    return ""


def strip_annotations(line: str) -> str:
    return _LEADING_ANNOTATIONS.sub("", line, count=1)


def declaration_row(lines: Sequence[str], start_row: int, end_row: int) -> Tuple[int, str]:
    """
    First row of a span that holds more than annotations.

    Returns:
        Tuple of (row, line text with leading annotations removed)
    """
    for row in range(start_row, max(start_row, end_row) + 1):
        text = strip_annotations(_line(lines, row))
        if text.strip():
            return row, text
    return start_row, _line(lines, start_row)


class HeuristicExtractor:
    """Default signature and leading-comment extraction for brace languages"""

    def extract_signature(self, lines: Sequence[str], start_row: int, end_row: int,
                          max_len: int = SIGNATURE_MAX_LEN) -> str:
        """
        Recover a one-line signature for the symbol starting at start_row.

        If the first line does not already end with a block opener, look ahead a few
        lines (never past end_row) for the first opening brace and keep everything
        before it.
        """
        signature = _line(lines, start_row)
        stripped = signature.rstrip()

        if not stripped.endswith("{") and not stripped.endswith(":"):
            stop = min(start_row + SIGNATURE_LOOKAHEAD_LINES, end_row + 1)
            chunk = "\n".join(lines[start_row:stop])
            brace = chunk.find("{")
            if brace != -1 and brace < SIGNATURE_BRACE_WINDOW:
                head = chunk[:brace].replace("\n", " ")
                signature = _WHITESPACE_RUN.sub(" ", head).strip()

        signature = _TRAILING_OPENER.sub("", signature, count=1).strip()
        if len(signature) > max_len:
            signature = signature[:max_len - 3] + "..."
        return signature

    def is_comment(self, trimmed: str) -> bool:
        return is_comment_line(trimmed)

    def extract_documentation(self, lines: Sequence[str], start_row: int,
                              end_row: int) -> Optional[str]:
        return self.find_comment_above(lines, start_row)

    def find_comment_above(self, lines: Sequence[str], start_row: int) -> Optional[str]:
        """Collect the contiguous comment block directly above start_row"""
        collected: List[str] = []
        found_comment = False

        for row in range(min(start_row, len(lines)) - 1, -1, -1):
            trimmed = lines[row].strip()
            if not trimmed:
                if found_comment:
                    break
                continue
            if self.is_comment(trimmed):
                collected.append(lines[row])
                found_comment = True
            else:
                break

        if not collected:
            return None
        collected.reverse()
        return "\n".join(collected).strip() or None


class DocstringExtractor(HeuristicExtractor):
    """Scripting-style languages: fall back to a triple-quoted docstring below the definition"""

    QUOTES = ('"""', "'''")

    def extract_documentation(self, lines, start_row, end_row):
        comment = self.find_comment_above(lines, start_row)
        if comment:
            return comment
        return self.find_docstring_below(lines, start_row, end_row)

    def find_docstring_below(self, lines: Sequence[str], start_row: int,
                             end_row: int) -> Optional[str]:
        last = min(start_row + DOCSTRING_LOOKAHEAD_LINES, end_row)
        for row in range(start_row + 1, last + 1):
            trimmed = _line(lines, row).strip()
            if not trimmed:
                continue
            if trimmed.startswith(self.QUOTES):
                return trimmed
            break
        return None


class PreprocessorExtractor(HeuristicExtractor):
    """C family: `#include`, `#define`, `#if` ... end a comment block instead of joining it"""

    def is_comment(self, trimmed):
        if _PREPROCESSOR_LINE.match(trimmed):
            return False
        return super().is_comment(trimmed)


class AnnotatedDeclarationExtractor(HeuristicExtractor):
    """Java style: the signature starts after any leading annotations"""

    def extract_signature(self, lines, start_row, end_row, max_len=SIGNATURE_MAX_LEN):
        row, text = declaration_row(lines, start_row, end_row)
        window = [text]
        window.extend(lines[row + 1:end_row + 1])
        return super().extract_signature(window, 0, max(0, end_row - row), max_len)


class ExportConvention(ABC):
    """Decides whether a symbol is visible outside its file"""

    @abstractmethod
    def is_exported(self, name: str, start_row: int, end_row: int,
                    export_ranges: Sequence[ExportRange], lines: Sequence[str]) -> bool:
        raise NotImplementedError


class ContainerDelimited(ExportConvention):
    """Exported iff the span sits entirely inside an export statement"""

    def is_exported(self, name, start_row, end_row, export_ranges, lines):
        return any(start_row >= first and end_row <= last for first, last in export_ranges)


class LeadingUnderscore(ExportConvention):
    def is_exported(self, name, start_row, end_row, export_ranges, lines):
        return not name.startswith("_")


class IdentifierCase(ExportConvention):
    """Exported iff the name starts with an uppercase letter"""

    def is_exported(self, name, start_row, end_row, export_ranges, lines):
        if not name:
            return False
        first = name[0]
        return first == first.upper() and first != first.lower()


class DeclarationKeyword(ExportConvention):
    """
    Exported iff the declaration line starts with a visibility keyword.

    With skip_annotations, leading annotation lines and tokens are passed over first.
    """

    def __init__(self, keyword: str, skip_annotations: bool = False):
        self.keyword = keyword
        self.skip_annotations = skip_annotations

    def is_exported(self, name, start_row, end_row, export_ranges, lines):
        if self.skip_annotations:
            _, text = declaration_row(lines, start_row, end_row)
        else:
            text = _line(lines, start_row)
        return text.lstrip().startswith(self.keyword)


class AlwaysExported(ExportConvention):
    def is_exported(self, name, start_row, end_row, export_ranges, lines):
        return True
