#!/usr/bin/env python3
"""
Normalize `tree-sitter query` text output into per-file match lists.

Report grammar:

    /path/to/file.ts
      pattern: 0
        capture: 1 - name, start: (0, 16), end: (0, 21), text: `alpha`
        capture: func, start: (0, 7), end: (0, 38)

A non-indented line starts a new file; indented `pattern:` lines open a new match
and indented `capture:` lines are appended to the current match. Anything that does
not fit is dropped: engine output is trusted, but parsed defensively.
"""

import logging
import re
from typing import Dict, List, Optional

from .models import Capture, Match

logger = logging.getLogger("capture-normalizer")

PATTERN_LINE = re.compile(r"^\s+pattern:\s+(\d+)")
CAPTURE_LINE = re.compile(
    r"^\s+capture:\s+(?:\d+\s*-\s*)?(\w+),\s*"
    r"start:\s*\((\d+),\s*(\d+)\),\s*"
    r"end:\s*\((\d+),\s*(\d+)\)"
    r"(?:,\s*text:\s*`([^`]*)`)?"
)


def parse_query_output(output: str) -> Dict[str, List[Match]]:
    """
    Parse a multi-file query report.

    Args:
        output: Standard output of one `tree-sitter query` invocation

    Returns:
        Mapping of file path (as printed by the engine) to its ordered matches
    """
    file_matches: Dict[str, List[Match]] = {}
    current_file: Optional[str] = None
    current_match: Optional[Match] = None
    dropped = 0

    for line in output.splitlines():
        if not line.strip():
            continue

        if not line[0].isspace():
            current_file = line.strip()
            file_matches.setdefault(current_file, [])
            current_match = None
            continue

        if current_file is None:
            dropped += 1
            continue

        pattern = PATTERN_LINE.match(line)
        if pattern:
            current_match = Match(pattern=int(pattern.group(1)))
            file_matches[current_file].append(current_match)
            continue

        capture = CAPTURE_LINE.match(line)
        if capture and current_match is not None:
            current_match.captures.append(Capture(
                tag=capture.group(1),
                start_row=int(capture.group(2)),
                start_col=int(capture.group(3)),
                end_row=int(capture.group(4)),
                end_col=int(capture.group(5)),
                text=capture.group(6),
            ))
        else:
            dropped += 1

    if dropped:
        logger.debug(f"Dropped {dropped} out-of-context lines from query output")

    return file_matches
