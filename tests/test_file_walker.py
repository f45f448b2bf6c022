#!/usr/bin/env python3
"""
Tests for ignore file loading and source file discovery
"""

import warnings
from pathlib import Path

from smart_explore.file_walker import load_ignore_spec, walk_code_files


def test_ignore_file_loads_without_warnings(tmp_path):
    (tmp_path / ".smartignore").write_text("# generated code\ngenerated/\n*.min.js\n")

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        spec = load_ignore_spec(tmp_path)

    assert spec is not None
    assert spec.match_file("generated/alpha.ts")
    assert spec.match_file("lib/vendor.min.js")
    assert not spec.match_file("src/alpha.ts")


def test_missing_or_empty_ignore_file(tmp_path):
    assert load_ignore_spec(tmp_path) is None
    (tmp_path / ".smartignore").write_text("# only comments\n\n")
    assert load_ignore_spec(tmp_path) is None


def test_walk_applies_ignore_spec(tmp_path):
    for relative in ("generated/alpha.ts", "src/alpha.ts", "src/notes.md"):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("export function alpha() {}\n")
    (tmp_path / ".smartignore").write_text("generated/\n")

    found = list(walk_code_files(tmp_path, ignore_spec=load_ignore_spec(tmp_path)))

    assert [p.relative_to(tmp_path) for p in found] == [Path("src/alpha.ts")]
