#!/usr/bin/env python3
"""
Tests for fuzzy symbol scoring, ranking, trimming and codebase search
"""

import tempfile
from pathlib import Path

import pytest

from smart_explore.models import FileIndex, Symbol
from smart_explore.search import (
    format_search_results,
    is_subsequence,
    match_score,
    normalize_query,
    rank_and_trim,
    score_symbol,
    search_codebase,
)


def fn(name, signature=None, documentation=None, line=0, children=None, kind="function"):
    return Symbol(
        name=name, kind=kind, signature=signature or f"function {name}()",
        line_start=line, line_end=line + 2, exported=True,
        documentation=documentation, children=children or [],
    )


def index_of(path, *symbols, estimate=10):
    return FileIndex(file_path=path, language="typescript", symbols=list(symbols),
                     total_lines=50, folded_token_estimate=estimate)


def write_tree(root: Path, files):
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def test_normalize_query():
    assert normalize_query("UserService.save") == ["userservice", "save"]
    assert normalize_query("  parse_config-file/path ") == ["parse", "config", "file", "path"]
    assert normalize_query("___") == []


def test_subsequence():
    assert is_subsequence("usv", "userservice")
    assert not is_subsequence("vsu", "userservice")
    assert is_subsequence("", "anything")


def test_match_score_tiers_are_monotonic():
    exact = match_score("alpha", ["alpha"])
    substring = match_score("alphabet", ["alpha"])
    subsequence = match_score("a_l_p_h_a", ["alpha"])
    none = match_score("beta", ["alpha"])

    assert (exact, substring, subsequence, none) == (10, 5, 1, 0)


def test_match_score_sums_parts():
    assert match_score("parseconfig", ["parse", "config"]) == 10
    assert match_score("parse", ["parse", "config"]) == 10


def test_score_symbol_reasons():
    query = "load"
    parts = normalize_query(query)

    score, reason = score_symbol(fn("load", signature="function load(path)"), query, parts)
    assert score == 10 * 3 + 2
    assert reason == "name match + signature"

    score, reason = score_symbol(fn("read", signature="function read(load)"), query, parts)
    assert (score, reason) == (2, "signature match")

    score, reason = score_symbol(fn("read", documentation="// load from disk"), query, parts)
    assert (score, reason) == (1, "documentation match")

    assert score_symbol(fn("read"), query, parts) == (0, "")


def test_ranking_prefers_exact_then_stable_order():
    indexed = {
        "a.ts": index_of("a.ts", fn("alphabet"), fn("alpha_helper", line=5)),
        "b.ts": index_of("b.ts", fn("alpha", line=9)),
    }
    result = rank_and_trim(indexed, "alpha", max_results=10)

    assert [m.symbol_name for m in result.matching_symbols] == ["alpha", "alphabet", "alpha_helper"]


def test_nested_symbols_use_dotted_names_and_count():
    service = fn("UserService", kind="class", children=[fn("save", kind="method", line=1)])
    indexed = {"svc.ts": index_of("svc.ts", service)}

    result = rank_and_trim(indexed, "save", max_results=5)

    assert [m.symbol_name for m in result.matching_symbols] == ["UserService.save"]
    assert result.total_symbols_found == 2


def test_trimming_keeps_referenced_files_and_pre_trim_counters():
    indexed = {
        "one.ts": index_of("one.ts", fn("match_one"), fn("other"), estimate=11),
        "two.ts": index_of("two.ts", fn("match_two"), estimate=22),
        "three.ts": index_of("three.ts", fn("match_three"), estimate=33),
        "match_path.ts": index_of("match_path.ts", fn("unrelated"), estimate=44),
    }

    result = rank_and_trim(indexed, "match", max_results=2, total_files_scanned=7)

    assert [m.symbol_name for m in result.matching_symbols] == ["match_one", "match_two"]
    assert [f.file_path for f in result.folded_files] == ["one.ts", "two.ts"]
    assert result.total_files_scanned == 7
    assert result.total_symbols_found == 5
    assert result.token_estimate == 33


def test_path_only_match_without_symbols_is_trimmed():
    indexed = {"alpha/empty.ts": index_of("alpha/empty.ts")}
    result = rank_and_trim(indexed, "alpha")
    assert result.matching_symbols == []
    assert result.folded_files == []
    assert result.total_files_scanned == 1


@pytest.mark.asyncio
async def test_search_two_files(regex_indexer):
    """Searching "alpha" finds only alpha.ts"""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root, {
            "alpha.ts": "export function alpha() { return 1; }\n",
            "beta.ts": "export function beta() { return 2; }\n",
        })

        result = await search_codebase(root, "alpha", max_results=5, indexer=regex_indexer)

        assert [m.symbol_name for m in result.matching_symbols] == ["alpha"]
        assert [f.file_path for f in result.folded_files] == ["alpha.ts"]
        assert result.matching_symbols[0].signature == "export function alpha()"
        assert result.total_files_scanned == 2
        assert result.total_symbols_found == 2


@pytest.mark.asyncio
async def test_ignored_directories_are_never_scanned(regex_indexer):
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root, {
            "node_modules/lib/alpha.ts": "export function alpha() {}\n",
            ".hidden/alpha.ts": "export function alpha() {}\n",
            "src/main.ts": "function main() {}\n",
        })

        result = await search_codebase(root, "node_modules", indexer=regex_indexer)

        assert result.total_files_scanned == 1
        assert result.matching_symbols == []
        assert all("node_modules" not in f.file_path for f in result.folded_files)


@pytest.mark.asyncio
async def test_smartignore_and_file_pattern(regex_indexer):
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root, {
            ".smartignore": "# generated code\ngenerated/\n",
            "generated/alpha.ts": "export function alpha() {}\n",
            "src/alpha.ts": "export function alpha() {}\n",
            "lib/alpha.ts": "export function alpha() {}\n",
            "README.md": "alpha\n",
        })

        everything = await search_codebase(root, "alpha", indexer=regex_indexer)
        assert everything.total_files_scanned == 2
        assert sorted(f.file_path for f in everything.folded_files) == [
            str(Path("lib/alpha.ts")), str(Path("src/alpha.ts")),
        ]

        only_src = await search_codebase(root, "alpha", file_pattern="SRC/", indexer=regex_indexer)
        assert only_src.total_files_scanned == 1
        assert [f.file_path for f in only_src.folded_files] == [str(Path("src/alpha.ts"))]


@pytest.mark.asyncio
async def test_batch_parser_injection():
    seen = []

    async def fake_batch(files):
        seen.extend(f.relative_path for f in files)
        return {f.relative_path: index_of(f.relative_path, fn("fake")) for f in files}

    with tempfile.TemporaryDirectory() as tmpdir:
        write_tree(Path(tmpdir), {"x.py": "print('x')\n"})
        result = await search_codebase(tmpdir, "fake", batch_parser=fake_batch)

    assert seen == ["x.py"]
    assert [m.symbol_name for m in result.matching_symbols] == ["fake"]


@pytest.mark.asyncio
async def test_search_rejects_invalid_arguments(regex_indexer):
    with pytest.raises(ValueError):
        await search_codebase(".", "   ", indexer=regex_indexer)
    with pytest.raises(ValueError):
        await search_codebase(".", "alpha", max_results=0, indexer=regex_indexer)


def test_format_search_results():
    indexed = {"a.ts": index_of("a.ts", fn("alpha", documentation="// First letter"))}
    result = rank_and_trim(indexed, "alpha")
    text = format_search_results(result, "alpha")

    assert text.startswith('🔍 Smart Search: "alpha"')
    assert "── Matching Symbols ──" in text
    assert "  function alpha (a.ts:1)" in text
    assert "    💬 First letter" in text
    assert "── Folded File Views ──" in text
    assert "📁 a.ts (typescript, 50 lines)" in text
    assert "smart_unfold" in text


def test_format_empty_search_results():
    text = format_search_results(rank_and_trim({}, "nothing"), "nothing")
    assert "No matching symbols found." in text
    assert "── Matching Symbols ──" not in text
