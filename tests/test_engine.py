#!/usr/bin/env python3
"""
Tests for the query engines: tree-sitter CLI soft failures and in-process bindings
"""

import os
import stat
import tempfile
from pathlib import Path

import pytest
from tree_sitter import Language, Query

from smart_explore.config import IndexerConfig
from smart_explore.engine import BindingsEngine, QueryEngineError, TreeSitterCliEngine
from smart_explore.indexer import StructuralIndexer
from smart_explore.languages import PROFILES, get_profile
from smart_explore.models import SourceFile

FAKE_REPORT_SCRIPT = r"""#!/bin/sh
# arguments: query -p <grammar> <query file> <files...>
cat "$4" > /dev/null || exit 3
printf '%s\n' "$5"
printf '  pattern: 0\n'
printf '    capture: 1 - name, start: (0, 9), end: (0, 14), text: `alpha`\n'
printf '    capture: func, start: (0, 0), end: (2, 1)\n'
"""


def make_script(directory: Path, body: str) -> str:
    script = directory / "tree-sitter"
    script.write_text(body)
    script.chmod(script.stat().st_mode | stat.S_IEXEC | stat.S_IXGRP | stat.S_IXOTH)
    return str(script)


def make_grammar_dir(directory: Path) -> str:
    grammars = directory / "grammars"
    (grammars / "tree-sitter-javascript").mkdir(parents=True)
    return str(grammars)


@pytest.mark.asyncio
async def test_cli_engine_parses_report_through_indexer():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        config = IndexerConfig(
            engine="cli",
            tree_sitter_bin=make_script(tmp, FAKE_REPORT_SCRIPT),
            grammar_dir=make_grammar_dir(tmp),
        )

        async with StructuralIndexer(config) as indexer:
            content = "function alpha() {\n  return 1;\n}\n"
            file_index = await indexer.index_file(content, "src/alpha.js")

        assert [s.name for s in file_index.symbols] == ["alpha"]
        assert file_index.symbols[0].line_end == 2
        assert file_index.symbols[0].signature == "function alpha()"
        assert indexer.diagnostics.engine_failures == 0


@pytest.mark.asyncio
async def test_cli_engine_nonzero_exit_is_soft_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        config = IndexerConfig(
            engine="cli",
            tree_sitter_bin=make_script(tmp, "#!/bin/sh\necho 'grammar error' >&2\nexit 1\n"),
            grammar_dir=make_grammar_dir(tmp),
        )

        async with StructuralIndexer(config) as indexer:
            file_index = await indexer.index_file("function a() {}\n", "a.js")

        assert file_index.symbols == []
        assert indexer.diagnostics.engine_failures == 1
        assert indexer.diagnostics.degraded_files == 1


@pytest.mark.asyncio
async def test_cli_engine_timeout():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        engine = TreeSitterCliEngine(
            tree_sitter_bin=make_script(tmp, "#!/bin/sh\nexec sleep 10\n"),
            grammar_dir=make_grammar_dir(tmp),
            timeout=0.2,
        )
        source = tmp / "a.js"
        source.write_text("function a() {}\n")

        with pytest.raises(QueryEngineError, match="timed out"):
            await engine.run(get_profile("javascript"), [SourceFile("a.js", str(source), "")])
        engine.close()


@pytest.mark.asyncio
async def test_cli_engine_missing_binary():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        engine = TreeSitterCliEngine(
            tree_sitter_bin=str(tmp / "does-not-exist"),
            grammar_dir=make_grammar_dir(tmp),
        )
        with pytest.raises(QueryEngineError):
            await engine.run(get_profile("javascript"), [SourceFile("a.js", str(tmp / "a.js"), "")])
        engine.close()


def test_cli_engine_supports_only_configured_grammars():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        engine = TreeSitterCliEngine(tree_sitter_bin="/bin/true", grammar_dir=make_grammar_dir(tmp))
        assert engine.supports(get_profile("javascript"))
        assert not engine.supports(get_profile("python"))
        assert not TreeSitterCliEngine(tree_sitter_bin="/bin/true").supports(get_profile("javascript"))


def test_cli_engine_query_files_are_owned_and_removed():
    engine = TreeSitterCliEngine(tree_sitter_bin="/bin/true")
    profile = get_profile("tsx")

    path = engine.query_file(profile)
    assert path.read_text() == profile.query
    assert engine.query_file(get_profile("typescript")) == path

    engine.close()
    assert not path.exists()
    assert not os.path.exists(path.parent)


@pytest.mark.asyncio
async def test_bindings_engine_python():
    pytest.importorskip("tree_sitter_python")
    content = '''import os

class Greeter:
    """Says hello."""

    def greet(self, name):
        return f"hi {name}"

def _helper():
    pass
'''
    async with StructuralIndexer(engine=BindingsEngine()) as indexer:
        file_index = await indexer.index_file(content, "greeter.py")

    assert file_index.imports == ["import os"]
    assert [s.name for s in file_index.symbols] == ["Greeter", "_helper"]

    greeter, helper = file_index.symbols
    assert greeter.kind == "class"
    assert greeter.signature == "class Greeter"
    assert greeter.documentation == '"""Says hello."""'
    assert [(c.name, c.kind) for c in greeter.children] == [("greet", "method")]
    assert not helper.exported
    assert indexer.diagnostics.unsupported_files == 0


@pytest.mark.asyncio
async def test_bindings_engine_typescript_exports():
    pytest.importorskip("tree_sitter_typescript")
    content = "export function alpha() { return 1; }\ninterface Shape {\n  area(): number;\n}\n"

    async with StructuralIndexer(engine=BindingsEngine()) as indexer:
        file_index = await indexer.index_file(content, "alpha.ts")

    by_name = {s.name: s for s in file_index.symbols}
    assert by_name["alpha"].exported
    assert by_name["alpha"].signature == "export function alpha()"
    assert by_name["Shape"].kind == "interface"
    assert not by_name["Shape"].exported


@pytest.mark.asyncio
async def test_bindings_engine_missing_grammar_module():
    engine = BindingsEngine()
    profile = get_profile("ruby")
    try:
        import tree_sitter_ruby  # noqa: F401
    except ImportError:
        assert not engine.supports(profile)
        with pytest.raises(QueryEngineError):
            await engine.run(profile, [SourceFile("a.rb", "a.rb", "def a; end\n")])
    else:
        assert engine.supports(profile)
    engine.close()


@pytest.mark.parametrize("language", sorted(PROFILES))
def test_profile_query_compiles_against_grammar(language):
    profile = get_profile(language)
    module = pytest.importorskip(profile.grammar_module)

    grammar = Language(getattr(module, profile.grammar_entry)())
    Query(grammar, profile.query)

    engine = BindingsEngine()
    assert engine.supports(profile)
    engine.close()
