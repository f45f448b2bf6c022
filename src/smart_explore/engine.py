#!/usr/bin/env python3
"""
Query engines that turn source files into tagged tree-sitter matches.

Two implementations share one interface:

* BindingsEngine runs queries in-process through py-tree-sitter and the grammar
  wheels (tree_sitter_python, tree_sitter_javascript, ...).
* TreeSitterCliEngine shells out to `tree-sitter query` against grammar
  checkouts and normalizes the text report.

Both keep their compiled resources (languages, queries, query files) for the
lifetime of the engine and release them in close().
"""

import asyncio
import importlib
import logging
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from tree_sitter import Language, Parser, Query, QueryCursor

from .capture_normalizer import parse_query_output
from .config import IndexerConfig
from .constants import ENGINE_TIMEOUT_SECONDS
from .languages import LanguageProfile
from .models import Capture, Match, SourceFile

logger = logging.getLogger("query-engine")

MatchMap = Dict[str, List[Match]]


class QueryEngineError(RuntimeError):
    """The engine produced no usable output (crash, timeout, missing binary)"""


class QueryEngine(ABC):
    """Runs one language's query over a batch of files"""

    # The CLI reads sources from disk; the bindings parse in memory
    needs_files_on_disk = False

    @abstractmethod
    def supports(self, profile: LanguageProfile) -> bool:
        """True if a grammar for the profile can be resolved"""

    @abstractmethod
    async def run(self, profile: LanguageProfile, files: Sequence[SourceFile]) -> MatchMap:
        """
        Execute the profile's query over files.

        Returns:
            Mapping of SourceFile.absolute_path to its ordered matches

        Raises:
            QueryEngineError: when the engine fails for the whole batch
        """

    def close(self):
        """Release compiled resources"""


def _capture_from_node(tag: str, node) -> Capture:
    start_row, start_col = node.start_point
    end_row, end_col = node.end_point
    text = None
    # Mirror the CLI report: literal text only for single-line captures
    if start_row == end_row and node.text is not None:
        text = node.text.decode("utf-8", errors="replace")
    return Capture(tag, start_row, start_col, end_row, end_col, text)


class BindingsEngine(QueryEngine):
    """In-process engine built on the py-tree-sitter bindings"""

    def __init__(self):
        # profile name -> (parser, query), or None when the grammar is unavailable
        self._handles: Dict[str, Optional[Tuple[Parser, Query]]] = {}

    def _compiled(self, profile: LanguageProfile) -> Optional[Tuple[Parser, Query]]:
        if profile.name in self._handles:
            return self._handles[profile.name]

        handle = None
        try:
            module = importlib.import_module(profile.grammar_module)
            language = Language(getattr(module, profile.grammar_entry)())
            handle = (Parser(language), Query(language, profile.query))
            logger.debug(f"Compiled {profile.query_key} query for {profile.name}")
        except ImportError:
            logger.info(f"Grammar package {profile.grammar_module} not installed; "
                        f"{profile.name} files will not be outlined")
        except Exception as e:
            logger.warning(f"Failed to load {profile.name} grammar or query: {e}")

        self._handles[profile.name] = handle
        return handle

    def supports(self, profile):
        return self._compiled(profile) is not None

    async def run(self, profile, files):
        handle = self._compiled(profile)
        if handle is None:
            raise QueryEngineError(f"No grammar available for {profile.name}")
        parser, query = handle

        results: MatchMap = {}
        for source_file in files:
            tree = parser.parse(source_file.content.encode("utf-8"))
            cursor = QueryCursor(query)

            matches = []
            for pattern_index, captures in cursor.matches(tree.root_node):
                tagged = [(node, tag) for tag, nodes in captures.items() for node in nodes]
                tagged.sort(key=lambda item: (item[0].start_byte, -item[0].end_byte))
                matches.append(Match(
                    pattern=pattern_index,
                    captures=[_capture_from_node(tag, node) for node, tag in tagged],
                ))
            results[source_file.absolute_path] = matches

        return results

    def close(self):
        self._handles.clear()


class TreeSitterCliEngine(QueryEngine):
    """Engine that invokes the tree-sitter CLI once per language batch"""

    needs_files_on_disk = True

    def __init__(self, tree_sitter_bin: Optional[str] = None,
                 grammar_dir: Optional[str] = None,
                 timeout: float = ENGINE_TIMEOUT_SECONDS):
        self.tree_sitter_bin = tree_sitter_bin or shutil.which("tree-sitter")
        self.grammar_dir = Path(grammar_dir) if grammar_dir else None
        self.timeout = timeout
        self._query_dir: Optional[tempfile.TemporaryDirectory] = None
        self._query_files: Dict[str, Path] = {}

        if not self.tree_sitter_bin:
            logger.warning("tree-sitter CLI not found on PATH; no files will be outlined")

    def grammar_path(self, profile: LanguageProfile) -> Optional[Path]:
        if self.grammar_dir is None:
            return None
        path = self.grammar_dir / profile.grammar_dir_name
        return path if path.is_dir() else None

    def supports(self, profile):
        return self.grammar_path(profile) is not None

    def query_file(self, profile: LanguageProfile) -> Path:
        """Write the profile's query definition once and reuse the file"""
        cached = self._query_files.get(profile.query_key)
        if cached is not None:
            return cached

        if self._query_dir is None:
            self._query_dir = tempfile.TemporaryDirectory(prefix="smart-explore-queries-")

        path = Path(self._query_dir.name) / f"{profile.query_key}.scm"
        path.write_text(profile.query, encoding="utf-8")
        self._query_files[profile.query_key] = path
        return path

    async def run(self, profile, files):
        if not files:
            return {}

        grammar = self.grammar_path(profile)
        if grammar is None:
            raise QueryEngineError(f"No grammar directory for {profile.name}")
        if not self.tree_sitter_bin:
            raise QueryEngineError("tree-sitter CLI not available")

        cmd = [self.tree_sitter_bin, "query", "-p", str(grammar), str(self.query_file(profile))]
        cmd.extend(source_file.absolute_path for source_file in files)
        logger.debug(f"Running tree-sitter on {len(files)} {profile.name} files")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise QueryEngineError(f"Failed to start tree-sitter: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise QueryEngineError(f"tree-sitter timed out after {self.timeout:g} seconds")

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise QueryEngineError(f"tree-sitter exited with {process.returncode}: {message[:500]}")

        return parse_query_output(stdout.decode("utf-8", errors="replace"))

    def close(self):
        if self._query_dir is not None:
            self._query_dir.cleanup()
            self._query_dir = None
        self._query_files.clear()


def create_engine(config: IndexerConfig) -> QueryEngine:
    """Build the engine selected by the configuration"""
    if config.engine == "cli":
        return TreeSitterCliEngine(
            tree_sitter_bin=config.tree_sitter_bin,
            grammar_dir=config.grammar_dir,
            timeout=config.timeout_seconds,
        )
    return BindingsEngine()
