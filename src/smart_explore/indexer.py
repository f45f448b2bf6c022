#!/usr/bin/env python3
"""
Structural indexer session: owns the query engine and builds file indexes.

A StructuralIndexer is created once, reused across requests and closed explicitly
(or used as an async context manager). Failures never propagate: unsupported
languages and engine errors produce empty indexes and are counted in
`diagnostics`.
"""

import logging
import tempfile
from pathlib import Path, PurePath
from typing import Dict, List, Optional, Sequence

from .config import IndexerConfig
from .constants import FALLBACK_TOKEN_ESTIMATE
from .engine import QueryEngine, QueryEngineError, create_engine
from .folded_view import estimate_tokens, format_folded_view
from .languages import LanguageProfile, detect_language, get_profile
from .models import FileIndex, IndexDiagnostics, Match, SourceFile
from .symbol_builder import build_symbols
from .unfold import unfold_symbol
from .utils import log_with_context

logger = logging.getLogger("structural-indexer")


def split_lines(content: str) -> List[str]:
    """Split on newlines only, keeping a trailing empty line like the line count of an editor"""
    return content.split("\n")


def empty_index(file_path: str, language: str, lines: Sequence[str]) -> FileIndex:
    """Index for a file whose language has no usable grammar"""
    return FileIndex(
        file_path=file_path,
        language=language,
        total_lines=len(lines),
        folded_token_estimate=FALLBACK_TOKEN_ESTIMATE,
    )


def assemble_index(file_path: str, language: str, matches: Sequence[Match],
                   lines: Sequence[str]) -> FileIndex:
    """Run the symbol builder and derive the folded token estimate"""
    result = build_symbols(matches, lines, language)
    file_index = FileIndex(
        file_path=file_path,
        language=language,
        symbols=result.symbols,
        imports=result.imports,
        total_lines=len(lines),
    )
    file_index.folded_token_estimate = estimate_tokens(format_folded_view(file_index))
    return file_index


class StructuralIndexer:
    """Builds FileIndex objects through a long-lived query engine"""

    def __init__(self, config: Optional[IndexerConfig] = None,
                 engine: Optional[QueryEngine] = None):
        self.config = config or IndexerConfig()
        self.engine = engine or create_engine(self.config)
        self.diagnostics = IndexDiagnostics()
        self._closed = False

    async def __aenter__(self) -> "StructuralIndexer":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """Release engine resources; safe to call more than once"""
        if not self._closed:
            self.engine.close()
            self._closed = True

    def _resolve(self, language: str) -> Optional[LanguageProfile]:
        profile = get_profile(language)
        if profile is None or not self.engine.supports(profile):
            return None
        return profile

    async def _run_engine(self, profile: LanguageProfile,
                          files: Sequence[SourceFile]) -> Dict[str, List[Match]]:
        try:
            return await self.engine.run(profile, files)
        except QueryEngineError as e:
            self.diagnostics.engine_failures += 1
            self.diagnostics.degraded_files += len(files)
            log_with_context(
                logger, logging.WARNING,
                f"Query engine failed for {len(files)} {profile.name} files: {e}",
                language=profile.name, files=len(files),
            )
            return {}

    async def index_file(self, content: str, file_path: str) -> FileIndex:
        """
        Build the structural index of a single file.

        Args:
            content: File content
            file_path: Path used for language detection and display

        Returns:
            FileIndex (empty symbols for unsupported languages or engine failures)
        """
        language = detect_language(file_path)
        lines = split_lines(content)
        self.diagnostics.files_indexed += 1

        profile = self._resolve(language)
        if profile is None:
            self.diagnostics.unsupported_files += 1
            return empty_index(file_path, language, lines)

        if not self.engine.needs_files_on_disk:
            source = SourceFile(relative_path=file_path, absolute_path=file_path, content=content)
            matches = await self._run_engine(profile, [source])
            return assemble_index(file_path, language, matches.get(file_path, []), lines)

        suffix = PurePath(file_path).suffix or ".txt"
        with tempfile.TemporaryDirectory(prefix="smart-explore-src-") as tmp_dir:
            tmp_file = Path(tmp_dir) / f"source{suffix}"
            tmp_file.write_text(content, encoding="utf-8")
            source = SourceFile(relative_path=file_path, absolute_path=str(tmp_file), content=content)
            matches = await self._run_engine(profile, [source])
            return assemble_index(file_path, language, matches.get(str(tmp_file), []), lines)

    async def index_batch(self, files: Sequence[SourceFile]) -> Dict[str, FileIndex]:
        """
        Index many files with one engine run per detected language.

        Returns:
            Mapping of relative path to FileIndex, in input order within each language
        """
        groups: Dict[str, List[SourceFile]] = {}
        for source_file in files:
            groups.setdefault(detect_language(source_file.relative_path), []).append(source_file)

        results: Dict[str, FileIndex] = {}
        for language, group in groups.items():
            self.diagnostics.files_indexed += len(group)
            profile = self._resolve(language)

            if profile is None:
                self.diagnostics.unsupported_files += len(group)
                for source_file in group:
                    results[source_file.relative_path] = empty_index(
                        source_file.relative_path, language, split_lines(source_file.content))
                continue

            batch = await self._run_engine(profile, group)
            for source_file in group:
                results[source_file.relative_path] = assemble_index(
                    source_file.relative_path,
                    language,
                    batch.get(source_file.absolute_path, []),
                    split_lines(source_file.content),
                )

        logger.debug(f"Indexed {len(results)} files across {len(groups)} languages")
        return results

    async def unfold(self, content: str, file_path: str, symbol_name: str,
                     file_index: Optional[FileIndex] = None) -> Optional[str]:
        """Return the source of one symbol, indexing the file first unless an index is given"""
        if file_index is None:
            file_index = await self.index_file(content, file_path)
        return unfold_symbol(content, file_path, symbol_name, file_index)
