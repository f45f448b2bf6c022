#!/usr/bin/env python3
"""
Configuration for the structural indexer with environment variable overrides.

Environment variables:
    SMART_EXPLORE_ENGINE          "bindings" (in-process py-tree-sitter, default) or "cli"
    SMART_EXPLORE_TREE_SITTER_BIN path to the tree-sitter CLI (default: found on PATH)
    SMART_EXPLORE_GRAMMAR_DIR     directory holding grammar checkouts for the CLI engine
    SMART_EXPLORE_TIMEOUT         seconds allowed per engine invocation
    SMART_EXPLORE_MAX_RESULTS     default cap for search results
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .constants import DEFAULT_RESULTS, ENGINE_TIMEOUT_SECONDS, MAX_RESULTS

logger = logging.getLogger("indexer-config")

ENGINE_CHOICES = ("bindings", "cli")


@dataclass
class IndexerConfig:
    """Settings for a StructuralIndexer session"""
    engine: str = "bindings"
    tree_sitter_bin: Optional[str] = None
    grammar_dir: Optional[str] = None
    timeout_seconds: float = ENGINE_TIMEOUT_SECONDS
    max_results: int = DEFAULT_RESULTS

    def __post_init__(self):
        """Validate configuration"""
        if self.engine not in ENGINE_CHOICES:
            raise ValueError(f"engine must be one of {ENGINE_CHOICES}, got {self.engine!r}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if not 1 <= self.max_results <= MAX_RESULTS:
            raise ValueError(f"max_results must be between 1 and {MAX_RESULTS}, got {self.max_results}")

    @classmethod
    def from_env(cls) -> "IndexerConfig":
        """Build a config from SMART_EXPLORE_* environment variables"""
        engine = os.environ.get("SMART_EXPLORE_ENGINE", "bindings").strip().lower()
        timeout = os.environ.get("SMART_EXPLORE_TIMEOUT")
        max_results = os.environ.get("SMART_EXPLORE_MAX_RESULTS")

        try:
            config = cls(
                engine=engine,
                tree_sitter_bin=os.environ.get("SMART_EXPLORE_TREE_SITTER_BIN") or None,
                grammar_dir=os.environ.get("SMART_EXPLORE_GRAMMAR_DIR") or None,
                timeout_seconds=float(timeout) if timeout else ENGINE_TIMEOUT_SECONDS,
                max_results=int(max_results) if max_results else DEFAULT_RESULTS,
            )
        except ValueError as e:
            raise ValueError(f"Invalid smart-explore environment configuration: {e}") from e

        logger.debug(f"Loaded indexer config from environment: {config}")
        return config
