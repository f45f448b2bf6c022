"""
Shared fixtures: fake query engines that stand in for tree-sitter
"""

import re
from typing import Dict, List

import pytest

from smart_explore.engine import QueryEngine, QueryEngineError
from smart_explore.indexer import StructuralIndexer
from smart_explore.models import Capture, Match

FUNCTION_LINE = re.compile(r"^(?P<export>export\s+)?function\s+(?P<name>\w+)")


class LineRegexEngine(QueryEngine):
    """Reports one `func` match per `function name` line, plus `exp` for exported ones"""

    def __init__(self):
        self.runs: List[List[str]] = []
        self.closed = False

    def supports(self, profile):
        return True

    async def run(self, profile, files):
        self.runs.append([f.absolute_path for f in files])
        results: Dict[str, List[Match]] = {}
        for source_file in files:
            matches = []
            for row, line in enumerate(source_file.content.split("\n")):
                found = FUNCTION_LINE.match(line)
                if not found:
                    continue
                end_col = len(line)
                if found.group("export"):
                    matches.append(Match(pattern=6, captures=[Capture("exp", row, 0, row, end_col)]))
                name_start = found.start("name")
                matches.append(Match(pattern=0, captures=[
                    Capture("func", row, found.start("export") if found.group("export") else 0, row, end_col),
                    Capture("name", row, name_start, row, found.end("name"), found.group("name")),
                ]))
            results[source_file.absolute_path] = matches
        return results

    def close(self):
        self.closed = True


class FailingEngine(QueryEngine):
    """Every run fails as a crashed or timed-out engine would"""

    def supports(self, profile):
        return True

    async def run(self, profile, files):
        raise QueryEngineError("tree-sitter exited with 1: boom")


class NoGrammarEngine(QueryEngine):
    def supports(self, profile):
        return False

    async def run(self, profile, files):
        raise AssertionError("run must not be called for unsupported languages")


@pytest.fixture
def regex_engine():
    return LineRegexEngine()


@pytest.fixture
def regex_indexer(regex_engine):
    indexer = StructuralIndexer(engine=regex_engine)
    yield indexer
    indexer.close()


@pytest.fixture
def failing_indexer():
    indexer = StructuralIndexer(engine=FailingEngine())
    yield indexer
    indexer.close()


@pytest.fixture
def unsupported_indexer():
    indexer = StructuralIndexer(engine=NoGrammarEngine())
    yield indexer
    indexer.close()
