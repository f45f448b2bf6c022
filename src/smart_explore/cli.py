"""
Command-line interface: search, outline and unfold from a terminal.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import IndexerConfig
from .constants import MAX_RESULTS
from .folded_view import format_folded_view
from .indexer import StructuralIndexer
from .search import format_search_results, search_codebase
from .utils import configure_logging, get_logger

logger = get_logger("cli")


def _read_source(file_path: str) -> Optional[str]:
    try:
        return Path(file_path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        print(f"# Cannot read {file_path}: {e}", file=sys.stderr)
        return None


async def run_search(args: argparse.Namespace, indexer: StructuralIndexer) -> int:
    limit = max(1, min(args.limit or indexer.config.max_results, MAX_RESULTS))
    if not args.json:
        print(f"# Searching for '{args.query}' under {args.path}", file=sys.stderr)

    result = await search_codebase(
        args.path, args.query,
        max_results=limit,
        file_pattern=args.file_pattern,
        indexer=indexer,
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_search_results(result, args.query))
    return 0


async def run_outline(args: argparse.Namespace, indexer: StructuralIndexer) -> int:
    content = _read_source(args.file)
    if content is None:
        return 1

    file_index = await indexer.index_file(content, args.file)
    if args.json:
        print(json.dumps(file_index.to_dict(), indent=2))
    elif file_index.symbols:
        print(format_folded_view(file_index))
    else:
        print(f"Could not parse {args.file}. File may use an unsupported language or be empty.")
    return 0


async def run_unfold(args: argparse.Namespace, indexer: StructuralIndexer) -> int:
    content = _read_source(args.file)
    if content is None:
        return 1

    unfolded = await indexer.unfold(content, args.file, args.symbol)
    if unfolded is None:
        print(f'# Symbol "{args.symbol}" not found in {args.file}', file=sys.stderr)
        return 1

    print(unfolded)
    return 0


COMMANDS = {
    "search": run_search,
    "outline": run_outline,
    "unfold": run_unfold,
}


def parse_args(args: List[str]) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(prog="smart-explore", description="Structural code exploration")
    parser.add_argument('--log-level', help='Override SMART_EXPLORE_LOG_LEVEL')
    subparsers = parser.add_subparsers(dest='command', required=True)

    search = subparsers.add_parser('search', help='Fuzzy symbol search across a directory')
    search.add_argument('query', help='Search query')
    search.add_argument('--path', default='.', help='Root directory (default: current directory)')
    search.add_argument('--limit', type=int, help=f'Maximum matching symbols (1-{MAX_RESULTS})')
    search.add_argument('--file-pattern', help='Only search paths containing this substring')
    search.add_argument('--json', action='store_true', help='Output JSON')

    outline = subparsers.add_parser('outline', help='Folded structural view of one file')
    outline.add_argument('file', help='Source file')
    outline.add_argument('--json', action='store_true', help='Output JSON')

    unfold = subparsers.add_parser('unfold', help='Print the full source of one symbol')
    unfold.add_argument('file', help='Source file')
    unfold.add_argument('symbol', help='Symbol name or dotted path, e.g. MyClass.method')

    return parser.parse_args(args)


async def main(args: List[str]) -> int:
    """Main entry point"""
    parsed = parse_args(args)
    configure_logging(log_level=parsed.log_level)

    try:
        config = IndexerConfig.from_env()
    except ValueError as e:
        print(f"# FATAL ERROR: {e}", file=sys.stderr)
        return 2

    async with StructuralIndexer(config) as indexer:
        code = await COMMANDS[parsed.command](parsed, indexer)
        logger.debug(f"Index diagnostics: {indexer.diagnostics.to_dict()}")
        return code


def run():
    """Console script entry point"""
    sys.exit(asyncio.run(main(sys.argv[1:])))


if __name__ == "__main__":
    run()
