#!/usr/bin/env python3
"""
MCP server exposing smart_search, smart_outline and smart_unfold
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
import mcp.server.stdio
import mcp.types as types

from . import __version__
from .config import IndexerConfig
from .constants import MAX_RESULTS
from .folded_view import format_folded_view
from .indexer import StructuralIndexer
from .models import FileIndex, SearchResult
from .search import format_search_results, search_codebase
from .utils import configure_logging, get_logger

logger = get_logger("smart-explore-mcp")

SERVER_NAME = "smart-explore"

ReadFn = Callable[[str], Awaitable[str]]
SearchFn = Callable[..., Awaitable[SearchResult]]
IndexFn = Callable[[str, str], Awaitable[FileIndex]]
UnfoldFn = Callable[[str, str, str, FileIndex], Optional[str]]


async def read_text_file(path: str) -> str:
    return await asyncio.to_thread(Path(path).read_text, encoding="utf-8", errors="replace")


def text_result(text: str) -> List[Dict[str, str]]:
    return [{"type": "text", "text": text}]


TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "smart_search",
        "description": (
            "Search codebase for symbols, functions, classes using tree-sitter AST parsing. "
            "Returns folded structural views with token counts."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Symbol name, signature fragment or doc phrase"},
                "path": {"type": "string", "description": "Root directory to search (default: working directory)"},
                "max_results": {
                    "type": "integer",
                    "description": f"Maximum matching symbols (1-{MAX_RESULTS})",
                    "minimum": 1,
                    "maximum": MAX_RESULTS,
                },
                "file_pattern": {"type": "string", "description": "Only search paths containing this substring"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "smart_outline",
        "description": "Get structural outline of a file with symbol signatures and folded bodies.",
        "inputSchema": {
            "type": "object",
            "properties": {"file_path": {"type": "string"}},
            "required": ["file_path"],
        },
    },
    {
        "name": "smart_unfold",
        "description": "Expand one symbol from a file and return full source for that symbol only.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "file_path": {"type": "string"},
                "symbol_name": {"type": "string", "description": "Name or dotted path, e.g. MyClass.method"},
            },
            "required": ["file_path", "symbol_name"],
        },
    },
]


class SmartExploreTools:
    """Tool handlers, with injectable collaborators for testing"""

    def __init__(self,
                 indexer: Optional[StructuralIndexer] = None,
                 read_fn: Optional[ReadFn] = None,
                 search_fn: Optional[SearchFn] = None,
                 index_fn: Optional[IndexFn] = None,
                 unfold_fn: Optional[UnfoldFn] = None,
                 default_max_results: Optional[int] = None,
                 working_dir: Optional[str] = None):
        self.indexer = indexer or StructuralIndexer()
        self.read_fn = read_fn or read_text_file
        self.search_fn = search_fn or search_codebase
        self.index_fn = index_fn or self.indexer.index_file
        self.unfold_fn = unfold_fn
        self.default_max_results = default_max_results or self.indexer.config.max_results
        self.working_dir = working_dir or os.environ.get("MCP_WORKING_DIR") or os.getcwd()
        self._handlers = {
            "smart_search": self.smart_search,
            "smart_outline": self.smart_outline,
            "smart_unfold": self.smart_unfold,
        }

    @staticmethod
    def tool_definitions() -> List[Dict[str, Any]]:
        return [dict(tool) for tool in TOOL_DEFINITIONS]

    @property
    def tool_names(self) -> List[str]:
        return sorted(self._handlers)

    def _resolve_path(self, path: Optional[str]) -> str:
        candidate = Path(path) if path else Path(self.working_dir)
        if not candidate.is_absolute():
            candidate = Path(self.working_dir) / candidate
        return str(candidate.resolve())

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> List[Dict[str, str]]:
        """
        Dispatch a tool call.

        Raises:
            ValueError: unknown tool name or missing required argument
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")
        return await handler(arguments or {})

    async def smart_search(self, arguments: Dict[str, Any]) -> List[Dict[str, str]]:
        query = arguments.get("query")
        if not query:
            raise ValueError("Missing query argument")

        max_results = min(int(arguments.get("max_results") or self.default_max_results), MAX_RESULTS)
        root = self._resolve_path(arguments.get("path"))

        kwargs: Dict[str, Any] = {"max_results": max_results, "file_pattern": arguments.get("file_pattern")}
        if self.search_fn is search_codebase:
            kwargs["indexer"] = self.indexer
        result = await self.search_fn(root, query, **kwargs)
        return text_result(format_search_results(result, query))

    async def smart_outline(self, arguments: Dict[str, Any]) -> List[Dict[str, str]]:
        file_path = arguments.get("file_path")
        if not file_path:
            raise ValueError("Missing file_path argument")

        content = await self.read_fn(self._resolve_path(file_path))
        parsed = await self.index_fn(content, self._resolve_path(file_path))
        if parsed.symbols:
            return text_result(format_folded_view(parsed))
        return text_result(
            f"Could not parse {file_path}. File may use an unsupported language or be empty."
        )

    async def smart_unfold(self, arguments: Dict[str, Any]) -> List[Dict[str, str]]:
        file_path = arguments.get("file_path")
        symbol_name = arguments.get("symbol_name")
        if not file_path or not symbol_name:
            raise ValueError("Missing file_path or symbol_name argument")

        absolute = self._resolve_path(file_path)
        content = await self.read_fn(absolute)
        parsed = await self.index_fn(content, absolute)

        if self.unfold_fn is not None:
            unfolded = self.unfold_fn(content, absolute, symbol_name, parsed)
        else:
            unfolded = await self.indexer.unfold(content, absolute, symbol_name, file_index=parsed)
        if unfolded:
            return text_result(unfolded)

        if parsed.symbols:
            available = "\n".join(f"  - {s.name} ({s.kind})" for s in parsed.symbols)
            return text_result(
                f'Symbol "{symbol_name}" not found in {file_path}.\n\nAvailable symbols:\n{available}'
            )
        return text_result(f"Could not parse {file_path}. File may be unsupported or empty.")


class SmartExploreMCPServer:
    """MCP server implementation for smart-explore"""

    def __init__(self, tools: Optional[SmartExploreTools] = None):
        self.app = Server(SERVER_NAME)
        self.tools = tools or SmartExploreTools(StructuralIndexer(IndexerConfig.from_env()))
        self._setup_handlers()

    def _setup_handlers(self):
        """Set up MCP handlers"""

        @self.app.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return [
                types.Tool(name=tool["name"], description=tool["description"], inputSchema=tool["inputSchema"])
                for tool in self.tools.tool_definitions()
            ]

        @self.app.call_tool()
        async def handle_call_tool(name: str, arguments: dict | None) -> List[types.TextContent]:
            logger.info(f"Tool call: {name}")
            content = await self.tools.call_tool(name, arguments)
            return [types.TextContent(type="text", text=item["text"]) for item in content]

    async def run(self):
        """Run the server over stdio until the client disconnects"""
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await self.app.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=SERVER_NAME,
                        server_version=__version__,
                        capabilities=self.app.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            self.tools.indexer.close()
            diagnostics = self.tools.indexer.diagnostics
            logger.info(f"Shutting down; index diagnostics: {diagnostics.to_dict()}")


def main():
    """Console entry point for the stdio MCP server"""
    configure_logging()
    logger.info(f"smart-explore MCP server {__version__} starting (cwd: {os.getcwd()})")
    asyncio.run(SmartExploreMCPServer().run())


if __name__ == "__main__":
    main()
