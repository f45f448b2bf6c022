"""
smart-explore: token-efficient structural code exploration.

Source files are parsed with tree-sitter into a symbol forest, rendered as
folded views (signatures without bodies), searched by fuzzy symbol match and
unfolded one symbol at a time.
"""

__version__ = "0.1.0"

from .config import IndexerConfig
from .indexer import StructuralIndexer
from .models import FileIndex, IndexDiagnostics, RankedSymbolMatch, SearchResult, Symbol

__all__ = [
    'FileIndex',
    'IndexDiagnostics',
    'IndexerConfig',
    'RankedSymbolMatch',
    'SearchResult',
    'StructuralIndexer',
    'Symbol',
    '__version__',
]
