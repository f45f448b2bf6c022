"""
Core constants for smart-explore
"""

# Search result limits
DEFAULT_RESULTS = 20
MAX_RESULTS = 200

# Query engine invocation
ENGINE_TIMEOUT_SECONDS = 30.0

# Signature extraction windows
SIGNATURE_MAX_LEN = 200
SIGNATURE_LOOKAHEAD_LINES = 10
SIGNATURE_BRACE_WINDOW = 500

# Scripting-language docstring fallback looks this many lines below the definition
DOCSTRING_LOOKAHEAD_LINES = 3

# Folded view
FOLDED_IMPORT_DISPLAY_LIMIT = 10
FALLBACK_TOKEN_ESTIMATE = 50  # unsupported languages skip rendering
CHARS_PER_TOKEN = 4

# File discovery guards
MAX_FILE_SIZE_BYTES = 512 * 1024
BINARY_SNIFF_CHARS = 1000
MAX_WALK_DEPTH = 20

# Optional gitignore-style exclusion file read from the search root
IGNORE_FILENAME = ".smartignore"

CODE_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".py", ".pyw",
    ".go",
    ".rs",
    ".rb",
    ".java",
    ".cs",
    ".cpp", ".cc", ".cxx", ".c", ".h", ".hpp", ".hh",
    ".swift",
    ".kt",
    ".php",
    ".vue", ".svelte",
})

IGNORE_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", ".next", "__pycache__",
    ".venv", "venv", "env", ".env", "target", "vendor",
    ".cache", ".turbo", "coverage", ".nyc_output",
    ".claude", ".smart-file-read",
})
