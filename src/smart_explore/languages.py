#!/usr/bin/env python3
"""
Language detection, tree-sitter query definitions and per-language profiles
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, Optional

from .heuristics import (
    AlwaysExported,
    AnnotatedDeclarationExtractor,
    ContainerDelimited,
    DeclarationKeyword,
    DocstringExtractor,
    ExportConvention,
    HeuristicExtractor,
    IdentifierCase,
    LeadingUnderscore,
    PreprocessorExtractor,
)

UNKNOWN_LANGUAGE = "unknown"

EXT_TO_LANG: Dict[str, str] = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyw": "python",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hh": "cpp",
}

# Capture tag -> symbol kind
KIND_MAP: Dict[str, str] = {
    "func": "function",
    "const_func": "function",
    "cls": "class",
    "method": "method",
    "iface": "interface",
    "tdef": "type",
    "enm": "enum",
    "struct_def": "struct",
    "trait_def": "trait",
    "impl_def": "impl",
}

NAME_TAG = "name"
IMPORT_TAG = "imp"
EXPORT_TAG = "exp"

QUERIES: Dict[str, str] = {
    "javascript": """
(function_declaration name: (identifier) @name) @func
(generator_function_declaration name: (identifier) @name) @func
(lexical_declaration (variable_declarator name: (identifier) @name value: [(arrow_function) (function_expression)])) @const_func
(class_declaration name: (identifier) @name) @cls
(method_definition name: (property_identifier) @name) @method
(import_statement) @imp
(export_statement) @exp
""",
    "typescript": """
(function_declaration name: (identifier) @name) @func
(lexical_declaration (variable_declarator name: (identifier) @name value: [(arrow_function) (function_expression)])) @const_func
(class_declaration name: (type_identifier) @name) @cls
(abstract_class_declaration name: (type_identifier) @name) @cls
(method_definition name: (property_identifier) @name) @method
(interface_declaration name: (type_identifier) @name) @iface
(type_alias_declaration name: (type_identifier) @name) @tdef
(enum_declaration name: (identifier) @name) @enm
(import_statement) @imp
(export_statement) @exp
""",
    "python": """
(function_definition name: (identifier) @name) @func
(class_definition name: (identifier) @name) @cls
(import_statement) @imp
(import_from_statement) @imp
""",
    "go": """
(function_declaration name: (identifier) @name) @func
(method_declaration name: (field_identifier) @name) @method
(type_declaration (type_spec name: (type_identifier) @name)) @tdef
(import_declaration) @imp
""",
    "rust": """
(function_item name: (identifier) @name) @func
(struct_item name: (type_identifier) @name) @struct_def
(enum_item name: (type_identifier) @name) @enm
(trait_item name: (type_identifier) @name) @trait_def
(impl_item type: (type_identifier) @name) @impl_def
(use_declaration) @imp
""",
    "ruby": """
(method name: (identifier) @name) @func
(class name: (constant) @name) @cls
(module name: (constant) @name) @cls
((call method: (identifier) @_require) @imp
  (#match? @_require "^(require|require_relative|load)$"))
""",
    "java": """
(method_declaration name: (identifier) @name) @method
(constructor_declaration name: (identifier) @name) @method
(class_declaration name: (identifier) @name) @cls
(interface_declaration name: (identifier) @name) @iface
(enum_declaration name: (identifier) @name) @enm
(import_declaration) @imp
""",
    "c": """
(function_definition declarator: (function_declarator declarator: (identifier) @name)) @func
(struct_specifier name: (type_identifier) @name body: (field_declaration_list)) @struct_def
(enum_specifier name: (type_identifier) @name body: (enumerator_list)) @enm
(type_definition declarator: (type_identifier) @name) @tdef
(preproc_include) @imp
""",
    "cpp": """
(function_definition declarator: (function_declarator declarator: (identifier) @name)) @func
(function_definition declarator: (function_declarator declarator: (field_identifier) @name)) @func
(function_definition declarator: (function_declarator declarator: (qualified_identifier name: (identifier) @name))) @func
(class_specifier name: (type_identifier) @name body: (field_declaration_list)) @cls
(struct_specifier name: (type_identifier) @name body: (field_declaration_list)) @struct_def
(enum_specifier name: (type_identifier) @name body: (enumerator_list)) @enm
(preproc_include) @imp
""",
}


@dataclass(frozen=True)
class LanguageProfile:
    """Everything needed to index one language"""
    name: str
    query_key: str
    grammar_module: str  # importable python binding, e.g. tree_sitter_python
    grammar_entry: str  # callable on the module that returns the language pointer
    grammar_dir_name: str  # grammar directory name for the tree-sitter CLI
    extractor: HeuristicExtractor
    exports: ExportConvention

    @property
    def query(self) -> str:
        return QUERIES[self.query_key]


_BRACES = HeuristicExtractor()
_DOCSTRINGS = DocstringExtractor()
_PREPROCESSOR = PreprocessorExtractor()
_EXPORT_STATEMENTS = ContainerDelimited()

PROFILES: Dict[str, LanguageProfile] = {
    "javascript": LanguageProfile(
        "javascript", "javascript", "tree_sitter_javascript", "language",
        "tree-sitter-javascript", _BRACES, _EXPORT_STATEMENTS),
    "typescript": LanguageProfile(
        "typescript", "typescript", "tree_sitter_typescript", "language_typescript",
        "tree-sitter-typescript/typescript", _BRACES, _EXPORT_STATEMENTS),
    "tsx": LanguageProfile(
        "tsx", "typescript", "tree_sitter_typescript", "language_tsx",
        "tree-sitter-typescript/tsx", _BRACES, _EXPORT_STATEMENTS),
    "python": LanguageProfile(
        "python", "python", "tree_sitter_python", "language",
        "tree-sitter-python", _DOCSTRINGS, LeadingUnderscore()),
    "go": LanguageProfile(
        "go", "go", "tree_sitter_go", "language",
        "tree-sitter-go", _BRACES, IdentifierCase()),
    "rust": LanguageProfile(
        "rust", "rust", "tree_sitter_rust", "language",
        "tree-sitter-rust", _BRACES, DeclarationKeyword("pub")),
    "ruby": LanguageProfile(
        "ruby", "ruby", "tree_sitter_ruby", "language",
        "tree-sitter-ruby", _BRACES, AlwaysExported()),
    "java": LanguageProfile(
        "java", "java", "tree_sitter_java", "language",
        "tree-sitter-java", AnnotatedDeclarationExtractor(),
        DeclarationKeyword("public", skip_annotations=True)),
    "c": LanguageProfile(
        "c", "c", "tree_sitter_c", "language",
        "tree-sitter-c", _PREPROCESSOR, AlwaysExported()),
    "cpp": LanguageProfile(
        "cpp", "cpp", "tree_sitter_cpp", "language",
        "tree-sitter-cpp", _PREPROCESSOR, AlwaysExported()),
}


def detect_language(file_path: str) -> str:
    """Map a file path to a language name by extension, or "unknown" """
    ext = PurePath(file_path).suffix.lower()
    return EXT_TO_LANG.get(ext, UNKNOWN_LANGUAGE)


def get_profile(language: str) -> Optional[LanguageProfile]:
    return PROFILES.get(language)


def export_convention_for(language: str) -> ExportConvention:
    profile = PROFILES.get(language)
    return profile.exports if profile else AlwaysExported()


def extractor_for(language: str) -> HeuristicExtractor:
    profile = PROFILES.get(language)
    return profile.extractor if profile else _BRACES
