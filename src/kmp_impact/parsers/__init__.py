"""Language-aware lexical scanning."""

from .lexical_scanner import (
    Language, LanguageSyntax, SYNTAX, detect_language, extensions_for,
    count_meaningful_lines, strip_comments_and_strings, count_tokens,
    iter_identifier_tokens, split_lines, line_number_at
)

__all__ = [
    "Language", "LanguageSyntax", "SYNTAX", "detect_language", "extensions_for",
    "count_meaningful_lines", "strip_comments_and_strings", "count_tokens",
    "iter_identifier_tokens", "split_lines", "line_number_at"
]
