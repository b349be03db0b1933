"""Lexical scanning shared by all analyzers.

The analyzers never build a syntax tree. Instead every source file is
reduced to "code only" text by blanking comments and quoted literals, and
the remaining text is matched with compiled patterns. This module owns the
per-language conventions for that reduction and the meaningful line
counter.
"""

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Dict, Iterator, List, Optional, Pattern, Tuple, Union


class Language(Enum):
    """Source languages understood by the scanners."""
    KOTLIN = "kotlin"
    JAVA = "java"
    SWIFT = "swift"
    OBJECTIVE_C = "objective-c"


@dataclass(frozen=True)
class LanguageSyntax:
    """Lexical conventions of a language."""
    language: Language
    extensions: Tuple[str, ...]
    line_comment_markers: Tuple[str, ...]
    literal_delimiters: Tuple[str, ...]


SYNTAX: Dict[Language, LanguageSyntax] = {
    Language.KOTLIN: LanguageSyntax(
        language=Language.KOTLIN,
        extensions=('.kt', '.kts'),
        line_comment_markers=('//',),
        literal_delimiters=('"""', '"', "'"),
    ),
    Language.JAVA: LanguageSyntax(
        language=Language.JAVA,
        extensions=('.java',),
        line_comment_markers=('//',),
        literal_delimiters=('"""', '"', "'"),
    ),
    Language.SWIFT: LanguageSyntax(
        language=Language.SWIFT,
        extensions=('.swift',),
        line_comment_markers=('//',),
        literal_delimiters=('"""', '"'),
    ),
    Language.OBJECTIVE_C: LanguageSyntax(
        language=Language.OBJECTIVE_C,
        extensions=('.m', '.mm', '.h'),
        line_comment_markers=('//',),
        literal_delimiters=('"', "'"),
    ),
}

DEFAULT_LINE_COMMENT_MARKERS = ('//', '#')

_EXTENSION_MAP = {
    extension: syntax.language
    for syntax in SYNTAX.values()
    for extension in syntax.extensions
}

_LINE_BREAK = re.compile(r'\r\n|\r|\n')
_NON_NEWLINE = re.compile(r'[^\r\n]')
_TOKEN = re.compile(r'(?:[^\W\d]|\$)[\w$]*|\d[\w$]*')

_strip_patterns: Dict[Language, Pattern] = {}


def detect_language(path: Union[str, PurePath]) -> Optional[Language]:
    """Map a file path to its language by extension, or None."""
    suffix = PurePath(path).suffix.lower()
    return _EXTENSION_MAP.get(suffix)


def extensions_for(languages) -> Tuple[str, ...]:
    """All file extensions recognised for the given languages."""
    extensions: List[str] = []
    for language in languages:
        extensions.extend(SYNTAX[language].extensions)
    return tuple(extensions)


def split_lines(content: str) -> List[str]:
    """Split on LF, CRLF or CR alike."""
    if not content:
        return []
    lines = _LINE_BREAK.split(content)
    # A trailing terminator does not start another line
    if lines and lines[-1] == '':
        lines.pop()
    return lines


def count_meaningful_lines(content: str, language: Optional[Language] = None) -> int:
    """Count non-blank lines that are not single-line comments.

    Block comment interiors are counted like code; only lines starting
    with a line comment marker are skipped.
    """
    if language is None:
        markers = DEFAULT_LINE_COMMENT_MARKERS
    else:
        markers = SYNTAX[language].line_comment_markers

    count = 0
    for line in split_lines(content):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(markers):
            continue
        count += 1
    return count


def _build_strip_pattern(syntax: LanguageSyntax) -> Pattern:
    alternatives = [re.escape(marker) + r'[^\r\n]*' for marker in syntax.line_comment_markers]
    alternatives.append(r'/\*.*?(?:\*/|\Z)')

    for delimiter in syntax.literal_delimiters:
        if len(delimiter) == 3:
            quote = re.escape(delimiter)
            alternatives.append(rf'{quote}.*?(?:{quote}|\Z)')
        else:
            quote = re.escape(delimiter)
            # Unterminated single-line literals stop at the end of the line
            alternatives.append(rf'{quote}(?:\\.|[^{quote}\\\r\n])*(?:{quote}|(?=[\r\n])|\Z)')

    return re.compile('|'.join(alternatives), re.DOTALL)


def _strip_pattern(language: Language) -> Pattern:
    pattern = _strip_patterns.get(language)
    if pattern is None:
        pattern = _build_strip_pattern(SYNTAX[language])
        _strip_patterns[language] = pattern
    return pattern


def _blank(match) -> str:
    return _NON_NEWLINE.sub(' ', match.group(0))


def strip_comments_and_strings(content: str, language: Language) -> str:
    """Blank out comments and quoted literals, keeping line structure."""
    return _strip_pattern(language).sub(_blank, content)


def iter_identifier_tokens(text: str) -> Iterator[str]:
    """Yield every whole identifier token of already stripped text."""
    for match in _TOKEN.finditer(text):
        token = match.group(0)
        if not token[0].isdigit():
            yield token


def count_tokens(text: str) -> Counter:
    """Occurrences of each identifier token."""
    return Counter(iter_identifier_tokens(text))


def line_number_at(text: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return len(_LINE_BREAK.findall(text, 0, offset)) + 1
