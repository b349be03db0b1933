"""Symbol Extractor - Collects the public declarations of the shared module."""

import logging
import os
import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..core.source_files import SourceFile
from ..parsers.lexical_scanner import Language, line_number_at, strip_comments_and_strings

logger = logging.getLogger(__name__)


class SymbolKind(Enum):
    """Declaration kinds recognised in shared Kotlin sources."""
    CLASS = "class"
    INTERFACE = "interface"
    OBJECT = "object"
    TYPEALIAS = "typealias"
    FUNCTION = "function"
    PROPERTY = "property"


_KIND_ORDER = {kind: index for index, kind in enumerate(SymbolKind)}


@dataclass(frozen=True)
class Symbol:
    """A public declaration of the shared module, keyed by qualified name."""
    qualified_name: str
    name: str
    kind: SymbolKind
    file_path: str
    line: int
    declaration_count: int = 1
    declaring_files: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def package(self) -> str:
        if self.qualified_name == self.name:
            return ""
        return self.qualified_name[:-(len(self.name) + 1)]

    @property
    def has_multiple_declarations(self) -> bool:
        return self.declaration_count > 1

    def to_dict(self):
        return {
            'qualified_name': self.qualified_name,
            'name': self.name,
            'kind': self.kind.value,
            'file': self.file_path,
            'line': self.line,
            'declarations': self.declaration_count,
        }


class SymbolTable:
    """Read-only view of the deduplicated symbols, iterated in name order."""

    def __init__(self, symbols: Iterable[Symbol] = ()):
        ordered = sorted(symbols, key=lambda s: s.qualified_name)
        self._symbols = MappingProxyType({s.qualified_name: s for s in ordered})

        by_name: Dict[str, List[Symbol]] = defaultdict(list)
        for symbol in ordered:
            by_name[symbol.name].append(symbol)
        self._by_name = MappingProxyType({name: tuple(group) for name, group in by_name.items()})

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __contains__(self, qualified_name) -> bool:
        return qualified_name in self._symbols

    def get(self, qualified_name: str) -> Optional[Symbol]:
        return self._symbols.get(qualified_name)

    def by_name(self, name: str) -> Tuple[Symbol, ...]:
        """All symbols whose simple name is ``name``."""
        return self._by_name.get(name, ())

    @property
    def simple_names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._by_name))

    def kind_breakdown(self) -> Dict[str, int]:
        counts = {kind.value: 0 for kind in SymbolKind}
        for symbol in self:
            counts[symbol.kind.value] += 1
        return counts


_IDENT = r'[A-Za-z_]\w*'
_MODIFIER_WORDS = (
    'public', 'private', 'internal', 'protected', 'open', 'abstract', 'final',
    'sealed', 'data', 'enum', 'annotation', 'inner', 'value', 'inline', 'expect',
    'actual', 'override', 'suspend', 'operator', 'infix', 'tailrec', 'external',
    'const', 'lateinit', 'companion', 'crossinline', 'noinline',
)
_PREFIX = (
    r'^[ \t]*(?P<prefix>(?:(?:@[\w.:]+(?:\([^)\r\n]*\))?|'
    + '|'.join(_MODIFIER_WORDS)
    + r')\s+)*)'
)
_GENERICS = r'(?:<[^>\r\n]*>\s*)?'
_RECEIVER = r'(?:[\w.]+(?:<[^>\r\n]*>)?\??\.)?'

DECLARATION_PATTERNS = {
    SymbolKind.CLASS: re.compile(_PREFIX + rf'class\s+(?P<name>{_IDENT})', re.MULTILINE),
    SymbolKind.INTERFACE: re.compile(_PREFIX + rf'(?:fun\s+)?interface\s+(?P<name>{_IDENT})', re.MULTILINE),
    SymbolKind.OBJECT: re.compile(_PREFIX + rf'object\s+(?P<name>{_IDENT})', re.MULTILINE),
    SymbolKind.TYPEALIAS: re.compile(_PREFIX + rf'typealias\s+(?P<name>{_IDENT})', re.MULTILINE),
    SymbolKind.FUNCTION: re.compile(
        _PREFIX + rf'fun\s+{_GENERICS}{_RECEIVER}(?P<name>{_IDENT})\s*\(', re.MULTILINE),
    SymbolKind.PROPERTY: re.compile(
        _PREFIX + rf'(?:val|var)\s+{_GENERICS}{_RECEIVER}(?P<name>{_IDENT})\s*(?=[:=]|by\b)', re.MULTILINE),
}

PACKAGE_PATTERN = re.compile(r'^[ \t]*package\s+([\w.]+)', re.MULTILINE)

_HIDDEN_VISIBILITY = re.compile(r'(?<![@\w.])(?:private|internal|protected)\b')


def is_hidden(prefix: str) -> bool:
    """True when a declaration prefix carries a non-public visibility modifier."""
    return bool(_HIDDEN_VISIBILITY.search(prefix))


def package_of(code: str) -> str:
    """Package declared by stripped Kotlin/Java text, or an empty string."""
    match = PACKAGE_PATTERN.search(code)
    return match.group(1) if match else ""


def qualify(package: str, name: str) -> str:
    return f"{package}.{name}" if package else name


class SymbolExtractor:
    """Scans declaration headers of shared Kotlin files.

    Only the visibility modifier written on the matched header is
    checked; members of private classes are still reported.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or os.cpu_count() or 4

    def extract(self, files: Sequence[SourceFile]) -> SymbolTable:
        """Build the deduplicated symbol table for all shared files."""
        ordered = sorted(files, key=lambda f: f.path)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            per_file = list(executor.map(self.extract_candidates, ordered))

        candidates = [symbol for symbols in per_file for symbol in symbols]
        table = self.merge(candidates)
        logger.info("Extracted %d symbols from %d shared files (%d declarations)",
                    len(table), len(ordered), len(candidates))
        return table

    def extract_candidates(self, source_file: SourceFile) -> List[Symbol]:
        """Every public declaration header of one file, in line order."""
        if source_file.language != Language.KOTLIN:
            logger.debug("Skipping non-Kotlin shared file %s", source_file.path)
            return []

        code = strip_comments_and_strings(source_file.content, Language.KOTLIN)
        package = package_of(code)
        candidates = []

        for kind, pattern in DECLARATION_PATTERNS.items():
            for match in pattern.finditer(code):
                if is_hidden(match.group('prefix')):
                    continue
                name = match.group('name')
                candidates.append(Symbol(
                    qualified_name=qualify(package, name),
                    name=name,
                    kind=kind,
                    file_path=source_file.path,
                    line=line_number_at(code, match.start('name')),
                    declaring_files=(source_file.path,),
                ))

        candidates.sort(key=lambda s: (s.line, _KIND_ORDER[s.kind]))
        return candidates

    @staticmethod
    def merge(candidates: Iterable[Symbol]) -> SymbolTable:
        """Merge candidates by qualified name; the earliest declaration wins."""
        grouped: Dict[str, List[Symbol]] = defaultdict(list)
        for candidate in candidates:
            grouped[candidate.qualified_name].append(candidate)

        merged = []
        for qualified_name, group in grouped.items():
            group.sort(key=lambda s: (s.file_path, s.line, _KIND_ORDER[s.kind]))
            canonical = group[0]
            files = sorted({f for s in group for f in (s.declaring_files or (s.file_path,))})
            merged.append(Symbol(
                qualified_name=qualified_name,
                name=canonical.name,
                kind=canonical.kind,
                file_path=canonical.file_path,
                line=canonical.line,
                declaration_count=sum(s.declaration_count for s in group),
                declaring_files=tuple(files),
            ))

        return SymbolTable(merged)
