"""Usage Analyzer - Finds references to shared symbols in application files."""

import logging
import os
from collections import Counter, defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Pattern, Sequence

from ..core.source_files import SourceFile
from ..parsers.lexical_scanner import count_tokens, strip_comments_and_strings
from .import_graph_builder import blank_import_lines
from .symbol_extractor import SymbolTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    """A symbol referenced by one application file, with its occurrence count."""
    symbol: str
    file_path: str
    platform: str
    count: int

    def to_dict(self):
        return {
            'symbol': self.symbol,
            'file': self.file_path,
            'platform': self.platform,
            'count': self.count,
        }


@dataclass
class UsageAnalysis:
    """References found across all scanned application files."""
    references: List[Reference]
    files_analyzed: int
    analysis_summary: Dict[str, Any]

    def references_for(self, platform: str) -> List[Reference]:
        return [r for r in self.references if r.platform == platform]


class UsageAnalyzer:
    """Name-based usage detection over comment and literal free text.

    Import statements are not references. Identically named but unrelated
    identifiers are counted as references; the metric is defined by name
    matching, not by type resolution.
    """

    def __init__(self, symbol_table: SymbolTable,
                 interop_patterns: Optional[Mapping[str, Pattern]] = None,
                 max_workers: Optional[int] = None):
        self.symbol_table = symbol_table
        self.interop_patterns = dict(interop_patterns or {})
        self.max_workers = max_workers or os.cpu_count() or 4

    def analyze_usages(self, files: Sequence[SourceFile]) -> UsageAnalysis:
        """Detect references in every file; output is sorted by file then symbol."""
        ordered = sorted(files, key=lambda f: f.path)
        if len(self.symbol_table) == 0 or not ordered:
            references: List[Reference] = []
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                per_file = list(executor.map(self.analyze_file, ordered))
            references = [reference for file_refs in per_file for reference in file_refs]

        summary = self._generate_analysis_summary(references, ordered)
        logger.info("Found %d references (%d occurrences) in %d files",
                    summary['total_references'], summary['total_occurrences'],
                    summary['files_with_references'])

        return UsageAnalysis(
            references=references,
            files_analyzed=len(ordered),
            analysis_summary=summary,
        )

    def analyze_file(self, source_file: SourceFile) -> List[Reference]:
        """At most one Reference per symbol for this file."""
        code = strip_comments_and_strings(source_file.content, source_file.language)
        tokens = count_tokens(blank_import_lines(code, source_file.language))
        counts: Dict[str, int] = Counter()

        for token, occurrences in tokens.items():
            for symbol in self.symbol_table.by_name(token):
                counts[symbol.qualified_name] += occurrences

        for module in self._imported_interop_modules(source_file, code):
            self._count_prefixed_tokens(module, tokens, counts)

        return [
            Reference(
                symbol=qualified_name,
                file_path=source_file.path,
                platform=source_file.platform,
                count=count,
            )
            for qualified_name, count in sorted(counts.items())
            if count > 0
        ]

    def _imported_interop_modules(self, source_file: SourceFile, code: str) -> List[str]:
        pattern = self.interop_patterns.get(source_file.platform)
        if pattern is None:
            return []

        modules = set()
        for match in pattern.finditer(code):
            module = next((group for group in match.groups() if group), None)
            if module:
                modules.add(module)
        return sorted(modules)

    def _count_prefixed_tokens(self, module: str, tokens: Counter, counts: Dict[str, int]):
        """Objective-C exports shared classes as <Module><Name>."""
        prefix_length = len(module)
        for token, occurrences in tokens.items():
            if len(token) <= prefix_length or not token.startswith(module):
                continue
            for symbol in self.symbol_table.by_name(token[prefix_length:]):
                counts[symbol.qualified_name] += occurrences

    def _generate_analysis_summary(self, references: List[Reference],
                                   files: List[SourceFile]) -> Dict[str, Any]:
        by_platform: Dict[str, int] = defaultdict(int)
        for reference in references:
            by_platform[reference.platform] += 1

        return {
            'total_references': len(references),
            'total_occurrences': sum(r.count for r in references),
            'files_with_references': len({r.file_path for r in references}),
            'symbols_referenced': len({r.symbol for r in references}),
            'references_by_platform': dict(sorted(by_platform.items())),
            'files_analyzed': len(files),
        }
