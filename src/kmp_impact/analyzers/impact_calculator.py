"""Impact Calculator - Combines symbols, references and dependency graphs into impact metrics."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..core.source_files import SourceFile
from .import_graph_builder import DependencyGraph
from .symbol_extractor import SymbolTable
from .usage_analyzer import Reference

logger = logging.getLogger(__name__)

PLATFORM_TOP_SYMBOLS = 10


def impact_ratio(affected_lines: int, total_lines: int) -> float:
    """Percentage of affected lines; 0.0 when there is nothing to measure."""
    if total_lines <= 0:
        return 0.0
    return affected_lines / total_lines * 100.0


def ranking_key(qualified_name: str, reference_count: int, file_count: int):
    return (-reference_count, -file_count, qualified_name)


@dataclass(frozen=True)
class SymbolUsage:
    """Usage totals of one symbol across every platform."""
    qualified_name: str
    kind: str
    reference_count: int
    file_count: int
    platforms: Tuple[str, ...] = ()

    def to_dict(self):
        return {
            'symbol': self.qualified_name,
            'kind': self.kind,
            'references': self.reference_count,
            'files': self.file_count,
            'platforms': list(self.platforms),
        }


@dataclass(frozen=True)
class PlatformImpact:
    """Impact figures of one application platform."""
    name: str
    display_name: str
    total_files: int
    direct_files: Tuple[str, ...]
    transitive_files: Tuple[str, ...]
    affected_lines: int
    total_lines: int
    top_symbols: Tuple[Tuple[str, int], ...] = ()

    @property
    def affected_files(self) -> int:
        return len(self.direct_files) + len(self.transitive_files)

    @property
    def impact_ratio(self) -> float:
        return impact_ratio(self.affected_lines, self.total_lines)

    def to_dict(self, include_files: bool = False) -> Dict[str, Any]:
        data = {
            'platform': self.name,
            'display_name': self.display_name,
            'impact_ratio': round(self.impact_ratio, 2),
            'total_files': self.total_files,
            'direct_files': len(self.direct_files),
            'transitive_files': len(self.transitive_files),
            'affected_files': self.affected_files,
            'affected_lines': self.affected_lines,
            'total_lines': self.total_lines,
            'top_symbols': [
                {'symbol': name, 'references': count} for name, count in self.top_symbols
            ],
        }
        if include_files:
            data['files'] = {
                'direct': list(self.direct_files),
                'transitive': list(self.transitive_files),
            }
        return data


@dataclass(frozen=True)
class ImpactResult:
    """Read-only outcome of one analysis run."""
    platforms: Tuple[PlatformImpact, ...]
    symbol_usage: Tuple[SymbolUsage, ...]
    total_symbols: int

    @property
    def affected_lines(self) -> int:
        return sum(p.affected_lines for p in self.platforms)

    @property
    def total_lines(self) -> int:
        return sum(p.total_lines for p in self.platforms)

    @property
    def impact_ratio(self) -> float:
        return impact_ratio(self.affected_lines, self.total_lines)

    @property
    def direct_file_count(self) -> int:
        return sum(len(p.direct_files) for p in self.platforms)

    @property
    def transitive_file_count(self) -> int:
        return sum(len(p.transitive_files) for p in self.platforms)

    @property
    def affected_file_count(self) -> int:
        return self.direct_file_count + self.transitive_file_count

    @property
    def total_files(self) -> int:
        return sum(p.total_files for p in self.platforms)

    def platform(self, name: str) -> Optional[PlatformImpact]:
        for platform_impact in self.platforms:
            if platform_impact.name == name:
                return platform_impact
        return None

    def top_symbols(self, limit: Optional[int] = None) -> List[SymbolUsage]:
        """Ranked symbol usage, truncated to ``limit`` entries when given."""
        ranked = list(self.symbol_usage)
        if limit is not None:
            ranked = ranked[:max(0, limit)]
        return ranked

    def to_dict(self, top: Optional[int] = None, include_files: bool = False) -> Dict[str, Any]:
        return {
            'summary': {
                'impact_ratio': round(self.impact_ratio, 2),
                'affected_lines': self.affected_lines,
                'total_lines': self.total_lines,
                'direct_files': self.direct_file_count,
                'transitive_files': self.transitive_file_count,
                'affected_files': self.affected_file_count,
                'total_files': self.total_files,
                'total_symbols': self.total_symbols,
            },
            'platforms': [p.to_dict(include_files) for p in self.platforms],
            'top_symbols': [usage.to_dict() for usage in self.top_symbols(top)],
        }


class ImpactCalculator:
    """Derives direct and transitive impact per platform."""

    def __init__(self, display_names: Optional[Mapping[str, str]] = None):
        self.display_names = dict(display_names or {})

    def calculate(self, symbol_table: SymbolTable,
                  references: Iterable[Reference],
                  graphs: Mapping[str, DependencyGraph],
                  files_by_platform: Mapping[str, Sequence[SourceFile]]) -> ImpactResult:
        references = sorted(references, key=lambda r: (r.file_path, r.symbol))
        references_by_platform: Dict[str, List[Reference]] = defaultdict(list)
        for reference in references:
            references_by_platform[reference.platform].append(reference)

        platform_names = sorted(set(files_by_platform) | set(graphs))
        platforms = tuple(
            self.calculate_platform(
                name,
                files_by_platform.get(name, ()),
                references_by_platform.get(name, []),
                graphs.get(name),
            )
            for name in platform_names
        )

        result = ImpactResult(
            platforms=platforms,
            symbol_usage=tuple(self.rank_symbols(symbol_table, references)),
            total_symbols=len(symbol_table),
        )
        logger.info("Impact: %.2f%% (%d of %d lines, %d direct and %d transitive files)",
                    result.impact_ratio, result.affected_lines, result.total_lines,
                    result.direct_file_count, result.transitive_file_count)
        return result

    def calculate_platform(self, name: str, files: Sequence[SourceFile],
                           references: Sequence[Reference],
                           graph: Optional[DependencyGraph]) -> PlatformImpact:
        lines_by_path = {f.path: f.line_count for f in files}

        direct = self.direct_files(references, lines_by_path)
        transitive = self.transitive_files(graph, direct, lines_by_path) if graph is not None else set()

        affected_lines = sum(lines_by_path[path] for path in direct | transitive)
        total_lines = sum(lines_by_path.values())

        if not files:
            logger.debug("No %s application files; reporting an empty section", name)

        return PlatformImpact(
            name=name,
            display_name=self.display_names.get(name, name),
            total_files=len(lines_by_path),
            direct_files=tuple(sorted(direct)),
            transitive_files=tuple(sorted(transitive)),
            affected_lines=affected_lines,
            total_lines=total_lines,
            top_symbols=self._platform_top_symbols(references),
        )

    @staticmethod
    def direct_files(references: Iterable[Reference], known_paths: Mapping[str, int]) -> Set[str]:
        """Files of the platform with at least one reference."""
        return {r.file_path for r in references if r.count > 0 and r.file_path in known_paths}

    @staticmethod
    def transitive_files(graph: DependencyGraph, direct: Set[str],
                         known_paths: Mapping[str, int]) -> Set[str]:
        """Files that reach a direct file through imports, excluding the direct set."""
        importers = graph.transitive_importers(sorted(direct))
        return {path for path in importers if path in known_paths} - direct

    @staticmethod
    def rank_symbols(symbol_table: SymbolTable, references: Iterable[Reference]) -> List[SymbolUsage]:
        """Every symbol ranked by references, then files, then qualified name."""
        counts: Dict[str, int] = defaultdict(int)
        files: Dict[str, Set[str]] = defaultdict(set)
        platforms: Dict[str, Set[str]] = defaultdict(set)
        for reference in references:
            counts[reference.symbol] += reference.count
            files[reference.symbol].add(reference.file_path)
            platforms[reference.symbol].add(reference.platform)

        usages = [
            SymbolUsage(
                qualified_name=symbol.qualified_name,
                kind=symbol.kind.value,
                reference_count=counts.get(symbol.qualified_name, 0),
                file_count=len(files.get(symbol.qualified_name, ())),
                platforms=tuple(sorted(platforms.get(symbol.qualified_name, ()))),
            )
            for symbol in symbol_table
        ]
        usages.sort(key=lambda u: ranking_key(u.qualified_name, u.reference_count, u.file_count))
        return usages

    @staticmethod
    def _platform_top_symbols(references: Sequence[Reference]) -> Tuple[Tuple[str, int], ...]:
        counts: Dict[str, int] = defaultdict(int)
        files: Dict[str, Set[str]] = defaultdict(set)
        for reference in references:
            counts[reference.symbol] += reference.count
            files[reference.symbol].add(reference.file_path)

        ranked = sorted(counts, key=lambda name: ranking_key(name, counts[name], len(files[name])))
        return tuple((name, counts[name]) for name in ranked[:PLATFORM_TOP_SYMBOLS])
