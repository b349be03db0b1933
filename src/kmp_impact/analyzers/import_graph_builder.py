"""Import Graph Builder - Builds per-platform file dependency graphs from import statements."""

import itertools
import logging
import posixpath
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Set

import networkx as nx

from ..core.source_files import SourceFile
from ..parsers.lexical_scanner import Language, line_number_at, split_lines, strip_comments_and_strings
from .symbol_extractor import DECLARATION_PATTERNS, package_of, qualify

logger = logging.getLogger(__name__)

JVM_IMPORT = re.compile(
    r'^[ \t]*(?P<kw>import)[ \t]+(?:static[ \t]+)?(?P<target>\w+(?:\.\w+)*(?:\.\*)?)',
    re.MULTILINE,
)
SWIFT_IMPORT = re.compile(
    r'^[ \t]*(?:@testable[ \t]+)?(?P<kw>import)[ \t]+'
    r'(?:(?:class|struct|enum|protocol|func|var|let|typealias)[ \t]+)?(?P<target>[\w.]+)',
    re.MULTILINE,
)
OBJC_INCLUDE = re.compile(
    r'^[ \t]*(?P<kw>#)[ \t]*(?:import|include)[ \t]*(?P<open>["<])(?P<target>[^"<>\r\n]+)[">]',
    re.MULTILINE,
)
OBJC_MODULE_IMPORT = re.compile(
    r'^[ \t]*(?P<kw>@import)[ \t]+(?P<target>[\w.]+)[ \t]*;',
    re.MULTILINE,
)
JAVA_TYPE_DECLARATION = re.compile(
    r'^[ \t]*(?:(?:public|protected|private|abstract|final|static|sealed|non-sealed|strictfp)\s+)*'
    r'(?:class|interface|enum|record|@interface)\s+(?P<name>[A-Za-z_$][\w$]*)',
    re.MULTILINE,
)

JVM_LANGUAGES = (Language.KOTLIN, Language.JAVA)

IMPORT_PATTERNS = {
    Language.KOTLIN: (JVM_IMPORT,),
    Language.JAVA: (JVM_IMPORT,),
    Language.SWIFT: (SWIFT_IMPORT,),
    Language.OBJECTIVE_C: (OBJC_INCLUDE, OBJC_MODULE_IMPORT),
}

_LINE_END = re.compile(r'[\r\n]')


def blank_import_lines(code: str, language: Optional[Language]) -> str:
    """Replace every import statement line with spaces; offsets and line breaks are kept."""
    chars = None
    for pattern in IMPORT_PATTERNS.get(language, ()):
        for match in pattern.finditer(code):
            line_end = _LINE_END.search(code, match.start())
            end = line_end.start() if line_end else len(code)
            if chars is None:
                chars = list(code)
            chars[match.start():end] = ' ' * (end - match.start())
    return code if chars is None else ''.join(chars)


@dataclass(frozen=True)
class ImportStatement:
    """One import-like statement found in a file."""
    target: str
    import_type: str  # 'import', 'wildcard', 'module', 'include'
    line_number: int
    quoted: bool = False


@dataclass(frozen=True)
class ImportEdge:
    """Represents an import relationship between files."""
    from_file: str
    to_file: str
    import_type: str
    line_number: int


class DependencyGraph:
    """Directed file graph of one platform; an edge points from importer to imported."""

    def __init__(self, platform: str, files: Iterable[str] = ()):
        self.platform = platform
        self.graph = nx.DiGraph()
        self.graph.add_nodes_from(sorted(files))

    def add_edge(self, from_file: str, to_file: str, import_type: str = 'import',
                 line_number: int = 0) -> bool:
        """Add an edge between two known files; self and repeated edges are ignored."""
        if from_file == to_file:
            return False
        if from_file not in self.graph or to_file not in self.graph:
            return False
        if self.graph.has_edge(from_file, to_file):
            return False
        self.graph.add_edge(from_file, to_file, type=import_type, line_number=line_number)
        return True

    @property
    def files(self) -> List[str]:
        return sorted(self.graph.nodes())

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def edges(self) -> List[ImportEdge]:
        return [
            ImportEdge(source, target, data.get('type', 'import'), data.get('line_number', 0))
            for source, target, data in sorted(self.graph.edges(data=True), key=lambda e: (e[0], e[1]))
        ]

    def has_edge(self, from_file: str, to_file: str) -> bool:
        return self.graph.has_edge(from_file, to_file)

    def imports_of(self, file_path: str) -> List[str]:
        if file_path not in self.graph:
            return []
        return sorted(self.graph.successors(file_path))

    def importers_of(self, file_path: str) -> List[str]:
        if file_path not in self.graph:
            return []
        return sorted(self.graph.predecessors(file_path))

    def transitive_importers(self, file_paths: Iterable[str]) -> Set[str]:
        """Every file with a directed path to one of ``file_paths``."""
        importers: Set[str] = set()
        for file_path in file_paths:
            if file_path in self.graph:
                importers |= nx.ancestors(self.graph, file_path)
        return importers

    def find_cycles(self, limit: int = 100) -> List[List[str]]:
        """Import cycles, each rotated to start at its smallest path."""
        cycles = []
        for cycle in itertools.islice(nx.simple_cycles(self.graph), limit):
            start = cycle.index(min(cycle))
            cycles.append(cycle[start:] + cycle[:start])
        return sorted(cycles)

    def summary(self) -> Dict:
        in_degrees = dict(self.graph.in_degree())
        most_imported = sorted(
            ((path, count) for path, count in in_degrees.items() if count > 0),
            key=lambda item: (-item[1], item[0]),
        )[:10]
        return {
            'platform': self.platform,
            'total_files': self.graph.number_of_nodes(),
            'total_imports': self.edge_count,
            'cycles_detected': len(self.find_cycles()),
            'most_imported': most_imported,
        }


class _ResolutionIndex:
    """Name and path lookups for one platform's files."""

    def __init__(self):
        self.qualified: Dict[str, Set[str]] = defaultdict(set)
        self.packages: Dict[str, Set[str]] = defaultdict(set)
        self.stems: Dict[str, Set[str]] = defaultdict(set)
        self.directories: Dict[str, Set[str]] = defaultdict(set)
        self.basenames: Dict[str, Set[str]] = defaultdict(set)
        self.paths: List[str] = []


class ImportGraphBuilder:
    """Builds dependency graphs with simple name and path-segment resolution.

    Imports that do not resolve to a scanned file of the same platform
    (libraries, the standard library) are dropped. Imports of the shared
    module's own framework, recognised by the per-platform interop
    patterns, are dropped before resolution.
    """

    def __init__(self, interop_patterns: Optional[Mapping[str, Pattern]] = None):
        self.interop_patterns = dict(interop_patterns or {})

    def build_graphs(self, files_by_platform: Mapping[str, Sequence[SourceFile]]) -> Dict[str, DependencyGraph]:
        return {
            platform: self.build_graph(platform, files)
            for platform, files in sorted(files_by_platform.items())
        }

    def build_graph(self, platform: str, files: Sequence[SourceFile]) -> DependencyGraph:
        """Build the import graph of one platform."""
        ordered = sorted(files, key=lambda f: f.path)
        graph = DependencyGraph(platform, (f.path for f in ordered))

        code_by_path = {f.path: strip_comments_and_strings(f.content, f.language) for f in ordered}
        index = self._build_index(ordered, code_by_path)

        interop_pattern = self.interop_patterns.get(platform)
        unresolved = 0
        for source_file in ordered:
            lines = split_lines(source_file.content)
            for statement in self.extract_imports(source_file, code_by_path[source_file.path]):
                if interop_pattern is not None and interop_pattern.match(lines[statement.line_number - 1]):
                    logger.debug("Skipping shared framework import %s in %s", statement.target, source_file.path)
                    continue
                targets = self._resolve(statement, source_file, index)
                if not targets:
                    unresolved += 1
                    continue
                for target in sorted(targets):
                    graph.add_edge(source_file.path, target, statement.import_type, statement.line_number)

        logger.info("%s dependency graph: %d files, %d edges (%d imports unresolved)",
                    platform, graph.graph.number_of_nodes(), graph.edge_count, unresolved)
        return graph

    def extract_imports(self, source_file: SourceFile, code: Optional[str] = None) -> List[ImportStatement]:
        """Import statements of a file, ignoring ones inside comments."""
        content = source_file.content
        if code is None:
            code = strip_comments_and_strings(content, source_file.language)

        statements = []
        if source_file.language in JVM_LANGUAGES:
            for match in self._live_matches(JVM_IMPORT, content, code):
                target = match.group('target')
                if target.endswith('.*'):
                    statements.append(ImportStatement(target[:-2], 'wildcard', line_number_at(content, match.start())))
                else:
                    statements.append(ImportStatement(target, 'import', line_number_at(content, match.start())))
        elif source_file.language == Language.SWIFT:
            for match in self._live_matches(SWIFT_IMPORT, content, code):
                statements.append(ImportStatement(match.group('target'), 'module', line_number_at(content, match.start())))
        elif source_file.language == Language.OBJECTIVE_C:
            for match in self._live_matches(OBJC_INCLUDE, content, code):
                statements.append(ImportStatement(
                    match.group('target').strip(), 'include', line_number_at(content, match.start()),
                    quoted=match.group('open') == '"',
                ))
            for match in self._live_matches(OBJC_MODULE_IMPORT, content, code):
                statements.append(ImportStatement(match.group('target'), 'module', line_number_at(content, match.start())))

        return statements

    @staticmethod
    def _live_matches(pattern, content: str, code: str):
        """Matches on raw text whose keyword survived comment stripping."""
        for match in pattern.finditer(content):
            if code[match.start('kw')] != ' ':
                yield match

    def _build_index(self, files: Sequence[SourceFile], code_by_path: Mapping[str, str]) -> _ResolutionIndex:
        index = _ResolutionIndex()
        for source_file in files:
            path = source_file.path
            stem = source_file.stem
            index.paths.append(path)
            index.stems[stem].add(path)
            index.basenames[posixpath.basename(path)].add(path)
            for segment in posixpath.dirname(source_file.relative_path).split('/'):
                if segment:
                    index.directories[segment].add(path)

            if source_file.language not in JVM_LANGUAGES:
                continue

            code = code_by_path[path]
            package = package_of(code)
            index.packages[package].add(path)
            index.qualified[qualify(package, stem)].add(path)
            for name in self._declared_names(code, source_file.language):
                index.qualified[qualify(package, name)].add(path)
        return index

    @staticmethod
    def _declared_names(code: str, language: Language) -> Set[str]:
        if language == Language.JAVA:
            return {m.group('name') for m in JAVA_TYPE_DECLARATION.finditer(code)}
        names = set()
        for pattern in DECLARATION_PATTERNS.values():
            names.update(m.group('name') for m in pattern.finditer(code))
        return names

    def _resolve(self, statement: ImportStatement, source_file: SourceFile,
                 index: _ResolutionIndex) -> Set[str]:
        if statement.import_type in ('import', 'wildcard'):
            targets = self._resolve_jvm(statement, index)
        elif statement.import_type == 'include':
            targets = self._resolve_include(statement, index)
        else:
            targets = self._resolve_module(statement.target, index)
        targets.discard(source_file.path)
        return targets

    @staticmethod
    def _resolve_jvm(statement: ImportStatement, index: _ResolutionIndex) -> Set[str]:
        target = statement.target
        if statement.import_type == 'wildcard':
            return set(index.packages.get(target, ())) | set(index.qualified.get(target, ()))

        if target in index.qualified:
            return set(index.qualified[target])

        # Member imports (a.b.C.member): retry without trailing segments
        parts = target.split('.')
        while len(parts) > 2:
            parts.pop()
            candidate = '.'.join(parts)
            if candidate in index.qualified:
                return set(index.qualified[candidate])
        return set()

    @staticmethod
    def _resolve_module(target: str, index: _ResolutionIndex) -> Set[str]:
        parts = target.split('.')
        if len(parts) > 1 and parts[-1] in index.stems:
            return set(index.stems[parts[-1]])
        module = parts[0]
        if module in index.stems:
            return set(index.stems[module])
        return set(index.directories.get(module, ()))

    @staticmethod
    def _resolve_include(statement: ImportStatement, index: _ResolutionIndex) -> Set[str]:
        target = posixpath.normpath(statement.target).lstrip('/')
        suffix = '/' + target
        matches = {path for path in index.paths if path.endswith(suffix)}
        if matches or not statement.quoted:
            return matches
        return set(index.basenames.get(posixpath.basename(target), ()))
