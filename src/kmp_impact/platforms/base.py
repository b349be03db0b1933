"""Platform capability shared by the registry and the project detector."""

import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Optional, Pattern, Sequence, Tuple

from ..parsers.lexical_scanner import Language, extensions_for

SKIPPED_WALK_DIRECTORIES = frozenset({
    'build', 'Pods', 'DerivedData', 'node_modules', 'Carthage', 'gradle',
})


class Platform(ABC):
    """A source platform: which files it owns and where its roots live."""

    name: str = ""
    display_name: str = ""
    languages: Tuple[Language, ...] = ()

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        return extensions_for(self.languages)

    @property
    def interop_import_pattern(self) -> Optional[Pattern]:
        """Pattern recognising an import of the shared module's interop namespace."""
        return None

    def is_platform_file(self, path) -> bool:
        return Path(path).suffix.lower() in self.file_extensions

    @abstractmethod
    def is_platform_root(self, path: Path) -> bool:
        """Whether ``path`` is a project/module directory of this platform."""

    @abstractmethod
    def source_roots(self, root: Path) -> List[Path]:
        """Source directories below a platform root."""

    def contains_source_files(self, directory: Path, max_depth: int = 10) -> bool:
        for path in iter_files(directory, max_depth):
            if self.is_platform_file(path):
                return True
        return False

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


def iter_directories(root: Path, max_depth: int) -> Iterator[Path]:
    """Walk directories breadth-first in sorted order, skipping hidden and build output."""
    root = Path(root)
    level = [root]
    depth = 0
    while level and depth <= max_depth:
        next_level = []
        for directory in level:
            yield directory
            try:
                children = sorted(p for p in directory.iterdir() if p.is_dir() and not p.is_symlink())
            except OSError:
                continue
            next_level.extend(
                child for child in children
                if not child.name.startswith('.') and child.name not in SKIPPED_WALK_DIRECTORIES
            )
        level = next_level
        depth += 1


def iter_files(root: Path, max_depth: int) -> Iterator[Path]:
    for directory, dirnames, filenames in os.walk(root):
        relative_depth = len(Path(directory).relative_to(root).parts)
        if relative_depth >= max_depth:
            dirnames[:] = []
        dirnames[:] = [d for d in dirnames if not d.startswith('.') and d not in SKIPPED_WALK_DIRECTORIES]
        for filename in filenames:
            yield Path(directory) / filename


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8', errors='replace')
    except OSError:
        return ""


def gradle_build_file(directory: Path) -> Optional[Path]:
    for name in ('build.gradle.kts', 'build.gradle'):
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def interop_pattern(module_names: Sequence[str]) -> Pattern:
    """Import statements (Swift and Objective-C) of the given framework names."""
    names = '|'.join(module_names)
    return re.compile(
        rf'^[ \t]*(?:@testable[ \t]+)?import[ \t]+(?P<swift>{names})\b'
        rf'|^[ \t]*@import[ \t]+(?P<module>{names})[ \t]*;'
        rf'|^[ \t]*#(?:import|include)[ \t]*<(?P<framework>{names})/',
        re.MULTILINE,
    )
