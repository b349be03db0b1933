"""Source file model and recursive scanning of source roots."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..parsers.lexical_scanner import Language, count_meaningful_lines, detect_language
from .errors import AnalysisWarning, SourceReadError

logger = logging.getLogger(__name__)

SHARED_PLATFORM = "shared"

SKIPPED_DIRECTORIES = frozenset({
    'build', 'Pods', 'DerivedData', 'node_modules', 'Carthage',
})


@dataclass(frozen=True)
class SourceFile:
    """A source file read once at scan time. Never mutated afterwards."""
    path: str
    platform: str
    language: Language
    line_count: int
    root: str = ""
    content: str = field(default="", repr=False, compare=False)

    @property
    def relative_path(self) -> str:
        if self.root and self.path.startswith(self.root.rstrip('/') + '/'):
            return self.path[len(self.root.rstrip('/')) + 1:]
        return self.path

    @property
    def stem(self) -> str:
        return Path(self.path).stem


@dataclass
class ScanResult:
    """Files found per platform plus the problems met while reading them."""
    files_by_platform: Dict[str, List[SourceFile]]
    warnings: List[AnalysisWarning] = field(default_factory=list)

    def files_for(self, platform: str) -> List[SourceFile]:
        return self.files_by_platform.get(platform, [])

    @property
    def shared_files(self) -> List[SourceFile]:
        return self.files_for(SHARED_PLATFORM)

    def application_files(self) -> Dict[str, List[SourceFile]]:
        return {
            platform: files for platform, files in self.files_by_platform.items()
            if platform != SHARED_PLATFORM
        }


def normalize_path(path) -> str:
    """Absolute POSIX form used as the identity of a file."""
    return Path(os.path.abspath(str(path))).as_posix()


def read_source_file(path, platform: str, language: Language, root: str = "") -> SourceFile:
    """Read a file as UTF-8 text and count its meaningful lines."""
    file_path = normalize_path(path)
    try:
        with open(file_path, 'r', encoding='utf-8-sig', newline='') as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise SourceReadError(file_path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise SourceReadError(file_path, e.strerror or str(e)) from e

    return SourceFile(
        path=file_path,
        platform=platform,
        language=language,
        line_count=count_meaningful_lines(content, language),
        root=root,
        content=content,
    )


class SourceScanner:
    """Finds and reads source files below platform roots."""

    def __init__(self, extensions_by_platform: Mapping[str, Sequence[str]],
                 max_workers: Optional[int] = None, follow_symlinks: bool = False):
        self.extensions_by_platform = {
            platform: tuple(ext.lower() for ext in extensions)
            for platform, extensions in extensions_by_platform.items()
        }
        self.max_workers = max_workers or os.cpu_count() or 4
        self.follow_symlinks = follow_symlinks

    def scan(self, roots_by_platform: Mapping[str, Iterable]) -> ScanResult:
        """Scan every root; platforms are processed in mapping order.

        A file reachable from more than one root belongs to the first
        platform that lists it.
        """
        warnings: List[AnalysisWarning] = []
        claimed: Set[str] = set()
        jobs: List[Tuple[str, str, str, Language]] = []

        for platform, roots in roots_by_platform.items():
            extensions = self.extensions_by_platform.get(platform, ())
            for root in sorted(normalize_path(r) for r in roots):
                if not os.path.isdir(root):
                    warnings.append(AnalysisWarning(
                        message=f"Source root does not exist: {root}",
                        phase="scanning", path=root,
                    ))
                    logger.warning("Source root does not exist: %s", root)
                    continue

                for file_path in self._walk(root, extensions):
                    if file_path in claimed:
                        logger.debug("Skipping %s, already scanned for another platform", file_path)
                        continue
                    claimed.add(file_path)
                    jobs.append((platform, root, file_path, detect_language(file_path)))

        files_by_platform: Dict[str, List[SourceFile]] = {platform: [] for platform in roots_by_platform}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            outcomes = list(executor.map(self._read, jobs))

        for (platform, _, _, _), outcome in zip(jobs, outcomes):
            if isinstance(outcome, SourceReadError):
                logger.warning("%s", outcome)
                warnings.append(AnalysisWarning(message=str(outcome), phase="scanning", path=outcome.path))
                continue
            files_by_platform[platform].append(outcome)

        for files in files_by_platform.values():
            files.sort(key=lambda f: f.path)

        for platform, files in files_by_platform.items():
            logger.info("Scanned %d %s files", len(files), platform)

        return ScanResult(files_by_platform=files_by_platform, warnings=warnings)

    def _read(self, job):
        platform, root, file_path, language = job
        try:
            return read_source_file(file_path, platform, language, root)
        except SourceReadError as e:
            return e

    def _walk(self, root: str, extensions: Tuple[str, ...]) -> List[str]:
        found = []
        for directory, dirnames, filenames in os.walk(root, followlinks=self.follow_symlinks):
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith('.') and d not in SKIPPED_DIRECTORIES
            )
            for filename in filenames:
                if os.path.splitext(filename)[1].lower() in extensions:
                    found.append(normalize_path(os.path.join(directory, filename)))
        return sorted(found)
