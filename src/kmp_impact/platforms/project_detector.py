"""Project detection - Locates shared and application source roots on disk."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .base import iter_directories
from .registry import PlatformRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass
class DetectedRoots:
    """Source roots found below a project directory."""
    shared_roots: List[Path] = field(default_factory=list)
    platform_roots: Dict[str, List[Path]] = field(default_factory=dict)
    module_roots: Dict[str, List[Path]] = field(default_factory=dict)

    def has_application_roots(self) -> bool:
        return any(self.platform_roots.values())


class ProjectDetector:
    """Walks a project tree and asks each registered platform to claim directories."""

    def __init__(self, registry: Optional[PlatformRegistry] = None, max_depth: int = 5):
        self.registry = registry or default_registry()
        self.max_depth = max_depth

    def detect(self, project_root) -> DetectedRoots:
        project_root = Path(project_root).resolve()
        claimed: Dict[str, List[Path]] = {platform.name: [] for platform in self.registry}

        for directory in iter_directories(project_root, self.max_depth):
            for platform in self.registry:
                if platform.is_platform_root(directory):
                    claimed[platform.name].append(directory)
                    logger.debug("%s module root: %s", platform.display_name, directory)
                    break

        # Module roots may nest (root build script); collapse at source root level
        source_roots: Dict[str, List[Path]] = {}
        for platform in self.registry:
            roots = set()
            for module_root in claimed[platform.name]:
                roots.update(platform.source_roots(module_root))
            source_roots[platform.name] = _outermost(list(roots))

        shared = self.registry.shared
        shared_roots = source_roots.pop(shared.name, []) if shared is not None else []

        for name, roots in source_roots.items():
            logger.info("Detected %d %s source root(s)", len(roots), name)
        logger.info("Detected %d shared source root(s)", len(shared_roots))

        return DetectedRoots(
            shared_roots=shared_roots,
            platform_roots=source_roots,
            module_roots=claimed,
        )


def _outermost(directories: List[Path]) -> List[Path]:
    """Drop directories nested inside another directory of the same list."""
    kept: List[Path] = []
    for directory in sorted(directories):
        if not any(parent in kept for parent in directory.parents):
            kept.append(directory)
    return kept
