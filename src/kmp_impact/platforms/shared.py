"""Kotlin Multiplatform shared module."""

from pathlib import Path
from typing import List

from ..core.source_files import SHARED_PLATFORM
from ..parsers.lexical_scanner import Language
from .base import Platform, gradle_build_file, read_text

MULTIPLATFORM_MARKERS = (
    'kotlin("multiplatform")',
    'kotlin-multiplatform',
    'org.jetbrains.kotlin.multiplatform',
    'libs.plugins.kotlinMultiplatform',
    'commonMain',
)


def is_multiplatform_build(build_script: str) -> bool:
    return any(marker in build_script for marker in MULTIPLATFORM_MARKERS)


class SharedModulePlatform(Platform):
    """The cross-platform module whose reach is measured."""

    name = SHARED_PLATFORM
    display_name = "Shared"
    languages = (Language.KOTLIN,)

    def is_platform_root(self, path: Path) -> bool:
        build_file = gradle_build_file(path)
        if build_file is not None and is_multiplatform_build(read_text(build_file)):
            return True
        return path.name == 'shared' and (path / 'src' / 'commonMain').is_dir()

    def source_roots(self, root: Path) -> List[Path]:
        src = root / 'src'
        if not src.is_dir():
            return []
        # commonMain, androidMain, iosMain, jvmMain ... but never test source sets
        return sorted(
            child for child in src.iterdir()
            if child.is_dir() and child.name.endswith('Main')
        )
