"""iOS application platform (Swift and Objective-C)."""

import re
from pathlib import Path
from typing import List, Pattern, Sequence

from ..parsers.lexical_scanner import Language
from .base import Platform, interop_pattern

IOS_DIRECTORY_NAMES = ('iosApp', 'iOS', 'ios')

# Framework names the Kotlin/Native toolchain commonly exports the shared module as
DEFAULT_INTEROP_MODULES = ('Shared', 'ComposeApp', r'[A-Z]\w*KMP', r'[A-Z]\w*Shared')


class IOSPlatform(Platform):
    """Xcode projects consuming the shared module through its generated framework."""

    name = "ios"
    display_name = "iOS"
    languages = (Language.SWIFT, Language.OBJECTIVE_C)

    def __init__(self, interop_modules: Sequence[str] = ()):
        self.interop_modules = tuple(DEFAULT_INTEROP_MODULES) + tuple(re.escape(m) for m in interop_modules)
        self._interop_pattern = interop_pattern(self.interop_modules)

    @property
    def interop_import_pattern(self) -> Pattern:
        return self._interop_pattern

    def is_platform_root(self, path: Path) -> bool:
        try:
            has_xcode_project = any(
                child.suffix in ('.xcodeproj', '.xcworkspace') for child in path.iterdir()
            )
        except OSError:
            return False
        if has_xcode_project:
            return True
        return path.name in IOS_DIRECTORY_NAMES and self.contains_source_files(path)

    def source_roots(self, root: Path) -> List[Path]:
        return [root] if self.contains_source_files(root) else []
