"""Ordered registry of platform capabilities."""

from typing import Dict, Iterator, List, Optional, Pattern, Sequence

from ..core.source_files import SHARED_PLATFORM
from .android import AndroidPlatform
from .base import Platform
from .ios import IOSPlatform
from .shared import SharedModulePlatform


class PlatformRegistry:
    """Platforms consulted in registration order; the shared module comes first."""

    def __init__(self, platforms: Sequence[Platform] = ()):
        self._platforms: List[Platform] = []
        for platform in platforms:
            self.register(platform)

    def register(self, platform: Platform):
        if self.get(platform.name) is not None:
            raise ValueError(f"Platform already registered: {platform.name}")
        self._platforms.append(platform)

    def __iter__(self) -> Iterator[Platform]:
        return iter(self._platforms)

    def __len__(self) -> int:
        return len(self._platforms)

    def get(self, name: str) -> Optional[Platform]:
        for platform in self._platforms:
            if platform.name == name:
                return platform
        return None

    @property
    def shared(self) -> Optional[Platform]:
        return self.get(SHARED_PLATFORM)

    def application_platforms(self) -> List[Platform]:
        return [p for p in self._platforms if p.name != SHARED_PLATFORM]

    def detect_platform(self, path) -> Optional[str]:
        """Application platform owning a file by its extension, first match wins."""
        for platform in self.application_platforms():
            if platform.is_platform_file(path):
                return platform.name
        return None

    def extensions_by_platform(self) -> Dict[str, tuple]:
        return {platform.name: platform.file_extensions for platform in self._platforms}

    def interop_patterns(self) -> Dict[str, Pattern]:
        return {
            platform.name: platform.interop_import_pattern
            for platform in self._platforms
            if platform.interop_import_pattern is not None
        }

    def display_names(self) -> Dict[str, str]:
        return {platform.name: platform.display_name for platform in self._platforms}


def default_registry(interop_modules: Sequence[str] = ()) -> PlatformRegistry:
    return PlatformRegistry([
        SharedModulePlatform(),
        AndroidPlatform(),
        IOSPlatform(interop_modules=interop_modules),
    ])
