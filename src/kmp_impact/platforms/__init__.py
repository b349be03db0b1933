"""Platform capabilities, registry and project detection."""

from .base import Platform
from .shared import SharedModulePlatform
from .android import AndroidPlatform
from .ios import IOSPlatform, DEFAULT_INTEROP_MODULES
from .registry import PlatformRegistry, default_registry
from .project_detector import ProjectDetector, DetectedRoots

__all__ = [
    "Platform", "SharedModulePlatform", "AndroidPlatform", "IOSPlatform",
    "DEFAULT_INTEROP_MODULES", "PlatformRegistry", "default_registry",
    "ProjectDetector", "DetectedRoots"
]
