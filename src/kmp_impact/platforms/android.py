"""Android application platform (Kotlin and Java)."""

from pathlib import Path
from typing import List

from ..parsers.lexical_scanner import Language
from .base import Platform, gradle_build_file, read_text
from .shared import is_multiplatform_build

ANDROID_PLUGIN_MARKERS = (
    'com.android.application',
    'com.android.library',
    'android {',
    'libs.plugins.androidApplication',
)


class AndroidPlatform(Platform):
    """Gradle modules applying an Android plugin outside the shared module."""

    name = "android"
    display_name = "Android"
    languages = (Language.KOTLIN, Language.JAVA)

    def is_platform_root(self, path: Path) -> bool:
        build_file = gradle_build_file(path)
        if build_file is None:
            return False
        build_script = read_text(build_file)
        if is_multiplatform_build(build_script):
            return False
        has_manifest = (path / 'src' / 'main' / 'AndroidManifest.xml').is_file()
        return has_manifest or any(marker in build_script for marker in ANDROID_PLUGIN_MARKERS)

    def source_roots(self, root: Path) -> List[Path]:
        main = root / 'src' / 'main'
        roots = [
            main / name for name in ('java', 'kotlin')
            if (main / name).is_dir() and self.contains_source_files(main / name)
        ]
        if not roots and main.is_dir() and self.contains_source_files(main):
            roots.append(main)
        return roots
