"""Pytest configuration and fixtures for kmp-impact tests."""

import shutil
import tempfile
import textwrap
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from kmp_impact.core.source_files import SourceFile
from kmp_impact.parsers.lexical_scanner import count_meaningful_lines, detect_language


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Write ``relative path -> content`` pairs below ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return root


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp()).resolve()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def make_source_file() -> Callable[..., SourceFile]:
    """Build an in-memory SourceFile without touching the disk."""

    def _make(path: str, content: str, platform: str = "android", root: str = "/project") -> SourceFile:
        content = textwrap.dedent(content).lstrip("\n")
        language = detect_language(path)
        return SourceFile(
            path=path,
            platform=platform,
            language=language,
            line_count=count_meaningful_lines(content, language),
            root=root,
            content=content,
        )

    return _make


SAMPLE_PROJECT = {
    "settings.gradle.kts": """
        rootProject.name = "Sample"
        include(":shared", ":androidApp")
    """,
    "build.gradle.kts": """
        plugins {
            alias(libs.plugins.kotlinMultiplatform) apply false
        }
    """,
    "shared/build.gradle.kts": """
        plugins {
            kotlin("multiplatform")
        }
    """,
    "shared/src/commonMain/kotlin/com/example/shared/Greeting.kt": """
        package com.example.shared

        class Greeting {
            fun greet(): String = "Hello"
        }

        private fun hidden() = Unit
    """,
    "shared/src/commonMain/kotlin/com/example/shared/Platform.kt": """
        package com.example.shared

        expect fun platformName(): String

        interface Repository {
            fun load(): List<String>
        }
    """,
    "shared/src/androidMain/kotlin/com/example/shared/Platform.android.kt": """
        package com.example.shared

        actual fun platformName(): String = "Android"
    """,
    "shared/src/commonTest/kotlin/com/example/shared/GreetingTest.kt": """
        package com.example.shared

        class GreetingTest
    """,
    "androidApp/build.gradle.kts": """
        plugins {
            id("com.android.application")
        }
    """,
    "androidApp/src/main/AndroidManifest.xml": """
        <manifest />
    """,
    "androidApp/src/main/java/com/example/android/MainActivity.kt": """
        package com.example.android

        import com.example.shared.Greeting
        import com.example.android.ui.HomeScreen

        class MainActivity {
            fun onCreate() {
                // Greeting comes from the shared module
                val text = Greeting().greet()
                HomeScreen().render(text)
            }
        }
    """,
    "androidApp/src/main/java/com/example/android/App.kt": """
        package com.example.android

        import com.example.android.MainActivity

        class App {
            val activity = MainActivity()
        }
    """,
    "androidApp/src/main/java/com/example/android/ui/HomeScreen.kt": """
        package com.example.android.ui

        class HomeScreen {
            fun render(text: String) {
                println(text)
            }
        }
    """,
    "iosApp/iosApp/ContentView.swift": """
        import SwiftUI
        import Shared

        struct ContentView: View {
            let greeting = Greeting().greet()
        }
    """,
    "iosApp/iosApp/iOSApp.swift": """
        import SwiftUI

        @main
        struct iOSApp: App {
            var body: some Scene {
                WindowGroup { ContentView() }
            }
        }
    """,
}


@pytest.fixture
def kmp_project(temp_dir: Path) -> Path:
    """A small KMP project with a shared module, an Android app and an iOS app."""
    root = temp_dir / "sample"
    write_tree(root, SAMPLE_PROJECT)
    (root / "iosApp" / "iosApp.xcodeproj").mkdir(parents=True)
    return root


@pytest.fixture
def kmp_input(kmp_project: Path):
    """Explicit analysis roots for the sample project."""
    from kmp_impact.analyzers import AnalysisInput

    return AnalysisInput(
        shared_roots=[
            kmp_project / "shared" / "src" / "commonMain",
            kmp_project / "shared" / "src" / "androidMain",
        ],
        platform_roots={
            "android": [kmp_project / "androidApp" / "src" / "main" / "java"],
            "ios": [kmp_project / "iosApp"],
        },
    )
