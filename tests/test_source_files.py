"""Tests for scanning source roots."""

import pytest

from kmp_impact.analyzers.symbol_extractor import SymbolExtractor
from kmp_impact.core import SourceReadError, SourceScanner, read_source_file
from kmp_impact.parsers.lexical_scanner import Language

from conftest import write_tree


@pytest.fixture
def scanner():
    return SourceScanner({"shared": (".kt",), "android": (".kt", ".java"), "ios": (".swift", ".m", ".h")},
                         max_workers=2)


class TestSourceScanner:
    """Tests for walking and reading roots."""

    def test_files_are_grouped_and_sorted(self, scanner, temp_dir):
        write_tree(temp_dir, {
            "app/b/Second.kt": "class Second\n",
            "app/a/First.java": "class First {}\n",
            "app/README.md": "# docs\n",
            "ios/View.swift": "struct View {}\n",
        })

        result = scanner.scan({"android": [temp_dir / "app"], "ios": [temp_dir / "ios"]})

        assert [f.relative_path for f in result.files_for("android")] == ["a/First.java", "b/Second.kt"]
        assert [f.language for f in result.files_for("android")] == [Language.JAVA, Language.KOTLIN]
        assert [f.relative_path for f in result.files_for("ios")] == ["View.swift"]
        assert result.warnings == []

    def test_build_and_hidden_directories_are_skipped(self, scanner, temp_dir):
        write_tree(temp_dir, {
            "app/Main.kt": "class Main\n",
            "app/build/generated/Generated.kt": "class Generated\n",
            "app/.gradle/Cache.kt": "class Cache\n",
        })

        files = scanner.scan({"android": [temp_dir / "app"]}).files_for("android")

        assert [f.stem for f in files] == ["Main"]

    def test_overlapping_roots_count_a_file_once(self, scanner, temp_dir):
        write_tree(temp_dir, {"module/src/Shared.kt": "class Shared\n"})

        result = scanner.scan({
            "shared": [temp_dir / "module" / "src"],
            "android": [temp_dir / "module"],
        })

        assert len(result.shared_files) == 1
        assert result.files_for("android") == []
        assert result.application_files() == {"android": []}

    def test_missing_root_is_a_warning(self, scanner, temp_dir):
        result = scanner.scan({"ios": [temp_dir / "nowhere"]})

        assert result.files_for("ios") == []
        assert result.warnings[0].phase == "scanning"
        assert "does not exist" in result.warnings[0].message


class TestReadSourceFile:
    """Tests for reading a single file."""

    def test_crlf_line_endings(self, temp_dir):
        path = temp_dir / "Windows.kt"
        path.write_bytes(b"package a\r\n\r\n// note\r\nclass Windows\r\n")

        source = read_source_file(path, "android", Language.KOTLIN)

        assert source.line_count == 2
        assert source.path == path.as_posix()

    def test_byte_order_mark_is_dropped(self, temp_dir):
        path = temp_dir / "Bom.kt"
        path.write_bytes(b"\xef\xbb\xbfpackage a\n\nclass Bom\n")

        source = read_source_file(path, "shared", Language.KOTLIN)

        assert source.content.startswith("package a")
        assert source.line_count == 2
        assert [s.qualified_name for s in SymbolExtractor(max_workers=1).extract([source])] == ["a.Bom"]

    def test_invalid_utf8_raises(self, temp_dir):
        path = temp_dir / "Latin1.kt"
        path.write_bytes(b"val name = \"caf\xe9\"\n")

        with pytest.raises(SourceReadError, match="UTF-8"):
            read_source_file(path, "android", Language.KOTLIN)
