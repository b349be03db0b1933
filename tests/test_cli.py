"""Integration tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from kmp_impact import __version__
from kmp_impact.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestAnalyzeCommand:
    """Tests for 'kmp-impact analyze'."""

    def test_json_report(self, runner, kmp_project):
        result = runner.invoke(cli, ["analyze", str(kmp_project), "--format", "json"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert report["summary"]["affected_lines"] == 19
        assert report["summary"]["total_lines"] == 32
        assert report["summary"]["total_symbols"] == 5
        assert [p["platform"] for p in report["platforms"]] == ["android", "ios"]
        assert report["metadata"]["version"] == __version__
        assert report["warnings"] == []
        assert report["top_symbols"][0]["symbol"] == "com.example.shared.Greeting"

    def test_json_report_lists_files_relative_to_project(self, runner, kmp_project):
        result = runner.invoke(cli, ["analyze", str(kmp_project), "-f", "json", "--show-files", "--top", "2"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        android = report["platforms"][0]
        assert android["files"] == {
            "direct": ["androidApp/src/main/java/com/example/android/MainActivity.kt"],
            "transitive": ["androidApp/src/main/java/com/example/android/App.kt"],
        }
        assert len(report["top_symbols"]) == 2

    def test_markdown_report(self, runner, kmp_project):
        result = runner.invoke(cli, ["analyze", str(kmp_project), "-f", "markdown"])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("# Kotlin Multiplatform Impact Coverage Report")
        assert "| Platform | Impact % | Affected Files | Affected Lines | Total Lines |" in result.output
        assert "| Android | 70.00% | 2 | 14 | 20 |" in result.output

    def test_table_report(self, runner, kmp_project):
        result = runner.invoke(cli, ["analyze", str(kmp_project)])

        assert result.exit_code == 0, result.output
        assert "KMP Impact Coverage Report" in result.output
        assert "59.38%" in result.output
        assert "Platform Impact Breakdown" in result.output

    def test_report_written_to_file(self, runner, kmp_project, temp_dir):
        output = temp_dir / "report.json"
        result = runner.invoke(cli, ["analyze", str(kmp_project), "-f", "json", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text(encoding="utf-8"))["summary"]["total_symbols"] == 5

    def test_explicit_roots(self, runner, kmp_project):
        result = runner.invoke(cli, [
            "analyze", str(kmp_project), "-f", "json",
            "--shared-root", str(kmp_project / "shared" / "src" / "commonMain"),
            "--ios-root", str(kmp_project / "iosApp"),
        ])

        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert [p["platform"] for p in report["platforms"]] == ["android", "ios"]
        assert report["platforms"][0]["total_lines"] == 0
        assert report["summary"]["total_symbols"] == 5
        assert report["platforms"][1]["direct_files"] == 1

    def test_missing_shared_roots(self, runner, kmp_project):
        result = runner.invoke(cli, [
            "analyze", str(kmp_project), "--android-root", str(kmp_project / "androidApp"),
        ])

        assert result.exit_code == 1
        assert "No shared module roots found" in result.output

    def test_format_from_environment(self, runner, kmp_project):
        result = runner.invoke(cli, ["analyze", str(kmp_project)],
                               env={"KMP_IMPACT_ANALYZE_OUTPUT_FORMAT": "json"})

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["summary"]["affected_lines"] == 19


class TestInspectionCommands:
    """Tests for 'kmp-impact symbols' and 'kmp-impact graph'."""

    def test_symbols_json(self, runner, kmp_project):
        result = runner.invoke(cli, ["symbols", str(kmp_project), "-f", "json"])

        assert result.exit_code == 0, result.output
        entries = json.loads(result.output)
        assert len(entries) == 5
        greeting = next(e for e in entries if e["qualified_name"] == "com.example.shared.Greeting")
        assert greeting["references"] == 2
        assert greeting["file"] == "shared/src/commonMain/kotlin/com/example/shared/Greeting.kt"

    def test_symbols_table(self, runner, kmp_project):
        result = runner.invoke(cli, ["symbols", str(kmp_project)])

        assert result.exit_code == 0, result.output
        assert "Shared Symbols (5)" in result.output

    def test_graph_json(self, runner, kmp_project):
        result = runner.invoke(cli, ["graph", str(kmp_project), "-f", "json"])

        assert result.exit_code == 0, result.output
        graphs = json.loads(result.output)
        assert graphs["android"]["files"] == 3
        assert graphs["android"]["imports"] == 2
        assert {"from": "androidApp/src/main/java/com/example/android/App.kt",
                "to": "androidApp/src/main/java/com/example/android/MainActivity.kt",
                "type": "import", "line": 3} in graphs["android"]["edges"]
        assert graphs["ios"]["cycles"] == []

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
