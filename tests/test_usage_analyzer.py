"""Tests for name-based usage detection."""

import pytest

from kmp_impact.analyzers.symbol_extractor import SymbolExtractor, SymbolTable
from kmp_impact.analyzers.usage_analyzer import Reference, UsageAnalyzer
from kmp_impact.platforms import default_registry


@pytest.fixture
def symbol_table(make_source_file) -> SymbolTable:
    shared = make_source_file("/p/shared/Foo.kt", """
        package com.example.shared

        class Foo
        fun bar() = 1
        class Greeting
    """, platform="shared")
    return SymbolExtractor(max_workers=1).extract([shared])


@pytest.fixture
def analyzer(symbol_table) -> UsageAnalyzer:
    return UsageAnalyzer(symbol_table, interop_patterns=default_registry().interop_patterns(), max_workers=2)


class TestUsageDetection:
    """Tests for whole-token references."""

    def test_single_token_reference(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Screen.kt", "val x = Foo\n")
        usage = analyzer.analyze_usages([app])

        assert usage.references == [
            Reference(symbol="com.example.shared.Foo", file_path="/p/app/Screen.kt", platform="android", count=1)
        ]

    def test_occurrences_aggregate_per_file(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Screen.kt", """
            val a = Foo()
            val b: Foo = a
            fun use(foo: Foo) = bar()
        """)
        references = {r.symbol: r.count for r in analyzer.analyze_file(app)}

        assert references == {"com.example.shared.Foo": 3, "com.example.shared.bar": 1}

    def test_substrings_do_not_match(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Screen.kt", "val a = FooBar()\nval b = barista\nval c = MyFoo\n")
        assert analyzer.analyze_file(app) == []

    def test_comments_and_strings_do_not_match(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Screen.kt", """
            // Foo is used elsewhere
            /* bar() */
            val label = "Foo"
        """)
        assert analyzer.analyze_file(app) == []

    def test_import_statements_are_not_references(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Unused.kt", """
            import com.example.shared.Greeting
            import com.example.shared.bar as sharedBar

            class Unused
        """)
        assert analyzer.analyze_file(app) == []

    def test_imported_and_used_symbol_counts_the_use_only(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Screen.kt", """
            import com.example.shared.Greeting

            val g = Greeting()
        """)
        assert [(r.symbol, r.count) for r in analyzer.analyze_file(app)] == [("com.example.shared.Greeting", 1)]

    def test_unrelated_identically_named_identifier_counts(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Local.kt", "class Local { fun bar() = 2 }\n")
        assert [r.symbol for r in analyzer.analyze_file(app)] == ["com.example.shared.bar"]

    def test_symbols_sharing_a_simple_name_all_count(self, make_source_file):
        first = make_source_file("/p/shared/a/Model.kt", "package a\nclass Model\n", platform="shared")
        second = make_source_file("/p/shared/b/Model.kt", "package b\nclass Model\n", platform="shared")
        table = SymbolExtractor(max_workers=1).extract([first, second])
        app = make_source_file("/p/app/Use.kt", "val m = Model()\n")

        references = UsageAnalyzer(table).analyze_file(app)

        assert [(r.symbol, r.count) for r in references] == [("a.Model", 1), ("b.Model", 1)]

    def test_swift_module_qualified_reference(self, analyzer, make_source_file):
        app = make_source_file("/p/ios/View.swift", """
            import Shared

            let greeting = Shared.Greeting()
        """, platform="ios")
        references = analyzer.analyze_file(app)

        assert [(r.symbol, r.count) for r in references] == [("com.example.shared.Greeting", 1)]


class TestInteropPrefixedNames:
    """Tests for Objective-C names exported with the framework prefix."""

    def test_prefixed_name_counts_when_framework_is_imported(self, analyzer, make_source_file):
        app = make_source_file("/p/ios/Bridge.m", """
            #import <Shared/Shared.h>

            SharedGreeting *greeting = [[SharedGreeting alloc] init];
        """, platform="ios")
        references = analyzer.analyze_file(app)

        assert [(r.symbol, r.count) for r in references] == [("com.example.shared.Greeting", 2)]

    def test_prefixed_name_ignored_without_import(self, analyzer, make_source_file):
        app = make_source_file("/p/ios/Bridge.m", "SharedGreeting *greeting = nil;\n", platform="ios")
        assert analyzer.analyze_file(app) == []

    def test_module_import_syntax(self, analyzer, make_source_file):
        app = make_source_file("/p/ios/Bridge.m", "@import AppKMP;\nAppKMPFoo *foo;\n", platform="ios")
        references = analyzer.analyze_file(app)

        assert [(r.symbol, r.count) for r in references] == [("com.example.shared.Foo", 1)]

    def test_android_files_have_no_interop_path(self, analyzer, make_source_file):
        app = make_source_file("/p/app/Use.kt", "import Shared\nval x = SharedGreeting\n")
        assert analyzer.analyze_file(app) == []


class TestUsageAnalysis:
    """Tests for whole-run behaviour."""

    def test_results_are_sorted_and_order_independent(self, analyzer, make_source_file):
        files = [
            make_source_file("/p/app/B.kt", "val x = Foo\n"),
            make_source_file("/p/app/A.kt", "val y = bar() + Foo\n"),
            make_source_file("/p/ios/C.swift", "let g = Greeting()\n", platform="ios"),
        ]

        forward = analyzer.analyze_usages(files).references
        backward = analyzer.analyze_usages(list(reversed(files))).references

        assert forward == backward
        assert [(r.file_path, r.symbol) for r in forward] == [
            ("/p/app/A.kt", "com.example.shared.Foo"),
            ("/p/app/A.kt", "com.example.shared.bar"),
            ("/p/app/B.kt", "com.example.shared.Foo"),
            ("/p/ios/C.swift", "com.example.shared.Greeting"),
        ]

    def test_summary(self, analyzer, make_source_file):
        files = [
            make_source_file("/p/app/A.kt", "val y = Foo + Foo\n"),
            make_source_file("/p/app/B.kt", "val nothing = 0\n"),
        ]
        usage = analyzer.analyze_usages(files)

        assert usage.files_analyzed == 2
        assert usage.analysis_summary["total_references"] == 1
        assert usage.analysis_summary["total_occurrences"] == 2
        assert usage.analysis_summary["files_with_references"] == 1
        assert usage.analysis_summary["references_by_platform"] == {"android": 1}
        assert usage.references_for("ios") == []

    def test_empty_symbol_table_yields_no_references(self, make_source_file):
        usage = UsageAnalyzer(SymbolTable()).analyze_usages([make_source_file("/p/app/A.kt", "val Foo = 1\n")])

        assert usage.references == []
        assert usage.files_analyzed == 1
