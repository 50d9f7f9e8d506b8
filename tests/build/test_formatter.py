"""Tests for build/formatter.py."""

from __future__ import annotations

from typing import Any

from buildlens.build.formatter import (
    format_build_result,
    format_test_result,
    partition_warnings,
)
from buildlens.build.models import (
    BuildError,
    BuildResult,
    BuildSummary,
    BuildWarning,
    FailedTest,
    LinkerError,
    SlowTest,
)
from buildlens.build.parser import parse_build_output
from buildlens.coverage.models import CodeCoverage


def _result(
    *,
    build_time: str | None = None,
    passed_tests: int | None = None,
    test_time: str | None = None,
    coverage: CodeCoverage | None = None,
    **sequences: Any,
) -> BuildResult:
    """Assemble a result the way ParseState does, with derived counts."""
    errors = tuple(sequences.get("errors", ()))
    warnings = tuple(sequences.get("warnings", ()))
    failed_tests = tuple(sequences.get("failed_tests", ()))
    linker_errors = tuple(sequences.get("linker_errors", ()))
    slow_tests = tuple(sequences.get("slow_tests", ()))
    flaky_tests = frozenset(sequences.get("flaky_tests", ()))
    failed = bool(errors or linker_errors or failed_tests or flaky_tests)
    return BuildResult(
        status="failed" if failed else "success",
        summary=BuildSummary.derive(
            errors=errors,
            warnings=warnings,
            failed_tests=failed_tests,
            linker_errors=linker_errors,
            slow_tests=slow_tests,
            flaky_tests=flaky_tests,
            passed_tests=passed_tests,
            build_time=build_time,
            test_time=test_time,
            coverage=coverage,
        ),
        errors=errors,
        warnings=warnings,
        failed_tests=failed_tests,
        linker_errors=linker_errors,
        slow_tests=slow_tests,
        flaky_tests=flaky_tests,
        coverage=coverage,
    )


class TestFormatBuildResult:
    """Tests for format_build_result."""

    def test_clean_build(self) -> None:
        assert format_build_result(_result()) == "Build succeeded"

    def test_header_counts_and_time(self) -> None:
        result = _result(
            errors=[BuildError("a", "/p/A.swift", 1, 2), BuildError("b")],
            warnings=[BuildWarning("w", "/p/B.swift", 3)],
            build_time="12.4s",
        )

        header = format_build_result(result).split("\n")[0]

        assert header == "Build failed (2 errors, 1 warning, 12.4s)"

    def test_errors_block(self) -> None:
        result = _result(
            errors=[
                BuildError("cannot convert 'Int' to 'String'", "Sources/Foo.swift", 42, 10),
                BuildError("missing return", "Sources/Bar.swift", 15),
                BuildError("linker command failed"),
            ]
        )

        text = format_build_result(result)

        assert text == (
            "Build failed (3 errors)\n"
            "\n"
            "Errors:\n"
            "  Sources/Foo.swift:42:10 — cannot convert 'Int' to 'String'\n"
            "  Sources/Bar.swift:15 — missing return\n"
            "  linker command failed"
        )

    def test_warnings_listed_without_project_root(self) -> None:
        result = _result(warnings=[BuildWarning("unused variable 'x'", "Baz.swift", 88, 3)])

        assert format_build_result(result) == (
            "Build succeeded (1 warning)\n\nWarnings:\n  Baz.swift:88:3 — unused variable 'x'"
        )

    def test_successful_build_with_project_root_hides_warnings(self) -> None:
        result = _result(warnings=[BuildWarning("deprecated", "/Users/me/MyApp/A.swift", 1)])

        assert format_build_result(result, project_root="/Users/me/MyApp") == (
            "Build succeeded (1 warning)"
        )

    def test_failed_build_hides_dependency_warnings(self) -> None:
        result = _result(
            errors=[BuildError("boom", "/Users/me/MyApp/A.swift", 2)],
            warnings=[
                BuildWarning("local", "/Users/me/MyApp/A.swift", 1),
                BuildWarning("external", "/Users/me/.build/checkouts/Dep/B.swift", 9),
            ],
        )

        text = format_build_result(result, project_root="/Users/me/MyApp")

        assert "Warnings:\n  /Users/me/MyApp/A.swift:1 — local" in text
        assert "external" not in text
        assert text.endswith("(+1 warning from dependencies hidden)")

    def test_sibling_directory_is_not_inside_root(self) -> None:
        result = _result(
            errors=[BuildError("boom")],
            warnings=[BuildWarning("sibling", "/Users/me/MyAppKit/C.swift", 1)],
        )

        text = format_build_result(result, project_root="/Users/me/MyApp")

        assert "sibling" not in text
        assert "(+1 warning from dependencies hidden)" in text

    def test_linker_block(self) -> None:
        result = _result(
            linker_errors=[
                LinkerError(symbol="_foo", architecture="arm64", referenced_from="main.o"),
                LinkerError(
                    symbol="_main",
                    architecture="x86_64",
                    conflicting_files=("/b/a.o", "/b/b.o"),
                ),
                LinkerError(message="framework not found Foo"),
            ]
        )

        assert format_build_result(result) == (
            "Build failed (3 linker errors)\n"
            "\n"
            "Linker errors:\n"
            "  Undefined symbol '_foo' (arm64) referenced from main.o\n"
            "  Duplicate symbol '_main' (x86_64) in: /b/a.o, /b/b.o\n"
            "  framework not found Foo"
        )

    def test_deterministic(self) -> None:
        text = (
            "/p/A.swift:1:1: error: x\n"
            "/p/B.swift:2:1: warning: y\n"
            "ld: library not found for -lz\n"
        )
        first = format_build_result(parse_build_output(text))
        second = format_build_result(parse_build_output(text))
        assert first == second


class TestFormatTestResult:
    """Tests for format_test_result."""

    def test_no_tests(self) -> None:
        assert format_test_result(_result()) == "Test run completed"

    def test_passed_header(self) -> None:
        result = _result(passed_tests=42, test_time="3.200s")
        assert format_test_result(result) == "Tests passed (42 passed, 3.200s)"

    def test_failures_block(self) -> None:
        result = _result(
            passed_tests=42,
            failed_tests=[
                FailedTest(
                    "MyTests.testLogin",
                    "Expected true, got false",
                    file="Sources/MyTests.swift",
                    line=55,
                ),
                FailedTest("MyTests.testLogout", "Test failed"),
            ],
            test_time="3.200s",
        )

        assert format_test_result(result) == (
            "Tests failed (42 passed, 2 failed, 3.200s)\n"
            "\n"
            "Failures:\n"
            "  MyTests.testLogin — Expected true, got false (Sources/MyTests.swift:55)\n"
            "  MyTests.testLogout — Test failed"
        )

    def test_build_errors_shown_after_failures(self) -> None:
        result = _result(
            failed_tests=[FailedTest("T.a", "bad")],
            errors=[BuildError("cannot compile", "A.swift", 1, 1)],
        )

        text = format_test_result(result)

        assert text.index("Failures:") < text.index("Errors:")

    def test_slow_flaky_and_coverage(self) -> None:
        result = _result(
            passed_tests=3,
            slow_tests=[SlowTest("A slow", 2.5), SlowTest("A slower", 1.25)],
            flaky_tests={"Z flaky", "B flaky"},
            failed_tests=[FailedTest("-[Z flaky]", "0.100 seconds")],
            coverage=CodeCoverage(line_coverage=60.0),
        )

        blocks = format_test_result(result).split("\n\n")

        assert "Slow tests:\n  A slow (2.500s)\n  A slower (1.250s)" in blocks
        assert "Flaky tests:\n  B flaky\n  Z flaky" in blocks
        assert blocks[-1] == "Coverage: 60.0%"

    def test_flaky_only_run_reports_failure(self) -> None:
        text = (
            "Test Case '-[NetTests testFetch]' failed (0.200 seconds).\n"
            "Test Case '-[NetTests testFetch]' passed (0.100 seconds).\n"
        )

        formatted = format_test_result(parse_build_output(text))

        assert formatted.startswith("Tests failed")
        assert "Flaky tests:\n  NetTests testFetch" in formatted


class TestPartitionWarnings:
    """Tests for partition_warnings."""

    def test_only_unlocated_warnings_always_stay_local(self) -> None:
        warnings = [
            BuildWarning("no file"),
            BuildWarning("inside", "/Users/me/MyApp/Sources/A.swift", 1),
            BuildWarning("relative", "Pods/Lib/X.swift", 2),
            BuildWarning("outside", "/opt/dep/B.swift", 1),
        ]

        local, external = partition_warnings(warnings, "/Users/me/MyApp/")

        assert [w.message for w in local] == ["no file", "inside"]
        assert external == 2

    def test_relative_dependency_warning_hidden_on_failure(self) -> None:
        result = _result(
            errors=[BuildError("boom", "/proj/App.swift", 1)],
            warnings=[
                BuildWarning("local", "/proj/App.swift", 1),
                BuildWarning("relative dep", "Pods/Lib/X.swift", 2),
            ],
        )

        text = format_build_result(result, project_root="/proj")

        assert "relative dep" not in text
        assert "(+1 warning from dependencies hidden)" in text
