"""Tests for build/linker.py LinkerBlockReader."""

from __future__ import annotations

from buildlens.build.linker import LinkerBlockReader
from buildlens.build.models import LinkerError


def _read(text: str) -> tuple[LinkerError, ...]:
    reader = LinkerBlockReader()
    for line in text.splitlines():
        reader.feed(line)
    return reader.finish()


UNDEFINED_BLOCK = """\
Undefined symbols for architecture arm64:
  "_OBJC_CLASS_$_Foo", referenced from:
      objc-class-ref in ViewController.o
      objc-class-ref in Other.o
  "_bar", referenced from:
      _main in main.o
ld: symbol(s) not found for architecture arm64
"""

DUPLICATE_BLOCK = """\
duplicate symbol '_main' in:
    /build/a.o
    /build/b.o
ld: 1 duplicate symbol for architecture x86_64
"""


class TestUndefinedSymbols:
    """Undefined-symbol blocks."""

    def test_one_error_per_symbol_with_first_reference(self) -> None:
        errors = _read(UNDEFINED_BLOCK)

        assert errors == (
            LinkerError(
                symbol="_OBJC_CLASS_$_Foo",
                architecture="arm64",
                referenced_from="ViewController.o",
            ),
            LinkerError(symbol="_bar", architecture="arm64", referenced_from="main.o"),
        )

    def test_reference_on_same_line(self) -> None:
        errors = _read(
            'Undefined symbols for architecture arm64:\n'
            '  "_baz", referenced from: _main in main.o\n'
        )
        assert errors == (
            LinkerError(symbol="_baz", architecture="arm64", referenced_from="main.o"),
        )

    def test_block_lines_consumed(self) -> None:
        reader = LinkerBlockReader()
        consumed = [reader.feed(line) for line in UNDEFINED_BLOCK.splitlines()]
        assert all(consumed)

    def test_repeated_block_deduplicated(self) -> None:
        assert len(_read(UNDEFINED_BLOCK + UNDEFINED_BLOCK)) == 2

    def test_object_path_with_spaces(self) -> None:
        object_path = "/Users/me/DerivedData/My App-abc/Build/ViewController.o"
        errors = _read(
            "Undefined symbols for architecture arm64:\n"
            '  "_OBJC_CLASS_$_Foo", referenced from:\n'
            f"      objc-class-ref in {object_path}\n"
            "ld: symbol(s) not found for architecture arm64\n"
        )

        assert errors == (
            LinkerError(
                symbol="_OBJC_CLASS_$_Foo",
                architecture="arm64",
                referenced_from=object_path,
            ),
        )

    def test_archive_member_origin(self) -> None:
        errors = _read(
            "Undefined symbols for architecture x86_64:\n"
            '  "_bar", referenced from:\n'
            "      _baz in libStuff.a(bar.o)\n"
            "ld: symbol(s) not found for architecture x86_64\n"
        )

        assert errors == (
            LinkerError(
                symbol="_bar",
                architecture="x86_64",
                referenced_from="libStuff.a(bar.o)",
            ),
        )

    def test_unrecognized_origin_still_reported(self) -> None:
        errors = _read(
            "Undefined symbols for architecture arm64:\n"
            '  "_first", referenced from:\n'
            "      <initial-undefines>\n"
            '  "_second", referenced from:\n'
            "      _main in main.o\n"
            "ld: symbol(s) not found for architecture arm64\n"
        )

        assert errors == (
            LinkerError(symbol="_first", architecture="arm64"),
            LinkerError(symbol="_second", architecture="arm64", referenced_from="main.o"),
        )

    def test_symbol_without_origin_flushed_at_end(self) -> None:
        errors = _read('Undefined symbols for architecture arm64:\n  "_late", referenced from:\n')
        assert errors == (LinkerError(symbol="_late", architecture="arm64"),)


class TestDuplicateSymbols:
    """Duplicate-symbol blocks."""

    def test_block_collects_conflicting_files(self) -> None:
        errors = _read(DUPLICATE_BLOCK)
        assert errors == (
            LinkerError(
                symbol="_main",
                architecture="x86_64",
                conflicting_files=("/build/a.o", "/build/b.o"),
            ),
        )

    def test_double_quoted_symbol(self) -> None:
        errors = _read(DUPLICATE_BLOCK.replace("'_main'", '"_main"'))
        assert errors[0].symbol == "_main"

    def test_unterminated_block_flushed_at_end(self) -> None:
        errors = _read("duplicate symbol '_helper' in:\n    /build/c.o\n")
        assert errors == (
            LinkerError(symbol="_helper", architecture=None, conflicting_files=("/build/c.o",)),
        )

    def test_multiple_pending_blocks_share_summary(self) -> None:
        text = (
            "duplicate symbol '_a' in:\n    /x.o\n    /y.o\n"
            "duplicate symbol '_b' in:\n    /x.o\n    /z.o\n"
            "ld: 2 duplicate symbols for architecture arm64\n"
        )
        errors = _read(text)
        assert [(e.symbol, e.architecture) for e in errors] == [("_a", "arm64"), ("_b", "arm64")]


class TestMessageOnlyErrors:
    """Single-line linker failures without a symbol."""

    def test_framework_not_found(self) -> None:
        assert _read("ld: framework not found Foo\n") == (
            LinkerError(message="framework not found Foo"),
        )

    def test_library_not_found(self) -> None:
        assert _read("ld: library not found for -lBar\n") == (
            LinkerError(message="library not found for -lBar"),
        )

    def test_platform_mismatch(self) -> None:
        line = "ld: building for iOS Simulator, but linking in object file built for iOS"
        assert _read(line) == (LinkerError(message=line),)

    def test_duplicate_lines_deduplicated(self) -> None:
        assert len(_read("ld: framework not found Foo\nld: framework not found Foo\n")) == 1


class TestNonLinkerLines:
    """Lines outside linker blocks are not consumed."""

    def test_compiler_error_not_consumed(self) -> None:
        reader = LinkerBlockReader()
        assert not reader.feed("main.swift:1:1: error: oops")
        assert reader.finish() == ()

    def test_blank_line_not_consumed(self) -> None:
        assert not LinkerBlockReader().feed("   ")
