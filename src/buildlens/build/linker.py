"""Linker error extraction.

ld reports undefined and duplicate symbols as multi-line blocks::

    Undefined symbols for architecture arm64:
      "_OBJC_CLASS_$_Foo", referenced from:
          objc-class-ref in ViewController.o
    ld: symbol(s) not found for architecture arm64

    duplicate symbol '_main' in:
        /build/a.o
        /build/b.o
    ld: 1 duplicate symbol for architecture arm64

``LinkerBlockReader`` is fed one line at a time and remembers where it is in
such a block. Single-line failures (missing framework or library, platform
mismatch) are recognized too.
"""

from __future__ import annotations

import re

from buildlens.build.models import LinkerError

_UNDEFINED_HEADER_RE = re.compile(r"^Undefined symbols for architecture (?P<arch>[^:]+):")
_REFERENCED_SYMBOL_RE = re.compile(r'^"(?P<symbol>.+)", referenced from:\s*(?P<origin>.*)$')
_REFERENCE_ORIGIN_RE = re.compile(
    r"^(?P<function>.+?) in (?P<object>.+\.[oa](?:\([^()]+\))?)$"
)
_DUPLICATE_HEADER_RE = re.compile(
    r"""^duplicate symbol (?:'(?P<single>[^']+)'|"(?P<double>[^"]+)"|(?P<bare>\S+))(?: in:)?"""
)
_DUPLICATE_SUMMARY_RE = re.compile(r"^ld: .*duplicate symbols?(?: for architecture (?P<arch>\S+))?")
_FRAMEWORK_NOT_FOUND_PREFIX = "ld: framework not found "
_LIBRARY_NOT_FOUND_PREFIX = "ld: library not found for "
_SYMBOLS_NOT_FOUND_PREFIX = "ld: symbol(s) not found"


class LinkerBlockReader:
    """Accumulates ``LinkerError`` values across the lines of one build log.

    Call ``feed`` for every line in order, then ``finish`` once at the end.
    ``feed`` returns True when the line belonged to a linker block and should
    not be offered to any other matcher.
    """

    def __init__(self) -> None:
        self._errors: list[LinkerError] = []
        self._architecture: str | None = None
        self._pending_symbol: str | None = None
        self._referenced_symbols: set[tuple[str, str | None]] = set()
        # Duplicate-symbol blocks awaiting their "ld: N duplicate symbols" line
        self._pending_duplicates: list[tuple[str, list[str]]] = []

    @property
    def errors(self) -> tuple[LinkerError, ...]:
        return tuple(self._errors)

    def feed(self, line: str) -> bool:
        trimmed = line.strip()
        if not trimmed:
            return False

        header = _UNDEFINED_HEADER_RE.match(trimmed)
        if header:
            self._close_symbol()
            self._architecture = header.group("arch").strip()
            return True

        referenced = _REFERENCED_SYMBOL_RE.match(trimmed)
        if referenced:
            self._close_symbol()
            self._pending_symbol = referenced.group("symbol")
            origin = referenced.group("origin").strip()
            if origin:
                same_line = _REFERENCE_ORIGIN_RE.match(origin)
                self._record_reference(same_line.group("object") if same_line else origin)
            return True

        if self._pending_symbol is not None:
            origin = _REFERENCE_ORIGIN_RE.match(trimmed)
            if origin:
                self._record_reference(origin.group("object"))
                return True

        duplicate = _DUPLICATE_HEADER_RE.match(trimmed)
        if duplicate:
            symbol = (
                duplicate.group("single") or duplicate.group("double") or duplicate.group("bare")
            )
            self._pending_duplicates.append((symbol, []))
            return True

        if (
            self._pending_duplicates
            and line[:1] in (" ", "\t")
            and trimmed.endswith((".o", ".a"))
        ):
            self._pending_duplicates[-1][1].append(trimmed)
            return True

        if trimmed.startswith(_FRAMEWORK_NOT_FOUND_PREFIX):
            framework = trimmed[len(_FRAMEWORK_NOT_FOUND_PREFIX) :]
            self._append(LinkerError(message=f"framework not found {framework}"))
            return True

        if trimmed.startswith(_LIBRARY_NOT_FOUND_PREFIX):
            library = trimmed[len(_LIBRARY_NOT_FOUND_PREFIX) :]
            self._append(LinkerError(message=f"library not found for {library}"))
            return True

        if trimmed.startswith("ld: building for ") and "but linking" in trimmed:
            self._append(LinkerError(message=trimmed))
            return True

        summary = _DUPLICATE_SUMMARY_RE.match(trimmed)
        if summary:
            self._flush_duplicates(summary.group("arch"))
            return True

        if trimmed.startswith(_SYMBOLS_NOT_FOUND_PREFIX):
            self._close_symbol()
            return True

        return False

    def finish(self) -> tuple[LinkerError, ...]:
        """Flush blocks left open at end of input and return every error."""
        self._flush_duplicates(None)
        self._close_symbol()
        return self.errors

    def _record_reference(self, origin: str | None) -> None:
        symbol = self._pending_symbol
        if symbol is None:
            return
        # Only the first reference per symbol is reported
        key = (symbol, self._architecture)
        if key not in self._referenced_symbols:
            self._referenced_symbols.add(key)
            self._append(
                LinkerError(
                    symbol=symbol,
                    architecture=self._architecture,
                    referenced_from=origin,
                )
            )

    def _close_symbol(self) -> None:
        """End the current undefined-symbol entry.

        A symbol whose origin lines were never recognized is still reported,
        without ``referenced_from``.
        """
        if self._pending_symbol is not None:
            self._record_reference(None)
        self._pending_symbol = None

    def _flush_duplicates(self, architecture: str | None) -> None:
        for symbol, files in self._pending_duplicates:
            self._append(
                LinkerError(
                    symbol=symbol,
                    architecture=architecture,
                    conflicting_files=tuple(files),
                )
            )
        self._pending_duplicates = []

    def _append(self, error: LinkerError) -> None:
        if error not in self._errors:
            self._errors.append(error)
