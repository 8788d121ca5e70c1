#!/usr/bin/env python3
"""
Parsers turning compiler console output into diagnostic records.

Each backend prints diagnostics in its own format; the parsers here normalize
them into :class:`Diagnostic` objects, keeping multi-line message details and
dropping the echoed source line and caret marker.
"""

from __future__ import annotations

import re
from typing import List, Optional, Protocol, Tuple

from .core_types import Diagnostic, DiagnosticKind

_CARET_PATTERN = re.compile(r"^\s*\^+\s*$")


def _split_source_echo(lines: List[str]) -> Tuple[List[str], Optional[int]]:
    """
    Remove the echoed source line and the caret line that follows it.

    Returns:
        Tuple of (remaining lines, 1-based caret column or None)
    """
    for index, line in enumerate(lines):
        if _CARET_PATTERN.match(line):
            column = line.index("^") + 1
            start = index - 1 if index > 0 else index
            return lines[:start] + lines[index + 1:], column
    return lines, None


class CompilerOutputParser(Protocol):
    """Protocol defining interface for compiler output parsers."""

    def parse(self, output: str) -> List[Diagnostic]:
        """Parse raw compiler output into diagnostics, in emission order."""
        ...


class JavacOutputParser:
    """Parser for the text diagnostics printed by javac."""

    def __init__(self) -> None:
        self.header_pattern = re.compile(
            r"^(?P<file>.+?):(?P<line>\d+): (?P<kind>error|warning): (?P<message>.*)$"
        )
        self.fileless_pattern = re.compile(r"^(?P<kind>error|warning): (?P<message>.*)$")
        self.note_pattern = re.compile(r"^Note: (?P<message>.*)$")
        self.summary_pattern = re.compile(r"^\d+ (errors?|warnings?)$")

    def parse(self, output: str) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        pending: Optional[dict] = None

        def flush() -> None:
            nonlocal pending
            if pending is not None:
                diagnostics.append(self._build(pending))
                pending = None

        for raw in output.splitlines():
            line = raw.rstrip()
            if match := self.header_pattern.match(line):
                flush()
                pending = {
                    "kind": match.group("kind"),
                    "source": match.group("file"),
                    "line": int(match.group("line")),
                    "lines": [match.group("message")],
                }
            elif match := self.fileless_pattern.match(line):
                flush()
                pending = {
                    "kind": match.group("kind"),
                    "source": None,
                    "line": None,
                    "lines": [match.group("message")],
                }
            elif match := self.note_pattern.match(line):
                flush()
                diagnostics.append(
                    Diagnostic(kind=DiagnosticKind.NOTE, message=match.group("message"))
                )
            elif self.summary_pattern.match(line.strip()):
                flush()
            elif pending is not None:
                pending["lines"].append(line)

        flush()
        return diagnostics

    @staticmethod
    def _build(pending: dict) -> Diagnostic:
        first, *rest = pending["lines"]
        details, column = _split_source_echo(rest)
        message = "\n".join([first] + [d.strip() for d in details if d.strip()])
        return Diagnostic(
            kind=DiagnosticKind.from_string(pending["kind"]),
            message=message,
            source=pending["source"],
            line=pending["line"],
            column=column,
        )


class EcjOutputParser:
    """Parser for the problem blocks printed by the Eclipse batch compiler."""

    _KINDS = {
        "ERROR": DiagnosticKind.ERROR,
        "WARNING": DiagnosticKind.WARNING,
        "INFO": DiagnosticKind.NOTE,
    }

    def __init__(self) -> None:
        self.header_pattern = re.compile(
            r"^\d+\. (?P<kind>ERROR|WARNING|INFO) in (?P<file>.+?) \(at line (?P<line>\d+)\)$"
        )
        self.separator_pattern = re.compile(r"^-{10,}$")

    def parse(self, output: str) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        pending: Optional[dict] = None

        for raw in output.splitlines():
            line = raw.rstrip()
            if match := self.header_pattern.match(line):
                if pending is not None:
                    diagnostics.append(self._build(pending))
                pending = {
                    "kind": self._KINDS[match.group("kind")],
                    "source": match.group("file"),
                    "line": int(match.group("line")),
                    "lines": [],
                }
            elif self.separator_pattern.match(line):
                if pending is not None:
                    diagnostics.append(self._build(pending))
                pending = None
            elif pending is not None:
                pending["lines"].append(line)

        if pending is not None:
            diagnostics.append(self._build(pending))
        return diagnostics

    @staticmethod
    def _build(pending: dict) -> Diagnostic:
        lines, column = _split_source_echo(pending["lines"])
        message = "\n".join(line.strip() for line in lines if line.strip())
        return Diagnostic(
            kind=pending["kind"],
            message=message,
            source=pending["source"],
            line=pending["line"],
            column=column,
        )
