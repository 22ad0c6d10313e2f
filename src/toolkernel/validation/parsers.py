"""Diagnostic parsers for type-check and build output.

Type-checkers and bundlers print errors in several incompatible line
formats. Each stage has a list of recognizers; every matching line becomes
one ``Diagnostic``. Lines that match nothing are ignored here; the pipeline
decides whether an unparsed failure needs a synthesized diagnostic.

Recognized check-stage formats:
    src/app.ts(12,5): error TS2322: Type 'string' is not assignable to type 'number'.
    src/app.ts:12:5 - error TS2322: Type 'string' is not assignable to type 'number'.

Recognized build-stage formats:
    error TS2304: Cannot find name 'foo' at src/main.ts:3:1
    [ERROR] Could not resolve "./missing"
    ✘ [ERROR] Could not resolve "./missing"
"""

import re
from typing import Literal

from pydantic import BaseModel

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

TSC_PAREN_FORMAT = re.compile(
    r"^(?P<file>[^\s(][^(]*)\((?P<line>\d+),(?P<column>\d+)\):\s*"
    r"(?P<severity>error|warning)\s+(?P<code>[A-Z]*\d+):\s*(?P<message>.+)$"
)
TSC_PRETTY_FORMAT = re.compile(
    r"^(?P<file>[^\s:][^:]*):(?P<line>\d+):(?P<column>\d+)\s+-\s+"
    r"(?P<severity>error|warning)\s+(?P<code>[A-Z]*\d+):\s*(?P<message>.+)$"
)
BUILD_LOCATED_FORMAT = re.compile(
    r"^(?P<severity>error|warning)\s+(?P<code>[A-Za-z_][\w-]*):\s*(?P<message>.+?)"
    r"\s+at\s+(?P<file>\S+?):(?P<line>\d+):(?P<column>\d+)\s*$",
    re.IGNORECASE,
)
BUILD_BRACKET_FORMAT = re.compile(
    r"^(?:\S+\s+)?\[(?P<severity>ERROR|WARNING)\]\s*(?P<message>.+)$"
)


class Diagnostic(BaseModel):
    """A normalized diagnostic, whichever tool produced the raw text."""

    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None
    code: str | None = None
    kind: Literal["syntax", "reference", "style", "best_practice"] = "syntax"
    severity: Literal["error", "warning"] = "error"

    def format(self) -> str:
        """Render as ``file:line:column - severity code: message``."""
        location = ""
        if self.file:
            location = self.file
            if self.line is not None:
                location += f":{self.line}"
                if self.column is not None:
                    location += f":{self.column}"
            location += " - "
        code = f" {self.code}" if self.code else ""
        return f"{location}{self.severity}{code}: {self.message}"


def strip_ansi(text: str) -> str:
    """Remove terminal colour sequences."""
    return ANSI_ESCAPE.sub("", text)


def _from_match(match: re.Match[str]) -> Diagnostic:
    groups = match.groupdict()
    return Diagnostic(
        message=groups["message"].strip(),
        file=groups.get("file"),
        line=int(groups["line"]) if groups.get("line") else None,
        column=int(groups["column"]) if groups.get("column") else None,
        code=groups.get("code"),
        severity="warning" if groups["severity"].lower() == "warning" else "error",
    )


def _parse(output: str, formats: tuple[re.Pattern[str], ...]) -> list[Diagnostic]:
    diagnostics = []
    for raw_line in strip_ansi(output).splitlines():
        line = raw_line.strip()
        if not line:
            continue
        for fmt in formats:
            match = fmt.match(line)
            if match:
                diagnostics.append(_from_match(match))
                break
    return diagnostics


def parse_type_check_output(output: str) -> list[Diagnostic]:
    """Parse type-checker output into diagnostics.

    Example:
        >>> parse_type_check_output("a.ts(1,2): error TS1005: ';' expected.")[0].line
        1
    """
    return _parse(output, (TSC_PAREN_FORMAT, TSC_PRETTY_FORMAT))


def parse_build_output(output: str) -> list[Diagnostic]:
    """Parse build tool output into diagnostics.

    The type-checker formats are accepted too, since most build scripts run
    the compiler first.
    """
    return _parse(
        output,
        (BUILD_LOCATED_FORMAT, BUILD_BRACKET_FORMAT, TSC_PAREN_FORMAT, TSC_PRETTY_FORMAT),
    )
