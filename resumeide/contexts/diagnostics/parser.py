"""
Diagnostics parsing for LaTeX compiler output.

Turns the free-form text a TeX engine prints into an ordered list of
Diagnostic records. Each line is checked against a fixed sequence of rules
(first match wins):

1. "! ..."            - TeX error, optionally with an embedded "LaTeX Error:" label
2. "... error: ..."   - generic error token (case-insensitive)
3. "... warning: ..." - generic warning token (case-insensitive)
4. "LaTeX Warning: ..." - engine-specific warning label
5. "l.<digits> ..."   - input line reference for the preceding diagnostic

Everything else is ignored. Parsing never fails; callers are expected to hand
in already-decoded text (invalid bytes replaced).
"""

import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

# TeX error sentinel: "! Undefined control sequence."
ERROR_SENTINEL = "! "

# Embedded label after the sentinel: "! LaTeX Error: ...", "! Package babel Error: ..."
EMBEDDED_ERROR_LABEL = re.compile(r"^(?:LaTeX|Package\s+\S+|Class\s+\S+)\s+Error:\s*")

ERROR_TOKEN = "error:"
WARNING_TOKEN = "warning:"
ENGINE_WARNING_LABEL = "LaTeX Warning:"

# Input line reference: "l.15 \badcommand"
LINE_REFERENCE_PREFIX = "l."
LINE_REFERENCE_DIGITS = re.compile(r"[0-9]+")

LOCATION_FIELDS = ("file", "line", "column")


class Severity(str, Enum):
    """Severity level of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Diagnostic:
    """
    A single diagnostic message from the compiler.

    Severity is fixed once constructed. Location fields start unset and may be
    attached later by a following "l.<n>" line, but are never cleared.

    Attributes:
        severity: Error, warning or info
        message: Message text with the matched marker stripped
        file: Source file the message refers to (if known)
        line: 1-based input line (if known)
        column: 1-based column (if known)
    """

    severity: Severity
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def __setattr__(self, name, value):
        if name == "severity" and "severity" in self.__dict__:
            raise AttributeError("Diagnostic severity cannot be changed after construction")
        if name in LOCATION_FIELDS and value is None and self.__dict__.get(name) is not None:
            raise AttributeError(f"Diagnostic {name} cannot be cleared once set")
        super().__setattr__(name, value)

    @classmethod
    def error(cls, message: str) -> "Diagnostic":
        return cls(Severity.ERROR, message)

    @classmethod
    def warning(cls, message: str) -> "Diagnostic":
        return cls(Severity.WARNING, message)

    @classmethod
    def info(cls, message: str) -> "Diagnostic":
        return cls(Severity.INFO, message)

    def attach_line(self, line: int) -> bool:
        """Set the line number if none is set yet. Returns whether it was attached."""
        if self.line is not None:
            return False
        self.line = line
        return True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


def _extract_after_pattern(line: str, pattern: str) -> str:
    """
    Return the trimmed text after a case-insensitive match of pattern.

    The slice is taken from the original-case line. Returns an empty string
    when the pattern does not occur.

    Examples:
        _extract_after_pattern("error: something bad", "error:")  # "something bad"
        _extract_after_pattern("ERROR: uppercase", "error:")      # "uppercase"
    """
    match = re.search(re.escape(pattern), line, re.IGNORECASE)
    if match is None:
        return ""
    return line[match.end() :].strip()


def _parse_line_number(line: str) -> Optional[int]:
    """
    Parse the number from an "l.<digits>" reference.

    Examples:
        _parse_line_number("l.42 \\foo")  # 42
        _parse_line_number("l.")         # None
    """
    if not line.startswith(LINE_REFERENCE_PREFIX):
        return None
    match = LINE_REFERENCE_DIGITS.match(line, len(LINE_REFERENCE_PREFIX))
    if match is None:
        return None
    return int(match.group())


def _strip_error_sentinel(line: str) -> str:
    message = line[len(ERROR_SENTINEL) :]
    return EMBEDDED_ERROR_LABEL.sub("", message, count=1)


def _classify_line(line: str) -> Tuple[str, Optional[Diagnostic]]:
    """
    Apply the rules to one line.

    Returns a (rule, diagnostic) pair where rule is one of "emit", "locate" or
    "ignore". The diagnostic is None for anything but a non-empty "emit".
    """
    if line.startswith(ERROR_SENTINEL):
        return "emit", Diagnostic.error(_strip_error_sentinel(line))

    lowered = line.lower()
    for token, severity in ((ERROR_TOKEN, Severity.ERROR), (WARNING_TOKEN, Severity.WARNING)):
        if token in lowered:
            message = _extract_after_pattern(line, token)
            return "emit", Diagnostic(severity, message) if message else None

    if ENGINE_WARNING_LABEL in line:
        message = _extract_after_pattern(line, ENGINE_WARNING_LABEL)
        return "emit", Diagnostic.warning(message) if message else None

    if line.startswith(LINE_REFERENCE_PREFIX):
        return "locate", None

    return "ignore", None


def _split_lines(raw_text: str) -> Iterable[str]:
    for line in raw_text.split("\n"):
        yield line.rstrip("\r")


def parse_diagnostics(raw_text: str) -> List[Diagnostic]:
    """
    Parse compiler output into an ordered list of diagnostics.

    Single pass over the lines, carrying the index of the last emitted
    diagnostic so that "l.<n>" references attach to it.

    Args:
        raw_text: Combined compiler output, already decoded

    Returns:
        Diagnostics in the order their lines appeared

    Example:
        output = "! Undefined control sequence.\\nl.15 \\\\badcommand"
        parse_diagnostics(output)
        # [Diagnostic(severity=ERROR, message="Undefined control sequence.", line=15)]
    """
    diagnostics: List[Diagnostic] = []
    last_index: Optional[int] = None

    for line in _split_lines(raw_text):
        rule, diagnostic = _classify_line(line)

        if rule == "emit":
            if diagnostic is not None:
                diagnostics.append(diagnostic)
                last_index = len(diagnostics) - 1
        elif rule == "locate" and last_index is not None:
            line_number = _parse_line_number(line)
            if line_number is not None:
                diagnostics[last_index].attach_line(line_number)

    return diagnostics


def count_by_severity(diagnostics: Iterable[Diagnostic]) -> Dict[Severity, int]:
    """Count diagnostics per severity (every severity present, zero if absent)."""
    counts = {severity: 0 for severity in Severity}
    for diagnostic in diagnostics:
        counts[diagnostic.severity] += 1
    return counts
