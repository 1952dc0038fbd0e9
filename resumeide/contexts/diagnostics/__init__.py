"""
Diagnostics Context

Responsibilities:
- Parses raw compiler output into structured diagnostics
- Attributes input line numbers to the diagnostic they belong to

Owns: Diagnostic records, severity classification
Never: Runs the compiler or touches the filesystem
"""

from resumeide.contexts.diagnostics.parser import (
    Diagnostic,
    Severity,
    count_by_severity,
    parse_diagnostics,
)

__all__ = ["Diagnostic", "Severity", "count_by_severity", "parse_diagnostics"]
