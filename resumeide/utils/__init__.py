"""
Shared utilities for ResumeIDE.

Common functionality used across contexts:
- Logger configuration
- Timestamp formatting
"""

from resumeide.utils.logger import setup_logger
from resumeide.utils.timestamp import format_duration, now

__all__ = ["format_duration", "now", "setup_logger"]
