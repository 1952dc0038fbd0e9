"""
Building context logger.

Provides logging interface for the building context with automatic [build] prefix.
All building modules should import from this module, not from utils.logger directly.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger

from resumeide.utils.logger import setup_logger as _setup_logger
from resumeide.utils.timestamp import format_duration

load_dotenv()

CONTEXT_PREFIX = "[build]"


def setup_building_logger(log_dir: Optional[Path] = None, verbose: bool = False) -> Optional[Path]:
    """
    Setup logger for building context.

    Args:
        log_dir: Directory for this build session (None for console only)
        verbose: Show DEBUG messages on the console

    Returns:
        Path to log file, or None

    Example:
        from resumeide.contexts.building.logger import setup_building_logger

        setup_building_logger(Path("outs/logs/build_20251114_123456"))
    """
    return _setup_logger(
        context_name="build",
        log_dir=log_dir,
        extra_provenance={"LaTeX compiler": os.getenv("LATEX_COMPILER", "pdflatex")},
        level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [build] prefix


def _log_info(message: str) -> None:
    """Log info message with [build] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [build] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [build] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [build] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [build] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level building-specific logging helpers


def log_compilation_start(source_path: Path, build_dir: Path) -> None:
    """Log start of compilation with context."""
    _log_info(f"Starting compilation: {source_path.name}")
    _log_debug(f"  Source: {source_path}")
    _log_debug(f"  Build directory: {build_dir}")


def log_tool_resolved(tool) -> None:
    """Log which compiler command will be used (tool is a ResolvedTool)."""
    kind = "PATH lookup" if tool.is_bare else "absolute path"
    state = "verified" if tool.verified else "unverified"
    _log_debug(f"  Compiler: {tool.command} ({kind}, {state})")


def log_compilation_result(
    source_path: Path,
    result,  # BuildResult
    diagnostics: List,  # List[Diagnostic]
    verbose: bool = False,
) -> None:
    """
    Log compilation result with diagnostics.

    Args:
        source_path: Compiled source file
        result: BuildResult from BuildOrchestrator.compile()
        diagnostics: Diagnostics parsed from result.raw_log
        verbose: Show detailed warnings/errors (default: False)
    """
    errors = [d for d in diagnostics if d.severity.value == "error"]
    warnings = [d for d in diagnostics if d.severity.value == "warning"]
    elapsed = format_duration(result.duration)

    if result.success:
        _log_success(f"{source_path.name}: compiled with {len(warnings)} warnings ({elapsed})")
        _log_debug(f"  PDF: {result.artifact_path}")
    else:
        _log_error(f"{source_path.name}: {result.error_message} ({elapsed})")
        error_limit = 10 if verbose else 5
        for i, err in enumerate(errors[:error_limit], 1):
            location = f" (line {err.line})" if err.line is not None else ""
            _log_error(f"  Error {i}: {err.message}{location}")
        if len(errors) > error_limit:
            _log_error(f"  ... and {len(errors) - error_limit} more errors")

    if warnings:
        _log_warning(f"{len(warnings)} warnings detected")
        warning_limit = 10 if verbose else 3
        for i, warn in enumerate(warnings[:warning_limit], 1):
            _log_debug(f"  Warning {i}: {warn.message}")
        if len(warnings) > warning_limit:
            _log_debug(f"  ... and {len(warnings) - warning_limit} more warnings")

    # Raw output bypasses the format template so multi-line output stays intact
    if (verbose or not result.success) and result.raw_log.strip():
        logger.opt(raw=True).debug(
            f"\n{'=' * 80}\nCOMPILER OUTPUT:\n{'=' * 80}\n{result.raw_log}\n"
        )
