"""
Building Context

Responsibilities:
- Locates a TeX engine across installation layouts
- Compiles .tex files to PDF in a scratch build directory
- Copies the PDF next to the source file
- Reports failures as values, keeping compiler output for diagnostics

Owns: Compiler discovery, process invocation, scratch directory, PDF placement
Never: Interprets LaTeX source or compiler output
"""

from resumeide.contexts.building.compiler import (
    BuildFailure,
    BuildOrchestrator,
    BuildResult,
    artifact_name_for,
    default_build_dir,
)
from resumeide.contexts.building.relocator import RelocationError, place
from resumeide.contexts.building.requirements import (
    RequirementsStatus,
    check_requirements,
    describe_search,
)
from resumeide.contexts.building.session import DocumentState
from resumeide.contexts.building.tool_locator import ResolvedTool, ToolLocator

__all__ = [
    "BuildFailure",
    "BuildOrchestrator",
    "BuildResult",
    "DocumentState",
    "RelocationError",
    "RequirementsStatus",
    "ResolvedTool",
    "ToolLocator",
    "artifact_name_for",
    "check_requirements",
    "default_build_dir",
    "describe_search",
    "place",
]
