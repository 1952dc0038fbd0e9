"""
System requirements checking.

Reports whether a TeX engine is usable and where the locator looks for one.
"""

import os
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from resumeide.contexts.building.tool_locator import ToolLocator, path_exists


@dataclass
class RequirementsStatus:
    """
    Availability of external tools.

    Attributes:
        compiler_available: Whether the resolved compiler can be used
        compiler_path: Absolute path of the compiler (None if unavailable)
        all_satisfied: Whether every requirement is met
    """

    compiler_available: bool
    compiler_path: Optional[str] = None
    all_satisfied: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def check_requirements(locator: Optional[ToolLocator] = None) -> RequirementsStatus:
    """
    Check that a compiler can be run.

    A path command counts as available when the file exists (the version
    probe is not trusted for those); a bare command when it runs from PATH.
    """
    locator = locator if locator is not None else ToolLocator()
    tool = locator.resolve()

    if tool.is_bare:
        available = tool.verified
        compiler_path = shutil.which(tool.command) if available else None
        # Runs but cannot be located (e.g. a shell alias)
        if available and compiler_path is None:
            compiler_path = tool.command
    else:
        available = path_exists(Path(tool.command))
        compiler_path = tool.command if available else None

    return RequirementsStatus(
        compiler_available=available,
        compiler_path=compiler_path,
        all_satisfied=available,
    )


def describe_search(locator: Optional[ToolLocator] = None) -> str:
    """
    Human-readable report of where the compiler is searched for.

    Lists the home directory, every candidate path with whether it exists,
    and whether the bare command is found on PATH.
    """
    locator = locator if locator is not None else ToolLocator()
    home_var = "USERPROFILE" if locator.platform.startswith("win") else "HOME"

    lines = [f"{home_var}: {os.getenv(home_var, 'NOT_FOUND')}", "Common paths:"]
    candidates = locator.candidate_paths()
    if not candidates:
        lines.append("  (none for this platform)")
    for path in candidates:
        lines.append(f"  {path}: {'EXISTS' if path_exists(path) else 'not found'}")

    in_path = shutil.which(locator.command)
    lines.append("")
    if in_path:
        lines.append(f"{locator.command} found in PATH: {in_path}")
    else:
        lines.append(f"{locator.command} not found in PATH")

    return "\n".join(lines)
