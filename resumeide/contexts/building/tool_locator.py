"""
TeX engine discovery.

Finds a runnable compiler command: the bare command name when it runs from
PATH, otherwise the first existing entry of a per-platform table of
well-known install locations, otherwise the bare name anyway so that the
failure surfaces when the build actually runs.
"""

import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from dotenv import load_dotenv
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from resumeide.contexts.building.logger import _log_debug, _log_warning

load_dotenv()


def env_seconds(name: str, default: float) -> float:
    """Read a duration from the environment; unset or empty means default."""
    value = os.getenv(name)
    return float(value) if value else default


DEFAULT_COMPILER = os.getenv("LATEX_COMPILER") or "pdflatex"
TOOL_PROBE_TIMEOUT = env_seconds("TOOL_PROBE_TIMEOUT", 10.0)
LOCATIONS_FILE = Path(__file__).with_name("tool_locations.yaml")
VERSION_FLAG = "--version"


def is_path_like(command: str) -> bool:
    """Whether a command names a file path rather than a PATH lookup."""
    return "/" in command or "\\" in command


@dataclass(frozen=True)
class ResolvedTool:
    """
    A compiler command ready to be spawned.

    Attributes:
        command: Bare command name or absolute path
        is_bare: True when the command relies on the PATH search
        verified: True when the version probe succeeded
    """

    command: str
    is_bare: bool
    verified: bool = False

    @property
    def directory(self) -> Optional[Path]:
        """Containing directory for path commands, None for bare names."""
        if self.is_bare:
            return None
        return Path(self.command).parent

    def child_env(self, base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Environment for the compiler child process.

        Path commands get their directory prepended to PATH so that co-located
        shared libraries resolve. Always returns a new dict; os.environ is
        left untouched.
        """
        env = dict(os.environ if base_env is None else base_env)
        if self.is_bare:
            return env

        current_path = env.get("PATH", "")
        parts = [str(self.directory)]
        if current_path:
            parts.append(current_path)
        env["PATH"] = os.pathsep.join(parts)
        return env


def probe_command(command: str, timeout: float = TOOL_PROBE_TIMEOUT) -> bool:
    """Run `command --version` and report whether it exited cleanly."""
    try:
        completed = subprocess.run(
            [command, VERSION_FLAG],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return completed.returncode == 0


def _home_dir(platform: str) -> Path:
    try:
        return Path.home()
    except RuntimeError:
        return Path("C:/Users/Default") if platform.startswith("win") else Path("/")


def load_known_locations(
    tool: str,
    platform: str = sys.platform,
    home: Optional[Path] = None,
    locations_file: Path = LOCATIONS_FILE,
) -> List[Path]:
    """
    Resolve the install location table for one platform.

    Args:
        tool: Compiler command name substituted for ${tool}
        platform: sys.platform style identifier ("win32", "darwin", "linux")
        home: Home directory substituted for ${home} (default: current user's)
        locations_file: YAML table with a `locations` list of {platform, path}

    Returns:
        Candidate paths in table order
    """
    if home is None:
        home = _home_dir(platform)

    table = OmegaConf.load(locations_file)
    table = OmegaConf.merge(table, {"home": home.as_posix(), "tool": tool})
    resolved = OmegaConf.to_container(table, resolve=True)

    return [
        Path(entry["path"])
        for entry in resolved.get("locations", [])
        if platform.startswith(entry["platform"])
    ]


def absolute_command(command: str) -> str:
    """
    Fully-qualified form of a path command, anchored at the current directory.

    The compiler runs from the source's directory, so a relative command
    would otherwise name a different file there.
    """
    path = Path(command)
    try:
        return str(path.expanduser().resolve())
    except (OSError, RuntimeError):
        # Unknown ~user or unreadable link: keep the spelling, anchored here
        return str(Path.cwd() / path)


def path_exists(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


class ToolLocator:
    """
    Finds the compiler command to run.

    Args:
        command: Bare compiler command name (default: LATEX_COMPILER or "pdflatex")
        candidates: Install paths to try after PATH (default: the platform table)
        probe: Callable reporting whether a command runs (default: version probe)
        platform: Platform used to select table entries

    Example:
        tool = ToolLocator().resolve()
        tool.command  # "pdflatex" or e.g. "C:/Program Files/MiKTeX/.../pdflatex.exe"
    """

    def __init__(
        self,
        command: str = DEFAULT_COMPILER,
        candidates: Optional[Sequence[Path]] = None,
        probe: Callable[[str], bool] = probe_command,
        platform: str = sys.platform,
    ):
        self.command = command or "pdflatex"
        self.probe = probe
        self.platform = platform
        self._candidates = None if candidates is None else [Path(c) for c in candidates]

    def candidate_paths(self) -> List[Path]:
        """Install paths tried when the bare command does not run."""
        if self._candidates is not None:
            return list(self._candidates)
        try:
            return load_known_locations(self.command, platform=self.platform)
        except (OSError, OmegaConfBaseException) as e:
            _log_warning(f"Could not load install locations from {LOCATIONS_FILE}: {e}")
            return []

    def resolve(self) -> ResolvedTool:
        """
        Pick the compiler command. Never raises.

        Order: bare command if its probe succeeds, then the first candidate
        path that exists (probed, but kept even if the probe fails), then the
        bare command unverified.
        """
        if is_path_like(self.command):
            command = absolute_command(self.command)
            verified = path_exists(Path(command)) and self.probe(command)
            return ResolvedTool(command, is_bare=False, verified=verified)

        if self.probe(self.command):
            _log_debug(f"{self.command} found on PATH")
            return ResolvedTool(self.command, is_bare=True, verified=True)

        for path in self.candidate_paths():
            if path_exists(path):
                # Some installs fail the version probe but still compile
                verified = self.probe(str(path))
                _log_debug(f"{self.command} found at {path} (verified={verified})")
                return ResolvedTool(str(path), is_bare=False, verified=verified)

        _log_debug(f"{self.command} not found; falling back to bare command")
        return ResolvedTool(self.command, is_bare=True, verified=False)
