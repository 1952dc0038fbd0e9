"""
LaTeX Compilation Module

Handles compilation of .tex files to PDF by running a TeX engine
(pdflatex by default) in a scratch build directory, then copying the PDF next
to the source file.
"""

import asyncio
import os
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import platformdirs
from dotenv import load_dotenv

from resumeide.contexts.building.logger import (
    _log_debug,
    _log_warning,
    log_compilation_result,
    log_compilation_start,
    log_tool_resolved,
)
from resumeide.contexts.building.relocator import RelocationError, place
from resumeide.contexts.building.session import DocumentState
from resumeide.contexts.building.tool_locator import ResolvedTool, ToolLocator
from resumeide.contexts.diagnostics import parse_diagnostics

load_dotenv()

APP_NAME = "ResumeIDE"
ARTIFACT_EXTENSION = ".pdf"
FALLBACK_ARTIFACT_NAME = "output.pdf"

BATCH_MODE_FLAG = "-interaction=nonstopmode"
OUTPUT_DIRECTORY_FLAG = "-output-directory"

READ_CHUNK_SIZE = 64 * 1024
# Seconds to wait for leftover output once a timed-out compiler is killed
LEFTOVER_READ_TIMEOUT = 2.0


class BuildFailure(str, Enum):
    """Why a build did not produce a PDF at the expected location."""

    ENVIRONMENT = "environment"
    TOOL_MISSING = "tool_missing"
    COMPILATION = "compilation"
    RELOCATION = "relocation"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class BuildResult:
    """
    Result of one compile attempt.

    Attributes:
        success: Whether a PDF is now next to the source file
        artifact_path: Path to that PDF (None if failed)
        raw_log: Compiler stdout followed by stderr
        duration: Wall-clock seconds for the whole attempt
        error_message: Human-readable cause (None if succeeded)
        failure: Failure category (None if succeeded)
    """

    success: bool
    artifact_path: Optional[Path] = None
    raw_log: str = ""
    duration: float = 0.0
    error_message: Optional[str] = None
    failure: Optional[BuildFailure] = None

    def __post_init__(self):
        if self.success:
            if self.artifact_path is None:
                raise ValueError("Successful BuildResult requires an artifact_path")
            if self.error_message is not None or self.failure is not None:
                raise ValueError("Successful BuildResult cannot carry an error")
        else:
            if self.artifact_path is not None:
                raise ValueError("Failed BuildResult cannot have an artifact_path")
            if not self.error_message or self.failure is None:
                raise ValueError("Failed BuildResult requires an error_message and failure")

    @property
    def duration_ms(self) -> int:
        return int(self.duration * 1000)

    def to_dict(self) -> dict:
        """Caller-facing representation (JSON-serializable)."""
        return {
            "success": self.success,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
            "raw_log": self.raw_log,
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
            "failure": self.failure.value if self.failure else None,
        }


def default_build_dir() -> Path:
    """
    Scratch directory for compiler output (.aux, .log, .pdf).

    BUILD_DIR if set, else the per-user cache directory, else the per-user
    data directory, else the system temp directory.
    """
    override = os.getenv("BUILD_DIR")
    if override:
        return Path(override).expanduser().resolve()

    for root in (
        platformdirs.user_cache_dir(APP_NAME, appauthor=False),
        platformdirs.user_data_dir(APP_NAME, appauthor=False),
    ):
        if root and Path(root).is_absolute():
            return Path(root) / "build"

    return Path(tempfile.gettempdir()) / APP_NAME / "build"


def artifact_name_for(source_path: Path) -> str:
    """
    PDF file name for a source file: same stem, .pdf extension.

    Examples:
        artifact_name_for(Path("docs/resume.tex"))  # "resume.pdf"
        artifact_name_for(Path(""))                 # "output.pdf"
    """
    stem = Path(source_path).stem
    if not stem:
        return FALLBACK_ARTIFACT_NAME
    return f"{stem}{ARTIFACT_EXTENSION}"


def build_command(tool: ResolvedTool, source_path: Path, build_dir: Path) -> List[str]:
    """Compiler argv: batch mode, scratch output directory, source last."""
    return [
        tool.command,
        BATCH_MODE_FLAG,
        f"{OUTPUT_DIRECTORY_FLAG}={build_dir}",
        str(source_path),
    ]


def _decode(output: Optional[bytes]) -> str:
    # TeX output is not guaranteed to be UTF-8
    return (output or b"").decode("utf-8", errors="replace")


def _join_output(stdout: List[bytes], stderr: List[bytes]) -> str:
    """Compiler log: stdout, a newline, then stderr."""
    return f"{_decode(b''.join(stdout))}\n{_decode(b''.join(stderr))}"


async def _drain(stream: asyncio.StreamReader, chunks: List[bytes]) -> None:
    """Read a pipe to EOF, keeping every chunk as soon as it arrives."""
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            return
        chunks.append(chunk)


async def _terminate(
    process: asyncio.subprocess.Process, stdout: List[bytes], stderr: List[bytes]
) -> None:
    """Kill the compiler, then collect whatever output it wrote before dying."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    try:
        await asyncio.wait_for(
            asyncio.gather(_drain(process.stdout, stdout), _drain(process.stderr, stderr)),
            timeout=LEFTOVER_READ_TIMEOUT,
        )
    except asyncio.TimeoutError:
        # A child of the compiler still holds the pipes open
        _log_warning("Compiler output incomplete: pipes still open after kill")
    await process.wait()


class BuildOrchestrator:
    """
    Compiles a LaTeX document to a PDF next to it.

    One compile at a time: the scratch directory is shared between calls, so
    callers must not run compiles concurrently.

    Args:
        locator: Finds the compiler command (default: ToolLocator())
        build_dir: Scratch directory (default: default_build_dir() at call time)
        timeout: Seconds to wait for the compiler before killing it (None: no limit)
        relocate: Copies the built PDF to its destination (default: relocator.place)
        verbose: Log full compiler output even on success

    Example:
        orchestrator = BuildOrchestrator()
        result = await orchestrator.compile(Path("resume.tex"))
        if not result.success:
            for diagnostic in parse_diagnostics(result.raw_log):
                print(diagnostic.message)
    """

    def __init__(
        self,
        locator: Optional[ToolLocator] = None,
        build_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
        relocate: Callable[[Path, Path], None] = place,
        verbose: bool = False,
    ):
        self.locator = locator if locator is not None else ToolLocator()
        self._build_dir = Path(build_dir) if build_dir is not None else None
        self.timeout = timeout
        self.relocate = relocate
        self.verbose = verbose

    @property
    def build_dir(self) -> Path:
        if self._build_dir is not None:
            return self._build_dir.expanduser().resolve()
        return default_build_dir()

    async def compile(self, source_path: Path) -> BuildResult:
        """
        Compile source_path and copy the PDF into the same directory.

        Never raises: every failure is reported through the returned
        BuildResult, with the compiler output kept whenever there was any.

        Args:
            source_path: The .tex file to compile

        Returns:
            BuildResult with success status, PDF path and compiler output
        """
        source_path = Path(source_path)
        result = await self._run(source_path)
        log_compilation_result(
            source_path, result, parse_diagnostics(result.raw_log), verbose=self.verbose
        )
        return result

    async def compile_current(self, state: DocumentState) -> BuildResult:
        """Compile the document held by state."""
        source_path = state.current
        if source_path is None:
            return BuildResult(
                success=False,
                error_message="No file is currently open",
                failure=BuildFailure.ENVIRONMENT,
            )
        return await self.compile(source_path)

    def compile_sync(self, source_path: Path) -> BuildResult:
        """Blocking variant of compile() for scripts and tests."""
        return asyncio.run(self.compile(source_path))

    async def _run(self, source_path: Path) -> BuildResult:
        start_time = time.time()

        def finish(success: bool, **fields) -> BuildResult:
            return BuildResult(success=success, duration=time.time() - start_time, **fields)

        try:
            source_path = source_path.expanduser().resolve()
            build_dir = self.build_dir
        except (OSError, RuntimeError) as e:
            return finish(
                False,
                error_message=f"Cannot resolve build paths: {e}",
                failure=BuildFailure.ENVIRONMENT,
            )

        log_compilation_start(source_path, build_dir)

        try:
            build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return finish(
                False,
                error_message=f"Failed to create build directory {build_dir}: {e}",
                failure=BuildFailure.ENVIRONMENT,
            )

        if not source_path.is_file():
            return finish(
                False,
                error_message=f"Source file not found: {source_path}",
                failure=BuildFailure.ENVIRONMENT,
            )

        # A PDF left over from an earlier run would be mistaken for this run's output
        built_artifact = build_dir / artifact_name_for(source_path)
        try:
            built_artifact.unlink(missing_ok=True)
        except OSError as e:
            return finish(
                False,
                error_message=f"Failed to remove stale build output {built_artifact}: {e}",
                failure=BuildFailure.ENVIRONMENT,
            )

        tool = self.locator.resolve()
        log_tool_resolved(tool)

        command = build_command(tool, source_path, build_dir)
        _log_debug(f"  Command: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=source_path.parent,
                env=tool.child_env(),
            )
        except OSError as e:
            return finish(
                False,
                error_message=(
                    f"Failed to run {tool.command}: {e}. "
                    "Make sure TeX Live or MiKTeX is installed."
                ),
                failure=BuildFailure.TOOL_MISSING,
            )

        stdout: List[bytes] = []
        stderr: List[bytes] = []
        readers = asyncio.gather(
            _drain(process.stdout, stdout), _drain(process.stderr, stderr), process.wait()
        )
        try:
            await asyncio.wait_for(readers, timeout=self.timeout)
        except asyncio.TimeoutError:
            await _terminate(process, stdout, stderr)
            return finish(
                False,
                raw_log=_join_output(stdout, stderr),
                error_message=f"Compilation timed out after {self.timeout} seconds",
                failure=BuildFailure.TIMEOUT,
            )
        except asyncio.CancelledError:
            await _terminate(process, stdout, stderr)
            return finish(
                False,
                raw_log=_join_output(stdout, stderr),
                error_message="Compilation cancelled",
                failure=BuildFailure.CANCELLED,
            )

        raw_log = _join_output(stdout, stderr)
        # Exit status is informational only: pdflatex exits non-zero on
        # recoverable errors and still writes a usable PDF
        _log_debug(f"  Exit code: {process.returncode}")

        if not built_artifact.is_file():
            return finish(
                False,
                raw_log=raw_log,
                error_message="Compilation failed - no PDF generated",
                failure=BuildFailure.COMPILATION,
            )

        destination = source_path.parent / built_artifact.name
        try:
            self.relocate(built_artifact, destination)
        except RelocationError as e:
            return finish(
                False,
                raw_log=raw_log,
                error_message=str(e),
                failure=BuildFailure.RELOCATION,
            )

        return finish(True, artifact_path=destination, raw_log=raw_log)
