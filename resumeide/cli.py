"""
LaTeX Build CLI

Compiles LaTeX files to PDF and inspects compiler output.

Commands:
    compile  - Compile a .tex file, placing the PDF next to it
    diagnose - Parse a saved compiler log into diagnostics
    check    - Check that a TeX engine is available
    locate   - Show where the TeX engine is searched for

Examples:\n

    resumeide compile resume.tex                 # Compile

    resumeide compile resume.tex --verbose       # Include full compiler output

    resumeide compile resume.tex --json          # Machine-readable result

    resumeide diagnose build/resume.log          # Diagnostics from a log file
"""

import json
import os
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from resumeide.contexts.building import (
    BuildOrchestrator,
    ToolLocator,
    check_requirements,
    describe_search,
)
from resumeide.contexts.building.logger import setup_building_logger
from resumeide.contexts.diagnostics import (
    Diagnostic,
    Severity,
    count_by_severity,
    parse_diagnostics,
)
from resumeide.utils.timestamp import format_duration, now

load_dotenv()
LOGS_PATH = os.getenv("LOGS_PATH")

SEVERITY_COLORS = {
    Severity.ERROR: typer.colors.RED,
    Severity.WARNING: typer.colors.YELLOW,
    Severity.INFO: typer.colors.BLUE,
}


def display_path(path: Path) -> str:
    """Return path relative to the working directory for cleaner display."""
    try:
        return str(Path(path).resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def echo_diagnostics(diagnostics: List[Diagnostic], limit: int = 10) -> None:
    """Print diagnostics one per line, colored by severity."""
    for diagnostic in diagnostics[:limit]:
        location = f" (line {diagnostic.line})" if diagnostic.line is not None else ""
        typer.secho(
            f"  {diagnostic.severity.value}: {diagnostic.message}{location}",
            fg=SEVERITY_COLORS[diagnostic.severity],
        )
    if len(diagnostics) > limit:
        typer.echo(f"  ... and {len(diagnostics) - limit} more")


app = typer.Typer(
    help="Compile LaTeX documents to PDF and turn compiler output into diagnostics",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("compile")
def compile_command(
    source: Annotated[
        Path,
        typer.Argument(help="LaTeX source file to compile"),
    ],
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed compilation output (compiler stdout/stderr)",
        ),
    ] = False,
    timeout: Annotated[
        Optional[float],
        typer.Option(
            "--timeout",
            "-t",
            help="Seconds to wait for the compiler before giving up",
            min=0.1,
        ),
    ] = None,
    build_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--build-dir",
            "-b",
            help="Scratch directory for compiler output (default: user cache dir)",
        ),
    ] = None,
    compiler: Annotated[
        Optional[str],
        typer.Option(
            "--compiler",
            "-c",
            help="Compiler command or path (default: LATEX_COMPILER or pdflatex)",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the build result and diagnostics as JSON"),
    ] = False,
):
    """
    Compile a LaTeX document to PDF.

    The PDF is written next to the source file. Diagnostics parsed from the
    compiler output are shown whether or not the build succeeded.

    Examples:\n

        $ resumeide compile resume.tex                    # Compile

        $ resumeide compile resume.tex --timeout 60       # Give up after a minute

        $ resumeide compile resume.tex -c xelatex         # Use another engine
    """
    log_dir = Path(LOGS_PATH) / f"build_{now()}" if LOGS_PATH else None
    log_file = setup_building_logger(log_dir, verbose=verbose)

    locator = ToolLocator(command=compiler) if compiler else None
    orchestrator = BuildOrchestrator(
        locator=locator, build_dir=build_dir, timeout=timeout, verbose=verbose
    )
    result = orchestrator.compile_sync(source)
    diagnostics = parse_diagnostics(result.raw_log)

    if as_json:
        payload = result.to_dict()
        payload["diagnostics"] = [d.to_dict() for d in diagnostics]
        typer.echo(json.dumps(payload, indent=2))
        raise typer.Exit(code=0 if result.success else 1)

    counts = count_by_severity(diagnostics)
    typer.echo("")
    if result.success:
        typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Warnings: {counts[Severity.WARNING]}")
        typer.echo(f"  PDF: {display_path(result.artifact_path)}")
    else:
        typer.secho(f"✗ {result.error_message}", fg=typer.colors.RED, bold=True)
        typer.echo(f"  Errors: {counts[Severity.ERROR]}")

    typer.echo(f"  Time: {format_duration(result.duration)}")

    if diagnostics and (verbose or not result.success):
        typer.echo("\nDiagnostics:")
        echo_diagnostics(diagnostics)

    if log_file:
        typer.echo(f"  Log: {display_path(log_file)}")
    typer.echo("")

    raise typer.Exit(code=0 if result.success else 1)


@app.command("diagnose")
def diagnose_command(
    log_file: Annotated[
        Path,
        typer.Argument(
            help="Compiler output or .log file to parse",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    encoding: Annotated[
        str,
        typer.Option(
            "--encoding",
            "-e",
            help="Text encoding of the log (TeX writes latin-1 log files)",
        ),
    ] = "latin-1",
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print diagnostics as JSON"),
    ] = False,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum diagnostics to print", min=1),
    ] = 50,
):
    """
    Parse a saved compiler log into diagnostics.

    Exits with code 1 when the log contains errors.
    """
    raw_text = log_file.read_text(encoding=encoding, errors="replace")
    diagnostics = parse_diagnostics(raw_text)
    counts = count_by_severity(diagnostics)

    if as_json:
        typer.echo(json.dumps([d.to_dict() for d in diagnostics], indent=2))
    elif diagnostics:
        typer.secho(
            f"{counts[Severity.ERROR]} errors, {counts[Severity.WARNING]} warnings",
            bold=True,
        )
        echo_diagnostics(diagnostics, limit=limit)
    else:
        typer.secho("No diagnostics found", fg=typer.colors.GREEN)

    raise typer.Exit(code=1 if counts[Severity.ERROR] else 0)


@app.command("check")
def check_command():
    """Check that a TeX engine is installed and runnable."""
    status = check_requirements()

    if status.all_satisfied:
        typer.secho("✓ LaTeX compiler available", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Path: {status.compiler_path}")
    else:
        typer.secho("✗ LaTeX compiler not found", fg=typer.colors.RED, bold=True)
        typer.echo("  Install TeX Live, MiKTeX or MacTeX, or set LATEX_COMPILER.")

    raise typer.Exit(code=0 if status.all_satisfied else 1)


@app.command("locate")
def locate_command():
    """Show where the TeX engine is searched for."""
    typer.echo(describe_search())


if __name__ == "__main__":
    app()
