"""
Unit tests for the resumeide command line.

Uses typer's CliRunner; compiler discovery is replaced where a command would
otherwise depend on the local TeX installation.
"""

import json
import sys

import pytest
from loguru import logger
from typer.testing import CliRunner

from resumeide import cli
from resumeide.contexts.building import RequirementsStatus

runner = CliRunner()

FAILED_RUN = r"""This is pdfTeX, Version 3.141592653-2.6-1.40.25
! Undefined control sequence.
l.12 \badcommand
LaTeX Warning: Reference `sec:intro' on page 1 undefined on input line 20.
"""

CLEAN_RUN = "This is pdfTeX, Version 3.141592653-2.6-1.40.25\nOutput written on resume.pdf\n"


@pytest.fixture(autouse=True)
def restore_logger():
    """Commands reconfigure loguru; put the default handler back afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def failed_log(tmp_path):
    path = tmp_path / "resume.log"
    path.write_text(FAILED_RUN, encoding="latin-1")
    return path


@pytest.mark.unit
class TestDiagnoseCommand:
    """Tests for `resumeide diagnose`."""

    def test_reports_errors(self, failed_log):
        result = runner.invoke(cli.app, ["diagnose", str(failed_log)])

        assert result.exit_code == 1
        assert "1 errors, 1 warnings" in result.output
        assert "error: Undefined control sequence. (line 12)" in result.output

    def test_json_output(self, failed_log):
        result = runner.invoke(cli.app, ["diagnose", str(failed_log), "--json"])

        diagnostics = json.loads(result.output)
        assert diagnostics[0] == {
            "severity": "error",
            "message": "Undefined control sequence.",
            "file": None,
            "line": 12,
            "column": None,
        }
        assert diagnostics[1]["severity"] == "warning"

    def test_clean_log(self, tmp_path):
        log_file = tmp_path / "clean.log"
        log_file.write_text(CLEAN_RUN)

        result = runner.invoke(cli.app, ["diagnose", str(log_file)])

        assert result.exit_code == 0
        assert "No diagnostics found" in result.output

    def test_limit(self, tmp_path):
        log_file = tmp_path / "warnings.log"
        log_file.write_text("\n".join(f"LaTeX Warning: number {i}" for i in range(5)))

        result = runner.invoke(cli.app, ["diagnose", str(log_file), "--limit", "2"])

        assert result.exit_code == 0
        assert "number 1" in result.output
        assert "number 2" not in result.output
        assert "... and 3 more" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(cli.app, ["diagnose", str(tmp_path / "nope.log")])

        assert result.exit_code != 0


@pytest.mark.unit
class TestCheckCommand:
    """Tests for `resumeide check`."""

    def test_available(self, monkeypatch):
        status = RequirementsStatus(
            compiler_available=True, compiler_path="/usr/bin/pdflatex", all_satisfied=True
        )
        monkeypatch.setattr(cli, "check_requirements", lambda: status)

        result = runner.invoke(cli.app, ["check"])

        assert result.exit_code == 0
        assert "LaTeX compiler available" in result.output
        assert "/usr/bin/pdflatex" in result.output

    def test_missing(self, monkeypatch):
        monkeypatch.setattr(
            cli, "check_requirements", lambda: RequirementsStatus(compiler_available=False)
        )

        result = runner.invoke(cli.app, ["check"])

        assert result.exit_code == 1
        assert "LaTeX compiler not found" in result.output


@pytest.mark.unit
def test_locate_prints_report(monkeypatch):
    monkeypatch.setattr(cli, "describe_search", lambda: "Common paths:\n  /usr/bin/pdflatex: EXISTS")

    result = runner.invoke(cli.app, ["locate"])

    assert result.exit_code == 0
    assert "/usr/bin/pdflatex: EXISTS" in result.output


@pytest.mark.unit
def test_no_command_shows_help():
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0
    assert "compile" in result.output
    assert "diagnose" in result.output


@pytest.mark.unit
@pytest.mark.skipif(sys.platform.startswith("win"), reason="fake compiler relies on a shebang script")
class TestCompileCommand:
    """Tests for `resumeide compile` against the fake compiler."""

    @pytest.fixture
    def source(self, tmp_path):
        path = tmp_path / "resume.tex"
        path.write_text("\\documentclass{article}\n")
        return path

    @pytest.fixture
    def compile_args(self, tmp_path, source):
        return ["compile", str(source), "--build-dir", str(tmp_path / "build")]

    @pytest.fixture(autouse=True)
    def no_log_dir(self, monkeypatch):
        monkeypatch.setattr(cli, "LOGS_PATH", None)

    def test_success(self, tmp_path, fake_compiler, compile_args):
        result = runner.invoke(cli.app, compile_args + ["--compiler", str(fake_compiler())])

        assert result.exit_code == 0, result.output
        assert "Compilation succeeded" in result.output
        assert "Warnings: 1" in result.output
        assert (tmp_path / "resume.pdf").exists()

    def test_failure_exit_code(self, fake_compiler, compile_args):
        result = runner.invoke(cli.app, compile_args + ["-c", str(fake_compiler("fail"))])

        assert result.exit_code == 1
        assert "Compilation failed - no PDF generated" in result.output
        assert "Undefined control sequence. (line 3)" in result.output

    def test_missing_compiler(self, compile_args):
        result = runner.invoke(cli.app, compile_args + ["-c", "definitely-not-a-tex-engine-xyz"])

        assert result.exit_code == 1
        assert "TeX Live or MiKTeX" in result.output

    def test_writes_log_file(self, tmp_path, fake_compiler, compile_args, monkeypatch):
        monkeypatch.setattr(cli, "LOGS_PATH", str(tmp_path / "logs"))

        runner.invoke(cli.app, compile_args + ["-c", str(fake_compiler())])

        logger.remove()
        log_files = list((tmp_path / "logs").glob("build_*/build.log"))
        assert len(log_files) == 1
        assert "Starting compilation: resume.tex" in log_files[0].read_text()
