"""Shared fixtures: a stand-in TeX engine for tests that must not need LaTeX."""

import sys
import textwrap
from pathlib import Path

import pytest

# Exits 1 on every run so that tests check success is decided by the PDF
FAKE_COMPILER = textwrap.dedent(
    """\
    #!{python}
    import os
    import pathlib
    import sys
    import time

    MODE = "{mode}"

    args = sys.argv[1:]
    if args == ["--version"]:
        print("FakeTeX 1.0")
        sys.exit(0)

    output_dir = next(a.split("=", 1)[1] for a in args if a.startswith("-output-directory="))
    source = pathlib.Path(args[-1])

    print("This is FakeTeX, Version 1.0")
    print("PATH0=" + os.environ.get("PATH", "").split(os.pathsep)[0])
    print("LaTeX Warning: Reference `sec:intro' on page 1 undefined")

    if MODE == "sleep":
        sys.stdout.flush()
        (source.parent / "started").write_text("")
        time.sleep(30)

    if MODE == "fail":
        print("! Undefined control sequence.")
        print("l.3 \\\\badcommand")
    else:
        (pathlib.Path(output_dir) / (source.stem + ".pdf")).write_bytes(b"%PDF-1.4 fake")

    sys.stderr.write("fake stderr output\\n")
    sys.exit(1)
    """
)


@pytest.fixture
def fake_compiler(tmp_path):
    """
    Factory writing an executable fake compiler into tmp_path/texbin.

    Modes: "ok" writes a PDF, "fail" writes none and prints an error,
    "sleep" touches a `started` marker next to the source and hangs.
    """

    def make(mode: str = "ok") -> Path:
        directory = tmp_path / "texbin"
        directory.mkdir(exist_ok=True)
        script = directory / f"faketex-{mode}"
        script.write_text(FAKE_COMPILER.format(python=sys.executable, mode=mode))
        script.chmod(0o755)
        return script

    return make
