"""Current-document state shared between the editor and the build."""

import threading
from pathlib import Path
from typing import Optional


class DocumentState:
    """
    Thread-safe holder for the path of the document currently open.

    Passed explicitly to BuildOrchestrator.compile_current() instead of
    living in a module-level global.
    """

    def __init__(self, current: Optional[Path] = None):
        self._lock = threading.Lock()
        self._current = Path(current) if current is not None else None

    @property
    def current(self) -> Optional[Path]:
        with self._lock:
            return self._current

    def open(self, path: Path) -> None:
        with self._lock:
            self._current = Path(path)

    def clear(self) -> None:
        with self._lock:
            self._current = None
