"""Copies a built PDF from the scratch directory to where the user expects it."""

import shutil
from pathlib import Path

from resumeide.contexts.building.logger import _log_debug


class RelocationError(Exception):
    """
    Raised when a built artifact cannot be copied to its destination.

    Kept separate from compilation failures: the document compiled, but the
    PDF could not be saved where it was wanted.

    Attributes:
        built_path: Artifact in the scratch directory
        destination_path: Where it was supposed to go
        original_error: The underlying OSError
    """

    def __init__(self, built_path: Path, destination_path: Path, original_error: OSError):
        self.built_path = built_path
        self.destination_path = destination_path
        self.original_error = original_error

        reason = original_error.strerror or str(original_error)
        super().__init__(f"Failed to copy PDF to {destination_path}: {reason}")


def place(built_path: Path, destination_path: Path) -> None:
    """
    Copy a built artifact to its destination, overwriting any existing file.

    The scratch copy is left in place.

    Args:
        built_path: Artifact produced in the scratch directory
        destination_path: Caller-visible location for the artifact

    Raises:
        RelocationError: If the copy fails (permissions, disk space, missing directory)
    """
    built_path = Path(built_path)
    destination_path = Path(destination_path)

    try:
        shutil.copy2(built_path, destination_path)
    except shutil.SameFileError:
        _log_debug(f"Artifact already at destination: {destination_path}")
        return
    except OSError as e:
        raise RelocationError(built_path, destination_path, e) from e

    _log_debug(f"Copied {built_path} -> {destination_path}")
