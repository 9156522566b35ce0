"""Exceptions raised while building a process tree.

PUBLIC API:
  - ProcTreeError: Base class for every build failure
  - EnumerationError: Listing candidate pids failed
  - ScanError: A stat record could not be read
  - StructuralParseError: A stat record was read but is malformed
  - AuxiliaryFieldError: environ, cwd or cmdline could not be read
  - MissingParentError: A scanned process names a parent that was not scanned
"""

from proctree.models import AuxField


class ProcTreeError(Exception):
    """Base class for process tree build failures."""


class EnumerationError(ProcTreeError):
    """Listing the process directory failed."""


class ScanError(ProcTreeError):
    """Reading a per-process record failed."""

    def __init__(self, pid: int, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.pid = pid
        self.path = path


class StructuralParseError(ScanError):
    """A stat record was readable but does not have the expected shape."""


class AuxiliaryFieldError(ScanError):
    """An auxiliary field read failed with an unexpected error."""

    def __init__(self, pid: int, path: str, field: AuxField, message: str) -> None:
        super().__init__(pid, path, f"could not read {field.value}: {message}")
        self.field = field


class MissingParentError(ProcTreeError):
    """A process refers to a parent pid absent from the snapshot."""

    def __init__(self, pid: int, ppid: int) -> None:
        super().__init__(f"parent pid={ppid} of pid={pid} does not exist")
        self.pid = pid
        self.ppid = ppid
