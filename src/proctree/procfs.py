"""Access to per-process records under the procfs mount.

PUBLIC API:
  - ProcSource: Protocol the tree builder reads processes through
  - ProcfsSource: ProcSource backed by psutil.PROCFS_PATH
"""

import logging
import os
from typing import Protocol

import psutil

from proctree.models import AuxField

logger = logging.getLogger(__name__)


class ProcSource(Protocol):
    """Where process records come from.

    Read methods return None when the record no longer exists and raise
    OSError for any other failure.
    """

    def list_pids(self) -> list[int]: ...

    def read_primary_record(self, pid: int) -> bytes | None: ...

    def read_aux_field(self, pid: int, field: AuxField) -> bytes | None: ...

    def path(self, pid: int, name: str) -> str: ...


class ProcfsSource:
    """
    ProcSource reading the live procfs.

    The mount point is psutil.PROCFS_PATH, looked up on every call so that
    it can be pointed elsewhere (containers, tests) after construction.
    """

    def path(self, pid: int, name: str) -> str:
        return os.path.join(psutil.PROCFS_PATH, str(pid), name)

    def list_pids(self) -> list[int]:
        try:
            return psutil.pids()
        except IndexError:
            # psutil indexes the first pid without checking for an empty listing
            logger.debug(f"No process entries under {psutil.PROCFS_PATH}")
            return []

    def read_primary_record(self, pid: int) -> bytes | None:
        return self._read(self.path(pid, "stat"))

    def read_aux_field(self, pid: int, field: AuxField) -> bytes | None:
        path = self.path(pid, field.value)
        if field is AuxField.CWD:
            try:
                return os.fsencode(os.readlink(path))
            except (FileNotFoundError, ProcessLookupError):
                return None
        return self._read(path)

    def _read(self, path: str) -> bytes | None:
        """Read a whole record, or None if the process is gone."""
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, ProcessLookupError) as e:
            logger.debug(f"Could not read {path}: {e}")
            return None
