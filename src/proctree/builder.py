"""Snapshot builder: enumerate, scan and link processes into a Tree."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import psutil

from proctree.errors import (
    AuxiliaryFieldError,
    EnumerationError,
    MissingParentError,
    ScanError,
    StructuralParseError,
)
from proctree.models import AuxField, AuxPolicy, Process, ProcessRecord
from proctree.parser import parse_stat
from proctree.procfs import ProcfsSource, ProcSource
from proctree.tree import Tree

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Builds process tree snapshots from a ProcSource.

    Each call to build() is independent and all-or-nothing: it either
    returns a complete, consistent Tree or raises a ProcTreeError.
    """

    def __init__(
        self,
        source: ProcSource | None = None,
        *,
        aux_policy: AuxPolicy = AuxPolicy.STRICT,
        max_workers: int = 1,
    ) -> None:
        """
        Initialize the TreeBuilder.

        Args:
            source: Where to read processes from. Defaults to the live procfs.
            aux_policy: STRICT surfaces unexpected environ/cwd/cmdline read
                errors, LENIENT leaves those fields empty.
            max_workers: Threads used to scan processes. 1 scans inline.
        """
        self._source: ProcSource = source if source is not None else ProcfsSource()
        self._aux_policy = aux_policy
        self._max_workers = max(1, max_workers)

    @property
    def aux_policy(self) -> AuxPolicy:
        """Get the auxiliary read policy."""
        return self._aux_policy

    @property
    def max_workers(self) -> int:
        """Get the number of scan threads."""
        return self._max_workers

    def build(self) -> Tree:
        """Take one snapshot of the process tree."""
        started = time.monotonic()
        pids = self._enumerate()
        records = self._scan_all(pids)
        tree = self._link(records)
        logger.info(
            f"Built tree of {len(tree)} processes "
            f"({len(pids) - len(records)} vanished) in {time.monotonic() - started:.3f}s"
        )
        return tree

    def _enumerate(self) -> list[int]:
        try:
            return list(self._source.list_pids())
        except (OSError, psutil.Error) as e:
            raise EnumerationError(f"could not list process ids: {e}") from e

    def _scan_all(self, pids: list[int]) -> dict[int, ProcessRecord]:
        """Scan every pid; the result is keyed by pid and excludes vanished ones."""
        if self._max_workers == 1:
            return self._collect(map(self.scan, pids))
        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="proctree-scan"
        ) as pool:
            return self._collect(pool.map(self.scan, pids))

    def _collect(self, results) -> dict[int, ProcessRecord]:
        records: dict[int, ProcessRecord] = {}
        for record in results:
            if record is None:
                continue
            if record.pid in records:
                logger.warning(f"Duplicate stat record for pid {record.pid}, keeping the first")
                continue
            records[record.pid] = record
        return records

    def scan(self, pid: int) -> ProcessRecord | None:
        """
        Read and parse one process.

        Returns:
            The parsed record, or None if the process vanished since listing.

        Raises:
            StructuralParseError: The stat record is malformed.
            ScanError: The stat record could not be read.
            AuxiliaryFieldError: Strict policy and an auxiliary read failed.
        """
        path = self._source.path(pid, "stat")
        try:
            data = self._source.read_primary_record(pid)
        except OSError as e:
            raise ScanError(pid, path, f"could not read: {e}") from e
        if data is None:
            logger.debug(f"pid {pid} vanished before its stat record was read")
            return None

        record = parse_stat(data, path)
        if record.pid != pid:
            raise StructuralParseError(pid, path, f"record is for pid {record.pid}")
        environ = self._read_aux(pid, AuxField.ENVIRON)
        cwd = self._read_aux(pid, AuxField.CWD)
        cmdline = self._read_aux(pid, AuxField.CMDLINE)
        return replace(record, environ=environ, cwd=os.fsdecode(cwd), cmdline=cmdline)

    def _read_aux(self, pid: int, field: AuxField) -> bytes:
        """Read one auxiliary field, applying the aux policy to failures."""
        try:
            data = self._source.read_aux_field(pid, field)
        except PermissionError:
            return b""
        except OSError as e:
            path = self._source.path(pid, field.value)
            if self._aux_policy is AuxPolicy.STRICT:
                raise AuxiliaryFieldError(pid, path, field, str(e)) from e
            logger.debug(f"Ignoring unreadable {path}: {e}")
            return b""
        return data or b""

    def _link(self, records: dict[int, ProcessRecord]) -> Tree:
        """Attach every process to its parent and freeze the result."""
        children: dict[int, set[int]] = {pid: set() for pid in records}
        for pid, record in records.items():
            if record.ppid == 0:
                continue
            siblings = children.get(record.ppid)
            if siblings is None:
                raise MissingParentError(pid, record.ppid)
            siblings.add(pid)

        return Tree(
            {
                pid: Process(record=record, children=tuple(sorted(children[pid])))
                for pid, record in records.items()
            }
        )


def build_tree(
    source: ProcSource | None = None,
    *,
    aux_policy: AuxPolicy = AuxPolicy.STRICT,
    max_workers: int = 1,
) -> Tree:
    """Take one snapshot of the process tree. See TreeBuilder."""
    return TreeBuilder(source, aux_policy=aux_policy, max_workers=max_workers).build()
