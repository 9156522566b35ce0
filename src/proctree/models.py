"""Data models for proctree."""

from dataclasses import dataclass
from enum import Enum


class AuxField(Enum):
    """Auxiliary per-process fields read next to the stat record."""

    ENVIRON = "environ"
    CWD = "cwd"
    CMDLINE = "cmdline"


class AuxPolicy(Enum):
    """How strictly auxiliary read failures are treated."""

    STRICT = "strict"  # unexpected I/O errors fail the build
    LENIENT = "lenient"  # every auxiliary read is best-effort


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """
    Immutable parsed contents of /proc/<pid>/stat.

    Fields follow proc(5). Times are in clock ticks, rss is in pages.
    """

    pid: int
    name: str
    state: str  # 'R', 'S', 'Z', 'D', etc.
    ppid: int
    pgrp: int
    session: int
    tty: int
    tpgid: int
    flags: int
    minflt: int
    cminflt: int
    majflt: int
    cmajflt: int
    utime: int
    stime: int
    cutime: int
    cstime: int
    priority: int
    nice: int
    num_threads: int
    itrealvalue: int
    starttime: int
    vsize: int  # Bytes
    rss: int
    environ: bytes = b""
    cwd: str = ""
    cmdline: bytes = b""

    @property
    def argv(self) -> list[str]:
        """Command line split on NUL separators."""
        if not self.cmdline:
            return []
        return self.cmdline.rstrip(b"\x00").decode("utf-8", "replace").split("\x00")

    @property
    def environment(self) -> dict[str, str]:
        """Environment block as a dict; entries without '=' are dropped."""
        env: dict[str, str] = {}
        for entry in self.environ.decode("utf-8", "replace").split("\x00"):
            key, sep, value = entry.partition("=")
            if sep and key:
                env[key] = value
        return env


@dataclass(slots=True, frozen=True)
class Process:
    """A scanned process and the pids of its direct children."""

    record: ProcessRecord
    children: tuple[int, ...] = ()

    @property
    def pid(self) -> int:
        """Get the process ID."""
        return self.record.pid

    @property
    def ppid(self) -> int:
        """Get the parent process ID."""
        return self.record.ppid

    @property
    def name(self) -> str:
        """Get the command name."""
        return self.record.name
