"""Parser for /proc/<pid>/stat records.

The second field is the executable name in parentheses. It may contain
spaces and parentheses of its own, so it is taken as everything between the
first '(' and the last ')'. The fields after it are positional.
"""

from proctree.errors import StructuralParseError
from proctree.models import ProcessRecord

# Positional fields after the name, in proc(5) order.
STAT_FIELDS = (
    "state",
    "ppid",
    "pgrp",
    "session",
    "tty",
    "tpgid",
    "flags",
    "minflt",
    "cminflt",
    "majflt",
    "cmajflt",
    "utime",
    "stime",
    "cutime",
    "cstime",
    "priority",
    "nice",
    "num_threads",
    "itrealvalue",
    "starttime",
    "vsize",
    "rss",
)

UNSIGNED_FIELDS = frozenset(
    {"flags", "minflt", "cminflt", "majflt", "cmajflt", "utime", "stime", "vsize"}
)


def parse_stat(data: bytes, path: str) -> ProcessRecord:
    """
    Parse one stat record.

    Args:
        data: Raw record contents.
        path: Where the record came from, used in error messages.

    Raises:
        StructuralParseError: The record does not have the expected shape.
    """
    text = data.decode("utf-8", "replace")

    left = text.find("(")
    right = text.rfind(")")
    if left == -1 or right < left:
        raise StructuralParseError(0, path, "file format invalid: no parenthesized name")

    head = text[:left].strip()
    pid = _to_int(head)
    if pid is None or pid <= 0:
        raise StructuralParseError(0, path, f"invalid pid format {head!r}")

    name = text[left + 1 : right]
    tail = text[right + 1 :].split()
    if len(tail) < len(STAT_FIELDS):
        raise StructuralParseError(
            pid, path, f"expected {len(STAT_FIELDS)} fields after name, got {len(tail)}"
        )

    values: dict[str, object] = {}
    for key, raw in zip(STAT_FIELDS, tail):
        if key == "state":
            if len(raw) != 1:
                raise StructuralParseError(pid, path, f"invalid state {raw!r}")
            values[key] = raw
            continue
        value = _to_int(raw)
        if value is None:
            raise StructuralParseError(pid, path, f"invalid {key} {raw!r}")
        if value < 0 and key in UNSIGNED_FIELDS:
            raise StructuralParseError(pid, path, f"negative {key} {raw!r}")
        values[key] = value

    return ProcessRecord(pid=pid, name=name, **values)


def _to_int(raw: str) -> int | None:
    """Decimal integer with an optional leading '-', else None."""
    digits = raw[1:] if raw.startswith("-") else raw
    if not digits.isascii() or not digits.isdigit():
        return None
    return int(raw)
