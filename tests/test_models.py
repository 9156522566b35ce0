"""Tests for proctree data models."""

from dataclasses import replace

import pytest

from fakes import stat_line
from proctree.models import AuxField, AuxPolicy, Process
from proctree.parser import parse_stat


def make_record(**aux):
    return replace(parse_stat(stat_line(123, "test_process", ppid=1), "/proc/123/stat"), **aux)


def test_process_record_creation():
    """Test ProcessRecord carries the parsed fields."""
    record = make_record(cwd="/home/test")

    assert record.pid == 123
    assert record.name == "test_process"
    assert record.state == "S"
    assert record.ppid == 1
    assert record.cwd == "/home/test"


def test_process_record_is_frozen():
    """Test that ProcessRecord is immutable (frozen)."""
    record = make_record()

    with pytest.raises(AttributeError):
        record.pid = 456  # type: ignore


def test_process_record_uses_slots():
    """Test ProcessRecord uses __slots__ for memory efficiency."""
    assert not hasattr(make_record(), "__dict__")


def test_argv_splits_on_nul():
    """Test argv splits the raw command line on NUL separators."""
    record = make_record(cmdline=b"/usr/bin/python3\x00-m\x00my app\x00")
    assert record.argv == ["/usr/bin/python3", "-m", "my app"]


def test_argv_empty_for_kernel_threads():
    """Test argv is empty when there is no command line."""
    assert make_record().argv == []


def test_environment_parses_pairs():
    """Test environment decodes KEY=VALUE pairs and skips junk entries."""
    record = make_record(environ=b"HOME=/root\x00PATH=/bin:/usr/bin\x00EMPTY=\x00junk\x00A=b=c\x00")
    assert record.environment == {
        "HOME": "/root",
        "PATH": "/bin:/usr/bin",
        "EMPTY": "",
        "A": "b=c",
    }


def test_environment_empty():
    """Test an unreadable environment yields an empty dict."""
    assert make_record().environment == {}


class TestProcess:
    """Tests for Process."""

    def test_forwards_record_fields(self):
        """Test pid, ppid and name come from the record."""
        proc = Process(record=make_record(), children=(200, 300))
        assert proc.pid == 123
        assert proc.ppid == 1
        assert proc.name == "test_process"
        assert proc.children == (200, 300)

    def test_default_no_children(self):
        """Test a Process has no children by default."""
        assert Process(record=make_record()).children == ()

    def test_is_frozen(self):
        """Test Process is immutable."""
        proc = Process(record=make_record())
        with pytest.raises(AttributeError):
            proc.children = (1,)  # type: ignore


class TestEnums:
    """Tests for AuxField and AuxPolicy."""

    def test_aux_field_values_are_procfs_names(self):
        """Test AuxField values name the procfs entries."""
        assert [f.value for f in AuxField] == ["environ", "cwd", "cmdline"]

    def test_aux_policy_members(self):
        """Test AuxPolicy has strict and lenient modes."""
        assert AuxPolicy("strict") is AuxPolicy.STRICT
        assert AuxPolicy("lenient") is AuxPolicy.LENIENT
