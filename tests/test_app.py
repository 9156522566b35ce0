"""Tests for the proctree viewer."""

import pytest
from textual.widgets import Tree as TreeWidget

from fakes import FakeSource, stat_line
from proctree.app import ProcessTreeView, ProcTreeApp, format_label
from proctree.builder import TreeBuilder, build_tree
from proctree.models import AuxField

PARENTS = {1: 0, 2: 1, 3: 1, 4: 2, 5: 4, 9: 0}


def make_app(parents=PARENTS, root_pid: int = 1) -> ProcTreeApp:
    return ProcTreeApp(TreeBuilder(FakeSource.from_parents(parents)), root_pid=root_pid)


class TestFormatLabel:
    """Tests for node labels."""

    def test_label_contents(self):
        """Test the label shows pid, name, state and command line."""
        source = FakeSource(
            {7: stat_line(7, "bash")},
            aux={(7, AuxField.CMDLINE): b"bash\x00-l\x00"},
        )
        label = format_label(build_tree(source)[7])

        assert "7" in label.plain
        assert "bash" in label.plain
        assert "[S]" in label.plain
        assert "bash -l" in label.plain

    def test_markup_in_name_is_literal(self):
        """Test names with markup-like brackets are shown verbatim."""
        label = format_label(build_tree(FakeSource({3: stat_line(3, "[red]x[/red]")}))[3])
        assert "[red]x[/red]" in label.plain


@pytest.mark.asyncio
async def test_app_creation():
    """Test ProcTreeApp can be instantiated."""
    app = make_app()
    assert app.title == "proctree"
    assert app.sub_title == "Process Tree Snapshot"
    assert app.snapshot is None


@pytest.mark.asyncio
async def test_app_compose():
    """Test ProcTreeApp composes correctly."""
    app = make_app()
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#status") is not None
        assert pilot.app.query_one("#process-tree") is not None


@pytest.mark.asyncio
async def test_app_shows_snapshot():
    """Test the first snapshot is displayed under the root pid."""
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.pause(1)

        assert app.snapshot is not None
        view = pilot.app.query_one(ProcessTreeView)
        assert view.node_count == 5
        widget = pilot.app.query_one("#process-tree", TreeWidget)
        assert widget.root.data == 1
        assert [node.data for node in widget.root.children] == [2, 3]


@pytest.mark.asyncio
async def test_app_unknown_root_shows_all_roots():
    """Test an unknown root pid falls back to every root process."""
    app = make_app(root_pid=12345)
    async with app.run_test() as pilot:
        await pilot.pause(1)

        widget = pilot.app.query_one("#process-tree", TreeWidget)
        assert [node.data for node in widget.root.children] == [1, 9]
        assert pilot.app.query_one(ProcessTreeView).node_count == len(PARENTS)


@pytest.mark.asyncio
async def test_app_reports_failed_snapshot():
    """Test a failed build is reported instead of crashing the app."""
    app = make_app(parents={1: 0, 2: 99})
    async with app.run_test() as pilot:
        await pilot.pause(1)

        assert app.snapshot is None
        assert app.is_running


@pytest.mark.asyncio
async def test_app_refresh_binding():
    """Test 'r' takes a new snapshot."""
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.pause(1)
        first = app.snapshot

        await pilot.press("r")
        await pilot.pause(1)

        assert app.snapshot is not None
        assert app.snapshot is not first
        assert app.snapshot == first


@pytest.mark.asyncio
async def test_app_expand_collapse_bindings():
    """Test expand and collapse all."""
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.pause(1)
        widget = pilot.app.query_one("#process-tree", TreeWidget)

        await pilot.press("e")
        assert all(node.is_expanded for node in widget.root.children if node.children)

        await pilot.press("c")
        assert not any(node.is_expanded for node in widget.root.children)


@pytest.mark.asyncio
async def test_app_quit_binding():
    """Test 'q' exits the app."""
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit
