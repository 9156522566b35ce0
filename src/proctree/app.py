"""proctree - Textual process tree viewer."""

from queue import Empty, Queue

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static
from textual.widgets import Tree as TreeWidget

from proctree.builder import TreeBuilder
from proctree.errors import ProcTreeError
from proctree.loader import SnapshotLoader
from proctree.models import Process
from proctree.tree import Tree


def format_label(proc: Process) -> Text:
    """Label for one process node. Plain Text so names are not read as markup."""
    label = Text(f"{proc.pid:>7} ", style="bold")
    label.append(proc.name)
    label.append(f" [{proc.record.state}]", style="dim")
    if proc.record.cmdline:
        label.append(f"  {' '.join(proc.record.argv)[:60]}", style="italic dim")
    return label


class ProcessTreeView(Container):
    """Container for the process tree widget."""

    DEFAULT_CSS = """
    ProcessTreeView {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTreeView."""
        super().__init__(*args, **kwargs)
        self._node_count: int = 0

    @property
    def node_count(self) -> int:
        """Number of processes currently shown."""
        return self._node_count

    def compose(self) -> ComposeResult:
        """Compose the tree view."""
        yield TreeWidget("processes", id="process-tree")

    def show(self, tree: Tree, root_pid: int) -> None:
        """
        Replace the displayed tree with a new snapshot.

        Shows the subtree of root_pid, or every root process when root_pid is
        not in the snapshot.
        """
        widget = self.query_one("#process-tree", TreeWidget)
        if root_pid in tree:
            widget.reset(format_label(tree[root_pid]), data=root_pid)
            top = tree.children(root_pid)
            count = 1
        else:
            top = tree.roots()
            widget.reset(Text(f"pid {root_pid} not found, showing all roots"))
            count = 0

        # (parent node, process, depth)
        pending = [(widget.root, proc, 1) for proc in reversed(top)]
        while pending:
            node, proc, depth = pending.pop()
            count += 1
            if proc.children:
                child = node.add(format_label(proc), data=proc.pid, expand=depth < 2)
                pending.extend((child, kid, depth + 1) for kid in reversed(tree.children(proc.pid)))
            else:
                node.add_leaf(format_label(proc), data=proc.pid)
        widget.root.expand()
        self._node_count = count

    def expand_all(self) -> None:
        self.query_one("#process-tree", TreeWidget).root.expand_all()

    def collapse_all(self) -> None:
        widget = self.query_one("#process-tree", TreeWidget)
        for node in widget.root.children:
            node.collapse_all()


class ProcTreeApp(App):
    """Main proctree application."""

    TITLE = "proctree"
    SUB_TITLE = "Process Tree Snapshot"

    CSS = """
    Screen {
        layout: vertical;
    }

    #status {
        dock: top;
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("e", "expand", "Expand all"),
        ("c", "collapse", "Collapse all"),
    ]

    def __init__(self, builder: TreeBuilder | None = None, root_pid: int = 1) -> None:
        """
        Initialize the ProcTreeApp.

        Args:
            builder: Builder used for every snapshot. Defaults to the live procfs.
            root_pid: Process whose subtree is displayed.
        """
        super().__init__()
        self._root_pid = root_pid
        self._results: Queue[Tree | ProcTreeError] = Queue()
        self._loader = SnapshotLoader(self._results, builder)
        self._tree: Tree | None = None

    @property
    def snapshot(self) -> Tree | None:
        """The snapshot currently displayed."""
        return self._tree

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static("Taking snapshot...", id="status")
        yield ProcessTreeView()
        yield Footer()

    def on_mount(self) -> None:
        """Take the first snapshot when the app is mounted."""
        self._loader.request()
        self.set_interval(0.2, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Check the queue for finished snapshots and refresh the UI."""
        result = None
        while True:
            try:
                result = self._results.get_nowait()
            except Empty:
                break

        if isinstance(result, ProcTreeError):
            self._set_status(f"Snapshot failed: {result}")
            self.notify(str(result), title="Snapshot failed", severity="error")
        elif result is not None:
            self._tree = result
            view = self.query_one(ProcessTreeView)
            view.show(result, self._root_pid)
            self._set_status(f"{len(result)} processes, showing {view.node_count} under pid {self._root_pid}")

    def _set_status(self, message: str) -> None:
        self.query_one("#status", Static).update(Text(message))

    def action_refresh(self) -> None:
        """Take a fresh snapshot."""
        if self._loader.request():
            self._set_status("Taking snapshot...")
        else:
            self.notify("Snapshot already in progress")

    def action_expand(self) -> None:
        self.query_one(ProcessTreeView).expand_all()

    def action_collapse(self) -> None:
        self.query_one(ProcessTreeView).collapse_all()
