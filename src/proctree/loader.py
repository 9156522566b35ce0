"""Background snapshot loading for the viewer."""

import logging
import threading
from queue import Queue

from proctree.builder import TreeBuilder
from proctree.errors import ProcTreeError
from proctree.tree import Tree

logger = logging.getLogger(__name__)


class SnapshotLoader:
    """
    Takes snapshots on a daemon thread and pushes them to a thread-safe Queue.

    Each request builds exactly one snapshot. A failed build pushes the
    ProcTreeError instead of a Tree so the consumer can report it.
    """

    def __init__(
        self,
        results: Queue[Tree | ProcTreeError],
        builder: TreeBuilder | None = None,
    ) -> None:
        """
        Initialize the SnapshotLoader.

        Args:
            results: Queue receiving one item per finished request.
            builder: Builder to snapshot with. Defaults to the live procfs.
        """
        self._results = results
        self._builder = builder if builder is not None else TreeBuilder()
        self._thread: threading.Thread | None = None

    @property
    def is_loading(self) -> bool:
        """Check if a snapshot is being taken."""
        return self._thread is not None and self._thread.is_alive()

    def request(self) -> bool:
        """
        Start taking a snapshot.

        Returns:
            False if a snapshot is already in progress.
        """
        if self.is_loading:
            return False
        self._thread = threading.Thread(
            target=self._load,
            daemon=True,
            name="SnapshotLoader",
        )
        self._thread.start()
        return True

    def wait(self, timeout: float | None = 5.0) -> None:
        """Wait for the snapshot in progress, if any."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _load(self) -> None:
        try:
            self._results.put(self._builder.build())
        except ProcTreeError as e:
            logger.warning(f"Snapshot failed: {e}")
            self._results.put(e)
