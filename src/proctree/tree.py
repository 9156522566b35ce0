"""Read-only process tree snapshot.

PUBLIC API:
  - Tree: Mapping of pid to Process with parent/child navigation
"""

from collections import deque
from collections.abc import Iterator, Mapping
from dataclasses import fields
from typing import Any, Literal

from proctree.models import Process


class Tree(Mapping[int, Process]):
    """
    Immutable snapshot of the process tree.

    Behaves as a read-only mapping from pid to Process. Traversals use an
    explicit stack or queue, so arbitrarily deep chains are fine.
    """

    __slots__ = ("_procs",)

    def __init__(self, procs: Mapping[int, Process]) -> None:
        self._procs: dict[int, Process] = dict(procs)

    def __getitem__(self, pid: int) -> Process:
        return self._procs[pid]

    def __iter__(self) -> Iterator[int]:
        return iter(self._procs)

    def __len__(self) -> int:
        return len(self._procs)

    def __repr__(self) -> str:
        return f"Tree({len(self._procs)} processes)"

    def children(self, pid: int) -> list[Process]:
        """Direct children of pid, in ascending pid order."""
        return [self._procs[child] for child in self._procs[pid].children]

    def parent(self, pid: int) -> Process | None:
        """Parent of pid, or None when it has no tracked parent."""
        return self._procs.get(self._procs[pid].ppid)

    def roots(self) -> list[Process]:
        """Processes without a parent in the snapshot, ascending pid."""
        return [
            self._procs[pid]
            for pid in sorted(self._procs)
            if self._procs[pid].ppid not in self._procs
        ]

    def ancestors(self, pid: int) -> list[Process]:
        """Parent chain of pid, nearest first."""
        chain: list[Process] = []
        seen = {pid}
        parent = self.parent(pid)
        while parent is not None and parent.pid not in seen:
            seen.add(parent.pid)
            chain.append(parent)
            parent = self._procs.get(parent.ppid)
        return chain

    def walk(
        self, pid: int, order: Literal["dfs", "bfs"] = "dfs"
    ) -> Iterator[tuple[int, Process]]:
        """
        Iterate over pid and its descendants as (depth, process) pairs.

        Args:
            pid: Root of the walk, yielded first at depth 0.
            order: "dfs" for pre-order depth first, "bfs" for level order.

        Raises:
            KeyError: pid is not in the snapshot.
            ValueError: Unknown order.
        """
        if order not in ("dfs", "bfs"):
            raise ValueError(f"unknown walk order {order!r}")
        root = self._procs[pid]
        return self._walk(root, order)

    def _walk(self, root: Process, order: str) -> Iterator[tuple[int, Process]]:
        pending: deque[tuple[int, Process]] = deque([(0, root)])
        seen = {root.pid}
        while pending:
            depth, proc = pending.pop() if order == "dfs" else pending.popleft()
            yield depth, proc
            kids = [self._procs[c] for c in proc.children if c not in seen]
            seen.update(kid.pid for kid in kids)
            if order == "dfs":
                # Reversed so the smallest pid is popped first.
                kids.reverse()
            pending.extend((depth + 1, kid) for kid in kids)

    def descendants(self, pid: int) -> set[int]:
        """Pids below pid, excluding pid itself."""
        return {proc.pid for _, proc in self.walk(pid, "bfs")} - {pid}

    def to_dict(self, pid: int) -> dict[str, Any]:
        """
        Nested dict of pid's subtree, suitable for JSON output.

        Every record field is included. environ and cmdline are decoded to
        a KEY=VALUE dict and an argument list.
        """
        nodes: dict[int, dict[str, Any]] = {}
        for _, proc in self.walk(pid, "bfs"):
            record = proc.record
            node: dict[str, Any] = {f.name: getattr(record, f.name) for f in fields(record)}
            node["environ"] = record.environment
            node["cmdline"] = record.argv
            node["children"] = []
            nodes[proc.pid] = node
            parent = nodes.get(proc.ppid)
            if parent is not None and proc.pid != pid:
                parent["children"].append(node)
        return nodes[pid]
