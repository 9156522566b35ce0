"""proctree command line: print or browse the process tree of a pid."""

import json
import logging

import psutil
import typer
from rich.console import Console
from rich.text import Text
from rich.tree import Tree as RichTree

from proctree.app import ProcTreeApp, format_label
from proctree.builder import TreeBuilder
from proctree.errors import ProcTreeError
from proctree.models import AuxPolicy
from proctree.tree import Tree

app = typer.Typer(
    add_completion=False,
    help="proctree: snapshot the process tree from procfs and show the children of a pid.",
)
console = Console()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def render(tree: Tree, pid: int) -> RichTree:
    """Rich tree of pid's subtree, built without recursion."""
    top = RichTree(format_label(tree[pid]))
    nodes = {pid: top}
    for _, proc in tree.walk(pid, "dfs"):
        if proc.pid == pid:
            continue
        nodes[proc.pid] = nodes[proc.ppid].add(format_label(proc))
    return top


@app.command()
def main(
    pid: int = typer.Argument(1, help="PID of the process tree to display"),
    as_json: bool = typer.Option(False, "--json", help="Print the subtree as JSON"),
    lenient: bool = typer.Option(
        False, "--lenient", help="Ignore unreadable environ/cwd/cmdline instead of failing"
    ),
    workers: int = typer.Option(1, "--workers", "-w", help="Threads used to scan processes"),
    procfs: str | None = typer.Option(None, "--procfs", help="procfs mount point (default: /proc)"),
    tui: bool = typer.Option(False, "--tui", help="Browse the tree interactively"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Display the tree of children processes for PID."""
    setup_logging(verbose)
    if procfs:
        psutil.PROCFS_PATH = procfs

    builder = TreeBuilder(
        aux_policy=AuxPolicy.LENIENT if lenient else AuxPolicy.STRICT,
        max_workers=workers,
    )

    if tui:
        ProcTreeApp(builder, root_pid=pid).run()
        return

    try:
        tree = builder.build()
    except ProcTreeError as e:
        console.print(Text.assemble(("Error: ", "red"), f"could not create process tree: {e}"), soft_wrap=True)
        raise typer.Exit(code=1)

    if pid not in tree:
        console.print(Text.assemble(("Error: ", "red"), f"pid {pid} not found"), soft_wrap=True)
        raise typer.Exit(code=2)

    if as_json:
        typer.echo(json.dumps(tree.to_dict(pid), indent=2))
    else:
        console.print(render(tree, pid))


if __name__ == "__main__":
    app()
