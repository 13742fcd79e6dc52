"""The Tree tab: the inspected process in its process tree."""

import time
from collections.abc import Callable, Iterable

from rich.text import Text

from procscope.errors import TreeBuildError
from procscope.log import get_logger
from procscope.models import ProcessRecord
from procscope.scroll import InputResult
from procscope.source import ProcessHandle, iter_process_records
from procscope.tree import Focus, ProcessTree, recover_selection, tree_prefixes
from procscope.widgets.base import ERROR_STYLE, TabWidget

log = get_logger(__name__)

SELECTED_STYLE = "magenta"
SELF_STYLE = "yellow"


class TreeTab(TabWidget):
    """
    Process tree with a movable selection.

    The full tree is shown by default; ``ctrl+t`` switches to the pruned
    view (ancestors, the inspected process and its direct children).
    """

    TITLE = "Tree"
    HELP = (
        "The [yellow]Tree[/] tab shows the currently selected process in a process tree. "
        "Press [green]ctrl-t[/] to show only the parent processes and direct children, "
        "and [green]enter[/] to inspect the selected process."
    )

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        records: Callable[[], Iterable[ProcessRecord]] = iter_process_records,
        show_all: bool = True,
    ) -> None:
        self._records = records
        self.show_all = show_all
        self.this_pid = handle.pid
        self.selected_pid = handle.pid
        self.tree = ProcessTree({})
        self.error: TreeBuildError | None = None
        super().__init__(handle, interval, clock)

    def refresh(self, handle: ProcessHandle) -> None:
        """Rebuild the tree and carry the selection over."""
        # Record the selection's lineage now; after the rebuild the selected
        # process may be gone and its nearest surviving ancestor takes over
        chain = self.tree.ancestors(self.selected_pid)
        focus = None
        if not self.show_all:
            focus = Focus(pid=handle.pid, ancestors=tuple(self.tree.ancestors(handle.pid)))

        try:
            self.tree = ProcessTree.build(self._records(), focus=focus)
        except TreeBuildError as e:
            log.warning("tree_build_failed", error=str(e))
            self.error = e
            return

        self.error = None
        self.this_pid = handle.pid
        self.selected_pid = recover_selection(self.tree, self.selected_pid, chain)

    def handle_input(self, key: str, height: int) -> InputResult:
        """Move the selection or toggle pruning."""
        if key == "ctrl+t":
            self.show_all = not self.show_all
            self._force_update = True
            return InputResult.NEEDS_UPDATE

        if key not in ("up", "down"):
            return InputResult.NONE

        flattened = self.tree.flatten()
        idx = self.tree.index_of(self.selected_pid)
        if idx is None:
            return InputResult.NONE
        new_idx = idx - 1 if key == "up" else idx + 1
        if not 0 <= new_idx < len(flattened):
            return InputResult.NONE
        self.selected_pid = flattened[new_idx][1].pid
        return InputResult.NEEDS_REDRAW

    def render(self, width: int, height: int) -> list[Text]:
        """Tree lines with connectors, the selection highlighted."""
        flattened = self.tree.flatten()
        if not flattened:
            message = f"Error building process tree: {self.error}" if self.error else "(no processes)"
            return [Text(message, style=ERROR_STYLE)]

        lines = []
        for prefix, (_, entry) in zip(tree_prefixes(flattened), flattened):
            if entry.pid == self.selected_pid:
                style = SELECTED_STYLE
            elif entry.pid == self.this_pid:
                style = SELF_STYLE
            else:
                style = ""
            line = Text(prefix, no_wrap=True)
            line.append(f"{entry.pid} {entry.cmdline}", style=style)
            lines.append(line)

        # Keep the selected line near the middle of the view
        select_idx = self.tree.index_of(self.selected_pid) or 0
        max_scroll = max(0, len(lines) - height)
        scroll = min(max(select_idx - height // 2, 0), max_scroll)
        return lines[scroll : scroll + height]
