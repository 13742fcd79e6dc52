"""The CGroups tab."""

import time
from collections.abc import Callable
from pathlib import Path

from rich.text import Text

from procscope.errors import SnapshotError
from procscope.models import CGroupRecord
from procscope.scroll import InputResult
from procscope.source import ProcessHandle, cgroup_mounts, read_cgroup_file
from procscope.widgets.base import KEY_STYLE, TabWidget, error_line

# Control files worth showing, per controller. The unified hierarchy is
# listed under the empty key.
CONTROL_FILES: dict[str, tuple[str, ...]] = {
    "": (
        "cgroup.controllers",
        "pids.current",
        "pids.max",
        "memory.current",
        "memory.max",
        "cpu.max",
        "cpu.stat",
    ),
    "pids": ("pids.current", "pids.max"),
    "freezer": ("freezer.state",),
    "memory": (
        "memory.usage_in_bytes",
        "memory.limit_in_bytes",
        "memory.kmem.usage_in_bytes",
        "memory.kmem.limit_in_bytes",
    ),
    "net_cls": ("net_cls.classid",),
    "net_prio": ("net_prio.prioidx", "net_prio.ifpriomap"),
    "cpuacct": ("cpuacct.usage",),
}

SELECTED_STYLE = "yellow"


class CGroupTab(TabWidget):
    """Control groups of the process and the files of the selected one."""

    TITLE = "CGroups"
    HELP = (
        "The [yellow]CGroups[/] tab shows info about the active container groups for this process. "
        "Use up and down to pick a group."
    )

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        mounts: Callable[[], dict[frozenset[str], str]] = cgroup_mounts,
    ) -> None:
        self.mounts = mounts()
        self.select_idx = 0
        super().__init__(handle, interval, clock)

    def refresh(self, handle: ProcessHandle) -> None:
        """Read cgroup membership, keeping any error for display."""
        self.groups: list[CGroupRecord] = []
        self.error: SnapshotError | None = None
        try:
            self.groups = handle.cgroups()
        except SnapshotError as e:
            self.error = e
        self.select_idx = min(self.select_idx, max(len(self.groups) - 1, 0))

    def handle_input(self, key: str, height: int) -> InputResult:
        """Move the selection through the group list."""
        if key == "up" and self.select_idx > 0:
            self.select_idx -= 1
            return InputResult.NEEDS_REDRAW
        if key == "down" and self.select_idx + 1 < len(self.groups):
            self.select_idx += 1
            return InputResult.NEEDS_REDRAW
        return InputResult.NONE

    def mountpoint(self, group: CGroupRecord) -> str | None:
        """Where the hierarchy of ``group`` is mounted, if anywhere."""
        wanted = frozenset(group.controllers)
        if not wanted:
            return self.mounts.get(frozenset())
        for opts, mountpoint in self.mounts.items():
            if opts and wanted <= opts:
                return mountpoint
        return None

    def details(self, group: CGroupRecord) -> list[Text]:
        """Control file values of group from its mounted hierarchy."""
        mountpoint = self.mountpoint(group)
        if mountpoint is None:
            return [Text("This controller isn't mounted where procscope can see it", style="dim")]

        root = Path(mountpoint) / group.path.lstrip("/")
        lines = [Text(f"--> {root}", style="dim")]
        names = group.controllers or ("",)
        for controller in names:
            for filename in CONTROL_FILES.get(controller, ()):
                value = read_cgroup_file(root / filename)
                if value is None:
                    continue
                for idx, row in enumerate(value.splitlines() or [""]):
                    line = Text(no_wrap=True)
                    line.append(f"{filename}: " if idx == 0 else " " * (len(filename) + 2), style=KEY_STYLE)
                    line.append(row)
                    lines.append(line)
        return lines

    def render(self, width: int, height: int) -> list[Text]:
        """Group list followed by the details of the selected group."""
        if self.error is not None:
            return [error_line("cgroups", self.error)]

        lines = []
        for idx, group in enumerate(self.groups):
            line = Text(no_wrap=True)
            name = ",".join(group.controllers) or ("unified" if group.hierarchy == 0 else "???")
            line.append(f"{name}: ", style=SELECTED_STYLE if idx == self.select_idx else KEY_STYLE)
            line.append(group.path)
            lines.append(line)

        if self.groups:
            lines.append(Text(""))
            lines.extend(self.details(self.groups[self.select_idx]))
        return lines[:height]
