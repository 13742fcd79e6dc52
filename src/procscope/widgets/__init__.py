"""Tab widgets for procscope."""

from procscope.config import Config
from procscope.source import ProcessHandle
from procscope.widgets.base import ScrolledTab, TabWidget
from procscope.widgets.cgroup import CGroupTab
from procscope.widgets.lists import EnvTab, FilesTab, LimitTab, MapsTab, NetTab
from procscope.widgets.stats import IOTab, MemTab, TaskTab
from procscope.widgets.tree import TreeTab

__all__ = [
    "CGroupTab",
    "EnvTab",
    "FilesTab",
    "IOTab",
    "LimitTab",
    "MapsTab",
    "MemTab",
    "NetTab",
    "ScrolledTab",
    "TabWidget",
    "TaskTab",
    "TreeTab",
    "build_tabs",
]


def build_tabs(handle: ProcessHandle, config: Config) -> list[TabWidget]:
    """Create every tab for ``handle``, in display order."""
    refresh = config.refresh
    return [
        EnvTab(handle, interval=refresh.details),
        NetTab(handle, interval=refresh.details),
        MapsTab(handle, interval=refresh.details),
        FilesTab(handle, interval=refresh.details, pipes_interval=refresh.pipes),
        LimitTab(handle, interval=refresh.details),
        TreeTab(handle, interval=refresh.details, show_all=not config.display.start_pruned),
        CGroupTab(handle, interval=refresh.cgroups),
        IOTab(handle, interval=refresh.io, history=config.display.sparkline_length),
        MemTab(handle, interval=refresh.details),
        TaskTab(handle, interval=refresh.details),
    ]
