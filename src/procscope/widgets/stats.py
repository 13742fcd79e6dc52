"""Counter-driven tabs: IO, memory and per-thread CPU."""

import time
from collections import deque
from collections.abc import Callable, Sequence

from rich.text import Text

from procscope.delta import SampledDelta
from procscope.errors import SnapshotError
from procscope.formatting import format_bytes, format_rate
from procscope.models import IoSample, MemoryRecord, ThreadSample
from procscope.source import ProcessHandle
from procscope.widgets.base import KEY_STYLE, ScrolledTab, TabWidget, error_line

SPARK_BLOCKS = " ▁▂▃▄▅▆▇█"


def sparkline_text(data: Sequence[float], width: int, floor_max: float, style: str = "") -> Text:
    """
    One-row sparkline of the newest ``width`` values.

    The scale tops out at the larger of ``floor_max`` and the visible peak
    so a quiet process does not look busy.
    """
    visible = list(data)[-width:] if width > 0 else []
    peak = max([floor_max, *visible])
    levels = len(SPARK_BLOCKS) - 1
    chars = [SPARK_BLOCKS[max(0, min(levels, round(value / peak * levels)))] for value in visible]
    return Text("".join(chars), style=style, no_wrap=True)


class IOTab(TabWidget):
    """Byte and syscall rates with read/write history graphs."""

    TITLE = "IO"
    HELP = (
        "The [yellow]IO[/] tab shows various I/O stats. The [bright_cyan]blue[/] graph shows all IO "
        "(bytes per sec), the [bright_magenta]magenta[/] graph shows IO ops per sec, and the "
        "[bright_green]green[/] graph shows disk IO bytes per sec."
    )

    # (label, counters, scale floor, colour)
    GRAPHS = (
        ("all io", ("read_chars", "write_chars"), 10000, "bright_cyan"),
        ("ops", ("read_syscalls", "write_syscalls"), 100, "bright_magenta"),
        ("disk", ("read_bytes", "write_bytes"), 10000, "bright_green"),
    )

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        history: int = 400,
    ) -> None:
        self.io: SampledDelta[IoSample] | None = None
        self.error: SnapshotError | None = None
        self.history = [deque(maxlen=history) for _ in self.GRAPHS]
        super().__init__(handle, interval, clock)

    def refresh(self, handle: ProcessHandle) -> None:
        """Take an IO sample and extend the rate histories."""
        try:
            sample = handle.io_sample()
        except SnapshotError as e:
            self.error = e
            return
        self.error = None

        if self.io is None:
            self.io = SampledDelta(sample, clock=self._clock)
            return
        self.io.update(sample)
        for series, (_, names, _, _) in zip(self.history, self.GRAPHS):
            series.append(self.io.rate(*names))

    def _pair(self, left: str, left_value: str, right: str, right_value: str, colour: str) -> Text:
        line = Text(no_wrap=True)
        line.append(f"{left:<13}", style=KEY_STYLE)
        line.append(f"{left_value:<12}")
        line.append(f"{right:<13}", style=KEY_STYLE)
        line.append(f"{right_value:<12}")
        line.append("┃", style=colour)
        return line

    def render(self, width: int, height: int) -> list[Text]:
        """Rate table followed by the sparklines."""
        if self.io is None:
            return [error_line("io", self.error)] if self.error else []

        io = self.io.latest()
        rate = self.io.rate
        cyan, magenta, green = (graph[3] for graph in self.GRAPHS)
        rows = [
            ("all io read:", format_bytes(io.read_chars), "all io write:", format_bytes(io.write_chars), cyan),
            ("read rate:", format_rate(rate("read_chars")), "write rate:", format_rate(rate("write_chars")), cyan),
            ("read ops:", format_bytes(io.read_syscalls, ""), "write ops:", format_bytes(io.write_syscalls, ""), magenta),
            ("op rate:", format_rate(rate("read_syscalls"), "ps"), "op rate:", format_rate(rate("write_syscalls"), "ps"), magenta),
            ("disk reads:", format_bytes(io.read_bytes), "disk writes:", format_bytes(io.write_bytes), green),
            ("disk rate:", format_rate(rate("read_bytes")), "disk rate:", format_rate(rate("write_bytes")), green),
        ]
        lines = [self._pair(*row) for row in rows]
        if self.error is not None:
            lines.append(error_line("io", self.error))

        lines.append(Text(""))
        spark_width = max(width - 8, 0)
        for series, (label, _, floor_max, colour) in zip(self.history, self.GRAPHS):
            line = Text(f"{label:<8}", style=colour, no_wrap=True)
            line.append_text(sparkline_text(series, spark_width, floor_max, colour))
            lines.append(line)
        return lines[:height]


class MemTab(TabWidget):
    """Memory counters of the process."""

    TITLE = "Mem"
    HELP = "The [yellow]Mem[/] tab shows how much memory the process uses."

    FIELDS = (
        ("Rss:", "rss"),
        ("Pss:", "pss"),
        ("Uss:", "uss"),
        ("Shared:", "shared"),
        ("Virtual:", "vms"),
        ("Swap:", "swap"),
    )

    def refresh(self, handle: ProcessHandle) -> None:
        """Read the memory counters, keeping any error for display."""
        self.memory: MemoryRecord | None = None
        self.error: SnapshotError | None = None
        try:
            self.memory = handle.memory()
        except SnapshotError as e:
            self.error = e

    def render(self, width: int, height: int) -> list[Text]:
        """One line per memory counter."""
        if self.memory is None:
            return [error_line("memory info", self.error)] if self.error else []
        lines = []
        for label, name in self.FIELDS:
            line = Text(f"{label:<15}", style=KEY_STYLE)
            line.append(format_bytes(getattr(self.memory, name)))
            lines.append(line)
        return lines[:height]


class TaskTab(ScrolledTab):
    """Per-thread names and CPU usage."""

    TITLE = "Task"
    HELP = "The [yellow]Task[/] tab shows each thread in the process, its name, and how much CPU it's using."

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.tasks: dict[int, SampledDelta[ThreadSample]] = {}
        self.error: SnapshotError | None = None
        super().__init__(handle, interval, clock)

    def refresh(self, handle: ProcessHandle) -> None:
        """Sample every thread, carrying deltas for threads seen before."""
        try:
            samples = handle.threads()
        except SnapshotError as e:
            self.error = e
            return
        self.error = None

        tasks: dict[int, SampledDelta[ThreadSample]] = {}
        for sample in samples:
            delta = self.tasks.get(sample.tid)
            if delta is None:
                delta = SampledDelta(sample, clock=self._clock)
            else:
                delta.update(sample)
            tasks[sample.tid] = delta
        self.tasks = tasks

    def lines(self, width: int) -> list[Text]:
        """One line per thread with its CPU usage."""
        if self.error is not None:
            return [error_line("tasks", self.error)]
        lines = []
        for tid, delta in self.tasks.items():
            cpu = f"{delta.cpu_percentage():.1f}%" if delta.duration() > 0 else "??%"
            lines.append(Text(f"({delta.latest().name:<16}) {tid:<7} {cpu}", no_wrap=True))
        return lines
