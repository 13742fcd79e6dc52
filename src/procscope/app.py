"""procscope - Main Textual application."""

from collections import deque
from datetime import datetime
from queue import Empty, Queue

from rich.console import RenderableType
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widget import Widget
from textual.widgets import Footer, Sparkline, Static

from procscope.config import Config
from procscope.delta import SampledDelta, ticks_per_second
from procscope.errors import ProcessGone, SnapshotError
from procscope.formatting import format_bytes, format_duration, format_time
from procscope.log import get_logger
from procscope.models import CpuSample, ProcessInfo
from procscope.monitor import Tick, TickSource
from procscope.scroll import InputResult
from procscope.source import ProcessHandle
from procscope.widgets import TabWidget, TreeTab, build_tabs

log = get_logger(__name__)


class TabState:
    """Which tab is active, and how keys move between tabs."""

    def __init__(self, titles: list[str], index: int = 0) -> None:
        self.titles = titles
        self.index = index

    def next(self) -> int:
        self.index = (self.index + 1) % len(self.titles)
        return self.index

    def prev(self) -> int:
        self.index = (self.index - 1) % len(self.titles)
        return self.index

    def select_by_char(self, char: str) -> bool:
        """
        Activate the first tab whose title starts with ``char``.

        Returns False, leaving the selection alone, when no title matches.
        """
        for idx, title in enumerate(self.titles):
            if title[:1].lower() == char.lower():
                self.index = idx
                return True
        return False


class HeaderStats(Static):
    """Header widget showing the state and CPU usage of the process."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 4;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._tps = ticks_per_second()
        self._info: ProcessInfo | None = None
        self._cpu: SampledDelta[CpuSample] | None = None
        self._error: SnapshotError | None = None
        self._exited = False

    @property
    def info(self) -> ProcessInfo | None:
        return self._info

    @property
    def exited(self) -> bool:
        return self._exited

    def reset(self) -> None:
        """Forget everything sampled from the previous process."""
        self._info = None
        self._cpu = None
        self._error = None
        self._exited = False

    def update_stats(self, handle: ProcessHandle) -> float | None:
        """
        Re-sample ``handle`` and redraw.

        Returns:
            The CPU percentage over the last window, or None when it could
            not be read.
        """
        cpu_pct = None
        try:
            self._info = handle.info()
            sample = handle.cpu_sample()
            if self._cpu is None:
                self._cpu = SampledDelta(sample, tps=self._tps)
            else:
                self._cpu.update(sample)
                cpu_pct = self._cpu.cpu_percentage()
            self._error = None
        except ProcessGone:
            self._exited = True
        except SnapshotError as e:
            log.warning("header_sample_failed", pid=handle.pid, error=str(e))
            self._error = e
        self.update(self.render_stats())
        return cpu_pct

    def mark_exited(self) -> None:
        self._exited = True
        self.update(self.render_stats())

    def render_stats(self) -> Text:
        """Build the header lines from the latest samples."""
        if self._info is None:
            if self._error is not None:
                return Text(f"Error getting process info: {self._error.reason}", style="red")
            return Text("Loading process info...")

        info = self._info
        started = format_time(datetime.fromtimestamp(info.started))
        state = Text("process exited", style="bold red") if self._exited else Text(info.state, style="bold")

        text = Text(no_wrap=True)
        text.append("pid: ", style="green")
        text.append(f"{info.pid:<8}")
        text.append("ppid: ", style="green")
        text.append(f"{info.ppid:<8}")
        text.append("pgrp: ", style="green")
        text.append(f"{info.pgrp:<8}")
        text.append("session: ", style="green")
        text.append(f"{info.session:<8}")
        text.append("state: ", style="green")
        text.append_text(state)
        text.append("\n")

        text.append("started: ", style="green")
        text.append(f"{started:<22}")
        text.append("owner: ", style="green")
        text.append(f"{info.owner} ({info.uid})  ")
        text.append("threads: ", style="green")
        text.append(f"{info.threads:<5}")
        text.append("nice: ", style="green")
        text.append(f"{info.nice}\n")

        if self._cpu is not None:
            cpu = self._cpu
            latest = cpu.latest()
            user_pct = cpu.rate("user_ticks") / self._tps * 100
            system_pct = cpu.rate("system_ticks") / self._tps * 100
            text.append("cpu: ", style="green")
            text.append(f"{cpu.cpu_percentage():6.1f}%  ", style="bold")
            text.append("user: ", style="green")
            text.append(f"{format_duration(latest.user_ticks / self._tps)} ({user_pct:.1f}%)  ")
            text.append("kernel: ", style="green")
            text.append(f"{format_duration(latest.system_ticks / self._tps)} ({system_pct:.1f}%)\n")

        text.append("virt: ", style="green")
        text.append(f"{format_bytes(info.vms):<12}")
        text.append("rss: ", style="green")
        text.append(f"{format_bytes(info.rss):<12}")
        text.append("shr: ", style="green")
        text.append(format_bytes(info.shared))
        return text


class TabBody(Widget):
    """The area the active tab draws into."""

    DEFAULT_CSS = """
    TabBody {
        width: 1fr;
        height: 1fr;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tab: TabWidget | None = None

    def show(self, tab: TabWidget) -> None:
        self.tab = tab
        self.refresh()

    def render(self) -> RenderableType:
        if self.tab is None:
            return Text("")
        lines = self.tab.render(self.size.width, self.size.height)
        return Text("\n", no_wrap=True, overflow="crop").join(lines)


class ScrollbarColumn(Widget):
    """One column to the right of the tab body."""

    DEFAULT_CSS = """
    ScrollbarColumn {
        width: 1;
        height: 1fr;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tab: TabWidget | None = None

    def show(self, tab: TabWidget) -> None:
        self.tab = tab
        self.refresh()

    def render(self) -> RenderableType:
        if self.tab is None:
            return Text("")
        return self.tab.draw_scrollbar(self.size.height) or Text("")


class ProcscopeApp(App):
    """Main procscope application."""

    TITLE = "procscope"
    SUB_TITLE = "Process Inspector"

    CSS = """
    Screen {
        layout: vertical;
    }

    #cmdline {
        height: 1;
        background: $primary-background;
        color: $text;
    }

    #cpu-graph {
        height: 2;
        margin: 0 1;
    }

    #cpu-graph > .sparkline--max-color {
        color: $error;
    }

    #cpu-graph > .sparkline--min-color {
        color: $success;
    }

    #tab-bar {
        height: 1;
        padding: 0 1;
    }

    #body-row {
        height: 1fr;
        padding: 0 0 0 1;
    }

    #help {
        height: auto;
        max-height: 3;
        padding: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("escape", "quit", "Quit", show=False, priority=True),
        Binding("tab", "next_tab", "Next tab", priority=True),
        Binding("shift+tab", "prev_tab", "Previous tab", priority=True),
        Binding("right", "next_tab", show=False, priority=True),
        Binding("left", "prev_tab", show=False, priority=True),
    ]

    def __init__(self, handle: ProcessHandle | None = None, config: Config | None = None) -> None:
        """
        Initialize the ProcscopeApp.

        Args:
            handle: Process to inspect. Defaults to procscope itself.
            config: Settings; defaults apply when omitted.
        """
        super().__init__()
        self.config = config or Config()
        self.handle = handle or ProcessHandle.myself()
        self.tabs: list[TabWidget] = build_tabs(self.handle, self.config)
        self.tab_state = TabState([tab.TITLE for tab in self.tabs])
        self.exited = False
        self._cpu_history: deque[float] = deque(maxlen=self.config.display.sparkline_length)
        self._tick_queue: Queue[Tick] = Queue()
        self._ticks = TickSource(self._tick_queue, tick_rate=self.config.refresh.tick)

    @property
    def current_tab(self) -> TabWidget:
        return self.tabs[self.tab_state.index]

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(id="cmdline")
        yield HeaderStats(id="header-stats")
        yield Sparkline([], summary_function=max, id="cpu-graph")
        yield Static(id="tab-bar")
        yield Horizontal(TabBody(id="tab-body"), ScrollbarColumn(id="scrollbar"), id="body-row")
        yield Static(id="help")
        yield Footer()

    def on_mount(self) -> None:
        """Draw the first frame and start ticking."""
        log.info("app_started", pid=self.handle.pid)
        self._update_header()
        self._redraw()
        if not self.exited:
            self._ticks.start()
        self.set_interval(self.config.display.poll_interval, self._check_for_ticks)

    def on_unmount(self) -> None:
        self._ticks.stop()
        log.info("app_stopped", pid=self.handle.pid)

    def _check_for_ticks(self) -> None:
        """Drain the tick queue; any number of pending ticks is one update."""
        pending = False
        while True:
            try:
                self._tick_queue.get_nowait()
            except Empty:
                break
            pending = True

        if pending:
            self.tick()

    def tick(self) -> None:
        """Re-sample the process and redraw. Does nothing once it exited."""
        if self.exited:
            return
        if not self.handle.is_alive():
            self._process_exited()
            return

        self._update_header()
        for tab in self.tabs:
            tab.update(self.handle)
        self._redraw()

    def _process_exited(self) -> None:
        log.info("process_exited", pid=self.handle.pid)
        self.exited = True
        self._ticks.stop()
        self.query_one("#header-stats", HeaderStats).mark_exited()

    def _update_header(self) -> None:
        header = self.query_one("#header-stats", HeaderStats)
        cpu_pct = header.update_stats(self.handle)
        if header.exited:
            self._process_exited()
            return
        if cpu_pct is not None:
            self._cpu_history.append(cpu_pct)
            self.query_one("#cpu-graph", Sparkline).data = list(self._cpu_history)

    def _cmdline(self) -> str:
        info = self.query_one("#header-stats", HeaderStats).info
        if info is None:
            return str(self.handle.pid)
        return " ".join(info.cmdline) or f"[{info.name}]"

    def _tab_bar(self) -> Text:
        text = Text(no_wrap=True)
        for idx, title in enumerate(self.tab_state.titles):
            if idx == self.tab_state.index:
                text.append(f" {title} ", style="bold black on yellow")
            else:
                text.append(f" {title[0]}", style="bold green")
                text.append(f"{title[1:]} ")
        return text

    def _redraw(self) -> None:
        """Point the body at the active tab and repaint every strip."""
        tab = self.current_tab
        self.query_one("#cmdline", Static).update(Text(self._cmdline(), no_wrap=True, overflow="ellipsis"))
        self.query_one("#tab-bar", Static).update(self._tab_bar())
        self.query_one("#help", Static).update(tab.HELP)
        self.query_one("#tab-body", TabBody).show(tab)
        self.query_one("#scrollbar", ScrollbarColumn).show(tab)

    def switch_to(self, pid: int) -> bool:
        """
        Inspect another process.

        Returns:
            False, with the current process kept, when ``pid`` is gone.
        """
        try:
            handle = ProcessHandle.from_pid(pid)
        except ProcessGone:
            log.info("switch_failed", pid=pid)
            self.notify(f"Process {pid} is gone", severity="warning")
            return False

        log.info("process_switched", old_pid=self.handle.pid, new_pid=pid)
        self.handle = handle
        self.tabs = build_tabs(handle, self.config)
        self.tab_state.titles = [tab.TITLE for tab in self.tabs]
        self.exited = False
        self._cpu_history.clear()
        self.query_one("#cpu-graph", Sparkline).data = []
        self.query_one("#header-stats", HeaderStats).reset()
        self._update_header()
        self._redraw()
        if not self.exited:
            self._ticks.start()
        return True

    def action_next_tab(self) -> None:
        self.tab_state.next()
        self._redraw()

    def action_prev_tab(self) -> None:
        self.tab_state.prev()
        self._redraw()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._ticks.stop()
        self.exit()

    def on_key(self, event: events.Key) -> None:
        """Offer a key to the active tab, then try it as a tab shortcut."""
        tab = self.current_tab
        height = self.query_one("#tab-body", TabBody).size.height

        if event.key == "enter" and isinstance(tab, TreeTab):
            event.stop()
            if tab.selected_pid != self.handle.pid:
                self.switch_to(tab.selected_pid)
            return

        result = tab.handle_input(event.key, height)
        if result == InputResult.NONE and event.is_printable and event.character and event.character.isalpha():
            if self.tab_state.select_by_char(event.character):
                result = InputResult.NEEDS_REDRAW

        if result == InputResult.NONE:
            return
        event.stop()
        if result == InputResult.NEEDS_UPDATE and not self.exited:
            tab.update(self.handle)
        self._redraw()
