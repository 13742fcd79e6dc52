"""Scrollable listing tabs: environment, sockets, maps, files and limits."""

import time
from collections.abc import Callable

from rich.text import Text

from procscope.errors import SnapshotError
from procscope.formatting import format_bytes, format_limit
from procscope.models import FdRecord, LimitRecord, MapRecord, PipePeer, SocketRecord
from procscope.source import ProcessHandle, pipe_peers
from procscope.widgets.base import KEY_STYLE, ScrolledTab, error_line

DIM_STYLE = "dim"


class EnvTab(ScrolledTab):
    """Environment variables, sorted by name."""

    TITLE = "Env"
    HELP = "The [yellow]Env[/] tab shows the environment variables for the process."

    def refresh(self, handle: ProcessHandle) -> None:
        """Read the listing, keeping any error for display."""
        self.env: dict[str, str] = {}
        self.error: SnapshotError | None = None
        try:
            self.env = handle.environ()
        except SnapshotError as e:
            self.error = e

    def lines(self, width: int) -> list[Text]:
        """One styled line per entry, or a single error line."""
        if self.error is not None:
            return [error_line("environment", self.error)]
        lines = []
        for key in sorted(self.env):
            line = Text(no_wrap=True)
            line.append(key, style=KEY_STYLE)
            line.append("=", style=KEY_STYLE)
            line.append(self.env[key])
            lines.append(line)
        return lines


class NetTab(ScrolledTab):
    """Open TCP, UDP and unix sockets."""

    TITLE = "Net"
    HELP = "The [yellow]Net[/] tab shows the network connections the process has open."

    KIND_STYLES = {"tcp": "green", "udp": "blue", "unix": "yellow"}

    def refresh(self, handle: ProcessHandle) -> None:
        """Read the listing, keeping any error for display."""
        self.sockets: list[SocketRecord] = []
        self.error: SnapshotError | None = None
        try:
            self.sockets = handle.sockets()
        except SnapshotError as e:
            self.error = e

    def lines(self, width: int) -> list[Text]:
        """One styled line per entry, or a single error line."""
        if self.error is not None:
            return [error_line("network connections", self.error)]
        if not self.sockets:
            return [Text("(no network connections)", style=DIM_STYLE)]

        lines = []
        for sock in self.sockets:
            line = Text(no_wrap=True)
            line.append(f"[{sock.kind}]".ljust(7), style=self.KIND_STYLES.get(sock.kind, ""))
            if sock.kind == "unix":
                line.append(f"{sock.socket_type:<10} ")
                if sock.local:
                    line.append(sock.local)
                else:
                    line.append("(no socket path)", style=DIM_STYLE)
            elif sock.kind == "tcp":
                line.append(f"{sock.local} -> {sock.remote} ({sock.status})")
            else:
                line.append(f"{sock.local} -> {sock.remote}")
            lines.append(line)
        return lines


class MapsTab(ScrolledTab):
    """Memory mappings with their resident size."""

    TITLE = "Maps"
    HELP = "The [yellow]Maps[/] tab shows the memory regions mapped into the process."

    # Pseudo paths the kernel reports in brackets
    SPECIAL_STYLE = "green"
    PATH_STYLE = "magenta"

    def refresh(self, handle: ProcessHandle) -> None:
        """Read the listing, keeping any error for display."""
        self.maps: list[MapRecord] = []
        self.error: SnapshotError | None = None
        try:
            self.maps = handle.memory_maps()
        except SnapshotError as e:
            self.error = e

    def lines(self, width: int) -> list[Text]:
        """One styled line per entry, or a single error line."""
        if self.error is not None:
            return [error_line("maps", self.error)]
        lines = []
        for region in self.maps:
            line = Text(no_wrap=True)
            line.append(f"{region.address:<34}")
            line.append(f"{region.perms} ")
            line.append(f"{format_bytes(region.rss):>10} ")
            if not region.path:
                line.append("[anonymous]", style=self.SPECIAL_STYLE)
            elif region.path.startswith("["):
                line.append(region.path, style=self.SPECIAL_STYLE)
            else:
                line.append(region.path, style=self.PATH_STYLE)
            lines.append(line)
        return lines


class FilesTab(ScrolledTab):
    """Open file descriptors, naming the peer process of each pipe."""

    TITLE = "Files"
    HELP = (
        "The [yellow]Files[/] tab shows the open file descriptors. "
        "For pipes, the process at the other end is shown when it can be found."
    )

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        pipes_interval: float = 10.0,
        peer_source: Callable[[], dict[int, tuple[PipePeer, PipePeer]]] = pipe_peers,
    ) -> None:
        self.pipes_interval = pipes_interval
        self._peer_source = peer_source
        self.peers = peer_source()
        self._pipes_updated = clock()
        super().__init__(handle, interval, clock)

    def refresh(self, handle: ProcessHandle) -> None:
        """Read the listing, keeping any error for display."""
        self.fds: list[FdRecord] = []
        self.error: SnapshotError | None = None
        try:
            self.fds = handle.fds()
        except SnapshotError as e:
            self.error = e

    def update(self, handle: ProcessHandle) -> None:
        """Refresh descriptors, and the system-wide pipe table on its own interval."""
        super().update(handle)
        now = self._clock()
        if now - self._pipes_updated > self.pipes_interval:
            self.peers = self._peer_source()
            self._pipes_updated = now

    def lines(self, width: int) -> list[Text]:
        """One styled line per entry, or a single error line."""
        if self.error is not None:
            return [error_line("fds", self.error)]
        lines = []
        for fd in self.fds:
            line = Text(no_wrap=True)
            line.append(f"{fd.fd:<4}", style=KEY_STYLE)
            if fd.kind == "path":
                line.append(fd.target, style="magenta")
            elif fd.kind == "pipe":
                line.append(f"pipe: {fd.inode}", style="blue")
                pair = self.peers.get(fd.inode) if fd.inode is not None else None
                if pair is not None:
                    reader, writer = pair
                    if fd.writable:
                        line.append(f" (<-- {reader.pid} {reader.cmdline})", style=DIM_STYLE)
                    else:
                        line.append(f" (--> {writer.pid} {writer.cmdline})", style=DIM_STYLE)
            elif fd.kind == "socket":
                line.append(f"socket: {fd.inode}", style="yellow")
            else:
                line.append(fd.target)
            lines.append(line)
        return lines


class LimitTab(ScrolledTab):
    """Soft and hard resource limits."""

    TITLE = "Limits"
    HELP = "The [yellow]Limits[/] tab shows the resource limits of the process."

    HEADER = f"{'Type':<18}{'Soft Limit':<12}{'Hard Limit':<12}"

    def refresh(self, handle: ProcessHandle) -> None:
        """Read the listing, keeping any error for display."""
        self.limits: list[LimitRecord] = []
        self.error: SnapshotError | None = None
        try:
            self.limits = handle.limits()
        except SnapshotError as e:
            self.error = e

    def lines(self, width: int) -> list[Text]:
        """One styled line per entry, or a single error line."""
        if self.error is not None:
            return [error_line("limits", self.error)]
        lines = [Text(self.HEADER, style="bold"), Text("")]
        for limit in self.limits:
            lines.append(
                Text(
                    f"{limit.name:<18}{format_limit(limit.soft):<12}{format_limit(limit.hard):<12}{limit.unit}",
                    no_wrap=True,
                )
            )
        return lines
