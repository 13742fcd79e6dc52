"""Snapshot source: everything procscope reads from the kernel.

Process-wide data comes from psutil; the few things psutil does not expose
(file descriptor targets, cgroup membership, thread names) are read from
/proc directly. Every failure surfaces as a SnapshotError subclass scoped to
one process and one attribute.
"""

import os
import socket
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psutil

from procscope.delta import ticks_per_second
from procscope.errors import AccessDenied, ProcessGone, SnapshotError
from procscope.models import (
    CGroupRecord,
    CpuSample,
    FdRecord,
    IoSample,
    LimitRecord,
    MapRecord,
    MemoryRecord,
    PipePeer,
    ProcessInfo,
    ProcessRecord,
    SocketRecord,
    ThreadSample,
)

PROC = Path("/proc")

# (label, psutil resource, unit)
LIMITS = [
    ("Cpu Time", psutil.RLIMIT_CPU, "(seconds)"),
    ("File Size", psutil.RLIMIT_FSIZE, "(bytes)"),
    ("Data Size", psutil.RLIMIT_DATA, "(bytes)"),
    ("Stack Size", psutil.RLIMIT_STACK, "(bytes)"),
    ("Core File Size", psutil.RLIMIT_CORE, "(bytes)"),
    ("Resident Set", psutil.RLIMIT_RSS, "(bytes)"),
    ("Processes", psutil.RLIMIT_NPROC, ""),
    ("Open Files", psutil.RLIMIT_NOFILE, ""),
    ("Locked Memory", psutil.RLIMIT_MEMLOCK, "(bytes)"),
    ("Address Space", psutil.RLIMIT_AS, "(bytes)"),
    ("File Locks", psutil.RLIMIT_LOCKS, ""),
    ("Pending Signals", psutil.RLIMIT_SIGPENDING, ""),
    ("Msgqueue Size", psutil.RLIMIT_MSGQUEUE, "(bytes)"),
    ("Nice Priority", psutil.RLIMIT_NICE, ""),
    ("Realtime Priority", psutil.RLIMIT_RTPRIO, ""),
    ("Realtime Timeout", psutil.RLIMIT_RTTIME, "(useconds)"),
]

SOCKET_TYPES = {
    socket.SOCK_STREAM: "STREAM",
    socket.SOCK_DGRAM: "DGRAM",
    socket.SOCK_SEQPACKET: "SEQPACKET",
}


@contextmanager
def _reading(pid: int, what: str) -> Iterator[None]:
    """Translate psutil and OS errors into SnapshotErrors."""
    try:
        yield
    except (psutil.NoSuchProcess, ProcessLookupError, FileNotFoundError) as e:
        raise ProcessGone(pid, what, "process exited") from e
    except (psutil.AccessDenied, PermissionError) as e:
        raise AccessDenied(pid, what, "permission denied") from e
    except OSError as e:
        raise SnapshotError(pid, what, e.strerror or str(e)) from e


def _display_cmdline(cmdline: list[str] | None, name: str | None) -> str:
    """Full command line if we could read one, otherwise the short name."""
    return " ".join(cmdline) if cmdline else (name or "")


def iter_process_records() -> Iterator[ProcessRecord]:
    """
    Yield a ProcessRecord for every process we can see.

    Processes that exit mid-scan or whose parent cannot be read are skipped;
    a partial enumeration is normal, not an error.
    """
    for proc in psutil.process_iter(attrs=["pid", "ppid", "name", "cmdline"]):
        info = proc.info
        if info.get("ppid") is None:
            continue
        yield ProcessRecord(
            pid=info["pid"],
            ppid=info["ppid"],
            cmdline=_display_cmdline(info.get("cmdline"), info.get("name")),
        )


def _format_addr(addr: object) -> str:
    if not addr:
        return "*"
    ip, port = addr  # type: ignore[misc]
    return f"[{ip}]:{port}" if ":" in ip else f"{ip}:{port}"


def _parse_fd_target(fd: int, target: str) -> FdRecord:
    for kind in ("pipe", "socket"):
        prefix = f"{kind}:["
        if target.startswith(prefix) and target.endswith("]"):
            return FdRecord(fd=fd, kind=kind, target=target, inode=int(target[len(prefix) : -1]))
    if target.startswith("anon_inode:"):
        return FdRecord(fd=fd, kind="anon", target=target[len("anon_inode:") :])
    if target.startswith("/"):
        return FdRecord(fd=fd, kind="path", target=target)
    return FdRecord(fd=fd, kind="other", target=target)


def _fd_writable(pid: int, fd: int) -> bool:
    """Whether the descriptor was opened for writing, from its fdinfo flags."""
    try:
        for line in (PROC / str(pid) / "fdinfo" / str(fd)).read_text().splitlines():
            if line.startswith("flags:"):
                return int(line.split()[1], 8) & os.O_ACCMODE != os.O_RDONLY
    except (OSError, ValueError, IndexError):
        # Closed or unreadable; treat as the read end
        return False
    return False


def _read_fds(pid: int) -> list[FdRecord]:
    fd_dir = PROC / str(pid) / "fd"
    records = []
    for name in sorted(os.listdir(fd_dir), key=int):
        try:
            target = os.readlink(fd_dir / name)
        except FileNotFoundError:
            # Closed between listdir and readlink
            continue
        record = _parse_fd_target(int(name), target)
        if record.kind == "pipe":
            record = FdRecord(
                fd=record.fd,
                kind=record.kind,
                target=record.target,
                inode=record.inode,
                writable=_fd_writable(pid, record.fd),
            )
        records.append(record)
    return records


def pipe_peers() -> dict[int, tuple[PipePeer, PipePeer]]:
    """
    Map pipe inodes to their (reader, writer) processes, host-wide.

    Pipes with only one visible end are left out.
    """
    readers: dict[int, PipePeer] = {}
    writers: dict[int, PipePeer] = {}
    for record in iter_process_records():
        try:
            fds = _read_fds(record.pid)
        except OSError:
            continue
        peer = PipePeer(pid=record.pid, cmdline=record.cmdline)
        for fd in fds:
            if fd.kind != "pipe" or fd.inode is None:
                continue
            if fd.writable:
                writers[fd.inode] = peer
            else:
                readers[fd.inode] = peer
    return {inode: (reader, writers[inode]) for inode, reader in readers.items() if inode in writers}


def cgroup_mounts() -> dict[frozenset[str], str]:
    """
    Mounted cgroup hierarchies, keyed by controller set.

    The unified (v2) hierarchy is keyed by the empty set.
    """
    mounts: dict[frozenset[str], str] = {}
    for part in psutil.disk_partitions(all=True):
        if part.fstype == "cgroup2":
            mounts.setdefault(frozenset(), part.mountpoint)
        elif part.fstype == "cgroup":
            opts = frozenset(part.opts.split(","))
            mounts[opts] = part.mountpoint
    return mounts


def read_cgroup_file(path: Path) -> str | None:
    """Contents of a cgroup control file, or None if unreadable."""
    try:
        return path.read_text().strip()
    except OSError:
        return None


class ProcessHandle:
    """
    Access point for the live attributes of one process.

    Every reader either returns a record or raises a SnapshotError.
    """

    def __init__(self, proc: psutil.Process) -> None:
        self._proc = proc
        self._tps = ticks_per_second()

    @classmethod
    def from_pid(cls, pid: int) -> "ProcessHandle":
        """Attach to ``pid``; raises ProcessGone when it does not exist."""
        with _reading(pid, "process"):
            return cls(psutil.Process(pid))

    @classmethod
    def myself(cls) -> "ProcessHandle":
        return cls(psutil.Process())

    @property
    def pid(self) -> int:
        return self._proc.pid

    def is_alive(self) -> bool:
        """True while the process runs and has not become a zombie."""
        try:
            return self._proc.is_running() and self._proc.status() != psutil.STATUS_ZOMBIE
        except psutil.Error:
            return False

    def _ticks(self, seconds: float) -> int:
        return round(seconds * self._tps)

    def info(self) -> ProcessInfo:
        with _reading(self.pid, "process info"), self._proc.oneshot():
            mem = self._proc.memory_info()
            return ProcessInfo(
                pid=self.pid,
                ppid=self._proc.ppid(),
                pgrp=os.getpgid(self.pid),
                session=os.getsid(self.pid),
                name=self._proc.name(),
                cmdline=tuple(self._proc.cmdline()),
                state=self._proc.status(),
                started=self._proc.create_time(),
                owner=self._proc.username(),
                uid=self._proc.uids().real,
                threads=self._proc.num_threads(),
                nice=self._proc.nice(),
                vms=mem.vms,
                rss=mem.rss,
                shared=getattr(mem, "shared", 0),
            )

    def cpu_sample(self) -> CpuSample:
        with _reading(self.pid, "cpu times"):
            times = self._proc.cpu_times()
        return CpuSample(user_ticks=self._ticks(times.user), system_ticks=self._ticks(times.system))

    def io_sample(self) -> IoSample:
        with _reading(self.pid, "io counters"):
            io = self._proc.io_counters()
        return IoSample(
            read_chars=getattr(io, "read_chars", 0),
            write_chars=getattr(io, "write_chars", 0),
            read_syscalls=io.read_count,
            write_syscalls=io.write_count,
            read_bytes=io.read_bytes,
            write_bytes=io.write_bytes,
        )

    def threads(self) -> list[ThreadSample]:
        with _reading(self.pid, "tasks"):
            threads = self._proc.threads()
        samples = []
        for thread in threads:
            try:
                name = (PROC / str(self.pid) / "task" / str(thread.id) / "comm").read_text().strip()
            except OSError:
                name = "?"
            samples.append(
                ThreadSample(
                    tid=thread.id,
                    name=name,
                    user_ticks=self._ticks(thread.user_time),
                    system_ticks=self._ticks(thread.system_time),
                )
            )
        return samples

    def environ(self) -> dict[str, str]:
        with _reading(self.pid, "environment"):
            return self._proc.environ()

    def sockets(self) -> list[SocketRecord]:
        with _reading(self.pid, "network connections"):
            conns = self._proc.net_connections(kind="all")
        records = []
        for conn in conns:
            if conn.family == socket.AF_UNIX:
                records.append(
                    SocketRecord(
                        kind="unix",
                        local=conn.laddr or "",
                        remote=conn.raddr or "",
                        status=conn.status,
                        socket_type=SOCKET_TYPES.get(conn.type, ""),
                    )
                )
            else:
                records.append(
                    SocketRecord(
                        kind="tcp" if conn.type == socket.SOCK_STREAM else "udp",
                        local=_format_addr(conn.laddr),
                        remote=_format_addr(conn.raddr),
                        status=conn.status,
                        socket_type=SOCKET_TYPES.get(conn.type, ""),
                    )
                )
        return records

    def memory_maps(self) -> list[MapRecord]:
        with _reading(self.pid, "memory maps"):
            maps = self._proc.memory_maps(grouped=False)
        return [MapRecord(address=m.addr, perms=m.perms, path=m.path, rss=m.rss) for m in maps]

    def memory(self) -> MemoryRecord:
        with _reading(self.pid, "memory info"):
            full = self._proc.memory_full_info()
        return MemoryRecord(
            rss=full.rss,
            vms=full.vms,
            shared=getattr(full, "shared", 0),
            uss=full.uss,
            pss=getattr(full, "pss", 0),
            swap=getattr(full, "swap", 0),
        )

    def fds(self) -> list[FdRecord]:
        with _reading(self.pid, "file descriptors"):
            return _read_fds(self.pid)

    def limits(self) -> list[LimitRecord]:
        records = []
        with _reading(self.pid, "limits"):
            for name, resource, unit in LIMITS:
                soft, hard = self._proc.rlimit(resource)
                records.append(
                    LimitRecord(
                        name=name,
                        soft=None if soft == psutil.RLIM_INFINITY else soft,
                        hard=None if hard == psutil.RLIM_INFINITY else hard,
                        unit=unit,
                    )
                )
        return records

    def cgroups(self) -> list[CGroupRecord]:
        with _reading(self.pid, "cgroups"):
            text = (PROC / str(self.pid) / "cgroup").read_text()
        records = []
        for line in text.splitlines():
            hierarchy, controllers, path = line.split(":", 2)
            records.append(
                CGroupRecord(
                    hierarchy=int(hierarchy),
                    controllers=tuple(c for c in controllers.split(",") if c),
                    path=path,
                )
            )
        return sorted(records, key=lambda r: r.hierarchy)
