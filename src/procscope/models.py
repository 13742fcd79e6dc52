"""Data models for procscope."""

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """One row of the flat process enumeration."""

    pid: int
    ppid: int
    cmdline: str  # Full command line, or the short name when unavailable


@dataclass(slots=True)
class ProcessTreeEntry:
    """A node of a ProcessTree.

    ``children`` holds pids, not entries; look them up in the owning tree.
    """

    pid: int
    ppid: int
    cmdline: str
    num_siblings: int = 0
    children: list[int] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class CpuSample:
    """Cumulative CPU accounting of a process, in clock ticks."""

    user_ticks: int
    system_ticks: int


@dataclass(slots=True, frozen=True)
class IoSample:
    """Cumulative I/O counters of a process."""

    read_chars: int
    write_chars: int
    read_syscalls: int
    write_syscalls: int
    read_bytes: int  # Bytes that actually hit the block layer
    write_bytes: int


@dataclass(slots=True, frozen=True)
class ThreadSample:
    """CPU accounting of one thread."""

    tid: int
    name: str
    user_ticks: int
    system_ticks: int


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """Header data for the inspected process."""

    pid: int
    ppid: int
    pgrp: int
    session: int
    name: str
    cmdline: tuple[str, ...]
    state: str
    started: float  # Epoch seconds
    owner: str
    uid: int
    threads: int
    nice: int
    vms: int  # Bytes
    rss: int
    shared: int


@dataclass(slots=True, frozen=True)
class FdRecord:
    """An open file descriptor and what it points at."""

    fd: int
    kind: str  # 'path', 'pipe', 'socket', 'anon' or 'other'
    target: str
    inode: int | None = None
    writable: bool = False


@dataclass(slots=True, frozen=True)
class PipePeer:
    """The process holding one end of a pipe."""

    pid: int
    cmdline: str


@dataclass(slots=True, frozen=True)
class SocketRecord:
    """A socket owned by the process."""

    kind: str  # 'tcp', 'udp' or 'unix'
    local: str
    remote: str
    status: str
    socket_type: str = ""


@dataclass(slots=True, frozen=True)
class MapRecord:
    """One memory mapping."""

    address: str
    perms: str
    path: str
    rss: int


@dataclass(slots=True, frozen=True)
class LimitRecord:
    """A resource limit; ``None`` means unlimited."""

    name: str
    soft: int | None
    hard: int | None
    unit: str


@dataclass(slots=True, frozen=True)
class CGroupRecord:
    """One line of /proc/<pid>/cgroup."""

    hierarchy: int
    controllers: tuple[str, ...]
    path: str


@dataclass(slots=True, frozen=True)
class MemoryRecord:
    """Memory breakdown of a process, in bytes."""

    rss: int
    vms: int
    shared: int
    uss: int
    pss: int
    swap: int
