"""Typed failures raised by the snapshot layer."""


class SnapshotError(Exception):
    """A single attribute of a single process could not be read."""

    def __init__(self, pid: int, what: str, reason: str = "") -> None:
        self.pid = pid
        self.what = what
        self.reason = reason
        super().__init__(f"{what} for pid {pid}: {reason}" if reason else f"{what} for pid {pid}")


class ProcessGone(SnapshotError):
    """The process exited between enumeration and the attribute read."""


class AccessDenied(SnapshotError):
    """The kernel refused to expose the attribute to us."""


class TreeBuildError(Exception):
    """The process table could not be turned into a tree at all."""
