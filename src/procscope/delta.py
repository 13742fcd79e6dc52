"""Two-sample delta bookkeeping for cumulative kernel counters."""

import os
import time
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")

# Windows shorter than this give meaningless CPU percentages
MIN_CPU_WINDOW = 0.1


def ticks_per_second() -> int:
    """Kernel clock ticks per second (USER_HZ)."""
    return os.sysconf("SC_CLK_TCK")


class CpuCounters(Protocol):
    """Anything reporting cumulative user/system CPU ticks."""

    @property
    def user_ticks(self) -> int: ...

    @property
    def system_ticks(self) -> int: ...


class SampledDelta(Generic[T]):
    """
    Holds the two most recent samples of a counter-bearing record.

    The owner decides when to sample and passes each new record to
    ``update``. Right after construction both samples are the same record
    and ``duration()`` is zero.
    """

    def __init__(
        self,
        initial: T,
        clock: Callable[[], float] = time.monotonic,
        tps: int | None = None,
    ) -> None:
        """
        Initialize the SampledDelta.

        Args:
            initial: First sample; used as both previous and latest.
            clock: Monotonic time source, in seconds.
            tps: Clock ticks per second for CPU samples. Defaults to the
                host's USER_HZ.
        """
        self._clock = clock
        self._tps = tps if tps is not None else ticks_per_second()
        now = clock()
        self._previous = initial
        self._previous_ts = now
        self._latest = initial
        self._latest_ts = now

    def update(self, sample: T) -> None:
        """Shift the latest sample into previous and record a new one."""
        self._previous = self._latest
        self._previous_ts = self._latest_ts
        self._latest = sample
        self._latest_ts = self._clock()

    def latest(self) -> T:
        """The most recent sample."""
        return self._latest

    def previous(self) -> T:
        """The sample before the latest one."""
        return self._previous

    def duration(self) -> float:
        """Seconds between the previous and the latest sample."""
        return self._latest_ts - self._previous_ts

    def delta(self, name: str) -> int:
        """Difference of one counter between the two samples."""
        return getattr(self._latest, name) - getattr(self._previous, name)

    def rate(self, *names: str) -> float:
        """
        Per-second rate of one counter, or the sum of several.

        Returns 0.0 when the samples were taken at the same instant.
        """
        seconds = self.duration()
        if seconds <= 0:
            return 0.0
        return sum(self.delta(name) for name in names) / seconds

    def cpu_percentage(self: "SampledDelta[CpuCounters]") -> float:
        """
        CPU usage over the sampling window, in percent of one core.

        Returns 0.0 for windows shorter than 100ms.
        """
        seconds = self.duration()
        if seconds < MIN_CPU_WINDOW:
            return 0.0
        ticks = self.delta("user_ticks") + self.delta("system_ticks")
        return ticks / self._tps / seconds * 100
