"""Background tick source for procscope."""

import threading
import time
from dataclasses import dataclass
from queue import Queue


@dataclass(slots=True, frozen=True)
class Tick:
    """A periodic refresh request."""

    seq: int
    when: float  # time.monotonic() at emission


class TickSource:
    """
    Posts Tick events into a thread-safe Queue at a fixed rate.

    Runs in a separate daemon thread. It never touches process data itself;
    the consumer re-samples on its own thread when a Tick arrives.
    """

    def __init__(
        self,
        tick_queue: Queue[Tick],
        tick_rate: float = 1.5,
    ) -> None:
        """
        Initialize the TickSource.

        Args:
            tick_queue: Thread-safe queue to push ticks to.
            tick_rate: Seconds between ticks. Default 1.5s.
        """
        self._queue = tick_queue
        self._tick_rate = max(0.1, tick_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._seq = 0

    @property
    def tick_rate(self) -> float:
        """Get the current tick rate."""
        return self._tick_rate

    @tick_rate.setter
    def tick_rate(self, value: float) -> None:
        """Set the tick rate."""
        self._tick_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the tick thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the tick thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            daemon=True,
            name="TickSource",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the tick thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _tick_loop(self) -> None:
        """Main loop running in the background thread."""
        while not self._stop_event.wait(timeout=self._tick_rate):
            self._seq += 1
            self._queue.put(Tick(seq=self._seq, when=time.monotonic()))
