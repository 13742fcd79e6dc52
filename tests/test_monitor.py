"""Tests for the TickSource class."""

import threading
import time
from queue import Empty, Queue

import pytest

from procscope.monitor import Tick, TickSource


class TestTick:
    """Tests for Tick dataclass."""

    def test_tick_creation(self):
        """Test Tick can be created with all fields."""
        tick = Tick(seq=3, when=12.5)
        assert tick.seq == 3
        assert tick.when == 12.5

    def test_tick_uses_slots(self):
        """Test Tick uses __slots__ for memory efficiency."""
        assert not hasattr(Tick(seq=1, when=0.0), "__dict__")


class TestTickSource:
    """Tests for TickSource class."""

    def test_source_creation(self):
        """Test TickSource can be instantiated."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue)

        assert source.tick_rate == 1.5
        assert not source.is_running

    def test_custom_tick_rate(self):
        """Test TickSource with custom tick rate."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.5)

        assert source.tick_rate == 0.5

    def test_tick_rate_minimum(self):
        """Test tick rate has a minimum value."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue)

        source.tick_rate = 0.01  # Very small value
        assert source.tick_rate >= 0.1  # Should be clamped to minimum
        assert TickSource(queue, tick_rate=0.0).tick_rate >= 0.1

    def test_start_stop(self):
        """Test TickSource can be started and stopped."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.1)

        assert not source.is_running

        source.start()
        assert source.is_running

        source.stop()
        assert not source.is_running

    def test_start_idempotent(self):
        """Test starting an already running source is safe."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.1)

        source.start()
        thread1 = source._thread

        source.start()  # Should not create a new thread
        thread2 = source._thread

        assert thread1 is thread2
        source.stop()

    def test_stop_without_start(self):
        """Test stopping a source that never ran is safe."""
        source = TickSource(Queue())
        source.stop()
        assert not source.is_running

    def test_restart_after_stop(self):
        """Test a stopped source can be started again."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.1)

        source.start()
        source.stop()
        source.start()
        try:
            assert source.is_running
            assert isinstance(queue.get(timeout=2.0), Tick)
        finally:
            source.stop()

    def test_ticks_are_queued_in_order(self):
        """Test the source posts ticks with increasing sequence numbers."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.1)

        source.start()
        try:
            first = queue.get(timeout=2.0)
            second = queue.get(timeout=2.0)
            assert second.seq == first.seq + 1
            assert second.when >= first.when
        finally:
            source.stop()

    def test_no_ticks_after_stop(self):
        """Test nothing is queued once the source stopped."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.1)

        source.start()
        queue.get(timeout=2.0)
        source.stop()
        while not queue.empty():
            queue.get_nowait()

        time.sleep(0.3)
        with pytest.raises(Empty):
            queue.get_nowait()

    def test_thread_does_not_leak(self):
        """Test repeated start/stop cycles leave no tick threads behind."""
        queue: Queue[Tick] = Queue()
        source = TickSource(queue, tick_rate=0.1)
        before = threading.active_count()

        for _ in range(5):
            source.start()
            source.stop()

        assert source._thread is None
        assert threading.active_count() <= before
