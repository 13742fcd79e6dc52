"""Common behaviour of the tab widgets."""

import time
from collections.abc import Callable
from typing import ClassVar

from rich.text import Text

from procscope.errors import SnapshotError
from procscope.scroll import InputResult, ScrollController
from procscope.source import ProcessHandle

ERROR_STYLE = "red"
KEY_STYLE = "green"


def error_line(what: str, error: SnapshotError) -> Text:
    """One red line describing a failed read."""
    return Text(f"Error getting {what}: {error.reason or error}", style=ERROR_STYLE)


class TabWidget:
    """
    A tab of the dashboard.

    Subclasses implement ``refresh`` (fetch data) and ``render`` (turn it
    into lines). ``update`` is called on every tick and only refreshes once
    ``interval`` seconds have passed or a refresh was forced.
    """

    TITLE: ClassVar[str] = ""
    HELP: ClassVar[str] = ""

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self._clock = clock
        self._force_update = False
        self.refresh(handle)
        self._last_updated = clock()

    def refresh(self, handle: ProcessHandle) -> None:
        """Fetch fresh data for this tab from ``handle``."""
        raise NotImplementedError

    def update(self, handle: ProcessHandle) -> None:
        """Re-sample ``handle`` if this tab's data is stale."""
        now = self._clock()
        if now - self._last_updated > self.interval or self._force_update:
            self.refresh(handle)
            self._last_updated = now
            self._force_update = False

    def handle_input(self, key: str, height: int) -> InputResult:
        """React to a key; tabs that take no input ignore it."""
        return InputResult.NONE

    def render(self, width: int, height: int) -> list[Text]:
        """Lines to show in a body of ``width`` by ``height`` cells."""
        raise NotImplementedError

    def draw_scrollbar(self, height: int) -> Text | None:
        """Scrollbar column for the tab body, if this tab scrolls."""
        return None


class ScrolledTab(TabWidget):
    """A tab showing a list of lines through a ScrollController."""

    def __init__(
        self,
        handle: ProcessHandle,
        interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scroll = ScrollController()
        super().__init__(handle, interval, clock)

    def lines(self, width: int) -> list[Text]:
        """Every line of the tab content, before scrolling."""
        raise NotImplementedError

    def render(self, width: int, height: int) -> list[Text]:
        """The window of ``lines`` at the current scroll offset."""
        return self.scroll.visible(self.lines(width), height)

    def handle_input(self, key: str, height: int) -> InputResult:
        """Scroll the list for navigation keys."""
        return self.scroll.handle_input(key, height)

    def draw_scrollbar(self, height: int) -> Text | None:
        """Scrollbar matching the current scroll offset."""
        return self.scroll.draw_scrollbar(height)
