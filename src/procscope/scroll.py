"""Scrollable viewport shared by every list-like tab."""

import math
from enum import IntEnum

from rich.style import Style
from rich.text import Text


class InputResult(IntEnum):
    """What the caller has to do after a key was handled.

    Combining two results with ``|`` keeps the stronger one.
    """

    NONE = 0
    NEEDS_REDRAW = 1
    # Fetch fresh process data as well; implies a redraw
    NEEDS_UPDATE = 2

    def __or__(self, other: object) -> "InputResult":
        if not isinstance(other, InputResult):
            return NotImplemented
        return InputResult(max(self, other))

    __ror__ = __or__


# Full block down to empty, one step per eighth of a cell
SCROLLBAR_SYMBOLS = "█▇▆▅▄▃▂▁ "

FILLED_STYLE = Style(color="magenta", bgcolor="magenta")
TRACK_STYLE = Style(color="white", bgcolor="white")
MARKER_STYLE = Style(color="white", bgcolor="magenta")


def scrollbar_cells(offset: int, max_offset: int, height: int) -> list[tuple[str, Style]]:
    """
    Characters and styles of a scrollbar column, top to bottom.

    The filled run grows with ``offset / max_offset``; a single transitional
    cell gives sub-cell resolution. Empty when there is nothing to scroll.
    """
    if max_offset <= 0 or height <= 0:
        return []
    position = offset / max_offset * height
    whole = math.floor(position)
    rest = position - whole

    cells: list[tuple[str, Style]] = [("_", FILLED_STYLE)] * whole
    # Halves round up, not to even
    symbol = SCROLLBAR_SYMBOLS[math.floor(rest * (len(SCROLLBAR_SYMBOLS) - 1) + 0.5)]
    if symbol.isspace():
        cells.append(("+", FILLED_STYLE))
    else:
        cells.append((symbol, MARKER_STYLE))
    cells.extend([("_", TRACK_STYLE)] * height)
    return cells[:height]


class ScrollController:
    """
    Offset into content that is taller than its viewport.

    The controller only tracks numbers; callers feed it the content extent
    (``set_max_scroll``) and keys, and read ``scroll_offset`` when drawing.
    """

    PAGE_DOWN_KEYS = ("down", "pagedown", "end")
    PAGE_UP_KEYS = ("up", "pageup")

    def __init__(self) -> None:
        self._offset = 0
        self._max_offset = 0

    @property
    def scroll_offset(self) -> int:
        """Index of the first visible line."""
        return self._offset

    @property
    def max_offset(self) -> int:
        return self._max_offset

    def set_max_scroll(self, extent: int) -> None:
        """
        Set the largest legal offset.

        Args:
            extent: Content height minus viewport height; may be negative.
        """
        self._max_offset = max(0, extent)
        if self._offset >= self._max_offset:
            self._offset = self._max_offset

    def handle_input(self, key: str, height: int) -> InputResult:
        """
        Move the offset for a navigation key.

        Args:
            key: Textual key name.
            height: Viewport height; page keys move a third of it.
        """
        page = height // 3
        if key in self.PAGE_DOWN_KEYS:
            step = {"down": 1, "pagedown": page, "end": self._max_offset}[key]
            to_move = min(max(self._max_offset - self._offset, 0), step)
            if to_move > 0:
                self._offset += to_move
                return InputResult.NEEDS_REDRAW
            return InputResult.NONE
        if key == "home":
            moved = self._offset > 0
            self._offset = 0
            return InputResult.NEEDS_REDRAW if moved else InputResult.NONE
        if key in self.PAGE_UP_KEYS:
            to_move = min(page if key == "pageup" else 1, self._offset)
            if to_move > 0:
                self._offset -= to_move
                return InputResult.NEEDS_REDRAW
            return InputResult.NONE
        return InputResult.NONE

    def visible(self, lines: list[Text], height: int) -> list[Text]:
        """Clamp to ``lines`` and return the slice that fits the viewport."""
        self.set_max_scroll(len(lines) - height)
        return lines[self._offset : self._offset + height]

    def draw_scrollbar(self, height: int) -> Text:
        """Render the scrollbar column; empty when nothing scrolls."""
        text = Text(no_wrap=True, end="")
        for idx, (char, style) in enumerate(scrollbar_cells(self._offset, self._max_offset, height)):
            if idx:
                text.append("\n")
            text.append(char, style)
        return text
