"""Shared character grid, bordered windows and the window stack.

The :class:`Screen` is the single mutable surface of a presentation session.
Layers are composed bottom-up on every :meth:`Screen.render`: the background
layer (matrix rain) first, then every live window in creation order. Windows
are opaque: they blank their whole rectangle before painting border, label
and content.
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, TextIO, Tuple, Union

from rich.console import Console
from rich.live import Live
from rich.style import Style
from rich.text import Text

from logging_utils import get_logger

from .errors import ScreenDestroyedError
from .theme import Theme

logger = get_logger(__name__)

Attr = Union[str, int, None]

# Palette index used to darken cells under a window shadow.
SHADOW_ATTR = 8

BORDER_GLYPHS = {
    # top-left, top-right, bottom-left, bottom-right, horizontal, vertical
    "line": ("┌", "┐", "└", "┘", "─", "│"),
    "double": ("╔", "╗", "╚", "╝", "═", "║"),
    "rounded": ("╭", "╮", "╰", "╯", "─", "│"),
}

EXTRA_WINDOW_COLORS = ("#ff0066", "#9966ff", "#ffcc00")

_TAG_PATTERN = re.compile(r"\{(?:(#[0-9a-fA-F]{6})-fg|(/?bold)|(/))\}")


@dataclass(frozen=True)
class Cell:
    char: str = " "
    fg: Attr = None
    bold: bool = False


BLANK = Cell()


class Layer(Protocol):
    def paint(self, grid: List[List[Cell]]) -> None: ...


def parse_markup(text: str, default_fg: Attr = None) -> List[List[Cell]]:
    """Split tagged content into rows of styled cells.

    Recognised tags are ``{#rrggbb-fg}``, ``{bold}``, ``{/bold}`` and ``{/}``
    (closes everything). Anything else, including half-typed tags, is kept
    as literal text.
    """
    rows: List[List[Cell]] = [[]]
    colors: List[Attr] = []
    bold = False
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == "{":
            match = _TAG_PATTERN.match(text, pos)
            if match:
                color, bold_tag, close_all = match.groups()
                if color:
                    colors.append(color)
                elif bold_tag == "bold":
                    bold = True
                elif bold_tag == "/bold":
                    bold = False
                elif close_all:
                    colors.clear()
                    bold = False
                pos = match.end()
                continue
        if char == "\n":
            rows.append([])
        else:
            rows[-1].append(Cell(char, colors[-1] if colors else default_fg, bold))
        pos += 1
    return rows


def strip_markup(text: str) -> str:
    return _TAG_PATTERN.sub("", text)


class Screen:
    """Fixed-size character grid with an optional live terminal sink.

    With ``output`` set, frames are shown through a rich :class:`Live`
    display on the alternate screen; the cursor is hidden until
    :meth:`destroy`.
    """

    def __init__(
        self,
        width: int = 120,
        height: int = 40,
        *,
        output: Optional[TextIO] = None,
        title: str = "term-deck",
    ) -> None:
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.title = title
        self.output = output
        self.background: List[List[Cell]] = []
        self.windows: List["Window"] = []
        self.overlays: List[Layer] = []
        self.lines: List[List[Cell]] = self._blank_grid()
        self.render_count = 0
        self._destroyed = False
        self._live: Optional[Live] = None
        if output is not None:
            console = Console(
                file=output,
                force_terminal=True,
                color_system="truecolor",
                width=self.width,
                height=self.height,
                legacy_windows=False,
            )
            self._live = Live(
                console=console,
                screen=True,
                auto_refresh=False,
                redirect_stdout=False,
                redirect_stderr=False,
            )
            self._live.start()

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def append(self, window: "Window") -> None:
        self._ensure_alive()
        self.windows.append(window)

    def remove(self, window: Layer) -> None:
        if window in self.windows:
            self.windows.remove(window)
        if window in self.overlays:
            self.overlays.remove(window)

    def add_overlay(self, layer: Layer) -> None:
        """Paint ``layer`` above every slide window until it is removed."""
        self._ensure_alive()
        if layer not in self.overlays:
            self.overlays.append(layer)

    def set_background(self, cells: List[List[Cell]]) -> None:
        self._ensure_alive()
        self.background = cells

    def render(self) -> None:
        """Recompose the grid from all layers and repaint the terminal, if any."""
        self._ensure_alive()
        grid = self._blank_grid()
        for y, row in enumerate(self.background[: self.height]):
            for x, cell in enumerate(row[: self.width]):
                if cell.char != " ":
                    grid[y][x] = cell
        for window in self.windows:
            window.paint(grid)
        for layer in self.overlays:
            layer.paint(grid)
        self.lines = grid
        self.render_count += 1
        if self._live is not None:
            self._live.update(self.frame(), refresh=True)

    def frame(self) -> Text:
        """The current grid as styled rich text, one run per style change."""
        frame = Text(no_wrap=True, overflow="crop", end="")
        for y, row in enumerate(self.lines):
            if y:
                frame.append("\n")
            run: List[str] = []
            last: Tuple[Attr, bool] = (None, False)
            for cell in row:
                style = (cell.fg, cell.bold)
                if style != last and run:
                    frame.append("".join(run), _cell_style(*last))
                    run = []
                last = style
                run.append(cell.char)
            if run:
                frame.append("".join(run), _cell_style(*last))
        return frame

    def text(self) -> str:
        """Plain text of the current grid, for diagnostics and tests."""
        return "\n".join("".join(cell.char for cell in row) for row in self.lines)

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        for window in list(self.windows):
            window.destroy()
        self.overlays.clear()
        if self._live is not None:
            self._live.stop()
            self._live = None
        logger.debug("Screen destroyed after %d renders", self.render_count)

    # ------------------------------------------------------------------

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise ScreenDestroyedError("screen has been destroyed")

    def _blank_grid(self) -> List[List[Cell]]:
        return [[BLANK] * self.width for _ in range(self.height)]


def _cell_style(fg: Attr, bold: bool) -> Style:
    if isinstance(fg, int):
        return Style(color=f"color({fg})", bold=bold)
    return Style(color=fg, bold=bold)


class Window:
    """A bordered, padded, opaque region of the screen holding tagged content."""

    def __init__(
        self,
        screen: Screen,
        *,
        top: int,
        left: int,
        width: int,
        height: int,
        label: str,
        border_color: str,
        theme: Theme,
    ) -> None:
        self.screen = screen
        self.top = top
        self.left = left
        self.width = max(2, width)
        self.height = max(2, height)
        self.label = label
        self.border_color = border_color
        self.text_color = theme.colors.text
        self.border_style = theme.window.border_style
        self.shadow = theme.window.shadow
        self.padding = theme.window.padding
        self.content = ""
        self.destroyed = False

    def set_content(self, content: str) -> None:
        if self.destroyed:
            raise ScreenDestroyedError(f"window '{self.label.strip()}' has been destroyed")
        self.content = content

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        self.screen.remove(self)

    def inner_box(self) -> Tuple[int, int, int, int]:
        """Return ``(top, left, width, height)`` of the content area."""
        border = 0 if self.border_style == "none" else 1
        top = self.top + border + self.padding.top
        left = self.left + border + self.padding.left
        width = self.width - 2 * border - self.padding.left - self.padding.right
        height = self.height - 2 * border - self.padding.top - self.padding.bottom
        return top, left, max(0, width), max(0, height)

    def paint(self, grid: List[List[Cell]]) -> None:
        rows = len(grid)
        cols = len(grid[0]) if rows else 0

        def put(y: int, x: int, cell: Cell) -> None:
            if 0 <= y < rows and 0 <= x < cols:
                grid[y][x] = cell

        blank = Cell(" ", self.text_color)
        for y in range(self.top, self.top + self.height):
            for x in range(self.left, self.left + self.width):
                put(y, x, blank)

        if self.shadow:
            for y in range(self.top + 1, self.top + self.height + 1):
                x = self.left + self.width
                if 0 <= y < rows and 0 <= x < cols:
                    grid[y][x] = Cell(grid[y][x].char, SHADOW_ATTR)
            y = self.top + self.height
            for x in range(self.left + 1, self.left + self.width + 1):
                if 0 <= y < rows and 0 <= x < cols:
                    grid[y][x] = Cell(grid[y][x].char, SHADOW_ATTR)

        glyphs = BORDER_GLYPHS.get(self.border_style)
        if glyphs:
            tl, tr, bl, br, hz, vt = glyphs
            bottom = self.top + self.height - 1
            right = self.left + self.width - 1
            for x in range(self.left + 1, right):
                put(self.top, x, Cell(hz, self.border_color))
                put(bottom, x, Cell(hz, self.border_color))
            for y in range(self.top + 1, bottom):
                put(y, self.left, Cell(vt, self.border_color))
                put(y, right, Cell(vt, self.border_color))
            put(self.top, self.left, Cell(tl, self.border_color))
            put(self.top, right, Cell(tr, self.border_color))
            put(bottom, self.left, Cell(bl, self.border_color))
            put(bottom, right, Cell(br, self.border_color))
            for offset, char in enumerate(self.label[: max(0, self.width - 4)]):
                put(self.top, self.left + 2 + offset, Cell(char, self.border_color, True))

        top, left, width, height = self.inner_box()
        for row_idx, row in enumerate(parse_markup(self.content, self.text_color)[:height]):
            for col_idx, cell in enumerate(row[:width]):
                put(top + row_idx, left + col_idx, cell)


@dataclass
class WindowOptions:
    title: str
    color: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    top: Optional[int] = None
    left: Optional[int] = None


class WindowStack:
    """Windows of the slide currently on screen, in creation order."""

    def __init__(self) -> None:
        self._windows: List[Window] = []

    def __len__(self) -> int:
        return len(self._windows)

    def __iter__(self) -> Iterator[Window]:
        return iter(self._windows)

    def __getitem__(self, index: int) -> Window:
        return self._windows[index]

    def push(self, window: Window) -> None:
        self._windows.append(window)

    def clear(self) -> None:
        for window in self._windows:
            window.destroy()
        self._windows = []


def get_window_color(index: int, theme: Theme) -> str:
    """Cycle border colors through the theme and a few fixed accents."""
    colors = (
        theme.colors.primary,
        theme.colors.accent,
        theme.colors.secondary or theme.colors.primary,
    ) + EXTRA_WINDOW_COLORS
    return colors[index % len(colors)]


def create_window(
    screen: Screen,
    stack: WindowStack,
    theme: Theme,
    options: WindowOptions,
    rng: Optional[random.Random] = None,
) -> Window:
    """Create a window at a random offset (stacked-cards look) and push it."""
    rng = rng or random.Random()
    color = options.color or get_window_color(len(stack), theme)

    width = options.width if options.width is not None else int(screen.width * 0.75)
    height = options.height if options.height is not None else int(screen.height * 0.7)

    max_top = max(1, screen.height - height - 2)
    max_left = max(1, screen.width - width - 2)
    top = options.top if options.top is not None else rng.randrange(max_top)
    left = options.left if options.left is not None else rng.randrange(max_left)

    window = Window(
        screen,
        top=top,
        left=left,
        width=width,
        height=height,
        label=f" {options.title} ",
        border_color=color,
        theme=theme,
    )
    screen.append(window)
    stack.push(window)
    logger.debug("Window '%s' created at (%d,%d) %dx%d", options.title, left, top, width, height)
    return window


def clear_windows(stack: WindowStack) -> None:
    """Destroy every window in ``stack`` and leave it empty."""
    stack.clear()


def render_content(window: Window, screen: Screen, content: str) -> None:
    """Draw primitive shared by every transition: set content, then repaint."""
    window.set_content(content)
    screen.render()