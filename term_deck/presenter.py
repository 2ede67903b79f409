"""Live presentation in the host terminal."""
from __future__ import annotations

import os
import select
import shutil
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, TextIO

from logging_utils import get_logger

from .errors import ScreenDestroyedError
from .models import Slide
from .renderer import Renderer
from .scheduler import Scheduler
from .screen import SHADOW_ATTR, Cell, Window
from .theme import Theme

logger = get_logger(__name__)

NEXT_KEYS = {" ", "\r", "\n", "n", "\x1b[C", "\x1b[B"}
PREV_KEYS = {"p", "b", "h", "\x7f", "\x1b[D", "\x1b[A"}
QUIT_KEYS = {"q", "\x03", "\x1b"}
JUMP_KEYS = set("0123456789")
LIST_KEY = "l"
NOTES_KEY = "N"
LIST_CLOSE_KEYS = {"l", "q", "\x1b"}

# How long to let the background animate between key polls.
POLL_MS = 50.0

# handle_key() result that ends the presentation.
QUIT = -1

LIST_BORDER = "#ffcc00"
MUTED = "#888888"

KeySource = Callable[[float], Optional[str]]


@contextmanager
def cbreak_keys(stream: TextIO = sys.stdin) -> Iterator[KeySource]:
    """Yield a key reader that waits at most ``timeout`` seconds per call."""
    fd = stream.fileno()
    saved = None
    if os.isatty(fd):
        import termios
        import tty

        saved = termios.tcgetattr(fd)
        tty.setcbreak(fd)

    def read_key(timeout: float) -> Optional[str]:
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return None
        key = os.read(fd, 1).decode("utf-8", "ignore")
        if key == "\x1b":
            more, _, _ = select.select([fd], [], [], 0.01)
            if more:
                key += os.read(fd, 2).decode("utf-8", "ignore")
        return key

    try:
        yield read_key
    finally:
        if saved is not None:
            import termios

            termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class ProgressLine:
    """Bottom row filled in proportion to the slide position, with an ``n/total`` label."""

    def __init__(self, total: int, color: str) -> None:
        self.total = max(1, total)
        self.current = 0
        self.color = color

    def paint(self, grid: List[List[Cell]]) -> None:
        if not grid:
            return
        row = grid[-1]
        cols = len(row)
        filled = round(cols * (self.current + 1) / self.total)
        for x in range(cols):
            row[x] = Cell("━", self.color) if x < filled else Cell("─", SHADOW_ATTR)
        label = f" {self.current + 1}/{self.total} "[:cols]
        start = cols - len(label)
        for offset, char in enumerate(label):
            row[start + offset] = Cell(char, self.color, True)


def notes_content(slides: Sequence[Slide], index: int, rule_width: int = 40) -> str:
    slide = slides[index]
    rule = "─" * max(1, rule_width)
    parts = [
        f"{{bold}}Slide {index + 1} of {len(slides)}{{/bold}}",
        f"{{{MUTED}-fg}}{slide.title}{{/}}",
        rule,
    ]
    if slide.notes:
        parts.append("{bold}PRESENTER NOTES:{/bold}")
        parts.append(slide.notes)
    else:
        parts.append(f"{{{MUTED}-fg}}No notes for this slide{{/}}")
    parts.append(rule)
    if index + 1 < len(slides):
        parts.append(f'{{bold}}NEXT:{{/bold}} "{slides[index + 1].title}"')
    else:
        parts.append(f"{{{MUTED}-fg}}Last slide{{/}}")
    return "\n".join(parts)


def slide_list_content(slides: Sequence[Slide], current: int) -> str:
    return "\n".join(
        f"{'▶ ' if idx == current else '  '}{idx}: {slide.title}" for idx, slide in enumerate(slides)
    )


class Presenter:
    """Navigation state on top of a :class:`Renderer`: current slide, overlays, key handling."""

    def __init__(
        self,
        slides: Sequence[Slide],
        renderer: Renderer,
        *,
        show_notes: bool = False,
        show_progress: bool = True,
    ) -> None:
        self.slides = slides
        self.renderer = renderer
        self.current = 0
        self.notes_visible = False
        self.list_window: Optional[Window] = None
        screen = renderer.screen
        theme = renderer.theme

        self.progress: Optional[ProgressLine] = None
        if show_progress:
            self.progress = ProgressLine(len(slides), theme.colors.primary)
            screen.add_overlay(self.progress)

        width = min(50, max(12, screen.width // 2))
        height = min(12, max(6, screen.height - 2))
        self.notes_window = Window(
            screen,
            top=max(0, screen.height - height - 1),
            left=max(0, screen.width - width - 1),
            width=width,
            height=height,
            label=" NOTES ",
            border_color=theme.colors.accent,
            theme=theme,
        )
        if show_notes:
            self.toggle_notes()

    def show(self, index: int) -> None:
        """Reveal slide ``index``; notes and progress follow before the transition runs."""
        self.close_list()
        self.current = index
        if self.progress is not None:
            self.progress.current = index
        inner_width = self.notes_window.inner_box()[2]
        self.notes_window.set_content(notes_content(self.slides, index, inner_width))
        self.renderer.render_slide(self.slides[index])

    def toggle_notes(self) -> None:
        self.notes_visible = not self.notes_visible
        if self.notes_visible:
            self.renderer.screen.add_overlay(self.notes_window)
        else:
            self.renderer.screen.remove(self.notes_window)
        logger.debug("Notes %s", "shown" if self.notes_visible else "hidden")

    def open_list(self) -> None:
        if self.list_window is not None:
            return
        screen = self.renderer.screen
        width = min(50, screen.width)
        height = min(len(self.slides) + 4, 20, screen.height)
        window = Window(
            screen,
            top=max(0, (screen.height - height) // 2),
            left=max(0, (screen.width - width) // 2),
            width=width,
            height=height,
            label=" SLIDES (press number or Esc) ",
            border_color=LIST_BORDER,
            theme=self.renderer.theme,
        )
        window.set_content(slide_list_content(self.slides, self.current))
        screen.add_overlay(window)
        self.list_window = window

    def close_list(self) -> None:
        if self.list_window is not None:
            self.list_window.destroy()
            self.list_window = None

    def jump_target(self, key: str) -> Optional[int]:
        index = int(key)
        if 0 <= index < len(self.slides):
            return index
        logger.debug("Ignoring jump to slide %d of %d", index, len(self.slides))
        return None

    def handle_key(self, key: str) -> Optional[int]:
        """Return the slide to show next, :data:`QUIT`, or ``None`` to stay."""
        if key == "\x03":
            return QUIT
        if self.list_window is not None:
            if key in JUMP_KEYS:
                self.close_list()
                return self.jump_target(key)
            if key in LIST_CLOSE_KEYS:
                self.close_list()
                self.renderer.redraw()
            return None
        if key in QUIT_KEYS:
            return QUIT
        if key in NEXT_KEYS:
            return self.current + 1
        if key in PREV_KEYS:
            return max(0, self.current - 1)
        if key in JUMP_KEYS:
            return self.jump_target(key)
        if key == LIST_KEY:
            self.open_list()
            self.renderer.redraw()
        elif key == NOTES_KEY:
            self.toggle_notes()
            self.renderer.redraw()
        return None

    def wait(self, read_key: KeySource, auto_advance: Optional[float]) -> int:
        """Poll keys while the background animates; return the next target or :data:`QUIT`."""
        waited = 0.0
        while True:
            key = read_key(0.0)
            if key is not None:
                target = self.handle_key(key)
                if target is not None:
                    return target
            if auto_advance is not None and waited >= auto_advance * 1000:
                return self.current + 1
            self.renderer.scheduler.advance(POLL_MS)
            waited += POLL_MS


def present(
    slides: Sequence[Slide],
    theme: Theme,
    read_key: KeySource,
    *,
    auto_advance: Optional[float] = None,
    show_notes: bool = False,
    show_progress: bool = True,
    output: TextIO = sys.stdout,
    scheduler: Optional[Scheduler] = None,
    size: Optional[tuple[int, int]] = None,
) -> int:
    """Show ``slides`` until the last one is passed or the user quits.

    Returns the index of the slide on screen when the loop ended.
    """
    width, height = size or tuple(shutil.get_terminal_size((120, 40)))
    scheduler = scheduler or Scheduler(realtime=True)
    renderer = Renderer(theme, width=width, height=height, output=output, scheduler=scheduler)
    try:
        presenter = Presenter(slides, renderer, show_notes=show_notes, show_progress=show_progress)
        target = 0
        while 0 <= target < len(slides):
            try:
                presenter.show(target)
                target = presenter.wait(read_key, auto_advance)
            except ScreenDestroyedError:
                logger.debug("Screen torn down during slide %d", presenter.current)
                break
        return presenter.current
    finally:
        renderer.destroy()
