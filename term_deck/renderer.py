"""Renderer: owns one screen, its window stack, the matrix rain and the scheduler.

Several renderers can coexist; none of them touches global state.
"""
from __future__ import annotations

import random
from typing import Optional, TextIO

from logging_utils import get_logger

from .content import build_slide_content
from .matrix_rain import MatrixRainState, init_matrix_rain, stop_matrix_rain
from .models import Slide
from .scheduler import Animation, Scheduler
from .screen import Screen, Window, WindowOptions, WindowStack, clear_windows, create_window
from .theme import Theme, extend_theme
from .transitions import apply_transition

logger = get_logger(__name__)


class Renderer:
    def __init__(
        self,
        theme: Theme,
        *,
        width: int = 120,
        height: int = 40,
        output: Optional[TextIO] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.theme = theme
        self.rng = rng or random.Random()
        self.scheduler = scheduler or Scheduler()
        self.screen = Screen(width, height, output=output)
        self.window_stack = WindowStack()
        self.matrix_rain = MatrixRainState(theme=theme, rng=random.Random(self.rng.random()))
        init_matrix_rain(self.screen, self.matrix_rain, self.scheduler)

    @property
    def destroyed(self) -> bool:
        return self.screen.destroyed

    def reveal_slide(self, slide: Slide) -> Animation:
        """Animation that replaces the current slide's windows with ``slide``."""
        theme = self.theme
        if slide.frontmatter.theme_override:
            theme = extend_theme(theme, slide.frontmatter.theme_override)

        clear_windows(self.window_stack)
        window = create_window(
            self.screen,
            self.window_stack,
            theme,
            WindowOptions(title=slide.title),
            rng=self.rng,
        )
        content = build_slide_content(slide, theme)
        logger.debug(
            "Revealing slide %d '%s' with %s", slide.index, slide.title, slide.frontmatter.transition.value
        )
        yield from apply_transition(
            window, self.screen, content, slide.frontmatter.transition, theme, self.rng
        )
        return window

    def render_slide(self, slide: Slide) -> Window:
        """Reveal ``slide`` and drive the scheduler until the transition completes."""
        return self.scheduler.run_until_complete(self.reveal_slide(slide), name=f"slide-{slide.index}")

    def redraw(self) -> None:
        self.screen.render()

    def destroy(self) -> None:
        """Stop the rain, drop the windows and release the screen. Idempotent."""
        stop_matrix_rain(self.matrix_rain)
        if self.screen.destroyed:
            return
        clear_windows(self.window_stack)
        self.screen.destroy()
