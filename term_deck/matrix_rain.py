"""Matrix rain background.

Drops fall on their own periodic timer, independent of slides and
transitions. Each tick repaints the screen's background layer; windows are
opaque so the rain only shows around them.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from logging_utils import get_logger

from .colors import blend
from .scheduler import Scheduler, Timer
from .screen import Cell, Screen
from .theme import Theme

logger = get_logger(__name__)

# Screen units covered by one glyph (columns, rows). One character cell on a terminal grid.
GLYPH_CELL: Tuple[int, int] = (1, 1)

TRAIL_MIN = 5
TRAIL_MAX = 14


@dataclass
class MatrixDrop:
    column: int
    row: float
    speed: float
    trail: List[str]


@dataclass
class MatrixRainState:
    theme: Theme
    rng: random.Random = field(default_factory=random.Random)
    drops: List[MatrixDrop] = field(default_factory=list)
    timer: Optional[Timer] = None
    columns: int = 0
    rows: int = 0
    ticks: int = 0

    @property
    def running(self) -> bool:
        return self.timer is not None


def generate_trail(glyphs: str, length: int, rng: random.Random) -> List[str]:
    return [glyphs[rng.randrange(len(glyphs))] for _ in range(length)]


def _grid_size(screen: Screen) -> Tuple[int, int]:
    cell_w, cell_h = GLYPH_CELL
    return math.ceil(screen.width / cell_w), math.ceil(screen.height / cell_h)


def _new_trail(state: MatrixRainState) -> List[str]:
    length = state.rng.randint(TRAIL_MIN, TRAIL_MAX)
    return generate_trail(state.theme.glyphs, length, state.rng)


def seed_drops(screen: Screen, state: MatrixRainState) -> None:
    state.columns, state.rows = _grid_size(screen)
    rng = state.rng
    state.drops = [
        MatrixDrop(
            column=rng.randrange(state.columns),
            row=float(rng.randrange(state.rows)),
            speed=0.3 + rng.random() * 0.7,
            trail=_new_trail(state),
        )
        for _ in range(state.theme.animations.matrix_density)
    ]


def advance_drops(state: MatrixRainState) -> None:
    for drop in state.drops:
        drop.row += drop.speed
        if drop.row > state.rows + len(drop.trail):
            drop.trail = _new_trail(state)
            drop.row = float(-len(drop.trail))
            drop.column = state.rng.randrange(state.columns)


def paint_drops(state: MatrixRainState) -> List[List[Cell]]:
    """Rasterize the drops: bright head, fading tail, a little flicker."""
    colors = state.theme.colors
    blank = Cell()
    grid = [[blank] * state.columns for _ in range(state.rows)]
    for drop in state.drops:
        length = len(drop.trail)
        head = math.floor(drop.row)
        for idx, glyph in enumerate(drop.trail):
            y = head - idx
            if not (0 <= y < state.rows and 0 <= drop.column < state.columns):
                continue
            opacity = 1.0 - idx / length
            if idx == 0:
                brightness = 1.0
            else:
                brightness = 0.8 if state.rng.random() > 0.7 else 0.5
            color = blend(colors.primary, colors.background, opacity * brightness)
            grid[y][drop.column] = Cell(glyph, color, idx == 0)
    return grid


def render_matrix_rain(screen: Screen, state: MatrixRainState) -> None:
    """One animation frame: move the drops and repaint the background layer."""
    advance_drops(state)
    screen.set_background(paint_drops(state))
    state.ticks += 1


def init_matrix_rain(screen: Screen, state: MatrixRainState, scheduler: Scheduler) -> None:
    """Seed the drops and start the periodic tick."""
    stop_matrix_rain(state)
    seed_drops(screen, state)
    screen.set_background(paint_drops(state))

    def _tick() -> None:
        if screen.destroyed:
            stop_matrix_rain(state)
            return
        render_matrix_rain(screen, state)
        screen.render()

    state.timer = scheduler.call_every(state.theme.animations.matrix_interval, _tick, name="matrix-rain")
    logger.debug(
        "Matrix rain started: %d drops on %dx%d every %.0fms",
        len(state.drops),
        state.columns,
        state.rows,
        state.theme.animations.matrix_interval,
    )


def stop_matrix_rain(state: MatrixRainState) -> None:
    """Cancel the tick. Safe to call any number of times."""
    if state.timer is not None:
        state.timer.cancel()
        state.timer = None
