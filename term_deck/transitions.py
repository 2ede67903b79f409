"""Reveal animations for slide content.

Every transition is a generator: it draws through :func:`render_content` and
``yield``s the number of milliseconds to suspend before the next draw. Run it
with :class:`~term_deck.scheduler.Scheduler`. Whatever the intermediate
frames look like, the window ends up holding exactly the content it was given.
"""
from __future__ import annotations

import random
from enum import Enum
from typing import Callable, Dict, List, Optional

from logging_utils import get_logger

from .scheduler import Animation
from .screen import Screen, Window, render_content
from .theme import Theme

logger = get_logger(__name__)

# Cyberpunk scramble glyphs. None of them is in PROTECTED_CHARS.
GLITCH_CHARS = (
    "█▓▒░▀▄▌▐■□▪▫●○◊◘◙♦♣♠♥★☆⌂ⁿ²³ÆØ∞≈≠±×÷αβγδεζηθλμπσφωΔΣΩ"
    "ｱｲｳｴｵｶｷｸｹｺｻｼｽｾｿﾀﾁﾂﾃﾄﾅﾆﾇﾈﾉﾊﾋﾌﾍﾎﾏﾐﾑﾒﾓﾔﾕﾖﾗﾘﾙﾚﾛﾜﾝ"
)

# Never scrambled: whitespace, punctuation, box drawing and arrows keep layout readable.
PROTECTED_CHARS = frozenset(
    " \t\n{}-/#[]():;,.!?'\"`_|\\<>=+*&^%$@~"
    "┌┐└┘│─├┤┬┴┼═║╔╗╚╝╠╣╦╩╬╭╮╯╰"
    "→←↑↓▶◀▲▼►◄"
)

GLITCH_FRAME_DELAY_MS = 20.0
FADE_STEPS = 10


class Transition(Enum):
    INSTANT = "instant"
    GLITCH = "glitch"
    FADE = "fade"
    TYPEWRITER = "typewriter"

    @classmethod
    def parse(cls, name: Optional[str]) -> "Transition":
        """Convert an untrusted name; anything unrecognised becomes INSTANT."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            logger.debug("Unknown transition %r, falling back to instant", name)
            return cls.INSTANT


def scramble(line: str, ratio: float, rng: random.Random) -> str:
    out: List[str] = []
    for char in line:
        if char in PROTECTED_CHARS:
            out.append(char)
        elif rng.random() < ratio:
            out.append(GLITCH_CHARS[rng.randrange(len(GLITCH_CHARS))])
        else:
            out.append(char)
    return "".join(out)


def glitch_line(
    window: Window,
    screen: Screen,
    current_lines: List[str],
    new_line: str,
    iterations: int = 5,
    rng: Optional[random.Random] = None,
) -> Animation:
    """Glitch one line from fully scrambled (pass ``iterations``) to clean (pass 0)."""
    rng = rng or random.Random()
    for i in range(iterations, -1, -1):
        ratio = i / iterations if iterations > 0 else 0.0
        scrambled = scramble(new_line, ratio, rng)
        render_content(window, screen, "\n".join(current_lines + [scrambled]))
        yield GLITCH_FRAME_DELAY_MS


def line_by_line_reveal(
    window: Window,
    screen: Screen,
    content: str,
    theme: Theme,
    rng: Optional[random.Random] = None,
) -> Animation:
    rng = rng or random.Random()
    line_delay = theme.animations.line_delay
    iterations = theme.animations.glitch_iterations
    revealed: List[str] = []

    for line in content.split("\n"):
        yield from glitch_line(window, screen, revealed, line, iterations, rng)
        revealed.append(line)
        render_content(window, screen, "\n".join(revealed))
        if line.strip():
            yield line_delay


def fade_in_reveal(
    window: Window,
    screen: Screen,
    content: str,
    theme: Theme,
    rng: Optional[random.Random] = None,
) -> Animation:
    rng = rng or random.Random()
    delay = (theme.animations.line_delay * 2) / FADE_STEPS

    for step in range(FADE_STEPS):
        reveal_ratio = step / FADE_STEPS
        revealed = "".join(
            char if char == "\n" or char in PROTECTED_CHARS or rng.random() < reveal_ratio else " "
            for char in content
        )
        render_content(window, screen, revealed)
        yield delay

    render_content(window, screen, content)


def typewriter_reveal(
    window: Window,
    screen: Screen,
    content: str,
    theme: Theme,
    rng: Optional[random.Random] = None,
) -> Animation:
    char_delay = theme.animations.line_delay / 5
    revealed = ""

    for char in content:
        revealed += char
        render_content(window, screen, revealed)
        if not char.isspace():
            yield char_delay


def instant_reveal(
    window: Window,
    screen: Screen,
    content: str,
    theme: Optional[Theme] = None,
    rng: Optional[random.Random] = None,
) -> Animation:
    render_content(window, screen, content)
    yield from ()


_DISPATCH: Dict[Transition, Callable[..., Animation]] = {
    Transition.INSTANT: instant_reveal,
    Transition.GLITCH: line_by_line_reveal,
    Transition.FADE: fade_in_reveal,
    Transition.TYPEWRITER: typewriter_reveal,
}


def apply_transition(
    window: Window,
    screen: Screen,
    content: str,
    transition: Transition,
    theme: Theme,
    rng: Optional[random.Random] = None,
) -> Animation:
    """Reveal ``content`` in ``window`` with the given transition."""
    reveal = _DISPATCH[transition]
    return reveal(window, screen, content, theme, rng)
