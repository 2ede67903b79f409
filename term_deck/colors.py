from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from logging_utils import get_logger

from .errors import ThemeError
from .theme import Theme

logger = get_logger(__name__)

# Fixed colors that don't change with the theme.
BUILTIN_COLORS = {
    "GREEN": "#00cc66",
    "ORANGE": "#ff6600",
    "CYAN": "#00ccff",
    "PINK": "#ff0066",
    "WHITE": "#ffffff",
    "GRAY": "#666666",
}

HEX_ATTR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

THEME_TOKENS = ("PRIMARY", "SECONDARY", "ACCENT", "MUTED", "TEXT", "BACKGROUND")

COLOR_TOKEN_PATTERN = re.compile(
    r"\{(GREEN|ORANGE|CYAN|PINK|WHITE|GRAY|PRIMARY|SECONDARY|ACCENT|MUTED|TEXT|BACKGROUND|/)\}"
)

_STANDARD_16 = (
    "#000000", "#800000", "#008000", "#808000",
    "#000080", "#800080", "#008080", "#c0c0c0",
    "#808080", "#ff0000", "#00ff00", "#ffff00",
    "#0000ff", "#ff00ff", "#00ffff", "#ffffff",
)


def hex_to_rgb(value: str | None, fallback: Tuple[int, int, int] = (255, 255, 255)) -> Tuple[int, int, int]:
    if not value:
        return fallback
    text = value.strip().lstrip("#")
    if len(text) not in (3, 6, 8):
        return fallback
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) == 8:
        text = text[:6]
    try:
        r = int(text[0:2], 16)
        g = int(text[2:4], 16)
        b = int(text[4:6], 16)
        return (r, g, b)
    except ValueError:
        return fallback


def rgb_to_hex(rgb: Sequence[float]) -> str:
    r, g, b = (max(0, min(255, int(round(c)))) for c in rgb[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def blend(foreground: str, background: str, alpha: float) -> str:
    """Mix ``foreground`` over ``background`` at opacity ``alpha``."""
    alpha = max(0.0, min(1.0, alpha))
    fg = np.array(hex_to_rgb(foreground), dtype=float)
    bg = np.array(hex_to_rgb(background, (0, 0, 0)), dtype=float)
    return rgb_to_hex(bg + (fg - bg) * alpha)


def resolve_color_token(token: str, theme: Theme) -> str:
    """Map a semantic or built-in color token to a hex value.

    Unknown tokens fall back to the theme's text color.
    """
    colors = theme.colors
    if token == "PRIMARY":
        return colors.primary
    if token == "SECONDARY":
        return colors.secondary or colors.primary
    if token == "ACCENT":
        return colors.accent
    if token == "MUTED":
        return colors.muted
    if token == "TEXT":
        return colors.text
    if token == "BACKGROUND":
        return colors.background
    return BUILTIN_COLORS.get(token, colors.text)


def color_tokens_to_tags(content: str, theme: Theme) -> str:
    """Rewrite ``{GREEN}text{/}`` tokens into ``{#00cc66-fg}text{/}`` markup."""

    def _replace(match: re.Match) -> str:
        token = match.group(1)
        if token == "/":
            return "{/}"
        return "{" + resolve_color_token(token, theme) + "-fg}"

    return COLOR_TOKEN_PATTERN.sub(_replace, content)


def gradient_stops(colors: Sequence[str], count: int) -> List[str]:
    """Interpolate ``count`` evenly spaced colors along a gradient."""
    if count <= 0:
        return []
    if len(colors) < 2:
        raise ThemeError("Gradient must have at least 2 colors")
    anchors = np.array([hex_to_rgb(c) for c in colors], dtype=float)
    if count == 1:
        return [rgb_to_hex(anchors[0])]
    positions = np.linspace(0.0, 1.0, num=len(colors))
    samples = np.linspace(0.0, 1.0, num=count)
    channels = [np.interp(samples, positions, anchors[:, idx]) for idx in range(3)]
    return [rgb_to_hex((channels[0][i], channels[1][i], channels[2][i])) for i in range(count)]


def gradient_text(text: str, colors: Sequence[str]) -> str:
    """Color each line of ``text`` left-to-right along ``colors`` using inline tags."""
    lines = text.split("\n")
    width = max((len(line) for line in lines), default=0)
    stops = gradient_stops(colors, width)
    out: List[str] = []
    for line in lines:
        parts: List[str] = []
        for idx, char in enumerate(line):
            if char == " ":
                parts.append(char)
            else:
                parts.append("{" + stops[idx] + "-fg}" + char + "{/}")
        out.append("".join(parts))
    return "\n".join(out)


def resolve_gradient(name: str, theme: Theme) -> Sequence[str]:
    colors = theme.gradients.get(name)
    if not colors:
        raise ThemeError(f"Unknown gradient '{name}'", theme_name=theme.name)
    return colors


def apply_gradient(text: str, gradient_name: str, theme: Theme) -> str:
    """Apply a named gradient; an unknown gradient yields unstyled text."""
    try:
        colors = resolve_gradient(gradient_name, theme)
        return gradient_text(text, colors)
    except ThemeError as exc:
        logger.warning("%s; rendering unstyled text", exc)
        return text


# ---------------------------------------------------------------------------
# Terminal palette


def ansi256_to_hex(code: int) -> str:
    """Expand a 256-color palette index to hex."""
    if code < 16:
        return _STANDARD_16[code]
    if code < 232:
        n = code - 16
        r = (n // 36) * 51
        g = ((n % 36) // 6) * 51
        b = (n % 6) * 51
        return f"#{r:02x}{g:02x}{b:02x}"
    gray = (code - 232) * 10 + 8
    return f"#{gray:02x}{gray:02x}{gray:02x}"


def hex_to_ansi256(value: str) -> str:
    """Return the foreground escape for the nearest 6x6x6 cube color."""
    r, g, b = hex_to_rgb(value)
    code = 16 + round(r / 51) * 36 + round(g / 51) * 6 + round(b / 51)
    return f"\x1b[38;5;{code}m"


def extract_color(attr: Any) -> Optional[str]:
    """Decode a cell's foreground attribute to hex, or ``None`` if undecodable."""
    if attr is None or isinstance(attr, bool):
        return None
    if isinstance(attr, str):
        if HEX_ATTR_PATTERN.match(attr):
            return attr
        return None
    if isinstance(attr, int):
        if 0 <= attr <= 255:
            return ansi256_to_hex(attr)
        return None
    fg = getattr(attr, "fg", None)
    if fg is not None and fg is not attr:
        return extract_color(fg)
    return None
