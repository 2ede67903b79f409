"""Read the screen's current cells into a raster grid or ANSI text.

Both captures are pure reads of ``screen.lines``.
"""
from __future__ import annotations

from typing import List, Optional

from .colors import extract_color, hex_to_ansi256
from .screen import Screen
from .virtual_terminal import DEFAULT_COLOR, VirtualTerminal

CLEAR_AND_HOME = "\x1b[2J\x1b[H"
RESET = "\x1b[0m"


def capture_to_virtual_terminal(screen: Screen, vt: VirtualTerminal) -> None:
    """Copy every cell's character and decoded foreground color into ``vt``."""
    vt.clear()
    lines = screen.lines
    for y in range(min(len(lines), vt.height)):
        row = lines[y]
        for x in range(min(len(row), vt.width)):
            cell = row[x]
            color = extract_color(cell.fg) or DEFAULT_COLOR
            vt.set_char(x, y, cell.char or " ", color)


def capture_to_ansi_text(screen: Screen) -> str:
    """Render the screen as one clear-screen ANSI frame.

    A color escape is emitted only when the color changes; each colored row
    ends with a reset.
    """
    lines = screen.lines
    rows: List[str] = []
    for y in range(screen.height):
        if y >= len(lines):
            rows.append("")
            continue
        parts: List[str] = []
        last_color: Optional[str] = None
        for cell in lines[y]:
            color = extract_color(cell.fg)
            if color and color != last_color:
                parts.append(hex_to_ansi256(color))
                last_color = color
            parts.append(cell.char or " ")
        if last_color:
            parts.append(RESET)
        rows.append("".join(parts))
    return CLEAR_AND_HOME + "\n".join(rows)
