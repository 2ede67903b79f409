from __future__ import annotations

from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

from .colors import hex_to_rgb

# Character cell in pixels (monospace).
CHAR_WIDTH = 10
CHAR_HEIGHT = 20
BACKGROUND = "#0a0a0a"
DEFAULT_COLOR = "#ffffff"

_FONT_CANDIDATES = (
    "DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "Menlo.ttc",
    "Consolas.ttf",
)


@lru_cache(maxsize=8)
def load_font(path: Optional[str], size: int) -> ImageFont.ImageFont:
    if path:
        font_path = Path(path).expanduser()
        if font_path.exists():
            return ImageFont.truetype(str(font_path), size=size)
    for candidate in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


class VirtualTerminal:
    """In-memory character + color grid that rasterizes to an image."""

    def __init__(self, width: int, height: int, *, font_path: Optional[str] = None) -> None:
        self.width = width
        self.height = height
        self.font_path = font_path
        self.buffer: List[List[str]] = []
        self.colors: List[List[str]] = []
        self.clear()

    def set_char(self, x: int, y: int, char: str, color: str = DEFAULT_COLOR) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.buffer[y][x] = char
            self.colors[y][x] = color

    def clear(self) -> None:
        self.buffer = [[" "] * self.width for _ in range(self.height)]
        self.colors = [[DEFAULT_COLOR] * self.width for _ in range(self.height)]

    def to_string(self) -> str:
        return "\n".join("".join(row) for row in self.buffer)

    def to_image(self) -> Image.Image:
        image = Image.new("RGB", (self.width * CHAR_WIDTH, self.height * CHAR_HEIGHT), hex_to_rgb(BACKGROUND))
        draw = ImageDraw.Draw(image)
        font = load_font(self.font_path, CHAR_HEIGHT - 4)
        for y, row in enumerate(self.buffer):
            for x, char in enumerate(row):
                if char == " ":
                    continue
                draw.text(
                    (x * CHAR_WIDTH, y * CHAR_HEIGHT + 2),
                    char,
                    fill=hex_to_rgb(self.colors[y][x]),
                    font=font,
                )
        return image

    def to_png(self) -> bytes:
        buf = BytesIO()
        self.to_image().save(buf, format="PNG")
        return buf.getvalue()
