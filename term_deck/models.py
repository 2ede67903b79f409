from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from .transitions import Transition


@dataclass(frozen=True)
class SlideFrontmatter:
    title: str
    big_text: Tuple[str, ...] = field(default_factory=tuple)
    gradient: Optional[str] = None
    theme_override: Optional[Mapping[str, Any]] = None
    transition: Transition = Transition.GLITCH
    meta: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class Slide:
    frontmatter: SlideFrontmatter
    body: str
    index: int
    notes: Optional[str] = None
    source_path: Optional[Path] = None

    @property
    def title(self) -> str:
        return self.frontmatter.title


@dataclass(frozen=True)
class ExportOptions:
    output: Path
    width: int = 120
    height: int = 40
    fps: int = 30
    slide_time: float = 3.0
    quality: int = 80

    @property
    def frames_per_slide(self) -> int:
        return int(round(self.fps * self.slide_time))


@dataclass(frozen=True)
class RecordOptions:
    output: Path
    width: int = 120
    height: int = 40
    slide_time: float = 3.0


@dataclass(frozen=True)
class AsciicastFrame:
    elapsed: float
    stream: str
    text: str

    def to_json(self) -> list:
        """Event row; whole-second times are written as integers."""
        elapsed = int(self.elapsed) if float(self.elapsed).is_integer() else self.elapsed
        return [elapsed, self.stream, self.text]


def normalize_big_text(value: Any) -> Tuple[str, ...]:
    """Accept a string or a list of strings; drop empties."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if str(item).strip())
    return (str(value),)
