from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TextIO


def format_hms(seconds: float) -> str:
    if seconds < 0:
        seconds = 0
    seconds = int(round(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h > 0:
        return f"{h:02d}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


@dataclass
class ConsoleBar:
    """Frame-count progress bar drawn on one console line."""

    total: int
    label: str = "Export"
    width: int = 24
    stream: TextIO = sys.stderr
    enabled: bool = True

    def __post_init__(self) -> None:
        self.start_time = time.time()
        self.last_render = 0.0
        self.current = 0
        self._draw()

    def update(self, current: int, label: str | None = None) -> None:
        self.current = current
        if label is not None:
            self.label = label
        now = time.time()
        # Rate-limit updates to avoid flicker (10 fps max).
        if now - self.last_render < 0.1:
            return
        self.last_render = now
        self._draw()

    def finish(self, label: str | None = None) -> None:
        self.current = self.total
        if label is not None:
            self.label = label
        self._draw()
        if self.enabled:
            self.stream.write("\n")
            self.stream.flush()

    # ------------------------------------------------------------------
    def _draw(self) -> None:
        if not self.enabled:
            return
        total = max(self.total, 1)
        cur = min(max(self.current, 0), total)
        frac = cur / total
        filled = int(round(self.width * frac))
        bar = "█" * filled + "·" * (self.width - filled)
        elapsed = time.time() - self.start_time
        # Simple ETA estimate; guard for small frac
        eta = 0.0 if frac <= 0.0001 else elapsed * (1.0 / frac - 1.0)
        msg = (
            f"[{bar}] {int(frac*100):3d}% | "
            f"{cur}/{total} frames | "
            f"{format_hms(elapsed)} | ETA {format_hms(eta)} | {self.label}"
        )
        self.stream.write("\r" + msg)
        self.stream.flush()
