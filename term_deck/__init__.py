"""
Terminal slide decks.

Renders slides as animated terminal presentations (matrix-rain background,
glitch/fade/typewriter reveals) and exports them as MP4/GIF via ffmpeg or as
asciicast recordings.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_THEME",
    "Renderer",
    "Theme",
    "create_theme",
    "export_presentation",
    "load_deck",
    "record_ansi",
]

from .theme import DEFAULT_THEME, Theme, create_theme
from .renderer import Renderer
from .deck_loader import load_deck
from .exporter import export_presentation, record_ansi
