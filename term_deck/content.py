"""Builds the final tagged content string a slide window reveals."""
from __future__ import annotations

from functools import lru_cache
from typing import Sequence

import pyfiglet

from logging_utils import get_logger

from .colors import apply_gradient, color_tokens_to_tags
from .models import Slide
from .theme import Theme

logger = get_logger(__name__)

DEFAULT_GRADIENT = "fire"
DEFAULT_FONT = "standard"


@lru_cache(maxsize=64)
def figlet_text(text: str, font: str = DEFAULT_FONT) -> str:
    rendered = pyfiglet.figlet_format(text, font=font)
    # figlet pads with trailing blank rows
    return rendered.rstrip()


def generate_big_text(lines: Sequence[str], gradient_name: str, theme: Theme, font: str = DEFAULT_FONT) -> str:
    """ASCII-art each line and color it with the named gradient.

    An unknown gradient falls back to ``fire``; if the theme lacks that too,
    the art is left unstyled.
    """
    if gradient_name not in theme.gradients and DEFAULT_GRADIENT in theme.gradients:
        logger.warning("Gradient '%s' not in theme '%s'; using '%s'", gradient_name, theme.name, DEFAULT_GRADIENT)
        gradient_name = DEFAULT_GRADIENT
    return "\n".join(apply_gradient(figlet_text(line, font), gradient_name, theme) for line in lines)


def build_slide_content(slide: Slide, theme: Theme) -> str:
    fm = slide.frontmatter
    content = ""
    if fm.big_text:
        content += generate_big_text(fm.big_text, fm.gradient or DEFAULT_GRADIENT, theme) + "\n\n"
    content += color_tokens_to_tags(slide.body, theme)
    return content
