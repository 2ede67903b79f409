"""Load a slides directory: markdown files with YAML frontmatter plus an optional theme."""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from logging_utils import get_logger

from .errors import DeckLoadError, ValidationError
from .models import Slide, SlideFrontmatter, normalize_big_text
from .theme import DEFAULT_THEME, Theme, create_theme
from .transitions import Transition

logger = get_logger(__name__)

NOTES_MARKER = "<!-- notes -->"
NOTES_END_MARKER = "<!-- /notes -->"
THEME_FILES = ("theme.yml", "theme.yaml")

_FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


@dataclass(frozen=True)
class Deck:
    slides: Tuple[Slide, ...]
    theme: Theme
    base_path: Path


def _natural_key(name: str) -> List[Any]:
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def find_slide_files(slides_dir: Path) -> List[Path]:
    """Markdown files sorted numerically (01-intro.md, 02-..., 10-...)."""
    files = [
        path
        for path in slides_dir.glob("*.md")
        if path.is_file() and path.name != "README.md" and not path.name.startswith("_")
    ]
    return sorted(files, key=lambda p: _natural_key(p.name))


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    match = _FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        raise ValueError("frontmatter must be a YAML mapping")
    return data, text[match.end():]


def extract_notes(content: str) -> Tuple[str, Optional[str]]:
    """Split presenter notes (after ``<!-- notes -->``) from the body."""
    start = content.find(NOTES_MARKER)
    if start == -1:
        return content, None
    body = content[:start].strip()
    end = content.find(NOTES_END_MARKER, start)
    if end != -1:
        notes = content[start + len(NOTES_MARKER):end].strip()
    else:
        notes = content[start + len(NOTES_MARKER):].strip()
    return body, notes or None


def parse_slide(path: Path, index: int) -> Slide:
    context = f"frontmatter in {path}"
    try:
        data, raw_body = split_frontmatter(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, ValueError) as exc:
        raise ValidationError("", str(exc), context=context) from exc

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title", "Slide title is required", context=context)
    theme_override = data.get("theme")
    if theme_override is not None and not isinstance(theme_override, dict):
        raise ValidationError("theme", "must be an object", context=context)

    body, notes = extract_notes(raw_body)
    frontmatter = SlideFrontmatter(
        title=title.strip(),
        big_text=normalize_big_text(data.get("bigText")),
        gradient=data.get("gradient"),
        theme_override=theme_override,
        transition=Transition.parse(data.get("transition", "glitch")),
        meta=data.get("meta"),
    )
    return Slide(frontmatter=frontmatter, body=body.strip(), index=index, notes=notes, source_path=path)


def load_deck_theme(slides_dir: Path) -> Theme:
    """``theme.yml`` extends the default theme unless it sets ``extends: false``."""
    for name in THEME_FILES:
        path = slides_dir / name
        if not path.exists():
            continue
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ValidationError("", f"YAML syntax error: {exc}", context=f"theme from {path}") from exc
        if not isinstance(raw, dict):
            raise ValidationError("", "theme file must contain a mapping", context=f"theme from {path}")
        extends = raw.pop("extends", True)
        logger.info("Loading theme from %s", path)
        if extends is False:
            return create_theme(raw, context=f"theme from {path}")
        return DEFAULT_THEME.extend(raw)
    return DEFAULT_THEME


def load_deck(slides_dir: Path | str) -> Deck:
    base = Path(slides_dir).expanduser()
    if not base.is_dir():
        raise DeckLoadError(f"Slides directory not found: {base}", str(base))
    theme = load_deck_theme(base)
    slides = tuple(parse_slide(path, index) for index, path in enumerate(find_slide_files(base)))
    if not slides:
        raise DeckLoadError(f"No slides found in {base}", str(base))
    logger.info("Loaded %d slides from %s (theme: %s)", len(slides), base, theme.name)
    return Deck(slides=slides, theme=theme, base_path=base)
