"""Theme schema, validation and Tailwind-style extension.

A theme arrives either as YAML text or as an already-parsed mapping. It is
validated once into an immutable :class:`Theme`; :meth:`Theme.extend` merges
overrides onto the validated values and validates the result again, so an
extended theme is always as trustworthy as a freshly loaded one.

Merge rules (``deep_merge``):

- mapping onto mapping: recurse key by key
- list onto anything: the override list replaces the base wholesale
- anything else: the override value wins
"""
from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from logging_utils import get_logger

from .errors import ValidationError

logger = get_logger(__name__)

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")
BORDER_STYLES = ("line", "double", "rounded", "none")


@dataclass(frozen=True)
class ThemeColors:
    primary: str
    accent: str
    background: str
    text: str
    muted: str
    secondary: Optional[str] = None
    success: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AnimationSettings:
    reveal_speed: float = 1.0
    matrix_density: int = 50
    glitch_iterations: int = 5
    line_delay: float = 30.0
    matrix_interval: float = 80.0


@dataclass(frozen=True)
class WindowPadding:
    top: int = 1
    bottom: int = 1
    left: int = 2
    right: int = 2


@dataclass(frozen=True)
class WindowStyle:
    border_style: str = "line"
    shadow: bool = True
    padding: WindowPadding = field(default_factory=WindowPadding)


@dataclass(frozen=True)
class Theme:
    name: str
    colors: ThemeColors
    gradients: Mapping[str, Tuple[str, ...]]
    glyphs: str
    animations: AnimationSettings = field(default_factory=AnimationSettings)
    window: WindowStyle = field(default_factory=WindowStyle)
    description: Optional[str] = None
    author: Optional[str] = None
    version: Optional[str] = None

    def extend(self, overrides: Mapping[str, Any]) -> "Theme":
        """Return a new theme with ``overrides`` deep-merged onto this one."""
        merged = deep_merge(self.to_dict(), overrides)
        return create_theme(merged, context="merged theme")

    def to_dict(self) -> Dict[str, Any]:
        """Return the theme in its source (YAML) shape."""
        colors = {
            key: getattr(self.colors, key)
            for key in ("primary", "secondary", "accent", "background", "text", "muted", "success", "warning", "error")
            if getattr(self.colors, key) is not None
        }
        payload: Dict[str, Any] = {
            "name": self.name,
            "colors": colors,
            "gradients": {name: list(stops) for name, stops in self.gradients.items()},
            "glyphs": self.glyphs,
            "animations": {
                "revealSpeed": self.animations.reveal_speed,
                "matrixDensity": self.animations.matrix_density,
                "glitchIterations": self.animations.glitch_iterations,
                "lineDelay": self.animations.line_delay,
                "matrixInterval": self.animations.matrix_interval,
            },
            "window": {
                "borderStyle": self.window.border_style,
                "shadow": self.window.shadow,
                "padding": {
                    "top": self.window.padding.top,
                    "bottom": self.window.padding.bottom,
                    "left": self.window.padding.left,
                    "right": self.window.padding.right,
                },
            },
        }
        for key in ("description", "author", "version"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Structurally merge ``overrides`` onto ``base`` without mutating either."""
    result: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = deep_merge(current, value)
        elif isinstance(value, (list, tuple)):
            result[key] = list(value)
        else:
            result[key] = copy.deepcopy(value)
    return result


# ---------------------------------------------------------------------------
# Validation


def _section(raw: Mapping[str, Any], key: str, *, required: bool, context: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        if required:
            raise ValidationError(key, "is required", context=context)
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(key, "must be an object", context=context)
    return value


def _hex(value: Any, path: str, context: str) -> str:
    if not isinstance(value, str) or not HEX_COLOR_PATTERN.match(value):
        raise ValidationError(path, "Color must be a valid hex color (e.g., #ff0066)", context=context)
    return value


def _number(
    section: Mapping[str, Any],
    key: str,
    path: str,
    default: float,
    *,
    minimum: float,
    maximum: float,
    integer: bool = False,
    context: str,
) -> Any:
    value = section.get(key, default)
    if value is None:
        value = default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(path, "must be a number", context=context)
    if integer:
        if isinstance(value, float) and not value.is_integer():
            raise ValidationError(path, "must be an integer", context=context)
        value = int(value)
    if value < minimum or value > maximum:
        raise ValidationError(path, f"must be between {minimum} and {maximum}", context=context)
    return value


def _validate(raw: Any, context: str) -> Theme:
    if not isinstance(raw, Mapping):
        raise ValidationError("", "theme must be an object", context=context)

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name", "Theme name is required", context=context)

    colors_raw = _section(raw, "colors", required=True, context=context)
    colors: Dict[str, Optional[str]] = {}
    for key in ("primary", "accent", "background", "text", "muted"):
        if key not in colors_raw:
            raise ValidationError(f"colors.{key}", "is required", context=context)
        colors[key] = _hex(colors_raw[key], f"colors.{key}", context)
    for key in ("secondary", "success", "warning", "error"):
        value = colors_raw.get(key)
        colors[key] = _hex(value, f"colors.{key}", context) if value is not None else None

    gradients_raw = _section(raw, "gradients", required=True, context=context)
    if not gradients_raw:
        raise ValidationError("gradients", "At least one gradient must be defined", context=context)
    gradients: Dict[str, Tuple[str, ...]] = {}
    for gradient_name, stops in gradients_raw.items():
        path = f"gradients.{gradient_name}"
        if not isinstance(stops, (list, tuple)):
            raise ValidationError(path, "must be an array of hex colors", context=context)
        if len(stops) < 2:
            raise ValidationError(path, "Gradient must have at least 2 colors", context=context)
        gradients[str(gradient_name)] = tuple(
            _hex(stop, f"{path}.{idx}", context) for idx, stop in enumerate(stops)
        )

    glyphs = raw.get("glyphs")
    if not isinstance(glyphs, str) or len(glyphs) < 10:
        raise ValidationError("glyphs", "Glyph set must have at least 10 characters", context=context)

    anim_raw = _section(raw, "animations", required=True, context=context)
    animations = AnimationSettings(
        reveal_speed=float(_number(anim_raw, "revealSpeed", "animations.revealSpeed", 1.0, minimum=0.1, maximum=5.0, context=context)),
        matrix_density=_number(anim_raw, "matrixDensity", "animations.matrixDensity", 50, minimum=10, maximum=200, integer=True, context=context),
        glitch_iterations=_number(anim_raw, "glitchIterations", "animations.glitchIterations", 5, minimum=1, maximum=20, integer=True, context=context),
        line_delay=float(_number(anim_raw, "lineDelay", "animations.lineDelay", 30, minimum=0, maximum=500, context=context)),
        matrix_interval=float(_number(anim_raw, "matrixInterval", "animations.matrixInterval", 80, minimum=20, maximum=200, context=context)),
    )

    window_raw = _section(raw, "window", required=False, context=context)
    border_style = window_raw.get("borderStyle", "line")
    if border_style not in BORDER_STYLES:
        raise ValidationError(
            "window.borderStyle", f"must be one of {', '.join(BORDER_STYLES)}", context=context
        )
    shadow = window_raw.get("shadow", True)
    if not isinstance(shadow, bool):
        raise ValidationError("window.shadow", "must be a boolean", context=context)
    padding_raw = _section(window_raw, "padding", required=False, context=context)
    padding = WindowPadding(
        top=_number(padding_raw, "top", "window.padding.top", 1, minimum=0, maximum=5, integer=True, context=context),
        bottom=_number(padding_raw, "bottom", "window.padding.bottom", 1, minimum=0, maximum=5, integer=True, context=context),
        left=_number(padding_raw, "left", "window.padding.left", 2, minimum=0, maximum=10, integer=True, context=context),
        right=_number(padding_raw, "right", "window.padding.right", 2, minimum=0, maximum=10, integer=True, context=context),
    )

    def _optional_str(key: str) -> Optional[str]:
        value = raw.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError(key, "must be a string", context=context)
        return value

    return Theme(
        name=name,
        colors=ThemeColors(**colors),  # type: ignore[arg-type]
        gradients=MappingProxyType(gradients),
        glyphs=glyphs,
        animations=animations,
        window=WindowStyle(border_style=border_style, shadow=shadow, padding=padding),
        description=_optional_str("description"),
        author=_optional_str("author"),
        version=_optional_str("version"),
    )


def create_theme(source: str | Mapping[str, Any], *, context: str = "theme") -> Theme:
    """Parse (when given YAML text) and validate a theme."""
    if isinstance(source, str):
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as exc:
            raise ValidationError("", f"YAML syntax error: {exc}", context=context) from exc
    else:
        data = source
    theme = _validate(data, context)
    logger.debug("Theme '%s' validated (%d gradients)", theme.name, len(theme.gradients))
    return theme


def extend_theme(base: Theme, overrides: Mapping[str, Any]) -> Theme:
    """Deep-merge ``overrides`` onto ``base`` (arrays replace) and re-validate."""
    return base.extend(overrides)


def load_theme_from_file(path: Path | str) -> Theme:
    theme_path = Path(path).expanduser()
    if not theme_path.exists():
        raise FileNotFoundError(f"Theme file not found: {theme_path}")
    return create_theme(theme_path.read_text(encoding="utf-8"), context=f"theme from {theme_path}")


DEFAULT_THEME = create_theme(
    {
        "name": "matrix",
        "description": "Default cyberpunk/matrix theme",
        "colors": {
            "primary": "#00cc66",
            "accent": "#ff6600",
            "background": "#0a0a0a",
            "text": "#ffffff",
            "muted": "#666666",
        },
        "gradients": {
            "fire": ["#ff6600", "#ff3300", "#ff0066"],
            "cool": ["#00ccff", "#0066ff", "#6600ff"],
            "pink": ["#ff0066", "#ff0099", "#cc00ff"],
            "hf": ["#99cc00", "#00cc66", "#00cccc"],
        },
        "glyphs": "ｱｲｳｴｵｶｷｸｹｺｻｼｽｾｿﾀﾁﾂﾃﾄﾅﾆﾇﾈﾉﾊﾋﾌﾍﾎﾏﾐﾑﾒﾓﾔﾕﾖﾗﾘﾙﾚﾛﾜﾝ0123456789",
        "animations": {
            "revealSpeed": 1.0,
            "matrixDensity": 50,
            "glitchIterations": 5,
            "lineDelay": 30,
            "matrixInterval": 80,
        },
        "window": {
            "borderStyle": "line",
            "shadow": True,
            "padding": {"top": 1, "bottom": 1, "left": 2, "right": 2},
        },
    }
)
