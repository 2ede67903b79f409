from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from types import SimpleNamespace

from term_deck.colors import (
    ansi256_to_hex,
    apply_gradient,
    blend,
    color_tokens_to_tags,
    extract_color,
    gradient_stops,
    gradient_text,
    hex_to_ansi256,
    resolve_color_token,
)
from term_deck.theme import DEFAULT_THEME


def test_semantic_and_builtin_tokens() -> None:
    assert resolve_color_token("PRIMARY", DEFAULT_THEME) == "#00cc66"
    assert resolve_color_token("ACCENT", DEFAULT_THEME) == "#ff6600"
    assert resolve_color_token("MUTED", DEFAULT_THEME) == "#666666"
    # no secondary in the default theme
    assert resolve_color_token("SECONDARY", DEFAULT_THEME) == "#00cc66"
    assert resolve_color_token("CYAN", DEFAULT_THEME) == "#00ccff"
    assert resolve_color_token("NOPE", DEFAULT_THEME) == DEFAULT_THEME.colors.text


def test_builtin_palette_ignores_theme() -> None:
    red = DEFAULT_THEME.extend({"colors": {"primary": "#ff0000"}})
    assert resolve_color_token("GREEN", red) == "#00cc66"
    assert resolve_color_token("PRIMARY", red) == "#ff0000"


def test_color_tokens_to_tags() -> None:
    text = "{GREEN}ok{/} and {PRIMARY}go{/} {UNKNOWN}"
    assert color_tokens_to_tags(text, DEFAULT_THEME) == "{#00cc66-fg}ok{/} and {#00cc66-fg}go{/} {UNKNOWN}"


def test_gradient_stops_interpolate() -> None:
    assert gradient_stops(["#000000", "#ffffff"], 3) == ["#000000", "#808080", "#ffffff"]
    assert gradient_stops(["#000000", "#ffffff"], 0) == []


def test_gradient_text_keeps_spaces_plain() -> None:
    tagged = gradient_text("a b", ["#000000", "#ffffff"])
    assert tagged == "{#000000-fg}a{/} {#ffffff-fg}b{/}"


def test_unknown_gradient_leaves_text_unstyled() -> None:
    assert apply_gradient("HELLO", "nope", DEFAULT_THEME) == "HELLO"


def test_palette_expansion() -> None:
    assert ansi256_to_hex(0) == "#000000"
    assert ansi256_to_hex(15) == "#ffffff"
    assert ansi256_to_hex(21) == "#0000ff"
    assert ansi256_to_hex(196) == "#ff0000"
    assert ansi256_to_hex(232) == "#080808"
    assert ansi256_to_hex(255) == "#eeeeee"


def test_extract_color() -> None:
    assert extract_color("#AbCdEf") == "#AbCdEf"
    assert extract_color(9) == "#ff0000"
    assert extract_color(SimpleNamespace(fg=196)) == "#ff0000"
    assert extract_color(None) is None
    assert extract_color("red") is None
    assert extract_color(300) is None


def test_hex_to_ansi256_escape() -> None:
    assert hex_to_ansi256("#ff0000") == "\x1b[38;5;196m"


def test_blend() -> None:
    assert blend("#ffffff", "#000000", 1.0) == "#ffffff"
    assert blend("#ffffff", "#000000", 0.0) == "#000000"
