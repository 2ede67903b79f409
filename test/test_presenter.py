from __future__ import annotations

import io
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from term_deck.models import Slide, SlideFrontmatter
from term_deck.presenter import POLL_MS, QUIT, Presenter, present
from term_deck.renderer import Renderer
from term_deck.scheduler import Scheduler
from term_deck.theme import DEFAULT_THEME
from term_deck.transitions import Transition

THEME = DEFAULT_THEME.extend({"animations": {"matrixDensity": 10}})


def _slides(count: int, notes: dict | None = None) -> list[Slide]:
    notes = notes or {}
    return [
        Slide(
            frontmatter=SlideFrontmatter(title=f"S{idx}", transition=Transition.INSTANT),
            body=f"body {idx}",
            index=idx,
            notes=notes.get(idx),
        )
        for idx in range(count)
    ]


def _keys(*keys):
    queue = list(keys)

    def read_key(timeout: float):
        return queue.pop(0) if queue else None

    return read_key


def test_next_then_quit() -> None:
    out = io.StringIO()
    scheduler = Scheduler()
    shown = present(_slides(3), THEME, _keys(None, "n", None, "q"), output=out, scheduler=scheduler, size=(30, 12))
    assert shown == 1
    assert scheduler.now == 2 * POLL_MS
    assert "\x1b[?1049l" in out.getvalue()
    assert scheduler.pending() == 0


def test_previous_stops_at_first_slide() -> None:
    shown = present(_slides(2), THEME, _keys("p", "q"), output=io.StringIO(), scheduler=Scheduler(), size=(30, 12))
    assert shown == 0


def test_auto_advance_runs_to_the_end() -> None:
    scheduler = Scheduler()
    shown = present(
        _slides(3), THEME, _keys(), auto_advance=0.1, output=io.StringIO(), scheduler=scheduler, size=(30, 12)
    )
    assert shown == 2
    assert scheduler.now == 3 * 100


def _presenter(slides: list[Slide], **kwargs) -> Presenter:
    renderer = Renderer(THEME, width=120, height=40, rng=random.Random(4))
    return Presenter(slides, renderer, **kwargs)


def test_number_keys_jump_to_slide() -> None:
    shown = present(_slides(4), THEME, _keys("2", "q"), output=io.StringIO(), scheduler=Scheduler(), size=(30, 12))
    assert shown == 2


def test_out_of_range_number_is_ignored() -> None:
    shown = present(_slides(3), THEME, _keys("9", "q"), output=io.StringIO(), scheduler=Scheduler(), size=(30, 12))
    assert shown == 0


def test_progress_line_tracks_position() -> None:
    presenter = _presenter(_slides(3))
    presenter.show(1)
    bottom = presenter.renderer.screen.text().splitlines()[-1]
    assert bottom.endswith(" 2/3 ")
    assert bottom.startswith("━" * 10)
    presenter.renderer.destroy()


def test_progress_line_can_be_disabled() -> None:
    presenter = _presenter(_slides(3), show_progress=False)
    presenter.show(0)
    assert " 1/3 " not in presenter.renderer.screen.text()
    presenter.renderer.destroy()


def test_notes_toggle_shows_current_slide_notes() -> None:
    presenter = _presenter(_slides(2, notes={0: "Mention the demo"}))
    presenter.show(0)
    assert "Mention the demo" not in presenter.renderer.screen.text()

    assert presenter.handle_key("N") is None
    text = presenter.renderer.screen.text()
    assert presenter.notes_visible
    assert "Slide 1 of 2" in text
    assert "Mention the demo" in text
    assert 'NEXT: "S1"' in text

    presenter.show(1)
    text = presenter.renderer.screen.text()
    assert "No notes for this slide" in text
    assert "Last slide" in text

    presenter.handle_key("N")
    assert "No notes for this slide" not in presenter.renderer.screen.text()
    presenter.renderer.destroy()


def test_notes_can_start_visible() -> None:
    presenter = _presenter(_slides(1, notes={0: "Opening line"}), show_notes=True)
    presenter.show(0)
    assert "Opening line" in presenter.renderer.screen.text()
    presenter.renderer.destroy()


def test_slide_list_marks_current_and_jumps() -> None:
    presenter = _presenter(_slides(3))
    presenter.show(1)
    assert presenter.handle_key("l") is None
    text = presenter.renderer.screen.text()
    assert "SLIDES (press number or Esc)" in text
    assert "▶ 1: S1" in text
    assert "  0: S0" in text

    assert presenter.handle_key("q") is None
    assert presenter.list_window is None
    assert "SLIDES" not in presenter.renderer.screen.text()

    presenter.handle_key("l")
    assert presenter.handle_key("2") == 2
    assert presenter.list_window is None
    assert presenter.handle_key("q") == QUIT
    presenter.renderer.destroy()
