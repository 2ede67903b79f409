from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from term_deck.main import build_parser, main


@pytest.fixture(autouse=True)
def _reset_root_logger():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def deck_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    slides = tmp_path / "slides"
    slides.mkdir()
    for idx in range(2):
        (slides / f"0{idx}.md").write_text(
            f"---\ntitle: Slide {idx}\ntransition: instant\n---\nBody {idx}\n", encoding="utf-8"
        )
    (slides / "theme.yml").write_text("glyphs: '0123456789ABCDEF'\nanimations:\n  matrixDensity: 10\n", encoding="utf-8")
    return slides


def test_parser_accepts_export_flags() -> None:
    args = build_parser().parse_args(
        ["--config", "c.yaml", "export", "deck", "-o", "x.gif", "-w", "80", "--height", "24", "--fps", "10", "-t", "1.5", "-q", "60"]
    )
    assert args.command == "export"
    assert (args.width, args.height, args.fps, args.slide_time, args.quality) == (80, 24, 10, 1.5, 60)
    assert args.config == "c.yaml"


def test_parser_present_flags() -> None:
    args = build_parser().parse_args(["present", "deck", "--notes", "--no-progress", "--auto", "2"])
    assert (args.notes, args.progress, args.auto) == (True, False, 2.0)
    args = build_parser().parse_args(["present", "deck"])
    assert (args.notes, args.progress, args.auto) == (False, True, None)


def test_record_command_writes_cast(deck_dir: Path) -> None:
    output = deck_dir.parent / "deck.cast"
    assert main(["record", str(deck_dir), "-o", str(output), "-w", "40", "--height", "12", "-t", "2"]) == 0
    lines = output.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert json.loads(lines[0])["width"] == 40
    assert [json.loads(line)[0] for line in lines[1:]] == [0, 2]
    assert (deck_dir.parent / "logs" / "term-deck.log").exists()


def test_export_without_ffmpeg_exits_nonzero(
    deck_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("term_deck.ffmpeg.runner.shutil.which", lambda name: None)
    assert main(["export", str(deck_dir), "-o", "out.mp4"]) == 1
    assert "ffmpeg" in capsys.readouterr().err


def test_missing_deck_exits_nonzero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["record", str(tmp_path / "nope"), "-o", "x.cast"]) == 1
    assert "Slides directory not found" in capsys.readouterr().err
