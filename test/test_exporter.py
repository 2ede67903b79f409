from __future__ import annotations

import json
import random
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from term_deck import encoder, exporter
from term_deck.errors import DeckLoadError, EncoderUnavailable, EncodingFailure, UnsupportedOutputFormat
from term_deck.exporter import build_asciicast, export_presentation, record_ansi
from term_deck.models import AsciicastFrame, ExportOptions, RecordOptions, Slide, SlideFrontmatter
from term_deck.theme import DEFAULT_THEME
from term_deck.transitions import Transition

THEME = DEFAULT_THEME.extend(
    {"glyphs": "0123456789ABCDEF", "animations": {"matrixDensity": 10, "glitchIterations": 2, "lineDelay": 0}}
)


def _slides(count: int, transition: Transition = Transition.INSTANT) -> list[Slide]:
    return [
        Slide(
            frontmatter=SlideFrontmatter(title=f"Slide {idx}", transition=transition),
            body=f"Body {idx} {{GREEN}}ok{{/}}",
            index=idx,
        )
        for idx in range(count)
    ]


@pytest.fixture
def isolated_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    return tmp_path


@pytest.fixture
def fake_ffmpeg(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def _run(args, *, cwd=None):
        pattern = args[args.index("-i") + 1]
        frames = sorted(p.name for p in Path(pattern).parent.glob("frame_*.png"))
        calls.append({"args": list(args), "frames": frames})

    monkeypatch.setattr("term_deck.ffmpeg.runner.shutil.which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder, "run_ffmpeg", _run)
    return calls


def _leftovers(root: Path) -> list[str]:
    return sorted(p.name for p in root.iterdir() if p.name.startswith("term-deck-"))


def test_export_writes_gapless_frames_before_encoding(isolated_tmp: Path, fake_ffmpeg) -> None:
    options = ExportOptions(output=isolated_tmp / "out" / "deck.mp4", width=24, height=10, fps=4, slide_time=1.5)
    result = export_presentation(
        _slides(2, Transition.GLITCH), THEME, options, rng=random.Random(1), show_progress=False
    )

    assert result == options.output
    assert len(fake_ffmpeg) == 1
    frames = fake_ffmpeg[0]["frames"]
    assert len(frames) == 2 * 4 * 1.5
    assert frames == [f"frame_{n:06d}.png" for n in range(12)]
    args = fake_ffmpeg[0]["args"]
    assert args[args.index("-c:v") + 1] == "libx264"
    assert args[args.index("-crf") + 1] == "25"
    assert args[args.index("-pix_fmt") + 1] == "yuv420p"
    assert _leftovers(isolated_tmp) == []


def test_export_gif_two_pass_removes_palette(isolated_tmp: Path, fake_ffmpeg) -> None:
    options = ExportOptions(output=isolated_tmp / "deck.gif", width=20, height=8, fps=2, slide_time=1)
    export_presentation(_slides(1), THEME, options, rng=random.Random(2), show_progress=False)

    assert len(fake_ffmpeg) == 2
    first, second = (call["args"] for call in fake_ffmpeg)
    assert "palettegen=stats_mode=diff" in first[first.index("-vf") + 1]
    assert "paletteuse=dither=bayer" in second[second.index("-lavfi") + 1]
    assert _leftovers(isolated_tmp) == []


def test_missing_encoder_fails_before_any_frame(isolated_tmp: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("term_deck.ffmpeg.runner.shutil.which", lambda name: None)
    options = ExportOptions(output=isolated_tmp / "deck.mp4", width=20, height=8, fps=2, slide_time=1)
    with pytest.raises(EncoderUnavailable):
        export_presentation(_slides(1), THEME, options, show_progress=False)
    assert _leftovers(isolated_tmp) == []


def test_unknown_extension_is_rejected(isolated_tmp: Path, fake_ffmpeg) -> None:
    options = ExportOptions(output=isolated_tmp / "deck.avi", width=20, height=8, fps=2, slide_time=1)
    with pytest.raises(UnsupportedOutputFormat):
        export_presentation(_slides(1), THEME, options, show_progress=False)
    assert fake_ffmpeg == []
    assert _leftovers(isolated_tmp) == []


def test_encoder_failure_still_cleans_up(isolated_tmp: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(args, *, cwd=None):
        raise EncodingFailure(1, ["Unknown encoder 'libx264'"])

    monkeypatch.setattr("term_deck.ffmpeg.runner.shutil.which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder, "run_ffmpeg", _fail)
    options = ExportOptions(output=isolated_tmp / "deck.mp4", width=20, height=8, fps=2, slide_time=1)
    with pytest.raises(EncodingFailure, match="libx264"):
        export_presentation(_slides(1), THEME, options, show_progress=False)
    assert _leftovers(isolated_tmp) == []


def test_setup_failure_removes_session_dir(isolated_tmp: Path, fake_ffmpeg, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken(*args, **kwargs):
        raise RuntimeError("no renderer")

    monkeypatch.setattr(exporter, "Renderer", _broken)
    options = ExportOptions(output=isolated_tmp / "deck.mp4", width=20, height=8, fps=2, slide_time=1)
    with pytest.raises(RuntimeError, match="no renderer"):
        export_presentation(_slides(1), THEME, options, show_progress=False)
    assert fake_ffmpeg == []
    assert _leftovers(isolated_tmp) == []


def _failing_rmtree(path, *args, **kwargs):
    raise OSError("device busy")


def test_cleanup_failure_does_not_fail_export(isolated_tmp: Path, fake_ffmpeg, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("term_deck.recording_session.shutil.rmtree", _failing_rmtree)
    options = ExportOptions(output=isolated_tmp / "deck.mp4", width=20, height=8, fps=2, slide_time=1)
    assert export_presentation(_slides(1), THEME, options, show_progress=False) == options.output
    assert len(fake_ffmpeg) == 1


def test_cleanup_failure_keeps_encoder_error(isolated_tmp: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(args, *, cwd=None):
        raise EncodingFailure(1, ["Conversion failed!"])

    monkeypatch.setattr("term_deck.ffmpeg.runner.shutil.which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(encoder, "run_ffmpeg", _fail)
    monkeypatch.setattr("term_deck.recording_session.shutil.rmtree", _failing_rmtree)
    options = ExportOptions(output=isolated_tmp / "deck.mp4", width=20, height=8, fps=2, slide_time=1)
    with pytest.raises(EncodingFailure, match="Conversion failed"):
        export_presentation(_slides(1), THEME, options, show_progress=False)


def test_empty_deck_is_a_deck_error(isolated_tmp: Path, fake_ffmpeg) -> None:
    with pytest.raises(DeckLoadError):
        export_presentation([], THEME, ExportOptions(output=isolated_tmp / "deck.mp4"), show_progress=False)
    with pytest.raises(DeckLoadError):
        record_ansi([], THEME, RecordOptions(output=isolated_tmp / "deck.cast"))
    assert _leftovers(isolated_tmp) == []


def test_record_three_slides(tmp_path: Path) -> None:
    output = tmp_path / "deck.cast"
    options = RecordOptions(output=output, width=30, height=12, slide_time=2)
    record_ansi(_slides(3, Transition.TYPEWRITER), THEME, options, rng=random.Random(3))

    text = output.read_text(encoding="utf-8")
    assert text.endswith("\n")
    lines = text.splitlines()
    assert len(lines) == 4
    header = json.loads(lines[0])
    assert header["version"] == 2
    assert (header["width"], header["height"]) == (30, 12)
    assert header["env"] == {"TERM": "xterm-256color"}
    assert isinstance(header["timestamp"], int)
    frames = [json.loads(line) for line in lines[1:]]
    assert [frame[0] for frame in frames] == [0, 2, 4]
    assert all(frame[1] == "o" for frame in frames)
    assert "Body 1" in frames[1][2]
    assert frames[0][2].startswith("\x1b[2J\x1b[H")


def test_asciicast_rejects_decreasing_timestamps() -> None:
    frames = [AsciicastFrame(1.0, "o", "a"), AsciicastFrame(0.5, "o", "b")]
    with pytest.raises(ValueError):
        build_asciicast(frames, 10, 5, timestamp=0)


def test_asciicast_keeps_fractional_times() -> None:
    frames = [AsciicastFrame(0.0, "o", "a"), AsciicastFrame(1.5, "o", "b")]
    lines = build_asciicast(frames, 10, 5, timestamp=123).splitlines()
    assert json.loads(lines[0])["timestamp"] == 123
    assert lines[1] == '[0, "o", "a"]'
    assert lines[2] == '[1.5, "o", "b"]'
