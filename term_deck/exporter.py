"""Export a deck to MP4/GIF (frame capture + ffmpeg) or to an asciicast file."""
from __future__ import annotations

import json
import random
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from logging_utils import get_logger

from .capture import capture_to_ansi_text, capture_to_virtual_terminal
from .encoder import detect_format, encode_video
from .errors import DeckLoadError, ResourceTeardownError
from .ffmpeg.progress import ConsoleBar
from .ffmpeg.runner import find_ffmpeg
from .models import AsciicastFrame, ExportOptions, RecordOptions, Slide
from .recording_session import cleanup_session, create_recording_session, save_frame
from .renderer import Renderer
from .scheduler import Scheduler
from .theme import Theme
from .virtual_terminal import VirtualTerminal

logger = get_logger(__name__)

ASCIICAST_VERSION = 2
ASCIICAST_ENV = {"TERM": "xterm-256color"}


def export_presentation(
    slides: Sequence[Slide],
    theme: Theme,
    options: ExportOptions,
    *,
    rng: Optional[random.Random] = None,
    show_progress: bool = True,
) -> Path:
    """Render every slide, capture ``fps * slide_time`` frames each, then encode once."""
    find_ffmpeg()
    fmt = detect_format(options.output)
    if not slides:
        raise DeckLoadError("No slides to export", str(options.output))

    session = create_recording_session(options)
    renderer: Optional[Renderer] = None
    try:
        vt = VirtualTerminal(session.width, session.height)
        renderer = Renderer(theme, width=session.width, height=session.height, scheduler=Scheduler(), rng=rng)
        frames_per_slide = options.frames_per_slide
        frame_ms = 1000.0 / session.fps
        bar = ConsoleBar(total=len(slides) * frames_per_slide, label="Rendering", enabled=show_progress)

        for position, slide in enumerate(slides, start=1):
            logger.info("Slide %d/%d: %s", position, len(slides), slide.title)
            renderer.render_slide(slide)
            for _ in range(frames_per_slide):
                # Keep the rain moving while the slide itself holds still.
                renderer.scheduler.advance(frame_ms)
                renderer.redraw()
                capture_to_virtual_terminal(renderer.screen, vt)
                save_frame(session, vt.to_image())
                bar.update(session.frame_count, label=f"Slide {position}/{len(slides)}")
        bar.finish(label="Encoding")

        logger.info("Captured %d frames in %s", session.frame_count, session.temp_dir)
        encode_video(session.input_pattern, options.output, fmt, session.fps, options.quality)
        logger.info("Exported to %s", options.output)
        return options.output
    finally:
        if renderer is not None:
            renderer.destroy()
        try:
            cleanup_session(session)
        except ResourceTeardownError as exc:
            logger.warning("%s", exc)


def record_frames(slides: Sequence[Slide], theme: Theme, options: RecordOptions, *, rng: Optional[random.Random] = None) -> List[AsciicastFrame]:
    renderer = Renderer(theme, width=options.width, height=options.height, scheduler=Scheduler(), rng=rng)
    frames: List[AsciicastFrame] = []
    elapsed = 0.0
    try:
        for position, slide in enumerate(slides, start=1):
            logger.info("Recording slide %d/%d: %s", position, len(slides), slide.title)
            renderer.render_slide(slide)
            frames.append(AsciicastFrame(elapsed, "o", capture_to_ansi_text(renderer.screen)))
            elapsed += options.slide_time
    finally:
        renderer.destroy()
    return frames


def build_asciicast(frames: Iterable[AsciicastFrame], width: int, height: int, timestamp: Optional[int] = None) -> str:
    """Header line, then one ``[time, "o", text]`` line per frame."""
    header = {
        "version": ASCIICAST_VERSION,
        "width": width,
        "height": height,
        "timestamp": int(time.time()) if timestamp is None else timestamp,
        "env": dict(ASCIICAST_ENV),
    }
    lines = [json.dumps(header, ensure_ascii=False)]
    last = 0.0
    for frame in frames:
        if frame.elapsed < last:
            raise ValueError("asciicast frames must have non-decreasing timestamps")
        last = frame.elapsed
        lines.append(json.dumps(frame.to_json(), ensure_ascii=False))
    return "\n".join(lines) + "\n"


def record_ansi(slides: Sequence[Slide], theme: Theme, options: RecordOptions, *, rng: Optional[random.Random] = None) -> Path:
    """Record each slide once as an ANSI frame into an asciicast v2 file."""
    if not slides:
        raise DeckLoadError("No slides to record", str(options.output))
    frames = record_frames(slides, theme, options, rng=rng)
    options.output.parent.mkdir(parents=True, exist_ok=True)
    options.output.write_text(build_asciicast(frames, options.width, options.height), encoding="utf-8")
    logger.info("Recorded %d frames to %s (play with: asciinema play %s)", len(frames), options.output, options.output)
    return options.output
