"""Encode a numbered PNG sequence to MP4 or GIF with ffmpeg."""
from __future__ import annotations

import os
import tempfile
from enum import Enum
from pathlib import Path

from logging_utils import get_logger

from .errors import UnsupportedOutputFormat
from .ffmpeg.runner import run_ffmpeg

logger = get_logger(__name__)

# CRF: 0 = lossless, 51 = worst; ~18-23 is visually good.
CRF_BEST = 18
CRF_WORST = 51


class ExportFormat(Enum):
    MP4 = "mp4"
    GIF = "gif"


def detect_format(output: Path | str) -> ExportFormat:
    """Pick the format from the output extension alone."""
    suffix = Path(output).suffix.lower()
    if suffix == ".mp4":
        return ExportFormat.MP4
    if suffix == ".gif":
        return ExportFormat.GIF
    raise UnsupportedOutputFormat(f"Unknown output format for {output}. Use .mp4 or .gif extension.")


def quality_to_crf(quality: int) -> int:
    """Map quality 1-100 linearly onto CRF 51-18 (higher quality, lower CRF)."""
    quality = max(1, min(100, int(quality)))
    crf = round(CRF_WORST - (quality / 100) * (CRF_WORST - CRF_BEST))
    return max(CRF_BEST, min(CRF_WORST, crf))


def encode_video(input_pattern: str, output: Path, fmt: ExportFormat, fps: int, quality: int = 80) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    if fmt is ExportFormat.MP4:
        encode_mp4(input_pattern, output, fps, quality)
    else:
        encode_gif(input_pattern, output, fps)


def encode_mp4(input_pattern: str, output: Path, fps: int, quality: int) -> None:
    crf = quality_to_crf(quality)
    logger.info("Encoding MP4 (crf=%d, %dfps): %s", crf, fps, output)
    run_ffmpeg(
        [
            "-y",
            "-framerate", str(fps),
            "-i", input_pattern,
            "-c:v", "libx264",
            "-crf", str(crf),
            "-r", str(fps),
            "-pix_fmt", "yuv420p",
            str(output),
        ]
    )


def encode_gif(input_pattern: str, output: Path, fps: int) -> None:
    """Two-pass GIF: shared palette (diff stats), then Bayer-dithered encode."""
    fd, palette_name = tempfile.mkstemp(prefix="term-deck-palette-", suffix=".png")
    os.close(fd)
    palette = Path(palette_name)
    logger.info("Encoding GIF (%dfps, two-pass palette): %s", fps, output)
    try:
        run_ffmpeg(
            [
                "-y",
                "-framerate", str(fps),
                "-i", input_pattern,
                "-vf", f"fps={fps},scale=-1:-1:flags=lanczos,palettegen=stats_mode=diff",
                str(palette),
            ]
        )
        run_ffmpeg(
            [
                "-y",
                "-framerate", str(fps),
                "-i", input_pattern,
                "-i", str(palette),
                "-lavfi",
                f"fps={fps},scale=-1:-1:flags=lanczos[x];[x][1:v]paletteuse=dither=bayer:bayer_scale=5:diff_mode=rectangle",
                str(output),
            ]
        )
    finally:
        try:
            palette.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to delete palette file %s: %s", palette, exc)
