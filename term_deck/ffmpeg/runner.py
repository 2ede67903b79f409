from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence

from logging_utils import get_logger

from ..errors import EncoderUnavailable, EncodingFailure

logger = get_logger(__name__)

FFMPEG_BINARY = "ffmpeg"

INSTALL_HINT = (
    "Install it with:\n"
    "  macOS: brew install ffmpeg\n"
    "  Ubuntu: sudo apt install ffmpeg"
)


def find_ffmpeg() -> str:
    """Return the ffmpeg path, or raise :class:`EncoderUnavailable`."""
    path = shutil.which(FFMPEG_BINARY)
    if not path:
        raise EncoderUnavailable(f"ffmpeg not found on PATH. {INSTALL_HINT}")
    logger.debug("Using ffmpeg at %s", path)
    return path


def run_ffmpeg(args: Sequence[str], *, cwd: Path | None = None) -> None:
    """Run ffmpeg with the given arguments, raising on non-zero exit.

    Logs the full command for debuggability.
    """
    # Keep ffmpeg quiet: only errors; no stats; no banner
    cmd: List[str] = [FFMPEG_BINARY, "-hide_banner", "-loglevel", "error", "-nostats"] + list(args)
    pretty = " ".join(a if " " not in a else f"'{a}'" for a in cmd)
    logger.debug("FFmpeg: %s", pretty)
    proc = subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
    )
    if proc.returncode != 0:
        tail = (proc.stderr or "").splitlines()[-50:]
        for line in tail:
            logger.error("ffmpeg: %s", line)
        raise EncodingFailure(proc.returncode, tail)
