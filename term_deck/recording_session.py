from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from logging_utils import get_logger

from .errors import ResourceTeardownError
from .models import ExportOptions

logger = get_logger(__name__)

FRAME_PATTERN = "frame_%06d.png"


@dataclass
class RecordingSession:
    """Temporary frame storage for one export run."""

    temp_dir: Path
    width: int
    height: int
    fps: int
    frame_count: int = 0

    @property
    def input_pattern(self) -> str:
        return str(self.temp_dir / FRAME_PATTERN)

    def frame_path(self, number: int) -> Path:
        return self.temp_dir / (FRAME_PATTERN % number)


def create_recording_session(options: ExportOptions) -> RecordingSession:
    temp_dir = Path(tempfile.mkdtemp(prefix="term-deck-export-"))
    logger.debug("Recording session at %s", temp_dir)
    return RecordingSession(
        temp_dir=temp_dir,
        width=options.width,
        height=options.height,
        fps=options.fps,
    )


def save_frame(session: RecordingSession, image: Image.Image) -> Path:
    """Write the next zero-padded, gapless frame."""
    path = session.frame_path(session.frame_count)
    image.save(path, format="PNG")
    session.frame_count += 1
    return path


def cleanup_session(session: RecordingSession) -> None:
    """Remove the session directory; raises :class:`ResourceTeardownError` on failure."""
    try:
        shutil.rmtree(session.temp_dir)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise ResourceTeardownError(f"Failed to remove {session.temp_dir}: {exc}") from exc
