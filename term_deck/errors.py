"""Error types raised by the rendering and export pipeline."""
from __future__ import annotations

from typing import Sequence


class TermDeckError(Exception):
    """Base class for term-deck failures."""


class ValidationError(TermDeckError):
    """Schema violation in a theme, slide or configuration value."""

    def __init__(self, field: str, message: str, *, context: str = "theme") -> None:
        self.field = field
        self.context = context
        prefix = f"{field}: " if field else ""
        super().__init__(f"Invalid {context}: {prefix}{message}")


class ThemeError(TermDeckError):
    """Unresolvable gradient or color token.

    Rendering code recovers from this by falling back to unstyled text.
    """

    def __init__(self, message: str, theme_name: str | None = None) -> None:
        self.theme_name = theme_name
        super().__init__(message)


class DeckLoadError(TermDeckError):
    def __init__(self, message: str, slides_dir: str) -> None:
        self.slides_dir = slides_dir
        super().__init__(message)


class EncoderUnavailable(TermDeckError):
    """The external encoder binary is not on PATH."""


class UnsupportedOutputFormat(TermDeckError):
    """Output path extension does not select a known export format."""


class EncodingFailure(TermDeckError):
    """The encoder subprocess exited with a non-zero status."""

    def __init__(self, returncode: int, stderr_tail: Sequence[str] = ()) -> None:
        self.returncode = returncode
        self.stderr_tail = list(stderr_tail)
        detail = "\n".join(self.stderr_tail)
        message = f"ffmpeg failed with exit code {returncode}"
        if detail:
            message = f"{message}:\n{detail}"
        super().__init__(message)


class ResourceTeardownError(TermDeckError):
    """Cleanup of a temporary resource failed. Always swallowed by callers."""


class ScreenDestroyedError(TermDeckError):
    """A draw was attempted on a screen that has already been destroyed."""
