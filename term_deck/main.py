from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

from config_loader import AppConfig, load_config
from logging_utils import configure_logging, get_logger

from .deck_loader import load_deck
from .errors import EncoderUnavailable, EncodingFailure, TermDeckError
from .exporter import export_presentation, record_ansi
from .models import ExportOptions, RecordOptions
from .presenter import cbreak_keys, present

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="term-deck", description="Terminal slide decks: present, export, record")
    parser.add_argument(
        "--config",
        help="Path to YAML configuration (default: config.yaml if present)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Export presentation to GIF or MP4")
    export.add_argument("slides_dir", help="Slides directory")
    export.add_argument("-o", "--output", required=True, help="Output file (.mp4 or .gif)")
    export.add_argument("-w", "--width", type=int, help="Terminal width in characters")
    export.add_argument("--height", type=int, help="Terminal height in characters")
    export.add_argument("--fps", type=int, help="Frames per second")
    export.add_argument("-t", "--slide-time", type=float, help="Seconds per slide")
    export.add_argument("-q", "--quality", type=int, help="Quality 1-100 (video only)")

    record = sub.add_parser("record", help="Record presentation as an asciicast file")
    record.add_argument("slides_dir", help="Slides directory")
    record.add_argument("-o", "--output", required=True, help="Output file (e.g. deck.cast)")
    record.add_argument("-w", "--width", type=int, help="Terminal width in characters")
    record.add_argument("--height", type=int, help="Terminal height in characters")
    record.add_argument("-t", "--slide-time", type=float, help="Seconds per slide")

    show = sub.add_parser("present", help="Present the deck in this terminal")
    show.add_argument("slides_dir", help="Slides directory")
    show.add_argument("--auto", type=float, help="Advance automatically after N seconds")
    show.add_argument("--notes", action="store_true", help="Start with the presenter notes panel open (toggle with N)")
    show.add_argument("--no-progress", dest="progress", action="store_false", help="Hide the progress bar")
    return parser


def _resolve_config(path: str | None) -> AppConfig:
    if path:
        return load_config(path)
    default = Path("config.yaml")
    return load_config(default if default.exists() else None)


def _overrides(defaults: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    resolved = dict(defaults)
    for key in defaults:
        value = getattr(args, key, None)
        if value is not None:
            resolved[key] = value
    return resolved


def run(args: argparse.Namespace, config: AppConfig) -> int:
    deck = load_deck(args.slides_dir)

    if args.command == "export":
        settings = _overrides(config.export_defaults(), args)
        options = ExportOptions(output=Path(args.output).expanduser(), **settings)
        export_presentation(deck.slides, deck.theme, options)
        return 0

    if args.command == "record":
        settings = _overrides(config.record_defaults(), args)
        options = RecordOptions(output=Path(args.output).expanduser(), **settings)
        record_ansi(deck.slides, deck.theme, options)
        return 0

    with cbreak_keys() as read_key:
        present(
            deck.slides,
            deck.theme,
            read_key,
            auto_advance=args.auto,
            show_notes=args.notes,
            show_progress=args.progress,
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _resolve_config(args.config)
        config.export_defaults()
        config.record_defaults()
    except (FileNotFoundError, ValueError) as exc:
        print(f"\nConfig error: {exc}", file=sys.stderr)
        return 1
    configure_logging(
        level=config.logging_level,
        log_file=config.log_file,
        console=args.command != "present",
    )
    logger.debug("Config: %s", config.dumps())

    try:
        return run(args, config)
    except (EncoderUnavailable, EncodingFailure) as exc:
        print(f"\nffmpeg error:\n  {exc}", file=sys.stderr)
        print("\nMake sure ffmpeg is installed:\n  macOS: brew install ffmpeg\n  Ubuntu: sudo apt install ffmpeg", file=sys.stderr)
        return 1
    except TermDeckError as exc:
        print(f"\n{exc}", file=sys.stderr)
        return 1
    except FileNotFoundError as exc:
        print(f"\nFile or directory not found.\n  {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
