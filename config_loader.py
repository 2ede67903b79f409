"""Configuration loader for term-deck."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

try:
    import yaml  # type: ignore
except ModuleNotFoundError as exc:  # pragma: no cover - import guard
    raise RuntimeError(
        "PyYAML is required. Please install it with `pip install pyyaml`."
    ) from exc


_EXPORT_DEFAULTS: Dict[str, Any] = {
    "width": 120,
    "height": 40,
    "fps": 30,
    "slide_time": 3.0,
    "quality": 80,
}

_RECORD_DEFAULTS: Dict[str, Any] = {
    "width": 120,
    "height": 40,
    "slide_time": 3.0,
}


@dataclass
class AppConfig:
    """Wrapper around raw configuration with resolved paths."""

    raw: Dict[str, Any]
    config_path: Path | None
    project_root: Path
    output_dir: Path
    log_file: Path

    @property
    def logging_level(self) -> str:
        level = (
            self.raw.get("logging", {}).get("level")
            or self.raw.get("logging", {}).get("LEVEL")
            or "INFO"
        )
        return str(level).upper()

    def export_defaults(self) -> Dict[str, Any]:
        return _merge_section(_EXPORT_DEFAULTS, self.raw.get("export"))

    def record_defaults(self) -> Dict[str, Any]:
        return _merge_section(_RECORD_DEFAULTS, self.raw.get("record"))

    def to_debug_dict(self) -> Dict[str, Any]:
        return {
            "config_path": str(self.config_path) if self.config_path else None,
            "output_dir": str(self.output_dir),
            "log_file": str(self.log_file),
            "export": self.export_defaults(),
            "record": self.record_defaults(),
        }

    def dumps(self) -> str:
        """Return a JSON string for diagnostics."""
        return json.dumps(self.to_debug_dict(), ensure_ascii=False, indent=2)


def _merge_section(defaults: Dict[str, Any], section: Any) -> Dict[str, Any]:
    merged = dict(defaults)
    if isinstance(section, dict):
        for key, default in defaults.items():
            value = section.get(key)
            if value is None:
                continue
            try:
                merged[key] = type(default)(value)
            except (TypeError, ValueError):
                raise ValueError(f"config value '{key}' must be {type(default).__name__}")
    return merged


def load_config(path: Path | str | None = None, project_root: Path | None = None) -> AppConfig:
    """Load YAML config and resolve key directories.

    ``path=None`` means "no config file": defaults apply and paths resolve
    against the current directory.
    """
    raw: Dict[str, Any] = {}
    config_path: Path | None = None
    if path is not None:
        config_path = Path(path).expanduser().resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

    if project_root is not None:
        root = project_root.resolve()
    elif config_path is not None:
        root = config_path.parent
    else:
        root = Path.cwd()

    output_dir = (root / raw.get("output", {}).get("directory", "output")).resolve()
    log_file_name = raw.get("logging", {}).get("file", "logs/term-deck.log")
    log_file = (root / log_file_name).resolve()

    return AppConfig(
        raw=raw,
        config_path=config_path,
        project_root=root,
        output_dir=output_dir,
        log_file=log_file,
    )
