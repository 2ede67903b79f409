from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from config_loader import load_config


def test_defaults_without_file(tmp_path: Path) -> None:
    config = load_config(None, project_root=tmp_path)
    assert config.config_path is None
    assert config.logging_level == "INFO"
    assert config.export_defaults() == {"width": 120, "height": 40, "fps": 30, "slide_time": 3.0, "quality": 80}
    assert config.record_defaults() == {"width": 120, "height": 40, "slide_time": 3.0}
    assert config.log_file == (tmp_path / "logs" / "term-deck.log").resolve()


def test_values_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "logging:\n  level: debug\n  file: out/run.log\nexport:\n  fps: 12\n  slide_time: 2\nrecord:\n  width: 80\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.project_root == tmp_path.resolve()
    assert config.logging_level == "DEBUG"
    assert config.log_file == (tmp_path / "out" / "run.log").resolve()
    export = config.export_defaults()
    assert export["fps"] == 12
    assert export["slide_time"] == 2.0 and isinstance(export["slide_time"], float)
    assert config.record_defaults()["width"] == 80
    assert '"fps": 12' in config.dumps()


def test_bad_value_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("export:\n  fps: fast\n", encoding="utf-8")
    with pytest.raises(ValueError, match="fps"):
        load_config(path).export_defaults()


def test_explicit_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
