"""Tests for loading switch settings from YAML files."""

from __future__ import annotations

import pytest

from pyActionSwitch.command import Command
from pyActionSwitch.config import load_settings_file
from pyActionSwitch.enums import CommandType


def _write(tmp_path, text: str):
    path = tmp_path / "controls.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadSettingsFile:

    def test_with_controls_section(self, tmp_path):
        path = _write(tmp_path, (
            "controls:\n"
            "  key-1:\n"
            "    tree0:\n"
            "      - {type: hotkey, value: '^c'}\n"
            "    treeHold:\n"
            "      - {type: delay, value: 250}\n"
        ))
        settings = load_settings_file(path)

        assert list(settings) == ["key-1"]
        assert settings["key-1"].tree0 == (Command(CommandType.HOTKEY, "^c"),)
        assert settings["key-1"].tree_hold == (
            Command(CommandType.DELAY, "250"),
        )

    def test_bare_mapping(self, tmp_path):
        path = _write(tmp_path, "7:\n  tree1:\n    - {type: text, value: hi}\n")
        settings = load_settings_file(str(path))
        assert settings["7"].tree1 == (Command(CommandType.TEXT, "hi"),)

    def test_empty_file(self, tmp_path):
        assert load_settings_file(_write(tmp_path, "")) == {}

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_settings_file(_write(tmp_path, "controls: [oops"))

    def test_top_level_list(self, tmp_path):
        with pytest.raises(ValueError, match="Expected a mapping"):
            load_settings_file(_write(tmp_path, "- a\n"))

    def test_controls_not_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            load_settings_file(_write(tmp_path, "controls: [1, 2]\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_settings_file(tmp_path / "missing.yaml")
