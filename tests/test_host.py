"""Tests for the LocalSwitchHost."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import yaml

from pyActionSwitch.command import Command, SwitchSettings
from pyActionSwitch.enums import CommandType, ToggleState
from pyActionSwitch.events import PressDown, PressUp
from pyActionSwitch.host import LocalSwitchHost
from pyActionSwitch.persistence import StateStore


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "switch.yaml")


def _settings() -> SwitchSettings:
    return SwitchSettings(tree0=(Command(CommandType.TEXT, "a"),))


class TestInMemory:

    def test_unknown_control_defaults(self):
        host = LocalSwitchHost()
        assert host.get_toggle_state("x") is ToggleState.OFF
        assert host.get_settings("x") == SwitchSettings()
        assert host.control_ids == []

    @pytest.mark.asyncio
    async def test_set_toggle_state(self):
        host = LocalSwitchHost()
        await host.set_toggle_state("k", ToggleState.ON)
        assert host.get_toggle_state("k") is ToggleState.ON
        await host.set_toggle_state("k", 0)
        assert host.get_toggle_state("k") is ToggleState.OFF

    def test_build_event(self):
        host = LocalSwitchHost()
        host.set_settings("k", _settings())
        event = host.build_event(PressDown, "k")
        assert event == PressDown("k", ToggleState.OFF, _settings())
        assert isinstance(host.build_event(PressUp, "k"), PressUp)

    @pytest.mark.asyncio
    async def test_inspector_without_callback_only_logs(self):
        await LocalSwitchHost().send_to_inspector("k", {"event": "x"})

    @pytest.mark.asyncio
    async def test_sync_inspector_callback(self):
        callback = MagicMock(return_value=None)
        host = LocalSwitchHost(on_inspector_message=callback)
        await host.send_to_inspector("k", {"event": "x"})
        callback.assert_called_once_with("k", {"event": "x"})


class TestPersistence:

    @pytest.mark.asyncio
    async def test_toggle_write_saves(self, store):
        host = LocalSwitchHost(store=store)
        await host.set_toggle_state("k", ToggleState.ON)

        data = yaml.safe_load(store.path.read_text(encoding="utf-8"))
        assert data["controls"]["k"]["state"] == 1

    @pytest.mark.asyncio
    async def test_load_restores_state_and_settings(self, store):
        host = LocalSwitchHost(store=store)
        host.set_settings("k", _settings())
        await host.set_toggle_state("k", ToggleState.ON)

        restored = LocalSwitchHost(store=store)
        assert restored.load() == 1
        assert restored.get_toggle_state("k") is ToggleState.ON
        assert restored.get_settings("k") == _settings()

    def test_load_skips_malformed_records(self, store):
        store.save({
            "good": {"state": 1, "settings": {}},
            "bad-state": {"state": 7},
            "bad-settings": {"state": 0, "settings": ["x"]},
        })
        host = LocalSwitchHost(store=store)
        assert host.load() == 1
        assert host.control_ids == ["good"]

    def test_load_without_store(self):
        assert LocalSwitchHost().load() == 0

    def test_load_without_file(self, store):
        assert LocalSwitchHost(store=store).load() == 0

    def test_to_records(self):
        host = LocalSwitchHost()
        host.set_settings("k", _settings())
        assert host.to_records() == {
            "k": {"state": 0, "settings": _settings().to_dict()},
        }
