"""Tests for inbound events and inspector message parsing."""

from __future__ import annotations

import pytest

from pyActionSwitch.command import Command, SwitchSettings
from pyActionSwitch.enums import CommandType, ToggleState
from pyActionSwitch.events import (
    BrowseFileRequest,
    PressDown,
    PressUp,
    UnknownInspectorMessage,
    coerce_toggle_state,
    file_picked_reply,
    parse_inspector_message,
)


class TestCoerceToggleState:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ToggleState.OFF),
            (0, ToggleState.OFF),
            (1, ToggleState.ON),
            ("1", ToggleState.ON),
            (True, ToggleState.ON),
            (False, ToggleState.OFF),
        ],
    )
    def test_valid(self, value, expected):
        assert coerce_toggle_state(value) is expected

    @pytest.mark.parametrize("value", [2, -1, "on", [0]])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            coerce_toggle_state(value)


class TestPressEvents:

    def test_from_payload(self):
        event = PressDown.from_payload(
            "key-1",
            {
                "state": 1,
                "settings": {"tree0": [{"type": "text", "value": "x"}]},
            },
        )
        assert event.control_id == "key-1"
        assert event.toggle_state is ToggleState.ON
        assert event.settings.tree0 == (Command(CommandType.TEXT, "x"),)

    def test_missing_state_defaults_to_zero(self):
        event = PressUp.from_payload("key-1", {"settings": {}})
        assert event.toggle_state is ToggleState.OFF
        assert event.settings == SwitchSettings()

    def test_none_payload(self):
        event = PressUp.from_payload("key-1", None)
        assert isinstance(event, PressUp)
        assert event.toggle_state is ToggleState.OFF

    def test_defaults(self):
        event = PressDown("key-2")
        assert event.toggle_state is ToggleState.OFF
        assert event.settings == SwitchSettings()


class TestInspectorMessages:

    def test_browse_file(self):
        msg = parse_inspector_message(
            "key-1", {"event": "browseFile", "index": 2, "tree": "treeHold"}
        )
        assert msg == BrowseFileRequest("key-1", index=2, tree="treeHold")

    def test_unknown_event(self):
        msg = parse_inspector_message("key-1", {"event": "somethingElse"})
        assert isinstance(msg, UnknownInspectorMessage)
        assert msg.event == "somethingElse"
        assert msg.payload == {"event": "somethingElse"}

    def test_missing_event(self):
        msg = parse_inspector_message("key-1", {"index": 0})
        assert isinstance(msg, UnknownInspectorMessage)
        assert msg.event is None

    def test_non_mapping_payload(self):
        msg = parse_inspector_message("key-1", "browseFile")
        assert msg == UnknownInspectorMessage("key-1")

    def test_file_picked_reply(self):
        request = BrowseFileRequest("key-1", index=0, tree="tree1")
        assert file_picked_reply(request, "/tmp/a.sh") == {
            "event": "filePicked",
            "payload": {"filePath": "/tmp/a.sh", "index": 0, "tree": "tree1"},
        }
