"""Inbound events delivered by the host.

Press events
~~~~~~~~~~~~

:class:`PressDown` and :class:`PressUp` carry the control ID, the
host's current toggle state and the control's settings at event time.
:meth:`PressDown.from_payload` / :meth:`PressUp.from_payload` build them
from the raw host payload (``{"state": 0|1, "settings": {...}}``), where
a missing state means ``0``.

Inspector messages
~~~~~~~~~~~~~~~~~~

Messages from the configuration UI form a tagged union keyed by the
``event`` field.  :func:`parse_inspector_message` maps a raw payload to
one of:

* :class:`BrowseFileRequest`: ``event == "browseFile"``; asks for a
  native file dialog.  The answer is built by
  :func:`file_picked_reply`.
* :class:`UnknownInspectorMessage`: anything else.  Kept so the
  dispatcher can log it; never acted upon.

:class:`ControlRemoved` tells the dispatcher that a control went away
and its pending timers must be dropped.
"""

from __future__ import annotations

import collections.abc
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from pyActionSwitch.command import SwitchSettings
from pyActionSwitch.enums import ToggleState

#: ``event`` value of a file-browse request.
EVENT_BROWSE_FILE = "browseFile"

#: ``event`` value of the reply to a file-browse request.
EVENT_FILE_PICKED = "filePicked"


def coerce_toggle_state(value: Any) -> ToggleState:
    """Convert a host state value (``None``, ``0``, ``1``) to
    :class:`ToggleState`.

    Raises
    ------
    ValueError
        If *value* is not a valid binary state.
    """
    if value is None:
        return ToggleState.OFF
    if isinstance(value, bool):
        return ToggleState.ON if value else ToggleState.OFF
    try:
        return ToggleState(int(value))
    except (TypeError, ValueError):
        raise ValueError(f"Invalid toggle state: {value!r}") from None


# ---------------------------------------------------------------------------
# Press events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _PressEvent:
    control_id: str
    toggle_state: ToggleState = ToggleState.OFF
    settings: SwitchSettings = field(default_factory=SwitchSettings)

    @classmethod
    def from_payload(
        cls, control_id: str, payload: Optional[Mapping[str, Any]]
    ):
        """Build the event from a raw host payload."""
        payload = payload or {}
        return cls(
            control_id=control_id,
            toggle_state=coerce_toggle_state(payload.get("state")),
            settings=SwitchSettings.from_dict(payload.get("settings")),
        )


@dataclass(frozen=True)
class PressDown(_PressEvent):
    """The control was pressed."""


@dataclass(frozen=True)
class PressUp(_PressEvent):
    """The control was released."""


@dataclass(frozen=True)
class ControlRemoved:
    """The control disappeared from the host (page change, deletion)."""

    control_id: str


# ---------------------------------------------------------------------------
# Inspector messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BrowseFileRequest:
    """Request to pick a file for a ``run`` command in the UI.

    *index* and *tree* identify the command row in the configuration UI
    and are echoed back unchanged.
    """

    control_id: str
    index: Any = None
    tree: Any = None


@dataclass(frozen=True)
class UnknownInspectorMessage:
    """Inspector message with an unrecognised (or missing) ``event``."""

    control_id: str
    event: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


InspectorMessage = Union[BrowseFileRequest, UnknownInspectorMessage]

#: Every event type :class:`~pyActionSwitch.action_switch.ActionSwitch`
#: dispatches.
SwitchEvent = Union[
    PressDown, PressUp, ControlRemoved, BrowseFileRequest,
    UnknownInspectorMessage,
]


def parse_inspector_message(
    control_id: str, payload: Any
) -> InspectorMessage:
    """Map a raw inspector payload to an :data:`InspectorMessage`."""
    if not isinstance(payload, collections.abc.Mapping):
        return UnknownInspectorMessage(control_id=control_id)

    event = payload.get("event")
    if event == EVENT_BROWSE_FILE:
        return BrowseFileRequest(
            control_id=control_id,
            index=payload.get("index"),
            tree=payload.get("tree"),
        )
    return UnknownInspectorMessage(
        control_id=control_id,
        event=event if isinstance(event, str) else None,
        payload=dict(payload),
    )


def file_picked_reply(
    request: BrowseFileRequest, file_path: str
) -> Dict[str, Any]:
    """Build the ``filePicked`` reply for *request*."""
    return {
        "event": EVENT_FILE_PICKED,
        "payload": {
            "filePath": file_path,
            "index": request.index,
            "tree": request.tree,
        },
    }
