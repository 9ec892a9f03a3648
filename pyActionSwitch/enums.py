"""Action switch enumerations.

This module contains the enum definitions shared by the press
classifier, the action-tree interpreter and the settings layer:

- command kinds understood by the interpreter
- the binary toggle state of a control
- the states of the per-control press state machine
"""

from enum import Enum, IntEnum, unique


# ---------------------------------------------------------------------------
#  Commands
# ---------------------------------------------------------------------------


@unique
class CommandType(str, Enum):
    """Kind of a single command in an action tree.

    The string values are the ``type`` keys used in the settings
    payload delivered by the host.
    """

    HOTKEY = "hotkey"
    """Key combination (SendKeys notation, e.g. ``^+{ESC}``)."""

    URL = "url"
    """URL opened with the system default handler."""

    TEXT = "text"
    """Literal text injected as keystrokes."""

    DELAY = "delay"
    """Pause, value in milliseconds."""

    RUN = "run"
    """File or program path launched with the system default handler."""


# ---------------------------------------------------------------------------
#  Toggle state
# ---------------------------------------------------------------------------


@unique
class ToggleState(IntEnum):
    """Binary state of a two-state switch control."""

    OFF = 0
    ON = 1

    def flipped(self) -> "ToggleState":
        """Return the complementary state."""
        return ToggleState.ON if self is ToggleState.OFF else ToggleState.OFF


# ---------------------------------------------------------------------------
#  Press state machine
# ---------------------------------------------------------------------------


@unique
class PressState(Enum):
    """States of the per-control press classification state machine."""

    IDLE = "idle"
    ARMED = "armed"
    RESOLVED_SHORT = "resolved_short"
    RESOLVED_HOLD = "resolved_hold"
