#!/usr/bin/env python3
"""Simulation demo: an action switch driven by scripted presses.

This script wires a :class:`LocalSwitchHost` and an
:class:`ActionSwitch` together and feeds them a fixed sequence of
press/release events so the state machine can be observed in the log:

  1. Load the control settings from ``examples/simulated_switch.yaml``
     (or use built-in defaults when the file is missing).
  2. Restore the toggle state from the persistence file, if any.
  3. Short press: runs ``tree1`` (state 0) and flips the state to 1.
  4. Short press: runs ``tree0`` (state 1) and flips back to 0.
  5. Hold for 1.5 s: runs ``treeHold`` after 1 s; the host
     "auto-toggles" the key mid-hold, and the release restores the
     pre-press state.
  6. A ``browseFile`` inspector message, answered with ``filePicked``.

By default every command goes to a :class:`LoggingExecutor`, so nothing
is typed or launched.  Pass ``--live`` to use the real executor for
this platform.

Run from the project root::

    python examples/simulated_switch.py [--live]
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Ensure the package is importable when running from the repo root.
# ---------------------------------------------------------------------------
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from pyActionSwitch import (  # noqa: E402
    ActionSwitch,
    LocalSwitchHost,
    LoggingExecutor,
    PressDown,
    PressUp,
    StateStore,
    SwitchSettings,
    ToggleState,
    load_settings_file,
    select_executor,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

#: Control settings for the demo.
SETTINGS_FILE = Path(__file__).with_suffix(".yaml")

#: Persistence file (toggle state survives restarts of the demo).
STATE_FILE = Path("/tmp/pyActionSwitch_demo_state.yaml")

CONTROL_ID = "demo-key"

DEFAULT_SETTINGS = {
    "tree0": [
        {"type": "hotkey", "value": "^c"},
        {"type": "delay", "value": "100"},
        {"type": "text", "value": "switched off"},
    ],
    "tree1": [
        {"type": "url", "value": "https://example.com"},
        {"type": "text", "value": "switched on"},
    ],
    "treeHold": [
        {"type": "hotkey", "value": "%{F4}"},
        {"type": "delay", "value": "not-a-number"},
        {"type": "run", "value": "/Applications/Calculator.app"},
    ],
}

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

BOLD = "\033[1m"
GREEN = "\033[32m"
CYAN = "\033[36m"
YELLOW = "\033[33m"
RED = "\033[31m"
RESET = "\033[0m"


class ColourFormatter(logging.Formatter):
    LEVEL_COLOURS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED + BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        ts = self.formatTime(record, "%H:%M:%S")
        msecs = int(record.msecs)
        return (
            f"{BOLD}{ts}.{msecs:03d}{RESET} "
            f"{colour}{record.levelname:<8s}{RESET} "
            f"{record.name}: {record.getMessage()}"
        )


def setup_logging() -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColourFormatter())
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    root.addHandler(handler)


logger = logging.getLogger("demo")


# ---------------------------------------------------------------------------
# Demo
# ---------------------------------------------------------------------------


def load_demo_settings() -> SwitchSettings:
    if SETTINGS_FILE.is_file():
        settings = load_settings_file(SETTINGS_FILE)
        if CONTROL_ID in settings:
            return settings[CONTROL_ID]
        logger.warning("%s has no %r entry", SETTINGS_FILE, CONTROL_ID)
    return SwitchSettings.from_dict(DEFAULT_SETTINGS)


async def press(
    switch: ActionSwitch, host: LocalSwitchHost, duration: float,
    *, auto_toggle: bool = False,
) -> None:
    logger.info(
        "%s--- press for %.1f s (state %d) ---%s",
        BOLD, duration, int(host.get_toggle_state(CONTROL_ID)), RESET,
    )
    await switch.handle_event(host.build_event(PressDown, CONTROL_ID))
    await asyncio.sleep(duration)
    if auto_toggle:
        # Mimic device firmware flipping the key on its own.
        flipped = host.get_toggle_state(CONTROL_ID).flipped()
        await host.set_toggle_state(CONTROL_ID, flipped)
    result = await switch.handle_event(host.build_event(PressUp, CONTROL_ID))
    logger.info(
        "resolved as %s, state now %d",
        result.value if result else None,
        int(host.get_toggle_state(CONTROL_ID)),
    )


async def main() -> None:
    setup_logging()
    live = "--live" in sys.argv[1:]

    host = LocalSwitchHost(store=StateStore(STATE_FILE))
    host.load()
    host.set_settings(CONTROL_ID, load_demo_settings())

    executor = select_executor() if live else LoggingExecutor()
    switch = ActionSwitch(host, executor)
    logger.info("Running %r", switch)

    try:
        await press(switch, host, 0.2)
        await press(switch, host, 0.2)
        await press(switch, host, 1.5, auto_toggle=True)
        await switch.handle_inspector_payload(
            CONTROL_ID, {"event": "browseFile", "index": 2, "tree": "treeHold"}
        )
    finally:
        await switch.close()

    assert host.get_toggle_state(CONTROL_ID) in (ToggleState.OFF,
                                                 ToggleState.ON)
    logger.info("State persisted to %s", STATE_FILE)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print(f"\n{YELLOW}Interrupted by user.{RESET}")
