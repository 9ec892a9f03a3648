"""Press classification: short press vs. hold, per control.

:class:`PressClassifier` turns raw press/release events of any number of
controls into exactly one action-tree execution per physical press.
Each control gets its own :class:`ControlMachine` record, kept in a
mapping keyed by control ID; controls share no state.

State machine
-------------

::

    IDLE ─── press_down() ───► ARMED
                                 │
                  ┌──────────────┤
                  │              │
           press_up() before     hold timer fires
           hold threshold        │
                  │              ▼
                  ▼        RESOLVED_HOLD  (runs treeHold)
          RESOLVED_SHORT         │
          (runs tree1 when    press_up()
           state was 0,          │
           tree0 when 1;         ▼
           writes flipped      IDLE  (writes the pre-press
           state)                     state back)
                  │
                  ▼
                IDLE

The hold timer is an :meth:`asyncio.loop.call_later` handle.
:meth:`PressClassifier.press_up` cancels it synchronously *before* it
reads ``is_long_press``.  Because timer callbacks and event handlers
run to completion on the same event loop, a release and a firing timer
can never both resolve the same press.

The hold tree is started as a task from the timer callback and is not
awaited by the release; the pre-press state is restored on release
regardless of what the hold tree (or the host's own auto-toggle) did.

:meth:`PressClassifier.forget` cancels whichever tree a control is
running.  A short press whose control was forgotten mid-tree never
writes its toggle state, so a later press of the same ID is the only
live cycle for it.

Overlapping presses
-------------------

A ``press_down`` for a control whose previous press has not returned to
``IDLE`` is ignored.  A ``press_up`` without a matching ``press_down``
is ignored as well.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set

from pyActionSwitch.command import ActionTree, SwitchSettings
from pyActionSwitch.enums import PressState, ToggleState
from pyActionSwitch.executor import PlatformExecutor
from pyActionSwitch.host import SwitchHost
from pyActionSwitch.interpreter import ActionTreeInterpreter

logger = logging.getLogger(__name__)

#: Press duration (seconds) after which a press counts as a hold.
HOLD_THRESHOLD: float = 1.0


class ControlMachine:
    """Press state of one control instance."""

    __slots__ = (
        "control_id",
        "state",
        "toggle_state",
        "captured_state",
        "is_long_press",
        "hold_timer",
        "tree_task",
    )

    def __init__(self, control_id: str) -> None:
        self.control_id = control_id
        self.state: PressState = PressState.IDLE
        self.toggle_state: ToggleState = ToggleState.OFF
        self.captured_state: ToggleState = ToggleState.OFF
        self.is_long_press: bool = False
        self.hold_timer: Optional[asyncio.TimerHandle] = None
        self.tree_task: Optional[asyncio.Task] = None

    def cancel_hold_timer(self) -> None:
        if self.hold_timer is not None:
            self.hold_timer.cancel()
            self.hold_timer = None

    def __repr__(self) -> str:
        return (
            f"ControlMachine({self.control_id!r}, "
            f"state={self.state.value!r}, "
            f"toggle={int(self.toggle_state)})"
        )


class PressClassifier:
    """Classifies presses and runs the matching action tree.

    Parameters
    ----------
    host:
        Receives toggle-state writes.
    executor:
        Platform capability the action trees run against.
    interpreter:
        Interpreter to use; a fresh :class:`ActionTreeInterpreter` by
        default.
    hold_threshold:
        Seconds a press must last to count as a hold.  Defaults to
        :data:`HOLD_THRESHOLD`.
    """

    def __init__(
        self,
        host: SwitchHost,
        executor: PlatformExecutor,
        *,
        interpreter: Optional[ActionTreeInterpreter] = None,
        hold_threshold: float = HOLD_THRESHOLD,
    ) -> None:
        self._host = host
        self._executor = executor
        self._interpreter = interpreter or ActionTreeInterpreter()
        self._hold_threshold = hold_threshold
        self._machines: Dict[str, ControlMachine] = {}
        self._hold_tasks: Set[asyncio.Task] = set()

    # ---- accessors ---------------------------------------------------

    @property
    def hold_threshold(self) -> float:
        return self._hold_threshold

    @property
    def executor(self) -> PlatformExecutor:
        return self._executor

    def machine(self, control_id: str) -> Optional[ControlMachine]:
        """The state record of *control_id*, if it has been pressed."""
        return self._machines.get(control_id)

    def state_of(self, control_id: str) -> PressState:
        machine = self._machines.get(control_id)
        return machine.state if machine is not None else PressState.IDLE

    def is_long_press(self, control_id: str) -> bool:
        machine = self._machines.get(control_id)
        return machine.is_long_press if machine is not None else False

    def toggle_state(self, control_id: str) -> ToggleState:
        """Last toggle state seen or written for *control_id*."""
        machine = self._machines.get(control_id)
        return machine.toggle_state if machine is not None else ToggleState.OFF

    # ---- press / release ---------------------------------------------

    def press_down(
        self,
        control_id: str,
        toggle_state: ToggleState,
        settings: SwitchSettings,
    ) -> bool:
        """Handle a press of *control_id*.

        Captures *toggle_state* and arms the hold timer.  Returns
        ``False`` if the press was ignored because another press of the
        same control is still outstanding.

        Must be called from within a running event loop.
        """
        machine = self._machines.get(control_id)
        if machine is None:
            machine = self._machines[control_id] = ControlMachine(control_id)

        if machine.state is not PressState.IDLE:
            logger.debug(
                "Ignoring press of %s in state %s",
                control_id,
                machine.state.value,
            )
            return False

        loop = asyncio.get_running_loop()
        machine.toggle_state = ToggleState(int(toggle_state))
        machine.captured_state = machine.toggle_state
        machine.is_long_press = False
        machine.state = PressState.ARMED
        machine.hold_timer = loop.call_later(
            self._hold_threshold, self._on_hold_timeout, machine, settings
        )
        logger.debug(
            "Press of %s armed (state %d)",
            control_id,
            int(machine.captured_state),
        )
        return True

    async def press_up(
        self,
        control_id: str,
        toggle_state: ToggleState,
        settings: SwitchSettings,
    ) -> Optional[PressState]:
        """Handle a release of *control_id*.

        Returns :attr:`PressState.RESOLVED_SHORT` or
        :attr:`PressState.RESOLVED_HOLD` for the press that ended, or
        ``None`` if there was no outstanding press.

        The toggle write to the host is awaited before returning.  If it
        raises, the exception propagates after the control has returned
        to ``IDLE``.
        """
        machine = self._machines.get(control_id)
        if machine is None or machine.state not in (
            PressState.ARMED,
            PressState.RESOLVED_HOLD,
        ):
            logger.debug("Ignoring release of %s without press", control_id)
            return None

        # Must happen before is_long_press is read.
        machine.cancel_hold_timer()

        if machine.is_long_press:
            return await self._finish_hold(machine, toggle_state)
        return await self._finish_short(machine, settings)

    async def _finish_short(
        self, machine: ControlMachine, settings: SwitchSettings
    ) -> PressState:
        machine.state = PressState.RESOLVED_SHORT
        captured = machine.captured_state
        tree = settings.short_press_tree(captured)
        logger.info(
            "Short press on %s (state %d), running %d command(s)",
            machine.control_id,
            int(captured),
            len(tree),
        )
        task = asyncio.ensure_future(
            self._run_tree(machine.control_id, tree)
        )
        machine.tree_task = task
        try:
            # A tree cancelled by forget() must not cancel the release.
            try:
                await asyncio.wait({task})
            except asyncio.CancelledError:
                task.cancel()
                raise
            finally:
                if machine.tree_task is task:
                    machine.tree_task = None
            if self._machines.get(machine.control_id) is not machine:
                logger.debug(
                    "Control %s removed during short press; "
                    "not writing toggle state",
                    machine.control_id,
                )
                return PressState.RESOLVED_SHORT
            next_state = captured.flipped()
            await self._host.set_toggle_state(machine.control_id, next_state)
            machine.toggle_state = next_state
        finally:
            machine.state = PressState.IDLE
        return PressState.RESOLVED_SHORT

    async def _finish_hold(
        self, machine: ControlMachine, toggle_state: ToggleState
    ) -> PressState:
        captured = machine.captured_state
        if int(toggle_state) != int(captured):
            logger.debug(
                "State of %s changed during hold (%d -> %d); restoring",
                machine.control_id,
                int(captured),
                int(toggle_state),
            )
        try:
            await self._host.set_toggle_state(machine.control_id, captured)
            machine.toggle_state = captured
        finally:
            machine.state = PressState.IDLE
        return PressState.RESOLVED_HOLD

    # ---- hold timer --------------------------------------------------

    def _on_hold_timeout(
        self, machine: ControlMachine, settings: SwitchSettings
    ) -> None:
        """Hold threshold reached while still pressed → run treeHold."""
        machine.hold_timer = None
        if machine.state is not PressState.ARMED:
            return

        machine.is_long_press = True
        machine.state = PressState.RESOLVED_HOLD
        logger.info(
            "Hold on %s, running %d command(s)",
            machine.control_id,
            len(settings.tree_hold),
        )
        task = asyncio.ensure_future(
            self._run_tree(machine.control_id, settings.tree_hold)
        )
        machine.tree_task = task
        self._hold_tasks.add(task)
        task.add_done_callback(
            lambda t, m=machine: self._hold_task_done(m, t)
        )

    def _hold_task_done(
        self, machine: ControlMachine, task: asyncio.Task
    ) -> None:
        self._hold_tasks.discard(task)
        if machine.tree_task is task:
            machine.tree_task = None

    async def _run_tree(self, control_id: str, tree: ActionTree) -> None:
        try:
            await self._interpreter.run(tree, self._executor)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Action tree of %s failed", control_id)

    async def wait_idle(self) -> None:
        """Wait until every running hold tree has finished."""
        if self._hold_tasks:
            await asyncio.gather(*self._hold_tasks, return_exceptions=True)

    # ---- lifecycle ---------------------------------------------------

    def forget(self, control_id: str) -> None:
        """Drop *control_id*: cancel its timer and running action tree."""
        machine = self._machines.pop(control_id, None)
        if machine is None:
            return
        machine.cancel_hold_timer()
        if machine.tree_task is not None and not machine.tree_task.done():
            machine.tree_task.cancel()
        logger.debug("Forgot control %s", control_id)

    def stop(self) -> None:
        """Cancel all timers and action trees and reset every control."""
        for control_id in list(self._machines):
            self.forget(control_id)

    def __repr__(self) -> str:
        return (
            f"PressClassifier(controls={len(self._machines)}, "
            f"hold_threshold={self._hold_threshold})"
        )
