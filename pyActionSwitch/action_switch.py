"""Extended action switch: the event entry point for a host.

An :class:`ActionSwitch` wires a :class:`~pyActionSwitch.host.SwitchHost`
and a :class:`~pyActionSwitch.executor.PlatformExecutor` to a
:class:`~pyActionSwitch.classifier.PressClassifier` and dispatches every
inbound host event:

+----------------------------+--------------------------------------------+
| Event                      | Handling                                   |
+============================+============================================+
| ``PressDown``              | arm the hold timer of the control          |
+----------------------------+--------------------------------------------+
| ``PressUp``                | resolve short press / finish hold          |
+----------------------------+--------------------------------------------+
| ``BrowseFileRequest``      | open a file dialog, reply ``filePicked``   |
+----------------------------+--------------------------------------------+
| ``UnknownInspectorMessage``| log and ignore                             |
+----------------------------+--------------------------------------------+
| ``ControlRemoved``         | drop the control's timers and tasks        |
+----------------------------+--------------------------------------------+

Usage::

    switch = ActionSwitch(host)           # executor chosen per platform
    await switch.handle_event(PressDown.from_payload("key-1", payload))
    ...
    await switch.handle_event(PressUp.from_payload("key-1", payload))
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pyActionSwitch.classifier import HOLD_THRESHOLD, PressClassifier
from pyActionSwitch.enums import PressState
from pyActionSwitch.events import (
    BrowseFileRequest,
    ControlRemoved,
    PressDown,
    PressUp,
    SwitchEvent,
    UnknownInspectorMessage,
    file_picked_reply,
    parse_inspector_message,
)
from pyActionSwitch.executor import PlatformExecutor, select_executor
from pyActionSwitch.host import SwitchHost

logger = logging.getLogger(__name__)


class ActionSwitch:
    """Dispatches host events for any number of switch controls.

    Parameters
    ----------
    host:
        Outbound host interface (toggle writes, inspector replies).
    executor:
        Platform executor.  Selected with
        :func:`~pyActionSwitch.executor.select_executor` when omitted.
    hold_threshold:
        Hold threshold in seconds (see
        :data:`~pyActionSwitch.classifier.HOLD_THRESHOLD`).
    """

    def __init__(
        self,
        host: SwitchHost,
        executor: Optional[PlatformExecutor] = None,
        *,
        hold_threshold: float = HOLD_THRESHOLD,
    ) -> None:
        self._host = host
        self._executor = executor or select_executor()
        self._classifier = PressClassifier(
            host, self._executor, hold_threshold=hold_threshold
        )

    @property
    def host(self) -> SwitchHost:
        return self._host

    @property
    def executor(self) -> PlatformExecutor:
        return self._executor

    @property
    def classifier(self) -> PressClassifier:
        return self._classifier

    # ---- dispatch ----------------------------------------------------

    async def handle_event(self, event: SwitchEvent) -> Optional[PressState]:
        """Dispatch one host event.

        Returns the resolution of a :class:`PressUp`
        (see :meth:`PressClassifier.press_up`), ``None`` otherwise.

        Raises
        ------
        TypeError
            If *event* is not one of the known event types.
        """
        if isinstance(event, PressDown):
            self._classifier.press_down(
                event.control_id, event.toggle_state, event.settings
            )
            return None
        if isinstance(event, PressUp):
            return await self._classifier.press_up(
                event.control_id, event.toggle_state, event.settings
            )
        if isinstance(event, BrowseFileRequest):
            await self._browse_file(event)
            return None
        if isinstance(event, UnknownInspectorMessage):
            logger.debug(
                "Ignoring inspector message %r for %s",
                event.event,
                event.control_id,
            )
            return None
        if isinstance(event, ControlRemoved):
            self._classifier.forget(event.control_id)
            return None
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    async def handle_inspector_payload(
        self, control_id: str, payload: Any
    ) -> None:
        """Parse a raw inspector payload and dispatch it."""
        await self.handle_event(parse_inspector_message(control_id, payload))

    async def _browse_file(self, request: BrowseFileRequest) -> None:
        file_path = await self._executor.browse_file()
        logger.info(
            "File picked for %s: %r", request.control_id, file_path
        )
        await self._host.send_to_inspector(
            request.control_id, file_picked_reply(request, file_path)
        )

    # ---- lifecycle ---------------------------------------------------

    async def close(self) -> None:
        """Cancel pending timers and hold trees of every control."""
        self._classifier.stop()
        await self._classifier.wait_idle()

    def __repr__(self) -> str:
        return (
            f"ActionSwitch(executor={self._executor.name!r}, "
            f"{self._classifier!r})"
        )
