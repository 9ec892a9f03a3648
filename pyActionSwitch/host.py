"""Host collaborator contract and an in-process implementation.

The press classifier reports toggle changes and inspector replies to a
:class:`SwitchHost`.  On real hardware the host is the device software
(it renders the key, persists the state and forwards messages to the
configuration UI); the core only sees these two coroutines.

:class:`LocalSwitchHost` is a self-contained host for embedding and
testing.  It keeps toggle states and settings in memory and, when
given a :class:`~pyActionSwitch.persistence.StateStore`, writes them to
YAML on every toggle change.

Usage::

    store = StateStore("~/.config/actionswitch/state.yaml")
    host = LocalSwitchHost(store=store)
    host.load()
    host.set_settings("key-1", SwitchSettings.from_dict({...}))

    switch = ActionSwitch(host)
    await switch.handle_event(host.build_event(PressDown, "key-1"))
"""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Union,
)

from pyActionSwitch.command import SwitchSettings
from pyActionSwitch.enums import ToggleState

if TYPE_CHECKING:
    from pyActionSwitch.persistence import StateStore

logger = logging.getLogger(__name__)

#: Callback receiving ``(control_id, payload)`` for inspector replies.
InspectorCallback = Callable[
    [str, Dict[str, Any]], Union[None, Awaitable[None]]
]


class SwitchHost(abc.ABC):
    """Outbound interface from the core to the host software."""

    @abc.abstractmethod
    async def set_toggle_state(
        self, control_id: str, value: ToggleState
    ) -> None:
        """Make *value* the externally observable state of *control_id*.

        Must not return before a subsequent read reflects *value*.
        """

    @abc.abstractmethod
    async def send_to_inspector(
        self, control_id: str, payload: Dict[str, Any]
    ) -> None:
        """Deliver *payload* to the configuration UI of *control_id*."""


class LocalSwitchHost(SwitchHost):
    """In-process host keeping state in memory, optionally on disk.

    Parameters
    ----------
    store:
        Optional YAML store.  Every toggle write and every
        :meth:`set_settings` call saves the full state.
    on_inspector_message:
        Optional callback (plain or async) for inspector replies.
        Without one, replies are only logged.
    """

    def __init__(
        self,
        *,
        store: Optional[StateStore] = None,
        on_inspector_message: Optional[InspectorCallback] = None,
    ) -> None:
        self._store = store
        self._on_inspector_message = on_inspector_message
        self._states: Dict[str, ToggleState] = {}
        self._settings: Dict[str, SwitchSettings] = {}

    # ---- state -------------------------------------------------------

    def get_toggle_state(self, control_id: str) -> ToggleState:
        """Current toggle state (``OFF`` for unknown controls)."""
        return self._states.get(control_id, ToggleState.OFF)

    async def set_toggle_state(
        self, control_id: str, value: ToggleState
    ) -> None:
        value = ToggleState(int(value))
        previous = self._states.get(control_id)
        self._states[control_id] = value
        if previous is not value:
            logger.info(
                "Control %s toggle state -> %d", control_id, int(value)
            )
        self.save()

    # ---- settings ----------------------------------------------------

    def get_settings(self, control_id: str) -> SwitchSettings:
        """Settings of *control_id* (empty settings if unknown)."""
        return self._settings.get(control_id, SwitchSettings())

    def set_settings(self, control_id: str, settings: SwitchSettings) -> None:
        self._settings[control_id] = settings
        self.save()

    @property
    def control_ids(self) -> List[str]:
        """All known control IDs."""
        return sorted(set(self._states) | set(self._settings))

    def build_event(
        self, event_type: Callable[..., Any], control_id: str
    ) -> Any:
        """Build a :class:`PressDown` / :class:`PressUp` carrying the
        current state and settings of *control_id*."""
        return event_type(
            control_id=control_id,
            toggle_state=self.get_toggle_state(control_id),
            settings=self.get_settings(control_id),
        )

    # ---- inspector ---------------------------------------------------

    async def send_to_inspector(
        self, control_id: str, payload: Dict[str, Any]
    ) -> None:
        if self._on_inspector_message is None:
            logger.info("Inspector reply for %s: %s", control_id, payload)
            return
        result = self._on_inspector_message(control_id, payload)
        if asyncio.iscoroutine(result):
            await result

    # ---- persistence -------------------------------------------------

    def to_records(self) -> Dict[str, Dict[str, Any]]:
        """Return the persisted representation of every control."""
        return {
            control_id: {
                "state": int(self.get_toggle_state(control_id)),
                "settings": self.get_settings(control_id).to_dict(),
            }
            for control_id in self.control_ids
        }

    def save(self) -> None:
        """Write all controls to the store (no-op without a store)."""
        if self._store is None:
            return
        self._store.save(self.to_records())

    def load(self) -> int:
        """Restore controls from the store.

        Returns the number of restored controls.  Malformed records are
        skipped with a warning.
        """
        if self._store is None:
            return 0
        records = self._store.load()
        if not records:
            return 0

        restored = 0
        for control_id, record in records.items():
            try:
                state = ToggleState(int(record.get("state", 0)))
                settings = SwitchSettings.from_dict(record.get("settings"))
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping persisted control %s: %s", control_id, exc
                )
                continue
            self._states[control_id] = state
            self._settings[control_id] = settings
            restored += 1
        logger.info("Restored %d control(s) from %s", restored,
                    self._store.path)
        return restored

    def __repr__(self) -> str:
        return f"LocalSwitchHost(controls={len(self.control_ids)})"
