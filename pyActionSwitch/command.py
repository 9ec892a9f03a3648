"""Commands, action trees and per-control switch settings.

A :class:`Command` is one step of an action tree: a
:class:`~pyActionSwitch.enums.CommandType` plus a string value whose
meaning depends on the kind:

+---------+-----------------------------------------------------+
| kind    | value                                               |
+=========+=====================================================+
| hotkey  | key combination in SendKeys notation (``^c``)       |
+---------+-----------------------------------------------------+
| url     | URL opened with the default handler                 |
+---------+-----------------------------------------------------+
| text    | literal text typed as keystrokes                    |
+---------+-----------------------------------------------------+
| delay   | milliseconds to pause before the next step          |
+---------+-----------------------------------------------------+
| run     | file or program path opened with the default handler|
+---------+-----------------------------------------------------+

An :data:`ActionTree` is an ordered tuple of commands.  A
:class:`SwitchSettings` bundles the three trees configured for one
control:

* ``tree0``: runs on a short press that leaves the switch in state 0,
* ``tree1``: runs on a short press that leaves the switch in state 1,
* ``tree_hold``: override tree for a sustained press.

Settings arrive from the host as plain JSON-like mappings::

    {
        "tree0": [{"type": "hotkey", "value": "^c"}],
        "tree1": [{"type": "url", "value": "https://example.com"}],
        "treeHold": [
            {"type": "text", "value": "hello"},
            {"type": "delay", "value": "250"},
        ],
    }

:meth:`SwitchSettings.from_dict` converts such a mapping, skipping
malformed entries with a warning so a single bad command never disables
the whole control.
"""

from __future__ import annotations

import collections.abc
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pyActionSwitch.enums import CommandType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Command:
    """One immutable step of an action tree.

    Attributes
    ----------
    kind:
        What the interpreter does with this step.
    value:
        Kind-specific argument (see module docstring).
    """

    kind: CommandType
    value: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Return the host representation ``{"type": ..., "value": ...}``."""
        return {"type": self.kind.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Command:
        """Create a :class:`Command` from a ``{type, value}`` mapping.

        Raises
        ------
        ValueError
            If ``type`` is missing or not a known command kind.
        """
        raw_type = data.get("type")
        try:
            kind = CommandType(raw_type)
        except ValueError:
            raise ValueError(f"Unknown command type: {raw_type!r}") from None
        value = data.get("value")
        return cls(kind=kind, value="" if value is None else str(value))


#: An ordered, immutable sequence of commands.
ActionTree = Tuple[Command, ...]


def parse_action_tree(raw: Optional[Iterable[Any]]) -> ActionTree:
    """Convert a host-supplied list of command mappings to an
    :data:`ActionTree`.

    ``None`` yields an empty tree.  Entries that are not mappings or
    carry an unknown ``type`` are skipped with a warning; the order of
    the remaining entries is preserved.
    """
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        logger.warning(
            "Ignoring action tree of type %s (expected a list)",
            type(raw).__name__,
        )
        return ()

    commands: List[Command] = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, collections.abc.Mapping):
            logger.warning(
                "Skipping command #%d: expected a mapping, got %s",
                position,
                type(entry).__name__,
            )
            continue
        try:
            commands.append(Command.from_dict(entry))
        except ValueError as exc:
            logger.warning("Skipping command #%d: %s", position, exc)
    return tuple(commands)


# ---------------------------------------------------------------------------
# SwitchSettings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SwitchSettings:
    """The three action trees configured for one control.

    Instances are supplied by the host at event time and are never
    mutated by the core.
    """

    tree0: ActionTree = ()
    tree1: ActionTree = ()
    tree_hold: ActionTree = ()

    def short_press_tree(self, state: int) -> ActionTree:
        """Return the short-press tree for a press that started in
        toggle *state*.

        A press starting in state 0 moves the switch to state 1 and
        runs ``tree1``; a press starting in state 1 runs ``tree0``.
        """
        return self.tree1 if int(state) == 0 else self.tree0

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        """Return the host representation of these settings."""
        return {
            "tree0": [cmd.to_dict() for cmd in self.tree0],
            "tree1": [cmd.to_dict() for cmd in self.tree1],
            "treeHold": [cmd.to_dict() for cmd in self.tree_hold],
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> SwitchSettings:
        """Create :class:`SwitchSettings` from the host mapping.

        Missing trees default to empty.  ``None`` yields empty settings.

        Raises
        ------
        ValueError
            If *data* is neither ``None`` nor a mapping.
        """
        if data is None:
            return cls()
        if not isinstance(data, collections.abc.Mapping):
            raise ValueError(
                f"Switch settings must be a mapping, "
                f"got {type(data).__name__}"
            )
        return cls(
            tree0=parse_action_tree(data.get("tree0")),
            tree1=parse_action_tree(data.get("tree1")),
            tree_hold=parse_action_tree(data.get("treeHold")),
        )
