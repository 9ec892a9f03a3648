"""Action-tree interpreter.

Runs the commands of an :data:`~pyActionSwitch.command.ActionTree`
strictly in order against a
:class:`~pyActionSwitch.executor.PlatformExecutor`.  Each step is
awaited before the next one starts.

Failure isolation
~~~~~~~~~~~~~~~~~

An exception raised by a single step is logged and swallowed; the
remaining steps still run.  There is no rollback: side effects of
earlier steps (and of the failing one) stay in place.  Task
cancellation (:class:`asyncio.CancelledError`) is not a step failure
and propagates.

Delay values
~~~~~~~~~~~~

``delay`` values are parsed like a lenient integer prefix: leading
whitespace and a sign are accepted and trailing garbage is ignored, so
``"250"`` and ``"250ms"`` both mean 250 ms.  A value without a leading
number (``"abc"``) makes the step a no-op.  Negative values do not
suspend.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

from pyActionSwitch.command import ActionTree, Command
from pyActionSwitch.enums import CommandType
from pyActionSwitch.executor import PlatformExecutor

logger = logging.getLogger(__name__)

_DELAY_RE = re.compile(r"\s*([+-]?[0-9]+)")


def parse_delay(value: str) -> Optional[int]:
    """Return the leading integer of *value* in milliseconds, or ``None``
    if *value* does not start with a number."""
    match = _DELAY_RE.match(value or "")
    if match is None:
        return None
    return int(match.group(1))


class ActionTreeInterpreter:
    """Executes action trees one command at a time.

    The interpreter is stateless; a single instance can serve any number
    of controls.
    """

    async def run(
        self,
        tree: Optional[ActionTree],
        executor: PlatformExecutor,
    ) -> int:
        """Run every command of *tree* in order.

        Returns the number of steps that failed.  An empty or ``None``
        tree returns ``0`` without touching *executor*.
        """
        if not tree:
            return 0

        failures = 0
        for position, command in enumerate(tree):
            try:
                await self._execute(command, executor)
            except asyncio.CancelledError:
                raise
            except Exception:
                failures += 1
                logger.exception(
                    "Failed to execute command #%d (%s %r)",
                    position,
                    command.kind.value,
                    command.value,
                )
        if failures:
            logger.info(
                "Action tree finished: %d of %d steps failed",
                failures,
                len(tree),
            )
        return failures

    async def _execute(
        self, command: Command, executor: PlatformExecutor
    ) -> None:
        kind = command.kind
        if kind is CommandType.HOTKEY:
            await executor.send_hotkey(command.value)
        elif kind is CommandType.TEXT:
            await executor.type_text(command.value)
        elif kind in (CommandType.URL, CommandType.RUN):
            await executor.open(command.value)
        elif kind is CommandType.DELAY:
            ms = parse_delay(command.value)
            if ms is None:
                logger.debug(
                    "Ignoring delay with non-numeric value %r", command.value
                )
                return
            if ms > 0:
                await asyncio.sleep(ms / 1000.0)
        else:  # pragma: no cover - CommandType is exhaustive
            logger.warning("Unhandled command kind %r", kind)

    def __repr__(self) -> str:
        return "ActionTreeInterpreter()"
