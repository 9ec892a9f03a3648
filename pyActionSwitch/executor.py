"""Platform executors: OS-specific key injection, text injection,
launching and file selection.

The :class:`~pyActionSwitch.interpreter.ActionTreeInterpreter` never
talks to the operating system directly.  It depends on the abstract
:class:`PlatformExecutor` capability, and one concrete variant is
chosen once at startup by :func:`select_executor`:

* :class:`WindowsExecutor`: PowerShell with
  ``System.Windows.Forms.SendKeys``, ``Start-Process`` and an
  ``OpenFileDialog``.
* :class:`MacExecutor`: AppleScript via ``osascript`` (``System
  Events`` keystrokes), ``open`` and ``choose file``.  Used for every
  non-Windows system.

A third variant, :class:`LoggingExecutor`, performs no OS interaction
and only logs the calls it receives (dry runs, headless hosts).

Quoting
~~~~~~~

All processes are spawned with :func:`asyncio.create_subprocess_exec`
from an argument vector, so no shell ever parses user data.  The
PowerShell and AppleScript interpreters still parse the script they
receive, therefore every user-supplied value embedded in a script goes
through exactly one quoting routine per variant:
:func:`quote_powershell` or :func:`quote_applescript`.

Hotkey notation
~~~~~~~~~~~~~~~

Hotkeys use the SendKeys notation: ``^`` = Ctrl, ``+`` = Shift,
``%`` = Alt (Command on macOS), special keys in braces
(``{ENTER}``, ``{F5}``, ``{ESC}``) and ``~`` for Enter.
:func:`parse_hotkey` splits such a descriptor into a neutral modifier
list and a key name.  Unknown keys never raise; they are sent on a
best-effort basis.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import platform
from typing import ClassVar, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class CommandExecutionError(RuntimeError):
    """A platform process for a command exited unsuccessfully."""


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------

#: Characters PowerShell accepts as single-quote string delimiters.
_PS_SINGLE_QUOTES = ("'", "‘", "’", "‚", "‛")


def quote_powershell(text: str) -> str:
    """Return *text* as a PowerShell single-quoted string literal.

    Single quotes (including the typographic variants PowerShell also
    treats as delimiters) are doubled, which is the only escape
    recognised inside a verbatim string.
    """
    for quote in _PS_SINGLE_QUOTES:
        text = text.replace(quote, quote * 2)
    return f"'{text}'"


def quote_applescript(text: str) -> str:
    """Return *text* as an AppleScript double-quoted string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


#: Characters with special meaning in SendKeys strings.
_SENDKEYS_SPECIAL = frozenset("+^%~(){}[]")


def escape_sendkeys_text(text: str) -> str:
    """Escape literal *text* so SendKeys types it verbatim.

    Special characters are wrapped in braces and line breaks become
    ``{ENTER}``.
    """
    parts: List[str] = []
    for ch in text.replace("\r\n", "\n"):
        if ch in _SENDKEYS_SPECIAL:
            parts.append("{" + ch + "}")
        elif ch == "\n":
            parts.append("{ENTER}")
        else:
            parts.append(ch)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Hotkey parsing
# ---------------------------------------------------------------------------

#: SendKeys modifier markers → neutral modifier names.
MODIFIER_MARKERS: Dict[str, str] = {
    "^": "ctrl",
    "+": "shift",
    "%": "alt",
}


def parse_hotkey(spec: str) -> Tuple[List[str], str]:
    """Split a SendKeys descriptor into ``(modifiers, key)``.

    Leading modifier markers are collected (duplicates collapse); the
    remainder is the key.  Braces around a special key are removed and
    ``~`` maps to ``ENTER``.  A descriptor made only of markers keeps its
    last character as the key, so ``"^+"`` means Ctrl + ``+``.

    >>> parse_hotkey("^+{ESC}")
    (['ctrl', 'shift'], 'ESC')
    """
    modifiers: List[str] = []
    pos = 0
    while pos < len(spec) - 1 and spec[pos] in MODIFIER_MARKERS:
        name = MODIFIER_MARKERS[spec[pos]]
        if name not in modifiers:
            modifiers.append(name)
        pos += 1

    key = spec[pos:]
    if len(key) > 2 and key.startswith("{") and key.endswith("}"):
        key = key[1:-1]
    elif key == "~":
        key = "ENTER"
    return modifiers, key


# ---------------------------------------------------------------------------
# PlatformExecutor
# ---------------------------------------------------------------------------


class PlatformExecutor(abc.ABC):
    """Abstract OS capability consumed by the action-tree interpreter.

    All operations are coroutines.  :meth:`send_hotkey` and
    :meth:`type_text` are best effort: an unrecognised key is logged,
    not raised.  :meth:`open` raises :class:`CommandExecutionError` when
    the launch fails.  :meth:`browse_file` never raises; cancellation
    or any error yields ``""``.
    """

    #: Short label used in log messages.
    name: ClassVar[str] = "abstract"

    @abc.abstractmethod
    async def send_hotkey(self, spec: str) -> None:
        """Inject the key combination described by *spec*."""

    @abc.abstractmethod
    async def type_text(self, text: str) -> None:
        """Inject *text* as literal keystrokes."""

    @abc.abstractmethod
    async def open(self, target: str) -> None:
        """Open a URL or launch a file/program with its default handler."""

    @abc.abstractmethod
    async def browse_file(self) -> str:
        """Show a native file dialog and return the chosen path or ``""``."""

    # ---- process helpers ---------------------------------------------

    async def _run_process(self, *argv: str) -> Tuple[int, str, str]:
        """Run *argv* without a shell and return
        ``(returncode, stdout, stderr)``."""
        logger.debug("%s executor spawning %s", self.name, argv[0])
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        return (
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def _run_best_effort(self, what: str, *argv: str) -> None:
        """Run *argv*, logging (not raising) a non-zero exit."""
        code, _, stderr = await self._run_process(*argv)
        if code != 0:
            logger.warning(
                "%s %s exited with %d: %s",
                self.name, what, code, stderr.strip(),
            )

    async def _run_checked(self, what: str, *argv: str) -> None:
        """Run *argv* and raise :class:`CommandExecutionError` on a
        non-zero exit."""
        code, _, stderr = await self._run_process(*argv)
        if code != 0:
            raise CommandExecutionError(
                f"{self.name} {what} failed with exit code {code}: "
                f"{stderr.strip()}"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------

_PS_FORMS = "Add-Type -AssemblyName System.Windows.Forms"


class WindowsExecutor(PlatformExecutor):
    """PowerShell-based executor for Windows."""

    name = "windows"

    #: Base PowerShell invocation (no profile, script follows).
    POWERSHELL: ClassVar[Tuple[str, ...]] = (
        "powershell", "-NoProfile", "-NonInteractive", "-Command",
    )

    def _sendkeys_script(self, keys: str) -> str:
        return (
            f"{_PS_FORMS}; "
            f"[System.Windows.Forms.SendKeys]::SendWait({quote_powershell(keys)})"
        )

    async def send_hotkey(self, spec: str) -> None:
        # The descriptor already is SendKeys notation.
        await self._run_best_effort(
            "hotkey", *self.POWERSHELL, self._sendkeys_script(spec)
        )

    async def type_text(self, text: str) -> None:
        await self._run_best_effort(
            "text",
            *self.POWERSHELL,
            self._sendkeys_script(escape_sendkeys_text(text)),
        )

    async def open(self, target: str) -> None:
        await self._run_checked(
            "open",
            *self.POWERSHELL,
            f"Start-Process -FilePath {quote_powershell(target)}",
        )

    async def browse_file(self) -> str:
        script = (
            f"{_PS_FORMS}; "
            "$f = New-Object System.Windows.Forms.OpenFileDialog; "
            "$f.Filter = 'All Files (*.*)|*.*'; "
            "if ($f.ShowDialog() -eq 'OK') { $f.FileName }"
        )
        return await _browse(
            self, "powershell", "-NoProfile", "-STA", "-Command", script
        )


# ---------------------------------------------------------------------------
# macOS
# ---------------------------------------------------------------------------

#: Neutral modifier → AppleScript ``using`` clause term.
_MAC_MODIFIERS: Dict[str, str] = {
    "ctrl": "control down",
    "shift": "shift down",
    "alt": "command down",
}

#: Special key names → AppleScript ``key code`` numbers.
MAC_KEY_CODES: Dict[str, int] = {
    "ENTER": 36,
    "RETURN": 36,
    "TAB": 48,
    "SPACE": 49,
    "BACKSPACE": 51,
    "BS": 51,
    "BKSP": 51,
    "ESC": 53,
    "ESCAPE": 53,
    "DELETE": 117,
    "DEL": 117,
    "HOME": 115,
    "END": 119,
    "PGUP": 116,
    "PGDN": 121,
    "LEFT": 123,
    "RIGHT": 124,
    "DOWN": 125,
    "UP": 126,
    "F1": 122,
    "F2": 120,
    "F3": 99,
    "F4": 118,
    "F5": 96,
    "F6": 97,
    "F7": 98,
    "F8": 100,
    "F9": 101,
    "F10": 109,
    "F11": 103,
    "F12": 111,
}


def applescript_for_hotkey(spec: str) -> str:
    """Build the ``System Events`` statement that presses *spec*."""
    modifiers, key = parse_hotkey(spec)
    using = [_MAC_MODIFIERS[m] for m in modifiers if m in _MAC_MODIFIERS]
    using_clause = f" using {{{', '.join(using)}}}" if using else ""

    code = MAC_KEY_CODES.get(key.upper())
    if code is not None:
        action = f"key code {code}"
    else:
        if len(key) > 1:
            logger.debug("Unknown key name %r, typing it literally", key)
        action = f"keystroke {quote_applescript(key.lower())}"
    return f'tell application "System Events" to {action}{using_clause}'


class MacExecutor(PlatformExecutor):
    """AppleScript-based executor for macOS."""

    name = "macos"

    async def send_hotkey(self, spec: str) -> None:
        await self._run_best_effort(
            "hotkey", "osascript", "-e", applescript_for_hotkey(spec)
        )

    async def type_text(self, text: str) -> None:
        script = (
            'tell application "System Events" to keystroke '
            f"{quote_applescript(text)}"
        )
        await self._run_best_effort("text", "osascript", "-e", script)

    async def open(self, target: str) -> None:
        # open(1) would parse a leading dash as one of its options.
        if target.startswith("-"):
            raise CommandExecutionError(
                f"Refusing to open {target!r}: looks like an option"
            )
        await self._run_checked("open", "open", target)

    async def browse_file(self) -> str:
        return await _browse(
            self, "osascript", "-e", "POSIX path of (choose file)"
        )


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


class LoggingExecutor(PlatformExecutor):
    """Executor that only logs what it would do."""

    name = "dry-run"

    async def send_hotkey(self, spec: str) -> None:
        logger.info("[dry-run] hotkey %r", spec)

    async def type_text(self, text: str) -> None:
        logger.info("[dry-run] type %r", text)

    async def open(self, target: str) -> None:
        logger.info("[dry-run] open %r", target)

    async def browse_file(self) -> str:
        logger.info("[dry-run] browse file, returning empty path")
        return ""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _browse(executor: PlatformExecutor, *argv: str) -> str:
    """Run a file dialog process; cancellation and errors yield ``""``."""
    try:
        code, stdout, stderr = await executor._run_process(*argv)
    except OSError as exc:
        logger.warning("%s file dialog unavailable: %s", executor.name, exc)
        return ""
    if code != 0:
        # The dialog tools exit non-zero when the user cancels.
        logger.debug(
            "%s file dialog closed without selection (%d): %s",
            executor.name, code, stderr.strip(),
        )
        return ""
    return stdout.strip()


def select_executor(system: Optional[str] = None) -> PlatformExecutor:
    """Return the executor variant for *system*.

    *system* defaults to :func:`platform.system`.  ``"Windows"`` selects
    :class:`WindowsExecutor`; everything else :class:`MacExecutor`.
    """
    system = system or platform.system()
    executor: PlatformExecutor
    if system == "Windows":
        executor = WindowsExecutor()
    else:
        executor = MacExecutor()
    logger.info("Using %s executor for platform %s", executor.name, system)
    return executor
