"""YAML-based persistence for switch controls.

Stores the externally owned part of each control, its toggle state and
its :class:`~pyActionSwitch.command.SwitchSettings`, in a
human-readable YAML file::

    controls:
      deck-1/key-3:
        state: 1
        settings:
          tree0:
          - type: hotkey
            value: ^c
          tree1: []
          treeHold: []

Press history is never stored.

Write strategy:
  1. Copy an existing file to ``<file>.bak``.
  2. Dump into ``<file>.tmp``.
  3. ``os.replace`` the temporary file onto the target.

Load strategy: primary file, then the backup, then ``None``.
"""

from __future__ import annotations

import collections.abc
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

#: Type alias for the persisted document.
StateDocument = Dict[str, Any]

_BACKUP_SUFFIX = ".bak"
_TMP_SUFFIX = ".tmp"

#: Top-level key holding the per-control records.
CONTROLS_KEY = "controls"


class StateStore:
    """YAML-backed store for per-control toggle state and settings.

    Parameters
    ----------
    path:
        Path to the primary YAML file.  Parent directories are created
        on the first :meth:`save`.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._backup_path = self._path.with_suffix(
            self._path.suffix + _BACKUP_SUFFIX
        )
        self._tmp_path = self._path.with_suffix(
            self._path.suffix + _TMP_SUFFIX
        )

    @property
    def path(self) -> Path:
        """The primary YAML file path."""
        return self._path

    @property
    def backup_path(self) -> Path:
        """The backup file path (``<path>.bak``)."""
        return self._backup_path

    # ---- save ---------------------------------------------------------

    def save(self, controls: Dict[str, Dict[str, Any]]) -> None:
        """Persist the per-control records.

        Raises
        ------
        OSError
            If the file cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)

        if self._path.is_file():
            try:
                shutil.copy2(str(self._path), str(self._backup_path))
            except OSError:
                logger.warning(
                    "Failed to create backup %s, continuing anyway.",
                    self._backup_path,
                )

        document: StateDocument = {CONTROLS_KEY: controls}
        try:
            with open(self._tmp_path, "w", encoding="utf-8") as fh:
                yaml.safe_dump(
                    document,
                    fh,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                )
            os.replace(str(self._tmp_path), str(self._path))
        except OSError:
            logger.error("Failed to write switch state to %s", self._path)
            raise

        logger.debug(
            "Saved %d control(s) to %s", len(controls), self._path
        )

    # ---- load ---------------------------------------------------------

    def load(self) -> Optional[Dict[str, Dict[str, Any]]]:
        """Return the persisted per-control records, or ``None`` when
        neither the primary file nor the backup is usable."""
        controls = self._try_load(self._path)
        if controls is not None:
            return controls

        controls = self._try_load(self._backup_path)
        if controls is not None:
            logger.warning(
                "Recovered switch state from backup %s", self._backup_path
            )
            return controls

        logger.info("No persisted switch state at %s", self._path)
        return None

    def delete(self) -> None:
        """Remove the primary, backup and temporary files."""
        for p in (self._path, self._backup_path, self._tmp_path):
            try:
                p.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove %s", p)

    @staticmethod
    def _try_load(path: Path) -> Optional[Dict[str, Dict[str, Any]]]:
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to load %s: %s", path, exc)
            return None

        if not isinstance(data, collections.abc.Mapping):
            logger.warning(
                "Expected a mapping at top level in %s, got %s",
                path,
                type(data).__name__,
            )
            return None
        controls = data.get(CONTROLS_KEY) or {}
        if not isinstance(controls, collections.abc.Mapping):
            logger.warning("Ignoring malformed %r section in %s",
                           CONTROLS_KEY, path)
            return None
        return {
            str(control_id): dict(record)
            for control_id, record in controls.items()
            if isinstance(record, collections.abc.Mapping)
        }

    def __repr__(self) -> str:
        return f"StateStore({str(self._path)!r})"
