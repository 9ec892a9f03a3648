"""Loading switch settings from a YAML file.

Hosts that do not manage settings themselves (scripts, tests, the
examples) can describe their controls in YAML::

    controls:
      key-1:
        tree0:
          - {type: hotkey, value: "^c"}
        tree1:
          - {type: url, value: "https://example.com"}
        treeHold:
          - {type: text, value: "held"}

The ``controls`` wrapper is optional; a bare mapping of control IDs is
accepted as well.
"""

from __future__ import annotations

import collections.abc
import logging
from pathlib import Path
from typing import Dict, Union

import yaml

from pyActionSwitch.command import SwitchSettings

logger = logging.getLogger(__name__)


def load_settings_file(path: Union[str, Path]) -> Dict[str, SwitchSettings]:
    """Read *path* and return ``{control_id: SwitchSettings}``.

    Raises
    ------
    OSError
        If the file cannot be read.
    ValueError
        If the file is not valid YAML or not a mapping of controls.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, collections.abc.Mapping):
        raise ValueError(
            f"Expected a mapping at top level in {path}, "
            f"got {type(data).__name__}"
        )
    controls = data.get("controls", data)
    if not isinstance(controls, collections.abc.Mapping):
        raise ValueError(f"'controls' in {path} must be a mapping")

    result: Dict[str, SwitchSettings] = {}
    for control_id, raw in controls.items():
        result[str(control_id)] = SwitchSettings.from_dict(raw)
    logger.info("Loaded settings for %d control(s) from %s",
                len(result), path)
    return result
