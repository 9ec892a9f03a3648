"""pyActionSwitch - two-state action switch with hold override."""

__version__ = "0.1.0"

from pyActionSwitch.enums import (  # noqa: F401 – re-export for convenience
    CommandType,
    PressState,
    ToggleState,
)

from pyActionSwitch.command import (  # noqa: F401
    ActionTree,
    Command,
    SwitchSettings,
    parse_action_tree,
)

from pyActionSwitch.executor import (  # noqa: F401
    CommandExecutionError,
    LoggingExecutor,
    MacExecutor,
    PlatformExecutor,
    WindowsExecutor,
    select_executor,
)

from pyActionSwitch.interpreter import (  # noqa: F401
    ActionTreeInterpreter,
    parse_delay,
)

from pyActionSwitch.host import LocalSwitchHost, SwitchHost  # noqa: F401

from pyActionSwitch.classifier import (  # noqa: F401
    HOLD_THRESHOLD,
    ControlMachine,
    PressClassifier,
)

from pyActionSwitch.events import (  # noqa: F401
    BrowseFileRequest,
    ControlRemoved,
    PressDown,
    PressUp,
    UnknownInspectorMessage,
    parse_inspector_message,
)

from pyActionSwitch.action_switch import ActionSwitch  # noqa: F401

from pyActionSwitch.persistence import StateStore  # noqa: F401

from pyActionSwitch.config import load_settings_file  # noqa: F401
