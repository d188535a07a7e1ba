from .base import (  # noqa: F401
    Component,
    ComponentClass,
    ComponentType,
    StampData,
    TerminalType,
)
from .passive import resistor, inductor, capacitor  # noqa: F401
from .sources import voltage_source, current_source  # noqa: F401
from . import registry  # noqa: F401
