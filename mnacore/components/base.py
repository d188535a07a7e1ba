from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from mnacore.solver import SolveResult

Array = np.ndarray
Value = Union[float, complex]


class ComponentType(Enum):
    RESISTOR = "R"
    INDUCTOR = "L"
    CAPACITOR = "C"
    VOLTAGE_SOURCE = "V"
    CURRENT_SOURCE = "J"


class ComponentClass(Enum):
    PASSIVE = "passive"
    ACTIVE = "active"


class TerminalType(Enum):
    INPUT = "IN"
    OUTPUT = "OUT"


ACTIVE_TYPES = frozenset({ComponentType.VOLTAGE_SOURCE, ComponentType.CURRENT_SOURCE})


@dataclass
class StampData:
    """
    Shared view of the MNA system during stamping.

    Attributes:
        A:   System matrix (complex, square).
        z:   Excitation vector.
        node_index: Mapping node handle -> row/column index (ground excluded).
        branch_index: Mapping component name -> branch-current column.
        omega: Angular frequency in rad/s (0 for DC).
    """
    A: Array
    z: Array
    node_index: Dict[int, int]
    branch_index: Dict[str, int]
    omega: float

    def node(self, handle: Optional[int]) -> Optional[int]:
        if handle is None:
            return None
        return self.node_index.get(handle)

    def branch(self, name: str) -> int:
        if name not in self.branch_index:
            raise RuntimeError(f"Component '{name}' has no branch-current unknown.")
        return self.branch_index[name]


def stamp_series_admittance(data: StampData, n_in: Optional[int], n_out: Optional[int], admittance: complex) -> None:
    if admittance == 0:
        return
    i = data.node(n_in)
    o = data.node(n_out)
    if i is not None:
        data.A[i, i] += admittance
    if o is not None:
        data.A[o, o] += admittance
    if i is not None and o is not None:
        data.A[i, o] -= admittance
        data.A[o, i] -= admittance


def stamp_current_source(data: StampData, n_in: Optional[int], n_out: Optional[int], current: complex) -> None:
    """
    The source draws `current` out of n_in and delivers it into n_out.
    """
    i = data.node(n_in)
    o = data.node(n_out)
    if i is not None:
        data.z[i] -= current
    if o is not None:
        data.z[o] += current


def stamp_branch(data: StampData, k: int, n_in: Optional[int], n_out: Optional[int], voltage: complex) -> None:
    """
    Couple branch-current column k to its terminals and fix V(in) - V(out).
    """
    i = data.node(n_in)
    o = data.node(n_out)
    if i is not None:
        data.A[i, k] += 1.0
        data.A[k, i] += 1.0
    if o is not None:
        data.A[o, k] -= 1.0
        data.A[k, o] -= 1.0
    data.z[k] = voltage


@dataclass(eq=False)
class Component:
    """
    A two-terminal circuit element.

    Components are a tagged variant: `type` selects the admittance, stamp and
    current rules from :mod:`mnacore.components.registry`. Terminals hold node
    handles issued by the owning :class:`~mnacore.circuit.Circuit`, never the
    nodes themselves.

    Attributes:
        name: Unique name within the circuit.
        type: Element kind.
        value: Ohms, henrys, farads, volts or amperes depending on `type`.
            Source values may be complex phasors.
        input_node: Handle bound to the input terminal, or None.
        output_node: Handle bound to the output terminal, or None.
        current: Current from input to output through the element, filled in
            by :meth:`MNASolver.set_currents`.
    """
    name: str
    type: ComponentType
    value: Value
    input_node: Optional[int] = None
    output_node: Optional[int] = None
    current: Optional[complex] = None

    @property
    def klass(self) -> ComponentClass:
        return ComponentClass.ACTIVE if self.type in ACTIVE_TYPES else ComponentClass.PASSIVE

    @property
    def is_passive(self) -> bool:
        return self.klass is ComponentClass.PASSIVE

    def get_value(self) -> Value:
        return self.value

    def set_value(self, value: Value) -> None:
        self.value = value

    def get_type(self) -> ComponentType:
        return self.type

    def get_class(self) -> ComponentClass:
        return self.klass

    def connect_node_to_terminal(self, terminal: TerminalType, handle: Optional[int]) -> None:
        if terminal is TerminalType.INPUT:
            self.input_node = handle
        elif terminal is TerminalType.OUTPUT:
            self.output_node = handle
        else:
            raise ValueError(f"Unknown terminal {terminal!r}.")

    def get_terminal_node(self, terminal: TerminalType) -> Optional[int]:
        if terminal is TerminalType.INPUT:
            return self.input_node
        if terminal is TerminalType.OUTPUT:
            return self.output_node
        raise ValueError(f"Unknown terminal {terminal!r}.")

    def terminals(self) -> tuple[Optional[int], Optional[int]]:
        return self.input_node, self.output_node

    def references(self, handle: int) -> bool:
        return handle in (self.input_node, self.output_node)

    @property
    def is_bound(self) -> bool:
        return self.input_node is not None and self.output_node is not None

    @property
    def is_degenerate(self) -> bool:
        """True when both terminals are bound to the same node."""
        return self.is_bound and self.input_node == self.output_node

    def get_admittance(self, omega: float) -> complex:
        from .registry import admittance

        return admittance(self, omega)

    def branch_current(self, result: SolveResult) -> complex:
        from .registry import current

        return current(self, result)

    def __str__(self) -> str:
        return f"{self.type.value} {self.name} {self.value}"
