"""
Steady-state (DC/AC) circuit solver based on Modified Nodal Analysis.

A Circuit holds a node arena and an ordered list of two-terminal components
(resistors, inductors, capacitors, voltage and current sources). It assembles
the complex MNA system for a given angular frequency; MNASolver solves it and
reports node voltages and branch currents.
"""

from .circuit import Circuit, Node, NodeType  # noqa: F401
from .assembly import MNASystem, construct_matrices  # noqa: F401
from .solver import MNASolver, SolveResult  # noqa: F401
from .simulate import simulate  # noqa: F401
from .config import SolverConfig, DEFAULT_CONFIG  # noqa: F401
from .errors import (  # noqa: F401
    CircuitError,
    Failure,
    FailureReason,
    NetlistError,
    Outcome,
    SingularSystemError,
    StructuralError,
)
from . import components  # noqa: F401
from . import netlist  # noqa: F401
from . import utils  # noqa: F401

__all__ = [
    "Circuit",
    "Node",
    "NodeType",
    "MNASystem",
    "construct_matrices",
    "MNASolver",
    "SolveResult",
    "simulate",
    "SolverConfig",
    "DEFAULT_CONFIG",
    "CircuitError",
    "Failure",
    "FailureReason",
    "NetlistError",
    "Outcome",
    "SingularSystemError",
    "StructuralError",
    "components",
    "netlist",
    "utils",
]
