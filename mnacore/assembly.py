"""
MNA matrix assembly.

`construct_matrices` is a pure function of (nodes, components, omega): it
assigns unknown indices and stamps every component into a fresh A, z pair.
Unknowns are ordered as

    [non-ground node voltages | voltage-source branch currents | inductor branch currents]

At DC every inductor is a 0 V source, so its branch current is indexed with
the voltage sources and the inductor block is empty.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Tuple
import logging
import numpy as np
from .components.base import Component, ComponentType, StampData
from .components import registry

logger = logging.getLogger(__name__)

Array = np.ndarray


class NodeIndex(dict):
    """
    Node name -> unknown column, also carrying the handles of the nodes.

    Components address their terminals by handle, so the solver reads
    `handles` (indexed handle -> name) and `ground_handles` to turn terminal
    handles into voltages.
    """

    def __init__(self, *args, handles=None, ground_handles=(), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.handles: Dict[int, str] = dict(handles or {})
        self.ground_handles: FrozenSet[int] = frozenset(ground_handles)

    def copy(self) -> "NodeIndex":
        return NodeIndex(self, handles=self.handles, ground_handles=self.ground_handles)


@dataclass
class MNASystem:
    """
    Assembled linear system A x = z plus the maps needed to read x back.

    Attributes:
        A: Complex square matrix.
        z: Complex excitation vector.
        omega: Angular frequency the system was built for.
        node_index: Node name -> unknown column (ground excluded).
        vsource_index: Voltage source (and DC inductor) name -> unknown column.
        inductor_index: Inductor name -> unknown column (omega != 0 only).
        node_handles: Node handle -> node name for every indexed node.
        ground_names: Names of the reference nodes.
        ground_handles: Handles of the reference nodes.
    """
    A: Array
    z: Array
    omega: float
    node_index: NodeIndex = field(default_factory=NodeIndex)
    vsource_index: Dict[str, int] = field(default_factory=dict)
    inductor_index: Dict[str, int] = field(default_factory=dict)
    node_handles: Dict[int, str] = field(default_factory=dict)
    ground_names: Tuple[str, ...] = ()
    ground_handles: FrozenSet[int] = frozenset()

    @property
    def size(self) -> int:
        return int(self.A.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.size == 0


def construct_matrices(nodes: Iterable, components: Iterable[Component], omega: float) -> MNASystem:
    """
    Build the MNA system for the given nodes and components.

    Args:
        nodes: Nodes of the circuit in insertion order. Ground nodes are the
            reference and get no unknown.
        components: Components in list order. Their terminals must be bound
            to handles of `nodes`.
        omega: Angular frequency in rad/s (0 for DC).

    Returns:
        The assembled MNASystem.
    """
    nodes = list(nodes)
    components = list(components)

    node_index: Dict[str, int] = {}
    handle_index: Dict[int, int] = {}
    node_handles: Dict[int, str] = {}
    grounds: List[str] = []
    ground_handles: List[int] = []
    for node in nodes:
        if node.is_ground:
            grounds.append(node.name)
            ground_handles.append(node.handle)
            continue
        idx = len(node_index)
        node_index[node.name] = idx
        handle_index[node.handle] = idx
        node_handles[node.handle] = node.name

    cursor = len(node_index)
    vsource_index: Dict[str, int] = {}
    inductor_index: Dict[str, int] = {}
    for comp in components:
        if comp.type is ComponentType.VOLTAGE_SOURCE:
            vsource_index[comp.name] = cursor
            cursor += 1
    inductors = [c for c in components if c.type is ComponentType.INDUCTOR]
    target = vsource_index if omega == 0 else inductor_index
    for comp in inductors:
        target[comp.name] = cursor
        cursor += 1

    A = np.zeros((cursor, cursor), dtype=complex)
    z = np.zeros(cursor, dtype=complex)
    data = StampData(
        A=A,
        z=z,
        node_index=handle_index,
        branch_index={**vsource_index, **inductor_index},
        omega=omega,
    )
    for comp in components:
        registry.stamp(comp, data)

    logger.debug(
        f"Assembled MNA system of size {cursor} at omega={omega}: "
        f"{len(node_index)} nodes, {len(vsource_index)} voltage branches, {len(inductor_index)} inductor branches."
    )
    return MNASystem(
        A=A,
        z=z,
        omega=omega,
        node_index=NodeIndex(node_index, handles=node_handles, ground_handles=ground_handles),
        vsource_index=vsource_index,
        inductor_index=inductor_index,
        node_handles=node_handles,
        ground_names=tuple(grounds),
        ground_handles=frozenset(ground_handles),
    )


def reciprocal_condition(A: Array) -> float:
    """
    Reciprocal 2-norm condition number of A; 0.0 for an exactly singular matrix.
    """
    if A.size == 0 or not np.all(np.isfinite(A)):
        return 0.0
    s = np.linalg.svd(A, compute_uv=False)
    if s[0] == 0:
        return 0.0
    return float(s[-1] / s[0])
