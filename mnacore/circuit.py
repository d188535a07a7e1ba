from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union
import logging
import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from .assembly import MNASystem, NodeIndex, construct_matrices, reciprocal_condition
from .components.base import Component, TerminalType
from .components import registry
from .config import DEFAULT_CONFIG, SolverConfig
from .errors import Failure, FailureReason, Outcome

logger = logging.getLogger(__name__)


class NodeType(Enum):
    NORMAL = "normal"
    GROUND = "ground"


@dataclass(eq=False)
class Node:
    """
    A connection point of the circuit.

    Nodes live in the circuit's arena and are addressed by their integer
    handle. Only the owning Circuit writes `type` and `index`.

    Attributes:
        name: Unique identifier within the circuit.
        handle: Arena handle, never reused after the node is removed.
        type: NORMAL or GROUND. Ground nodes are the 0 V reference.
        index: Unknown column assigned by the last matrix construction.
        merged: Names of the nodes folded into this one by merge_nodes.
    """
    name: str
    handle: int
    type: NodeType = NodeType.NORMAL
    index: Optional[int] = None
    merged: List[str] = field(default_factory=list)

    @property
    def is_ground(self) -> bool:
        return self.type is NodeType.GROUND


ComponentRef = Union[Component, str]


@dataclass
class Circuit:
    """
    Circuit graph: a node arena plus an ordered component list.

    Typical use mirrors a "simulate" request::

        circuit.set_omega(w)
        circuit.remove_unnecessary_nodes()
        circuit.construct_matrices()
        if circuit.solveable():
            solver.solve_steady(circuit.get_a_matrix(), ...)

    The assembled system is scratch state. Any topology or frequency change
    drops it, and construct_matrices must be run again.
    """

    omega: float = 0.0
    config: SolverConfig = DEFAULT_CONFIG
    _nodes: Dict[int, Node] = field(default_factory=dict, init=False, repr=False)
    _names: Dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _components: List[Component] = field(default_factory=list, init=False, repr=False)
    _next_handle: int = field(default=0, init=False, repr=False)
    _auto_names: int = field(default=0, init=False, repr=False)
    system: Optional[MNASystem] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.set_omega(self.omega)

    # Nodes

    def add_node(self, name: Optional[str] = None) -> int:
        """
        Return the handle of node `name`, creating it if needed.

        Without a name a fresh one (N001, N002, ...) is generated.
        """
        if name is None:
            name = self._generate_name()
        elif name in self._names:
            return self._names[name]
        handle = self._next_handle
        self._next_handle += 1
        self._nodes[handle] = Node(name=name, handle=handle)
        self._names[name] = handle
        self._invalidate()
        return handle

    def _generate_name(self) -> str:
        while True:
            self._auto_names += 1
            name = f"{self.config.node_name_prefix}{self._auto_names:03d}"
            if name not in self._names:
                return name

    def add_ground(self, name: Optional[str] = None) -> int:
        handle = self.add_node(name)
        self.set_ground(handle)
        return handle

    def node(self, handle: int) -> Node:
        if handle not in self._nodes:
            raise KeyError(f"Unknown node handle {handle}.")
        return self._nodes[handle]

    def node_by_name(self, name: str) -> Node:
        if name not in self._names:
            raise KeyError(f"Unknown node '{name}'.")
        return self._nodes[self._names[name]]

    def has_node(self, name: str) -> bool:
        return name in self._names

    def _forget_names(self, handle: int) -> None:
        for name in [n for n, h in self._names.items() if h == handle]:
            del self._names[name]

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def set_ground(self, handle: int) -> None:
        self.node(handle).type = NodeType.GROUND
        self._invalidate()

    def clear_ground(self, handle: int) -> None:
        self.node(handle).type = NodeType.NORMAL
        self._invalidate()

    def remove_node(self, handle: int) -> None:
        """
        Remove a node; terminals bound to it become unbound.
        """
        node = self.node(handle)
        for comp in self._components:
            if comp.input_node == handle:
                comp.input_node = None
            if comp.output_node == handle:
                comp.output_node = None
        del self._nodes[handle]
        self._forget_names(handle)
        self._invalidate()

    def merge_nodes(self, keep: int, drop: int) -> int:
        """
        Fold node `drop` into node `keep` and return `keep`.

        Every terminal bound to `drop` is re-bound to `keep`. The merged node
        is ground if either of the two was. The name of `drop` stays an alias:
        add_node and node_by_name resolve it to `keep`.
        """
        if keep == drop:
            return keep
        kept = self.node(keep)
        dropped = self.node(drop)
        for comp in self._components:
            if comp.input_node == drop:
                comp.input_node = keep
            if comp.output_node == drop:
                comp.output_node = keep
        if dropped.is_ground:
            kept.type = NodeType.GROUND
        kept.merged.append(dropped.name)
        kept.merged.extend(dropped.merged)
        del self._nodes[drop]
        for name, target in self._names.items():
            if target == drop:
                self._names[name] = keep
        self._invalidate()
        logger.debug(f"Merged node '{dropped.name}' into '{kept.name}'.")
        return keep

    def remove_unnecessary_nodes(self) -> List[str]:
        """
        Prune nodes that no component terminal references.

        Ground nodes are kept. Returns the names of the removed nodes.
        """
        used = set()
        for comp in self._components:
            used.update(h for h in comp.terminals() if h is not None)
        removed = [
            node for handle, node in self._nodes.items()
            if handle not in used and not node.is_ground
        ]
        for node in removed:
            del self._nodes[node.handle]
            self._forget_names(node.handle)
        if removed:
            self._invalidate()
            logger.debug(f"Removed unused nodes: {', '.join(n.name for n in removed)}.")
        return [n.name for n in removed]

    # Components

    @property
    def components(self) -> List[Component]:
        return list(self._components)

    def get_components(self) -> List[Component]:
        return self.components

    def add_component(self, component: Component) -> Component:
        if any(c.name == component.name for c in self._components):
            raise ValueError(f"Component '{component.name}' already exists.")
        for handle in component.terminals():
            if handle is not None:
                self.node(handle)
        self._components.append(component)
        self._invalidate()
        return component

    def get_component(self, name: str) -> Component:
        for comp in self._components:
            if comp.name == name:
                return comp
        raise KeyError(f"Component '{name}' not present in the circuit.")

    def remove_component(self, component: ComponentRef) -> Component:
        comp = self.get_component(component if isinstance(component, str) else component.name)
        self._components.remove(comp)
        self._invalidate()
        return comp

    def connect(self, component: ComponentRef, terminal: TerminalType, handle: Optional[int]) -> None:
        comp = self.get_component(component if isinstance(component, str) else component.name)
        if handle is not None:
            self.node(handle)
        comp.connect_node_to_terminal(terminal, handle)
        self._invalidate()

    def terminal_names(self, component: Component) -> tuple[Optional[str], Optional[str]]:
        return tuple(
            None if h is None or h not in self._nodes else self._nodes[h].name
            for h in component.terminals()
        )

    # Frequency

    def set_omega(self, omega: float) -> None:
        omega = float(omega)
        if not np.isfinite(omega) or omega < 0:
            raise ValueError(f"Angular frequency must be finite and non-negative, got {omega}.")
        self.omega = omega
        self._invalidate()

    def get_omega(self) -> float:
        return self.omega

    # Topology queries

    def islands(self) -> List[List[int]]:
        """
        Connected groups of node handles, linked through component terminals.

        Islands are listed in order of their first node.
        """
        handles = list(self._nodes)
        if not handles:
            return []
        position = {h: i for i, h in enumerate(handles)}
        rows, cols = [], []
        for comp in self._components:
            a, b = comp.terminals()
            if a in position and b in position:
                rows.append(position[a])
                cols.append(position[b])
        n = len(handles)
        graph = coo_matrix(
            (np.ones(len(rows)), (np.array(rows, dtype=int), np.array(cols, dtype=int))), shape=(n, n)
        )
        _, labels = connected_components(graph, directed=False)
        groups: Dict[int, List[int]] = {}
        for h, label in zip(handles, labels):
            groups.setdefault(int(label), []).append(h)
        return list(groups.values())

    def has_ground(self, island: Optional[Sequence[int]] = None) -> bool:
        """
        True if any node (or any node of `island`) is a ground node.
        """
        handles = self._nodes if island is None else island
        return any(self._nodes[h].is_ground for h in handles if h in self._nodes)

    def diagnose(self) -> Optional[Failure]:
        """
        Structural checks run before assembly; None when the circuit can be assembled.
        """
        if not self._components:
            return Failure(FailureReason.EMPTY_CIRCUIT, "Circuit has no components.")
        for comp in self._components:
            if not comp.is_bound or any(h not in self._nodes for h in comp.terminals()):
                return Failure(
                    FailureReason.UNBOUND_TERMINAL,
                    f"Component '{comp.name}' has a terminal not connected to any node.",
                    comp.name,
                )
            if comp.is_degenerate:
                return Failure(
                    FailureReason.DEGENERATE_COMPONENT,
                    f"Component '{comp.name}' has both terminals on node '{self._nodes[comp.input_node].name}'.",
                    comp.name,
                )
            problem = registry.check(comp)
            if problem is not None:
                return Failure(FailureReason.INVALID_VALUE, problem, comp.name)
        if not self.has_ground():
            return Failure(FailureReason.NO_GROUND, "Add ground before simulating!")
        for island in self.islands():
            if not self.has_ground(island):
                names = ", ".join(self._nodes[h].name for h in island)
                return Failure(
                    FailureReason.UNGROUNDED_ISLAND,
                    f"Nodes without a path to ground: {names}.",
                    self._nodes[island[0]].name,
                )
        return None

    # Assembly

    def construct_matrices(self) -> Outcome[MNASystem]:
        """
        Assign unknown indices and stamp A and z.

        Refused (and the previous system discarded) when diagnose() fails.
        """
        self._invalidate()
        failure = self.diagnose()
        if failure is not None:
            logger.warning(f"Matrix construction refused: {failure.message}")
            return Outcome(failure=failure)
        system = construct_matrices(self._nodes.values(), self._components, self.omega)
        for node in self._nodes.values():
            node.index = system.node_index.get(node.name)
        self.system = system
        return Outcome.success(system)

    def check_solveable(self) -> Optional[Failure]:
        if self.system is None:
            failure = self.diagnose()
            if failure is not None:
                return failure
            return Failure(FailureReason.NOT_ASSEMBLED, "Matrices have not been constructed.")
        if self.system.is_empty:
            return Failure(FailureReason.EMPTY_CIRCUIT, "The system has no unknowns.")
        if not self.has_ground():
            return Failure(FailureReason.NO_GROUND, "Add ground before simulating!")
        rcond = reciprocal_condition(self.system.A)
        if rcond < self.config.singular_rcond:
            return Failure(
                FailureReason.SINGULAR_MATRIX,
                f"The MNA matrix is singular (reciprocal condition {rcond:.3g}).",
            )
        return None

    def solveable(self) -> bool:
        failure = self.check_solveable()
        if failure is not None:
            logger.info(f"Circuit not solveable: {failure.message}")
        return failure is None

    def _assembled(self) -> MNASystem:
        if self.system is None:
            raise RuntimeError("Matrices have not been constructed; call construct_matrices() first.")
        return self.system

    def get_a_matrix(self) -> np.ndarray:
        return self._assembled().A

    def get_z_matrix(self) -> np.ndarray:
        return self._assembled().z

    def get_node_indexes(self) -> NodeIndex:
        return self._assembled().node_index.copy()

    def get_voltage_source_indexes(self) -> Dict[str, int]:
        return dict(self._assembled().vsource_index)

    def get_inductor_indexes(self) -> Dict[str, int]:
        return dict(self._assembled().inductor_index)

    def get_node_handles(self) -> Dict[int, str]:
        return dict(self._assembled().node_handles)

    def _invalidate(self) -> None:
        self.system = None
        for node in self._nodes.values():
            node.index = None
