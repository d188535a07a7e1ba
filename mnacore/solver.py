from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple
import logging
import warnings
import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve
from .assembly import reciprocal_condition
from .components.base import Component
from .components import registry
from .config import DEFAULT_CONFIG, SolverConfig
from .errors import FailureReason, Outcome
from .utils import polar

logger = logging.getLogger(__name__)


def _fmt(value: complex) -> str:
    # adding 0.0 turns a negative zero into 0.0
    return f"{value.real + 0.0:.6g}{value.imag + 0.0:+.6g}j"


@dataclass
class SolveResult:
    """
    Solution of one steady-state solve.

    Currents are phasors flowing through each element from its input
    terminal to its output terminal. A voltage source delivering power
    therefore reports a negative current.
    """
    omega: float
    x: np.ndarray
    node_voltages: Dict[str, complex]
    vsource_currents: Dict[str, complex]
    inductor_currents: Dict[str, complex]
    node_handles: Dict[int, str]
    ground_names: Tuple[str, ...] = ()
    ground_handles: FrozenSet[int] = frozenset()
    component_currents: Dict[str, complex] = field(default_factory=dict)
    components: Dict[str, Component] = field(default_factory=dict, repr=False)

    def node_voltage(self, node: str) -> complex:
        if node in self.ground_names:
            return 0.0 + 0.0j
        if node not in self.node_voltages:
            raise KeyError(f"Unknown node '{node}'.")
        return self.node_voltages[node]

    def voltage_at(self, handle: int) -> complex:
        """
        Voltage of the node with the given handle.

        Ground handles read 0 V. Any other handle the solve does not know
        about raises KeyError.
        """
        if handle in self.ground_handles:
            return 0.0 + 0.0j
        name = self.node_handles.get(handle)
        if name is None or name not in self.node_voltages:
            raise KeyError(f"Node handle {handle} is not part of the solved system.")
        return self.node_voltages[name]

    def branch_voltage(self, component: Component) -> complex:
        return self.voltage_at(component.input_node) - self.voltage_at(component.output_node)

    def branch_unknown(self, name: str) -> complex:
        if name in self.vsource_currents:
            return self.vsource_currents[name]
        if name in self.inductor_currents:
            return self.inductor_currents[name]
        raise KeyError(f"No branch-current unknown associated with '{name}'.")

    def branch_current(self, name: str) -> complex:
        if name not in self.component_currents:
            raise KeyError(f"No current recorded for component '{name}'.")
        return self.component_currents[name]

    def branch_current_polar(self, name: str) -> tuple[float, float]:
        return polar(self.branch_current(name))

    def branch_power(self, name: str) -> tuple[float, float, float]:
        """
        Complex power absorbed by a component as (P, Q, |S|).
        """
        if name not in self.components:
            raise KeyError(f"Component '{name}' not present in the result.")
        V = self.branch_voltage(self.components[name])
        I = self.branch_current(name)
        S = V * np.conj(I)
        return float(S.real), float(S.imag), float(abs(S))

    def listing(self) -> str:
        lines = ["node voltages"]
        lines += [f"{name} {_fmt(v)}" for name, v in self.node_voltages.items()]
        lines += ["", "voltage source currents"]
        lines += [f"{name} {_fmt(i)}" for name, i in self.vsource_currents.items()]
        if self.inductor_currents:
            lines += ["", "inductor currents"]
            lines += [f"{name} {_fmt(i)}" for name, i in self.inductor_currents.items()]
        if self.component_currents:
            lines += ["", "component currents"]
            lines += [f"{name} {_fmt(i)}" for name, i in self.component_currents.items()]
        return "\n".join(lines)


class MNASolver:
    """
    Solves an assembled MNA system and maps the solution back to names.

    The solver keeps the last result only; every solve_steady call replaces it.
    """

    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.result: Optional[SolveResult] = None

    def solve_steady(
        self,
        A: np.ndarray,
        z: np.ndarray,
        omega: float,
        node_index: Mapping[str, int],
        vsource_index: Mapping[str, int],
        inductor_index: Optional[Mapping[str, int]] = None,
        node_handles: Optional[Mapping[int, str]] = None,
        ground_names: Iterable[str] = (),
        ground_handles: Optional[Iterable[int]] = None,
    ) -> Outcome[SolveResult]:
        """
        Solve A x = z and populate node voltages and branch currents.

        Args:
            A, z: Assembled system.
            omega: Angular frequency the system was built for.
            node_index, vsource_index, inductor_index: Name -> unknown column.
            node_handles: Node handle -> name, needed by set_currents to read
                terminal voltages. Defaults to the handles carried by a
                NodeIndex from Circuit.get_node_indexes().
            ground_names: Reference node names, reported at 0 V.
            ground_handles: Reference node handles; defaults like node_handles.

        Returns:
            Outcome holding the SolveResult, or a SINGULAR_MATRIX /
            EMPTY_CIRCUIT failure. A failed solve clears the previous result.
        """
        self.result = None
        A = np.asarray(A, dtype=complex)
        z = np.asarray(z, dtype=complex)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValueError(f"A must be a square matrix, got shape {A.shape}.")
        if z.shape != (A.shape[0],):
            raise ValueError(f"z must have length {A.shape[0]}, got shape {z.shape}.")
        if A.shape[0] == 0:
            return Outcome.fail(FailureReason.EMPTY_CIRCUIT, "The system has no unknowns.")

        rcond = reciprocal_condition(A)
        logger.debug(f"Solving system of size {A.shape[0]} at omega={omega}, rcond={rcond:.3g}.")
        if rcond < self.config.singular_rcond:
            logger.warning(f"Refusing to solve a singular system (rcond={rcond:.3g}).")
            return Outcome.fail(
                FailureReason.SINGULAR_MATRIX,
                f"The MNA matrix is singular (reciprocal condition {rcond:.3g}).",
            )
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", LinAlgWarning)
                x = lu_solve(lu_factor(A), z)
        except (LinAlgWarning, np.linalg.LinAlgError, ValueError) as exc:
            logger.warning(f"Linear solve failed: {exc}")
            return Outcome.fail(FailureReason.SINGULAR_MATRIX, f"Linear solve failed: {exc}")
        if not np.all(np.isfinite(x)):
            return Outcome.fail(FailureReason.SINGULAR_MATRIX, "Linear solve produced non-finite values.")

        if omega == 0:
            residue = float(np.max(np.abs(x.imag)))
            if residue > self.config.imag_noise_tol:
                logger.warning(f"DC solution has an imaginary residue of {residue:.3g}.")
            elif residue > 0:
                logger.debug(f"Ignoring imaginary residue {residue:.3g} in DC solution.")

        inductor_index = inductor_index or {}
        if node_handles is None:
            node_handles = getattr(node_index, "handles", {})
        if ground_handles is None:
            ground_handles = getattr(node_index, "ground_handles", ())
        self.result = SolveResult(
            omega=omega,
            x=x,
            node_voltages={name: complex(x[i]) for name, i in node_index.items()},
            vsource_currents={name: complex(x[i]) for name, i in vsource_index.items()},
            inductor_currents={name: complex(x[i]) for name, i in inductor_index.items()},
            node_handles=dict(node_handles),
            ground_names=tuple(ground_names),
            ground_handles=frozenset(ground_handles),
        )
        return Outcome.success(self.result)

    def solve_system(self, system) -> Outcome[SolveResult]:
        """Convenience wrapper taking an assembled MNASystem."""
        return self.solve_steady(
            system.A,
            system.z,
            system.omega,
            system.node_index,
            system.vsource_index,
            system.inductor_index,
            node_handles=system.node_handles,
            ground_names=system.ground_names,
            ground_handles=system.ground_handles,
        )

    def set_currents(self, components: Iterable[Component], omega: float) -> Dict[str, complex]:
        """
        Compute and store the current through every component.

        Passive currents come from the solved voltages and the admittance,
        source and inductor currents from their branch unknowns.
        """
        result = self._require_result()
        if omega != result.omega:
            raise ValueError(f"Currents requested at omega={omega}, but the system was solved at {result.omega}.")
        for comp in components:
            comp.current = registry.current(comp, result)
            result.component_currents[comp.name] = comp.current
            result.components[comp.name] = comp
        return dict(result.component_currents)

    def _require_result(self) -> SolveResult:
        if self.result is None:
            raise RuntimeError("No solution available; solve_steady must succeed first.")
        return self.result

    def get_x_vector(self) -> np.ndarray:
        return self._require_result().x

    def get_node_voltages(self) -> Dict[str, complex]:
        return dict(self._require_result().node_voltages)

    def get_voltage_source_currents(self) -> Dict[str, complex]:
        return dict(self._require_result().vsource_currents)

    def get_inductor_currents(self) -> Dict[str, complex]:
        return dict(self._require_result().inductor_currents)

    def get_component_currents(self) -> Dict[str, complex]:
        return dict(self._require_result().component_currents)

    def result_listing(self) -> str:
        return self._require_result().listing()

    def __str__(self) -> str:
        if self.result is None:
            return "no solution"
        return self.result.listing()
