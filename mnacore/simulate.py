"""
One-shot steady-state simulation of a circuit.

Runs the whole request as a single uninterruptible sequence: set the
frequency, prune unused nodes, check for ground, assemble, check solvability,
solve and compute component currents.
"""

from __future__ import annotations
from typing import Optional
import logging
from .circuit import Circuit
from .config import SolverConfig
from .errors import FailureReason, Outcome
from .solver import MNASolver, SolveResult

logger = logging.getLogger(__name__)


def simulate(circuit: Circuit, omega: float = 0.0, config: Optional[SolverConfig] = None) -> Outcome[SolveResult]:
    """
    Solve `circuit` at angular frequency `omega` (rad/s).

    Non-positive frequencies run a DC analysis. The circuit's node set is
    pruned in place. Failures are returned, never raised.
    """
    circuit.set_omega(omega if omega > 0 else 0.0)
    circuit.remove_unnecessary_nodes()
    if not circuit.has_ground():
        logger.warning("Simulation refused: circuit has no ground.")
        return Outcome.fail(FailureReason.NO_GROUND, "Add ground before simulating!")

    built = circuit.construct_matrices()
    if not built.ok:
        return Outcome(failure=built.failure)
    failure = circuit.check_solveable()
    if failure is not None:
        logger.warning(f"Simulation refused: {failure.message}")
        return Outcome(failure=failure)

    solver = MNASolver(config or circuit.config)
    solved = solver.solve_system(built.value)
    if not solved.ok:
        return solved
    solver.set_currents(circuit.components, circuit.omega)
    logger.info(f"Solved circuit with {len(circuit.components)} components at omega={circuit.omega}.")
    return solved
