from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class SolverConfig:
    """
    Numeric tolerances and naming used by the circuit and the solver.

    Attributes:
        singular_rcond: Reciprocal condition number of A below which the
            system is treated as singular (default: 1e-13).
        imag_noise_tol: Largest imaginary residue tolerated on a DC solution
            before a warning is logged (default: 1e-9).
        node_name_prefix: Prefix of auto-generated node names (default: "N").
    """
    singular_rcond: float = 1e-13
    imag_noise_tol: float = 1e-9
    node_name_prefix: str = "N"


DEFAULT_CONFIG = SolverConfig()
