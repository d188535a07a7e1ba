"""
Command line entry point: solve a netlist file and print the results.

    python -m mnacore circuit.net --omega 314.16
"""

from __future__ import annotations
import argparse
import logging
import sys
from .errors import NetlistError
from .netlist import load_netlist, netlist_to_circuit
from .simulate import simulate


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="mnacore", description="Steady-state DC/AC circuit solver.")
    parser.add_argument("netlist", help="Path to the netlist file.")
    parser.add_argument("--omega", type=float, default=0.0, help="Angular frequency in rad/s (default: DC).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        circuit = netlist_to_circuit(load_netlist(args.netlist))
    except NetlistError as exc:
        print(exc, file=sys.stderr)
        return 1

    outcome = simulate(circuit, args.omega)
    if not outcome.ok:
        print(f"Failed to solve circuit: {outcome.failure}", file=sys.stderr)
        return 1
    print(outcome.value.listing())
    return 0


if __name__ == "__main__":
    sys.exit(main())
