"""
Phasor analysis example (AC voltage divider).

Circuit:
    Vs (230∠0° V) -> R1 (10 Ω) -> node vout -> parallel of C1 (47 µF) and Rload (30 Ω) -> ground,
    plus L1 (10 mH) from vout to v2 and R2 (2 Ω) from v2 to ground.

The circuit is solved at 50 Hz and then at DC, and the script reports:
- Output voltage magnitude/phase.
- Branch currents for every component.
- Active/reactive power absorbed by the passive components.
"""

from mnacore import Circuit, simulate
from mnacore.components import capacitor, inductor, resistor, voltage_source
from mnacore.utils import angular_frequency, phasor, polar


def build() -> Circuit:
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    vin = circuit.add_node("vin")
    vout = circuit.add_node("vout")
    v2 = circuit.add_node("v2")

    circuit.add_component(voltage_source("Vs", phasor(230.0, 0.0), vin, gnd))
    circuit.add_component(resistor("R1", 10.0, vin, vout))
    circuit.add_component(capacitor("C1", 47e-6, vout, gnd))
    circuit.add_component(resistor("Rload", 30.0, vout, gnd))
    circuit.add_component(inductor("L1", 10e-3, vout, v2))
    circuit.add_component(resistor("R2", 2.0, v2, gnd))
    return circuit


def report(circuit: Circuit, omega: float) -> None:
    outcome = simulate(circuit, omega)
    if not outcome.ok:
        print(f"Failed to solve circuit: {outcome.failure}")
        return
    solution = outcome.value

    mag_v, phase_v = polar(solution.node_voltage("vout"))
    print(f"omega = {omega:.2f} rad/s")
    print(f"Vout = {mag_v:.2f} V ∠ {phase_v:.2f}°")

    for comp in circuit.components:
        mag_i, phase_i = solution.branch_current_polar(comp.name)
        print(f"I_{comp.name} = {mag_i:.3f} A ∠ {phase_i:.2f}°")

    active_power = 0.0
    reactive_power = 0.0
    for comp in circuit.components:
        if not comp.is_passive:
            continue
        P, Q, S = solution.branch_power(comp.name)
        active_power += P
        reactive_power += Q
        print(f"{comp.name} power: P={P:.2f} W, Q={Q:.2f} var, |S|={S:.2f} VA")

    print(f"The sum of the absorbed active power: {active_power:.2f} W")
    print(f"The sum of the absorbed reactive power: {reactive_power:.2f} var")


def main() -> None:
    circuit = build()
    report(circuit, angular_frequency(50))
    print()
    report(circuit, 0.0)


if __name__ == "__main__":
    main()
