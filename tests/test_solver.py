import logging

import numpy as np
import pytest

from mnacore import Circuit, FailureReason, MNASolver
from mnacore.components import (
    capacitor,
    current_source,
    inductor,
    resistor,
    voltage_source,
)


def _solve(circuit):
    system = circuit.construct_matrices().unwrap()
    assert circuit.solveable()
    solver = MNASolver()
    outcome = solver.solve_steady(
        circuit.get_a_matrix(),
        circuit.get_z_matrix(),
        circuit.get_omega(),
        circuit.get_node_indexes(),
        circuit.get_voltage_source_indexes(),
        circuit.get_inductor_indexes(),
        node_handles=system.node_handles,
        ground_names=system.ground_names,
    )
    assert outcome.ok
    solver.set_currents(circuit.components, circuit.get_omega())
    return solver


@pytest.mark.parametrize("J, R", [(2.0, 5.0), (1e-3, 4.7e3), (-0.5, 100.0)])
def test_ohms_law(J, R):
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    circuit.add_component(current_source("J1", J, gnd, a))
    circuit.add_component(resistor("R1", R, a, gnd))

    solver = _solve(circuit)

    assert solver.get_node_voltages()["a"] == pytest.approx(J * R)
    assert solver.get_component_currents()["R1"] == pytest.approx(J)


def test_voltage_source_with_open_branch_draws_no_current():
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    circuit.add_component(voltage_source("V1", 5.0, a, gnd))

    solver = _solve(circuit)

    assert solver.get_node_voltages()["a"] == pytest.approx(5.0)
    assert solver.get_voltage_source_currents()["V1"] == pytest.approx(0.0)


def test_voltage_divider(divider):
    solver = _solve(divider)

    assert solver.get_node_voltages() == pytest.approx({"vin": 10.0, "out": 5.0})
    # Source current flows input -> output through the source, so a
    # source delivering power reports a negative value.
    assert solver.get_voltage_source_currents()["V1"] == pytest.approx(-1.0)
    assert divider.get_component("R1").current == pytest.approx(1.0)
    assert divider.get_component("R2").current == pytest.approx(1.0)
    assert solver.result.node_voltage("gnd") == 0


@pytest.mark.parametrize("r_parallel", [1.0, 100.0, 1e6])
def test_dc_inductor_shorts_its_node(r_parallel):
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    b = circuit.add_node("b")
    circuit.add_component(voltage_source("V1", 10.0, a, gnd))
    circuit.add_component(resistor("R1", 5.0, a, b))
    circuit.add_component(inductor("L1", 1e-3, b, gnd))
    circuit.add_component(resistor("Rp", r_parallel, b, gnd))

    solver = _solve(circuit)

    assert solver.get_node_voltages()["b"] == pytest.approx(0.0, abs=1e-12)
    assert circuit.get_component("L1").current == pytest.approx(2.0)
    assert circuit.get_component("Rp").current == pytest.approx(0.0, abs=1e-12)


def test_dc_capacitor_does_not_change_voltages(divider):
    before = _solve(divider).get_node_voltages()
    out = divider.node_by_name("out").handle
    vin = divider.node_by_name("vin").handle
    divider.add_component(capacitor("C1", 1e-6, vin, out))

    after = _solve(divider)

    assert after.get_node_voltages() == pytest.approx(before)
    assert divider.get_component("C1").current == 0


def test_ac_rc_lowpass_at_corner(rc_lowpass):
    rc_lowpass.set_omega(1e3)
    solver = _solve(rc_lowpass)

    assert solver.get_node_voltages()["out"] == pytest.approx(0.5 - 0.5j)
    i_r = rc_lowpass.get_component("R1").current
    i_c = rc_lowpass.get_component("C1").current
    assert i_r == pytest.approx(i_c)
    assert solver.get_voltage_source_currents()["V1"] == pytest.approx(-i_r)


def test_ac_rl_divider_uses_inductor_branch_current():
    circuit = Circuit(omega=1e3)
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    b = circuit.add_node("b")
    circuit.add_component(voltage_source("V1", 1.0, a, gnd))
    circuit.add_component(resistor("R1", 1.0, a, b))
    circuit.add_component(inductor("L1", 1e-3, b, gnd))

    solver = _solve(circuit)

    v_b = solver.get_node_voltages()["b"]
    assert v_b == pytest.approx(0.5 + 0.5j)
    assert solver.get_inductor_currents()["L1"] == pytest.approx(0.5 - 0.5j)
    assert circuit.get_component("L1").current == pytest.approx(v_b * circuit.get_component("L1").get_admittance(1e3))


def test_branch_power_of_resistor(divider):
    solver = _solve(divider)
    P, Q, S = solver.result.branch_power("R2")
    assert P == pytest.approx(5.0)
    assert Q == pytest.approx(0.0)
    assert S == pytest.approx(5.0)


def test_singular_matrix_is_reported_not_raised():
    solver = MNASolver()
    A = np.array([[1.0, 1.0], [1.0, 1.0]], dtype=complex)
    z = np.array([1.0, 2.0], dtype=complex)

    outcome = solver.solve_steady(A, z, 0.0, {"a": 0, "b": 1}, {})

    assert not outcome.ok
    assert outcome.failure.reason is FailureReason.SINGULAR_MATRIX
    assert solver.result is None
    with pytest.raises(RuntimeError):
        solver.get_node_voltages()


def test_empty_system_is_reported():
    outcome = MNASolver().solve_steady(np.zeros((0, 0)), np.zeros(0), 0.0, {}, {})
    assert outcome.failure.reason is FailureReason.EMPTY_CIRCUIT


def test_shape_mismatch_is_a_usage_error():
    with pytest.raises(ValueError):
        MNASolver().solve_steady(np.eye(2), np.zeros(3), 0.0, {}, {})


def test_set_currents_requires_a_solution(divider):
    with pytest.raises(RuntimeError):
        MNASolver().set_currents(divider.components, 0.0)


def test_set_currents_rejects_other_frequency(divider):
    solver = _solve(divider)
    with pytest.raises(ValueError):
        solver.set_currents(divider.components, 10.0)


def test_result_listing(divider):
    solver = _solve(divider)
    listing = solver.result_listing()
    assert listing.startswith("node voltages")
    assert "voltage source currents" in listing
    assert "out 5+0j" in listing
    assert str(solver) == listing


def test_positional_solve_reads_terminal_voltages(divider):
    divider.construct_matrices()
    solver = MNASolver()
    outcome = solver.solve_steady(
        divider.get_a_matrix(),
        divider.get_z_matrix(),
        divider.get_omega(),
        divider.get_node_indexes(),
        divider.get_voltage_source_indexes(),
        divider.get_inductor_indexes(),
    )
    assert outcome.ok

    currents = solver.set_currents(divider.components, divider.get_omega())

    assert currents["R1"] == pytest.approx(1.0)
    assert currents["R2"] == pytest.approx(1.0)
    assert currents["V1"] == pytest.approx(-1.0)


def test_unknown_terminal_handles_raise(divider):
    divider.construct_matrices()
    solver = MNASolver()
    solver.solve_steady(
        divider.get_a_matrix(),
        divider.get_z_matrix(),
        divider.get_omega(),
        dict(divider.get_node_indexes()),
        divider.get_voltage_source_indexes(),
    ).unwrap()

    with pytest.raises(KeyError):
        solver.set_currents(divider.components, divider.get_omega())


def test_dc_imaginary_residue_above_tolerance_is_logged(caplog):
    A = np.eye(1, dtype=complex)
    z = np.array([1.0 + 1e-3j])

    with caplog.at_level(logging.WARNING, logger="mnacore.solver"):
        MNASolver().solve_steady(A, z, 0.0, {"a": 0}, {}).unwrap()

    assert "imaginary residue" in caplog.text


def test_dc_imaginary_noise_below_tolerance_is_not_a_warning(caplog):
    A = np.eye(1, dtype=complex)
    z = np.array([1.0 + 1e-12j])

    with caplog.at_level(logging.WARNING, logger="mnacore.solver"):
        MNASolver().solve_steady(A, z, 0.0, {"a": 0}, {}).unwrap()

    assert caplog.text == ""
