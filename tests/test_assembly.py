import numpy as np
import pytest

from mnacore import Circuit, construct_matrices
from mnacore.components import (
    capacitor,
    current_source,
    inductor,
    resistor,
    voltage_source,
)


def _two_source_circuit(omega):
    circuit = Circuit(omega=omega)
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    b = circuit.add_node("b")
    c = circuit.add_node("c")
    circuit.add_component(voltage_source("V1", 5.0, a, gnd))
    circuit.add_component(inductor("L1", 1e-3, a, b))
    circuit.add_component(resistor("R1", 10.0, b, c))
    circuit.add_component(voltage_source("V2", 1.0, c, gnd))
    circuit.add_component(inductor("L2", 2e-3, b, gnd))
    return circuit


def test_dimension_at_ac_counts_inductor_branches():
    circuit = _two_source_circuit(omega=100.0)
    system = circuit.construct_matrices().unwrap()

    assert system.A.shape == (3 + 2 + 2, 3 + 2 + 2)
    assert system.z.shape == (7,)
    assert circuit.get_node_indexes() == {"a": 0, "b": 1, "c": 2}
    assert circuit.get_voltage_source_indexes() == {"V1": 3, "V2": 4}
    assert circuit.get_inductor_indexes() == {"L1": 5, "L2": 6}


def test_dc_inductors_are_indexed_as_zero_volt_sources():
    circuit = _two_source_circuit(omega=0.0)
    system = circuit.construct_matrices().unwrap()

    assert circuit.get_inductor_indexes() == {}
    assert circuit.get_voltage_source_indexes() == {"V1": 3, "V2": 4, "L1": 5, "L2": 6}
    assert system.size == len(system.node_index) + len(system.vsource_index)
    assert system.z[5] == 0
    assert system.z[6] == 0


def test_dimension_without_inductors_at_dc(divider):
    system = divider.construct_matrices().unwrap()
    assert system.size == 2 + 1


def test_node_indices_follow_insertion_order_of_surviving_nodes():
    circuit = Circuit()
    first = circuit.add_node("first")
    circuit.add_node("dropped")
    gnd = circuit.add_ground("gnd")
    last = circuit.add_node("last")
    circuit.add_component(resistor("R1", 1.0, first, last))
    circuit.add_component(resistor("R2", 1.0, last, gnd))

    circuit.remove_unnecessary_nodes()
    circuit.construct_matrices()

    assert circuit.get_node_indexes() == {"first": 0, "last": 1}
    assert circuit.node(first).index == 0
    assert circuit.node(gnd).index is None


def test_resistor_and_current_source_stamps():
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    b = circuit.add_node("b")
    circuit.add_component(resistor("R1", 2.0, a, b))
    circuit.add_component(resistor("R2", 4.0, b, gnd))
    circuit.add_component(current_source("J1", 3.0, gnd, a))

    circuit.construct_matrices()

    expected = np.array([[0.5, -0.5], [-0.5, 0.75]], dtype=complex)
    np.testing.assert_allclose(circuit.get_a_matrix(), expected)
    np.testing.assert_allclose(circuit.get_z_matrix(), [3.0, 0.0])


def test_voltage_source_stamp():
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    b = circuit.add_node("b")
    circuit.add_component(voltage_source("V1", 5.0, a, b))
    circuit.add_component(resistor("R1", 1.0, b, gnd))

    circuit.construct_matrices()
    A = circuit.get_a_matrix()
    k = circuit.get_voltage_source_indexes()["V1"]

    assert A[0, k] == 1 and A[k, 0] == 1
    assert A[1, k] == -1 and A[k, 1] == -1
    assert circuit.get_z_matrix()[k] == 5.0


def test_ac_inductor_branch_row():
    omega, L = 200.0, 0.05
    circuit = Circuit(omega=omega)
    gnd = circuit.add_ground("gnd")
    a = circuit.add_node("a")
    circuit.add_component(current_source("J1", 1.0, gnd, a))
    circuit.add_component(inductor("L1", L, a, gnd))

    system = circuit.construct_matrices().unwrap()
    k = system.inductor_index["L1"]

    assert system.A[k, k] == pytest.approx(-1j * omega * L)
    assert system.A[0, k] == 1 and system.A[k, 0] == 1


def test_capacitor_adds_nothing_at_dc(divider):
    without = divider.construct_matrices().unwrap()
    out = divider.node_by_name("out").handle
    gnd = divider.node_by_name("gnd").handle
    divider.add_component(capacitor("C1", 1e-6, out, gnd))
    with_cap = divider.construct_matrices().unwrap()

    np.testing.assert_array_equal(without.A, with_cap.A)
    np.testing.assert_array_equal(without.z, with_cap.z)


def test_construction_is_repeatable(rc_lowpass):
    rc_lowpass.set_omega(1e3)
    first = rc_lowpass.construct_matrices().unwrap()
    second = rc_lowpass.construct_matrices().unwrap()
    np.testing.assert_array_equal(first.A, second.A)
    np.testing.assert_array_equal(first.z, second.z)
    assert first.node_index == second.node_index


def test_pure_construction_from_nodes_and_components(rc_lowpass):
    system = construct_matrices(rc_lowpass.nodes, rc_lowpass.components, 1e3)
    out = system.node_index["out"]
    assert system.A[out, out] == pytest.approx(1e-3 + 1e-3j)
    assert system.ground_names == ("gnd",)
    assert rc_lowpass.system is None
