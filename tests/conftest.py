import pytest

from mnacore import Circuit
from mnacore.components import capacitor, resistor, voltage_source


@pytest.fixture
def divider():
    """10 V source feeding two 5 Ω resistors in series; output node is 'out'."""
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    vin = circuit.add_node("vin")
    out = circuit.add_node("out")
    circuit.add_component(voltage_source("V1", 10.0, vin, gnd))
    circuit.add_component(resistor("R1", 5.0, vin, out))
    circuit.add_component(resistor("R2", 5.0, out, gnd))
    return circuit


@pytest.fixture
def rc_lowpass():
    """1 V source, R = 1 kΩ into 'out', C = 1 µF from 'out' to ground."""
    circuit = Circuit()
    gnd = circuit.add_ground("gnd")
    vin = circuit.add_node("vin")
    out = circuit.add_node("out")
    circuit.add_component(voltage_source("V1", 1.0, vin, gnd))
    circuit.add_component(resistor("R1", 1e3, vin, out))
    circuit.add_component(capacitor("C1", 1e-6, out, gnd))
    return circuit
