from __future__ import annotations
from typing import Optional
from .base import (
    Component,
    ComponentType,
    StampData,
    stamp_branch,
    stamp_series_admittance,
)


def resistor(name: str, resistance: float, input_node: Optional[int] = None,
             output_node: Optional[int] = None) -> Component:
    return Component(name, ComponentType.RESISTOR, resistance, input_node, output_node)


def inductor(name: str, inductance: float, input_node: Optional[int] = None,
             output_node: Optional[int] = None) -> Component:
    return Component(name, ComponentType.INDUCTOR, inductance, input_node, output_node)


def capacitor(name: str, capacitance: float, input_node: Optional[int] = None,
              output_node: Optional[int] = None) -> Component:
    return Component(name, ComponentType.CAPACITOR, capacitance, input_node, output_node)


def _check_positive(component: Component, quantity: str) -> Optional[str]:
    value = component.value
    if isinstance(value, complex) or not value > 0:
        return f"{quantity} of '{component.name}' must be a positive real number, got {value}."
    return None


# Resistor

def resistor_check(component: Component) -> Optional[str]:
    return _check_positive(component, "Resistance")


def resistor_admittance(component: Component, omega: float) -> complex:
    if component.value == 0:
        raise ValueError(f"Resistor '{component.name}' is a short circuit; it has no finite admittance.")
    return complex(1.0 / component.value)


def resistor_stamp(component: Component, data: StampData) -> None:
    y = resistor_admittance(component, data.omega)
    stamp_series_admittance(data, component.input_node, component.output_node, y)


def resistor_current(component: Component, result) -> complex:
    return resistor_admittance(component, result.omega) * result.branch_voltage(component)


# Inductor
#
# The inductor always owns a branch-current unknown. At DC it is a 0 V source
# (a short); for omega != 0 the branch row reads V(in) - V(out) - j*omega*L*I = 0,
# which never divides by omega.

def inductor_check(component: Component) -> Optional[str]:
    return _check_positive(component, "Inductance")


def inductor_admittance(component: Component, omega: float) -> complex:
    if omega == 0:
        raise ValueError(f"Inductor '{component.name}' is a short circuit at DC; it has no finite admittance.")
    return 1.0 / (1j * omega * component.value)


def inductor_stamp(component: Component, data: StampData) -> None:
    k = data.branch(component.name)
    stamp_branch(data, k, component.input_node, component.output_node, 0.0)
    if data.omega != 0:
        data.A[k, k] -= 1j * data.omega * component.value


def inductor_current(component: Component, result) -> complex:
    return result.branch_unknown(component.name)


# Capacitor

def capacitor_check(component: Component) -> Optional[str]:
    return _check_positive(component, "Capacitance")


def capacitor_admittance(component: Component, omega: float) -> complex:
    return 0j if omega == 0 else 1j * omega * component.value


def capacitor_stamp(component: Component, data: StampData) -> None:
    y = capacitor_admittance(component, data.omega)
    stamp_series_admittance(data, component.input_node, component.output_node, y)


def capacitor_current(component: Component, result) -> complex:
    return capacitor_admittance(component, result.omega) * result.branch_voltage(component)
