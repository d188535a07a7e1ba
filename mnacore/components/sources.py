from __future__ import annotations
import cmath
from typing import Optional
from .base import (
    Component,
    ComponentType,
    StampData,
    Value,
    stamp_branch,
    stamp_current_source,
)


def voltage_source(name: str, voltage: Value, input_node: Optional[int] = None,
                   output_node: Optional[int] = None) -> Component:
    """
    DC source for a real `voltage`, AC source for a complex phasor.

    The input terminal is the positive one: V(input) - V(output) = voltage.
    """
    return Component(name, ComponentType.VOLTAGE_SOURCE, voltage, input_node, output_node)


def current_source(name: str, current: Value, input_node: Optional[int] = None,
                   output_node: Optional[int] = None) -> Component:
    """
    The source draws `current` out of the input node and drives it into the output node.
    """
    return Component(name, ComponentType.CURRENT_SOURCE, current, input_node, output_node)


def source_check(component: Component) -> Optional[str]:
    if not cmath.isfinite(complex(component.value)):
        return f"Value of source '{component.name}' must be finite, got {component.value}."
    return None


def voltage_source_stamp(component: Component, data: StampData) -> None:
    k = data.branch(component.name)
    stamp_branch(data, k, component.input_node, component.output_node, component.value)


def voltage_source_current(component: Component, result) -> complex:
    return result.branch_unknown(component.name)


def current_source_stamp(component: Component, data: StampData) -> None:
    stamp_current_source(data, component.input_node, component.output_node, component.value)


def current_source_current(component: Component, result) -> complex:
    return complex(component.value)
