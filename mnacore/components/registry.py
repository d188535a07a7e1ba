"""
Dispatch table of per-variant element rules, indexed by ComponentType.
"""

from __future__ import annotations
from typing import Callable, Dict, NamedTuple, Optional
from .base import Component, ComponentType, StampData
from . import passive, sources


class ElementRules(NamedTuple):
    check: Callable[[Component], Optional[str]]
    stamp: Callable[[Component, StampData], None]
    current: Callable[..., complex]
    admittance: Optional[Callable[[Component, float], complex]] = None


RULES: Dict[ComponentType, ElementRules] = {
    ComponentType.RESISTOR: ElementRules(
        passive.resistor_check, passive.resistor_stamp, passive.resistor_current, passive.resistor_admittance
    ),
    ComponentType.INDUCTOR: ElementRules(
        passive.inductor_check, passive.inductor_stamp, passive.inductor_current, passive.inductor_admittance
    ),
    ComponentType.CAPACITOR: ElementRules(
        passive.capacitor_check, passive.capacitor_stamp, passive.capacitor_current, passive.capacitor_admittance
    ),
    ComponentType.VOLTAGE_SOURCE: ElementRules(
        sources.source_check, sources.voltage_source_stamp, sources.voltage_source_current
    ),
    ComponentType.CURRENT_SOURCE: ElementRules(
        sources.source_check, sources.current_source_stamp, sources.current_source_current
    ),
}


def rules(component: Component) -> ElementRules:
    return RULES[component.type]


def check(component: Component) -> Optional[str]:
    return rules(component).check(component)


def stamp(component: Component, data: StampData) -> None:
    rules(component).stamp(component, data)


def current(component: Component, result) -> complex:
    return complex(rules(component).current(component, result))


def admittance(component: Component, omega: float) -> complex:
    fn = rules(component).admittance
    if fn is None:
        raise TypeError(f"Active component '{component.name}' has no admittance.")
    return fn(component, omega)
