"""
Phasor helpers for AC source values and for reporting solved quantities.
"""

from __future__ import annotations
from typing import Tuple
import numpy as np


def phasor(magnitude: float, phase_deg: float = 0.0) -> complex:
    """
    Source value `magnitude ∠ phase_deg`, e.g. ``phasor(230.0, -30.0)``.
    """
    angle = np.deg2rad(phase_deg)
    return complex(magnitude * np.cos(angle), magnitude * np.sin(angle))


def polar(value: complex) -> Tuple[float, float]:
    """
    (|value|, angle in degrees) of a solved voltage or current.
    """
    value = complex(value)
    return float(np.hypot(value.real, value.imag)), float(np.degrees(np.arctan2(value.imag, value.real)))


def angular_frequency(frequency: float) -> float:
    """Hz -> rad/s."""
    return 2 * np.pi * frequency
