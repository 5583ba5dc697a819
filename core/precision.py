"""
Tick / lot-step rounding.

round_to(v, step) = round_half_up(v / step) * step, truncated to the step's
decimal precision. floor_to swaps half-up for floor so a quantity never
exceeds its notional budget.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]


def _dec(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def step_decimals(step: Number) -> int:
    """Number of decimal places in a step (0.01 -> 2, 0.5 -> 1, 10 -> 0)."""
    exponent = _dec(step).normalize().as_tuple().exponent
    return max(-exponent, 0)


def _snap(value: Number, step: Number, rounding: str) -> Decimal:
    value, step = _dec(value), _dec(step)
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    snapped = (value / step).to_integral_value(rounding=rounding) * step
    quantum = Decimal(1).scaleb(-step_decimals(step))
    return snapped.quantize(quantum, rounding=ROUND_DOWN)


def round_to(value: Number, step: Number) -> Decimal:
    """Round to the nearest multiple of step (halves away from zero)."""
    return _snap(value, step, ROUND_HALF_UP)


def floor_to(value: Number, step: Number) -> Decimal:
    """Round down to a multiple of step."""
    return _snap(value, step, ROUND_FLOOR)
