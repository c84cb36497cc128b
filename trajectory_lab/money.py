"""
Helpers for working with money as integer cents.

Every amount the engine produces is an int number of cents. Rounding is
half-up (towards positive infinity on exact halves) and is applied after
each multiplication, never once at the end.
"""
import math


def round_cents(value: float) -> int:
    """Round half-up to the nearest whole cent."""
    return int(math.floor(value + 0.5))


def dollars_to_cents(dollars: float) -> int:
    return round_cents(dollars * 100)
