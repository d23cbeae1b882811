from __future__ import annotations

import math

FONT_SIZE_MIN = 1
FONT_SIZE_MAX = 11


def deg_to_rad(value: float) -> float:
    return math.radians(value)


def rad_to_deg(value: float) -> float:
    return math.degrees(value)


def finite(value) -> float:
    """Parse a numeric argument; NaN and infinities are rejected with ValueError."""
    out = float(value)
    if not math.isfinite(out):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return out


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]. With lo == hi every input collapses to lo; NaN maps to lo."""
    if math.isnan(value):
        return lo
    if value > hi:
        return hi
    if value < lo:
        return lo
    return value


def clamp_font_size(size) -> int:
    return int(clamp(float(size), FONT_SIZE_MIN, FONT_SIZE_MAX))
