"""Numeric helpers shared by the analysis modules."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 rounding towards positive infinity.

    Python's built-in ``round`` uses banker's rounding (``round(0.5) == 0``),
    which makes percentages jump between neighbouring runs.
    """
    return math.floor(value + 0.5)
