"""Integer percentage rounding used by every score and progress figure."""

from decimal import ROUND_HALF_UP, Decimal
from numbers import Real


def round_percentage(part: Real, whole: Real) -> int:
    """Return ``round(100 * part / whole)`` with halves rounded up.

    Returns 0 when ``whole`` is zero. Exact decimal arithmetic keeps
    fractional point values (e.g. 0.5-point questions) from drifting across
    a rounding boundary.
    """
    if not whole:
        return 0
    ratio = Decimal(str(part)) * 100 / Decimal(str(whole))
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
