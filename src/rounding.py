"""Half-up rounding shared by the normalizer and the scorer."""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round a number to `digits` decimals, ties away from zero (72.5 -> 73).

    Args:
        value (float): Number to round
        digits (int): Decimal places to keep

    Returns:
        float: Rounded value
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))
