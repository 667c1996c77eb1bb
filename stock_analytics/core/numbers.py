from decimal import ROUND_HALF_UP, Decimal

_TWO_PLACES = Decimal("0.01")


def round_metric(value, places: int = 2) -> float:
    """Round half away from zero; 2.675 -> 2.68, -0.125 -> -0.13."""
    if value is None:
        return 0.0
    quantum = _TWO_PLACES if places == 2 else Decimal(1).scaleb(-places)
    # str() keeps the shortest float repr, so 2.675 is not seen as 2.67499...
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0


def round_half_away(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_float(value) -> float:
    if value is None:
        return 0.0
    return float(value)
