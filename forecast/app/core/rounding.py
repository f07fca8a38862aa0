"""
Sales Forecast Rounding Helpers
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union


def round_half_up(value: Union[int, float, Decimal], places: int = 0) -> Decimal:
    """Round with halves away from zero, as commercial figures are rounded"""
    return Decimal(str(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def round_int(value: Union[int, float, Decimal]) -> int:
    return int(round_half_up(value))


def round_float(value: Union[int, float, Decimal], places: int) -> float:
    return float(round_half_up(value, places))
