"""
Booking price calculation.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from app.core.errors import InvalidDateRange

DateLike = Union[date, str]

CENTS = Decimal("0.01")


def as_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDateRange(f"Invalid date: {value}")


def nights_between(check_in: DateLike, check_out: DateLike) -> int:
    return (as_date(check_out) - as_date(check_in)).days


def calc_total_price(
    price_per_night: Union[Decimal, float, int],
    check_in: DateLike,
    check_out: DateLike,
) -> Decimal:
    """
    Total charge for a stay: nightly rate x number of nights.

    Nights are whole calendar days between the two dates. The result is
    rounded half away from zero to two decimals.
    Raises InvalidDateRange when check-out is not after check-in.
    """
    nights = nights_between(check_in, check_out)
    if nights <= 0:
        raise InvalidDateRange("check_out_date must be after check_in_date")

    # str() first so float rates keep their printed value, not their binary expansion
    rate = Decimal(str(price_per_night))
    return (rate * nights).quantize(CENTS, rounding=ROUND_HALF_UP)
