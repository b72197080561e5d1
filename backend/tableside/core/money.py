"""Decimal money helpers shared by schemas and billing rules."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Union

from pydantic import PlainSerializer

CENT = Decimal("0.01")


def to_money(value: Union[Decimal, float, int, str, None]) -> Decimal:
    """Convert to a Decimal rounded half-up to cents.

    Floats go through str() so 12.99 stays 12.99 instead of its binary expansion.
    """
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# Decimal in Python, float in JSON responses
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]
