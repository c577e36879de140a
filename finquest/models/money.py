"""
Money helpers shared by every model.

All amounts are Decimal quantized to cents. Sums of Decimals are exact,
so balance folds come out identical whatever the transaction order.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Union

from pydantic import AfterValidator

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Convert a number to a Decimal rounded half-up to 2 places."""
    if not isinstance(value, Decimal):
        # str() keeps floats like 0.1 from dragging binary noise along
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


Money = Annotated[Decimal, AfterValidator(to_money)]


def format_money(value: Decimal, symbol: str = "R$") -> str:
    return f"{symbol} {value:,.2f}"
