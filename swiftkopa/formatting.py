"""Display helpers. The engine never rounds; only these functions do."""
from decimal import Decimal, ROUND_HALF_UP

from swiftkopa.config import CURRENCY_CODE


def format_currency(amount) -> str:
    """Format an amount as whole shillings, e.g. 5333.33 -> 'KES 5,333'."""
    whole = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if whole < 0 else ""
    return f"{sign}{CURRENCY_CODE} {abs(whole):,}"


def format_rate(rate) -> str:
    """Format a fractional rate as a percentage, e.g. 0.2 -> '20%'."""
    percent = (Decimal(str(rate)) * 100).normalize()
    return f"{percent:f}%"
