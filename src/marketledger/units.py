"""Amount conversion between decimal strings and integer base units."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from marketledger.errors import InvalidArgument

DECIMALS = 18
UNIT = 10**DECIMALS


def parse_amount(value: str | int | Decimal, decimals: int = DECIMALS) -> int:
    """Parse "0.1" (whole units) into base units. Digits beyond `decimals` are truncated."""
    with localcontext() as ctx:
        ctx.prec = 78
        try:
            dec = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidArgument(f"Invalid amount: {value!r}") from None
        if not dec.is_finite() or dec < 0:
            raise InvalidArgument(f"Invalid amount: {value!r}")
        scaled = (dec * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_DOWN)
    return int(scaled)


def format_amount(base_units: int, decimals: int = DECIMALS) -> str:
    """Render base units as a decimal string without trailing zeros (e.g. 10**17 -> "0.1")."""
    with localcontext() as ctx:
        ctx.prec = 78
        dec = Decimal(base_units) / (Decimal(10) ** decimals)
        return format(dec.normalize(), "f")
