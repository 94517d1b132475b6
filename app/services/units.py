"""Integer-exact unit conversion for on-chain quantities.

Raw balances arrive as hex (``0x...``) or decimal strings in the token's
smallest unit. All scaling happens on Python ints; ``Decimal`` is used only
once a value has been scaled and needs USD math or display rounding.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

MAX_DECIMALS = 36
WEI_PER_GWEI = 10**9


def parse_quantity(raw: Any) -> Optional[int]:
    """Parse a hex or decimal quantity into an int, ``None`` when unparseable."""

    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        if text.lower().startswith("0x"):
            return int(text, 16) if len(text) > 2 else 0
        if text.isdigit():
            return int(text)
    except ValueError:
        return None
    return None


def coerce_decimals(raw: Any, default: int = 18) -> int:
    """Token decimals from metadata, clamped to ``0..36``."""

    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(raw, 16) if isinstance(raw, str) and raw.lower().startswith("0x") else int(raw)
    except (TypeError, ValueError):
        return default
    return max(0, min(MAX_DECIMALS, value))


def format_units(atomic: Any, decimals: int) -> str:
    """Scale an atomic amount to a plain decimal string without trailing zeros.

    >>> format_units("1500000000000000000", 18)
    '1.5'
    """

    value = parse_quantity(atomic)
    if value is None or value < 0:
        return "0"
    d = max(0, min(MAX_DECIMALS, int(decimals)))
    base = 10**d
    whole, frac = divmod(value, base)
    if frac == 0:
        return str(whole)
    frac_str = str(frac).rjust(d, "0").rstrip("0")
    return f"{whole}.{frac_str}"


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def is_zero(balance: str) -> bool:
    amount = to_decimal(balance)
    return amount is None or amount == 0


def wei_to_gwei(wei: int) -> str:
    return format_units(wei, 9)


def wei_to_ether(wei: int) -> str:
    return format_units(wei, 18)


def round_usd(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


__all__ = [
    "WEI_PER_GWEI",
    "parse_quantity",
    "coerce_decimals",
    "format_units",
    "to_decimal",
    "is_zero",
    "wei_to_gwei",
    "wei_to_ether",
    "round_usd",
]
