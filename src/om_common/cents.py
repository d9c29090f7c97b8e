"""Integer arithmetic utilities for cents-denominated balances and prices.

All prices, amounts, and balances use int (cents). No float, no Decimal.
Rates are expressed in basis points (1 bps = 0.01%).
"""

BPS_DENOMINATOR = 10000


def apply_bps(amount: int, bps: int) -> int:
    """Floor of amount × bps / 10000 for non-negative amounts.

    apply_bps(10000, 15000) -> 15000   (× 1.5)
    apply_bps(10001, 1000)  -> 1000    (10%, rounded down)
    """
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return amount * bps // BPS_DENOMINATOR


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
