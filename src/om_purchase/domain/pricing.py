"""Price escalation and ownership bonus, in integer cents.

new_price    = floor(price × 1.5)
target_bonus = floor(price × 10%)

The full price goes to the previous owner; the platform takes no cut. The
bonus is paid to the purchased account on top of that, not deducted from it.
"""

from dataclasses import dataclass

from src.om_common.cents import apply_bps

PRICE_MULTIPLIER_BPS: int = 15000   # × 1.5
OWNERSHIP_BONUS_BPS: int = 1000     # 10%


@dataclass(frozen=True)
class PriceQuote:
    price: int
    new_price: int
    target_bonus: int


def next_price(price: int) -> int:
    return apply_bps(price, PRICE_MULTIPLIER_BPS)


def ownership_bonus(price: int) -> int:
    return apply_bps(price, OWNERSHIP_BONUS_BPS)


def quote_purchase(price: int) -> PriceQuote:
    return PriceQuote(price=price, new_price=next_price(price), target_bonus=ownership_bonus(price))
