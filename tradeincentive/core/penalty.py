"""
Sell-side penalty kernel (deterministic, integer-only).

    deviation = max(0, penalty_target_price - price)
    penalty   = amount_in
                * deviation / penalty_target_price
                * PENALTY_RATE / MULTIPLIER_DENOM
                * protocol_to_incentive_price / FIXED_POINT_ONE
                * penalty_multiplier / MULTIPLIER_DENOM

All factors are multiplied first and divided once (floor), so the result is
exactly linear in `amount_in` and in `penalty_multiplier` up to a single
rounding step.

`price` is the pair's reading after the swap settled, so `deviation` already
includes the trade's own price impact. A sell at or above target costs nothing.
"""

from __future__ import annotations

from ..errors import MalformedTrade
from ..state.config import FIXED_POINT_ONE, MULTIPLIER_DENOM, IncentiveConfig
from .trade import TradeContext, TradeDirection, classify


# Penalty per unit of relative deviation, in parts-per-100000 of the sold notional.
PENALTY_RATE = 8_000


def price_deviation(target_price: int, price: int) -> int:
    """Shortfall of `price` below `target_price` (zero at or above target)."""
    return max(0, target_price - price)


def compute_penalty(trade: TradeContext, config: IncentiveConfig) -> int:
    """Penalty in incentive-token units for a SELL trade."""
    if classify(trade) is not TradeDirection.SELL:
        raise MalformedTrade("penalty requested for a non-sell trade")
    if trade.reserve <= 0:
        raise MalformedTrade("reserve must be positive")
    if trade.amount_in > trade.reserve:
        raise MalformedTrade(f"amount_in ({trade.amount_in}) exceeds reserve ({trade.reserve})")

    deviation = price_deviation(config.penalty_target_price, trade.price)
    if deviation == 0 or config.penalty_multiplier == 0:
        return 0

    numerator = (
        trade.amount_in
        * deviation
        * PENALTY_RATE
        * config.protocol_to_incentive_price
        * config.penalty_multiplier
    )
    denominator = config.penalty_target_price * MULTIPLIER_DENOM * FIXED_POINT_ONE * MULTIPLIER_DENOM
    return numerator // denominator
