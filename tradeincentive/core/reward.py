"""
Buy-side reward kernel (deterministic, integer-only).

Raw reward:

    deviation = max(0, reward_target_price - price)
    raw       = reward_per_epoch * amount_out / expected_volume_per_epoch
                * deviation / reward_target_price
                * reward_multiplier / MULTIPLIER_DENOM

The epoch budget is spread over the expected volume, so a busier expected market
pays less per traded token.

Decay and clamp against the epoch window in effect at `now`:

    decayed = raw * remaining / reward_per_epoch
    amount  = min(decayed, remaining)

Repeated claims inside one window therefore shrink toward zero until the window
rolls over. An exhausted budget yields 0, which is an outcome and not an error.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import MalformedTrade
from ..state.config import MULTIPLIER_DENOM, IncentiveConfig
from ..state.epoch import EpochState
from .epoch_budget import commit_reward, remaining_budget, reserve_reward_budget, roll_over
from .penalty import price_deviation
from .trade import TradeContext, TradeDirection, classify


@dataclass(frozen=True)
class RewardQuote:
    raw_amount: int
    decayed_amount: int
    amount: int
    remaining_before: int
    next_state: EpochState

    @property
    def clamped(self) -> bool:
        return self.amount < self.decayed_amount


def compute_raw_reward(trade: TradeContext, config: IncentiveConfig) -> int:
    """Reward before any epoch-budget decay or clamp."""
    if classify(trade) is not TradeDirection.BUY:
        raise MalformedTrade("reward requested for a non-buy trade")
    if trade.reserve <= 0:
        raise MalformedTrade("reserve must be positive")

    deviation = price_deviation(config.reward_target_price, trade.price)
    if deviation == 0 or config.reward_multiplier == 0 or config.reward_per_epoch == 0:
        return 0

    numerator = config.reward_per_epoch * trade.amount_out * deviation * config.reward_multiplier
    denominator = config.expected_volume_per_epoch * config.reward_target_price * MULTIPLIER_DENOM
    return numerator // denominator


def compute_reward(
    trade: TradeContext,
    config: IncentiveConfig,
    state: EpochState,
    now: int,
) -> RewardQuote:
    """Quote the payable reward and the epoch state after paying it."""
    raw = compute_raw_reward(trade, config)
    current = roll_over(state, now, config.epoch_seconds)
    remaining = remaining_budget(current, config.reward_per_epoch)

    if raw == 0 or remaining == 0:
        decayed = 0
    else:
        decayed = (raw * remaining) // config.reward_per_epoch

    amount = reserve_reward_budget(current, decayed, config.reward_per_epoch)
    next_state = commit_reward(current, amount, config.reward_per_epoch)
    return RewardQuote(
        raw_amount=raw,
        decayed_amount=decayed,
        amount=amount,
        remaining_before=remaining,
        next_state=next_state,
    )
