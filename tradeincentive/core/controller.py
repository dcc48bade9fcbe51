"""
Incentive controller step (functional core).

This module wires the kernels into a single pure step:
- Classify the trade
- SELL: compute the penalty and its split, plan trader -> controller -> fund
- BUY: quote the reward against the epoch window, plan controller -> trader

Nothing here touches a ledger. The step returns the planned transfers and the next
epoch state; the imperative shell (`tradeincentive.integration.incentive_engine`)
pre-flights and applies them together.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Tuple

from ..state.config import AccountId, IncentiveConfig
from ..state.epoch import EpochState
from .distributor import PenaltySplit, distribute_penalty
from .penalty import compute_penalty
from .reward import RewardQuote, compute_reward
from .trade import TradeContext, TradeDirection, classify


@unique
class TransferKind(Enum):
    # `transfer_from`: spender moves the owner's tokens under an allowance.
    PULL = "pull"
    # `transfer`: the sender moves its own tokens.
    PUSH = "push"


@dataclass(frozen=True)
class Transfer:
    kind: TransferKind
    token: AccountId
    sender: AccountId
    recipient: AccountId
    amount: int
    # Account spending the allowance for PULL transfers.
    spender: Optional[AccountId] = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool) or self.amount <= 0:
            raise ValueError(f"transfer amount must be a positive int: {self.amount!r}")
        if self.kind is TransferKind.PULL and not self.spender:
            raise ValueError("pull transfers require a spender")


@dataclass(frozen=True)
class CheckResult:
    direction: TradeDirection
    trade: TradeContext
    next_state: EpochState
    transfers: Tuple[Transfer, ...] = ()
    penalty: int = 0
    split: Optional[PenaltySplit] = None
    reward: Optional[RewardQuote] = None

    @property
    def reward_amount(self) -> int:
        return 0 if self.reward is None else self.reward.amount


def _penalty_path(
    config: IncentiveConfig,
    state: EpochState,
    trade: TradeContext,
    controller_account: AccountId,
) -> CheckResult:
    penalty = compute_penalty(trade, config)
    split = distribute_penalty(penalty, config)

    transfers = []
    if penalty > 0:
        transfers.append(
            Transfer(
                kind=TransferKind.PULL,
                token=config.incentive_token,
                sender=trade.recipient,
                recipient=controller_account,
                amount=penalty,
                spender=controller_account,
            )
        )
    if split.redirect_amount > 0:
        transfers.append(
            Transfer(
                kind=TransferKind.PUSH,
                token=config.incentive_token,
                sender=controller_account,
                recipient=config.ecosystem_fund,
                amount=split.redirect_amount,
            )
        )

    return CheckResult(
        direction=TradeDirection.SELL,
        trade=trade,
        next_state=state,
        transfers=tuple(transfers),
        penalty=penalty,
        split=split,
    )


def _reward_path(
    config: IncentiveConfig,
    state: EpochState,
    trade: TradeContext,
    controller_account: AccountId,
    now: int,
) -> CheckResult:
    quote = compute_reward(trade, config, state, now)

    transfers = []
    if quote.amount > 0:
        transfers.append(
            Transfer(
                kind=TransferKind.PUSH,
                token=config.incentive_token,
                sender=controller_account,
                recipient=trade.recipient,
                amount=quote.amount,
            )
        )

    return CheckResult(
        direction=TradeDirection.BUY,
        trade=trade,
        next_state=quote.next_state,
        transfers=tuple(transfers),
        reward=quote,
    )


def conduct_checks(
    config: IncentiveConfig,
    state: EpochState,
    trade: TradeContext,
    *,
    now: int,
    controller_account: AccountId,
) -> CheckResult:
    """
    Decide the incentive for one trade.

    Exactly one of the penalty or reward path runs. A sell leaves the epoch state
    as it was; only a reward payment (or the rollover it observes) changes it.
    """
    direction = classify(trade)
    if direction is TradeDirection.SELL:
        return _penalty_path(config, state, trade, controller_account)
    return _reward_path(config, state, trade, controller_account, now)
