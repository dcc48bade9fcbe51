"""
Core incentive kernels
"""

from .trade import TradeContext, TradeDirection, classify
from .penalty import PENALTY_RATE, compute_penalty
from .reward import RewardQuote, compute_raw_reward, compute_reward
from .distributor import PenaltySplit, distribute_penalty
from .epoch_budget import (
    EpochBudgetTracker,
    commit_reward,
    remaining_budget,
    reserve_reward_budget,
    roll_over,
)
from .controller import CheckResult, Transfer, TransferKind
from .controller import conduct_checks

__all__ = [
    "TradeContext",
    "TradeDirection",
    "classify",
    "PENALTY_RATE",
    "compute_penalty",
    "RewardQuote",
    "compute_raw_reward",
    "compute_reward",
    "PenaltySplit",
    "distribute_penalty",
    "EpochBudgetTracker",
    "commit_reward",
    "remaining_budget",
    "reserve_reward_budget",
    "roll_over",
    "CheckResult",
    "Transfer",
    "TransferKind",
    "conduct_checks",
]
