"""
State held by the incentive controller
"""

from .config import FIXED_POINT_ONE, MULTIPLIER_DENOM, PERCENT_DENOM, IncentiveConfig
from .config_store import ConfigStore
from .epoch import EpochState, init_epoch_state

__all__ = [
    "FIXED_POINT_ONE",
    "MULTIPLIER_DENOM",
    "PERCENT_DENOM",
    "IncentiveConfig",
    "ConfigStore",
    "EpochState",
    "init_epoch_state",
]
