"""
Trade incentive controller for AMM pairs.

On every swap the controller charges a penalty (sells below peg) or pays a reward
(buys below peg) in a separate incentive token, bounded by a per-epoch budget.
"""

from .errors import IncentiveError, InsufficientFunds, InvalidParameter, MalformedTrade, Unauthorized

__version__ = "0.1.0"

__all__ = [
    "IncentiveError",
    "InsufficientFunds",
    "InvalidParameter",
    "MalformedTrade",
    "Unauthorized",
]
