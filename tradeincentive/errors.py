"""Exception types for the trade incentive controller.

Every error aborts the whole call; nothing is partially applied. The
reward-budget-exhausted case is a zero payout, not an error.
"""

from __future__ import annotations


class IncentiveError(Exception):
    """Base class for all controller errors."""


class Unauthorized(IncentiveError):
    """Raised when a restricted call comes from someone other than the operator."""

    def __init__(self, caller: str, action: str) -> None:
        self.caller = caller
        self.action = action
        super().__init__(f"{caller!r} is not authorized to {action}")


class InvalidParameter(IncentiveError, ValueError):
    """Raised when a configuration value violates an invariant."""


class MalformedTrade(IncentiveError, ValueError):
    """Raised when a trade's direction cannot be determined or its fields are invalid."""


class InsufficientFunds(IncentiveError):
    """Raised when a required token transfer cannot be completed."""

    def __init__(self, account: str, required: int, available: int, *, what: str = "balance") -> None:
        self.account = account
        self.required = required
        self.available = available
        self.what = what
        super().__init__(f"insufficient {what} for {account!r}: need {required}, have {available}")
