"""
Incentive controller parameters (deterministic, integer-only).

Units/conventions:
- prices and token amounts are 18-decimal fixed point (`FIXED_POINT_ONE` = 1.0),
- `*_multiplier` values are parts-per-100000 (`MULTIPLIER_DENOM` = 1.0x),
- `*_percent` values are whole percent and the penalty split sums to 100.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


FIXED_POINT_ONE = 10**18
MULTIPLIER_DENOM = 100_000
PERCENT_DENOM = 100

DEFAULT_EPOCH_SECONDS = 12 * 60 * 60

AccountId = str


def _require_int(name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_account(name: str, value: object) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    if not value:
        raise ValueError(f"{name} must be non-empty")


@dataclass(frozen=True)
class IncentiveConfig:
    """Operator-tunable controller configuration."""

    incentive_token: AccountId
    ecosystem_fund: AccountId

    penalty_target_price: int = FIXED_POINT_ONE
    reward_target_price: int = FIXED_POINT_ONE
    penalty_multiplier: int = MULTIPLIER_DENOM
    reward_multiplier: int = MULTIPLIER_DENOM

    expected_volume_per_epoch: int = 400_000 * FIXED_POINT_ONE
    reward_per_epoch: int = 500 * FIXED_POINT_ONE
    epoch_seconds: int = DEFAULT_EPOCH_SECONDS

    penalty_keep_percent: int = 50
    penalty_redirect_percent: int = 50

    # Price of one protocol token in incentive tokens.
    protocol_to_incentive_price: int = FIXED_POINT_ONE

    # Informational unless set: when `pair` is non-empty only it may trigger checks.
    pair: AccountId = ""
    protocol_token: AccountId = ""

    def __post_init__(self) -> None:
        for name in ("incentive_token", "ecosystem_fund"):
            _require_account(name, getattr(self, name))
        for name in ("pair", "protocol_token"):
            if not isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a str")

        for f in fields(self):
            if f.type in ("int", int):
                _require_int(f.name, getattr(self, f.name))

        for name in (
            "penalty_target_price",
            "reward_target_price",
            "expected_volume_per_epoch",
            "epoch_seconds",
            "protocol_to_incentive_price",
        ):
            v = getattr(self, name)
            if v <= 0:
                raise ValueError(f"{name} must be positive: {v}")

        for name in ("penalty_multiplier", "reward_multiplier", "reward_per_epoch"):
            v = getattr(self, name)
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

        for name in ("penalty_keep_percent", "penalty_redirect_percent"):
            v = getattr(self, name)
            if not (0 <= v <= PERCENT_DENOM):
                raise ValueError(f"{name} must be in [0, {PERCENT_DENOM}]: {v}")
        total = self.penalty_keep_percent + self.penalty_redirect_percent
        if total != PERCENT_DENOM:
            raise ValueError(f"penalty split must sum to {PERCENT_DENOM}, got {total}")
