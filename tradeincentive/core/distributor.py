"""
Penalty splitting kernel (deterministic, integer-only).

The redirect share is floored; the kept share absorbs the rounding remainder, so
`keep_amount + redirect_amount == amount` for every split and nothing is stranded.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.config import PERCENT_DENOM, IncentiveConfig


@dataclass(frozen=True)
class PenaltySplit:
    keep_amount: int
    redirect_amount: int

    def __post_init__(self) -> None:
        for name, v in (
            ("keep_amount", self.keep_amount),
            ("redirect_amount", self.redirect_amount),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    @property
    def total(self) -> int:
        return self.keep_amount + self.redirect_amount


def distribute_penalty(amount: int, config: IncentiveConfig) -> PenaltySplit:
    """Split a collected penalty into (kept by controller, sent to ecosystem fund)."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"amount must be a non-negative int, got {amount}")

    redirect = (amount * config.penalty_redirect_percent) // PERCENT_DENOM
    keep = amount - redirect
    if keep < (amount * config.penalty_keep_percent) // PERCENT_DENOM:
        raise AssertionError("penalty split under-kept")
    return PenaltySplit(keep_amount=keep, redirect_amount=redirect)
