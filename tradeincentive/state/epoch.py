"""
Epoch window state for reward issuance.

An epoch is open while `now < epoch_start_time + epoch_seconds`. Once the clock
reaches the boundary the window is due for rollover; the rollover itself is lazy
and happens on the next query (see `tradeincentive.core.epoch_budget`).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EpochState:
    """Immutable reward window."""

    epoch_start_time: int
    epoch_seconds: int
    rewards_paid_this_epoch: int = 0

    def __post_init__(self) -> None:
        for name, val in (
            ("epoch_start_time", self.epoch_start_time),
            ("epoch_seconds", self.epoch_seconds),
            ("rewards_paid_this_epoch", self.rewards_paid_this_epoch),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
        if self.epoch_start_time < 0:
            raise ValueError(f"epoch_start_time must be non-negative: {self.epoch_start_time}")
        if self.epoch_seconds <= 0:
            raise ValueError(f"epoch_seconds must be positive: {self.epoch_seconds}")
        if self.rewards_paid_this_epoch < 0:
            raise ValueError(f"rewards_paid_this_epoch must be non-negative: {self.rewards_paid_this_epoch}")

    @property
    def epoch_end_time(self) -> int:
        return self.epoch_start_time + self.epoch_seconds

    def is_rollover_pending(self, now: int) -> bool:
        return now >= self.epoch_end_time


def init_epoch_state(start_time: int, epoch_seconds: int) -> EpochState:
    """Open a fresh window at `start_time`."""
    return EpochState(epoch_start_time=start_time, epoch_seconds=epoch_seconds)
