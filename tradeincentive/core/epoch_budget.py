"""
Epoch reward budget kernel.

Two conceptual states:
  - Open: `now < epoch_start_time + epoch_seconds`
  - Rollover-pending: `now >= boundary`

Every query first applies `roll_over`, which moves a pending window to a fresh
Open window anchored at `now` with nothing paid. There is no timer; a window that
nobody queries stays pending indefinitely, and a clock reading that lags the
window start never rolls it over.

The pure functions below return new `EpochState` values. `EpochBudgetTracker`
is the small mutable holder used by the imperative shell.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..errors import InvalidParameter
from ..state.epoch import EpochState, init_epoch_state


def _check_now(now: int) -> None:
    if not isinstance(now, int) or isinstance(now, bool) or now < 0:
        raise ValueError(f"now must be a non-negative int: {now!r}")


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"amount must be a non-negative int: {amount!r}")


def roll_over(state: EpochState, now: int, epoch_seconds: Optional[int] = None) -> EpochState:
    """Return the window in effect at `now`.

    `epoch_seconds`, when given, is the length of the *next* window; the current
    window keeps the length it was opened with.
    """
    _check_now(now)
    if not state.is_rollover_pending(now):
        return state
    length = state.epoch_seconds if epoch_seconds is None else epoch_seconds
    return EpochState(epoch_start_time=now, epoch_seconds=length, rewards_paid_this_epoch=0)


def remaining_budget(state: EpochState, reward_per_epoch: int) -> int:
    """Budget left in `state`'s window (no rollover)."""
    _check_amount(reward_per_epoch)
    return max(0, reward_per_epoch - state.rewards_paid_this_epoch)


def reserve_reward_budget(state: EpochState, amount: int, reward_per_epoch: int) -> int:
    """Clamp `amount` to the remaining budget. Does not change `state`."""
    _check_amount(amount)
    return min(amount, remaining_budget(state, reward_per_epoch))


def commit_reward(state: EpochState, amount: int, reward_per_epoch: int) -> EpochState:
    """Record `amount` as paid in the current window."""
    _check_amount(amount)
    if amount > remaining_budget(state, reward_per_epoch):
        raise InvalidParameter(
            f"commit of {amount} exceeds remaining epoch budget "
            f"{remaining_budget(state, reward_per_epoch)}"
        )
    if amount == 0:
        return state
    return replace(state, rewards_paid_this_epoch=state.rewards_paid_this_epoch + amount)


class EpochBudgetTracker:
    """Mutable wrapper around `EpochState` that rolls over lazily on every query."""

    def __init__(self, state: EpochState) -> None:
        if not isinstance(state, EpochState):
            raise TypeError("state must be an EpochState")
        self._state = state

    @classmethod
    def starting_at(cls, start_time: int, epoch_seconds: int) -> "EpochBudgetTracker":
        return cls(init_epoch_state(start_time, epoch_seconds))

    @property
    def state(self) -> EpochState:
        return self._state

    def observe(self, now: int, epoch_seconds: Optional[int] = None) -> EpochState:
        """Roll the stored window if due; `epoch_seconds` is the next window's length."""
        self._state = roll_over(self._state, now, epoch_seconds)
        return self._state

    def remaining(self, now: int, reward_per_epoch: int, epoch_seconds: Optional[int] = None) -> int:
        return remaining_budget(self.observe(now, epoch_seconds), reward_per_epoch)

    def reserve_reward_budget(
        self, amount: int, now: int, reward_per_epoch: int, epoch_seconds: Optional[int] = None
    ) -> int:
        return reserve_reward_budget(self.observe(now, epoch_seconds), amount, reward_per_epoch)

    def commit(
        self, amount: int, now: int, reward_per_epoch: int, epoch_seconds: Optional[int] = None
    ) -> EpochState:
        self._state = commit_reward(self.observe(now, epoch_seconds), amount, reward_per_epoch)
        return self._state

    def replace_state(self, state: EpochState) -> None:
        """Install a state computed by the functional core."""
        if not isinstance(state, EpochState):
            raise TypeError("state must be an EpochState")
        self._state = state

    def __repr__(self) -> str:
        s = self._state
        return (
            f"EpochBudgetTracker(start={s.epoch_start_time}, seconds={s.epoch_seconds}, "
            f"paid={s.rewards_paid_this_epoch})"
        )
