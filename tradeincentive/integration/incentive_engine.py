"""
Incentive controller adapter (imperative shell).

Wraps the functional core (`tradeincentive.core.controller`) with the pieces that
own state:
- the `ConfigStore` (operator-restricted parameters),
- the `EpochBudgetTracker` (reward window),
- one `TokenLedger` per token id (a bare ledger serves the configured incentive token).

A call is all-or-nothing: every planned transfer is checked against a projected
view of the ledger before the first one is applied, and the epoch state is only
replaced after all transfers went through.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from ..core.controller import CheckResult, Transfer, TransferKind, conduct_checks
from ..core.epoch_budget import EpochBudgetTracker, remaining_budget, roll_over
from ..core.trade import TradeContext
from ..errors import IncentiveError, InsufficientFunds, InvalidParameter, Unauthorized
from ..state.config import AccountId, IncentiveConfig
from ..state.config_store import ConfigStore
from ..state.epoch import EpochState
from .ledger import TokenLedger


logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _system_clock() -> int:
    return int(time.time())


Ledgers = Union[TokenLedger, Mapping[AccountId, TokenLedger]]


def ledger_for(ledgers: Ledgers, token: AccountId) -> TokenLedger:
    """Pick the ledger for `token`; a bare ledger serves every token."""
    if not isinstance(ledgers, Mapping):
        return ledgers
    try:
        return ledgers[token]
    except KeyError:
        raise InvalidParameter(f"no ledger attached for token {token!r}") from None


def preflight_transfers(ledgers: Ledgers, transfers: Iterable[Transfer]) -> None:
    """
    Raise `InsufficientFunds` if any transfer in the sequence would fail.

    Balances and allowances are projected forward per token so a later transfer
    sees the effect of earlier ones (e.g. the controller forwarding a penalty it
    only receives in the same call). An unknown token raises `InvalidParameter`.
    """
    balances: Dict[Tuple[AccountId, AccountId], int] = {}
    allowances: Dict[Tuple[AccountId, AccountId, AccountId], int] = {}

    for t in transfers:
        ledger = ledger_for(ledgers, t.token)
        if t.kind is TransferKind.PULL:
            spender = t.spender or ""
            akey = (t.token, t.sender, spender)
            allowed = allowances.get(akey, ledger.allowance(t.sender, spender))
            if allowed < t.amount:
                raise InsufficientFunds(t.sender, t.amount, allowed, what="allowance")
            allowances[akey] = allowed - t.amount

        skey = (t.token, t.sender)
        rkey = (t.token, t.recipient)
        available = balances.get(skey, ledger.balance_of(t.sender))
        if available < t.amount:
            raise InsufficientFunds(t.sender, t.amount, available)
        balances[skey] = available - t.amount
        balances[rkey] = balances.get(rkey, ledger.balance_of(t.recipient)) + t.amount


def apply_transfers(ledgers: Ledgers, transfers: Iterable[Transfer]) -> None:
    for t in transfers:
        ledger = ledger_for(ledgers, t.token)
        if t.kind is TransferKind.PULL:
            ledger.transfer_from(t.spender or "", t.sender, t.recipient, t.amount)
        else:
            ledger.transfer(t.sender, t.recipient, t.amount)


class IncentiveController:
    """Stateful controller invoked by the pair once per swap."""

    def __init__(
        self,
        config_store: ConfigStore,
        ledger: Ledgers,
        account: AccountId,
        *,
        clock: Optional[Clock] = None,
        epoch_start_time: Optional[int] = None,
    ) -> None:
        if not isinstance(config_store, ConfigStore):
            raise TypeError("config_store must be a ConfigStore")
        if not isinstance(account, str) or not account:
            raise InvalidParameter("account must be a non-empty str")
        self._store = config_store
        # A bare ledger is bound to the incentive token configured at construction.
        if isinstance(ledger, Mapping):
            self._ledgers: Dict[AccountId, TokenLedger] = dict(ledger)
        else:
            self._ledgers = {config_store.config.incentive_token: ledger}
        self._account = account
        self._clock = clock or _system_clock

        start = self._clock() if epoch_start_time is None else epoch_start_time
        self._tracker = EpochBudgetTracker.starting_at(start, config_store.config.epoch_seconds)

        self._lock = threading.RLock()
        self._in_call = False

    # -- views -----------------------------------------------------------------

    @property
    def account(self) -> AccountId:
        return self._account

    @property
    def config_store(self) -> ConfigStore:
        return self._store

    @property
    def config(self) -> IncentiveConfig:
        return self._store.config

    @property
    def epoch_state(self) -> EpochState:
        return self._tracker.state

    def remaining_reward_budget(self, now: Optional[int] = None) -> int:
        """Budget left in the window in effect at `now` (does not roll the stored state)."""
        cfg = self._store.config
        t = self._clock() if now is None else now
        return remaining_budget(roll_over(self._tracker.state, t, cfg.epoch_seconds), cfg.reward_per_epoch)

    # -- trade entry point -----------------------------------------------------

    def conduct_checks(
        self,
        reserve: int,
        price: int,
        amount_out: int,
        amount_in: int,
        recipient: AccountId,
        *,
        caller: Optional[AccountId] = None,
        now: Optional[int] = None,
    ) -> CheckResult:
        """Charge a penalty or pay a reward for one swap."""
        with self._lock:
            if self._in_call:
                raise IncentiveError("re-entrant conduct_checks call")
            self._in_call = True
            try:
                return self._conduct_checks_locked(
                    reserve, price, amount_out, amount_in, recipient, caller=caller, now=now
                )
            finally:
                self._in_call = False

    def _conduct_checks_locked(
        self,
        reserve: int,
        price: int,
        amount_out: int,
        amount_in: int,
        recipient: AccountId,
        *,
        caller: Optional[AccountId],
        now: Optional[int],
    ) -> CheckResult:
        cfg = self._store.config
        t = self._clock() if now is None else now
        try:
            if cfg.pair and caller is not None and caller != cfg.pair:
                raise Unauthorized(caller, "conduct_checks")
            trade = TradeContext(
                reserve=reserve,
                price=price,
                amount_out=amount_out,
                amount_in=amount_in,
                recipient=recipient,
            )
            result = conduct_checks(
                cfg,
                self._tracker.state,
                trade,
                now=t,
                controller_account=self._account,
            )
            preflight_transfers(self._ledgers, result.transfers)
        except (IncentiveError, ValueError) as exc:
            logger.warning("trade rejected for %s: %s", recipient, exc)
            raise

        apply_transfers(self._ledgers, result.transfers)
        self._tracker.replace_state(result.next_state)

        if result.split is not None:
            logger.info(
                "penalty %s charged to %s (kept %s, redirected %s)",
                result.penalty,
                recipient,
                result.split.keep_amount,
                result.split.redirect_amount,
            )
        elif result.reward is not None:
            logger.info(
                "reward %s paid to %s (raw %s, epoch paid %s)",
                result.reward.amount,
                recipient,
                result.reward.raw_amount,
                result.next_state.rewards_paid_this_epoch,
            )
        return result

    # -- administration --------------------------------------------------------

    def attach_ledger(self, caller: AccountId, token: AccountId, ledger: TokenLedger) -> None:
        """Operator-only: register the ledger that holds balances of `token`."""
        with self._lock:
            self._store.require_operator(caller, "attach_ledger")
            if not isinstance(token, str) or not token:
                raise InvalidParameter("token must be a non-empty str")
            if not isinstance(ledger, TokenLedger):
                raise TypeError("ledger must implement TokenLedger")
            self._ledgers[token] = ledger
            logger.info("operator %s attached ledger for %s", caller, token)

    def sweep(self, caller: AccountId, to: AccountId, amount: int) -> None:
        """Operator-only withdrawal of incentive tokens held by the controller."""
        with self._lock:
            self._store.require_operator(caller, "sweep")
            if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
                raise InvalidParameter(f"amount must be a positive int: {amount!r}")
            transfer = Transfer(
                kind=TransferKind.PUSH,
                token=self._store.config.incentive_token,
                sender=self._account,
                recipient=to,
                amount=amount,
            )
            preflight_transfers(self._ledgers, (transfer,))
            apply_transfers(self._ledgers, (transfer,))
            logger.info("operator %s swept %s to %s", caller, amount, to)
