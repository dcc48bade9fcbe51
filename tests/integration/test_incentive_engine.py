"""End-to-end tests for the stateful controller against the in-memory ledger."""

from __future__ import annotations

import logging
import threading

import pytest

from tradeincentive.errors import IncentiveError, InsufficientFunds, InvalidParameter, MalformedTrade, Unauthorized
from tradeincentive.integration.incentive_engine import IncentiveController, preflight_transfers
from tradeincentive.integration.ledger import InMemoryToken
from tradeincentive.core.controller import Transfer, TransferKind
from tradeincentive.state.config import FIXED_POINT_ONE as E18
from tradeincentive.state.config import IncentiveConfig
from tradeincentive.state.config_store import ConfigStore


T0 = 1_700_000_000
OPERATOR = "operator"
CONTROLLER = "controller"
FUND = "fund"
TRADER = "trader"

RESERVE = 1_000_000 * E18
PRICE = 60 * E18 // 100
SIZE = 10_000 * E18


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _setup(
    *,
    controller_balance: int = 1_000 * E18,
    trader_balance: int = 1_000 * E18,
    allowance: int = 1_000 * E18,
    **overrides: object,
) -> tuple[IncentiveController, InMemoryToken, _Clock]:
    token = InMemoryToken("NAHA")
    token.mint(CONTROLLER, controller_balance)
    token.mint(TRADER, trader_balance)
    token.approve(TRADER, CONTROLLER, allowance)
    cfg = IncentiveConfig(incentive_token="naha", ecosystem_fund=FUND, **overrides)  # type: ignore[arg-type]
    clock = _Clock(T0)
    controller = IncentiveController(ConfigStore(cfg, OPERATOR), token, CONTROLLER, clock=clock)
    return controller, token, clock


# ---------------------------------------------------------------------------
# Sell path
# ---------------------------------------------------------------------------

def test_sell_moves_penalty_and_conserves_tokens() -> None:
    controller, token, _ = _setup()
    before = token.balances()

    res = controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)

    assert res.penalty == 320 * E18
    trader_loss = before[TRADER] - token.balance_of(TRADER)
    controller_gain = token.balance_of(CONTROLLER) - before[CONTROLLER]
    fund_gain = token.balance_of(FUND)
    assert trader_loss == 320 * E18
    assert controller_gain == 160 * E18
    assert fund_gain == 160 * E18
    assert controller_gain + fund_gain == trader_loss
    assert token.allowance(TRADER, CONTROLLER) == 1_000 * E18 - 320 * E18


def test_sell_redirect_can_use_penalty_received_in_same_call() -> None:
    controller, token, _ = _setup(controller_balance=0)
    controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert token.balance_of(CONTROLLER) == 160 * E18
    assert token.balance_of(FUND) == 160 * E18


def test_sell_does_not_touch_epoch_state() -> None:
    controller, _, _ = _setup()
    before = controller.epoch_state
    controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert controller.epoch_state == before


def test_trader_without_allowance_is_rejected_atomically() -> None:
    controller, token, _ = _setup(allowance=100 * E18)
    before = token.balances()
    with pytest.raises(InsufficientFunds) as excinfo:
        controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert excinfo.value.what == "allowance"
    assert token.balances() == before


def test_trader_without_balance_is_rejected_atomically() -> None:
    controller, token, _ = _setup(trader_balance=10 * E18)
    before = token.balances()
    with pytest.raises(InsufficientFunds):
        controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert token.balances() == before
    assert token.allowance(TRADER, CONTROLLER) == 1_000 * E18


# ---------------------------------------------------------------------------
# Buy path
# ---------------------------------------------------------------------------

def test_buy_pays_reward_and_decays_within_epoch() -> None:
    controller, token, clock = _setup(reward_multiplier=1_000_000)

    first = controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
    clock.now += 60
    second = controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)

    assert first.reward_amount == 50 * E18
    assert 0 < second.reward_amount < first.reward_amount
    assert token.balance_of(TRADER) == 1_000 * E18 + first.reward_amount + second.reward_amount
    assert controller.epoch_state.rewards_paid_this_epoch == first.reward_amount + second.reward_amount
    assert controller.remaining_reward_budget() == 500 * E18 - 95 * E18


def test_budget_resets_after_epoch_boundary() -> None:
    controller, _, clock = _setup(reward_multiplier=1_000_000)
    controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
    clock.now = T0 + controller.config.epoch_seconds
    assert controller.remaining_reward_budget() == 500 * E18
    res = controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
    assert res.reward_amount == 50 * E18
    assert controller.epoch_state.epoch_start_time == T0 + controller.config.epoch_seconds


def test_controller_short_of_reward_funds_raises_and_keeps_budget() -> None:
    controller, token, _ = _setup(controller_balance=1 * E18, reward_multiplier=1_000_000)
    before_state = controller.epoch_state
    with pytest.raises(InsufficientFunds):
        controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
    assert controller.epoch_state == before_state
    assert token.balance_of(TRADER) == 1_000 * E18


def test_exhausted_budget_is_a_zero_payout_not_an_error() -> None:
    controller, token, _ = _setup(reward_per_epoch=0)
    res = controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
    assert res.reward_amount == 0
    assert res.transfers == ()
    assert token.balance_of(TRADER) == 1_000 * E18


def test_cumulative_rewards_never_exceed_budget() -> None:
    controller, token, clock = _setup(controller_balance=10_000 * E18, reward_multiplier=10_000_000)
    paid = 0
    for _ in range(50):
        paid += controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER).reward_amount
        clock.now += 1
    assert paid <= controller.config.reward_per_epoch
    assert token.balance_of(TRADER) - 1_000 * E18 == paid


# ---------------------------------------------------------------------------
# Rejections and administration
# ---------------------------------------------------------------------------

def test_malformed_trade_changes_nothing() -> None:
    controller, token, _ = _setup()
    before = (token.balances(), controller.epoch_state)
    with pytest.raises(MalformedTrade):
        controller.conduct_checks(RESERVE, PRICE, SIZE, SIZE, TRADER)
    assert (token.balances(), controller.epoch_state) == before


def test_only_configured_pair_may_trigger_checks() -> None:
    controller, _, _ = _setup(pair="pair")
    with pytest.raises(Unauthorized):
        controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER, caller="mallory")
    res = controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER, caller="pair")
    assert res.penalty == 320 * E18


def test_config_updates_apply_to_next_trade() -> None:
    controller, _, _ = _setup()
    controller.config_store.set_penalty_multiplier(OPERATOR, 200_000)
    res = controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert res.penalty == 640 * E18


def test_sweep_is_operator_only() -> None:
    controller, token, _ = _setup()
    with pytest.raises(Unauthorized):
        controller.sweep("mallory", "mallory", 1)
    controller.sweep(OPERATOR, "treasury", 100 * E18)
    assert token.balance_of("treasury") == 100 * E18
    with pytest.raises(InsufficientFunds):
        controller.sweep(OPERATOR, "treasury", 10_000 * E18)
    with pytest.raises(InvalidParameter):
        controller.sweep(OPERATOR, "treasury", 0)


def test_reentrant_call_is_rejected() -> None:
    class _ReentrantToken(InMemoryToken):
        controller: IncentiveController

        def transfer(self, sender: str, recipient: str, amount: int) -> None:
            self.controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
            super().transfer(sender, recipient, amount)

    token = _ReentrantToken()
    token.mint(CONTROLLER, 1_000 * E18)
    cfg = IncentiveConfig(incentive_token="naha", ecosystem_fund=FUND, reward_multiplier=1_000_000)
    controller = IncentiveController(ConfigStore(cfg, OPERATOR), token, CONTROLLER, clock=_Clock(T0))
    token.controller = controller
    with pytest.raises(IncentiveError):
        controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)


def test_concurrent_buys_respect_budget() -> None:
    controller, token, _ = _setup(controller_balance=10_000 * E18, reward_multiplier=10_000_000)
    results: list[int] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(10):
            r = controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
            with lock:
                results.append(r.reward_amount)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(results) == controller.epoch_state.rewards_paid_this_epoch
    assert sum(results) <= controller.config.reward_per_epoch


def test_preflight_projects_allowance_across_transfers() -> None:
    token = InMemoryToken()
    token.mint("a", 10)
    token.approve("a", "c", 6)
    pulls = [
        Transfer(kind=TransferKind.PULL, token="t", sender="a", recipient="c", amount=4, spender="c"),
        Transfer(kind=TransferKind.PULL, token="t", sender="a", recipient="c", amount=4, spender="c"),
    ]
    with pytest.raises(InsufficientFunds):
        preflight_transfers(token, pulls)


# ---------------------------------------------------------------------------
# Incentive token switch
# ---------------------------------------------------------------------------

def test_switched_incentive_token_without_ledger_is_rejected() -> None:
    controller, token, _ = _setup()
    before = token.balances()
    controller.config_store.set_incentive_token(OPERATOR, "maha")
    with pytest.raises(InvalidParameter, match="maha"):
        controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert token.balances() == before


def test_switched_incentive_token_moves_the_new_ledger() -> None:
    controller, naha, _ = _setup()
    naha_before = naha.balances()

    maha = InMemoryToken("MAHA")
    maha.mint(TRADER, 1_000 * E18)
    maha.approve(TRADER, CONTROLLER, 1_000 * E18)
    with pytest.raises(Unauthorized):
        controller.attach_ledger("mallory", "maha", maha)
    controller.attach_ledger(OPERATOR, "maha", maha)
    controller.config_store.set_incentive_token(OPERATOR, "maha")

    res = controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER)
    assert {t.token for t in res.transfers} == {"maha"}
    assert maha.balance_of(TRADER) == 680 * E18
    assert maha.balance_of(CONTROLLER) == 160 * E18
    assert maha.balance_of(FUND) == 160 * E18
    assert naha.balances() == naha_before


def test_ledgers_can_be_passed_by_token() -> None:
    naha = InMemoryToken("NAHA")
    naha.mint(CONTROLLER, 1_000 * E18)
    cfg = IncentiveConfig(incentive_token="naha", ecosystem_fund=FUND, reward_multiplier=1_000_000)
    controller = IncentiveController(ConfigStore(cfg, OPERATOR), {"naha": naha}, CONTROLLER, clock=_Clock(T0))
    res = controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER)
    assert res.reward_amount == 50 * E18
    assert naha.balance_of(TRADER) == 50 * E18


# ---------------------------------------------------------------------------
# Rejection logging
# ---------------------------------------------------------------------------

def test_unauthorized_caller_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    controller, _, _ = _setup(pair="pair")
    with caplog.at_level(logging.WARNING, logger="tradeincentive.integration.incentive_engine"):
        with pytest.raises(Unauthorized):
            controller.conduct_checks(RESERVE, PRICE, 0, SIZE, TRADER, caller="mallory")
    assert any("trade rejected" in r.getMessage() for r in caplog.records)


def test_bad_clock_reading_is_logged_and_changes_nothing(caplog: pytest.LogCaptureFixture) -> None:
    controller, token, _ = _setup(reward_multiplier=1_000_000)
    before = (token.balances(), controller.epoch_state)
    with caplog.at_level(logging.WARNING, logger="tradeincentive.integration.incentive_engine"):
        with pytest.raises(ValueError):
            controller.conduct_checks(RESERVE, PRICE, SIZE, 0, TRADER, now=-1)
    assert any("trade rejected" in r.getMessage() for r in caplog.records)
    assert (token.balances(), controller.epoch_state) == before
