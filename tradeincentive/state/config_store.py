"""
Operator-restricted configuration store.

The store owns one immutable `IncentiveConfig`. Every setter builds a candidate
config with `dataclasses.replace`, so the full set of invariants is re-checked on
each update and a rejected update leaves the stored config untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from ..errors import InvalidParameter, Unauthorized
from .config import AccountId, IncentiveConfig


logger = logging.getLogger(__name__)


class ConfigStore:
    """Holds the controller configuration and the operator identity."""

    def __init__(self, config: IncentiveConfig, operator: AccountId) -> None:
        if not isinstance(config, IncentiveConfig):
            raise TypeError("config must be an IncentiveConfig")
        if not isinstance(operator, str) or not operator:
            raise InvalidParameter("operator must be a non-empty str")
        self._config = config
        self._operator = operator

    @property
    def config(self) -> IncentiveConfig:
        return self._config

    @property
    def operator(self) -> AccountId:
        return self._operator

    def require_operator(self, caller: AccountId, action: str) -> None:
        if caller != self._operator:
            raise Unauthorized(caller, action)

    def _update(self, caller: AccountId, action: str, **changes: Any) -> IncentiveConfig:
        self.require_operator(caller, action)
        try:
            candidate = replace(self._config, **changes)
        except (TypeError, ValueError) as exc:
            raise InvalidParameter(f"{action}: {exc}") from exc
        self._config = candidate
        logger.info("config updated by %s: %s", caller, changes)
        return candidate

    # -- target prices ---------------------------------------------------------

    def set_penalty_target_price(self, caller: AccountId, price: int) -> IncentiveConfig:
        return self._update(caller, "set_penalty_target_price", penalty_target_price=price)

    def set_reward_target_price(self, caller: AccountId, price: int) -> IncentiveConfig:
        return self._update(caller, "set_reward_target_price", reward_target_price=price)

    # -- multipliers -----------------------------------------------------------

    def set_penalty_multiplier(self, caller: AccountId, multiplier: int) -> IncentiveConfig:
        return self._update(caller, "set_penalty_multiplier", penalty_multiplier=multiplier)

    def set_reward_multiplier(self, caller: AccountId, multiplier: int) -> IncentiveConfig:
        return self._update(caller, "set_reward_multiplier", reward_multiplier=multiplier)

    # -- reward budget ---------------------------------------------------------

    def set_expected_volume_per_epoch(self, caller: AccountId, volume: int) -> IncentiveConfig:
        return self._update(caller, "set_expected_volume_per_epoch", expected_volume_per_epoch=volume)

    def set_reward_per_epoch(self, caller: AccountId, amount: int) -> IncentiveConfig:
        return self._update(caller, "set_reward_per_epoch", reward_per_epoch=amount)

    def set_epoch_seconds(self, caller: AccountId, seconds: int) -> IncentiveConfig:
        return self._update(caller, "set_epoch_seconds", epoch_seconds=seconds)

    # -- penalty split ---------------------------------------------------------

    def set_penalty_split(self, caller: AccountId, keep_percent: int, redirect_percent: int) -> IncentiveConfig:
        """Set both split percentages at once; they must sum to 100."""
        return self._update(
            caller,
            "set_penalty_split",
            penalty_keep_percent=keep_percent,
            penalty_redirect_percent=redirect_percent,
        )

    # -- addresses and conversion ----------------------------------------------

    def set_incentive_token(self, caller: AccountId, token: AccountId) -> IncentiveConfig:
        return self._update(caller, "set_incentive_token", incentive_token=token)

    def set_ecosystem_fund(self, caller: AccountId, fund: AccountId) -> IncentiveConfig:
        return self._update(caller, "set_ecosystem_fund", ecosystem_fund=fund)

    def set_pair(self, caller: AccountId, pair: AccountId) -> IncentiveConfig:
        return self._update(caller, "set_pair", pair=pair)

    def set_protocol_to_incentive_price(self, caller: AccountId, price: int) -> IncentiveConfig:
        return self._update(caller, "set_protocol_to_incentive_price", protocol_to_incentive_price=price)

    # -- ownership -------------------------------------------------------------

    def transfer_operator(self, caller: AccountId, new_operator: AccountId) -> None:
        self.require_operator(caller, "transfer_operator")
        if not isinstance(new_operator, str) or not new_operator:
            raise InvalidParameter("new_operator must be a non-empty str")
        logger.info("operator changed: %s -> %s", self._operator, new_operator)
        self._operator = new_operator
