"""
Token ledger interface and an in-memory ERC-20-style implementation.

The controller never owns balances. It drives whatever implements `TokenLedger`
(a chain client, a simulator, or `InMemoryToken` in tests).
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple, runtime_checkable

from ..errors import InsufficientFunds


AccountId = str
Amount = int


@runtime_checkable
class TokenLedger(Protocol):
    def balance_of(self, account: AccountId) -> Amount: ...

    def allowance(self, owner: AccountId, spender: AccountId) -> Amount: ...

    def transfer(self, sender: AccountId, recipient: AccountId, amount: Amount) -> None: ...

    def transfer_from(
        self, spender: AccountId, owner: AccountId, recipient: AccountId, amount: Amount
    ) -> None: ...


def _check_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"amount must be a non-negative int: {amount!r}")


class InMemoryToken:
    """
    Single-asset balance and allowance table.

    Zero balances are dropped to keep the table sparse. Iteration order of the
    underlying dicts is not meaningful; `balances()` returns a sorted copy.
    """

    def __init__(self, symbol: str = "TOKEN") -> None:
        self.symbol = symbol
        self._balances: Dict[AccountId, Amount] = {}
        self._allowances: Dict[Tuple[AccountId, AccountId], Amount] = {}

    def balance_of(self, account: AccountId) -> Amount:
        return self._balances.get(account, 0)

    def allowance(self, owner: AccountId, spender: AccountId) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def total_supply(self) -> Amount:
        return sum(self._balances.values())

    def balances(self) -> Dict[AccountId, Amount]:
        return dict(sorted(self._balances.items()))

    def mint(self, account: AccountId, amount: Amount) -> None:
        _check_amount(amount)
        self._set_balance(account, self.balance_of(account) + amount)

    def approve(self, owner: AccountId, spender: AccountId, amount: Amount) -> None:
        _check_amount(amount)
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount

    def transfer(self, sender: AccountId, recipient: AccountId, amount: Amount) -> None:
        _check_amount(amount)
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientFunds(sender, amount, available)
        self._move(sender, recipient, amount)

    def transfer_from(
        self, spender: AccountId, owner: AccountId, recipient: AccountId, amount: Amount
    ) -> None:
        _check_amount(amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientFunds(owner, amount, allowed, what="allowance")
        available = self.balance_of(owner)
        if available < amount:
            raise InsufficientFunds(owner, amount, available)
        self.approve(owner, spender, allowed - amount)
        self._move(owner, recipient, amount)

    def _move(self, sender: AccountId, recipient: AccountId, amount: Amount) -> None:
        if amount == 0 or sender == recipient:
            return
        self._set_balance(sender, self.balance_of(sender) - amount)
        self._set_balance(recipient, self.balance_of(recipient) + amount)

    def _set_balance(self, account: AccountId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def __repr__(self) -> str:
        return f"InMemoryToken({self.symbol}, {len(self._balances)} holders)"
