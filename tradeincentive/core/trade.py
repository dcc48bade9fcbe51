"""
Trade records and direction classification.

A trade is seen from the protocol token's side of the pair:
- SELL: the trader supplies the protocol token (`amount_in > 0`), pushing its price down.
- BUY: the trader removes the protocol token (`amount_out > 0`), pushing its price up.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..errors import MalformedTrade


@unique
class TradeDirection(Enum):
    SELL = "sell"
    BUY = "buy"


@dataclass(frozen=True)
class TradeContext:
    """One swap as reported by the pair. `price` is the post-swap reading."""

    reserve: int
    price: int
    amount_out: int
    amount_in: int
    recipient: str

    def __post_init__(self) -> None:
        for name, val in (
            ("reserve", self.reserve),
            ("price", self.price),
            ("amount_out", self.amount_out),
            ("amount_in", self.amount_in),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise MalformedTrade(f"{name} must be an int")
            if val < 0:
                raise MalformedTrade(f"{name} must be non-negative: {val}")
        if not isinstance(self.recipient, str) or not self.recipient:
            raise MalformedTrade("recipient must be a non-empty str")


def classify(trade: TradeContext) -> TradeDirection:
    """Label `trade` as SELL or BUY; exactly one of amount_in/amount_out must be nonzero."""
    has_in = trade.amount_in > 0
    has_out = trade.amount_out > 0
    if has_in and not has_out:
        return TradeDirection.SELL
    if has_out and not has_in:
        return TradeDirection.BUY
    if has_in:
        raise MalformedTrade(
            f"both amount_in ({trade.amount_in}) and amount_out ({trade.amount_out}) are nonzero"
        )
    raise MalformedTrade("both amount_in and amount_out are zero")
