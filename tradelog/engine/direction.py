"""Trade direction and its sign policy.

Long and short trades differ only in which way a price move counts as a gain.
That rule lives here once; P&L and risk/reward both go through ``policy_for``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any

from tradelog.core.errors import ValidationError


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: Any, default: "Direction | None" = None) -> "Direction":
        """Accept enum members or case-insensitive strings; blank falls back to ``default``."""
        if isinstance(value, Direction):
            return value
        if value is None or (isinstance(value, str) and not value.strip()):
            if default is None:
                raise ValidationError("direction", "is required")
            return default
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError("direction", "must be 'long' or 'short'")


class DirectionPolicy(ABC):
    direction: Direction

    @abstractmethod
    def favorable_move(self, start: Decimal, end: Decimal) -> Decimal:
        """Signed price move from ``start`` to ``end``, positive when it favors the position."""

    def pnl(self, entry_price: Decimal, exit_price: Decimal, quantity: Decimal) -> Decimal:
        return self.favorable_move(entry_price, exit_price) * quantity

    def risk_distance(self, entry_price: Decimal, stop_loss: Decimal) -> Decimal:
        # long: entry - stop, short: stop - entry
        return self.favorable_move(stop_loss, entry_price)

    def reward_distance(self, entry_price: Decimal, take_profit: Decimal) -> Decimal:
        # long: target - entry, short: entry - target
        return self.favorable_move(entry_price, take_profit)


class LongPolicy(DirectionPolicy):
    direction = Direction.LONG

    def favorable_move(self, start: Decimal, end: Decimal) -> Decimal:
        return end - start


class ShortPolicy(DirectionPolicy):
    direction = Direction.SHORT

    def favorable_move(self, start: Decimal, end: Decimal) -> Decimal:
        return start - end


_POLICIES: dict[Direction, DirectionPolicy] = {
    Direction.LONG: LongPolicy(),
    Direction.SHORT: ShortPolicy(),
}


def policy_for(direction: Direction | str) -> DirectionPolicy:
    return _POLICIES[Direction.parse(direction)]
