"""Pre-trade risk/reward planning (advisory only, nothing is stored)."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from tradelog.engine.direction import Direction, policy_for
from tradelog.engine.lifecycle import require_positive


@dataclass(frozen=True)
class RiskReward:
    direction: Direction
    risk_distance: Decimal
    reward_distance: Decimal
    risk_amount: Decimal
    reward_amount: Decimal
    risk_percent: Decimal
    rr_ratio: Decimal


def calculate_risk_reward(
    direction: Any,
    entry_price: Any,
    quantity: Any,
    stop_loss: Any,
    take_profit: Any,
) -> RiskReward:
    side = Direction.parse(direction, default=Direction.LONG)
    policy = policy_for(side)
    entry = require_positive(entry_price, "entryPrice")
    qty = require_positive(quantity, "quantity")
    stop = require_positive(stop_loss, "stopLoss")
    target = require_positive(take_profit, "takeProfit")

    risk_distance = policy.risk_distance(entry, stop)
    reward_distance = policy.reward_distance(entry, target)
    risk_amount = abs(risk_distance) * qty
    reward_amount = abs(reward_distance) * qty
    rr_ratio = reward_amount / risk_amount if risk_amount != 0 else Decimal("0")

    return RiskReward(
        direction=side,
        risk_distance=risk_distance,
        reward_distance=reward_distance,
        risk_amount=risk_amount,
        reward_amount=reward_amount,
        risk_percent=abs(risk_distance) / entry * 100,
        rr_ratio=rr_ratio,
    )
