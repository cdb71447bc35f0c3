from decimal import Decimal

import pytest

from tradelog.core.errors import ValidationError
from tradelog.engine.direction import Direction, LongPolicy, ShortPolicy, policy_for


@pytest.mark.parametrize("raw,expected", [
    ("long", Direction.LONG),
    ("SHORT", Direction.SHORT),
    ("  Long ", Direction.LONG),
    (Direction.SHORT, Direction.SHORT),
])
def test_parse_direction(raw, expected):
    assert Direction.parse(raw) is expected


def test_blank_direction_uses_default():
    assert Direction.parse(None, default=Direction.LONG) is Direction.LONG
    assert Direction.parse("", default=Direction.LONG) is Direction.LONG


def test_blank_direction_without_default_is_rejected():
    with pytest.raises(ValidationError) as exc:
        Direction.parse(None)
    assert exc.value.field == "direction"


def test_unknown_direction_is_rejected():
    with pytest.raises(ValidationError) as exc:
        Direction.parse("sideways")
    assert exc.value.field == "direction"


def test_policy_for_selects_variant():
    assert isinstance(policy_for("long"), LongPolicy)
    assert isinstance(policy_for(Direction.SHORT), ShortPolicy)


@pytest.mark.parametrize("direction,entry,exit_,qty,expected", [
    ("long", "100", "110", "10", "100"),
    ("long", "100", "90", "10", "-100"),
    ("short", "100", "90", "10", "100"),
    ("short", "100", "110", "10", "-100"),
    ("long", "1.25", "1.3", "3", "0.15"),
])
def test_pnl_sign_follows_direction(direction, entry, exit_, qty, expected):
    pnl = policy_for(direction).pnl(Decimal(entry), Decimal(exit_), Decimal(qty))
    assert pnl == Decimal(expected)


def test_risk_and_reward_distances():
    long_ = policy_for("long")
    assert long_.risk_distance(Decimal("100"), Decimal("90")) == Decimal("10")
    assert long_.reward_distance(Decimal("100"), Decimal("130")) == Decimal("30")

    short = policy_for("short")
    assert short.risk_distance(Decimal("100"), Decimal("110")) == Decimal("10")
    assert short.reward_distance(Decimal("100"), Decimal("70")) == Decimal("30")
