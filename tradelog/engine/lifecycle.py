"""
Trade lifecycle rules

- validate and normalize input for a new trade
- realized P&L on close
- the generic edit path, including the open -> closed transition

Everything here is pure: values in, values out, no session and no I/O.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional

from tradelog.core.errors import TradeStateError, ValidationError
from tradelog.engine.direction import Direction, policy_for
from tradelog.engine.tags import TagSet


class TradeStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


STRATEGIES = (
    "Breakout",
    "Pullback",
    "Reversal",
    "Trend Following",
    "Range",
    "Scalp",
    "Swing",
    "News",
    "Earnings",
    "Other",
)

EXECUTION_RATE_MIN = 1
EXECUTION_RATE_MAX = 10

# scale of the Numeric columns; more digits would be lost on write
DECIMAL_PLACES = 8
_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)

# fields that define the position and its result; fixed once a trade is closed
FROZEN_WHEN_CLOSED = (
    "symbol",
    "direction",
    "entry_price",
    "quantity",
    "entry_date",
    "exit_price",
    "exit_date",
    "status",
)

ANNOTATION_FIELDS = (
    "strategy",
    "tags",
    "execution_rate",
    "notes",
    "screenshot",
    "stop_loss",
    "take_profit",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_decimal(value: Any, field: str) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValidationError(field, "must be a number")
    else:
        raise ValidationError(field, "must be a number")
    if not result.is_finite():
        raise ValidationError(field, "must be a finite number")
    if result.normalize().as_tuple().exponent < -DECIMAL_PLACES:
        raise ValidationError(field, f"supports at most {DECIMAL_PLACES} decimal places")
    return result


def require_positive(value: Any, field: str) -> Decimal:
    result = to_decimal(value, field)
    if result is None:
        raise ValidationError(field, "is required")
    if result <= 0:
        raise ValidationError(field, "must be greater than 0")
    return result


def optional_positive(value: Any, field: str) -> Optional[Decimal]:
    result = to_decimal(value, field)
    if result is not None and result <= 0:
        raise ValidationError(field, "must be greater than 0")
    return result


def to_timestamp(value: Any, field: str) -> Optional[datetime]:
    """Parse to a naive UTC datetime, the form the store keeps."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(field, "must be an ISO-8601 timestamp")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise ValidationError(field, "must be an ISO-8601 timestamp")


def normalize_symbol(value: Any) -> str:
    symbol = str(value).strip().upper() if value is not None else ""
    if not symbol:
        raise ValidationError("symbol", "is required")
    return symbol


def normalize_execution_rate(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("executionRate", "must be an integer")
    try:
        rate = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("executionRate", "must be an integer")
    if not rate.is_finite() or rate != rate.to_integral_value():
        raise ValidationError("executionRate", "must be an integer")
    rate = int(rate)
    if not EXECUTION_RATE_MIN <= rate <= EXECUTION_RATE_MAX:
        raise ValidationError(
            "executionRate", f"must be between {EXECUTION_RATE_MIN} and {EXECUTION_RATE_MAX}"
        )
    return rate


def normalize_strategy(value: Any) -> Optional[str]:
    """Snap to the vocabulary spelling when it matches, otherwise keep the free text."""
    text = _optional_text(value)
    if text is None:
        return None
    for label in STRATEGIES:
        if label.lower() == text.lower():
            return label
    return text


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_annotations(payload: Mapping[str, Any], out: dict) -> None:
    if "strategy" in payload:
        out["strategy"] = normalize_strategy(payload["strategy"])
    if "notes" in payload:
        out["notes"] = _optional_text(payload["notes"])
    if "screenshot" in payload:
        out["screenshot"] = _optional_text(payload["screenshot"])
    if "tags" in payload:
        out["tags"] = TagSet.parse(payload["tags"])
    if "stop_loss" in payload:
        out["stop_loss"] = optional_positive(payload["stop_loss"], "stopLoss")
    if "take_profit" in payload:
        out["take_profit"] = optional_positive(payload["take_profit"], "takeProfit")
    if payload.get("execution_rate") is not None:
        out["execution_rate"] = normalize_execution_rate(payload["execution_rate"])


def normalize_new_trade(
    payload: Mapping[str, Any],
    default_execution_rate: int = 5,
    now: Optional[datetime] = None,
) -> dict:
    """Validate creation input and return the column values of a new open trade.

    Required fields are checked in the order symbol, entryPrice, quantity; the
    first failure raises ``ValidationError`` naming that field.
    """
    trade = {
        "symbol": normalize_symbol(payload.get("symbol")),
        "entry_price": require_positive(payload.get("entry_price"), "entryPrice"),
        "quantity": require_positive(payload.get("quantity"), "quantity"),
        "direction": Direction.parse(payload.get("direction"), default=Direction.LONG).value,
        "entry_date": to_timestamp(payload.get("entry_date"), "entryDate") or now or utcnow(),
        "strategy": None,
        "tags": TagSet(),
        "notes": None,
        "screenshot": None,
        "stop_loss": None,
        "take_profit": None,
        "execution_rate": default_execution_rate,
    }
    _normalize_annotations(payload, trade)
    trade.update(
        {
            "status": TradeStatus.OPEN.value,
            "exit_price": None,
            "exit_date": None,
            "pnl": Decimal("0"),
        }
    )
    return trade


def compute_close_pnl(direction: Direction | str, entry_price: Any, quantity: Any, exit_price: Any) -> Decimal:
    """Realized P&L rounded half-up to the stored scale."""
    policy = policy_for(direction)
    pnl = policy.pnl(
        require_positive(entry_price, "entryPrice"),
        require_positive(exit_price, "exitPrice"),
        require_positive(quantity, "quantity"),
    )
    return pnl.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def close_fields(trade: Any, exit_price: Any, exit_date: Any = None, now: Optional[datetime] = None) -> dict:
    """Column values that move an open trade to closed."""
    if getattr(trade, "status", None) == TradeStatus.CLOSED.value:
        raise TradeStateError("Trade is already closed")
    price = require_positive(exit_price, "exitPrice")
    closed_at = to_timestamp(exit_date, "exitDate") or now or utcnow()
    entry_date = getattr(trade, "entry_date", None)
    if entry_date is not None and closed_at < entry_date:
        raise ValidationError("exitDate", "must not be before entryDate")
    return {
        "exit_price": price,
        "exit_date": closed_at,
        "pnl": compute_close_pnl(trade.direction, trade.entry_price, trade.quantity, price),
        "status": TradeStatus.CLOSED.value,
    }


def wire_name(field: str) -> str:
    """camelCase spelling used in request bodies and error messages."""
    head, *rest = field.split("_")
    return head + "".join(part.title() for part in rest)


def _normalize_frozen(field: str, value: Any) -> Any:
    if field == "symbol":
        return normalize_symbol(value)
    if field == "direction":
        return Direction.parse(value).value
    if field in ("entry_price", "exit_price", "quantity"):
        return to_decimal(value, wire_name(field))
    if field in ("entry_date", "exit_date"):
        return to_timestamp(value, wire_name(field))
    if field == "status":
        return str(value).strip().lower() if value is not None else None
    return value


def apply_update(trade: Any, changes: Mapping[str, Any], now: Optional[datetime] = None) -> dict:
    """Resolve a partial edit against the current trade.

    Open trades accept any field; an ``exit_price`` (or ``status='closed'``)
    closes the trade with a server-computed pnl. Closed trades only accept
    annotation edits; resending unchanged position fields is tolerated.
    """
    updates: dict = {}

    if trade.status == TradeStatus.CLOSED.value:
        for field in FROZEN_WHEN_CLOSED:
            if field not in changes:
                continue
            current = _normalize_frozen(field, getattr(trade, field))
            requested = _normalize_frozen(field, changes[field])
            if requested != current:
                raise TradeStateError(f"Trade is closed; {wire_name(field)} can no longer be changed")
        _normalize_annotations(changes, updates)
        return updates

    if "symbol" in changes:
        updates["symbol"] = normalize_symbol(changes["symbol"])
    if "entry_price" in changes:
        updates["entry_price"] = require_positive(changes["entry_price"], "entryPrice")
    if "quantity" in changes:
        updates["quantity"] = require_positive(changes["quantity"], "quantity")
    if "direction" in changes:
        updates["direction"] = Direction.parse(changes["direction"]).value
    if "entry_date" in changes:
        entry_date = to_timestamp(changes["entry_date"], "entryDate")
        if entry_date is None:
            raise ValidationError("entryDate", "is required")
        updates["entry_date"] = entry_date
    _normalize_annotations(changes, updates)

    status = str(changes.get("status") or "").strip().lower() or None
    if status is not None and status not in (TradeStatus.OPEN.value, TradeStatus.CLOSED.value):
        raise ValidationError("status", "must be 'open' or 'closed'")
    if status == TradeStatus.OPEN.value and changes.get("exit_price") is not None:
        raise ValidationError("status", "cannot be 'open' when exitPrice is given")

    wants_close = changes.get("exit_price") is not None or status == TradeStatus.CLOSED.value
    if not wants_close:
        if changes.get("exit_date") is not None:
            raise ValidationError("exitPrice", "is required to close a trade")
        return updates
    if changes.get("exit_price") is None:
        raise ValidationError("exitPrice", "is required to close a trade")

    merged = _MergedTrade(trade, updates)
    updates.update(close_fields(merged, changes["exit_price"], changes.get("exit_date"), now=now))
    return updates


class _MergedTrade:
    """Read-through view of a trade with pending updates applied."""

    def __init__(self, trade: Any, updates: Mapping[str, Any]):
        self._trade = trade
        self._updates = updates

    def __getattr__(self, name: str) -> Any:
        if name in self._updates:
            return self._updates[name]
        return getattr(self._trade, name)
