"""
Journal performance metrics

1. Total realized P&L and win rate
2. Average self-assessed execution rating
3. Cumulative P&L series for the equity chart
4. Strategy distribution
5. Win/loss breakdown (largest, average, profit factor)

Works on any objects exposing ``pnl``, ``entry_date``, ``execution_rate``,
``strategy`` and ``status``: ORM rows or plain records.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Sequence

NO_STRATEGY = "None"

ZERO = Decimal("0")


@dataclass
class EquityPoint:
    trade_id: Any
    date: Optional[datetime]
    pnl: Decimal
    cumulative: Decimal


@dataclass
class PerformanceSummary:
    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    total_pnl: Decimal = ZERO
    win_rate: int = 0
    avg_execution_rate: Optional[float] = None
    largest_win: Decimal = ZERO
    largest_loss: Decimal = ZERO
    average_win: Decimal = ZERO
    average_loss: Decimal = ZERO
    profit_factor: Decimal = ZERO
    cumulative_pnl: list[EquityPoint] = field(default_factory=list)
    strategy_distribution: dict[str, int] = field(default_factory=dict)


def _pnl(trade: Any) -> Decimal:
    value = getattr(trade, "pnl", None)
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def total_pnl(trades: Iterable[Any]) -> Decimal:
    return sum((_pnl(t) for t in trades), ZERO)


def win_rate(trades: Sequence[Any]) -> int:
    """Percent of trades with pnl > 0, rounded half-up; 0 for no trades."""
    if not trades:
        return 0
    wins = sum(1 for t in trades if _pnl(t) > 0)
    rate = Decimal(100 * wins) / Decimal(len(trades))
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def average_execution_rate(trades: Iterable[Any]) -> Optional[float]:
    rates = [t.execution_rate for t in trades if getattr(t, "execution_rate", None) is not None]
    if not rates:
        return None
    return sum(rates) / len(rates)


def _chronological(trade: Any) -> tuple:
    # same entry date: the trade logged first comes first
    return (
        getattr(trade, "entry_date", None) or datetime.min,
        getattr(trade, "created_at", None) or datetime.min,
        str(getattr(trade, "id", None) or ""),
    )


def cumulative_pnl(trades: Iterable[Any]) -> list[EquityPoint]:
    """Running total of pnl ordered by entry date ascending, then by logging order."""
    ordered = sorted(trades, key=_chronological)
    running = ZERO
    points = []
    for trade in ordered:
        pnl = _pnl(trade)
        running += pnl
        points.append(
            EquityPoint(
                trade_id=getattr(trade, "id", None),
                date=getattr(trade, "entry_date", None),
                pnl=pnl,
                cumulative=running,
            )
        )
    return points


def strategy_distribution(trades: Iterable[Any]) -> dict[str, int]:
    counts = Counter((getattr(t, "strategy", None) or NO_STRATEGY) for t in trades)
    return dict(counts.most_common())


def summarize(trades: Iterable[Any]) -> PerformanceSummary:
    trades = list(trades)
    summary = PerformanceSummary()
    if not trades:
        return summary

    pnls = [_pnl(t) for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    gross_loss = -sum(losses, ZERO)

    summary.total_trades = len(trades)
    summary.closed_trades = sum(1 for t in trades if getattr(t, "status", None) == "closed")
    summary.open_trades = summary.total_trades - summary.closed_trades
    summary.total_pnl = sum(pnls, ZERO)
    summary.win_rate = win_rate(trades)
    summary.avg_execution_rate = average_execution_rate(trades)
    summary.largest_win = max(wins) if wins else ZERO
    summary.largest_loss = min(losses) if losses else ZERO
    summary.average_win = sum(wins, ZERO) / len(wins) if wins else ZERO
    summary.average_loss = sum(losses, ZERO) / len(losses) if losses else ZERO
    summary.profit_factor = sum(wins, ZERO) / gross_loss if gross_loss != 0 else ZERO
    summary.cumulative_pnl = cumulative_pnl(trades)
    summary.strategy_distribution = strategy_distribution(trades)
    return summary
