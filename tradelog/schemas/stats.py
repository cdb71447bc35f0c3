from datetime import datetime
from typing import Optional

from tradelog.schemas.common import CamelModel


class EquityPointView(CamelModel):
    trade_id: Optional[str] = None
    date: Optional[datetime] = None
    pnl: float
    cumulative: float


class StatsView(CamelModel):
    status: str = "ok"
    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    total_pnl: float = 0.0
    win_rate: int = 0
    # null renders as "N/A"
    avg_execution_rate: Optional[float] = None
    largest_win: float = 0.0
    largest_loss: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0
    cumulative_pnl: list[EquityPointView] = []
    strategy_distribution: dict[str, int] = {}


class RiskRewardRequest(CamelModel):
    direction: Optional[str] = None
    entry_price: Optional[float] = None
    quantity: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None


class RiskRewardView(CamelModel):
    direction: str
    risk_distance: float
    reward_distance: float
    risk_amount: float
    reward_amount: float
    risk_percent: float
    rr_ratio: float
