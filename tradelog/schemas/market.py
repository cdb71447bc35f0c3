from datetime import datetime
from typing import Optional

from tradelog.schemas.common import CamelModel


class MoverView(CamelModel):
    ticker: str
    price: float
    change_amount: float
    change_percentage: float
    volume: int = 0


class MarketMoversResponse(CamelModel):
    status: str = "ok"
    # "live" or "fallback"
    source: str
    last_updated: Optional[str] = None
    top_gainers: list[MoverView] = []
    top_losers: list[MoverView] = []
    most_actively_traded: list[MoverView] = []


class QuoteView(CamelModel):
    symbol: str
    available: bool = False
    price: Optional[float] = None
    previous_close: Optional[float] = None
    change_percent: Optional[float] = None
    fetched_at: Optional[datetime] = None


class ScreenshotUploadResponse(CamelModel):
    status: str = "ok"
    url: str
    delete_url: Optional[str] = None


class CoachInsightResponse(CamelModel):
    status: str = "ok"
    trade_count: int = 0
    commentary: str
    provider: Optional[str] = None
    # true when every AI provider failed and rule-based text was returned
    degraded: bool = False
