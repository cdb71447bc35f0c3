from typing import Optional

from fastapi import APIRouter, Path, Query

from tradelog.providers.market_data_provider import MarketDataProvider
from tradelog.schemas.market import MarketMoversResponse, QuoteView

router = APIRouter(prefix="/market", tags=["Market Data"])


@router.get("/movers", response_model=MarketMoversResponse)
async def get_market_movers(
    limit: Optional[int] = Query(None, ge=1, le=20, description="Rows per section, MARKET_MOVERS_LIMIT when omitted"),
):
    """
    Top gainers, losers and most active tickers; static data when the live feed fails
    """
    return await MarketDataProvider().get_market_movers(limit=limit)


@router.get("/quote/{symbol}", response_model=QuoteView)
async def get_quote(symbol: str = Path(..., min_length=1, max_length=32)):
    return await MarketDataProvider().get_quote(symbol)
