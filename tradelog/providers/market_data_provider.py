"""Market data provider

Market movers come from an Alpha Vantage compatible ``TOP_GAINERS_LOSERS``
endpoint; single-symbol quotes come from yfinance. Both are best effort:
movers fall back to a bundled static data set, quotes come back with
``available=False``. Nothing here raises to the caller.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

import httpx
import yfinance as yf

from tradelog.core.config import settings
from tradelog.engine.lifecycle import utcnow

logger = logging.getLogger(__name__)

MOVER_SECTIONS = ("top_gainers", "top_losers", "most_actively_traded")

# Shown when the live feed is unreachable, unconfigured or rate limited
FALLBACK_MOVERS: Dict[str, Any] = {
    "last_updated": None,
    "top_gainers": [
        {"ticker": "NVDA", "price": 131.38, "change_amount": 6.46, "change_percentage": 5.17, "volume": 289_000_000},
        {"ticker": "AMD", "price": 162.02, "change_amount": 6.21, "change_percentage": 3.99, "volume": 48_000_000},
        {"ticker": "TSLA", "price": 251.52, "change_amount": 8.14, "change_percentage": 3.34, "volume": 96_000_000},
        {"ticker": "META", "price": 573.25, "change_amount": 11.80, "change_percentage": 2.10, "volume": 11_000_000},
        {"ticker": "AMZN", "price": 186.51, "change_amount": 3.02, "change_percentage": 1.65, "volume": 37_000_000},
    ],
    "top_losers": [
        {"ticker": "INTC", "price": 22.47, "change_amount": -1.21, "change_percentage": -5.11, "volume": 72_000_000},
        {"ticker": "BA", "price": 155.93, "change_amount": -4.36, "change_percentage": -2.72, "volume": 9_000_000},
        {"ticker": "NKE", "price": 82.34, "change_amount": -1.75, "change_percentage": -2.08, "volume": 12_000_000},
        {"ticker": "PFE", "price": 28.91, "change_amount": -0.44, "change_percentage": -1.50, "volume": 31_000_000},
        {"ticker": "DIS", "price": 94.02, "change_amount": -1.02, "change_percentage": -1.07, "volume": 8_000_000},
    ],
    "most_actively_traded": [
        {"ticker": "NVDA", "price": 131.38, "change_amount": 6.46, "change_percentage": 5.17, "volume": 289_000_000},
        {"ticker": "TSLA", "price": 251.52, "change_amount": 8.14, "change_percentage": 3.34, "volume": 96_000_000},
        {"ticker": "AAPL", "price": 227.55, "change_amount": 0.77, "change_percentage": 0.34, "volume": 52_000_000},
        {"ticker": "INTC", "price": 22.47, "change_amount": -1.21, "change_percentage": -5.11, "volume": 72_000_000},
        {"ticker": "SPY", "price": 579.58, "change_amount": 2.11, "change_percentage": 0.37, "volume": 45_000_000},
    ],
}


# shared by all provider instances; yfinance is blocking
_executor = ThreadPoolExecutor(max_workers=4)


class MarketDataUnavailable(Exception):
    """The live movers feed did not return usable data."""


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().rstrip("%") or "0"
    return float(value)


def _parse_mover(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "ticker": str(row["ticker"]).upper(),
        "price": _to_float(row.get("price")),
        "change_amount": _to_float(row.get("change_amount")),
        "change_percentage": _to_float(row.get("change_percentage")),
        "volume": int(_to_float(row.get("volume"))),
    }


class MarketDataProvider:
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    async def get_market_movers(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Gainers, losers and most active tickers with ``source`` = live | fallback."""
        limit = limit or settings.MARKET_MOVERS_LIMIT
        try:
            data = await self._fetch_movers()
            source = "live"
        except MarketDataUnavailable as e:
            logger.warning(f"Market movers unavailable, serving fallback data: {e}")
            data = FALLBACK_MOVERS
            source = "fallback"

        result: Dict[str, Any] = {"source": source, "last_updated": data.get("last_updated")}
        for section in MOVER_SECTIONS:
            result[section] = list(data.get(section, []))[:limit]
        return result

    async def _fetch_movers(self) -> Dict[str, Any]:
        if not settings.MARKET_DATA_API_KEY:
            raise MarketDataUnavailable("MARKET_DATA_API_KEY not configured")

        params = {"function": "TOP_GAINERS_LOSERS", "apikey": settings.MARKET_DATA_API_KEY}
        try:
            if self._client is not None:
                resp = await self._client.get(settings.MARKET_DATA_URL, params=params)
            else:
                async with httpx.AsyncClient(timeout=settings.MARKET_DATA_TIMEOUT_SECONDS) as client:
                    resp = await client.get(settings.MARKET_DATA_URL, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MarketDataUnavailable(str(e)) from e

        if not isinstance(payload, dict):
            raise MarketDataUnavailable("unexpected response shape")
        # rate limiting and bad keys come back as 200 with a message body
        for key in ("Information", "Note", "Error Message"):
            if key in payload:
                raise MarketDataUnavailable(str(payload[key]))
        if not any(payload.get(section) for section in MOVER_SECTIONS):
            raise MarketDataUnavailable("response contains no movers")

        try:
            data = {
                section: [_parse_mover(row) for row in payload.get(section) or []]
                for section in MOVER_SECTIONS
            }
        except (KeyError, TypeError, ValueError) as e:
            raise MarketDataUnavailable(f"malformed mover row: {e}") from e
        data["last_updated"] = payload.get("last_updated")
        return data

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Latest price for ``symbol``; ``available`` is False when the lookup fails."""
        symbol = symbol.strip().upper()
        quote: Dict[str, Any] = {"symbol": symbol, "available": False}
        try:
            loop = asyncio.get_running_loop()
            last_price, previous_close = await loop.run_in_executor(_executor, self._yf_quote, symbol)
        except Exception as e:
            logger.warning(f"Quote lookup failed for {symbol}: {e}")
            return quote

        if not last_price or last_price <= 0:
            return quote

        quote.update(
            {
                "available": True,
                "price": last_price,
                "previous_close": previous_close,
                "change_percent": (
                    (last_price - previous_close) / previous_close * 100 if previous_close else None
                ),
                "fetched_at": utcnow(),
            }
        )
        return quote

    @staticmethod
    def _yf_quote(symbol: str) -> tuple[Optional[float], Optional[float]]:
        info = yf.Ticker(symbol).fast_info
        last_price = info.last_price
        previous_close = info.previous_close
        return (
            float(last_price) if last_price is not None else None,
            float(previous_close) if previous_close is not None else None,
        )
