"""
Stats, planning, market, coaching and upload routes
"""
from tradelog.core.config import settings
from tradelog.services import ai_client_manager
from tradelog.services.ai_client_manager import AIProvider


def _closed_trade(client, log_trade, exit_price, **fields):
    trade = log_trade(**fields)
    resp = client.post(f"/trades/{trade['id']}/close", json={"exitPrice": exit_price})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_stats_empty_journal(client):
    stats = client.get("/stats").json()
    assert stats["totalPnl"] == 0
    assert stats["winRate"] == 0
    assert stats["avgExecutionRate"] is None
    assert stats["cumulativePnl"] == []
    assert stats["strategyDistribution"] == {}


def test_stats(client, log_trade):
    _closed_trade(client, log_trade, 105, entryDate="2024-01-01T10:00:00", strategy="Breakout", executionRate=8)
    _closed_trade(client, log_trade, 98, entryDate="2024-01-02T10:00:00", executionRate=4)
    _closed_trade(client, log_trade, 97, direction="short", entryDate="2024-01-03T10:00:00", strategy="Breakout")

    stats = client.get("/stats").json()

    assert stats["totalTrades"] == 3
    assert stats["closedTrades"] == 3
    assert stats["totalPnl"] == 60
    assert stats["winRate"] == 67
    assert stats["avgExecutionRate"] == 17 / 3
    assert [p["cumulative"] for p in stats["cumulativePnl"]] == [50, 30, 60]
    assert stats["strategyDistribution"] == {"Breakout": 2, "None": 1}
    assert stats["profitFactor"] == 4


def test_risk_calculate(client):
    resp = client.post(
        "/risk/calculate",
        json={"direction": "long", "entryPrice": 100, "quantity": 10, "stopLoss": 95, "takeProfit": 115},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["riskAmount"] == 50
    assert body["rewardAmount"] == 150
    assert body["rrRatio"] == 3
    assert body["riskPercent"] == 5

    assert client.get("/trades").json() == []


def test_risk_calculate_zero_risk(client):
    body = client.post(
        "/risk/calculate",
        json={"entryPrice": 100, "quantity": 10, "stopLoss": 100, "takeProfit": 115},
    ).json()
    assert body["direction"] == "long"
    assert body["rrRatio"] == 0


def test_risk_calculate_requires_stop(client):
    resp = client.post("/risk/calculate", json={"entryPrice": 100, "quantity": 10, "takeProfit": 115})
    assert resp.status_code == 400
    assert resp.json()["field"] == "stopLoss"


def test_strategies(client):
    body = client.get("/strategies").json()
    assert "Breakout" in body["strategies"]
    assert body["allowCustom"] is True


def test_market_movers_fallback(client, monkeypatch):
    monkeypatch.setattr(settings, "MARKET_DATA_API_KEY", None)
    body = client.get("/market/movers", params={"limit": 2}).json()
    assert body["source"] == "fallback"
    assert len(body["topGainers"]) == 2
    assert {"ticker", "price", "changeAmount", "changePercentage", "volume"} <= set(body["topGainers"][0])


def test_market_movers_limit_is_bounded(client):
    assert client.get("/market/movers", params={"limit": 50}).status_code == 400


def test_coach_insights(client, log_trade, monkeypatch):
    log_trade()

    async def _answer(**kwargs):
        return "Stick to your plan.", AIProvider.DEEPSEEK

    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _answer)
    body = client.post("/coach/insights").json()

    assert body["tradeCount"] == 1
    assert body["commentary"] == "Stick to your plan."
    assert body["provider"] == "deepseek"
    assert body["degraded"] is False


def test_coach_insights_degraded(client, log_trade, monkeypatch):
    log_trade()

    async def _nothing(**kwargs):
        return None, None

    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _nothing)
    body = client.post("/coach/insights").json()

    assert body["degraded"] is True
    assert body["commentary"]


def test_upload_rejects_non_image(client):
    resp = client.post("/uploads/screenshot", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 400
    assert resp.json()["field"] == "file"


def test_upload_without_image_host(client, monkeypatch):
    monkeypatch.setattr(settings, "IMAGE_HOST_API_KEY", None)
    resp = client.post("/uploads/screenshot", files={"file": ("chart.png", b"\x89PNG\r\n\x1a\n", "image/png")})
    assert resp.status_code == 503
    assert resp.json()["error"] == "transport_error"


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["app"] == settings.APP_NAME


def test_root(client):
    resp = client.get("/")
    assert resp.text == "Trade Journal backend is running!"


def test_cumulative_series_keeps_logging_order_on_ties(client, log_trade):
    _closed_trade(client, log_trade, 110, entryDate="2024-02-01T10:00:00")
    _closed_trade(client, log_trade, 90, entryDate="2024-02-01T10:00:00")

    series = client.get("/stats").json()["cumulativePnl"]

    assert [p["pnl"] for p in series] == [100, -100]
    assert [p["cumulative"] for p in series] == [100, 0]


def test_market_movers_default_limit_from_settings(client, monkeypatch):
    monkeypatch.setattr(settings, "MARKET_DATA_API_KEY", None)
    monkeypatch.setattr(settings, "MARKET_MOVERS_LIMIT", 3)

    body = client.get("/market/movers").json()

    assert len(body["topGainers"]) == 3
    assert len(body["mostActivelyTraded"]) == 3
