from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from tradelog.core.config import settings
from tradelog.engine.tags import TagSet
from tradelog.services import ai_client_manager
from tradelog.services.ai_client_manager import AIProvider
from tradelog.services.coach_service import CoachService


def _trade(symbol, pnl, day, **overrides):
    fields = dict(
        id=f"{symbol}-{day}",
        symbol=symbol,
        direction="long",
        entry_price=Decimal("100"),
        exit_price=Decimal("100") + Decimal(str(pnl)) / 10,
        quantity=Decimal("10"),
        entry_date=datetime(2024, 5, day, 9, 30),
        status="closed",
        pnl=Decimal(str(pnl)),
        strategy=None,
        tags=TagSet(),
        execution_rate=5,
        notes=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


JOURNAL = [
    _trade("AAPL", 50, 1, strategy="Breakout", tags=TagSet(["momentum"]), execution_rate=8, notes="Textbook"),
    _trade("TSLA", -120, 2, direction="short", execution_rate=2),
    _trade("NVDA", 30, 3),
]


@pytest.mark.asyncio
async def test_empty_journal_does_not_call_ai(monkeypatch):
    async def _fail(**kwargs):
        raise AssertionError("AI must not be called")

    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _fail)
    result = await CoachService([]).generate_insights()

    assert result["degraded"] is False
    assert result["provider"] is None
    assert "No trades" in result["commentary"]


@pytest.mark.asyncio
async def test_ai_commentary_is_returned(monkeypatch):
    captured = {}

    async def _answer(messages, temperature, max_tokens):
        captured["messages"] = messages
        return "Your breakouts work. Size down on shorts.", AIProvider.OPENAI

    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _answer)
    result = await CoachService(JOURNAL).generate_insights()

    assert result == {
        "commentary": "Your breakouts work. Size down on shorts.",
        "provider": "openai",
        "degraded": False,
    }
    prompt = captured["messages"][-1]["content"]
    assert "Win rate: 67%" in prompt
    assert "TSLA SHORT" in prompt


@pytest.mark.asyncio
async def test_falls_back_to_rule_based_feedback(monkeypatch):
    async def _nothing(**kwargs):
        return None, None

    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _nothing)
    result = await CoachService(JOURNAL).generate_insights()

    assert result["degraded"] is True
    assert result["provider"] is None
    assert result["commentary"].startswith("3 trades logged, total P&L $-40.00, win rate 67%.")
    assert "Largest loss exceeds largest win" in result["commentary"]


@pytest.mark.asyncio
async def test_provider_exception_is_degraded_not_raised(monkeypatch):
    async def _boom(**kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _boom)
    result = await CoachService(JOURNAL).generate_insights()
    assert result["degraded"] is True


def test_format_trade():
    line = CoachService.format_trade(JOURNAL[0])
    assert line == (
        "- 2024-05-01 AAPL LONG | entry 100 | exit 105 | qty 10 | status closed | P&L $50.00"
        ' | strategy Breakout | tags momentum | execution 8/10 | notes "Textbook"'
    )


def test_open_trade_line_has_no_exit():
    trade = _trade("AMD", 0, 4, status="open", exit_price=None)
    assert "exit" not in CoachService.format_trade(trade)


def test_prompt_lists_most_recent_first():
    prompt = CoachService(JOURNAL).build_prompt()
    assert prompt.index("NVDA") < prompt.index("TSLA") < prompt.index("AAPL")


@pytest.mark.asyncio
async def test_token_limit_comes_from_settings(monkeypatch):
    captured = {}

    async def _answer(**kwargs):
        captured.update(kwargs)
        return "ok", AIProvider.OPENAI

    monkeypatch.setattr(settings, "OPENAI_MAX_TOKENS", 321)
    monkeypatch.setattr(ai_client_manager, "call_ai_with_fallback", _answer)
    await CoachService(JOURNAL).generate_insights()

    assert captured["max_tokens"] == 321
