from types import SimpleNamespace

import pytest

from tradelog.core.config import settings
from tradelog.services import ai_client_manager
from tradelog.services.ai_client_manager import AIProvider


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(**kwargs):
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(**kwargs)))


@pytest.fixture(autouse=True)
def isolated_breakers(monkeypatch):
    monkeypatch.setattr(ai_client_manager, "_provider_circuit_breaker", {})
    monkeypatch.setattr(ai_client_manager, "_clients", {})
    monkeypatch.setattr(settings, "AI_PROVIDERS", "openai,deepseek")
    monkeypatch.setattr(settings, "AI_PREFERRED_PROVIDER", None)


def test_provider_sequence_puts_preferred_first(monkeypatch):
    monkeypatch.setattr(settings, "AI_PREFERRED_PROVIDER", "DeepSeek")
    assert ai_client_manager.provider_sequence() == [AIProvider.DEEPSEEK, AIProvider.OPENAI]


def test_provider_sequence_skips_unknown_names(monkeypatch):
    monkeypatch.setattr(settings, "AI_PROVIDERS", "claude, openai,openai")
    assert ai_client_manager.provider_sequence() == [AIProvider.OPENAI]


@pytest.mark.asyncio
async def test_first_provider_answers(monkeypatch):
    clients = {AIProvider.OPENAI: fake_client(content="  Keep it up.  "), AIProvider.DEEPSEEK: fake_client(content="unused")}
    monkeypatch.setattr(ai_client_manager, "get_ai_client", lambda provider: clients[provider])

    text, provider = await ai_client_manager.call_ai_with_fallback([{"role": "user", "content": "hi"}], max_tokens=50)

    assert (text, provider) == ("Keep it up.", AIProvider.OPENAI)
    call = clients[AIProvider.OPENAI].chat.completions.calls[0]
    assert call["max_tokens"] == 50
    assert call["model"] == settings.OPENAI_MODEL
    assert clients[AIProvider.DEEPSEEK].chat.completions.calls == []


@pytest.mark.asyncio
async def test_quota_error_falls_back_and_trips_breaker(monkeypatch):
    clients = {
        AIProvider.OPENAI: fake_client(error=Exception("Error code: 429 insufficient_quota")),
        AIProvider.DEEPSEEK: fake_client(content="<think>draft</think>Cut losers faster."),
    }
    monkeypatch.setattr(ai_client_manager, "get_ai_client", lambda provider: clients[provider])

    text, provider = await ai_client_manager.call_ai_with_fallback([{"role": "user", "content": "hi"}])

    assert (text, provider) == ("Cut losers faster.", AIProvider.DEEPSEEK)
    status = ai_client_manager.get_circuit_breaker_status()
    assert status["openai"]["broken"] is True


@pytest.mark.asyncio
async def test_all_providers_unavailable(monkeypatch):
    monkeypatch.setattr(ai_client_manager, "get_ai_client", lambda provider: None)
    assert await ai_client_manager.call_ai_with_fallback([{"role": "user", "content": "hi"}]) == (None, None)


@pytest.mark.asyncio
async def test_empty_content_counts_as_failure(monkeypatch):
    clients = {AIProvider.OPENAI: fake_client(content="   "), AIProvider.DEEPSEEK: fake_client(content=None)}
    monkeypatch.setattr(ai_client_manager, "get_ai_client", lambda provider: clients[provider])
    assert await ai_client_manager.call_ai_with_fallback([{"role": "user", "content": "hi"}]) == (None, None)


def test_broken_provider_is_skipped_until_recovery():
    ai_client_manager.circuit_break_provider(AIProvider.OPENAI, duration_seconds=60)
    assert ai_client_manager.get_ai_client(AIProvider.OPENAI) is None
    assert ai_client_manager.get_circuit_breaker_status()["openai"]["recovery_in_seconds"] > 0
