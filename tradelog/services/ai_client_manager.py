"""
Chat-completion access for the coaching feature

OpenAI and DeepSeek are both reached through the ``openai`` SDK (DeepSeek is
wire compatible). Providers are asked in the order given by
``settings.AI_PROVIDERS``; one that fails with a quota, auth or timeout error
is parked for a while so later requests skip it without waiting.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from tradelog.core.config import settings

logger = logging.getLogger(__name__)


class AIProvider(str, Enum):
    OPENAI = "openai"
    DEEPSEEK = "deepseek"


# provider -> AsyncOpenAI, created on first use
_clients: Dict[AIProvider, Any] = {}

# provider -> monotonic time at which it may be tried again
_provider_circuit_breaker: Dict[AIProvider, float] = {}

# error text match -> seconds the provider is parked
_BREAK_RULES: List[Tuple[Callable[[str], bool], int]] = [
    (lambda msg: "429" in msg or "insufficient_quota" in msg, 600),
    (lambda msg: "401" in msg or "authentication" in msg.lower(), 1800),
    (lambda msg: "timeout" in msg.lower() or "timed out" in msg.lower(), 120),
]


def _client_options(provider: AIProvider) -> Optional[Dict[str, Any]]:
    """AsyncOpenAI keyword arguments, or None when the provider is not configured."""
    if provider == AIProvider.OPENAI:
        if not settings.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY not set, OpenAI coaching disabled")
            return None
        options = {"api_key": settings.OPENAI_API_KEY, "timeout": settings.OPENAI_TIMEOUT_SECONDS}
        if settings.OPENAI_API_BASE:
            options["base_url"] = settings.OPENAI_API_BASE
        return options

    if not settings.DEEPSEEK_ENABLED:
        return None
    if not settings.DEEPSEEK_API_KEY:
        logger.warning("DEEPSEEK_ENABLED is set but DEEPSEEK_API_KEY is missing")
        return None
    return {
        "api_key": settings.DEEPSEEK_API_KEY,
        "base_url": settings.DEEPSEEK_API_BASE,
        "timeout": settings.DEEPSEEK_TIMEOUT_SECONDS,
    }


def get_ai_client(provider: AIProvider = AIProvider.OPENAI):
    """Cached client for ``provider``; None when unconfigured or parked."""
    resume_at = _provider_circuit_breaker.get(provider)
    if resume_at is not None:
        if time.monotonic() < resume_at:
            return None
        _provider_circuit_breaker.pop(provider, None)
        logger.info(f"{provider.value} is back in rotation")

    client = _clients.get(provider)
    if client is not None:
        return client

    options = _client_options(provider)
    if options is None:
        return None
    try:
        client = AsyncOpenAI(**options)
    except Exception as e:
        logger.error(f"Could not create {provider.value} client: {e}")
        return None
    _clients[provider] = client
    logger.info(f"{provider.value} client ready")
    return client


def circuit_break_provider(provider: AIProvider, duration_seconds: int = 300):
    _provider_circuit_breaker[provider] = time.monotonic() + duration_seconds
    logger.warning(f"{provider.value} parked for {duration_seconds}s")


def _park_on_error(provider: AIProvider, message: str) -> None:
    for matches, seconds in _BREAK_RULES:
        if matches(message):
            circuit_break_provider(provider, duration_seconds=seconds)
            return


def get_model_for_provider(provider: AIProvider) -> str:
    if provider == AIProvider.DEEPSEEK:
        return settings.DEEPSEEK_MODEL
    return settings.OPENAI_MODEL


def provider_sequence() -> List[AIProvider]:
    """Configured providers in call order, preferred one first."""
    providers: List[AIProvider] = []
    for name in settings.AI_PROVIDERS.split(","):
        name = name.strip().lower()
        if not name:
            continue
        try:
            provider = AIProvider(name)
        except ValueError:
            logger.warning(f"Ignoring unknown AI provider {name!r}")
            continue
        if provider not in providers:
            providers.append(provider)

    preferred = (settings.AI_PREFERRED_PROVIDER or "").strip().lower()
    for provider in providers:
        if provider.value == preferred:
            providers.remove(provider)
            providers.insert(0, provider)
            break

    return providers or [AIProvider.OPENAI, AIProvider.DEEPSEEK]


def _completion_text(response: Any) -> str:
    content = response.choices[0].message.content or ""
    # reasoner models may prefix their chain of thought
    if "</think>" in content:
        content = content.rsplit("</think>", 1)[-1]
    return content.strip()


async def call_ai_with_fallback(
    messages: List[Dict[str, str]],
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
) -> Tuple[Optional[str], Optional[AIProvider]]:
    """
    Ask each provider in turn until one answers.

    Returns:
        (text, provider), or (None, None) when nobody produced any text
    """
    max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS
    attempted = []

    for provider in provider_sequence():
        client = get_ai_client(provider)
        if client is None:
            continue

        model = get_model_for_provider(provider)
        request: Dict[str, Any] = {"model": model, "messages": messages, "max_tokens": max_tokens}
        if "reasoner" not in model.lower():
            request["temperature"] = temperature

        attempted.append(provider.value)
        started = time.monotonic()
        try:
            response = await client.chat.completions.create(**request)
        except Exception as e:
            logger.error(f"{provider.value} ({model}) failed: {e}")
            _park_on_error(provider, str(e))
            continue

        text = _completion_text(response)
        if not text:
            logger.warning(f"{provider.value} ({model}) returned no text")
            continue

        logger.info(f"Coaching text from {provider.value} ({model}) in {time.monotonic() - started:.1f}s, {len(text)} chars")
        return text, provider

    if attempted:
        logger.error(f"No AI provider produced coaching text (tried: {', '.join(attempted)})")
    return None, None


def get_circuit_breaker_status() -> Dict[str, Any]:
    now = time.monotonic()
    return {
        provider.value: {"broken": True, "recovery_in_seconds": int(resume_at - now)}
        for provider, resume_at in _provider_circuit_breaker.items()
        if resume_at > now
    }
