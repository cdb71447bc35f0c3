"""AI trading coach: free-text commentary over the whole journal."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from tradelog.core.config import settings
from tradelog.engine.performance_analyzer import PerformanceSummary, summarize
from tradelog.engine.tags import TagSet
from tradelog.services import ai_client_manager

logger = logging.getLogger(__name__)

# older trades are left out of the prompt
MAX_TRADES_IN_PROMPT = 100


class CoachService:
    def __init__(self, trades: Sequence[Any]):
        self.trades = list(trades)
        self.summary: PerformanceSummary = summarize(self.trades)

    async def generate_insights(self) -> dict:
        """Returns ``commentary``, ``provider`` and ``degraded``."""
        if not self.trades:
            return {
                "commentary": "No trades logged yet. Log a few trades to get coaching feedback.",
                "provider": None,
                "degraded": False,
            }

        messages = [
            {
                "role": "system",
                "content": "You are an experienced trading coach reviewing a trader's personal journal.",
            },
            {"role": "user", "content": self.build_prompt()},
        ]
        try:
            content, provider = await ai_client_manager.call_ai_with_fallback(
                messages=messages,
                max_tokens=settings.OPENAI_MAX_TOKENS,
                temperature=0.7,
            )
        except Exception as e:
            logger.warning(f"Coaching call failed, using rule-based feedback: {e}")
            content, provider = None, None

        if content:
            return {"commentary": content, "provider": provider.value, "degraded": False}

        logger.warning("No AI provider available, using rule-based feedback")
        return {"commentary": self.rule_based_feedback(), "provider": None, "degraded": True}

    def build_prompt(self) -> str:
        s = self.summary
        avg_rate = f"{s.avg_execution_rate:.1f}/10" if s.avg_execution_rate is not None else "N/A"
        ordered = sorted(self.trades, key=lambda t: t.entry_date, reverse=True)[:MAX_TRADES_IN_PROMPT]
        lines = [self.format_trade(t) for t in ordered]
        distribution = ", ".join(f"{k}: {v}" for k, v in s.strategy_distribution.items())

        return f"""Review the following trading journal and coach the trader.

Summary:
- Trades: {s.total_trades} ({s.closed_trades} closed, {s.open_trades} open)
- Total P&L: ${float(s.total_pnl):.2f}
- Win rate: {s.win_rate}%
- Average execution rating: {avg_rate}
- Largest win: ${float(s.largest_win):.2f}  Largest loss: ${float(s.largest_loss):.2f}
- Strategies: {distribution}

Trades (most recent first):
{chr(10).join(lines)}

Cover:
1. Overall performance
2. What is working
3. Recurring mistakes and risk management
4. Two or three concrete actions for the next trading week

Keep it under 400 words."""

    @staticmethod
    def format_trade(trade: Any) -> str:
        entry_date = trade.entry_date.date().isoformat() if trade.entry_date else "?"
        parts = [
            f"- {entry_date} {trade.symbol} {trade.direction.upper()}",
            f"entry {float(trade.entry_price):g}",
        ]
        if trade.exit_price is not None:
            parts.append(f"exit {float(trade.exit_price):g}")
        parts.append(f"qty {float(trade.quantity):g}")
        parts.append(f"status {trade.status}")
        parts.append(f"P&L ${float(trade.pnl or 0):.2f}")
        if trade.strategy:
            parts.append(f"strategy {trade.strategy}")
        tags = TagSet.parse(trade.tags)
        if tags:
            parts.append(f"tags {', '.join(tags.to_list())}")
        if trade.execution_rate is not None:
            parts.append(f"execution {trade.execution_rate}/10")
        if trade.notes:
            parts.append(f'notes "{trade.notes}"')
        return " | ".join(parts)

    def rule_based_feedback(self) -> str:
        s = self.summary
        lines = [
            f"{s.total_trades} trades logged, total P&L ${float(s.total_pnl):.2f}, win rate {s.win_rate}%."
        ]
        if s.closed_trades and s.win_rate < 40:
            lines.append("Win rate is below 40%: review entry criteria and wait for cleaner setups.")
        if s.largest_loss < 0 and s.largest_win > 0 and abs(s.largest_loss) > s.largest_win:
            lines.append("Largest loss exceeds largest win: set and respect stop-losses before entering.")
        if s.closed_trades and s.profit_factor and s.profit_factor < 1:
            lines.append("Profit factor is below 1: losses outweigh gains, reduce size until it recovers.")
        if s.avg_execution_rate is not None and s.avg_execution_rate < 5:
            lines.append("Average execution rating is low: write a plan for each trade and follow it.")
        no_strategy = s.strategy_distribution.get("None", 0)
        if no_strategy and no_strategy * 2 >= s.total_trades:
            lines.append("Most trades have no strategy label: tag each trade to learn which setups work.")
        if len(lines) == 1:
            lines.append("Keep journaling consistently; AI coaching is unavailable right now.")
        return "\n".join(lines)
