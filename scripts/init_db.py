"""
Database initialization script

Creates the trades table; ``--demo`` also logs a handful of sample trades.
"""
import argparse
import asyncio
from datetime import timedelta

from tradelog.core.config import settings
from tradelog.engine.lifecycle import utcnow
from tradelog.models.db import SessionLocal, engine, init_models
from tradelog.services.trade_service import TradeService

DEMO_TRADES = [
    # (symbol, direction, entry, exit, qty, strategy, tags, rating, notes)
    ("AAPL", "long", 187.20, 191.85, 50, "Breakout", ["earnings", "momentum"], 8, "Clean break of the range high."),
    ("TSLA", "short", 248.10, 255.40, 20, "Reversal", ["fomo"], 3, "Shorted into strength, stop too tight."),
    ("NVDA", "long", 118.50, 124.10, 40, "Trend Following", ["momentum"], 7, None),
    ("SPY", "long", 561.30, 559.90, 30, "Pullback", [], 5, "Chopped out before the move."),
    ("AMD", "long", 158.00, None, 25, None, ["watchlist"], 6, "Still open, trailing stop at 152."),
]


async def init_database(with_demo: bool = False):
    print(f"Initializing database: {engine.url.render_as_string(hide_password=True)}")
    await init_models()

    if with_demo:
        start = utcnow() - timedelta(days=len(DEMO_TRADES))
        async with SessionLocal() as session:
            svc = TradeService(session)
            for i, (symbol, direction, entry, exit_, qty, strategy, tags, rating, notes) in enumerate(DEMO_TRADES):
                trade = await svc.create_trade({
                    "symbol": symbol,
                    "direction": direction,
                    "entry_price": entry,
                    "quantity": qty,
                    "entry_date": start + timedelta(days=i),
                    "strategy": strategy,
                    "tags": tags,
                    "execution_rate": rating,
                    "notes": notes,
                })
                if exit_ is not None:
                    await svc.close_trade(trade.id, exit_, start + timedelta(days=i, hours=5))
        print(f"Logged {len(DEMO_TRADES)} demo trades")

    await engine.dispose()
    print(f"{settings.APP_NAME}: database ready")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the trade journal tables")
    parser.add_argument("--demo", action="store_true", help="also insert sample trades")
    args = parser.parse_args()
    asyncio.run(init_database(with_demo=args.demo))
