"""Trade store: CRUD over the trades table with lifecycle rules applied."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.core.config import settings
from tradelog.core.errors import NotFoundError, TransportError
from tradelog.engine import lifecycle
from tradelog.models.trade import Trade

logger = logging.getLogger(__name__)


class TradeService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_trades(self, symbol: Optional[str] = None, status: Optional[str] = None) -> list[Trade]:
        """All trades, newest entry first."""
        stmt = select(Trade)
        if symbol:
            stmt = stmt.where(Trade.symbol == symbol.strip().upper())
        if status:
            stmt = stmt.where(Trade.status == status.strip().lower())
        stmt = stmt.order_by(desc(Trade.entry_date), desc(Trade.created_at))
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list trades: {e}")
            raise TransportError("Trade store unavailable", status_code=503) from e
        return list(result.scalars().all())

    async def get_trade(self, trade_id: str) -> Trade:
        trade = await self._get_by_id(trade_id)
        if trade is None:
            raise NotFoundError(trade_id)
        return trade

    async def create_trade(self, payload: dict) -> Trade:
        """Validate, then insert a new open trade."""
        values = lifecycle.normalize_new_trade(
            payload, default_execution_rate=settings.DEFAULT_EXECUTION_RATE
        )
        trade = Trade(**values)
        self.session.add(trade)
        await self._commit(f"create {values['symbol']}")
        await self.session.refresh(trade)
        logger.info(f"Trade created: id={trade.id} symbol={trade.symbol} direction={trade.direction}")
        return trade

    async def update_trade(self, trade_id: str, payload: dict) -> Trade:
        """Generic edit; an exit price on an open trade closes it."""
        trade = await self.get_trade(trade_id)
        was_open = trade.status == lifecycle.TradeStatus.OPEN.value
        updates = lifecycle.apply_update(trade, payload)
        for key, value in updates.items():
            setattr(trade, key, value)
        await self._commit(f"update {trade_id}")
        await self.session.refresh(trade)
        if was_open and trade.status == lifecycle.TradeStatus.CLOSED.value:
            logger.info(f"Trade closed via update: id={trade.id} pnl={trade.pnl}")
        return trade

    async def close_trade(self, trade_id: str, exit_price: Any, exit_date: Any = None) -> Trade:
        trade = await self.get_trade(trade_id)
        for key, value in lifecycle.close_fields(trade, exit_price, exit_date).items():
            setattr(trade, key, value)
        await self._commit(f"close {trade_id}")
        await self.session.refresh(trade)
        logger.info(f"Trade closed: id={trade.id} exit={trade.exit_price} pnl={trade.pnl}")
        return trade

    async def delete_trade(self, trade_id: str) -> None:
        trade = await self.get_trade(trade_id)
        await self.session.delete(trade)
        await self._commit(f"delete {trade_id}")
        logger.info(f"Trade deleted: id={trade_id}")

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Trade store write failed ({action}): {e}")
            raise TransportError("Trade store write failed", status_code=503) from e

    async def _get_by_id(self, trade_id: str) -> Optional[Trade]:
        stmt = select(Trade).where(Trade.id == trade_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load trade {trade_id}: {e}")
            raise TransportError("Trade store unavailable", status_code=503) from e
        return result.scalars().first()
