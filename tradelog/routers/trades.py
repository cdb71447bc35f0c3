"""Trade CRUD routes"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.models.db import get_session
from tradelog.schemas.trade import (
    TradeCreateRequest, TradeUpdateRequest, TradeCloseRequest, TradeView, DeleteResponse,
)
from tradelog.services.trade_service import TradeService

router = APIRouter(prefix="/trades", tags=["Trades"])


@router.get("", response_model=list[TradeView])
async def list_trades(
    symbol: Optional[str] = Query(None, description="Only trades in this symbol"),
    status: Optional[str] = Query(None, pattern="^(open|closed)$", description="open / closed"),
    session: AsyncSession = Depends(get_session),
):
    """All trades, newest entry first"""
    svc = TradeService(session)
    trades = await svc.list_trades(symbol=symbol, status=status)
    return [TradeView.model_validate(t) for t in trades]


@router.post("", response_model=TradeView, status_code=201)
async def create_trade(
    payload: TradeCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Log a new (open) trade"""
    svc = TradeService(session)
    trade = await svc.create_trade(payload.model_dump(exclude_unset=True))
    return TradeView.model_validate(trade)


@router.get("/{trade_id}", response_model=TradeView)
async def get_trade(
    trade_id: str,
    session: AsyncSession = Depends(get_session),
):
    svc = TradeService(session)
    return TradeView.model_validate(await svc.get_trade(trade_id))


@router.patch("/{trade_id}", response_model=TradeView)
async def update_trade(
    trade_id: str,
    payload: TradeUpdateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Edit a trade; sending exitPrice on an open trade closes it"""
    svc = TradeService(session)
    trade = await svc.update_trade(trade_id, payload.model_dump(exclude_unset=True))
    return TradeView.model_validate(trade)


@router.post("/{trade_id}/close", response_model=TradeView)
async def close_trade(
    trade_id: str,
    payload: TradeCloseRequest,
    session: AsyncSession = Depends(get_session),
):
    """Close an open trade; pnl is computed server-side"""
    svc = TradeService(session)
    trade = await svc.close_trade(trade_id, payload.exit_price, payload.exit_date)
    return TradeView.model_validate(trade)


@router.delete("/{trade_id}", response_model=DeleteResponse)
async def delete_trade(
    trade_id: str,
    session: AsyncSession = Depends(get_session),
):
    svc = TradeService(session)
    await svc.delete_trade(trade_id)
    return DeleteResponse(success=True)
