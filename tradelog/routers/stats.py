"""Performance statistics and pre-trade planning"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.engine.lifecycle import STRATEGIES
from tradelog.engine.performance_analyzer import summarize
from tradelog.engine.risk_reward import calculate_risk_reward
from tradelog.models.db import get_session
from tradelog.schemas.stats import EquityPointView, RiskRewardRequest, RiskRewardView, StatsView
from tradelog.schemas.trade import StrategyListResponse
from tradelog.services.trade_service import TradeService

router = APIRouter(tags=["Stats"])


@router.get("/stats", response_model=StatsView)
async def get_stats(session: AsyncSession = Depends(get_session)):
    """Aggregate metrics and chart series over every trade"""
    trades = await TradeService(session).list_trades()
    s = summarize(trades)
    return StatsView(
        total_trades=s.total_trades,
        open_trades=s.open_trades,
        closed_trades=s.closed_trades,
        total_pnl=s.total_pnl,
        win_rate=s.win_rate,
        avg_execution_rate=s.avg_execution_rate,
        largest_win=s.largest_win,
        largest_loss=s.largest_loss,
        average_win=s.average_win,
        average_loss=s.average_loss,
        profit_factor=s.profit_factor,
        cumulative_pnl=[
            EquityPointView(trade_id=p.trade_id, date=p.date, pnl=p.pnl, cumulative=p.cumulative)
            for p in s.cumulative_pnl
        ],
        strategy_distribution=s.strategy_distribution,
    )


@router.post("/risk/calculate", response_model=RiskRewardView)
async def calculate_risk(payload: RiskRewardRequest):
    """Risk/reward for a planned trade; nothing is stored"""
    rr = calculate_risk_reward(
        payload.direction,
        payload.entry_price,
        payload.quantity,
        payload.stop_loss,
        payload.take_profit,
    )
    return RiskRewardView(
        direction=rr.direction.value,
        risk_distance=rr.risk_distance,
        reward_distance=rr.reward_distance,
        risk_amount=rr.risk_amount,
        reward_amount=rr.reward_amount,
        risk_percent=rr.risk_percent,
        rr_ratio=rr.rr_ratio,
    )


@router.get("/strategies", response_model=StrategyListResponse)
async def list_strategies():
    """Suggested strategy labels; free text is accepted too"""
    return StrategyListResponse(strategies=list(STRATEGIES))
