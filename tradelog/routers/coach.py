from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tradelog.models.db import get_session
from tradelog.schemas.market import CoachInsightResponse
from tradelog.services.coach_service import CoachService
from tradelog.services.trade_service import TradeService

router = APIRouter(prefix="/coach", tags=["AI Coach"])


@router.post("/insights", response_model=CoachInsightResponse)
async def coach_insights(session: AsyncSession = Depends(get_session)):
    """AI review of the whole journal (rule-based text when no provider answers)"""
    trades = await TradeService(session).list_trades()
    result = await CoachService(trades).generate_insights()
    return CoachInsightResponse(trade_count=len(trades), **result)
