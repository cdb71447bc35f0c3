"""Trade schemas"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from tradelog.engine.tags import TagSet
from tradelog.schemas.common import CamelModel


class TradeCreateRequest(CamelModel):
    # required fields are checked by the lifecycle engine so the error names them
    symbol: Optional[str] = None
    direction: Optional[str] = None
    entry_price: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    entry_date: Optional[datetime] = None
    strategy: Optional[str] = None
    tags: Optional[Union[list[str], str]] = None
    execution_rate: Optional[int] = None
    notes: Optional[str] = None
    screenshot: Optional[str] = None
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None


class TradeUpdateRequest(CamelModel):
    # pnl is never accepted from clients; unknown keys are dropped
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    symbol: Optional[str] = None
    direction: Optional[str] = None
    entry_price: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    entry_date: Optional[datetime] = None
    exit_price: Optional[Decimal] = None
    exit_date: Optional[datetime] = None
    status: Optional[str] = None
    strategy: Optional[str] = None
    tags: Optional[Union[list[str], str]] = None
    execution_rate: Optional[int] = None
    notes: Optional[str] = None
    screenshot: Optional[str] = None
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None


class TradeCloseRequest(CamelModel):
    exit_price: Optional[Decimal] = None
    exit_date: Optional[datetime] = None


class TradeView(CamelModel):
    id: str
    symbol: str
    direction: str
    entry_price: float
    exit_price: Optional[float] = None
    quantity: float
    entry_date: datetime
    exit_date: Optional[datetime] = None
    status: str
    strategy: Optional[str] = None
    tags: list[str] = []
    execution_rate: Optional[int] = None
    notes: Optional[str] = None
    pnl: float = 0.0
    screenshot: Optional[str] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_to_list(cls, value):
        return TagSet.parse(value).to_list()

    @field_validator("pnl", mode="before")
    @classmethod
    def _pnl_default(cls, value):
        return 0 if value is None else value


class DeleteResponse(CamelModel):
    success: bool = True


class StrategyListResponse(CamelModel):
    strategies: list[str]
    allow_custom: bool = True
