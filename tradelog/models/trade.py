"""Trade journal entry"""
import uuid

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, Index, text
from sqlalchemy.types import TypeDecorator

from tradelog.engine.lifecycle import utcnow
from tradelog.engine.tags import TagSet
from tradelog.models.db import Base


class TagSetType(TypeDecorator):
    """Stores a ``TagSet`` as one comma-joined string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return TagSet.parse(value).to_storage()

    def process_result_value(self, value, dialect):
        return TagSet.parse(value)


def _new_id() -> str:
    return str(uuid.uuid4())


class Trade(Base):
    __tablename__ = "trades"

    id = Column(String(36), primary_key=True, default=_new_id)
    symbol = Column(String(32), nullable=False)
    direction = Column(String(8), nullable=False, default="long")
    entry_price = Column(Numeric(20, 8), nullable=False)
    exit_price = Column(Numeric(20, 8), nullable=True)
    quantity = Column(Numeric(20, 8), nullable=False)
    entry_date = Column(DateTime, nullable=False)
    exit_date = Column(DateTime, nullable=True)
    status = Column(String(8), nullable=False, default="open")
    strategy = Column(String(64), nullable=True)
    tags = Column(TagSetType, nullable=True)
    execution_rate = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    pnl = Column(Numeric(20, 8), nullable=False, default=0)
    screenshot = Column(String(512), nullable=True)
    stop_loss = Column(Numeric(20, 8), nullable=True)
    take_profit = Column(Numeric(20, 8), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, default=utcnow, server_default=text("CURRENT_TIMESTAMP"), onupdate=utcnow)

    __table_args__ = (
        Index("idx_trades_entry_date", "entry_date"),
        Index("idx_trades_symbol", "symbol"),
        Index("idx_trades_status", "status"),
    )
