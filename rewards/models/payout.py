"""
Payout: ledger credit. Rows are never edited: the payout job deletes and
re-inserts its own rows on every run, rows whose memo carries a protected
marker (manual grants) survive.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text

from rewards.db.base import Base


class Payout(Base):
    __tablename__ = "payouts"
    __table_args__ = (CheckConstraint("tokens >= 0", name="ck_payouts_tokens_non_negative"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    tokens = Column(Integer, nullable=False)
    user_id = Column(String, ForeignKey("user.slack_id"), nullable=False, index=True)
    memo = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
