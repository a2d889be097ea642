from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String

from rewards.db.base import Base


class User(Base):
    __tablename__ = "user"

    slack_id = Column(String, primary_key=True)
    avatar_url = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
