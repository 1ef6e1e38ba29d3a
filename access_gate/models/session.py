from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.sql import func

from access_gate.core.db import Base, utcnow


class UserSession(Base):
    __tablename__ = "user_session"

    user_id = Column(
        ForeignKey("app_user.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
