from enum import Enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from access_gate.core.constants import MAX_LEN_EMAIL, MAX_LEN_NAME
from access_gate.core.db import Base, utcnow


class AccessRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AccessRequest(Base):
    __tablename__ = "access_request"

    email = Column(
        String(MAX_LEN_EMAIL), unique=True, index=True, nullable=False
    )
    name = Column(String(MAX_LEN_NAME), nullable=True)
    status = Column(
        SqlEnum(
            AccessRequestStatus,
            name="accessrequeststatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        default=AccessRequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by_id = Column(
        ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    reviewed_by = relationship("User", lazy="selectin")

    def reopen(self, name: str | None = None) -> None:
        """Start a new review cycle, keeping the stored name unless given."""
        self.status = AccessRequestStatus.PENDING
        self.reviewed_at = None
        self.reviewed_by_id = None
        self.reviewed_by = None
        if name:
            self.name = name
        self.updated_at = utcnow()
