from enum import Enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import String
from sqlalchemy.sql import func

from access_gate.core.constants import MAX_LEN_EMAIL, MAX_LEN_NAME
from access_gate.core.db import Base, utcnow


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    BLOCKED = "BLOCKED"


class User(Base):
    __tablename__ = "app_user"

    email = Column(
        String(MAX_LEN_EMAIL), unique=True, index=True, nullable=False
    )
    name = Column(String(MAX_LEN_NAME), nullable=True)
    role = Column(
        SqlEnum(
            UserRole,
            name="userrole",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        default=UserRole.USER,
        nullable=False,
    )
    status = Column(
        SqlEnum(
            UserStatus,
            name="userstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        default=UserStatus.PENDING,
        nullable=False,
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

    def activate(self, name: str | None = None) -> None:
        self.status = UserStatus.ACTIVE
        if not self.name and name:
            self.name = name
