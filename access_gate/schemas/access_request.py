from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from access_gate.core.constants import MAX_LEN_NAME
from access_gate.models.access_request import AccessRequestStatus
from access_gate.schemas.user import ReviewerResponse, UserBase


class AccessRequestFilter(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ALL = "ALL"


class DecisionAction(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class SubmitOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ACCEPTED = "accepted"


class AccessRequestSubmit(UserBase):
    name: Optional[str] = Field(None, max_length=MAX_LEN_NAME)

    @field_validator('name', mode='before')
    @classmethod
    def _blank_name_is_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class AccessRequestDecision(BaseModel):
    action: DecisionAction

    @field_validator('action', mode='before')
    @classmethod
    def _upper(cls, value):
        return value.upper() if isinstance(value, str) else value


class AccessRequestResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    status: AccessRequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[ReviewerResponse] = None

    model_config = ConfigDict(from_attributes=True)


class SubmitResponse(BaseModel):
    result: SubmitOutcome
    message: str
    request: Optional[AccessRequestResponse] = None


class AccessRequestDecisionResponse(AccessRequestResponse):
    changed: bool
