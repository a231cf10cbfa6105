"""Pydantic models for caregiver access requests."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .user import UserLite

RequestStatus = Literal["pending", "accepted", "rejected"]


class CaregiverRequest(BaseModel):
    id: Optional[str] = None
    patientId: str
    caregiverId: str
    status: RequestStatus = "pending"
    createdAt: Optional[datetime] = None
    decidedAt: Optional[datetime] = None
    decidedBy: Optional[str] = None

    # Filled in for the caregiver's inbox
    patient: Optional[UserLite] = None


class SendRequestIn(BaseModel):
    caregiverId: str = Field(..., min_length=1)


class DecideIn(BaseModel):
    accept: bool


class BulkDecideIn(BaseModel):
    requestIds: List[str] = Field(..., min_length=1)
    accept: bool


class DecideOutcome(BaseModel):
    requestId: str
    ok: bool
    status: Optional[RequestStatus] = None
    error: Optional[str] = None
