from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

AppointmentStatus = Literal["pending", "approved", "declined", "completed"]


class Attachment(BaseModel):
    fileName: str
    fileUrl: str
    storagePath: Optional[str] = None
    uploadedAt: Optional[int] = None


class AppointmentIn(BaseModel):
    doctorId: str = Field(..., min_length=1)
    date: str = Field(..., description="ISO date or datetime of the visit")
    reason: str = Field(..., min_length=1)


class CompleteAppointmentIn(BaseModel):
    notes: str = Field(..., min_length=1)
    attachments: List[Attachment] = Field(default_factory=list)

    @field_validator("notes", mode="before")
    @classmethod
    def strip_notes(cls, v):
        return v.strip() if isinstance(v, str) else v


class Appointment(BaseModel):
    id: Optional[str] = None
    patientId: str
    doctorId: str
    date: str
    reason: str
    status: AppointmentStatus = "pending"
    notes: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
    createdAt: Optional[int] = None

    doctorName: Optional[str] = None
