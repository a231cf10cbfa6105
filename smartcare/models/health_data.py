"""Pydantic models for daily health measures and uploaded records."""
from datetime import date as Date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DailyMeasureIn(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD; one document per day")

    # Vitals
    systolic: Optional[int] = Field(None, ge=0)
    diastolic: Optional[int] = Field(None, ge=0)
    sugarMgDl: Optional[float] = Field(None, ge=0)
    sugarPostMgDl: Optional[float] = Field(None, ge=0)
    cholesterolTotal: Optional[float] = Field(None, ge=0)
    spo2Pct: Optional[float] = Field(None, ge=0, le=100)
    temperatureC: Optional[float] = None

    # Body / lifestyle
    weightKg: Optional[float] = Field(None, ge=0)
    heightCm: Optional[float] = Field(None, ge=0)
    exerciseMins: Optional[int] = Field(None, ge=0)
    waterIntakeL: Optional[float] = Field(None, ge=0)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        # Raises ValueError for anything that is not YYYY-MM-DD
        return Date.fromisoformat(v).isoformat()


class DailyMeasure(DailyMeasureIn):
    addedBy: Literal["patient", "caregiver"]
    caregiverId: Optional[str] = None
    caregiverName: Optional[str] = None


class RecordFile(BaseModel):
    id: Optional[str] = None
    patientId: str
    fileName: str
    fileUrl: str
    storagePath: Optional[str] = None
    contentType: Optional[str] = None
    uploadedBy: Optional[str] = None
    uploadedAt: int
    createdAt: int
