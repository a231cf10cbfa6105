"""Pydantic models for user profile documents stored in ``users/{uid}``."""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["patient", "doctor", "caregiver", "admin"]
SelfServiceRole = Literal["patient", "doctor", "caregiver"]

ROLES = ("patient", "doctor", "caregiver", "admin")


class UserLite(BaseModel):
    """Small view of a user, safe to show to other parties."""

    uid: str
    fullName: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None
    phone: Optional[str] = None

    @classmethod
    def from_doc(cls, uid: str, data: Dict[str, Any]) -> "UserLite":
        role = data.get("role")
        return cls(
            uid=uid,
            fullName=data.get("fullName") or data.get("name"),
            email=data.get("email"),
            role=role if role in ROLES else None,
            phone=data.get("phone"),
        )


class RegisterIn(BaseModel):
    role: SelfServiceRole
    fullName: Optional[str] = None
    phone: Optional[str] = None


class ProfileIn(BaseModel):
    """Fields accepted by profile setup. Unknown keys are dropped."""

    # Common
    fullName: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    photoURL: Optional[str] = None

    # Patient
    bloodGroup: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None

    # Doctor
    specialty: Optional[str] = None
    qualification: Optional[str] = None
    experienceYears: Optional[str] = None
    licenseNumber: Optional[str] = None
    clinicAddress: Optional[str] = None
    consultationFee: Optional[str] = None

    # Caregiver
    bio: Optional[str] = None
    relationshipNotes: Optional[str] = None
    availability: Optional[Literal["available", "busy", "away"]] = None
    languages: Optional[List[str]] = None


class DoctorInfo(BaseModel):
    id: str
    uid: str
    name: str
    fullName: str
    email: str = ""
    phone: str = ""
    specialty: str = "General"
    qualification: str = ""
    experienceYears: str = ""
    licenseNumber: str = ""
    clinicAddress: str = ""
    consultationFee: str = ""
    photoURL: str = ""
    approved: bool = False

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "DoctorInfo":
        name = data.get("name") or data.get("fullName") or "Unknown"
        return cls(
            id=doc_id,
            uid=data.get("uid") or doc_id,
            name=name,
            fullName=data.get("fullName") or data.get("name") or "Unknown Doctor",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            specialty=data.get("specialty") or "General",
            qualification=data.get("qualification") or "",
            experienceYears=str(data.get("experienceYears") or ""),
            licenseNumber=data.get("licenseNumber") or "",
            clinicAddress=data.get("clinicAddress") or "",
            consultationFee=str(data.get("consultationFee") or ""),
            photoURL=data.get("photoURL") or "",
            approved=bool(data.get("approved", False)),
        )


class PatientInfo(BaseModel):
    uid: str
    email: Optional[str] = None
    fullName: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[str] = None
    bloodGroup: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None


class AdminUser(BaseModel):
    id: str
    uid: str
    email: str = ""
    role: Optional[Role] = None
    fullName: Optional[str] = None
    phone: Optional[str] = None
    createdAt: Optional[int] = None
    specialty: Optional[str] = None
    approved: Optional[bool] = None
    blocked: Optional[bool] = None

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "AdminUser":
        created = data.get("createdAt")
        role = data.get("role")
        return cls(
            id=doc_id,
            uid=data.get("uid") or doc_id,
            email=data.get("email") or "",
            role=role if role in ROLES else None,
            fullName=data.get("fullName"),
            phone=data.get("phone"),
            createdAt=created if isinstance(created, int) else None,
            specialty=data.get("specialty"),
            approved=data.get("approved"),
            blocked=data.get("blocked"),
        )
