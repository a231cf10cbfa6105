"""Profile documents: registration, profile setup and lookups."""
import logging
import time
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as gexc
from google.cloud.firestore import FieldFilter

from smartcare.core.errors import Conflict, NotFound
from smartcare.core.firebase import get_db
from smartcare.models.user import DoctorInfo, PatientInfo, ProfileIn

logger = logging.getLogger(__name__)

# Fields a role may set through profile setup
ROLE_PROFILE_FIELDS = {
    "patient": {"fullName", "phone", "gender", "dob", "photoURL", "bloodGroup", "allergies", "medications"},
    "doctor": {
        "fullName", "phone", "gender", "dob", "photoURL", "specialty", "qualification",
        "experienceYears", "licenseNumber", "clinicAddress", "consultationFee",
    },
    "caregiver": {
        "fullName", "phone", "gender", "dob", "photoURL", "bio", "relationshipNotes",
        "availability", "languages",
    },
    "admin": {"fullName", "phone", "photoURL"},
}


def now_ms() -> int:
    return int(time.time() * 1000)


def register_profile(uid: str, email: Optional[str], role: str, extra: Optional[Dict[str, Any]] = None):
    """Create ``users/{uid}`` for a freshly signed-up account."""
    ref = get_db().collection("users").document(uid)
    doc = {
        **(extra or {}),
        "uid": uid,
        "email": email,
        "role": role,
        # Doctors need admin approval before they can use their views
        "approved": role != "doctor",
        "profileCompleted": False,
        "caregivers": [],
        "patients": [],
        "createdAt": now_ms(),
    }
    try:
        ref.create(doc)
    except gexc.Conflict as exc:
        raise Conflict("Profile already exists") from exc
    logger.info("Registered %s profile for uid=%s", role, uid)
    return doc


def complete_profile(uid: str, role: Optional[str], payload: ProfileIn) -> Dict[str, Any]:
    """Merge allowed profile fields and mark the profile completed."""
    ref = get_db().collection("users").document(uid)
    if not ref.get().exists:
        raise NotFound("Profile not found; register first")

    allowed = ROLE_PROFILE_FIELDS.get(role or "", set())
    updates = {k: v for k, v in payload.model_dump(exclude_none=True).items() if k in allowed}
    updates["profileCompleted"] = True
    updates["updatedAt"] = now_ms()

    ref.set(updates, merge=True)
    return updates


def get_patient_info(uid: str) -> Optional[PatientInfo]:
    snap = get_db().collection("users").document(uid).get()
    if not snap.exists:
        return None
    data = snap.to_dict() or {}
    fields = {k: data.get(k) for k in PatientInfo.model_fields if k != "uid"}
    return PatientInfo(uid=snap.id, **fields)


def get_doctor_info(uid: str) -> Optional[DoctorInfo]:
    if not uid:
        return None
    snap = get_db().collection("users").document(uid).get()
    if not snap.exists:
        return None
    data = snap.to_dict() or {}
    if data.get("role") != "doctor":
        return None
    return DoctorInfo.from_doc(snap.id, data)


def get_approved_doctors() -> List[DoctorInfo]:
    docs = (
        get_db()
        .collection("users")
        .where(filter=FieldFilter("role", "==", "doctor"))
        .where(filter=FieldFilter("approved", "==", True))
        .stream()
    )
    return [DoctorInfo.from_doc(d.id, d.to_dict() or {}) for d in docs]
