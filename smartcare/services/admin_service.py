"""Admin operations: doctor approval, user moderation and dashboard stats."""
import logging
from typing import Any, Dict, List

from google.cloud.firestore import FieldFilter

from smartcare.core.errors import Conflict, NotFound
from smartcare.core.firebase import get_db
from smartcare.models.user import AdminUser, DoctorInfo
from smartcare.services.notification_service import notify_doctor_approved

logger = logging.getLogger(__name__)


def _users():
    return get_db().collection("users")


def _load_user(uid: str):
    ref = _users().document(uid)
    snap = ref.get()
    if not snap.exists:
        raise NotFound("User not found")
    return ref, snap.to_dict() or {}


def _sorted_newest_first(items: List[AdminUser], limit: int) -> List[AdminUser]:
    items.sort(key=lambda u: u.createdAt or 0, reverse=True)
    return items[:limit]


def get_pending_doctors() -> List[DoctorInfo]:
    docs = (
        _users()
        .where(filter=FieldFilter("role", "==", "doctor"))
        .where(filter=FieldFilter("approved", "==", False))
        .stream()
    )
    return [DoctorInfo.from_doc(d.id, d.to_dict() or {}) for d in docs]


def approve_doctor(uid: str, notify: bool = True) -> Dict[str, Any]:
    """Set ``approved`` and email the doctor. Email failure does not undo approval."""
    ref, data = _load_user(uid)
    if data.get("role") != "doctor":
        raise Conflict("User is not a doctor")

    ref.update({"approved": True})
    logger.info("Doctor %s approved", uid)

    emailed = False
    if notify and data.get("email"):
        try:
            emailed = notify_doctor_approved(data["email"], data.get("fullName") or data.get("name"))
        except Exception:
            logger.exception("Approval email to %s failed", data.get("email"))
    return {"uid": uid, "approved": True, "emailed": emailed}


def reject_doctor(uid: str) -> Dict[str, Any]:
    ref, data = _load_user(uid)
    if data.get("role") != "doctor":
        raise Conflict("User is not a doctor")
    ref.update({"approved": False})
    logger.info("Doctor %s rejected/unapproved", uid)
    return {"uid": uid, "approved": False}


def list_users_by_role(role: str, limit: int = 200) -> List[AdminUser]:
    docs = _users().where(filter=FieldFilter("role", "==", role)).stream()
    return _sorted_newest_first([AdminUser.from_doc(d.id, d.to_dict() or {}) for d in docs], limit)


def list_blocked_users(limit: int = 200) -> List[AdminUser]:
    docs = _users().where(filter=FieldFilter("blocked", "==", True)).stream()
    return _sorted_newest_first([AdminUser.from_doc(d.id, d.to_dict() or {}) for d in docs], limit)


def set_user_blocked(uid: str, blocked: bool) -> Dict[str, Any]:
    ref, _ = _load_user(uid)
    ref.update({"blocked": blocked})
    logger.info("User %s blocked=%s", uid, blocked)
    return {"uid": uid, "blocked": blocked}


def remove_user(uid: str) -> None:
    """Delete the profile document only; the auth account is left alone."""
    ref, _ = _load_user(uid)
    ref.delete()
    logger.info("User document %s removed", uid)


def get_admin_stats() -> Dict[str, int]:
    users = _users()
    patients = list(users.where(filter=FieldFilter("role", "==", "patient")).stream())
    doctors = [d.to_dict() or {} for d in users.where(filter=FieldFilter("role", "==", "doctor")).stream()]
    caregivers = list(users.where(filter=FieldFilter("role", "==", "caregiver")).stream())
    apps = [d.to_dict() or {} for d in get_db().collection("appointments").stream()]

    def count_status(status):
        return sum(1 for a in apps if a.get("status") == status)

    approved_doctors = sum(1 for d in doctors if d.get("approved") is True)
    return {
        "totalPatients": len(patients),
        "totalDoctors": len(doctors),
        "totalCaregivers": len(caregivers),
        "approvedDoctors": approved_doctors,
        "pendingDoctors": len(doctors) - approved_doctors,
        "pendingApps": count_status("pending"),
        "approvedApps": count_status("approved"),
        "declinedApps": count_status("declined"),
        "completedApps": count_status("completed"),
    }
