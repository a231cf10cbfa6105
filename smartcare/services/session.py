"""Role-aware session resolution.

A session is derived from two sources: the verified ID token (``uid``,
``email`` and an optional ``role`` custom claim) and the user's profile
document in ``users/{uid}``. The document wins; the claim only fills a
missing role. The document is read on every request, so role, approval and
block changes apply to the very next call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from smartcare.core.firebase import get_db
from smartcare.models.user import ROLES

logger = logging.getLogger(__name__)


def normalize_role(value: Any) -> Optional[str]:
    """Return ``value`` if it is a known role, else ``None``."""
    if isinstance(value, str) and value in ROLES:
        return value
    return None


@dataclass
class Session:
    uid: str
    email: Optional[str] = None
    role: Optional[str] = None
    profile_completed: bool = False
    # Only meaningful for doctors; None for every other role
    approved: Optional[bool] = None
    blocked: bool = False
    user_doc: dict[str, Any] = field(default_factory=dict)

    @property
    def is_patient(self) -> bool:
        return self.role == "patient"

    @property
    def is_doctor(self) -> bool:
        return self.role == "doctor"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_caregiver(self) -> bool:
        return self.role == "caregiver"

    @property
    def display_name(self) -> str:
        return self.user_doc.get("fullName") or self.email or self.uid

    def landing_route(self) -> str:
        """Where the client should send this user next."""
        if self.blocked:
            return "/403"
        if self.role is None:
            return "/setup-profile"
        if self.role != "admin" and not self.profile_completed:
            return "/setup-profile"
        if self.role == "doctor" and self.approved is False:
            return "/awaiting-approval"
        if self.role == "admin":
            return "/admin"
        return f"/{self.role}/dashboard"

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "role": self.role,
            "profileCompleted": self.profile_completed,
            "approved": self.approved,
            "blocked": self.blocked,
            "isPatient": self.is_patient,
            "isDoctor": self.is_doctor,
            "isAdmin": self.is_admin,
            "isCaregiver": self.is_caregiver,
            "landing": self.landing_route(),
        }


def resolve_session(claims: dict[str, Any], user_doc: Optional[dict[str, Any]]) -> Session:
    """Combine token claims and the profile document into a ``Session``."""
    uid = claims["uid"]
    email = claims.get("email")
    claimed_role = normalize_role(claims.get("role"))

    if user_doc is None:
        # Profile document not created yet
        return Session(uid=uid, email=email, role=claimed_role)

    role = normalize_role(user_doc.get("role")) or claimed_role
    approved = user_doc.get("approved") if role == "doctor" else None

    return Session(
        uid=uid,
        email=user_doc.get("email") or email,
        role=role,
        profile_completed=bool(user_doc.get("profileCompleted")),
        approved=approved,
        blocked=bool(user_doc.get("blocked")),
        user_doc=user_doc,
    )


def load_session(claims: dict[str, Any]) -> Session:
    """Read ``users/{uid}`` and resolve the caller's session.

    A failed read degrades to the claims-only session, the same as a missing
    profile document.
    """
    uid = claims["uid"]
    try:
        snap = get_db().collection("users").document(uid).get()
        user_doc = (snap.to_dict() or {}) if snap.exists else None
    except Exception:
        logger.exception("Could not read profile for uid=%s; using token claims only", uid)
        user_doc = None
    return resolve_session(claims, user_doc)
