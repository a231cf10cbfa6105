"""Caregiver directory and access-request workflow.

A patient invites a caregiver; the caregiver accepts or rejects. Requests
live in ``caregiverRequests/{id}`` and move ``pending -> accepted |
rejected`` exactly once. Acceptance links both user documents
(``patient.caregivers`` and ``caregiver.patients``) in the same Firestore
transaction that closes the request.

Access is decided from the patient side: a caregiver may act for a patient
only while the patient's ``caregivers`` array lists them.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from firebase_admin import firestore
from google.cloud.firestore import FieldFilter

from smartcare.core.errors import Conflict, Forbidden, NotFound
from smartcare.core.firebase import get_db, run_transaction
from smartcare.models.caregiver import CaregiverRequest, DecideOutcome
from smartcare.models.user import UserLite

logger = logging.getLogger(__name__)

USERS = "users"
REQUESTS = "caregiverRequests"
# Per-caregiver subcollections written by older clients
LEGACY_CAREGIVERS = "caregivers"


def _now():
    return datetime.now(timezone.utc)


def _as_list(value) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _request_from_snap(snap) -> CaregiverRequest:
    return CaregiverRequest(id=snap.id, **(snap.to_dict() or {}))


# -------------------------
# Directory
# -------------------------
def get_user(uid: str) -> Optional[dict[str, Any]]:
    """Return ``users/{uid}`` with ``uid`` set, or None."""
    if not uid:
        return None
    snap = get_db().collection(USERS).document(uid).get()
    if not snap.exists:
        return None
    return {**(snap.to_dict() or {}), "uid": snap.id}


def get_user_lite(uid: str) -> Optional[UserLite]:
    data = get_user(uid)
    return UserLite.from_doc(uid, data) if data else None


def search_caregivers_by_email_prefix(prefix: str) -> list[UserLite]:
    """Caregivers whose email starts with ``prefix`` (case-insensitive)."""
    prefix = (prefix or "").strip().lower()
    if not prefix:
        return []

    docs = (
        get_db()
        .collection(USERS)
        .where(filter=FieldFilter("role", "==", "caregiver"))
        .stream()
    )
    out = []
    for d in docs:
        data = d.to_dict() or {}
        if str(data.get("email") or "").lower().startswith(prefix):
            out.append(UserLite.from_doc(d.id, data))
    return out


# -------------------------
# Requests
# -------------------------
def _send_in_transaction(transaction, db, patient_id: str, caregiver_id: str):
    users = db.collection(USERS)

    caregiver_snap = users.document(caregiver_id).get(transaction=transaction)
    if not caregiver_snap.exists or (caregiver_snap.to_dict() or {}).get("role") != "caregiver":
        raise NotFound("Caregiver not found")

    patient_snap = users.document(patient_id).get(transaction=transaction)
    patient = (patient_snap.to_dict() or {}) if patient_snap.exists else {}
    if caregiver_id in _as_list(patient.get("caregivers")):
        raise Conflict("Caregiver already has access")

    pending = (
        db.collection(REQUESTS)
        .where(filter=FieldFilter("patientId", "==", patient_id))
        .where(filter=FieldFilter("caregiverId", "==", caregiver_id))
        .where(filter=FieldFilter("status", "==", "pending"))
        .limit(1)
    )
    for snap in pending.stream(transaction=transaction):
        return _request_from_snap(snap), False

    ref = db.collection(REQUESTS).document()
    data = {
        "patientId": patient_id,
        "caregiverId": caregiver_id,
        "status": "pending",
        "createdAt": _now(),
    }
    transaction.set(ref, data)
    return CaregiverRequest(id=ref.id, **data), True


def send_request(patient_id: str, caregiver_id: str) -> tuple[CaregiverRequest, bool]:
    """
    Patient invites a caregiver.

    Returns ``(request, created)``. When a pending request for the same pair
    already exists it is returned unchanged with ``created=False``.
    """
    if patient_id == caregiver_id:
        raise Conflict("Cannot send a caregiver request to yourself")

    req, created = run_transaction(_send_in_transaction, get_db(), patient_id, caregiver_id)
    if created:
        logger.info("Caregiver request %s: patient=%s caregiver=%s", req.id, patient_id, caregiver_id)
    else:
        logger.info("Reusing pending caregiver request %s for patient=%s caregiver=%s", req.id, patient_id, caregiver_id)
    return req, created


def get_incoming_requests(caregiver_id: str) -> list[CaregiverRequest]:
    """Pending requests addressed to a caregiver, with patient details."""
    docs = (
        get_db()
        .collection(REQUESTS)
        .where(filter=FieldFilter("caregiverId", "==", caregiver_id))
        .where(filter=FieldFilter("status", "==", "pending"))
        .stream()
    )
    out = []
    for d in docs:
        req = _request_from_snap(d)
        req.patient = get_user_lite(req.patientId)
        out.append(req)
    out.sort(key=lambda r: r.createdAt or datetime.min.replace(tzinfo=timezone.utc))
    return out


def get_outgoing_requests(patient_id: str) -> list[CaregiverRequest]:
    docs = (
        get_db()
        .collection(REQUESTS)
        .where(filter=FieldFilter("patientId", "==", patient_id))
        .stream()
    )
    return [_request_from_snap(d) for d in docs]


def _decide_in_transaction(transaction, db, request_id: str, caregiver_id: str, accept: bool):
    ref = db.collection(REQUESTS).document(request_id)
    snap = ref.get(transaction=transaction)
    if not snap.exists:
        raise NotFound("Request not found")

    req = snap.to_dict() or {}
    if req.get("caregiverId") != caregiver_id:
        raise Forbidden("Request is addressed to another caregiver")
    if req.get("status") != "pending":
        raise Conflict(f"Request already {req.get('status')}")

    patient_id = req["patientId"]
    users = db.collection(USERS)
    patient_ref = users.document(patient_id)
    caregiver_ref = users.document(caregiver_id)

    # Firestore requires every read before the first write
    if accept:
        if not patient_ref.get(transaction=transaction).exists:
            raise NotFound("Patient not found")
        if not caregiver_ref.get(transaction=transaction).exists:
            raise NotFound("Caregiver profile not found")

    status = "accepted" if accept else "rejected"
    transaction.update(ref, {
        "status": status,
        "decidedAt": _now(),
        "decidedBy": caregiver_id,
    })

    if accept:
        transaction.update(caregiver_ref, {"patients": firestore.ArrayUnion([patient_id])})
        transaction.update(patient_ref, {"caregivers": firestore.ArrayUnion([caregiver_id])})

    return status, patient_id


def decide_request(request_id: str, caregiver_id: str, accept: bool) -> str:
    """
    Caregiver accepts or rejects a pending request.

    The status change and, on accept, both linkage writes commit together.
    Returns the new status.
    """
    status, patient_id = run_transaction(_decide_in_transaction, get_db(), request_id, caregiver_id, accept)
    logger.info("Caregiver request %s %s (patient=%s caregiver=%s)", request_id, status, patient_id, caregiver_id)
    return status


def decide_requests(request_ids: list[str], caregiver_id: str, accept: bool) -> list[DecideOutcome]:
    """Decide several requests; one failure does not stop the others."""
    outcomes = []
    for request_id in dict.fromkeys(request_ids):
        try:
            status = decide_request(request_id, caregiver_id, accept)
            outcomes.append(DecideOutcome(requestId=request_id, ok=True, status=status))
        except (NotFound, Forbidden, Conflict) as exc:
            outcomes.append(DecideOutcome(requestId=request_id, ok=False, error=exc.detail))
    return outcomes


# -------------------------
# Links
# -------------------------
def get_caregiver_patients(caregiver_id: str) -> list[UserLite]:
    """Patients the caregiver currently has access to."""
    caregiver = get_user(caregiver_id) or {}
    out = []
    for pid in _as_list(caregiver.get("patients")):
        patient = get_user(pid)
        if not patient:
            continue
        # Patient side is authoritative; skip stale entries left by a revoke
        if caregiver_id not in _as_list(patient.get("caregivers")):
            continue
        out.append(UserLite.from_doc(pid, patient))
    return out


def get_patient_caregivers(patient_id: str) -> list[UserLite]:
    patient = get_user(patient_id) or {}
    out = []
    for cid in _as_list(patient.get("caregivers")):
        lite = get_user_lite(cid)
        if lite:
            out.append(lite)
    return out


def revoke_access(patient_id: str, caregiver_id: str) -> dict[str, Any]:
    """
    Patient removes a caregiver.

    Removing the caregiver from ``patient.caregivers`` is the revoke itself
    and its failure propagates. Caregiver-side cleanup runs afterwards and
    each step only logs on failure.
    """
    db = get_db()
    patient_ref = db.collection(USERS).document(patient_id)
    snap = patient_ref.get()
    if not snap.exists:
        raise NotFound("Patient not found")

    was_linked = caregiver_id in _as_list((snap.to_dict() or {}).get("caregivers"))
    patient_ref.update({"caregivers": firestore.ArrayRemove([caregiver_id])})

    legacy = db.collection(LEGACY_CAREGIVERS).document(caregiver_id)
    cleanup_steps = {
        "caregiverPatients": lambda: db.collection(USERS).document(caregiver_id).update(
            {"patients": firestore.ArrayRemove([patient_id])}
        ),
        "legacyPatient": lambda: legacy.collection("patients").document(patient_id).delete(),
        "legacyRequest": lambda: legacy.collection("requests").document(patient_id).delete(),
    }
    cleanup = {}
    for name, step in cleanup_steps.items():
        try:
            step()
            cleanup[name] = True
        except Exception:
            logger.warning(
                "Revoke cleanup step %s failed (patient=%s caregiver=%s)",
                name, patient_id, caregiver_id, exc_info=True,
            )
            cleanup[name] = False

    logger.info("Caregiver %s revoked from patient %s (was_linked=%s)", caregiver_id, patient_id, was_linked)
    return {"revoked": was_linked, "cleanup": cleanup}


def is_linked_caregiver(patient_id: str, caregiver_id: str) -> bool:
    patient = get_user(patient_id) or {}
    return caregiver_id in _as_list(patient.get("caregivers"))


def can_act_for_patient(session, patient_id: str) -> bool:
    """The patient, an admin, or a caregiver the patient lists."""
    if session.is_admin:
        return True
    if session.is_patient:
        return session.uid == patient_id
    if session.is_caregiver:
        return is_linked_caregiver(patient_id, session.uid)
    return False
