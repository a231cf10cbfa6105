"""Appointment booking and the doctor-side status workflow.

Allowed status moves:
    pending  -> approved | declined
    approved -> completed | declined
Patients may cancel (decline) only while an appointment is pending.
"""
import logging
from typing import Any, Dict, List

from google.cloud.firestore import FieldFilter

from smartcare.core.errors import Conflict, Forbidden, NotFound
from smartcare.core.firebase import get_db
from smartcare.models.appointment import Appointment, AppointmentIn, CompleteAppointmentIn
from smartcare.services.user_service import get_doctor_info, now_ms

logger = logging.getLogger(__name__)

TRANSITIONS = {
    "pending": {"approved", "declined"},
    "approved": {"completed", "declined"},
    "declined": set(),
    "completed": set(),
}


def _collection():
    return get_db().collection("appointments")


def _load(appointment_id: str):
    ref = _collection().document(appointment_id)
    snap = ref.get()
    if not snap.exists:
        raise NotFound("Appointment not found")
    return ref, snap.to_dict() or {}


def _check_transition(current: str, target: str):
    if target not in TRANSITIONS.get(current, set()):
        raise Conflict(f"Cannot move appointment from {current} to {target}")


def attach_doctor_names(items: List[Appointment]) -> List[Appointment]:
    names: Dict[str, str] = {}
    for a in items:
        if a.doctorId not in names:
            try:
                info = get_doctor_info(a.doctorId)
                names[a.doctorId] = (info.fullName or info.name) if info else a.doctorId
            except Exception:
                logger.warning("Could not resolve doctor name for %s", a.doctorId, exc_info=True)
                names[a.doctorId] = a.doctorId
        a.doctorName = names[a.doctorId]
    return items


def create_appointment(patient_id: str, payload: AppointmentIn) -> Appointment:
    doctor = get_doctor_info(payload.doctorId)
    if doctor is None:
        raise NotFound("Doctor not found")
    if not doctor.approved:
        raise Conflict("Doctor is not accepting appointments yet")

    data = {
        "patientId": patient_id,
        "doctorId": payload.doctorId,
        "date": payload.date,
        "reason": payload.reason,
        "status": "pending",
        "createdAt": now_ms(),
    }
    _, ref = _collection().add(data)
    logger.info("Appointment %s booked: patient=%s doctor=%s", ref.id, patient_id, payload.doctorId)
    return Appointment(id=ref.id, **data)


def _list_where(field: str, value: str) -> List[Appointment]:
    docs = _collection().where(filter=FieldFilter(field, "==", value)).stream()
    items = [Appointment(id=d.id, **(d.to_dict() or {})) for d in docs]
    items.sort(key=lambda a: a.date)
    return items


def get_appointments_by_patient(patient_id: str) -> List[Appointment]:
    return attach_doctor_names(_list_where("patientId", patient_id))


def get_appointments_by_doctor(doctor_id: str) -> List[Appointment]:
    return _list_where("doctorId", doctor_id)


def get_appointment_for(session, appointment_id: str) -> Appointment:
    """Load an appointment the caller is a party to (or any, for admins)."""
    _, data = _load(appointment_id)
    if not session.is_admin and session.uid not in (data.get("patientId"), data.get("doctorId")):
        raise Forbidden("Not your appointment")
    return attach_doctor_names([Appointment(id=appointment_id, **data)])[0]


def update_appointment_status(doctor_id: str, appointment_id: str, status: str,
                              extra: Dict[str, Any] = None) -> Dict[str, Any]:
    ref, data = _load(appointment_id)
    if data.get("doctorId") != doctor_id:
        raise Forbidden("Not your appointment")
    _check_transition(data.get("status", "pending"), status)

    updates = {**(extra or {}), "status": status, "updatedAt": now_ms()}
    ref.update(updates)
    logger.info("Appointment %s -> %s by doctor %s", appointment_id, status, doctor_id)
    return {"id": appointment_id, **updates}


def approve_appointment(doctor_id: str, appointment_id: str):
    return update_appointment_status(doctor_id, appointment_id, "approved")


def decline_appointment(doctor_id: str, appointment_id: str):
    return update_appointment_status(doctor_id, appointment_id, "declined")


def complete_appointment(doctor_id: str, appointment_id: str, payload: CompleteAppointmentIn):
    """Store the visit notes; new attachments are appended to the existing ones."""
    extra = {"notes": payload.notes}
    if payload.attachments:
        _, data = _load(appointment_id)
        existing = list(data.get("attachments") or [])
        extra["attachments"] = existing + [a.model_dump(exclude_none=True) for a in payload.attachments]
    return update_appointment_status(doctor_id, appointment_id, "completed", extra)


def cancel_appointment(patient_id: str, appointment_id: str):
    """Patient withdraws a booking that has not been reviewed yet."""
    ref, data = _load(appointment_id)
    if data.get("patientId") != patient_id:
        raise Forbidden("Not your appointment")
    if data.get("status") != "pending":
        raise Conflict("Only pending appointments can be cancelled")

    updates = {"status": "declined", "cancelledBy": patient_id, "updatedAt": now_ms()}
    ref.update(updates)
    return {"id": appointment_id, **updates}


def get_doctor_patient_ids(doctor_id: str) -> List[str]:
    """Distinct patients that have booked with this doctor."""
    return list(dict.fromkeys(a.patientId for a in get_appointments_by_doctor(doctor_id)))
