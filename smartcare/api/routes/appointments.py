"""Appointment routes for patients (booking) and doctors (review)."""
from fastapi import APIRouter, Body, Depends

from smartcare.api.deps import require_role
from smartcare.models.appointment import AppointmentIn, CompleteAppointmentIn
from smartcare.services import appointment_service

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("/", status_code=201)
async def book_appointment(
    payload: AppointmentIn = Body(...),
    session=Depends(require_role(["patient"])),
):
    return appointment_service.create_appointment(session.uid, payload)


@router.get("/")
async def list_appointments(session=Depends(require_role(["patient", "doctor"]))):
    """Patients see their bookings; doctors see appointments booked with them."""
    if session.is_doctor:
        items = appointment_service.get_appointments_by_doctor(session.uid)
    else:
        items = appointment_service.get_appointments_by_patient(session.uid)
    return {"items": items}


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    session=Depends(require_role(["patient", "doctor", "admin"])),
):
    return appointment_service.get_appointment_for(session, appointment_id)


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(appointment_id: str, session=Depends(require_role(["patient"]))):
    return appointment_service.cancel_appointment(session.uid, appointment_id)


@router.post("/{appointment_id}/approve")
async def approve_appointment(appointment_id: str, session=Depends(require_role(["doctor"]))):
    return appointment_service.approve_appointment(session.uid, appointment_id)


@router.post("/{appointment_id}/decline")
async def decline_appointment(appointment_id: str, session=Depends(require_role(["doctor"]))):
    return appointment_service.decline_appointment(session.uid, appointment_id)


@router.post("/{appointment_id}/complete")
async def complete_appointment(
    appointment_id: str,
    payload: CompleteAppointmentIn = Body(...),
    session=Depends(require_role(["doctor"])),
):
    return appointment_service.complete_appointment(session.uid, appointment_id, payload)
