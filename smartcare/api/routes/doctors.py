from fastapi import APIRouter, Depends

from smartcare.api.deps import require_role
from smartcare.core.errors import Forbidden, NotFound
from smartcare.services import appointment_service, user_service

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get("/")
async def list_doctors(session=Depends(require_role(["patient", "doctor", "caregiver", "admin"]))):
    """Approved doctors, for booking and search."""
    return {"items": user_service.get_approved_doctors()}


@router.get("/me/patients")
async def my_patients(session=Depends(require_role(["doctor"]))):
    """Patients who have booked with the calling doctor."""
    items = []
    for pid in appointment_service.get_doctor_patient_ids(session.uid):
        info = user_service.get_patient_info(pid)
        if info:
            items.append(info)
    return {"items": items}


@router.get("/me/patients/{patient_id}")
async def my_patient(patient_id: str, session=Depends(require_role(["doctor"]))):
    if patient_id not in appointment_service.get_doctor_patient_ids(session.uid):
        raise Forbidden("Patient has no appointments with you")
    info = user_service.get_patient_info(patient_id)
    if info is None:
        raise NotFound("Patient not found")
    return info


@router.get("/{doctor_id}")
async def get_doctor(
    doctor_id: str,
    session=Depends(require_role(["patient", "doctor", "caregiver", "admin"])),
):
    info = user_service.get_doctor_info(doctor_id)
    if info is None:
        raise NotFound("Doctor not found")
    return info
