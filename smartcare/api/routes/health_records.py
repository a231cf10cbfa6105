"""Health data routes.

Patients and their linked caregivers record daily measures; doctors and
admins may read them. Medical record files are uploaded by the patient (or
a doctor for a patient who booked with them).
"""
from fastapi import APIRouter, Body, Depends, File, Query, UploadFile

from smartcare.api.deps import require_role
from smartcare.core.errors import Forbidden
from smartcare.models.health_data import DailyMeasureIn
from smartcare.services import appointment_service, health_service
from smartcare.services.caregiver_service import can_act_for_patient

router = APIRouter(prefix="/patients/{patient_id}", tags=["health_records"])


def _ensure_can_write(session, patient_id: str):
    if not can_act_for_patient(session, patient_id):
        raise Forbidden("No access to this patient's measures")


def _ensure_can_read(session, patient_id: str):
    if session.is_doctor:
        if patient_id not in appointment_service.get_doctor_patient_ids(session.uid):
            raise Forbidden("Patient has no appointments with you")
        return
    _ensure_can_write(session, patient_id)


@router.put("/daily-measures")
async def save_daily_measure(
    patient_id: str,
    payload: DailyMeasureIn = Body(...),
    session=Depends(require_role(["patient", "caregiver"])),
):
    _ensure_can_write(session, patient_id)
    return health_service.upsert_daily_measure(patient_id, payload, session)


@router.get("/daily-measures")
async def list_daily_measures(
    patient_id: str,
    limit: int = Query(30, ge=1, le=365),
    session=Depends(require_role(["patient", "caregiver", "doctor", "admin"])),
):
    _ensure_can_read(session, patient_id)
    return {"items": health_service.get_daily_measures(patient_id, limit)}


@router.post("/records", status_code=201)
async def upload_record(
    patient_id: str,
    file: UploadFile = File(...),
    session=Depends(require_role(["patient", "doctor"])),
):
    if session.is_patient:
        _ensure_can_write(session, patient_id)
    else:
        _ensure_can_read(session, patient_id)

    content = await file.read()
    return health_service.upload_record(
        patient_id, file.filename or "record", content, file.content_type, session.uid,
    )


@router.get("/records")
async def list_records(
    patient_id: str,
    session=Depends(require_role(["patient", "caregiver", "doctor", "admin"])),
):
    _ensure_can_read(session, patient_id)
    return {"items": health_service.get_patient_records(patient_id)}


@router.delete("/records/{record_id}", status_code=204)
async def delete_record(
    patient_id: str,
    record_id: str,
    session=Depends(require_role(["patient", "admin"])),
):
    _ensure_can_write(session, patient_id)
    record = health_service.get_record(record_id)
    if record.patientId != patient_id:
        raise Forbidden("Record belongs to another patient")
    health_service.delete_record(record)
