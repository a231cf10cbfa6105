"""Caregiver-related API routes.

Patient side: search the directory, invite, list own caregivers, revoke.
Caregiver side: inbox of pending requests, accept/reject, linked patients.
"""
from fastapi import APIRouter, Body, Depends, Query

from smartcare.api.deps import require_role
from smartcare.models.caregiver import BulkDecideIn, DecideIn, SendRequestIn
from smartcare.services import caregiver_service

router = APIRouter(prefix="/caregivers", tags=["caregivers"])


# -------------------------
# Patient side
# -------------------------
@router.get("/search")
async def search_caregivers(
    email: str = Query(..., min_length=1),
    session=Depends(require_role(["patient"])),
):
    return {"items": caregiver_service.search_caregivers_by_email_prefix(email)}


@router.post("/requests", status_code=201)
async def send_request(
    payload: SendRequestIn = Body(...),
    session=Depends(require_role(["patient"])),
):
    req, created = caregiver_service.send_request(session.uid, payload.caregiverId)
    return {"request": req, "created": created}


@router.get("/requests/sent")
async def list_sent_requests(session=Depends(require_role(["patient"]))):
    return {"items": caregiver_service.get_outgoing_requests(session.uid)}


@router.get("/mine")
async def list_my_caregivers(session=Depends(require_role(["patient"]))):
    return {"items": caregiver_service.get_patient_caregivers(session.uid)}


@router.delete("/mine/{caregiver_id}")
async def revoke_caregiver(caregiver_id: str, session=Depends(require_role(["patient"]))):
    result = caregiver_service.revoke_access(session.uid, caregiver_id)
    return {"message": "Access revoked", **result}


# -------------------------
# Caregiver side
# -------------------------
@router.get("/requests/incoming")
async def list_incoming_requests(session=Depends(require_role(["caregiver"]))):
    return {"items": caregiver_service.get_incoming_requests(session.uid)}


@router.post("/requests/decide")
async def decide_requests(
    payload: BulkDecideIn = Body(...),
    session=Depends(require_role(["caregiver"])),
):
    outcomes = caregiver_service.decide_requests(payload.requestIds, session.uid, payload.accept)
    return {"items": outcomes}


@router.post("/requests/{request_id}/decide")
async def decide_request(
    request_id: str,
    payload: DecideIn = Body(...),
    session=Depends(require_role(["caregiver"])),
):
    status = caregiver_service.decide_request(request_id, session.uid, payload.accept)
    return {"id": request_id, "status": status}


@router.get("/patients")
async def list_my_patients(session=Depends(require_role(["caregiver"]))):
    return {"items": caregiver_service.get_caregiver_patients(session.uid)}
