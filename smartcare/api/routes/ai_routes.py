"""AI helpers backed by Firebase callable functions."""
from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from smartcare.api.deps import require_role, security
from smartcare.services import ai_client, appointment_service

router = APIRouter(prefix="/ai", tags=["ai"])


class ChatIn(BaseModel):
    message: str = Field(..., min_length=1)


class NotesIn(BaseModel):
    freeText: str = Field(..., min_length=1)


class EvaluateIn(BaseModel):
    date: Optional[str] = None


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


@router.post("/care-chat")
async def care_chat(
    payload: ChatIn = Body(...),
    session=Depends(require_role(["patient"])),
    credentials=Depends(security),
):
    return {"reply": ai_client.care_chat(payload.message, _token(credentials))}


@router.post("/evaluate-daily")
async def evaluate_daily(
    payload: Optional[EvaluateIn] = Body(None),
    session=Depends(require_role(["patient"])),
    credentials=Depends(security),
):
    return ai_client.evaluate_daily(payload.date if payload else None, _token(credentials))


@router.post("/appointments/{appointment_id}/summary")
async def summarize_appointment(
    appointment_id: str,
    session=Depends(require_role(["doctor"])),
    credentials=Depends(security),
):
    # Ownership check before handing the id to the function
    appointment_service.get_appointment_for(session, appointment_id)
    return {"summary": ai_client.summarize_appointment(appointment_id, _token(credentials))}


@router.post("/soap")
async def soap_from_notes(
    payload: NotesIn = Body(...),
    session=Depends(require_role(["doctor"])),
    credentials=Depends(security),
):
    return {"soap": ai_client.soap_from_notes(payload.freeText, _token(credentials))}
