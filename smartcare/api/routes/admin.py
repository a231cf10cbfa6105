"""Admin-only routes: doctor approval, user moderation, stats."""
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, EmailStr

from smartcare.api.deps import require_role
from smartcare.services import admin_service
from smartcare.services.notification_service import notify_doctor_approved

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_role(["admin"])


class BlockIn(BaseModel):
    blocked: bool


class NotifyIn(BaseModel):
    to: EmailStr
    name: Optional[str] = None


@router.get("/stats")
async def stats(session=Depends(admin_only)):
    return admin_service.get_admin_stats()


@router.get("/doctors/pending")
async def pending_doctors(session=Depends(admin_only)):
    return {"items": admin_service.get_pending_doctors()}


@router.post("/doctors/{uid}/approve")
async def approve_doctor(uid: str, notify: bool = Query(True), session=Depends(admin_only)):
    return admin_service.approve_doctor(uid, notify=notify)


@router.post("/doctors/{uid}/reject")
async def reject_doctor(uid: str, session=Depends(admin_only)):
    return admin_service.reject_doctor(uid)


@router.post("/notify-doctor-approved")
async def resend_approval_email(payload: NotifyIn = Body(...), session=Depends(admin_only)):
    return {"ok": notify_doctor_approved(payload.to, payload.name)}


@router.get("/users")
async def list_users(
    role: Optional[Literal["patient", "doctor", "caregiver", "admin"]] = None,
    blocked: bool = False,
    limit: int = Query(200, ge=1, le=500),
    session=Depends(admin_only),
):
    if blocked:
        return {"items": admin_service.list_blocked_users(limit)}
    return {"items": admin_service.list_users_by_role(role or "patient", limit)}


@router.put("/users/{uid}/blocked")
async def set_blocked(uid: str, payload: BlockIn = Body(...), session=Depends(admin_only)):
    return admin_service.set_user_blocked(uid, payload.blocked)


@router.delete("/users/{uid}", status_code=204)
async def remove_user(uid: str, session=Depends(admin_only)):
    admin_service.remove_user(uid)
