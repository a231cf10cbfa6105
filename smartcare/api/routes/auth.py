"""Authentication-related routes.

Frontend signs in with Firebase; these endpoints create and complete the
profile document and report the resolved session so the client knows which
view to land on.
"""
from fastapi import APIRouter, Body, Depends

from smartcare.api.deps import get_current_user, get_session, require_role
from smartcare.core.errors import AccessDenied
from smartcare.models.user import ProfileIn, RegisterIn
from smartcare.services import user_service
from smartcare.services.session import load_session

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
async def get_me(user=Depends(get_current_user)):
    return {"uid": user.get("uid"), "email": user.get("email")}


@router.get("/session")
async def get_session_state(session=Depends(get_session)):
    """Resolved role/approval/profile flags. Not role gated."""
    return session.to_dict()


@router.post("/register", status_code=201)
async def register(payload: RegisterIn = Body(...), user=Depends(get_current_user)):
    extra = payload.model_dump(exclude={"role"}, exclude_none=True)
    user_service.register_profile(user["uid"], user.get("email"), payload.role, extra)
    return load_session(user).to_dict()


@router.post("/setup-profile")
async def setup_profile(payload: ProfileIn = Body(...), session=Depends(get_session)):
    """Complete the profile. Allowed before approval and before completion."""
    if session.blocked:
        raise AccessDenied("Account is blocked", redirect="/403", code="blocked")
    if session.role is None:
        raise AccessDenied("Choose a role first", redirect="/setup-profile", code="no_role")

    updates = user_service.complete_profile(session.uid, session.role, payload)
    return {"message": "Profile completed", "updates": updates}


@router.get("/profile")
async def get_profile(session=Depends(require_role(
    ["patient", "doctor", "caregiver", "admin"], require_profile=False, require_approval=False,
))):
    return {"uid": session.uid, **session.user_doc}
