"""
API dependencies: Firebase token verification and the role gate.

Every protected route declares ``Depends(require_role([...]))``. The gate
runs before the route body, so a caller that fails any check gets an error
response and never a partial payload.
"""

from typing import Callable, List

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth

from smartcare.core.errors import AccessDenied
from smartcare.services.session import Session, load_session

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
):
    """
    Verify Firebase ID token from Authorization header.

    Expects:
        Authorization: Bearer <id_token>
    """
    if credentials is None or not credentials.credentials:
        raise AccessDenied("Not authenticated", redirect="/login", status_code=401, code="unauthenticated")
    try:
        return auth.verify_id_token(credentials.credentials)
    except Exception as exc:
        raise AccessDenied("Invalid ID token", redirect="/login", status_code=401, code="unauthenticated") from exc


def get_session(user=Depends(get_current_user)) -> Session:
    return load_session(user)


def check_access(
    session: Session,
    allowed: List[str],
    require_profile: bool = True,
    require_approval: bool = True,
) -> Session:
    """Apply the gate rules in order; raise ``AccessDenied`` on the first miss."""
    if session.blocked:
        raise AccessDenied("Account is blocked", redirect="/403", code="blocked")

    if session.role is None:
        raise AccessDenied("No role chosen yet", redirect="/setup-profile", code="no_role")

    if session.role not in allowed:
        raise AccessDenied("Insufficient permissions", redirect="/403", code="wrong_role")

    if require_profile and session.role != "admin" and not session.profile_completed:
        raise AccessDenied("Profile setup required", redirect="/setup-profile", code="profile_incomplete")

    if require_approval and session.role == "doctor" and session.approved is False:
        raise AccessDenied("Doctor account awaiting approval", redirect="/awaiting-approval", code="awaiting_approval")

    return session


def require_role(
    allowed: List[str],
    require_profile: bool = True,
    require_approval: bool = True,
) -> Callable:
    """
    Return a FastAPI dependency that enforces the caller's role.

    Role comes from ``users/{uid}.role``, falling back to the ``role``
    custom claim on the ID token.
    """

    def _checker(session: Session = Depends(get_session)) -> Session:
        return check_access(session, allowed, require_profile, require_approval)

    return _checker
