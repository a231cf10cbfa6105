"""
Client for the AI Cloud Functions (Firebase callable functions).

Callables speak a small JSON protocol over HTTPS:
    POST https://<region>-<project>.cloudfunctions.net/<name>
    {"data": {...}}  ->  {"result": {...}}  or  {"error": {...}}
The caller's ID token is forwarded so the function sees the same user.
"""
import logging
from typing import Any, Dict, Optional

import requests

from smartcare.core.config import settings
from smartcare.core.errors import UpstreamError
from smartcare.core.logger import log_debug

logger = logging.getLogger(__name__)


def _function_url(name: str) -> str:
    if not settings.FIREBASE_PROJECT_ID:
        raise UpstreamError("FIREBASE_PROJECT_ID is not configured")
    return f"https://{settings.FUNCTIONS_REGION}-{settings.FIREBASE_PROJECT_ID}.cloudfunctions.net/{name}"


def call_function(name: str, data: Dict[str, Any], id_token: Optional[str] = None) -> Any:
    headers = {"Content-Type": "application/json"}
    if id_token:
        headers["Authorization"] = f"Bearer {id_token}"

    log_debug("ai_call", {"function": name, "data": data})
    try:
        resp = requests.post(
            _function_url(name),
            json={"data": data},
            headers=headers,
            timeout=settings.FUNCTIONS_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.error("Callable %s unreachable: %s", name, exc)
        raise UpstreamError(f"AI function {name} unreachable") from exc

    try:
        body = resp.json()
    except ValueError:
        body = {}

    if resp.status_code >= 400 or "error" in body:
        err = body.get("error") or {}
        message = err.get("message") or f"HTTP {resp.status_code}"
        logger.error("Callable %s failed: %s", name, message)
        raise UpstreamError(f"AI function {name} failed: {message}")

    result = body.get("result")
    if result is None:
        raise UpstreamError("Empty response from AI function.")
    log_debug("ai_result", {"function": name, "result": result})
    return result


def _field(result, key: str):
    if not isinstance(result, dict) or key not in result:
        raise UpstreamError(f"AI function response is missing '{key}'")
    return result[key]


def care_chat(message: str, id_token: Optional[str] = None) -> str:
    return _field(call_function("careChat", {"message": message}, id_token), "reply")


def summarize_appointment(appointment_id: str, id_token: Optional[str] = None) -> str:
    return _field(call_function("summarizeAppointment", {"appointmentId": appointment_id}, id_token), "summary")


def soap_from_notes(free_text: str, id_token: Optional[str] = None) -> str:
    return _field(call_function("soapFromNotes", {"freeText": free_text}, id_token), "soap")


def evaluate_daily(date: Optional[str] = None, id_token: Optional[str] = None) -> Dict[str, Any]:
    """Returns ``{"advice", "risk", "notified"}`` for the caller's day."""
    payload = {"date": date} if date else {}
    return call_function("evaluateDailyAndAlert", payload, id_token)
