"""Domain errors raised by the service layer.

Services never build HTTP responses themselves; they raise one of these and
the handler registered in ``smartcare.main`` turns it into JSON.
"""
from typing import Optional


class SmartCareError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, detail: str, redirect: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.redirect = redirect

    def to_dict(self):
        body = {"detail": self.detail, "code": self.code}
        if self.redirect:
            body["redirect"] = self.redirect
        return body


class NotFound(SmartCareError):
    status_code = 404
    code = "not_found"


class Forbidden(SmartCareError):
    status_code = 403
    code = "forbidden"


class Conflict(SmartCareError):
    status_code = 409
    code = "conflict"


class AccessDenied(SmartCareError):
    """Raised by the access guard; ``redirect`` tells the client where to go."""

    def __init__(self, detail: str, redirect: str, status_code: int = 403, code: str = "access_denied"):
        super().__init__(detail, redirect=redirect)
        self.status_code = status_code
        self.code = code


class UpstreamError(SmartCareError):
    status_code = 502
    code = "upstream_error"
