"""Error taxonomy.

Every error is an ``HTTPException`` so services can raise it directly and
FastAPI renders it with a fixed status code.
"""

from fastapi import HTTPException


class LoyaltyError(HTTPException):
    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(LoyaltyError):
    status_code = 400
    default_detail = "Invalid request"


class NotFoundError(LoyaltyError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(LoyaltyError):
    status_code = 409
    default_detail = "Conflict"


class AuthError(LoyaltyError):
    status_code = 401
    default_detail = "Invalid or expired session"

    def __init__(self, detail: str | None = None):
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class PermissionDenied(LoyaltyError):
    status_code = 403
    default_detail = "Admin access required"


class ExternalServiceError(LoyaltyError):
    status_code = 502
    default_detail = "External service unavailable"


# ─── Loyalty code redemption ──────────────────────────────────────
class CodeNotFound(NotFoundError):
    default_detail = "Loyalty code not found"


class CodeAlreadyUsed(ConflictError):
    default_detail = "Loyalty code already used"


class CodeEmailMismatch(ConflictError):
    default_detail = "Loyalty code does not belong to this email"


class CodeGenerationError(ConflictError):
    default_detail = "Could not generate a unique loyalty code"
