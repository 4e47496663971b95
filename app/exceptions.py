# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class RegistryException(Exception):
    """
    Base exception for the Blacklist Registry API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "REGISTRY_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Case Exceptions
# =============================================================================

class CaseNotFoundError(RegistryException):
    """Raised when a case ID doesn't exist (or the caller may not see it)."""

    def __init__(self, case_id: str):
        super().__init__(
            message=f"Case not found: {case_id}",
            code="CASE_NOT_FOUND",
            status_code=404,
            suggestion="Check that the case_id is correct",
            details={"case_id": case_id}
        )


class CaseValidationError(RegistryException):
    """Raised when input to a case operation is malformed."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="CASE_VALIDATION_ERROR",
            status_code=422,
            suggestion="Correct the highlighted field and submit again",
            details={"field": field} if field else None
        )
        self.field = field


class InvalidTransitionError(RegistryException):
    """
    Raised when a case cannot move to the requested status.

    Covers both a case that is already decided and a decision that lost
    the race against another administrator (conflict=True).
    """

    def __init__(
        self,
        case_id: str,
        current_status: str | None,
        target_status: str,
        conflict: bool = False,
    ):
        if conflict:
            message = f"Case {case_id} was decided by someone else while this request was in flight"
        else:
            message = f"Case {case_id} cannot move from {current_status} to {target_status}"
        super().__init__(
            message=message,
            code="INVALID_TRANSITION",
            status_code=409,
            suggestion="This case was already decided. Reload it to see the current status",
            details={
                "case_id": case_id,
                "current_status": current_status,
                "target_status": target_status,
                "conflict": conflict,
            }
        )
        self.case_id = case_id
        self.current_status = current_status
        self.target_status = target_status
        self.conflict = conflict


# =============================================================================
# Membership Exceptions
# =============================================================================

class AdminRequiredError(RegistryException):
    """Raised when a non-administrator attempts an admin-only action."""

    def __init__(self, action: str):
        super().__init__(
            message=f"Administrator privileges required: {action}",
            code="ADMIN_REQUIRED",
            status_code=403,
            suggestion="Ask an administrator to perform this action",
            details={"action": action}
        )


class MembershipPendingError(RegistryException):
    """Raised when a signed-up user has not been approved yet."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"Membership is awaiting administrator approval: {user_id}",
            code="MEMBERSHIP_PENDING",
            status_code=403,
            suggestion="Wait for an administrator to approve your account",
            details={"user_id": user_id}
        )


class NoCompanyError(RegistryException):
    """Raised when a user has no company assigned."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No company is associated with user: {user_id}",
            code="NO_COMPANY",
            status_code=400,
            suggestion="Register your profile with a company name via POST /api/v1/auth/profile",
            details={"user_id": user_id}
        )


class UserNotFoundError(RegistryException):
    """Raised when an app user profile doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User profile not found: {user_id}",
            code="USER_NOT_FOUND",
            status_code=404,
            suggestion="Register your profile via POST /api/v1/auth/profile",
            details={"user_id": user_id}
        )


class CompanyNotFoundError(RegistryException):
    """Raised when a company ID doesn't exist."""

    def __init__(self, company_id: str):
        super().__init__(
            message=f"Company not found: {company_id}",
            code="COMPANY_NOT_FOUND",
            status_code=404,
            suggestion="Check that the company_id is correct",
            details={"company_id": company_id}
        )


# =============================================================================
# Evidence Exceptions
# =============================================================================

class InvalidFileTypeError(RegistryException):
    """Raised when an uploaded evidence file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(RegistryException):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class StorageUploadError(RegistryException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class TextExtractionError(RegistryException):
    """Raised when the OCR engine fails to read an image."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to extract text from image: {error}",
            code="TEXT_EXTRACTION_ERROR",
            status_code=502,
            suggestion="Try a sharper image, or type the narrative manually",
            details={"error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def registry_exception_handler(
    request: Request,
    exc: RegistryException
) -> JSONResponse:
    """
    Convert RegistryException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
