"""
API exceptions; each maps to an HTTP status and a stable error code
"""
from typing import Optional, Dict, Any


class APIException(Exception):
    """Base API exception class"""

    status_code = 500
    error_code = "SYS_001"
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(APIException):
    """No usable identity on the request"""
    status_code = 401
    error_code = "AUTH_001"
    default_message = "Unauthorized"


class InsufficientPermissionsError(APIException):
    """Actor's team role does not allow the operation"""
    status_code = 403
    error_code = "AUTH_003"
    default_message = "Permission denied"


class ValidationError(APIException):
    status_code = 400
    error_code = "VAL_001"
    default_message = "Validation failed"


class ResourceNotFoundError(APIException):
    """Resource missing, or not visible to the actor"""
    status_code = 404
    error_code = "BIZ_001"

    def __init__(self, resource: str = "Resource", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", details=details)


class OperationNotAllowedError(APIException):
    """Card is not in a state that allows the operation (claim, submit)"""
    status_code = 409
    error_code = "BIZ_003"
    default_message = "Operation not allowed"


class WorkflowRejectedError(APIException):
    """Target column's entry requirements are not met"""
    status_code = 409
    error_code = "BIZ_004"
    default_message = "Card does not meet the column's entry requirements"


class WipLimitExceededError(APIException):
    status_code = 409
    error_code = "BIZ_005"
    default_message = "WIP limit reached"


class StoreError(APIException):
    """Persistence failure; the transaction was rolled back"""
    status_code = 503
    error_code = "SYS_002"
    default_message = "Storage operation failed"
