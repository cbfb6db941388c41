"""
Error hierarchy for the crop listing service.

Every error carries a code and an HTTP status so the API layer can render it
with a single exception handler. Store errors never expose internal details.
"""
from typing import Any, Dict


class CropServiceError(Exception):
    """Base exception for all crop listing service errors"""

    body_key = "error"

    def __init__(self, message: str, code: str, http_status: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_response(self) -> Dict[str, Any]:
        return {self.body_key: self.message, "code": self.code}


class UnauthorizedError(CropServiceError):
    """No bearer credential was supplied"""

    body_key = "message"

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message, "UNAUTHORIZED", 401)


class ForbiddenError(CropServiceError):
    """The caller is authenticated but may not act on this resource"""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, "FORBIDDEN", 403)


class InvalidCredentialError(ForbiddenError):
    """The bearer credential could not be verified"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)
        self.code = "INVALID_CREDENTIAL"


class NotFoundError(CropServiceError):
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} '{resource_id}' not found", "NOT_FOUND", 404)
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidInputError(CropServiceError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_INPUT", 400)


class ConflictError(CropServiceError):
    """The requested transition is not allowed from the current state"""

    def __init__(self, message: str):
        super().__init__(message, "CONFLICT", 409)


class StorageError(CropServiceError):
    """Document store operation failed"""

    def __init__(self, operation: str):
        super().__init__("Internal server error", "STORE_FAILURE", 500)
        self.operation = operation
