"""
Error kinds raised by the stores, repositories and order service.

Every error carries a human-readable message and a ``kind`` string; the
HTTP layer renders them as ``{"kind": ..., "detail": ...}`` with the
class's ``status_code``.
"""


class ServiceError(Exception):
    kind = "ServiceError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(ServiceError):
    """Missing or malformed required field; nothing was written."""
    kind = "ValidationError"
    status_code = 400


class NotFound(ServiceError):
    kind = "NotFound"
    status_code = 404


class DuplicateUsername(ServiceError):
    kind = "DuplicateUsername"
    status_code = 409


class LocationNotFound(ServiceError):
    """Order sender or receiver has no stored location."""
    kind = "LocationNotFound"
    status_code = 422


class StorageFault(ServiceError):
    """Underlying store operation failed. Not retried at this layer."""
    kind = "StorageFault"
    status_code = 503
