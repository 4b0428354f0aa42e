# hr_api/errors.py
import enum


class ErrorKind(str, enum.Enum):
    AUTHENTICATION = "authentication_failure"
    PERMISSION = "permission_denied"
    VALIDATION = "validation_failure"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORE_UNAVAILABLE = "store_unavailable"


# Mapping jenis error -> HTTP status, dipakai hanya di boundary HTTP
HTTP_STATUS = {
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.PERMISSION: 403,
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION
    default_detail = "Request failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]


class AuthenticationFailure(ServiceError):
    kind = ErrorKind.AUTHENTICATION
    default_detail = "Invalid API key"


class PermissionDenied(ServiceError):
    kind = ErrorKind.PERMISSION
    default_detail = "Insufficient role"


class ValidationFailure(ServiceError):
    kind = ErrorKind.VALIDATION
    default_detail = "Invalid request data"


class NotFound(ServiceError):
    kind = ErrorKind.NOT_FOUND
    default_detail = "Not found"


class ConflictFailure(ServiceError):
    kind = ErrorKind.CONFLICT
    default_detail = "Conflicting record already exists"


class StoreUnavailable(ServiceError):
    kind = ErrorKind.STORE_UNAVAILABLE
    default_detail = "Storage temporarily unavailable"
