"""Registration error taxonomy. Services raise these; app.main renders them as JSON responses."""
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class RegistrationError(Exception):
    status_code = 400
    code = "registration_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class RegistrationValidationError(RegistrationError):
    code = "validation_error"

    def __init__(self, errors: list[FieldError] | None = None, message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = [e.as_dict() for e in self.errors]
        return body


class TotalMismatchError(RegistrationValidationError):
    code = "total_mismatch"

    def __init__(self, expected, received):
        message = f"Invalid total amount. Expected {expected}, got {received}"
        super().__init__([FieldError("total_amount", message)], message=message)
        self.expected = expected
        self.received = received


class InstitutionClosedError(RegistrationError):
    code = "institution_closed"

    def __init__(self, institution: str):
        super().__init__(f"{institution} registration is closed.")
        self.institution = institution


class DuplicateError(RegistrationError):
    _MESSAGES = {
        "email": "This email is already registered",
        "transaction_id": "This transaction ID is already used",
    }

    def __init__(self, field: str):
        super().__init__(self._MESSAGES.get(field, "Duplicate entry found"))
        self.field = field
        self.code = f"duplicate_{field}"


class CapacityExhaustedError(RegistrationError):
    code = "capacity_exhausted"

    def __init__(self, ceiling: int):
        super().__init__("Stay accommodation is full")
        self.ceiling = ceiling


class NotFoundError(RegistrationError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Registration not found"):
        super().__init__(message)


class AuthError(RegistrationError):
    code = "auth_error"

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class InvalidTransitionError(RegistrationError):
    status_code = 409
    code = "invalid_transition"


class NotificationError(RegistrationError):
    """Mail transport failure. Logged and reported as email_sent=False, never returned to a client."""

    status_code = 502
    code = "notification_failed"
